from __future__ import annotations

import threading
from datetime import date
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from etf_projector.core.config import SETTINGS, Settings
from etf_projector.core.schemas import RateInfo, RateResolution
from etf_projector.utils.cache import InMemoryStore, KeyValueStore, build_store
from etf_projector.utils.logging import get_logger, set_ticker
from etf_projector.utils.rate_sources import LookupSource, RateSourceError, StaticTableSource, build_lookup_source

logger = get_logger("rate_cache")

KEY_SEPARATOR = "|"


def normalize_ticker(ticker: Optional[str]) -> str:
    return (ticker or "").strip().upper()


def cache_key(ticker: str, day: date) -> str:
    return f"{normalize_ticker(ticker)}{KEY_SEPARATOR}{day.isoformat()}"


class RateCache:
    """
    Resolves tickers to rate assumptions, memoized per calendar day.
    - Keys are "<TICKER>|<YYYY-MM-DD>"; a new day simply never matches old keys
    - Only found rates are stored; unknown tickers and source failures are not
    - Concurrent misses on one key share a single lookup
    """

    def __init__(
        self,
        source: Optional[LookupSource] = None,
        store: Optional[KeyValueStore] = None,
        *,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.source = source or StaticTableSource()
        self.store = store if store is not None else InMemoryStore()
        self.clock = clock or date.today
        self._lock = threading.Lock()
        self._in_flight: Dict[str, threading.Event] = {}

    def cache_key(self, ticker: str, day: Optional[date] = None) -> str:
        return cache_key(ticker, day or self.clock())

    def in_flight(self, ticker: str) -> bool:
        key = self.cache_key(ticker)
        with self._lock:
            return key in self._in_flight

    def _read(self, key: str, ticker: str) -> Optional[RateInfo]:
        try:
            raw = self.store.get(key)
            if raw is None:
                return None
            rate = RateInfo.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            # undecodable record counts as a miss; the fresh lookup overwrites it
            logger.warning(f"cache_unreadable key={key} err={type(e).__name__}")
            return None
        if rate.ticker != ticker:
            # never hand out another ticker's record
            logger.warning(f"cache_mismatch key={key} stored_ticker={rate.ticker}")
            return None
        return rate

    def resolve(self, ticker: Optional[str]) -> Optional[RateResolution]:
        sym = normalize_ticker(ticker)
        if not sym:
            return None
        set_ticker(sym)

        key = self.cache_key(sym)
        while True:
            with self._lock:
                cached = self._read(key, sym)
                if cached is not None:
                    logger.info(f"cache_hit key={key}")
                    return RateResolution(status="hit", ticker=sym, cache_key=key, rate=cached)
                pending = self._in_flight.get(key)
                if pending is None:
                    done = threading.Event()
                    self._in_flight[key] = done
                    break
            # another caller is already looking this key up
            pending.wait()
            with self._lock:
                cached = self._read(key, sym)
            if cached is not None:
                logger.info(f"cache_hit key={key} coalesced=true")
                return RateResolution(status="hit", ticker=sym, cache_key=key, rate=cached)

        try:
            logger.info(f"cache_miss key={key} source={getattr(self.source, 'name', '?')}")
            try:
                rate = self.source.lookup(sym)
            except RateSourceError as e:
                logger.warning(f"lookup_failed key={key} err={type(e).__name__}:{e}")
                raise

            if rate is None:
                logger.info(f"lookup_not_found key={key}")
                return RateResolution(status="not_found", ticker=sym, cache_key=key)

            if rate.ticker != sym:
                rate = rate.model_copy(update={"ticker": sym})
            with self._lock:
                self.store.set(key, rate.model_dump_json().encode("utf-8"))
            return RateResolution(status="fresh", ticker=sym, cache_key=key, rate=rate)
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
            done.set()

    def purge_stale(self) -> int:
        """Delete entries from earlier days on stores that can list keys."""
        keys = getattr(self.store, "keys", None)
        delete = getattr(self.store, "delete", None)
        if keys is None or delete is None:
            return 0

        today = self.clock().isoformat()
        removed = 0
        with self._lock:
            for key in list(keys()):
                _, sep, day = key.rpartition(KEY_SEPARATOR)
                if sep and day != today:
                    delete(key)
                    removed += 1
        if removed:
            logger.info(f"cache_purged removed={removed} today={today}")
        return removed


def build_rate_cache(settings: Optional[Settings] = None) -> RateCache:
    s = settings or SETTINGS
    return RateCache(source=build_lookup_source(s), store=build_store(s.rate_cache_path))
