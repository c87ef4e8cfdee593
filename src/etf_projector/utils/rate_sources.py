from __future__ import annotations

import math
import time
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import requests

from etf_projector.core.config import SETTINGS, Settings
from etf_projector.core.schemas import RateInfo
from etf_projector.utils.logging import get_logger

logger = get_logger("rate_sources")


class RateSourceError(Exception):
    pass


class ProviderUnavailable(RateSourceError):
    pass


class RateLimited(RateSourceError):
    pass


# 10-year CAGR (total return, dividends reinvested) and current dividend yield,
# as of late 2025.
REFERENCE_RATES: Dict[str, Dict[str, Any]] = {
    "VOO": {"return": 14.52, "yield": 1.10, "name": "Vanguard S&P 500 ETF"},
    "QQQ": {"return": 19.30, "yield": 0.46, "name": "Invesco QQQ Trust"},
    "VTI": {"return": 13.90, "yield": 1.10, "name": "Vanguard Total Stock Market"},
    "SCHD": {"return": 11.78, "yield": 3.76, "name": "Schwab US Dividend Equity"},
    "SPY": {"return": 14.50, "yield": 1.09, "name": "SPDR S&P 500 ETF Trust"},
    "IVV": {"return": 14.52, "yield": 1.10, "name": "iShares Core S&P 500 ETF"},
}


@runtime_checkable
class LookupSource(Protocol):
    """Maps an uppercase ticker to its rate assumption, or None when unknown."""

    name: str

    def lookup(self, ticker: str) -> Optional[RateInfo]:
        ...


def _backoff(attempt: int) -> float:
    return min(8.0, 0.8 * (2 ** (attempt - 1)))


def rate_from_payload(ticker: str, payload: Mapping[str, Any], *, source: str) -> RateInfo:
    """Build a RateInfo from a `{"return", "yield", "name"}` record."""
    try:
        annual = float(payload["return"])
        dividend = float(payload.get("yield") or 0.0)
    except (KeyError, TypeError, ValueError) as e:
        raise RateSourceError(f"Invalid rate record for {ticker}: {payload!r}") from e
    if not (math.isfinite(annual) and math.isfinite(dividend)):
        raise RateSourceError(f"Non-finite rate record for {ticker}: {payload!r}")
    return RateInfo(
        ticker=ticker,
        annual_return_percent=annual,
        dividend_yield_percent=dividend,
        display_name=str(payload.get("name") or ticker),
        source=source,
    )


class StaticTableSource:
    """Lookup against an in-process table (the bundled reference table by default)."""

    name = "static"

    def __init__(self, table: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        src = REFERENCE_RATES if table is None else table
        self.table: Dict[str, Mapping[str, Any]] = {k.strip().upper(): v for k, v in src.items()}

    def lookup(self, ticker: str) -> Optional[RateInfo]:
        row = self.table.get(ticker.strip().upper())
        if row is None:
            return None
        return rate_from_payload(ticker, row, source=self.name)


class HttpRateSource:
    """
    GET <base_url>/etf/<TICKER> returning {"return": .., "yield": .., "name": ..}.
    - 404 means the ticker is unknown
    - 429 / 5xx / timeouts are retried with backoff
    """

    name = "http"

    def __init__(self, base_url: str, *, retries: int = 3, timeout: int = 20,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.retries = max(1, int(retries))
        self.timeout = int(timeout)
        self.session = session or requests.Session()

    def lookup(self, ticker: str) -> Optional[RateInfo]:
        sym = ticker.strip().upper()
        url = f"{self.base_url}/etf/{sym}"
        data = self._request_json_with_retries(url)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise RateSourceError(f"Unexpected payload for {sym}: {type(data).__name__}")
        return rate_from_payload(sym, data, source=self.name)

    def _request_json_with_retries(self, url: str) -> Optional[Any]:
        last_err: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                r = self.session.get(url, timeout=self.timeout)
                if r.status_code == 404:
                    return None
                r.raise_for_status()
            except requests.HTTPError as e:
                last_err = e
                code = getattr(e.response, "status_code", None)
                if code in (429, 500, 502, 503, 504):
                    logger.warning(f"rate_request_retry url={url} attempt={attempt} status={code}")
                    if attempt < self.retries:
                        time.sleep(_backoff(attempt))
                    continue
                raise RateSourceError(f"HTTP {code} for {url}") from e
            except (requests.Timeout, requests.ConnectionError) as e:
                last_err = e
                logger.warning(f"rate_request_retry url={url} attempt={attempt} err={type(e).__name__}")
                if attempt < self.retries:
                    time.sleep(_backoff(attempt))
                continue
            except requests.RequestException as e:
                raise RateSourceError(f"HTTP request failed for {url}: {type(e).__name__}: {e}") from e

            try:
                return r.json()
            except ValueError as e:
                # body was not JSON
                raise RateSourceError(f"Invalid JSON from {url}") from e

        if isinstance(last_err, requests.HTTPError) and getattr(last_err.response, "status_code", None) == 429:
            raise RateLimited(f"Rate limited by {url}") from last_err
        raise RateSourceError(f"HTTP request failed for {url}: {last_err}") from last_err


def compound_annual_growth(first: float, last: float, years: float) -> float:
    """CAGR in percent between two prices `years` apart."""
    if first <= 0 or years <= 0:
        raise ValueError("first price and span must be positive")
    return ((last / first) ** (1.0 / years) - 1.0) * 100.0


class YFinanceRateSource:
    """
    Derives the assumption from Yahoo Finance history:
    - trailing CAGR of dividend-adjusted monthly closes
    - trailing 12-month dividends over the last close
    """

    name = "yfinance"

    def __init__(self, *, period: str = "10y", retries: int = 3) -> None:
        self.period = period
        self.retries = max(1, int(retries))

    def lookup(self, ticker: str) -> Optional[RateInfo]:
        try:
            import yfinance as yf
        except Exception as e:
            raise ProviderUnavailable("yfinance not installed. pip install yfinance") from e

        sym = ticker.strip().upper()
        last_err: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                t = yf.Ticker(sym)
                hist = t.history(period=self.period, interval="1mo", auto_adjust=True)
                if hist is None or hist.empty:
                    return None
                hist = hist.dropna(subset=["Close"])
                if len(hist) < 2:
                    return None

                closes = hist["Close"]
                first = float(closes.iloc[0])
                last = float(closes.iloc[-1])
                span_days = (hist.index[-1] - hist.index[0]).days
                if first <= 0 or last <= 0 or span_days <= 0:
                    # degenerate price history; nothing usable for this ticker
                    logger.warning(f"yfinance_unusable_history symbol={sym} first={first} span_days={span_days}")
                    return None
                cagr = compound_annual_growth(first, last, span_days / 365.25)

                dividend_yield = 0.0
                if "Dividends" in hist.columns:
                    trailing = float(hist["Dividends"].iloc[-12:].sum())
                    dividend_yield = trailing / last * 100.0

                info = getattr(t, "info", None) or {}
                display_name = info.get("longName") or info.get("shortName") or sym

                return RateInfo(
                    ticker=sym,
                    annual_return_percent=round(cagr, 2),
                    dividend_yield_percent=round(dividend_yield, 2),
                    display_name=str(display_name),
                    source=self.name,
                )
            except Exception as e:
                last_err = e
                logger.warning(f"yfinance_retry symbol={sym} attempt={attempt} err={type(e).__name__}:{e}")
                if attempt < self.retries:
                    time.sleep(_backoff(attempt))

        raise RateSourceError(f"yfinance failed for {sym}: {last_err}") from last_err


def build_lookup_source(settings: Optional[Settings] = None) -> LookupSource:
    s = settings or SETTINGS
    provider = (s.rate_source or "static").lower()
    if provider == "static":
        return StaticTableSource()
    if provider == "http":
        return HttpRateSource(s.rate_api_url, retries=s.rate_retries, timeout=s.rate_timeout_seconds)
    if provider == "yfinance":
        return YFinanceRateSource(retries=s.rate_retries)
    raise ProviderUnavailable(f"Unknown rate source: {provider}")
