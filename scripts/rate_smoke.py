"""Simple manual smoke test for the day-keyed rate cache.

Usage:
  python scripts/rate_smoke.py VOO
"""
import sys

from etf_projector.core.config import SETTINGS
from etf_projector.utils.logging import setup_logging
from etf_projector.utils.rate_cache import build_rate_cache

def main():
    setup_logging(SETTINGS.log_level)
    ticker = sys.argv[1] if len(sys.argv) > 1 else "VOO"
    cache = build_rate_cache()

    r1 = cache.resolve(ticker)
    print("Resolve1:", r1.model_dump() if r1 else None)

    r2 = cache.resolve(ticker)
    print("Resolve2 (hit expected):", r2.model_dump() if r2 else None)

if __name__ == "__main__":
    main()
