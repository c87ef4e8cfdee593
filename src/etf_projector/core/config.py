from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str

    rate_source: str
    rate_api_url: str
    rate_retries: int
    rate_timeout_seconds: int
    rate_cache_path: str

    default_initial_deposit: float
    default_monthly_contribution: float
    default_horizon_years: int
    default_annual_rate_percent: float
    max_horizon_years: int


def _deep_get(d: Dict[str, Any], path: str, default=None):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _int_or(value, default: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def load_settings(config_path: str = "config.yaml") -> Settings:
    """
    Loads config.yaml + overrides from .env/environment variables.
    """
    load_dotenv()  # loads .env into env vars

    cfg: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}

    # Empty env vars count as "not set" so they never mask config.yaml.
    def _env_or_cfg(key: str, cfg_path: str, default):
        v = os.getenv(key)
        if v is None:
            return _deep_get(cfg, cfg_path, default)
        v = v.strip()
        return _deep_get(cfg, cfg_path, default) if v == "" else v

    env = _env_or_cfg("APP_ENV", "app.env", "dev")
    log_level = _env_or_cfg("LOG_LEVEL", "app.log_level", "INFO")

    rate_source = _env_or_cfg("RATE_SOURCE", "rates.source", "static")
    if isinstance(rate_source, str):
        rs = rate_source.strip().lower()
        # accept the provider names people tend to type
        if rs in ("table", "builtin", "local"):
            rate_source = "static"
        elif rs in ("api", "remote", "https"):
            rate_source = "http"
        elif rs in ("yahoo", "yf"):
            rate_source = "yfinance"
        else:
            rate_source = rs

    rate_api_url = str(_env_or_cfg("RATE_API_URL", "rates.api_url", "https://api.example.com") or "")
    rate_retries = _int_or(_env_or_cfg("RATE_RETRIES", "rates.retries", 3), 3)
    rate_timeout_seconds = _int_or(_env_or_cfg("RATE_TIMEOUT_SECONDS", "rates.timeout_seconds", 20), 20)
    rate_cache_path = str(_env_or_cfg("RATE_CACHE_PATH", "rates.cache_path", "") or "")

    default_initial_deposit = float(_deep_get(cfg, "projection.initial_deposit", 10000))
    default_monthly_contribution = float(_deep_get(cfg, "projection.monthly_contribution", 500))
    default_horizon_years = int(_deep_get(cfg, "projection.horizon_years", 10))
    default_annual_rate_percent = float(_deep_get(cfg, "projection.annual_rate_percent", 10))
    max_horizon_years = int(_deep_get(cfg, "projection.max_horizon_years", 50))

    return Settings(
        env=env,
        log_level=log_level,
        rate_source=rate_source,
        rate_api_url=rate_api_url.rstrip("/"),
        rate_retries=max(1, rate_retries),
        rate_timeout_seconds=rate_timeout_seconds,
        rate_cache_path=rate_cache_path,
        default_initial_deposit=default_initial_deposit,
        default_monthly_contribution=default_monthly_contribution,
        default_horizon_years=default_horizon_years,
        default_annual_rate_percent=default_annual_rate_percent,
        max_horizon_years=max_horizon_years,
    )


# Optional convenience singleton
SETTINGS = load_settings()
