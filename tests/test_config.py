from __future__ import annotations

from etf_projector.core.config import load_settings

_KEYS = ["APP_ENV", "LOG_LEVEL", "RATE_SOURCE", "RATE_API_URL", "RATE_RETRIES",
         "RATE_TIMEOUT_SECONDS", "RATE_CACHE_PATH"]


def _clear_env(monkeypatch):
    for k in _KEYS:
        monkeypatch.delenv(k, raising=False)


def test_defaults_without_config(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    s = load_settings(str(tmp_path / "missing.yaml"))
    assert s.env == "dev"
    assert s.rate_source == "static"
    assert s.rate_retries == 3
    assert s.rate_cache_path == ""
    assert s.default_horizon_years == 10
    assert s.max_horizon_years == 50


def test_yaml_values(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "app:\n  log_level: DEBUG\n"
        "rates:\n  source: http\n  api_url: https://rates.test/\n  retries: 5\n  cache_path: /tmp/r.json\n"
        "projection:\n  horizon_years: 25\n  annual_rate_percent: 7.5\n",
        encoding="utf-8",
    )
    s = load_settings(str(cfg))
    assert s.log_level == "DEBUG"
    assert s.rate_source == "http"
    assert s.rate_api_url == "https://rates.test"
    assert s.rate_retries == 5
    assert s.rate_cache_path == "/tmp/r.json"
    assert s.default_horizon_years == 25
    assert s.default_annual_rate_percent == 7.5


def test_env_overrides_and_aliases(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    cfg = tmp_path / "config.yaml"
    cfg.write_text("rates:\n  source: http\n  retries: 5\n", encoding="utf-8")

    monkeypatch.setenv("RATE_SOURCE", "Yahoo")
    monkeypatch.setenv("RATE_RETRIES", "")
    s = load_settings(str(cfg))
    assert s.rate_source == "yfinance"
    # empty env var falls back to the file
    assert s.rate_retries == 5


def test_non_numeric_ints_fall_back_to_defaults(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RATE_RETRIES", "three")
    monkeypatch.setenv("RATE_TIMEOUT_SECONDS", "20s")
    s = load_settings(str(tmp_path / "missing.yaml"))
    assert s.rate_retries == 3
    assert s.rate_timeout_seconds == 20
