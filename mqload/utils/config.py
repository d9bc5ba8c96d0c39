import math
import os
import re
from dataclasses import dataclass

DEFAULT_BASE_URL = "http://localhost:8080"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Scenario:
    name: str
    vus: int
    duration: float


def parse_duration(value):
    """Parse a k6 style duration ("1m", "1m30s", "500ms") or plain seconds."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ConfigError(f"invalid duration: {value!r}")
        return seconds
    pos = 0
    total = 0.0
    for m in _DURATION_PART.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _UNITS[m.group(2)]
        pos = m.end()
    if pos == 0 or pos != len(text):
        raise ConfigError(f"invalid duration: {value!r}")
    return total


def _int(name, default):
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def validate(cfg):
    for s in cfg["SCENARIOS"].values():
        if s.vus < 0:
            raise ConfigError(f"{s.name}: vus must be >= 0")
        if not math.isfinite(s.duration) or s.duration <= 0:
            raise ConfigError(f"{s.name}: duration must be > 0")
    if not math.isfinite(cfg["REQUEST_TIMEOUT"]) or cfg["REQUEST_TIMEOUT"] <= 0:
        raise ConfigError("REQUEST_TIMEOUT must be > 0")
    if not math.isfinite(cfg["GRACEFUL_STOP"]) or cfg["GRACEFUL_STOP"] < 0:
        raise ConfigError("GRACEFUL_STOP must be >= 0")
    if cfg["MIN_MESSAGE_LENGTH"] < 0:
        raise ConfigError("MIN_MESSAGE_LENGTH must be >= 0")
    if cfg["MIN_MESSAGE_LENGTH"] > cfg["MAX_MESSAGE_LENGTH"]:
        raise ConfigError("MIN_MESSAGE_LENGTH must not exceed MAX_MESSAGE_LENGTH")
    if cfg["FETCH_COUNT"] < 1:
        raise ConfigError("FETCH_COUNT must be >= 1")
    if cfg["LEASE_SECONDS"] is not None and cfg["LEASE_SECONDS"] < 0:
        raise ConfigError("LEASE_SECONDS must be >= 0")
    if cfg["DRAIN_WORKERS"] < 1 or cfg["DRAIN_GET_CONCURRENCY"] < 1 or cfg["DRAIN_MAX_COUNT"] < 1:
        raise ConfigError("drain workers, concurrency and max count must be >= 1")
    if cfg["LOG_LEVEL"] not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"unknown LOG_LEVEL {cfg['LOG_LEVEL']!r}")
    if cfg["DRAIN_MESSAGES"] < 0:
        raise ConfigError("DRAIN_MESSAGES must be >= 0")
    return cfg


def load_config():
    base_url = os.getenv("BASE_URL", DEFAULT_BASE_URL).rstrip("/")
    scenarios = {
        "producer": Scenario("producer", _int("PRODUCER_VUS", 10), parse_duration(os.getenv("PRODUCER_DURATION", "1m"))),
        "consumer": Scenario("consumer", _int("CONSUMER_VUS", 10), parse_duration(os.getenv("CONSUMER_DURATION", "1m"))),
    }
    lease = os.getenv("LEASE_SECONDS", "")
    cfg = {
        "BASE_URL": base_url,
        "SCENARIOS": scenarios,
        "MIN_MESSAGE_LENGTH": _int("MIN_MESSAGE_LENGTH", 250),
        "MAX_MESSAGE_LENGTH": _int("MAX_MESSAGE_LENGTH", 300),
        "FETCH_COUNT": _int("FETCH_COUNT", 1),
        "LEASE_SECONDS": _int("LEASE_SECONDS", 0) if lease else None,
        "REQUEST_TIMEOUT": parse_duration(os.getenv("REQUEST_TIMEOUT", "30s")),
        "GRACEFUL_STOP": parse_duration(os.getenv("GRACEFUL_STOP", "30s")),
        "METRICS_PORT": _int("METRICS_PORT", 0),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
        "DRAIN_MESSAGES": _int("DRAIN_MESSAGES", 1000),
        "DRAIN_WORKERS": _int("DRAIN_WORKERS", 100),
        "DRAIN_GET_CONCURRENCY": _int("DRAIN_GET_CONCURRENCY", 10),
        "DRAIN_MAX_COUNT": _int("DRAIN_MAX_COUNT", 5),
    }
    return validate(cfg)
