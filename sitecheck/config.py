"""
Load the monitor configuration from an INI file ([settings] section).
Required: identifier, slack_url, sites. Optional with a logged warning: interval, max_retries.
Anything missing or unparseable is a ConfigurationError; the monitor never starts on bad config.
"""
import configparser
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger("sitecheck.config")

SECTION = "settings"
DEFAULT_CONFIG_FILE = "check-websites.conf"

# Default config
DEFAULT_INTERVAL = 90
DEFAULT_MAX_RETRIES = 5
DEFAULT_TIMEOUT = 10
DEFAULT_CONCURRENCY = 5
DEFAULT_VERIFY_TLS = False


class ConfigurationError(Exception):
    """Config is missing, incomplete or unparseable."""


def get_config_dir() -> Path:
    """User app data directory for logs."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
        return Path(base) / "sitecheck"
    return Path(os.path.expanduser("~")) / ".sitecheck"


@dataclass(frozen=True)
class MonitorConfig:
    identifier: str
    slack_url: str
    endpoints: tuple[str, ...]
    interval: int = DEFAULT_INTERVAL
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout: int = DEFAULT_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY
    verify_tls: bool = DEFAULT_VERIFY_TLS
    log_path: str = ""


def unique_endpoints(raw: str) -> tuple[str, ...]:
    """Split whitespace-separated sites, dropping duplicates but keeping first-seen order."""
    return tuple(dict.fromkeys(raw.split()))


def _required(settings: configparser.SectionProxy, key: str) -> str:
    value = settings.get(key, "").strip()
    if not value:
        raise ConfigurationError(f"Missing required setting '{key}' in [{SECTION}]")
    return value


def _positive_int(settings: configparser.SectionProxy, key: str, default: int, warn: bool) -> int:
    raw = settings.get(key, "").strip()
    if not raw:
        if warn:
            logger.warning("Setting '%s' not set, using default %d", key, default)
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"Setting '{key}' must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigurationError(f"Setting '{key}' must be positive, got {value}")
    return value


def parse_config(data: dict[str, Any] | configparser.ConfigParser) -> MonitorConfig:
    """Build a MonitorConfig from a parsed INI document (or a plain dict of sections)."""
    if isinstance(data, configparser.ConfigParser):
        parser = data
    else:
        parser = configparser.ConfigParser(interpolation=None)
        parser.read_dict(data)
    if not parser.has_section(SECTION):
        raise ConfigurationError(f"Could not read section [{SECTION}] from config file")
    settings = parser[SECTION]

    identifier = _required(settings, "identifier")
    slack_url = _required(settings, "slack_url")
    endpoints = unique_endpoints(_required(settings, "sites"))

    try:
        verify_tls = settings.getboolean("verify_tls", fallback=DEFAULT_VERIFY_TLS)
    except ValueError as e:
        raise ConfigurationError(f"Setting 'verify_tls': {e}") from None

    return MonitorConfig(
        identifier=identifier,
        slack_url=slack_url,
        endpoints=endpoints,
        interval=_positive_int(settings, "interval", DEFAULT_INTERVAL, warn=True),
        max_retries=_positive_int(settings, "max_retries", DEFAULT_MAX_RETRIES, warn=True),
        timeout=_positive_int(settings, "timeout", DEFAULT_TIMEOUT, warn=False),
        concurrency=_positive_int(settings, "concurrency", DEFAULT_CONCURRENCY, warn=False),
        verify_tls=verify_tls,
        log_path=settings.get("log_path", "").strip(),
    )


def load_config(path: str | Path = DEFAULT_CONFIG_FILE) -> MonitorConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(path, "r", encoding="utf-8") as f:
            parser.read_file(f)
    except (configparser.Error, OSError) as e:
        raise ConfigurationError(f"Could not parse {path}: {e}") from e
    return parse_config(parser)
