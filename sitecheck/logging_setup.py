"""
Log file for the monitor daemon: sitecheck.log, rotated at midnight, 30 days kept.
The file gets every probe outcome at DEBUG; the console shows UP->DOWN / DOWN->UP,
decided alerts, dropped deliveries and start/stop (everything with --debug).
httpx request logging is muted so per-probe noise stays out of the console.
"""
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from sitecheck.config import get_config_dir


def setup_logging(log_path: str | None = None, debug: bool = False) -> logging.Logger:
    """
    Configure root logger with daily rotating file and console.
    Returns the app logger ('sitecheck').
    """
    if log_path:
        log_dir = Path(log_path)
    else:
        log_dir = get_config_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "sitecheck.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    fh = TimedRotatingFileHandler(log_file, when="midnight", backupCount=30, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.DEBUG if debug else logging.INFO)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger("sitecheck")
    logger.setLevel(logging.DEBUG)
    return logger
