"""
check-websites – HTTP uptime monitor. Entry point.
- Reads ./check-websites.conf (or --config)
- Probes all sites every <interval> seconds, alerts Slack after <max_retries> consecutive failures
- --once for a single cycle, --dry-run to log notifications instead of posting
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from sitecheck.config import DEFAULT_CONFIG_FILE, ConfigurationError, MonitorConfig, load_config
from sitecheck.logging_setup import setup_logging
from sitecheck.monitor import build_state, run_monitor, shutdown


async def run(config: MonitorConfig, once: bool = False, dry_run: bool = False) -> None:
    state = build_state(config, dry_run=dry_run)
    try:
        await run_monitor(state, max_cycles=1 if once else None)
    finally:
        await shutdown(state)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="check-websites – HTTP uptime monitor with Slack alerts")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Path to INI config (default: %(default)s)")
    parser.add_argument("--once", action="store_true", help="Run a single probe cycle and exit")
    parser.add_argument("--dry-run", action="store_true", help="Log notifications instead of posting them")
    parser.add_argument("--debug", action="store_true", help="Verbose console output")
    args = parser.parse_args(argv)

    # Console only until the config tells us where the log file goes
    logging.basicConfig(level=logging.WARNING, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(config.log_path or None, debug=args.debug)
    logger.info("check-websites started (%s)", config.identifier)
    try:
        asyncio.run(run(config, once=args.once, dry_run=args.dry_run))
    except KeyboardInterrupt:
        pass
    logger.info("check-websites stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
