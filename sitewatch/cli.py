from __future__ import annotations

import argparse
import copy
import logging
import sys

from sitewatch.config import Settings, settings
from sitewatch.formatting import format_console_summary
from sitewatch.notifier import build_notifier
from sitewatch.registry import ConfigError
from sitewatch.runner import run_once
from sitewatch.summary import failures

logger = logging.getLogger("sitewatch")

EXIT_OK = 0
EXIT_INCIDENT = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Run all site checks once and alert on failures.")
    p.add_argument("--config", help="Local site list (JSON or YAML). Overrides SITES_CONFIG_PATH.")
    p.add_argument("--config-url", help="Remote site list URL. Overrides SITES_CONFIG_URL.")
    p.add_argument("--pool-size", type=int, help="Max checks in flight. Overrides POOL_SIZE.")
    p.add_argument("--no-notify", action="store_true", help="Skip the alert even on failures.")
    p.add_argument(
        "--fail-on-incident",
        action="store_true",
        default=None,
        help="Exit 1 when at least one check fails.",
    )
    return p


def _apply_overrides(cfg: Settings, args: argparse.Namespace) -> Settings:
    if args.config:
        cfg.SITES_CONFIG_PATH = args.config
    if args.config_url:
        cfg.SITES_CONFIG_URL = args.config_url
    if args.pool_size is not None:
        cfg.POOL_SIZE = args.pool_size
    if args.fail_on_incident:
        cfg.FAIL_ON_INCIDENT = True
    return cfg


def main(argv: list[str] | None = None, cfg: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = _apply_overrides(copy.copy(cfg or settings), args)

    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if cfg.POOL_SIZE < 1:
        logger.error("POOL_SIZE must be >= 1, got %s", cfg.POOL_SIZE)
        return EXIT_CONFIG_ERROR

    notifier = None if args.no_notify else build_notifier(cfg)
    try:
        report = run_once(cfg, notifier=notifier)
    except ConfigError as exc:
        logger.error("Cannot load site list: %s", exc)
        return EXIT_CONFIG_ERROR

    print(format_console_summary(report.summary))
    if cfg.FAIL_ON_INCIDENT and failures(report.summary):
        return EXIT_INCIDENT
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
