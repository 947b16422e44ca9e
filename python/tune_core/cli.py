"""CLI entrypoint for tuning an infrastructure."""

from __future__ import annotations

import argparse
import logging
import sys

from tune_core.config import load_config
from tune_core.core.errors import TuneError
from tune_core.facts import local_inventory
from tune_core.inventory import load_inventory
from tune_core.logging_utils import configure_logging
from tune_core.report import render_json, render_text, write_hiera
from tune_core.tune import Tuner, TuneOptions

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Recommend service settings from host CPU and RAM")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--inventory", help="Path to an inventory YAML file (nodes and roles)")
    source.add_argument("--local", action="store_true", help="Tune this system as a monolithic primary master")
    parser.add_argument("--config", default="configs/default.yaml", help="Path to tuner configuration YAML")
    parser.add_argument("--common", action="store_true", help="Extract settings common to all hosts")
    parser.add_argument("--force", action="store_true", help="Do not enforce minimum system requirements")
    parser.add_argument("--hiera", metavar="DIR", help="Write optimized settings to Hiera files in DIR")
    parser.add_argument("--json", action="store_true", help="Print the report as canonical JSON")
    parser.add_argument("--memory-per-worker", type=int, metavar="MB", help="Memory to allocate per JRuby")
    parser.add_argument(
        "--use-current-memory-per-worker",
        action="store_true",
        help="Derive memory per JRuby from the current settings recorded in the inventory",
    )
    parser.add_argument("--jruby9k", action="store_true", help="Puppet Server runs JRuby 9k")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.debug else logging.INFO, log_path=args.log_file)

    try:
        config = load_config(args.config)
        if args.inventory:
            inventory = load_inventory(args.inventory, config.inventory.schema_path)
        else:
            inventory = local_inventory()
        options = TuneOptions(
            common=args.common,
            force=args.force,
            memory_per_worker=args.memory_per_worker,
            use_current_memory_per_worker=args.use_current_memory_per_worker,
            jruby9k_enabled=args.jruby9k,
        )
        report = Tuner(config).run(inventory, options=options)
    except TuneError as exc:
        logger.error("%s", exc)
        return 2

    if args.json:
        sys.stdout.write(render_json(report).decode("utf-8") + "\n")
    else:
        sys.stdout.write(render_text(report))
    if args.hiera:
        for path in write_hiera(report, args.hiera):
            logger.info("wrote %s", path)
    return 0 if report.ok() else 1


if __name__ == "__main__":
    raise SystemExit(main())
