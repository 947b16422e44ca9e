#!/usr/bin/env python3
from __future__ import annotations

import argparse
import hashlib

from tune_core.config import load_config
from tune_core.inventory import load_inventory
from tune_core.report import render_json
from tune_core.tune import Tuner, TuneOptions


def report_hash(tuner: Tuner, inventory_path: str, schema_path: str, common: bool) -> str:
    inventory = load_inventory(inventory_path, schema_path)
    report = tuner.run(inventory, options=TuneOptions(common=common, force=True))
    return hashlib.blake2b(render_json(report), digest_size=32).hexdigest()


def main() -> int:
    parser = argparse.ArgumentParser(description="Prove repeated tuning of one inventory yields an identical report")
    parser.add_argument("inventory", help="Inventory YAML file")
    parser.add_argument("--config", default="configs/default.yaml")
    parser.add_argument("--common", action="store_true")
    parser.add_argument("--runs", type=int, default=100)
    args = parser.parse_args()

    config = load_config(args.config)
    tuner = Tuner(config)
    hashes = {
        report_hash(tuner, args.inventory, config.inventory.schema_path, args.common) for _ in range(args.runs)
    }
    if len(hashes) != 1:
        print("non-deterministic report detected")
        return 1

    stable_hash = next(iter(hashes))
    print(f"deterministic: runs={args.runs} report_hash={stable_hash}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
