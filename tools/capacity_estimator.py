"""
Capacity Estimator: Puppet Server workers vs. agent check-in volume

Usage:
    python tools/capacity_estimator.py --nodes 2000 --cpu 8 --ram 16384

Output:
    reports/capacity_report.md

This is a formula-based analytical estimator, not a load test.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List
import argparse
import os

from tune_core.core.apportion import MASTER_WORKERS, apportion
from tune_core.core.capacity import (
    calculate_maximum_nodes,
    calculate_minimum_workers,
    calculate_run_sample,
)
from tune_core.core.settings import HostResources
from tune_core.core.topology import (
    BROKER,
    CONSOLE,
    DATABASE,
    MASTER,
    ORCHESTRATOR,
    PRIMARY_MASTER,
    PUPPETDB,
    InfrastructureShape,
)

MONOLITHIC_CLASSES = frozenset({MASTER, PRIMARY_MASTER, CONSOLE, PUPPETDB, DATABASE, BROKER, ORCHESTRATOR})


# =============================
# MODEL
# =============================


@dataclass
class CapacityParams:
    active_nodes: int = 1000
    run_interval: int = 1800
    average_compile_time: float = 20.0
    cpu: int = 8
    ram: int = 16384


@dataclass
class CapacityEstimate:
    workers: int
    maximum_nodes: int
    minimum_workers: int
    run_sample: int

    @property
    def sufficient(self) -> bool:
        return self.workers >= self.minimum_workers


def estimate(params: CapacityParams) -> CapacityEstimate:
    settings = apportion(
        HostResources(cpu=params.cpu, ram=params.ram),
        MONOLITHIC_CLASSES,
        InfrastructureShape(is_monolithic=True),
    )
    workers = settings.params[MASTER_WORKERS].value
    return CapacityEstimate(
        workers=workers,
        maximum_nodes=calculate_maximum_nodes(params.average_compile_time, workers, params.run_interval),
        minimum_workers=calculate_minimum_workers(
            params.active_nodes, params.average_compile_time, params.run_interval
        ),
        run_sample=calculate_run_sample(params.active_nodes, params.run_interval),
    )


# =============================
# REPORTING
# =============================


def _recommendation(params: CapacityParams, result: CapacityEstimate) -> List[str]:
    recs: List[str] = []
    if result.sufficient:
        recs.append(
            f"A monolithic master with {params.cpu} CPU(s) / {params.ram} MB RAM can serve "
            f"{params.active_nodes} nodes at a {params.run_interval}s run interval."
        )
    else:
        recs.append(
            f"{params.active_nodes} nodes need at least {result.minimum_workers} JRubies; this host provides "
            f"{result.workers}. Add compile masters or lengthen the run interval."
        )
    if params.active_nodes > result.maximum_nodes:
        recs.append(
            f"Node count exceeds the theoretical maximum of {result.maximum_nodes} at full utilization."
        )
    recs.append(f"Sample {result.run_sample} agent runs when measuring average compile time.")
    return recs


def generate_markdown_report(params: CapacityParams) -> str:
    timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    result = estimate(params)

    lines: List[str] = []
    lines.append("# Capacity Report")
    lines.append(f"_Generated: {timestamp}_")
    lines.append("")

    lines.append("## 1) Inputs")
    lines.append(f"- Active nodes: **{params.active_nodes}**")
    lines.append(f"- Run interval: **{params.run_interval} s**")
    lines.append(f"- Average compile time: **{params.average_compile_time} s**")
    lines.append(f"- Host: **{params.cpu} CPU(s) / {params.ram} MB RAM**")
    lines.append("")

    lines.append("## 2) Estimate")
    lines.append("| Quantity | Value |")
    lines.append("|---|---:|")
    lines.append(f"| Recommended JRubies | {result.workers} |")
    lines.append(f"| Minimum JRubies required | {result.minimum_workers} |")
    lines.append(f"| Maximum nodes at full utilization | {result.maximum_nodes} |")
    lines.append(f"| Agent run sample size | {result.run_sample} |")
    lines.append("")

    lines.append("## 3) Recommendation")
    for rec in _recommendation(params, result):
        lines.append(f"- {rec}")

    lines.append("")
    lines.append("---")
    lines.append("This report is an analytical model and should be reconciled with production metrics.")

    return "\n".join(lines)


def main() -> str:
    defaults = CapacityParams()
    parser = argparse.ArgumentParser(description="Estimate Puppet Server capacity")
    parser.add_argument("--nodes", type=int, default=defaults.active_nodes)
    parser.add_argument("--run-interval", type=int, default=defaults.run_interval)
    parser.add_argument("--compile-time", type=float, default=defaults.average_compile_time)
    parser.add_argument("--cpu", type=int, default=defaults.cpu)
    parser.add_argument("--ram", type=int, default=defaults.ram)
    args = parser.parse_args()

    params = CapacityParams(
        active_nodes=args.nodes,
        run_interval=args.run_interval,
        average_compile_time=args.compile_time,
        cpu=args.cpu,
        ram=args.ram,
    )
    report = generate_markdown_report(params)
    os.makedirs("reports", exist_ok=True)
    output_path = "reports/capacity_report.md"
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report)
    return output_path


if __name__ == "__main__":
    path = main()
    print(f"Report generated: {path}")
