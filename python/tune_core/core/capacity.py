"""Capacity formulas for the primary coordination service.

Run intervals and compile times are in seconds. Worker/node relations follow
Little's law: a worker is held for one compile per agent run.
"""

from __future__ import annotations

import math

SECONDS_PER_DAY = 86400
MAXIMUM_RUN_SAMPLE = 10000
DAYS_SAMPLED_FOR_INFREQUENT_RUNS = 7
PEAK_TO_AVERAGE_RUNS = 2


def calculate_run_sample(active_nodes: int, run_interval: int) -> int:
    if run_interval == 0:
        return active_nodes
    if run_interval < 0:
        raise ValueError("run_interval must be >= 0")
    runs_per_day = SECONDS_PER_DAY // run_interval
    if runs_per_day < 1:
        return min(active_nodes * DAYS_SAMPLED_FOR_INFREQUENT_RUNS, MAXIMUM_RUN_SAMPLE)
    return min(active_nodes * runs_per_day, MAXIMUM_RUN_SAMPLE)


def calculate_maximum_nodes(average_compile_time: float, available_workers: int, run_interval: int) -> int:
    if average_compile_time <= 0:
        raise ValueError("average_compile_time must be > 0")
    return int(math.floor(available_workers * run_interval / float(average_compile_time)))


def calculate_minimum_workers(active_nodes: int, average_compile_time: float, run_interval: int) -> int:
    if run_interval <= 0:
        raise ValueError("run_interval must be > 0")
    busy = active_nodes * average_compile_time * PEAK_TO_AVERAGE_RUNS
    return int(math.ceil(busy / float(run_interval)))
