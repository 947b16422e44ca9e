from __future__ import annotations

from tune_core.core.errors import InsufficientResources
from tune_core.core.settings import HostResources

MINIMUM_CPU = 4
MINIMUM_RAM_MB = 8192


def check_minimum_requirements(
    resources: HostResources,
    forced: bool = False,
    minimum_cpu: int = MINIMUM_CPU,
    minimum_ram: int = MINIMUM_RAM_MB,
) -> tuple[bool, str]:
    if forced:
        return True, ""
    shortfalls = []
    if resources.cpu < minimum_cpu:
        shortfalls.append(f"{resources.cpu} CPU(s) < {minimum_cpu}")
    if resources.ram < minimum_ram:
        shortfalls.append(f"{resources.ram} MB RAM < {minimum_ram} MB")
    if shortfalls:
        return False, "below minimum system requirements: " + ", ".join(shortfalls)
    return True, ""


def meets_minimum_requirements(
    resources: HostResources,
    forced: bool = False,
    minimum_cpu: int = MINIMUM_CPU,
    minimum_ram: int = MINIMUM_RAM_MB,
) -> bool:
    ok, _ = check_minimum_requirements(resources, forced, minimum_cpu, minimum_ram)
    return ok


def require_minimum_requirements(
    resources: HostResources,
    forced: bool = False,
    minimum_cpu: int = MINIMUM_CPU,
    minimum_ram: int = MINIMUM_RAM_MB,
) -> None:
    ok, reason = check_minimum_requirements(resources, forced, minimum_cpu, minimum_ram)
    if not ok:
        raise InsufficientResources(reason)
