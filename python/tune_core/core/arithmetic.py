from __future__ import annotations

import re
from typing import TypeVar

from tune_core.core.errors import InvalidUnitFormat

T = TypeVar("T")

PROCESSOR_TIERS: tuple[int, int, int] = (4, 8, 16)
MEMORY_TIERS: tuple[int, int, int] = (8192, 16384, 32768)

_UNIT_PATTERN = re.compile(r"^\s*(?P<magnitude>\d+)\s*(?P<unit>[bkmg])?\s*$", re.IGNORECASE)
_UNIT_EXPONENTS: dict[str, int] = {"b": 0, "k": 1, "m": 2, "g": 3}


def _fit_to_tiers(value: int, tiers: tuple[int, int, int], small: T, medium: T, large: T) -> T:
    if value <= tiers[0]:
        return small
    if value <= tiers[1]:
        return medium
    return large


def fit_to_processors(cpu: int, small: T, medium: T, large: T) -> T:
    return _fit_to_tiers(cpu, PROCESSOR_TIERS, small, medium, large)


def fit_to_memory(ram: int, small: T, medium: T, large: T) -> T:
    return _fit_to_tiers(ram, MEMORY_TIERS, small, medium, large)


def clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(value, maximum))


def clamp_percent_of_resource(total: int, percent: float, minimum: int, maximum: int) -> int:
    """Take a percentage of a resource, truncated to whole units, then limit it to [minimum, maximum]."""
    return clamp(int(total * percent / 100.0), minimum, maximum)


def within_percent(value: float, target: float, percent: float) -> bool:
    """True when value approaches target from below, within percent of it.

    Reaching the target is not "within": the upper bound is exclusive.
    """
    return target * (1 - percent / 100.0) <= value < target


def nearest_power_of_two(number: float) -> int:
    if number <= 1:
        return 1
    lower = 1 << (int(number).bit_length() - 1)
    upper = lower << 1
    if number - lower >= upper - number:
        return upper
    return lower


def _parse_unit_string(value: str | int, default_unit: str) -> int:
    if isinstance(value, bool):
        raise InvalidUnitFormat(f"not a magnitude: {value!r}")
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        raise InvalidUnitFormat(f"not a magnitude: {value!r}")
    match = _UNIT_PATTERN.match(value)
    if match is None:
        raise InvalidUnitFormat(f"unrecognized magnitude: {value!r}")
    unit = (match.group("unit") or default_unit).lower()
    return int(match.group("magnitude")) * 1024 ** _UNIT_EXPONENTS[unit]


def string_to_bytes(value: str | int) -> int:
    # An unsuffixed number is gigabytes here, as in hand-written heap settings ("16" means 16g).
    return _parse_unit_string(value, default_unit="g")


def string_to_megabytes(value: str | int) -> int:
    return _parse_unit_string(value, default_unit="m") // 1024 ** 2
