from __future__ import annotations

import pytest

from tune_core.core.errors import InsufficientResources
from tune_core.core.requirements import (
    check_minimum_requirements,
    meets_minimum_requirements,
    require_minimum_requirements,
)
from tune_core.core.settings import HostResources


@pytest.mark.parametrize(
    ("cpu", "ram", "expected"),
    [
        (3, 8191, False),
        (3, 8192, False),
        (4, 8191, False),
        (4, 8192, True),
        (16, 32768, True),
    ],
)
def test_minimum_requirements(cpu, ram, expected) -> None:
    assert meets_minimum_requirements(HostResources(cpu=cpu, ram=ram)) is expected


def test_forced_run_skips_requirements() -> None:
    assert meets_minimum_requirements(HostResources(cpu=1, ram=1024), forced=True)


def test_reason_names_each_shortfall() -> None:
    ok, reason = check_minimum_requirements(HostResources(cpu=2, ram=4096))

    assert not ok
    assert "2 CPU(s) < 4" in reason
    assert "4096 MB RAM < 8192 MB" in reason


def test_custom_minimums() -> None:
    assert meets_minimum_requirements(HostResources(cpu=2, ram=4096), minimum_cpu=2, minimum_ram=4096)


def test_require_raises_when_unmet() -> None:
    with pytest.raises(InsufficientResources) as exc:
        require_minimum_requirements(HostResources(cpu=2, ram=8192))

    assert exc.value.code == "RESOURCES_INSUFFICIENT"
    assert str(exc.value).startswith("RESOURCES_INSUFFICIENT: below minimum system requirements")
