from __future__ import annotations

from tune_core.core.optimizer import common_params, optimize_common
from tune_core.core.settings import HeapPair, IntValue, StringValue


def test_common_settings_are_extracted() -> None:
    per_host = {
        "node_1": {"a": IntValue(1), "b": StringValue("b")},
        "node_2": {"a": IntValue(2), "b": StringValue("b")},
    }

    optimized = optimize_common(per_host)

    assert optimized.common == {"b": StringValue("b")}
    assert optimized.per_host == {"node_1": {"a": IntValue(1)}, "node_2": {"a": IntValue(2)}}


def test_structured_values_compare_by_value() -> None:
    per_host = {
        "node_1": {"java_args": HeapPair(2048, 2048)},
        "node_2": {"java_args": HeapPair.fixed(2048)},
    }

    assert common_params(per_host) == {"java_args": HeapPair(2048, 2048)}


def test_settings_missing_from_a_host_are_not_common() -> None:
    per_host = {
        "node_1": {"a": IntValue(1), "b": IntValue(2)},
        "node_2": {"a": IntValue(1)},
    }

    optimized = optimize_common(per_host)

    assert optimized.common == {"a": IntValue(1)}
    assert optimized.per_host == {"node_1": {"b": IntValue(2)}, "node_2": {}}


def test_optimizing_twice_finds_nothing_new() -> None:
    per_host = {
        "node_1": {"a": IntValue(1), "b": StringValue("b")},
        "node_2": {"a": IntValue(2), "b": StringValue("b")},
    }

    again = optimize_common(optimize_common(per_host).per_host)

    assert again.common == {}


def test_empty_input() -> None:
    optimized = optimize_common({})

    assert optimized.common == {}
    assert optimized.per_host == {}


def test_single_host_settings_are_all_common() -> None:
    optimized = optimize_common({"node_1": {"a": IntValue(1)}})

    assert optimized.common == {"a": IntValue(1)}
    assert optimized.per_host == {"node_1": {}}


def test_input_is_not_modified() -> None:
    per_host = {
        "node_1": {"a": IntValue(1), "b": StringValue("b")},
        "node_2": {"a": IntValue(2), "b": StringValue("b")},
    }

    optimize_common(per_host)

    assert per_host["node_1"] == {"a": IntValue(1), "b": StringValue("b")}
