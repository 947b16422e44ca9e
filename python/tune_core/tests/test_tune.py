from __future__ import annotations

from dataclasses import dataclass, replace

import pytest

from tune_core.config import ReportConfig, load_config
from tune_core.core.apportion import MASTER_JAVA_ARGS, MASTER_WORKERS
from tune_core.core.errors import UnavailableFacts, UnsupportedTopology
from tune_core.core.settings import HeapPair, HostResources, IntValue
from tune_core.inventory import Inventory
from tune_core.tune import Tuner, TuneOptions, host_role

CONFIG = load_config()


@dataclass
class StubFacts:
    resources: dict[str, HostResources]

    def resolve(self, host: str) -> HostResources:
        if host not in self.resources:
            raise UnavailableFacts(f"{host}: unreachable")
        return self.resources[host]


def _node(cpu: int, ram: str) -> dict:
    return {"resources": {"cpu": cpu, "ram": ram}}


def test_monolithic_master_from_inventory() -> None:
    inventory = Inventory(
        nodes={"master": _node(4, "8g")},
        roles={"puppet_master_host": "master"},
    )

    report = Tuner(CONFIG).run(inventory)

    assert report.ok()
    assert report.shape.is_monolithic
    [master] = report.hosts
    assert master.role == "Primary Master"
    assert master.resources == HostResources(cpu=4, ram=8192)
    assert master.warnings == []
    assert master.params[MASTER_WORKERS] == IntValue(2)
    assert master.params[MASTER_JAVA_ARGS] == HeapPair(2048, 2048)
    assert master.settings.totals.ram.used == 6451


def test_one_failing_host_does_not_stop_the_others() -> None:
    inventory = Inventory(
        nodes={"master": _node(4, "8g")},
        roles={"puppet_master_host": "master", "compile_master": ["compile"]},
    )

    report = Tuner(CONFIG).run(inventory)

    assert not report.ok()
    assert [host.host for host in report.hosts] == ["compile", "master"]
    compile_host, master = report.hosts
    assert compile_host.settings is None
    assert compile_host.errors == ["FACTS_UNAVAILABLE: compile: no resources in inventory"]
    assert master.ok()
    assert report.errors == ["compile: FACTS_UNAVAILABLE: compile: no resources in inventory"]


def test_hosts_below_minimum_requirements_are_tuned_with_warnings() -> None:
    inventory = Inventory(roles={"puppet_master_host": "master"})
    facts = StubFacts({"master": HostResources(cpu=2, ram=4096)})

    report = Tuner(CONFIG).run(inventory, facts=facts)

    [master] = report.hosts
    assert master.ok()
    assert master.settings is not None
    assert master.warnings[0].startswith("RESOURCES_INSUFFICIENT: below minimum system requirements")
    assert "CPU oversubscribed: 3 used of 2" in master.warnings
    assert "RAM oversubscribed: 6144 MB used of 4096 MB" in master.warnings


def test_forced_run_skips_requirement_warning() -> None:
    inventory = Inventory(roles={"puppet_master_host": "master"})
    facts = StubFacts({"master": HostResources(cpu=2, ram=4096)})

    report = Tuner(CONFIG).run(inventory, facts=facts, options=TuneOptions(force=True))

    [master] = report.hosts
    assert not any("RESOURCES_INSUFFICIENT" in warning for warning in master.warnings)


def test_common_settings_move_out_of_host_params() -> None:
    inventory = Inventory(roles={"puppet_master_host": "master", "compile_master": ["compile"]})
    facts = StubFacts(
        {
            "master": HostResources(cpu=8, ram=16384),
            "compile": HostResources(cpu=6, ram=16384),
        }
    )

    report = Tuner(CONFIG).run(inventory, facts=facts, options=TuneOptions(common=True))

    assert report.common == {
        MASTER_WORKERS: IntValue(5),
        MASTER_JAVA_ARGS: HeapPair(3840, 3840),
    }
    compile_host, master = report.hosts
    assert compile_host.role == "Compile Master"
    assert compile_host.params == {}
    assert MASTER_WORKERS not in master.params
    assert "puppet_enterprise::puppetdb::command_processing_threads" in master.params
    # Totals still describe the whole host.
    assert compile_host.settings.params[MASTER_WORKERS] == IntValue(5)


def test_memory_per_worker_from_current_settings() -> None:
    inventory = Inventory(
        nodes={"master": {"resources": {"cpu": 8, "ram": "16g"}, "current": {"workers": 4, "heap": "2g"}}},
        roles={"puppet_master_host": "master"},
    )

    report = Tuner(CONFIG).run(inventory, options=TuneOptions(use_current_memory_per_worker=True))

    [master] = report.hosts
    assert master.settings.totals.mb_per_worker == 512
    assert master.params[MASTER_JAVA_ARGS] == HeapPair(3072, 3072)


def test_near_capacity_warning_uses_configured_percent() -> None:
    config = replace(CONFIG, report=ReportConfig(near_capacity_percent=60))
    inventory = Inventory(roles={"puppet_master_host": "master", "console_host": "console"})
    facts = StubFacts(
        {
            "master": HostResources(cpu=4, ram=8192),
            "console": HostResources(cpu=4, ram=8192),
        }
    )

    report = Tuner(config).run(inventory, facts=facts)

    console = next(host for host in report.hosts if host.host == "console")
    assert console.role == "Console Host"
    assert console.warnings == ["RAM nearly exhausted: 4096 MB used of 8192 MB"]


def test_unknown_infrastructure_is_rejected() -> None:
    with pytest.raises(UnsupportedTopology):
        Tuner(CONFIG).run(Inventory(roles={"database_host": "database"}))


def test_host_role_prefers_primary_master() -> None:
    assert host_role(["master", "primary_master", "puppetdb"]) == "Primary Master"
    assert host_role(["master", "primary_master_replica"]) == "Replica Master"
    assert host_role(["database", "puppetdb"]) == "PuppetDB Host"
    assert host_role(["database"]) == "Database Host"
    assert host_role([]) == "Host"
