from __future__ import annotations

import json

import yaml

from tune_core.config import load_config
from tune_core.core.settings import HostResources
from tune_core.inventory import Inventory
from tune_core.report import render_json, render_text, write_hiera
from tune_core.tune import TuneOptions, TuneReport, Tuner

CONFIG = load_config()


class StubFacts:
    def __init__(self, resources: dict[str, HostResources]) -> None:
        self._resources = resources

    def resolve(self, host: str) -> HostResources:
        return self._resources[host]


def _split_report(common: bool = False) -> TuneReport:
    inventory = Inventory(
        roles={
            "puppet_master_host": "master",
            "console_host": "console",
            "puppetdb_host": "puppetdb",
        }
    )
    facts = StubFacts(
        {
            "master": HostResources(cpu=4, ram=8192),
            "console": HostResources(cpu=4, ram=8192),
            "puppetdb": HostResources(cpu=4, ram=8192),
        }
    )
    return Tuner(CONFIG).run(inventory, facts=facts, options=TuneOptions(common=common))


def test_render_text_summarizes_each_host() -> None:
    text = render_text(_split_report())

    assert "## Found: 4 CPU(s) / 8192 MB RAM for Console Host console" in text
    assert "## Specify the following optimized settings in Hiera in nodes/master.yaml" in text
    assert "puppet_enterprise::master::puppetserver::jruby_max_active_instances: 3" in text
    assert "## CPU Summary: Total/Used/Free: 4/3/1" in text
    assert "## RAM Summary: Total/Used/Free: 8192/4096/4096" in text
    assert "## JVM Summary: Using 512 MB per Puppet Server JRuby" in text
    assert "common.yaml" not in text


def test_render_text_reports_untunable_hosts() -> None:
    inventory = Inventory(roles={"puppet_master_host": "master"})

    report = Tuner(CONFIG).run(inventory)
    text = render_text(report)

    assert "## Unable to tune Primary Master master" in text
    assert "## Error: FACTS_UNAVAILABLE: master: no resources in inventory" in text
    assert text.endswith("## 1 host(s) could not be tuned\n")


def test_render_json_is_canonical() -> None:
    report = _split_report()

    encoded = render_json(report)
    document = json.loads(encoded)

    assert encoded == render_json(_split_report())
    assert encoded.startswith(b'{"classes":{"amq::broker":["master"],')
    assert document["infrastructure"]["is_monolithic"] is False
    assert document["classes"]["database"] == ["puppetdb"]
    assert document["hosts"]["console"]["settings"]["params"] == {
        "puppet_enterprise::profile::console::java_args": {"Xms": "4096m", "Xmx": "4096m"}
    }
    assert document["errors"] == []


def test_write_hiera_writes_node_files(tmp_path) -> None:
    written = write_hiera(_split_report(), tmp_path)

    assert sorted(path.name for path in written) == ["console.yaml", "master.yaml", "puppetdb.yaml"]
    puppetdb = yaml.safe_load((tmp_path / "nodes" / "puppetdb.yaml").read_text())
    assert puppetdb == {
        "puppet_enterprise::puppetdb::command_processing_threads": 3,
        "puppet_enterprise::profile::puppetdb::java_args": {"Xms": "2048m", "Xmx": "2048m"},
        "puppet_enterprise::profile::database::shared_buffers": "2048MB",
    }
    assert (tmp_path / "nodes" / "puppetdb.yaml").read_text().startswith("---\n")


def test_write_hiera_writes_common_file(tmp_path) -> None:
    inventory = Inventory(roles={"puppet_master_host": "master", "compile_master": ["compile1", "compile2"]})
    facts = StubFacts(
        {
            "master": HostResources(cpu=8, ram=16384),
            "compile1": HostResources(cpu=6, ram=16384),
            "compile2": HostResources(cpu=6, ram=16384),
        }
    )
    report = Tuner(CONFIG).run(inventory, facts=facts, options=TuneOptions(common=True))

    written = write_hiera(report, tmp_path)

    assert [path.name for path in written] == ["master.yaml", "common.yaml"]
    common = yaml.safe_load((tmp_path / "common.yaml").read_text())
    assert common == {
        "puppet_enterprise::master::puppetserver::jruby_max_active_instances": 5,
        "puppet_enterprise::profile::master::java_args": {"Xms": "3840m", "Xmx": "3840m"},
    }
    assert "## All optimized settings for this host are common settings" in render_text(report)
