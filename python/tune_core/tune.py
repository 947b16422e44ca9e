"""Tune every host of an inventory and collect one report per host."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from tune_core.config import TuneConfig
from tune_core.core.apportion import ApportionOptions, apportion, derive_memory_per_worker
from tune_core.core.arithmetic import within_percent
from tune_core.core.errors import InsufficientResources, InvalidInventory, TuneError, UnavailableFacts
from tune_core.core.optimizer import optimize_common
from tune_core.core.requirements import require_minimum_requirements
from tune_core.core.settings import HostResources, SettingsResult, SettingValue, params_to_document
from tune_core.core.topology import (
    COMPILE_MASTER,
    CONSOLE,
    DATABASE,
    PRIMARY_MASTER,
    PRIMARY_MASTER_REPLICA,
    PUPPETDB,
    InfrastructureShape,
    ServiceClassMembership,
    infrastructure_shape,
    resolve_topology,
)
from tune_core.facts import FactsResolver, InventoryFacts
from tune_core.inventory import Inventory, current_settings_for_node

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TuneOptions:
    common: bool = False
    force: bool = False
    memory_per_worker: int | None = None
    use_current_memory_per_worker: bool = False
    jruby9k_enabled: bool = False


@dataclass
class HostReport:
    host: str
    classes: list[str]
    resources: HostResources | None = None
    settings: SettingsResult | None = None
    params: dict[str, SettingValue] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def ok(self) -> bool:
        return not self.errors

    @property
    def role(self) -> str:
        return host_role(self.classes)

    def add_error(self, error: TuneError) -> None:
        logger.error("%s: %s", self.host, error)
        self.errors.append(str(error))

    def add_warning(self, message: str) -> None:
        logger.warning("%s: %s", self.host, message)
        self.warnings.append(message)

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "role": self.role,
            "classes": list(self.classes),
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }
        if self.resources is not None:
            document["resources"] = {"cpu": self.resources.cpu, "ram": self.resources.ram}
        if self.settings is not None:
            document["settings"] = {
                "params": params_to_document(self.params),
                "totals": self.settings.totals.to_document(),
            }
        return document


@dataclass
class TuneReport:
    shape: InfrastructureShape
    membership: ServiceClassMembership
    hosts: list[HostReport] = field(default_factory=list)
    common: dict[str, SettingValue] = field(default_factory=dict)

    def ok(self) -> bool:
        return all(host.ok() for host in self.hosts)

    @property
    def errors(self) -> list[str]:
        return [f"{host.host}: {error}" for host in self.hosts for error in host.errors]

    def to_document(self) -> dict[str, Any]:
        return {
            "infrastructure": {
                "is_monolithic": self.shape.is_monolithic,
                "has_compile_masters": self.shape.has_compile_masters,
                "has_replica": self.shape.has_replica,
                "has_external_database": self.shape.has_external_database,
                "jruby9k_enabled": self.shape.jruby9k_enabled,
            },
            "classes": self.membership.to_document(),
            "hosts": {host.host: host.to_document() for host in self.hosts},
            "common": params_to_document(self.common),
            "errors": self.errors,
        }


def host_role(classes: list[str] | frozenset[str]) -> str:
    if PRIMARY_MASTER in classes:
        return "Primary Master"
    if PRIMARY_MASTER_REPLICA in classes:
        return "Replica Master"
    if COMPILE_MASTER in classes:
        return "Compile Master"
    if PUPPETDB in classes:
        return "PuppetDB Host"
    if CONSOLE in classes:
        return "Console Host"
    if DATABASE in classes:
        return "Database Host"
    return "Host"


class Tuner:
    def __init__(self, config: TuneConfig) -> None:
        self._config = config

    def run(
        self,
        inventory: Inventory,
        facts: FactsResolver | None = None,
        options: TuneOptions = TuneOptions(),
    ) -> TuneReport:
        membership = resolve_topology(inventory.roles)
        shape = infrastructure_shape(inventory.roles, jruby9k_enabled=options.jruby9k_enabled)
        facts = facts or InventoryFacts(inventory)
        logger.info(
            "tuning %s host(s): monolithic=%s compile_masters=%s replica=%s external_database=%s",
            len(membership.all_hosts()),
            shape.is_monolithic,
            shape.has_compile_masters,
            shape.has_replica,
            shape.has_external_database,
        )

        report = TuneReport(shape=shape, membership=membership)
        for host in membership.all_hosts():
            report.hosts.append(self._tune_host(host, inventory, membership, shape, facts, options))

        if options.common:
            tuned = {host.host: host.params for host in report.hosts if host.settings is not None}
            optimized = optimize_common(tuned)
            report.common = optimized.common
            for host in report.hosts:
                if host.host in optimized.per_host:
                    host.params = optimized.per_host[host.host]
        return report

    def _tune_host(
        self,
        host: str,
        inventory: Inventory,
        membership: ServiceClassMembership,
        shape: InfrastructureShape,
        facts: FactsResolver,
        options: TuneOptions,
    ) -> HostReport:
        classes = membership.classes_for(host)
        report = HostReport(host=host, classes=sorted(classes))
        try:
            resources = facts.resolve(host)
            memory_per_worker = self._memory_per_worker(inventory, host, options)
        except (UnavailableFacts, InvalidInventory) as exc:
            report.add_error(exc)
            return report
        report.resources = resources
        logger.info("%s: found %s CPU(s) / %s MB RAM for %s", host, resources.cpu, resources.ram, report.role)

        requirements = self._config.requirements
        try:
            require_minimum_requirements(
                resources,
                forced=options.force,
                minimum_cpu=requirements.minimum_cpu,
                minimum_ram=requirements.minimum_ram_mb,
            )
        except InsufficientResources as exc:
            report.add_warning(str(exc))

        settings = apportion(
            resources,
            classes,
            shape,
            ApportionOptions(
                memory_per_worker=memory_per_worker,
                memory_reserved_for_os=self._config.apportion.memory_reserved_for_os_mb,
            ),
        )
        report.settings = settings
        report.params = dict(settings.params)
        self._check_usage(report, settings)
        return report

    def _memory_per_worker(self, inventory: Inventory, host: str, options: TuneOptions) -> int | None:
        if not options.use_current_memory_per_worker:
            return options.memory_per_worker
        current = current_settings_for_node(inventory, host)
        if current is None:
            return options.memory_per_worker
        return derive_memory_per_worker(current.heap_mb, current.workers)

    def _check_usage(self, report: HostReport, settings: SettingsResult) -> None:
        totals = settings.totals
        if totals.cpu.oversubscribed:
            report.add_warning(f"CPU oversubscribed: {totals.cpu.used} used of {totals.cpu.total}")
        if totals.ram.oversubscribed:
            report.add_warning(f"RAM oversubscribed: {totals.ram.used} MB used of {totals.ram.total} MB")
        elif within_percent(totals.ram.used, totals.ram.total, self._config.report.near_capacity_percent):
            report.add_warning(f"RAM nearly exhausted: {totals.ram.used} MB used of {totals.ram.total} MB")
