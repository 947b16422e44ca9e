"""Apportion one host's CPU and RAM among the services it runs.

Allocation is a fixed, ordered list of steps. Each step sees the host and the
usage accumulated by the steps before it, and returns its own settings plus
the updated usage. Services absent from the host contribute no step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from tune_core.core.arithmetic import (
    clamp,
    clamp_percent_of_resource,
    fit_to_memory,
    nearest_power_of_two,
)
from tune_core.core.errors import InvalidInventory
from tune_core.core.settings import (
    HeapPair,
    HostResources,
    IntValue,
    SettingsResult,
    SettingValue,
    StringValue,
    Totals,
    Usage,
)
from tune_core.core.topology import (
    BROKER,
    COMPILE_MASTER,
    CONSOLE,
    DATABASE,
    MASTER,
    ORCHESTRATOR,
    PUPPETDB,
    InfrastructureShape,
)

logger = logging.getLogger(__name__)

MASTER_WORKERS = "puppet_enterprise::master::puppetserver::jruby_max_active_instances"
MASTER_JAVA_ARGS = "puppet_enterprise::profile::master::java_args"
MASTER_CODE_CACHE = "puppet_enterprise::master::puppetserver::reserved_code_cache"
DATABASE_SHARED_BUFFERS = "puppet_enterprise::profile::database::shared_buffers"
PUPPETDB_THREADS = "puppet_enterprise::puppetdb::command_processing_threads"
PUPPETDB_JAVA_ARGS = "puppet_enterprise::profile::puppetdb::java_args"
CONSOLE_JAVA_ARGS = "puppet_enterprise::profile::console::java_args"
BROKER_HEAP = "puppet_enterprise::profile::amq::broker::heap_mb"
ORCHESTRATOR_JAVA_ARGS = "puppet_enterprise::profile::orchestrator::java_args"

# Share of processors set aside for puppetdb when it shares a host with the master.
PUPPETDB_CPU_RESERVE_PERCENT = 25
PROCESSORS_RESERVED_FOR_SYSTEM = 1
MINIMUM_MASTER_HEAP = 1024

DATABASE_RAM_PERCENT = 25
DATABASE_RAM_MINIMUM = 2048
DATABASE_RAM_MAXIMUM = 16384

PUPPETDB_HEAP_MINIMUM = 512
PUPPETDB_HEAP_MAXIMUM = 8192


@dataclass(frozen=True)
class ApportionOptions:
    memory_per_worker: int | None = None
    memory_reserved_for_os: int = 1024

    def __post_init__(self) -> None:
        value = self.memory_per_worker
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InvalidInventory(f"memory_per_worker must be a positive number of megabytes, got {value!r}")


@dataclass(frozen=True)
class HostContext:
    resources: HostResources
    classes: frozenset[str]
    shape: InfrastructureShape
    options: ApportionOptions

    @property
    def dedicated(self) -> bool:
        return MASTER not in self.classes

    @property
    def serves_compile_masters(self) -> bool:
        """A monolithic primary master whose agents compile elsewhere."""
        return (
            self.shape.is_monolithic
            and self.shape.has_compile_masters
            and COMPILE_MASTER not in self.classes
        )

    @property
    def mb_per_worker(self) -> int:
        if self.options.memory_per_worker:
            return self.options.memory_per_worker
        return fit_to_memory(self.resources.ram, 512, 768, 1024)


StepResult = tuple[dict[str, SettingValue], Totals]
Step = Callable[[HostContext, Totals], StepResult]


def _with_usage(totals: Totals, cpu: int = 0, ram: int = 0, mb_per_worker: int | None = None) -> Totals:
    return Totals(
        cpu=totals.cpu.add(cpu),
        ram=totals.ram.add(ram),
        mb_per_worker=mb_per_worker if mb_per_worker is not None else totals.mb_per_worker,
    )


def _allocate_master(host: HostContext, totals: Totals) -> StepResult:
    cpu = host.resources.cpu
    ram = host.resources.ram
    mb_per_worker = host.mb_per_worker

    reserved_cpu = cpu * PUPPETDB_CPU_RESERVE_PERCENT // 100 if PUPPETDB in host.classes else 0
    workers = max(1, cpu - PROCESSORS_RESERVED_FOR_SYSTEM - reserved_cpu)

    if host.shape.is_monolithic and not host.shape.has_compile_masters:
        minimum_heap = fit_to_memory(ram, 2048, 3072, 4096)
    else:
        minimum_heap = MINIMUM_MASTER_HEAP
    maximum_heap = max(mb_per_worker, ram - host.options.memory_reserved_for_os)
    heap = max(workers * mb_per_worker, minimum_heap)
    if heap > maximum_heap:
        heap = maximum_heap
        workers = max(1, min(workers, heap // mb_per_worker))
        logger.debug("master heap limited to %sMB; workers reduced to %s", heap, workers)

    params: dict[str, SettingValue] = {
        MASTER_WORKERS: IntValue(workers),
        MASTER_JAVA_ARGS: HeapPair.fixed(heap),
    }
    ram_used = heap
    if host.shape.jruby9k_enabled:
        code_cache = fit_to_memory(ram, 512, 1024, 2048)
        params[MASTER_CODE_CACHE] = StringValue(f"{code_cache}m")
        ram_used += code_cache
    return params, _with_usage(totals, cpu=workers, ram=ram_used, mb_per_worker=mb_per_worker)


def _allocate_database(host: HostContext, totals: Totals) -> StepResult:
    shared_buffers = clamp_percent_of_resource(
        host.resources.ram, DATABASE_RAM_PERCENT, DATABASE_RAM_MINIMUM, DATABASE_RAM_MAXIMUM
    )
    params: dict[str, SettingValue] = {DATABASE_SHARED_BUFFERS: StringValue(f"{shared_buffers}MB")}
    return params, _with_usage(totals, ram=shared_buffers)


def _allocate_puppetdb(host: HostContext, totals: Totals) -> StepResult:
    cpu = host.resources.cpu
    if host.dedicated:
        threads = clamp(cpu * 75 // 100, 1, cpu)
        heap_percent = 25 if DATABASE in host.classes else 50
    elif host.serves_compile_masters:
        threads = clamp(cpu * 75 // 100, min(2, cpu), cpu)
        heap_percent = 20
    else:
        threads = clamp(cpu * 25 // 100, min(2, cpu), cpu)
        heap_percent = 10
    heap = clamp_percent_of_resource(host.resources.ram, heap_percent, PUPPETDB_HEAP_MINIMUM, PUPPETDB_HEAP_MAXIMUM)
    params: dict[str, SettingValue] = {
        PUPPETDB_THREADS: IntValue(threads),
        PUPPETDB_JAVA_ARGS: HeapPair.fixed(heap),
    }
    return params, _with_usage(totals, cpu=threads, ram=heap)


def _allocate_console(host: HostContext, totals: Totals) -> StepResult:
    ram = host.resources.ram
    if host.dedicated:
        heap = clamp_percent_of_resource(ram, 50, 512, 8192)
    else:
        heap = fit_to_memory(ram, 512, 768, 1024)
    params: dict[str, SettingValue] = {CONSOLE_JAVA_ARGS: HeapPair.fixed(heap)}
    return params, _with_usage(totals, ram=heap)


def _allocate_broker(host: HostContext, totals: Totals) -> StepResult:
    heap = fit_to_memory(host.resources.ram, 512, 1024, 2048)
    params: dict[str, SettingValue] = {BROKER_HEAP: IntValue(heap)}
    return params, _with_usage(totals, ram=heap)


def _allocate_orchestrator(host: HostContext, totals: Totals) -> StepResult:
    heap = fit_to_memory(host.resources.ram, 512, 768, 1024)
    params: dict[str, SettingValue] = {ORCHESTRATOR_JAVA_ARGS: HeapPair.fixed(heap)}
    return params, _with_usage(totals, ram=heap)


def allocation_steps(host: HostContext) -> list[Step]:
    steps: list[Step] = []
    if not host.dedicated:
        steps.append(_allocate_master)
    for service, step in (
        (DATABASE, _allocate_database),
        (PUPPETDB, _allocate_puppetdb),
        (CONSOLE, _allocate_console),
        (BROKER, _allocate_broker),
        (ORCHESTRATOR, _allocate_orchestrator),
    ):
        if service in host.classes:
            steps.append(step)
    return steps


def apportion(
    resources: HostResources,
    classes: frozenset[str] | set[str],
    shape: InfrastructureShape = InfrastructureShape(),
    options: ApportionOptions = ApportionOptions(),
) -> SettingsResult:
    host = HostContext(resources=resources, classes=frozenset(classes), shape=shape, options=options)
    totals = Totals(cpu=Usage(resources.cpu), ram=Usage(resources.ram))
    params: dict[str, SettingValue] = {}
    for step in allocation_steps(host):
        step_params, totals = step(host, totals)
        logger.debug("%s: %s", step.__name__.lstrip("_"), sorted(step_params))
        params.update(step_params)
    return SettingsResult(params=params, totals=totals)


def derive_memory_per_worker(current_heap_mb: int, current_workers: int) -> int:
    """Per-worker memory implied by current settings, rounded to a power of two."""
    if current_workers <= 0:
        raise ValueError("current_workers must be > 0")
    return nearest_power_of_two(current_heap_mb / float(current_workers))
