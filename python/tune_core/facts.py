"""Host facts: CPU and RAM for each host being tuned."""

from __future__ import annotations

import socket
from typing import Protocol

import psutil

from tune_core.core.errors import UnavailableFacts
from tune_core.core.settings import HostResources
from tune_core.core.topology import PRIMARY_MASTER_ROLE
from tune_core.inventory import Inventory, resources_for_node


class FactsResolver(Protocol):
    def resolve(self, host: str) -> HostResources: ...


class InventoryFacts:
    """Facts declared in the inventory's nodes section."""

    def __init__(self, inventory: Inventory) -> None:
        self._inventory = inventory

    def resolve(self, host: str) -> HostResources:
        if host not in self._inventory.nodes:
            raise UnavailableFacts(f"{host}: no resources in inventory")
        return resources_for_node(self._inventory, host)


def local_hostname() -> str:
    return socket.getfqdn()


def local_resources() -> HostResources:
    cpu = psutil.cpu_count(logical=True)
    if not cpu:
        raise UnavailableFacts("unable to count processors on the local system")
    ram = psutil.virtual_memory().total // 1024 ** 2
    return HostResources(cpu=int(cpu), ram=int(ram))


def local_inventory() -> Inventory:
    """A single-host inventory treating this system as a monolithic primary master."""
    hostname = local_hostname()
    resources = local_resources()
    return Inventory(
        nodes={hostname: {"resources": {"cpu": resources.cpu, "ram": f"{resources.ram}m"}}},
        roles={PRIMARY_MASTER_ROLE: hostname},
    )
