from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from jsonschema import Draft202012Validator

from tune_core.core.arithmetic import string_to_megabytes
from tune_core.core.errors import InvalidInventory, InvalidUnitFormat
from tune_core.core.settings import HostResources
from tune_core.core.topology import validate_roles


@dataclass(frozen=True)
class CurrentSettings:
    workers: int
    heap_mb: int


@dataclass(frozen=True)
class Inventory:
    nodes: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    roles: Mapping[str, Any] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        return {
            "nodes": {host: dict(node) for host, node in self.nodes.items()},
            "roles": dict(self.roles),
        }


class InventoryValidator:
    def __init__(self, schema_path: str) -> None:
        schema = json.loads(Path(schema_path).read_text())
        self._validator = Draft202012Validator(schema)

    def validate(self, document: Any) -> Inventory:
        if not isinstance(document, dict):
            raise InvalidInventory("inventory must be a mapping with nodes and roles")
        errors = sorted(self._validator.iter_errors(document), key=lambda e: [str(p) for p in e.path])
        if errors:
            location = "/".join(str(p) for p in errors[0].path) or "<root>"
            raise InvalidInventory(f"schema validation failed at {location}: {errors[0].message}")
        roles = document.get("roles") or {}
        validate_roles(roles)
        return Inventory(nodes=document.get("nodes") or {}, roles=roles)


def load_inventory(path: str | Path, schema_path: str) -> Inventory:
    inventory_path = Path(path)
    try:
        document = yaml.safe_load(inventory_path.read_text())
    except yaml.YAMLError as exc:
        raise InvalidInventory(f"{inventory_path}: not valid YAML: {exc}") from exc
    return InventoryValidator(schema_path).validate(document)


def resources_for_node(inventory: Inventory, host: str) -> HostResources:
    node = inventory.nodes[host]
    raw = node.get("resources", {})
    try:
        cpu = int(raw["cpu"])
        ram = string_to_megabytes(raw["ram"])
    except (KeyError, TypeError, ValueError, InvalidUnitFormat) as exc:
        raise InvalidInventory(f"{host}: unreadable resources {raw!r}") from exc
    return HostResources(cpu=cpu, ram=ram)


def current_settings_for_node(inventory: Inventory, host: str) -> CurrentSettings | None:
    current = inventory.nodes.get(host, {}).get("current")
    if not current:
        return None
    try:
        return CurrentSettings(workers=int(current["workers"]), heap_mb=string_to_megabytes(current["heap"]))
    except (KeyError, TypeError, ValueError, InvalidUnitFormat) as exc:
        raise InvalidInventory(f"{host}: unreadable current settings {current!r}") from exc
