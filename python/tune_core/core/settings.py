from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

from tune_core.core.arithmetic import string_to_megabytes
from tune_core.core.errors import InvalidInventory, InvalidUnitFormat


@dataclass(frozen=True)
class IntValue:
    value: int

    def to_document(self) -> int:
        return self.value


@dataclass(frozen=True)
class StringValue:
    value: str

    def to_document(self) -> str:
        return self.value


@dataclass(frozen=True)
class HeapPair:
    min_mb: int
    max_mb: int

    @classmethod
    def fixed(cls, megabytes: int) -> "HeapPair":
        return cls(megabytes, megabytes)

    def to_document(self) -> dict[str, str]:
        return {"Xms": f"{self.min_mb}m", "Xmx": f"{self.max_mb}m"}


SettingValue = Union[IntValue, StringValue, HeapPair]
Params = Mapping[str, SettingValue]


@dataclass(frozen=True)
class HostResources:
    cpu: int
    ram: int

    def __post_init__(self) -> None:
        if isinstance(self.cpu, bool) or not isinstance(self.cpu, int) or self.cpu <= 0:
            raise InvalidInventory(f"cpu must be a positive integer, got {self.cpu!r}")
        if isinstance(self.ram, bool) or not isinstance(self.ram, int) or self.ram <= 0:
            raise InvalidInventory(f"ram must be a positive number of megabytes, got {self.ram!r}")


@dataclass(frozen=True)
class Usage:
    total: int
    used: int = 0

    def add(self, amount: int) -> "Usage":
        return Usage(self.total, self.used + amount)

    @property
    def oversubscribed(self) -> bool:
        return self.used > self.total


@dataclass(frozen=True)
class Totals:
    cpu: Usage
    ram: Usage
    mb_per_worker: int | None = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "CPU": {"total": self.cpu.total, "used": self.cpu.used},
            "RAM": {"total": self.ram.total, "used": self.ram.used},
        }
        if self.mb_per_worker is not None:
            document["MB_PER_JRUBY"] = self.mb_per_worker
        return document


@dataclass(frozen=True)
class SettingsResult:
    params: dict[str, SettingValue]
    totals: Totals

    def to_document(self) -> dict[str, Any]:
        return {
            "params": params_to_document(self.params),
            "totals": self.totals.to_document(),
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "SettingsResult":
        raw_totals = document.get("totals", {})
        try:
            totals = Totals(
                cpu=Usage(**raw_totals["CPU"]),
                ram=Usage(**raw_totals["RAM"]),
                mb_per_worker=raw_totals.get("MB_PER_JRUBY"),
            )
        except (KeyError, TypeError) as exc:
            raise InvalidInventory(f"malformed totals: {exc}") from exc
        return cls(params=params_from_document(document.get("params", {})), totals=totals)


def params_to_document(params: Params) -> dict[str, Any]:
    return {name: value.to_document() for name, value in params.items()}


def value_from_document(raw: Any) -> SettingValue:
    if isinstance(raw, bool):
        raise InvalidInventory(f"unsupported setting value: {raw!r}")
    if isinstance(raw, int):
        return IntValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, Mapping) and set(raw) == {"Xms", "Xmx"}:
        try:
            return HeapPair(string_to_megabytes(raw["Xms"]), string_to_megabytes(raw["Xmx"]))
        except InvalidUnitFormat as exc:
            raise InvalidInventory(f"malformed heap pair: {raw!r}") from exc
    raise InvalidInventory(f"unsupported setting value: {raw!r}")


def params_from_document(raw: Mapping[str, Any]) -> dict[str, SettingValue]:
    return {name: value_from_document(value) for name, value in raw.items()}

