from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TuneError(Exception):
    message: str
    code: str = "TUNE_ERROR"

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass(frozen=True)
class InvalidInventory(TuneError, ValueError):
    code: str = "INVENTORY_INVALID"


@dataclass(frozen=True)
class UnsupportedTopology(TuneError):
    code: str = "TOPOLOGY_UNSUPPORTED"


@dataclass(frozen=True)
class InsufficientResources(TuneError):
    code: str = "RESOURCES_INSUFFICIENT"


@dataclass(frozen=True)
class InvalidUnitFormat(TuneError, ValueError):
    code: str = "UNIT_FORMAT_INVALID"


@dataclass(frozen=True)
class UnavailableFacts(TuneError):
    code: str = "FACTS_UNAVAILABLE"
