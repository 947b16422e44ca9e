from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class RequirementsConfig:
    minimum_cpu: int
    minimum_ram_mb: int


@dataclass(frozen=True)
class ApportionConfig:
    memory_reserved_for_os_mb: int


@dataclass(frozen=True)
class ReportConfig:
    near_capacity_percent: float


@dataclass(frozen=True)
class InventoryConfig:
    schema_path: str


@dataclass(frozen=True)
class TuneConfig:
    requirements: RequirementsConfig
    apportion: ApportionConfig
    report: ReportConfig
    inventory: InventoryConfig


def load_config(path: str = "configs/default.yaml") -> TuneConfig:
    config_path = _resolve_config_path(path)
    raw: dict[str, Any] = yaml.safe_load(config_path.read_text())
    tune = raw["tune"]
    return TuneConfig(
        requirements=RequirementsConfig(**tune["requirements"]),
        apportion=ApportionConfig(**tune["apportion"]),
        report=ReportConfig(**tune["report"]),
        inventory=InventoryConfig(
            schema_path=_resolve_data_path(tune["inventory"]["schema_path"], config_path),
        ),
    )


def _resolve_config_path(path: str) -> Path:
    candidate = Path(path)
    if candidate.is_absolute() or candidate.exists():
        return candidate

    return _repo_root() / candidate


def _resolve_data_path(path: str, config_path: Path) -> str:
    candidate = Path(path)
    if candidate.is_absolute():
        return str(candidate)

    in_config_dir = (config_path.parent / candidate).resolve()
    if in_config_dir.exists():
        return str(in_config_dir)

    return str((_repo_root() / candidate).resolve())


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]
