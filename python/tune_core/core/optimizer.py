from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from tune_core.core.settings import Params, SettingValue


@dataclass(frozen=True)
class CommonSettings:
    common: dict[str, SettingValue]
    per_host: dict[str, dict[str, SettingValue]]


def common_params(per_host: Mapping[str, Params]) -> dict[str, SettingValue]:
    """Settings present with an equal value on every host."""
    hosts = sorted(per_host)
    if not hosts:
        return {}
    first = per_host[hosts[0]]
    common: dict[str, SettingValue] = {}
    for name, value in first.items():
        if all(name in per_host[host] and per_host[host][name] == value for host in hosts[1:]):
            common[name] = value
    return common


def optimize_common(per_host: Mapping[str, Params]) -> CommonSettings:
    common = common_params(per_host)
    reduced = {
        host: {name: value for name, value in params.items() if name not in common}
        for host, params in per_host.items()
    }
    return CommonSettings(common=common, per_host=reduced)
