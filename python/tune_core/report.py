"""Render a tuning report as text, JSON, or Hiera data files."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import yaml

from tune_core.core.canonicalization import canonicalize_json
from tune_core.core.settings import SettingValue, params_to_document
from tune_core.tune import HostReport, TuneReport


def _hiera_yaml(params: Mapping[str, SettingValue]) -> str:
    return yaml.safe_dump(params_to_document(params), explicit_start=True, default_flow_style=False, sort_keys=True)


def _render_host(host: HostReport) -> list[str]:
    lines: list[str] = []
    if host.resources is None:
        lines.append(f"## Unable to tune {host.role} {host.host}")
        lines.extend(f"## Error: {error}" for error in host.errors)
        return lines

    lines.append(
        f"## Found: {host.resources.cpu} CPU(s) / {host.resources.ram} MB RAM for {host.role} {host.host}"
    )
    lines.extend(f"## Warning: {warning}" for warning in host.warnings)
    if host.settings is None:
        return lines

    if host.params:
        lines.append(f"## Specify the following optimized settings in Hiera in nodes/{host.host}.yaml")
        lines.append("")
        lines.append(_hiera_yaml(host.params).rstrip())
    else:
        lines.append("## All optimized settings for this host are common settings")
    totals = host.settings.totals
    lines.append("")
    lines.append(f"## CPU Summary: Total/Used/Free: {totals.cpu.total}/{totals.cpu.used}/{totals.cpu.total - totals.cpu.used}")
    lines.append(f"## RAM Summary: Total/Used/Free: {totals.ram.total}/{totals.ram.used}/{totals.ram.total - totals.ram.used}")
    if totals.mb_per_worker is not None:
        lines.append(f"## JVM Summary: Using {totals.mb_per_worker} MB per Puppet Server JRuby")
    return lines


def render_text(report: TuneReport) -> str:
    lines: list[str] = []
    for host in report.hosts:
        lines.extend(_render_host(host))
        lines.append("")
    if report.common:
        lines.append("## Specify the following optimized settings in Hiera in common.yaml")
        lines.append("")
        lines.append(_hiera_yaml(report.common).rstrip())
        lines.append("")
    if report.errors:
        lines.append(f"## {len(report.errors)} host(s) could not be tuned")
    return "\n".join(lines).rstrip() + "\n"


def render_json(report: TuneReport) -> bytes:
    return canonicalize_json(report.to_document())


def write_hiera(report: TuneReport, directory: str | Path) -> list[Path]:
    """Write nodes/<host>.yaml per tuned host and common.yaml when there are common settings."""
    root = Path(directory)
    nodes_dir = root / "nodes"
    nodes_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for host in report.hosts:
        if host.settings is None or not host.params:
            continue
        path = nodes_dir / f"{host.host}.yaml"
        path.write_text(_hiera_yaml(host.params), encoding="utf-8")
        written.append(path)
    if report.common:
        path = root / "common.yaml"
        path.write_text(_hiera_yaml(report.common), encoding="utf-8")
        written.append(path)
    return written
