"""
Defaults Loader (``sales_config.loader``).

Responsibility
--------------
Loads ``defaults.yaml`` and parses it into typed ``sales_config.schema``
dataclass instances.  Runtime code goes through
``sales_config.get_defaults()``; this module is the parsing layer
beneath it.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Rule tables are parsed with ``Decimal`` rates, never float.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from sales_config.schema import BackupDef, ImportFieldDef, ImportTemplateDef, SalesDefaults
from sales_kernel.domain.types import (
    AppPreferences,
    BackupFrequency,
    CommissionRule,
    DashboardWidgetConfig,
    DomainDefaults,
    ReportConfig,
    SystemConfig,
)
from sales_kernel.domain.values import to_decimal


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_rule(data: dict[str, Any]) -> CommissionRule:
    max_percent = data.get("max_percent")
    return CommissionRule(
        id=str(data["id"]),
        min_percent=to_decimal(str(data["min_percent"])),
        max_percent=None if max_percent is None else to_decimal(str(max_percent)),
        commission_rate=to_decimal(str(data["commission_rate"])),
    )


def parse_rule_table(data: list[dict[str, Any]]) -> tuple[CommissionRule, ...]:
    return tuple(parse_rule(r) for r in data)


def parse_report_config(data: dict[str, Any]) -> ReportConfig:
    return ReportConfig(
        days_for_new_client=int(data["days_for_new_client"]),
        days_for_inactive=int(data["days_for_inactive"]),
        days_for_lost=int(data["days_for_lost"]),
    )


def parse_system_config(data: dict[str, Any]) -> SystemConfig:
    return SystemConfig(
        backup_frequency=BackupFrequency(data.get("backup_frequency", "WEEKLY")),
        google_drive_connected=bool(data.get("google_drive_connected", False)),
        include_non_accounting_in_total=bool(
            data.get("include_non_accounting_in_total", False)
        ),
    )


def _parse_widgets(data: dict[str, Any] | None) -> DashboardWidgetConfig:
    data = data or {}
    return DashboardWidgetConfig(
        show_stats=bool(data.get("show_stats", True)),
        show_charts=bool(data.get("show_charts", True)),
        show_recents=bool(data.get("show_recents", True)),
    )


def parse_preferences(data: dict[str, Any]) -> AppPreferences:
    return AppPreferences(
        hide_values=bool(data.get("hide_values", False)),
        sales_config=_parse_widgets(data.get("sales_config")),
        finance_config=_parse_widgets(data.get("finance_config")),
    )


def parse_import_template(data: dict[str, Any]) -> ImportTemplateDef:
    fields = tuple(
        ImportFieldDef(
            key=f["key"],
            header=str(f["header"]),
            label=str(f.get("label", f["header"])),
            required=bool(f.get("required", False)),
            keywords=tuple(str(k).lower() for k in f.get("keywords", ())),
        )
        for f in data["fields"]
    )
    sample_rows = tuple(
        tuple("" if cell is None else str(cell) for cell in row)
        for row in data.get("sample_rows", ())
    )
    return ImportTemplateDef(
        filename=data["filename"],
        delimiter=data.get("delimiter", ";"),
        fields=fields,
        sample_rows=sample_rows,
    )


def parse_backup(data: dict[str, Any]) -> BackupDef:
    return BackupDef(
        version=str(data["version"]),
        filename_prefix=data["filename_prefix"],
        extension=data["extension"],
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_defaults(data: dict[str, Any]) -> SalesDefaults:
    """
    Parse a loaded defaults document.

    Raises:
        KeyError: if a required section is missing.
    """
    rules = data["commission_rules"]
    domain = DomainDefaults(
        basic_rules=parse_rule_table(rules["BASICA"]),
        natal_rules=parse_rule_table(rules["NATAL"]),
        report_config=parse_report_config(data["report_config"]),
        system_config=parse_system_config(data.get("system_config", {})),
        preferences=parse_preferences(data.get("preferences", {})),
    )
    return SalesDefaults(
        version=int(data.get("version", 1)),
        domain=domain,
        import_template=parse_import_template(data["import_template"]),
        backup=parse_backup(data["backup"]),
        snapshot_depth=int(data.get("undo", {}).get("snapshot_depth", 1)),
        checksum=compute_checksum(data),
    )


def load_defaults_file(path: Path) -> SalesDefaults:
    return parse_defaults(load_yaml_file(path))
