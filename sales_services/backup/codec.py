"""
Backup document codec: the aggregate of every persisted domain <-> JSON text.

Pure.  The wire shape is the one earlier releases of the application
wrote, so their backups restore unchanged::

    {"version", "timestamp", "sales": [...],
     "rules": {"basic": [...], "natal": [...]},
     "reportConfig", "systemConfig", "finance", "preferences"}

Decimals are written as strings; on read, JSON numbers are parsed as
``Decimal`` so older backups holding plain numbers lose no precision.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sales_kernel.domain.types import (
    AppPreferences,
    CommissionRule,
    FinanceState,
    ReportConfig,
    Sale,
    SystemConfig,
)
from sales_kernel.domain.values import format_iso_datetime, parse_iso_datetime


@dataclass(frozen=True)
class BackupDocument:
    """
    Versioned union of all persisted domains.

    ``None`` for a section means the document did not carry it; the
    restore path decides the fallback.
    """

    version: str
    timestamp: datetime | None
    sales: tuple[Sale, ...]
    basic_rules: tuple[CommissionRule, ...] | None = None
    natal_rules: tuple[CommissionRule, ...] | None = None
    report_config: ReportConfig | None = None
    system_config: SystemConfig | None = None
    finance: FinanceState | None = None
    preferences: AppPreferences | None = None


def _section(value: Any, name: str) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"Backup section '{name}' must be an object")
    return value


def _rule_list(value: Any, name: str) -> tuple[CommissionRule, ...] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(r, dict) for r in value):
        raise ValueError(f"Backup rule table '{name}' must be a list of objects")
    return tuple(CommissionRule.from_dict(r) for r in value)


def document_to_dict(document: BackupDocument) -> dict[str, Any]:
    rules: dict[str, Any] = {}
    if document.basic_rules is not None:
        rules["basic"] = [r.to_dict() for r in document.basic_rules]
    if document.natal_rules is not None:
        rules["natal"] = [r.to_dict() for r in document.natal_rules]

    data: dict[str, Any] = {
        "version": document.version,
        "timestamp": format_iso_datetime(document.timestamp),
        "sales": [s.to_dict() for s in document.sales],
        "rules": rules,
    }
    if document.report_config is not None:
        data["reportConfig"] = document.report_config.to_dict()
    if document.system_config is not None:
        data["systemConfig"] = document.system_config.to_dict()
    if document.finance is not None:
        data["finance"] = document.finance.to_dict()
    if document.preferences is not None:
        data["preferences"] = document.preferences.to_dict()
    return data


def document_from_dict(data: Any) -> BackupDocument:
    """
    Validate and type a decoded backup.

    Raises:
        ValueError: if the document is not an object or ``sales`` is not a
            list of objects, or a section has the wrong shape.
        KeyError: if a record lacks a required key.
    """
    if not isinstance(data, dict):
        raise ValueError("Backup document must be a JSON object")
    sales = data.get("sales")
    if not isinstance(sales, list) or not all(isinstance(s, dict) for s in sales):
        raise ValueError("Backup 'sales' must be a list of objects")

    rules = _section(data.get("rules"), "rules") or {}
    report = _section(data.get("reportConfig"), "reportConfig")
    system = _section(data.get("systemConfig"), "systemConfig")
    finance = _section(data.get("finance"), "finance")
    preferences = _section(data.get("preferences"), "preferences")

    return BackupDocument(
        version=str(data.get("version") or ""),
        timestamp=parse_iso_datetime(data.get("timestamp")),
        sales=tuple(Sale.from_dict(s) for s in sales),
        basic_rules=_rule_list(rules.get("basic"), "basic"),
        natal_rules=_rule_list(rules.get("natal"), "natal"),
        report_config=None if report is None else ReportConfig.from_dict(report),
        system_config=None if system is None else SystemConfig.from_dict(system),
        finance=None if finance is None else FinanceState.from_dict(finance),
        preferences=None if preferences is None else AppPreferences.from_dict(preferences),
    )


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return format_iso_datetime(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def serialize_document(document: BackupDocument) -> str:
    """Compact JSON text of a backup document."""
    return json.dumps(
        document_to_dict(document),
        ensure_ascii=False,
        separators=(",", ":"),
        default=_json_default,
    )


def parse_document(text: str) -> BackupDocument:
    """
    Inverse of ``serialize_document``.

    Raises:
        ValueError: on invalid JSON (``json.JSONDecodeError``) or shape.
        KeyError: on a record missing a required key.
    """
    return document_from_dict(json.loads(text, parse_float=Decimal))
