"""
SalesDefaults schema.

Typed form of ``defaults.yaml``.  The loader parses YAML into these
frozen dataclasses; nothing else in the application reads the YAML.
"""

from __future__ import annotations

from dataclasses import dataclass

from sales_kernel.domain.types import DomainDefaults

# ---------------------------------------------------------------------------
# Import template
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportFieldDef:
    """One logical import field and how it is presented and auto-mapped."""

    key: str
    header: str
    label: str
    required: bool = False
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportTemplateDef:
    filename: str
    delimiter: str
    fields: tuple[ImportFieldDef, ...]
    sample_rows: tuple[tuple[str, ...], ...] = ()

    @property
    def headers(self) -> tuple[str, ...]:
        return tuple(f.header for f in self.fields)

    @property
    def required_keys(self) -> tuple[str, ...]:
        return tuple(f.key for f in self.fields if f.required)


# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BackupDef:
    version: str
    filename_prefix: str
    extension: str


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SalesDefaults:
    """Everything loaded from one defaults file."""

    version: int
    domain: DomainDefaults
    import_template: ImportTemplateDef
    backup: BackupDef
    snapshot_depth: int = 1
    checksum: str = ""
