"""
sales_config -- single public entrypoint for shipped defaults.

Responsibility:
    Provides the commission rule tables, report/system configuration,
    preferences, import template and backup naming that apply when a
    user has not saved their own.  Runtime code calls ``get_defaults()``;
    tests and tools may call ``load_defaults(path)`` for an alternative
    file.

Architecture position:
    Configuration.  Sits above ``sales_kernel`` and below the engines'
    callers in ``sales_services``.  The kernel MUST NEVER import from
    ``sales_config``; the domain store receives ``DomainDefaults`` by
    injection.

Audit relevance:
    Every load emits a ``SALES_CONFIG_TRACE`` log entry with the source
    path and checksum.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from sales_config.loader import load_defaults_file
from sales_config.schema import BackupDef, ImportFieldDef, ImportTemplateDef, SalesDefaults

_logger = logging.getLogger("sales_kernel.config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_defaults(path: Path | str | None = None) -> SalesDefaults:
    """
    Load and parse a defaults file (uncached).

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        KeyError: if a required section is missing.
    """
    source = Path(path) if path is not None else DEFAULTS_PATH
    defaults = load_defaults_file(source)

    _logger.info(
        "SALES_CONFIG_TRACE",
        extra={
            "trace_type": "SALES_CONFIG_TRACE",
            "source": str(source),
            "config_version": defaults.version,
            "checksum": defaults.checksum,
            "basic_rule_count": len(defaults.domain.basic_rules),
            "natal_rule_count": len(defaults.domain.natal_rules),
        },
    )
    return defaults


@lru_cache(maxsize=1)
def get_defaults() -> SalesDefaults:
    """The shipped defaults, loaded once per process."""
    return load_defaults()


__all__ = [
    "BackupDef",
    "DEFAULTS_PATH",
    "ImportFieldDef",
    "ImportTemplateDef",
    "SalesDefaults",
    "get_defaults",
    "load_defaults",
]
