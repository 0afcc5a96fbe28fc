"""
Import template: the delimited file users fill in before importing.

Header order follows the configured import fields so that
``guess_mapping`` maps a filled-in template without manual help.
"""

from __future__ import annotations

from pathlib import Path

from sales_config import ImportTemplateDef, get_defaults
from sales_kernel.logging_config import get_logger

logger = get_logger("ingestion.template")


def build_import_template(template: ImportTemplateDef | None = None) -> str:
    """Header line plus the sample rows, joined with the template delimiter."""
    template = template or get_defaults().import_template
    lines = [template.delimiter.join(template.headers)]
    lines.extend(template.delimiter.join(row) for row in template.sample_rows)
    return "\n".join(lines)


def write_import_template(
    path: Path | str | None = None,
    template: ImportTemplateDef | None = None,
) -> Path:
    """
    Write the template as UTF-8 and return its path.

    ``path`` may be a directory (the configured file name is used inside
    it) or a full file path; default is the file name in the current
    directory.
    """
    template = template or get_defaults().import_template
    target = Path(path) if path is not None else Path(template.filename)
    if target.is_dir():
        target = target / template.filename
    target.write_text(build_import_template(template), encoding="utf-8")
    logger.info("import_template_written", extra={"path": str(target)})
    return target
