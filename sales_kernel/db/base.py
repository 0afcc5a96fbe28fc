"""
Module: sales_kernel.db.base
Responsibility: Declarative base shared by the ORM models of the sales
    kernel, and the column conventions every model inherits.
Architecture position: Kernel > DB.  Model modules import from here; this
    module imports nothing from the rest of the kernel.

Invariants enforced:
    - Row ids are uuid4 text, so the same rows can move between SQLite
      files and server databases unchanged.
    - ``datetime`` columns are timezone-aware.
    - ``dict[str, Any]`` annotations become a JSON column.
"""

from datetime import datetime
from typing import Any, ClassVar
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

ID_LENGTH = 36


def new_row_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Declarative base: uuid text primary key plus annotation defaults."""

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        dict[str, Any]: JSON,
    }

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        primary_key=True,
        default=new_row_id,
    )
