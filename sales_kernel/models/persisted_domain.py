"""
PersistedDomain -- one JSON document per (user, domain key).

Every domain the application keeps (sales, the two rule tables, report and
system config, preferences and each finance collection) is a single row
keyed by the signed-in user and a stable domain key such as
``app_sales_v1``.  The payload is the domain's wire dict, exactly as it
appears in a backup document.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sales_kernel.db.base import Base


class PersistedDomain(Base):
    __tablename__ = "persisted_domains"
    __table_args__ = (
        UniqueConstraint("user_id", "domain_key", name="uq_persisted_domain_user_key"),
    )

    user_id: Mapped[str] = mapped_column(String(128), index=True)
    domain_key: Mapped[str] = mapped_column(String(64))
    # {"value": <list | dict | null>} so list-shaped domains fit a JSON object column
    payload: Mapped[dict[str, Any]]
    updated_at: Mapped[datetime]

    def __repr__(self) -> str:
        return f"<PersistedDomain {self.user_id}/{self.domain_key}>"
