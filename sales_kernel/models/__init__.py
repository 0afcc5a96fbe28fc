"""ORM models for the sales kernel."""

from sales_kernel.models.persisted_domain import PersistedDomain

__all__ = ["PersistedDomain"]
