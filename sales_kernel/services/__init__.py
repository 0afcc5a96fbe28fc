"""Kernel services: session-bound base and the per-user domain store."""

from sales_kernel.services.base import BaseService
from sales_kernel.services.domain_store import DomainKey, DomainStore

__all__ = ["BaseService", "DomainKey", "DomainStore"]
