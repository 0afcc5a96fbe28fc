"""
sales_services -- imperative shell.

Services load per-user state through the kernel's ``DomainStore``, call
the pure engines, and save results back within the caller's
transaction.
"""

from sales_services.backup import BackupArtifact, BackupService, is_backup_due
from sales_services.sales_ledger import SalesLedgerService
from sales_services.snapshot import SnapshotManager

__all__ = [
    "BackupArtifact",
    "BackupService",
    "SalesLedgerService",
    "SnapshotManager",
    "is_backup_due",
]
