"""
BackupService -- encrypted export and restore of a user's full state.

Responsibility:
    Gather every persisted domain of one scope into a ``BackupDocument``,
    serialize and encrypt it under a passphrase, and restore such an
    artifact by replacing every domain.

Architecture position:
    Services -- imperative shell over ``DomainStore``, the pure codec
    (``codec.py``) and a ``BytesCipher`` (``cipher.py``).

Invariants enforced:
    - Export records ``last_backup_date`` in the system config before
      gathering, so the artifact carries the new date.
    - Restore decrypts, parses and types the whole document before the
      first write; any failure raises one ``RestoreFailedError`` and
      nothing is written.
    - Missing rule tables restore as the default tables.  Missing report
      config, system config, preferences or finance sections keep the
      values already stored.

Failure modes:
    - BackupExportError if the document cannot be serialized/encrypted.
    - RestoreFailedError for a wrong passphrase, corrupted artifact or
      malformed content (cause chained, never surfaced in the message).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy.orm import Session

from sales_config import BackupDef, get_defaults
from sales_kernel.domain.clock import Clock
from sales_kernel.domain.scope import UserScope
from sales_kernel.domain.types import (
    BackupFrequency,
    DomainDefaults,
    ProductType,
    SystemConfig,
)
from sales_kernel.exceptions import BackupExportError, RestoreFailedError
from sales_kernel.logging_config import LogContext, get_logger
from sales_kernel.services.base import BaseService
from sales_kernel.services.domain_store import DomainStore
from sales_services.backup.cipher import BytesCipher, OpenSSLAesCipher
from sales_services.backup.codec import BackupDocument, parse_document, serialize_document

logger = get_logger("services.backup")

# Everything a corrupt or foreign document can raise while being decoded and
# typed; UnicodeDecodeError and JSONDecodeError are ValueErrors, OverflowError
# and decimal.InvalidOperation are ArithmeticErrors.
_MALFORMED_BACKUP = (ValueError, KeyError, TypeError, AttributeError, ArithmeticError)

_DUE_AFTER_DAYS = {
    BackupFrequency.DAILY: 1,
    BackupFrequency.WEEKLY: 7,
    BackupFrequency.MONTHLY: 30,
}


@dataclass(frozen=True)
class BackupArtifact:
    filename: str
    content: str


def backup_filename(scope: UserScope, now: datetime, naming: BackupDef) -> str:
    return f"{naming.filename_prefix}_{scope.user_id}_{now:%Y-%m-%d}{naming.extension}"


def is_backup_due(system_config: SystemConfig, now: datetime) -> bool:
    """
    Whether the configured backup reminder should fire.

    NEVER is never due; a user who never backed up is always due;
    otherwise DAILY/WEEKLY/MONTHLY are due after 1/7/30 days.
    """
    if system_config.backup_frequency == BackupFrequency.NEVER:
        return False
    if system_config.last_backup_date is None:
        return True
    elapsed_days = (now - system_config.last_backup_date).total_seconds() / 86400
    return elapsed_days >= _DUE_AFTER_DAYS[system_config.backup_frequency]


class BackupService(BaseService):
    """
    Contract:
        Operates on the scope given at construction.  Flush only; wrap
        calls in ``session_scope()`` so a restore commits as one unit.
    """

    def __init__(
        self,
        session: Session,
        scope: UserScope | None,
        clock: Clock | None = None,
        cipher: BytesCipher | None = None,
        defaults: DomainDefaults | None = None,
        naming: BackupDef | None = None,
    ):
        super().__init__(session, clock)
        self._store = DomainStore(
            session,
            scope,
            defaults or get_defaults().domain,
            clock=self._clock,
        )
        self._cipher = cipher or OpenSSLAesCipher()
        self._naming = naming or get_defaults().backup

    @property
    def scope(self) -> UserScope:
        return self._store.scope

    def is_backup_due(self) -> bool:
        return is_backup_due(self._store.get_system_config(), self._clock.now())

    def build_document(self, now: datetime) -> BackupDocument:
        store = self._store
        return BackupDocument(
            version=self._naming.version,
            timestamp=now,
            sales=store.get_sales(),
            basic_rules=store.get_rules(ProductType.BASICA),
            natal_rules=store.get_rules(ProductType.NATAL),
            report_config=store.get_report_config(),
            system_config=store.get_system_config(),
            finance=store.get_finance(),
            preferences=store.get_preferences(),
        )

    def export_backup(self, passphrase: str) -> BackupArtifact:
        """
        Encrypt the full state of the scope.

        Raises:
            BackupExportError: if serialization or encryption fails.
        """
        user_id = self.scope.user_id
        now = self._clock.now()
        with LogContext.bind(user_id=user_id, operation="export_backup"):
            system_config = replace(self._store.get_system_config(), last_backup_date=now)
            self._store.save_system_config(system_config)

            document = self.build_document(now)
            try:
                text = serialize_document(document)
                content = self._cipher.encrypt(text.encode("utf-8"), passphrase)
            except (TypeError, ValueError) as exc:
                logger.error("backup_export_failed", exc_info=True)
                raise BackupExportError(user_id) from exc

            artifact = BackupArtifact(
                filename=backup_filename(self.scope, now, self._naming),
                content=content,
            )
            logger.info(
                "backup_exported",
                extra={
                    "file_name": artifact.filename,
                    "sale_count": len(document.sales),
                    "version": document.version,
                },
            )
            return artifact

    def _decode(self, content: str, passphrase: str) -> BackupDocument:
        try:
            plaintext = self._cipher.decrypt(content, passphrase)
            return parse_document(plaintext.decode("utf-8"))
        except _MALFORMED_BACKUP as exc:
            logger.warning("backup_restore_rejected", exc_info=True)
            raise RestoreFailedError(self.scope.user_id) from exc

    def import_backup(self, content: str, passphrase: str) -> BackupDocument:
        """
        Replace every domain of the scope with the artifact's content.

        Raises:
            RestoreFailedError: on any decryption or parse failure; the
                store is left untouched.
        """
        with LogContext.bind(user_id=self.scope.user_id, operation="import_backup"):
            document = self._decode(content, passphrase)
            store = self._store
            defaults = store.defaults
            store.replace_all(
                sales=document.sales,
                basic_rules=(
                    document.basic_rules
                    if document.basic_rules is not None else defaults.basic_rules
                ),
                natal_rules=(
                    document.natal_rules
                    if document.natal_rules is not None else defaults.natal_rules
                ),
                report_config=document.report_config or store.get_report_config(),
                system_config=document.system_config or store.get_system_config(),
                preferences=document.preferences or store.get_preferences(),
                finance=document.finance or store.get_finance(),
            )
            logger.info(
                "backup_restored",
                extra={"sale_count": len(document.sales), "version": document.version},
            )
            return document
