"""Encrypted full-state backup: pure codec, passphrase cipher, service."""

from sales_services.backup.cipher import BytesCipher, OpenSSLAesCipher, evp_bytes_to_key
from sales_services.backup.codec import BackupDocument, parse_document, serialize_document
from sales_services.backup.service import (
    BackupArtifact,
    BackupService,
    backup_filename,
    is_backup_due,
)

__all__ = [
    "BackupArtifact",
    "BackupDocument",
    "BackupService",
    "BytesCipher",
    "OpenSSLAesCipher",
    "backup_filename",
    "evp_bytes_to_key",
    "is_backup_due",
    "parse_document",
    "serialize_document",
]
