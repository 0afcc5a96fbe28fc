"""
Typed Exception Hierarchy for the Sales Kernel.

Every error a caller may need to react to has its own class with a
machine-readable ``code`` class attribute and structured attributes
(never parse messages).

    SalesCoreError (base)
    |
    +-- ScopeError
    |   +-- ScopeRequiredError
    |
    +-- RuleTableError
    |   +-- InvalidRuleTableError
    |
    +-- IngestionError
    |   +-- MissingMappingError
    |   +-- UnsupportedFileFormatError
    |
    +-- ChallengeError
    |   +-- CellAlreadyPaidError
    |
    +-- SnapshotError
    |   +-- NothingToUndoError
    |
    +-- BackupError
        +-- BackupExportError
        +-- RestoreFailedError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Scope           | SCOPE_REQUIRED              | Persistence touched without a signed-in user
Rule table      | INVALID_RULE_TABLE          | Overlapping/inverted brackets on save
Ingestion       | MISSING_MAPPING             | Required import field not mapped
                | UNSUPPORTED_FILE_FORMAT     | File extension not readable
Challenge       | CELL_ALREADY_PAID           | PAID cell modified or paid again
Snapshot        | NOTHING_TO_UNDO             | Undo requested with an empty history
Backup          | BACKUP_EXPORT_FAILED        | Aggregate could not be serialized
                | RESTORE_FAILED              | Wrong passphrase, corrupt or malformed file

RestoreFailedError deliberately does not say *why* a restore failed: a
wrong passphrase and a corrupted artifact are indistinguishable, because
decrypting with the wrong key yields bytes that merely fail to parse. The
underlying cause is chained (``raise ... from exc``) for logs only.
"""


class SalesCoreError(Exception):
    """Base exception for all sales kernel errors."""

    code: str = "SALES_CORE_ERROR"


# Scope


class ScopeError(SalesCoreError):
    """Base exception for user-scope precondition failures."""

    code: str = "SCOPE_ERROR"


class ScopeRequiredError(ScopeError):
    """A persistence-touching operation was invoked without a user scope."""

    code: str = "SCOPE_REQUIRED"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Access denied: {operation} requires an authenticated user scope"
        )


# Rule tables


class RuleTableError(SalesCoreError):
    """Base exception for commission rule table errors."""

    code: str = "RULE_TABLE_ERROR"


class InvalidRuleTableError(RuleTableError):
    """Rule table is not a valid ascending, non-overlapping bracket set."""

    code: str = "INVALID_RULE_TABLE"

    def __init__(self, rule_id: str, reason: str):
        self.rule_id = rule_id
        self.reason = reason
        super().__init__(f"Invalid commission rule {rule_id}: {reason}")


# Ingestion


class IngestionError(SalesCoreError):
    """Base exception for tabular import errors."""

    code: str = "INGESTION_ERROR"


class MissingMappingError(IngestionError):
    """One or more required logical fields have no column assigned."""

    code: str = "MISSING_MAPPING"

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__(
            f"Required import fields are not mapped: {', '.join(missing_fields)}"
        )


class UnsupportedFileFormatError(IngestionError):
    """The import file extension cannot be read."""

    code: str = "UNSUPPORTED_FILE_FORMAT"

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Unsupported import file format: {filename}")


# Challenges


class ChallengeError(SalesCoreError):
    """Base exception for savings challenge errors."""

    code: str = "CHALLENGE_ERROR"


class CellAlreadyPaidError(ChallengeError):
    """A PAID challenge cell is terminal: no further payment or edit."""

    code: str = "CELL_ALREADY_PAID"

    def __init__(self, cell_id: str, number: int):
        self.cell_id = cell_id
        self.number = number
        super().__init__(f"Challenge cell #{number} ({cell_id}) is already paid")


# Snapshot


class SnapshotError(SalesCoreError):
    """Base exception for undo history errors."""

    code: str = "SNAPSHOT_ERROR"


class NothingToUndoError(SnapshotError):
    """Undo was requested but no snapshot is held for the scope."""

    code: str = "NOTHING_TO_UNDO"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No snapshot available to undo for user {user_id}")


# Backup


class BackupError(SalesCoreError):
    """Base exception for backup export/restore errors."""

    code: str = "BACKUP_ERROR"


class BackupExportError(BackupError):
    """The aggregate backup document could not be produced."""

    code: str = "BACKUP_EXPORT_FAILED"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Backup export failed for user {user_id}")


class RestoreFailedError(BackupError):
    """Restore failed: wrong passphrase, corrupted artifact or malformed content."""

    code: str = "RESTORE_FAILED"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Restore failed: wrong passphrase or corrupted backup file")
