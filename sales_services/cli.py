"""
sales360 command line.

Usage:
    sales360 template [--output PATH]
    sales360 import --user ID --file PATH [--map FIELD=COL ...] [--probe-only]
    sales360 export-backup --user ID [--output DIR]
    sales360 restore-backup --user ID --file PATH
    sales360 clients --user ID

The database URL comes from ``--db-url``, else ``SALES360_DB_URL``, else
a local SQLite file.  Backup passphrases are read from
``SALES360_BACKUP_PASSPHRASE`` or prompted for.
"""

from __future__ import annotations

import argparse
import getpass
import os
import sys
from pathlib import Path

from sales_kernel.db import DEFAULT_DATABASE_URL

MIN_PASSPHRASE_LENGTH = 4


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sales360",
        description="Sales commission core: import, backup and client reports.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--db-url",
        default=os.environ.get("SALES360_DB_URL", DEFAULT_DATABASE_URL),
        help="SQLAlchemy database URL.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Structured log level written to stderr (default: WARNING).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    template = sub.add_parser("template", help="Write the import template CSV.")
    template.add_argument("--output", type=Path, default=None, help="File or directory.")

    imp = sub.add_parser("import", help="Import sales from a .csv or .xlsx file.")
    imp.add_argument("--user", required=True)
    imp.add_argument("--file", required=True, type=Path)
    imp.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="FIELD=COL",
        help="Override the guessed column (0-based) of a field; repeatable.",
    )
    imp.add_argument(
        "--probe-only",
        action="store_true",
        help="Show the header, guessed mapping and row count; write nothing.",
    )

    export = sub.add_parser("export-backup", help="Write an encrypted backup file.")
    export.add_argument("--user", required=True)
    export.add_argument("--output", type=Path, default=Path("."), help="Target directory.")

    restore = sub.add_parser("restore-backup", help="Replace all data from a backup file.")
    restore.add_argument("--user", required=True)
    restore.add_argument("--file", required=True, type=Path)

    clients = sub.add_parser("clients", help="Print the client status report.")
    clients.add_argument("--user", required=True)

    return parser


def _read_passphrase(confirm: bool) -> str:
    passphrase = os.environ.get("SALES360_BACKUP_PASSPHRASE")
    if passphrase is None:
        passphrase = getpass.getpass("Backup passphrase: ")
        if confirm and getpass.getpass("Repeat passphrase: ") != passphrase:
            raise ValueError("Passphrases do not match")
    if len(passphrase) < MIN_PASSPHRASE_LENGTH:
        raise ValueError(
            f"Passphrase must have at least {MIN_PASSPHRASE_LENGTH} characters"
        )
    return passphrase


def _parse_overrides(pairs: list[str]) -> dict[str, int]:
    overrides: dict[str, int] = {}
    for pair in pairs:
        field, sep, col = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected FIELD=COL, got {pair!r}")
        overrides[field.strip()] = int(col)
    return overrides


def _cmd_template(args: argparse.Namespace) -> int:
    from sales_ingestion.template import write_import_template

    path = write_import_template(args.output)
    print(f"Template written to {path}")
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    from sales_config import get_defaults
    from sales_ingestion.adapters import read_tabular_file
    from sales_ingestion.mapping import guess_mapping
    from sales_kernel.db import session_scope
    from sales_kernel.domain import UserScope
    from sales_services.sales_ledger import SalesLedgerService
    from sales_services.snapshot import SnapshotManager

    rows = read_tabular_file(args.file)
    if not rows:
        print("ERROR: File has no rows.", file=sys.stderr)
        return 1
    mapping = guess_mapping(rows[0])
    mapping.update(_parse_overrides(args.map))

    if args.probe_only:
        print(f"Header: {list(rows[0])}")
        print(f"Data rows: {len(rows) - 1}")
        for field, col in mapping.items():
            print(f"  {field:<16} -> {col}")
        return 0

    with session_scope() as session:
        ledger = SalesLedgerService(
            session,
            UserScope(args.user),
            SnapshotManager(depth=get_defaults().snapshot_depth),
        )
        imported = ledger.import_rows(rows, mapping)
    pending = sum(1 for s in imported if s.is_pending)
    print(f"Imported {len(imported)} sales ({pending} pending billing).")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    from sales_kernel.db import session_scope
    from sales_kernel.domain import UserScope
    from sales_services.backup import BackupService

    passphrase = _read_passphrase(confirm=True)
    with session_scope() as session:
        artifact = BackupService(session, UserScope(args.user)).export_backup(passphrase)
    args.output.mkdir(parents=True, exist_ok=True)
    target = args.output / artifact.filename
    target.write_text(artifact.content, encoding="utf-8")
    print(f"Backup written to {target}")
    return 0


def _cmd_restore(args: argparse.Namespace) -> int:
    from sales_kernel.db import session_scope
    from sales_kernel.domain import UserScope
    from sales_services.backup import BackupService

    content = args.file.read_text(encoding="utf-8")
    passphrase = _read_passphrase(confirm=False)
    with session_scope() as session:
        document = BackupService(session, UserScope(args.user)).import_backup(
            content, passphrase
        )
    print(f"Restored {len(document.sales)} sales (backup version {document.version}).")
    return 0


def _cmd_clients(args: argparse.Namespace) -> int:
    from sales_config import get_defaults
    from sales_engines.client_analytics import analyze_clients
    from sales_kernel.db import session_scope
    from sales_kernel.domain import SystemClock, UserScope
    from sales_kernel.services import DomainStore

    with session_scope() as session:
        store = DomainStore(session, UserScope(args.user), get_defaults().domain)
        metrics = analyze_clients(
            store.get_sales(), store.get_report_config(), SystemClock().now()
        )
    for m in metrics:
        print(
            f"{m.status.value:<8} {m.name:<40} orders={m.total_orders:<4} "
            f"spent={m.total_spent:.2f} last={m.days_since_last_purchase}d"
        )
    return 0


_COMMANDS = {
    "template": _cmd_template,
    "import": _cmd_import,
    "export-backup": _cmd_export,
    "restore-backup": _cmd_restore,
    "clients": _cmd_clients,
}


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    from sales_kernel.db import create_tables, init_engine_from_url
    from sales_kernel.exceptions import SalesCoreError
    from sales_kernel.logging_config import configure_logging

    configure_logging(level=args.log_level.upper(), stream=sys.stderr)

    if args.command != "template":
        init_engine_from_url(args.db_url)
        create_tables()

    try:
        return _COMMANDS[args.command](args)
    except SalesCoreError as exc:
        print(f"ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
