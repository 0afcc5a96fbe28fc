"""
SalesLedgerService -- mutations of a user's sale collection.

Responsibility:
    Single-sale edits (add, update, boleto status) and the batch
    mutations (delete, clear, bulk billing-date changes, imports and
    rule-table replacement) that are undoable through the
    ``SnapshotManager``.

Architecture position:
    Services -- imperative shell.  Loads state through ``DomainStore``,
    calls pure engines, saves results back.  Flush only; the caller owns
    the transaction.

Invariants enforced:
    - A snapshot of the prior sale collection is taken immediately before
      every batch mutation that changes at least one sale.
    - Imports check the column mapping before any row is read.
    - A replacement rule table is validated and stored sorted before the
      sales of that product type are recomputed against it.

Failure modes:
    - ScopeRequiredError when constructed without a scope.
    - MissingMappingError from ``import_rows``.
    - InvalidRuleTableError from ``replace_rule_table``.
    - NothingToUndoError from ``undo``.
    - KeyError when a sale id is not found.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from sales_config import get_defaults
from sales_engines.commission import compute_sale, recompute_sale, validate_rule_table
from sales_ingestion.mapping import ImportMapping, check_required_mapping, map_rows
from sales_kernel.domain.clock import Clock
from sales_kernel.domain.scope import UserScope
from sales_kernel.domain.types import (
    BoletoStatus,
    CommissionRule,
    DomainDefaults,
    ProductType,
    Sale,
    SaleInput,
)
from sales_kernel.logging_config import LogContext, get_logger
from sales_kernel.services.base import BaseService
from sales_kernel.services.domain_store import DomainStore
from sales_services.snapshot import SnapshotManager

logger = get_logger("services.sales_ledger")


class SalesLedgerService(BaseService):
    """
    Contract:
        Every method reads the current sale collection for the scope,
        applies one change, and saves the whole collection back.

    Non-goals:
        - No merge of concurrent edits (single authenticated writer).
    """

    def __init__(
        self,
        session: Session,
        scope: UserScope | None,
        snapshots: SnapshotManager,
        clock: Clock | None = None,
        defaults: DomainDefaults | None = None,
    ):
        super().__init__(session, clock)
        self._store = DomainStore(
            session,
            scope,
            defaults or get_defaults().domain,
            clock=self._clock,
        )
        self._snapshots = snapshots

    @property
    def scope(self) -> UserScope:
        return self._store.scope

    @property
    def store(self) -> DomainStore:
        return self._store

    def list_sales(self) -> tuple[Sale, ...]:
        return self._store.get_sales()

    def _commit_batch(
        self, operation: str, before: Sequence[Sale], after: Sequence[Sale], changed: int
    ) -> None:
        """Snapshot ``before``, then save ``after``.

        The snapshot is taken even when nothing changed, so a no-op batch still
        replaces the undo slot.
        """
        self._snapshots.take(self.scope, before)
        if changed:
            self._store.save_sales(after)
        logger.info(operation, extra={"changed": changed, "sale_count": len(after)})

    # -----------------------------------------------------------------
    # Single-sale edits
    # -----------------------------------------------------------------

    def add_sale(self, sale_input: SaleInput) -> Sale:
        sale = compute_sale(sale_input, self._store.get_rules(sale_input.product_type))
        self._store.save_sales((*self._store.get_sales(), sale))
        logger.info("sale_added", extra={"sale_id": sale.id})
        return sale

    def update_sale(self, sale_id: str, sale_input: SaleInput) -> Sale:
        """Replace a sale's form data and recompute it, keeping its id."""
        sales = list(self._store.get_sales())
        idx = self._index_of(sales, sale_id)
        computed = compute_sale(sale_input, self._store.get_rules(sale_input.product_type))
        updated = replace(
            computed,
            id=sale_id,
            boleto_paid_date=sales[idx].boleto_paid_date,
        )
        sales[idx] = updated
        self._store.save_sales(sales)
        logger.info("sale_updated", extra={"sale_id": sale_id})
        return updated

    def set_boleto_status(self, sale_id: str, status: BoletoStatus) -> Sale:
        """Change a sale's boleto status; PAID records the payment time."""
        sales = list(self._store.get_sales())
        idx = self._index_of(sales, sale_id)
        paid_date = self._clock.now() if status == BoletoStatus.PAID else None
        sales[idx] = replace(sales[idx], boleto_status=status, boleto_paid_date=paid_date)
        self._store.save_sales(sales)
        logger.info(
            "boleto_status_changed",
            extra={"sale_id": sale_id, "status": status.value},
        )
        return sales[idx]

    @staticmethod
    def _index_of(sales: Sequence[Sale], sale_id: str) -> int:
        for idx, sale in enumerate(sales):
            if sale.id == sale_id:
                return idx
        raise KeyError(f"Sale not found: {sale_id}")

    # -----------------------------------------------------------------
    # Batch mutations (undoable)
    # -----------------------------------------------------------------

    def delete_sales(self, sale_ids: Iterable[str]) -> int:
        ids = set(sale_ids)
        before = self._store.get_sales()
        after = tuple(s for s in before if s.id not in ids)
        removed = len(before) - len(after)
        self._commit_batch("sales_deleted", before, after, removed)
        return removed

    def clear_sales(self) -> int:
        before = self._store.get_sales()
        self._commit_batch("sales_cleared", before, (), len(before))
        return len(before)

    def bill_sales(self, sale_ids: Iterable[str], billing_date: datetime | None) -> int:
        """Set the billing date of the given sales (``None`` = back to pending)."""
        ids = set(sale_ids)
        before = self._store.get_sales()
        after = tuple(
            replace(s, billing_date=billing_date) if s.id in ids else s for s in before
        )
        changed = sum(1 for s in before if s.id in ids)
        self._commit_batch("sales_billed", before, after, changed)
        return changed

    def update_billing_dates(
        self,
        billing_date: datetime,
        launch_date_from: date,
        product_type: ProductType | None = None,
        only_pending: bool = True,
    ) -> int:
        """
        Bulk-assign ``billing_date``.

        A sale qualifies when it matches ``product_type`` (None = all), its
        launch date (completion date, else billing date) is on or after
        ``launch_date_from``, and, with ``only_pending``, it has no
        billing date yet.
        """
        before = self._store.get_sales()
        after: list[Sale] = []
        changed = 0
        for sale in before:
            launch = sale.completion_date or sale.billing_date
            qualifies = (
                (product_type is None or sale.product_type == product_type)
                and launch is not None
                and launch.date() >= launch_date_from
                and not (only_pending and sale.billing_date is not None)
            )
            if qualifies:
                after.append(replace(sale, billing_date=billing_date))
                changed += 1
            else:
                after.append(sale)
        self._commit_batch("billing_dates_updated", before, after, changed)
        return changed

    def import_rows(
        self, rows: Sequence[Sequence[Any]], mapping: ImportMapping
    ) -> list[Sale]:
        """Append the sales mapped from ``rows`` (header first)."""
        check_required_mapping(mapping)
        with LogContext.bind(user_id=self.scope.user_id, operation="import_rows"):
            imported = map_rows(rows, mapping, self._store.get_rules_by_type(), self._clock.now())
            before = self._store.get_sales()
            self._commit_batch("sales_imported", before, (*before, *imported), len(imported))
        return imported

    def replace_rule_table(
        self, product_type: ProductType, rules: Iterable[CommissionRule]
    ) -> int:
        """Validate and store a rule table, then recompute that type's sales."""
        ordered = validate_rule_table(rules)
        before = self._store.get_sales()
        after = tuple(
            recompute_sale(s, ordered) if s.product_type == product_type else s
            for s in before
        )
        recomputed = sum(1 for s in before if s.product_type == product_type)
        self._commit_batch("rule_table_replaced", before, after, recomputed)
        self._store.save_rules(product_type, ordered)
        logger.info(
            "rule_table_saved",
            extra={"product_type": product_type.value, "rule_count": len(ordered)},
        )
        return recomputed

    def undo(self) -> tuple[Sale, ...]:
        """Restore the sale collection captured before the last batch mutation."""
        snapshot = self._snapshots.undo(self.scope)
        self._store.save_sales(snapshot.sales)
        return snapshot.sales
