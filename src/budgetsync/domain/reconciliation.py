"""Reconciliation session.

Guides the user through matching an account's cleared balance against a
bank statement:

1. enter the statement date and balance
2. select uncleared transactions that appear on the statement, creating
   an adjustment transaction if the numbers still do not match
3. confirmation, after which the session closes

All ledger writes are staged in the session and recorded as one batch
when the session finishes, so a cancelled session never leaves anything
behind in the ledger.
"""

import enum
import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional, Union

from budgetsync.domain import errors
from budgetsync.domain.entities import (
    ChangeAction,
    ClearedStatus,
    EntityType,
    NewChange,
    Transaction,
    TransactionPayload,
)
from budgetsync.domain.errors import BalanceMismatch, EditModeRequired, ValidationError
from budgetsync.domain.events import EventEmitter
from budgetsync.utils.amount_parser import parse_amount, round_currency
from budgetsync.utils.date_parser import parse_date

if TYPE_CHECKING:
    from budgetsync.domain.context import BudgetContext

log = logging.getLogger(__name__)

BALANCE_EPSILON = Decimal("0.01")
ADJUSTMENT_PAYEE = "Reconciliation Balance Adjustment"
ADJUSTMENT_MEMO = "Reconciliation adjustment"


class ReconciliationStep(enum.IntEnum):
    """Wizard steps. Only ever move forward, except back to UNINITIALIZED."""

    UNINITIALIZED = 0
    ENTER_STATEMENT = 1
    SELECT_TRANSACTIONS = 2
    CONFIRMATION = 3


class ReconciliationSession:
    """Reconciles one account against one bank statement."""

    def __init__(self, context: "BudgetContext", account_id: str):
        """Initialize a session.

        Args:
            context: Budget context providing client, ledger and edit mode
            account_id: Account to reconcile; fixed for the session's lifetime
        """
        self.context = context
        self.account_id = account_id
        self._events = EventEmitter()
        self._reset()

    def _reset(self) -> None:
        self.step = ReconciliationStep.UNINITIALIZED
        self.statement_date: Optional[date] = None
        self.statement_balance: Optional[Decimal] = None
        self.cleared_balance = Decimal("0")
        self._transactions: dict[str, Transaction] = {}
        self._selected: dict[str, None] = {}
        self._selected_total = Decimal("0")
        self._adjustment_total = Decimal("0")
        self._staged: list[NewChange] = []

    # Observables

    def subscribe(self, listener: Callable[["ReconciliationSession"], None]) -> Callable[[], None]:
        """Call ``listener`` with the session after every transition."""
        return self._events.subscribe(listener)

    @property
    def selected_transaction_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    @property
    def pending_balance(self) -> Decimal:
        return self.cleared_balance + self._adjustment_total + self._selected_total

    @property
    def difference(self) -> Decimal:
        if self.statement_balance is None:
            return Decimal("0")
        return self.pending_balance - self.statement_balance

    @property
    def is_balanced(self) -> bool:
        return abs(self.difference) < BALANCE_EPSILON

    @property
    def selectable_transactions(self) -> list[Transaction]:
        """Uncleared transactions of the account without a pending delete, newest first."""
        ledger = self.context.ledger
        rows = [
            t
            for t in self._transactions.values()
            if t.cleared == ClearedStatus.UNCLEARED
            and not ledger.is_pending_delete(EntityType.TRANSACTION, t.id)
        ]
        return sorted(rows, key=lambda t: t.date, reverse=True)

    @property
    def staged_changes(self) -> list[NewChange]:
        """Changes that finish() will record in the ledger."""
        return list(self._staged)

    # Transitions

    def start(self) -> None:
        """Open the wizard at the statement step.

        Raises:
            EditModeRequired: If the budget is not in edit mode
        """
        self._require_step("start", ReconciliationStep.UNINITIALIZED)
        if not self.context.edit_mode:
            raise EditModeRequired(errors.edit_mode_required("reconcile an account"))
        self.step = ReconciliationStep.ENTER_STATEMENT
        log.debug("Started reconciliation of account %s", self.account_id)
        self._notify()

    def confirm_statement(self, statement_balance: str, statement_date: Union[date, str, None] = None) -> None:
        """Accept the statement and load the account's transactions.

        Args:
            statement_balance: Balance as typed by the user (e.g. "1,234.56")
            statement_date: Statement date; defaults to today

        Raises:
            ValidationError: If the balance or date cannot be parsed
        """
        self._require_step("confirm the statement", ReconciliationStep.ENTER_STATEMENT)
        try:
            balance = parse_amount(statement_balance)
        except ValueError as e:
            raise ValidationError(f"Invalid statement balance: {e}")
        try:
            stmt_date = parse_date(statement_date if statement_date is not None else "today")
        except ValueError as e:
            raise ValidationError(f"Invalid statement date: {e}")

        snapshot = self.context.require_client().get_transaction_snapshot(self.account_id)
        self._transactions = {
            t.id: t for t in snapshot if t.account_id == self.account_id and not t.is_tombstone
        }
        self.cleared_balance = sum(
            (
                t.amount
                for t in self._transactions.values()
                if t.cleared in (ClearedStatus.CLEARED, ClearedStatus.RECONCILED)
            ),
            Decimal("0"),
        )
        self.statement_balance = balance
        self.statement_date = stmt_date
        self.step = ReconciliationStep.SELECT_TRANSACTIONS
        log.debug(
            "Statement %s for account %s: cleared %s, statement %s",
            stmt_date,
            self.account_id,
            self.cleared_balance,
            balance,
        )
        self._notify()

    def toggle_transaction(self, transaction_id: str) -> bool:
        """Add or remove a transaction from the selection.

        Returns:
            True if the transaction is now selected

        Raises:
            ValidationError: If the transaction is not selectable
        """
        self._require_step("select transactions", ReconciliationStep.SELECT_TRANSACTIONS)
        txn = self._transactions.get(transaction_id)
        if txn is None:
            raise ValidationError(errors.transaction_not_found(transaction_id))
        if txn.cleared != ClearedStatus.UNCLEARED:
            raise ValidationError(errors.not_selectable(transaction_id))
        if self.context.ledger.is_pending_delete(EntityType.TRANSACTION, transaction_id):
            raise ValidationError(errors.pending_delete(f"Transaction {transaction_id}"))

        if transaction_id in self._selected:
            del self._selected[transaction_id]
            self._selected_total -= txn.amount
            selected = False
        else:
            self._selected[transaction_id] = None
            self._selected_total += txn.amount
            selected = True
        self._notify()
        return selected

    def create_adjustment(self) -> NewChange:
        """Stage a cleared transaction that closes the current difference.

        The adjustment counts toward the pending balance immediately.

        Raises:
            ValidationError: If the account is already balanced
        """
        self._require_step("create an adjustment", ReconciliationStep.SELECT_TRANSACTIONS)
        if self.is_balanced:
            raise ValidationError("Account is already balanced; no adjustment needed")

        amount = round_currency(-self.difference)
        change = NewChange(
            entity_type=EntityType.TRANSACTION,
            action=ChangeAction.CREATE,
            entity_name=ADJUSTMENT_PAYEE,
            payload=TransactionPayload(
                account_id=self.account_id,
                date=self.statement_date,
                amount=amount,
                payee_name=ADJUSTMENT_PAYEE,
                memo=ADJUSTMENT_MEMO,
                cleared=ClearedStatus.CLEARED,
            ),
        )
        self._staged.append(change)
        self._adjustment_total += amount
        log.info("Staged reconciliation adjustment of %s for account %s", amount, self.account_id)
        self._notify()
        return change

    def finish(self) -> list[str]:
        """Mark the selected transactions reconciled and record everything.

        Returns:
            Ledger ids of the recorded changes

        Raises:
            BalanceMismatch: If the account is not balanced
            ValidationError: If a selected transaction has a pending delete
        """
        self._require_step("finish", ReconciliationStep.SELECT_TRANSACTIONS)
        if not self.is_balanced:
            raise BalanceMismatch(errors.balance_mismatch(self.difference))

        ledger = self.context.ledger
        deleted = [t for t in self._selected if ledger.is_pending_delete(EntityType.TRANSACTION, t)]
        if deleted:
            raise ValidationError(errors.pending_delete(f"Transaction {deleted[0]}"))

        changes = list(self._staged)
        for transaction_id in self._selected:
            txn = self._transactions[transaction_id]
            update = NewChange(
                entity_type=EntityType.TRANSACTION,
                action=ChangeAction.UPDATE,
                entity_id=transaction_id,
                entity_name=txn.payee_name,
                payload=TransactionPayload(
                    cleared=ClearedStatus.RECONCILED,
                    reconciled_on=self.statement_date,
                ),
            )
            changes.append(ledger.overlay_pending(update))

        change_ids = self.context.record_many(changes)
        self.step = ReconciliationStep.CONFIRMATION
        log.info(
            "Reconciled account %s: %d transaction(s), %d adjustment(s)",
            self.account_id,
            len(self._selected),
            len(self._staged),
        )
        self._notify()
        return change_ids

    def close(self) -> None:
        """Discard the finished session."""
        self._require_step("close", ReconciliationStep.CONFIRMATION)
        self._reset()
        self._notify()

    def cancel(self) -> None:
        """Abandon the session at any step without touching the ledger."""
        if self.step == ReconciliationStep.UNINITIALIZED:
            return
        log.debug("Cancelled reconciliation of account %s at step %s", self.account_id, self.step.name)
        self._reset()
        self._notify()

    # Internals

    def _require_step(self, operation: str, step: ReconciliationStep) -> None:
        if self.step != step:
            raise ValidationError(errors.wrong_step(operation, self.step))

    def _notify(self) -> None:
        self._events.emit(self)
