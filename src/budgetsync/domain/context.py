"""Explicit budget context.

Bundles the budget client, the pending-change ledger and the edit-mode
switch so views and commands receive them as one object instead of
reaching for module-level globals.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from budgetsync.domain import errors
from budgetsync.domain.entities import NewChange
from budgetsync.domain.errors import EditModeRequired, ValidationError
from budgetsync.domain.ledger import PendingChangeLedger
from budgetsync.domain.reconciliation import ReconciliationSession
from budgetsync.domain.sync import SyncDispatcher

if TYPE_CHECKING:
    from budgetsync.client.base import BudgetClient

log = logging.getLogger(__name__)


class BudgetContext:
    """Everything needed to edit one loaded budget offline."""

    def __init__(
        self,
        client: Optional["BudgetClient"] = None,
        ledger: Optional[PendingChangeLedger] = None,
        edit_mode: bool = False,
    ):
        """Initialize the context.

        Args:
            client: Loaded budget client, or None if no budget is loaded
            ledger: Ledger to record into (a new empty one if None)
            edit_mode: Whether edits are allowed
        """
        self.client = client
        self.ledger = ledger if ledger is not None else PendingChangeLedger()
        self.edit_mode = edit_mode
        self._dispatcher: Optional[SyncDispatcher] = None

    def enable_edit_mode(self) -> None:
        self.edit_mode = True

    def disable_edit_mode(self) -> None:
        self.edit_mode = False

    def require_edit_mode(self, action: str) -> None:
        """Raise EditModeRequired unless edit mode is on."""
        if not self.edit_mode:
            raise EditModeRequired(errors.edit_mode_required(action))

    def require_client(self) -> "BudgetClient":
        """Return the loaded client.

        Raises:
            ValidationError: If no budget is loaded
        """
        if self.client is None:
            raise ValidationError("No budget loaded")
        return self.client

    def record(self, change: NewChange) -> str:
        """Record a change in the ledger; edit mode must be on."""
        self.require_edit_mode("record changes")
        return self.ledger.record(change)

    def record_many(self, changes: Iterable[NewChange]) -> list[str]:
        """Record a batch of changes; edit mode must be on."""
        self.require_edit_mode("record changes")
        return self.ledger.record_many(changes)

    def open_reconciliation(self, account_id: str) -> ReconciliationSession:
        """Create and start a reconciliation session for an account.

        Raises:
            EditModeRequired: If edit mode is off
        """
        session = ReconciliationSession(self, account_id)
        session.start()
        return session

    @property
    def dispatcher(self) -> SyncDispatcher:
        """Sync dispatcher bound to this context (created on first use)."""
        if self._dispatcher is None:
            self._dispatcher = SyncDispatcher(self)
        return self._dispatcher
