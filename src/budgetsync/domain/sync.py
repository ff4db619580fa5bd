"""Sync dispatcher.

Pushes the ledger's pending changes through the budget client. The ledger
contents are captured when flush() is called; only those entries are
removed after a successful push, so edits recorded while the push is in
flight stay pending for the next flush.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from budgetsync.domain.entities import DeviceIdentity, SyncResult
from budgetsync.domain.errors import SyncFailure

if TYPE_CHECKING:
    from budgetsync.domain.context import BudgetContext

log = logging.getLogger(__name__)


class SyncDispatcher:
    """Flushes a context's ledger to its budget client."""

    def __init__(self, context: "BudgetContext"):
        self.context = context
        self._lock: Optional[asyncio.Lock] = None

    @property
    def in_flight(self) -> bool:
        return self._lock is not None and self._lock.locked()

    def can_sync(self) -> bool:
        """Whether there is something to push and somewhere to push it."""
        client = self.context.client
        return self.context.ledger.is_dirty and client is not None and client.can_write

    async def flush(self) -> SyncResult:
        """Push the pending changes captured at call time.

        Returns:
            SyncResult describing the outcome; push errors are reported in
            ``error`` as a SyncFailure and leave the ledger unchanged
        """
        # Created lazily so the lock binds to the running event loop
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            ledger = self.context.ledger
            pending = ledger.snapshot()

            if not pending:
                return SyncResult(success=True, message="No changes to sync")

            client = self.context.client
            if client is None:
                return self._failed("No budget loaded")
            if not client.can_write:
                return self._failed("Budget is read-only")

            log.info("Starting sync of %d change(s)", len(pending))
            ledger.begin_flush(pending)
            try:
                await client.push(pending)
            except Exception as e:
                ledger.abort_flush(pending)
                return self._failed(str(e) or type(e).__name__, cause=e)

            removed = ledger.acknowledge(pending)
            log.info("Synced %d change(s); %d still pending", removed, ledger.count)
            return SyncResult(
                success=True,
                message=f"Successfully synced {len(pending)} change(s)",
                changes_applied=len(pending),
            )

    def device_info(self) -> Optional[DeviceIdentity]:
        """Return the client's device identity, for display only."""
        if self.context.client is None:
            return None
        return self.context.client.get_device_identity()

    def has_device(self) -> bool:
        return self.device_info() is not None

    def _failed(self, message: str, cause: Optional[Exception] = None) -> SyncResult:
        log.warning("Sync failed: %s", message)
        failure = SyncFailure(message)
        if cause is not None:
            failure.__cause__ = cause
        return SyncResult(success=False, message=message, error=failure)
