"""Domain layer for budgetsync application."""

from budgetsync.domain.context import BudgetContext
from budgetsync.domain.ledger import PendingChangeLedger
from budgetsync.domain.reconciliation import ReconciliationSession, ReconciliationStep
from budgetsync.domain.sync import SyncDispatcher
from budgetsync.domain import installments

__all__ = [
    "BudgetContext",
    "PendingChangeLedger",
    "ReconciliationSession",
    "ReconciliationStep",
    "SyncDispatcher",
    "installments",
]
