"""Budget client boundary."""

from budgetsync.client.base import BudgetClient

__all__ = ["BudgetClient"]
