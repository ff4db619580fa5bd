"""Local budget store for budgetsync."""

from budgetsync.database.sqlalchemy_db import SQLAlchemyBudgetStore
from budgetsync.database.factories import create_sqlite_store

__all__ = ["SQLAlchemyBudgetStore", "create_sqlite_store"]
