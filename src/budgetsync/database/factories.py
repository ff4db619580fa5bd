"""Store factory functions for creating budget store instances."""

import os
from pathlib import Path
from typing import Optional

from budgetsync.database.sqlalchemy_db import SQLAlchemyBudgetStore


def create_sqlite_store(database_path: Optional[str] = None, read_only: bool = False) -> SQLAlchemyBudgetStore:
    """Create a SQLite budget store instance.

    Args:
        database_path: Path to SQLite database file. If None, checks BUDGETSYNC_DB_PATH
            environment variable, then defaults to ~/.budgetsync/budget.db
        read_only: If True, the store refuses pushes

    Returns:
        SQLAlchemyBudgetStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("BUDGETSYNC_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".budgetsync"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "budget.db")

    return SQLAlchemyBudgetStore(f"sqlite:///{database_path}", read_only=read_only)
