"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the payload dataclasses and
the table columns can evolve separately.
"""

import enum
from decimal import Decimal
from typing import Any

from budgetsync.domain import entities as domain
from budgetsync.domain.entities import EntityType, payload_fields
from budgetsync.database.models import (
    Account as ORMAccount,
    BudgetLine as ORMBudgetLine,
    Category as ORMCategory,
    Payee as ORMPayee,
    ScheduledTransaction as ORMScheduledTransaction,
    Transaction as ORMTransaction,
)

ORM_MODELS: dict[EntityType, type] = {
    EntityType.ACCOUNT: ORMAccount,
    EntityType.CATEGORY: ORMCategory,
    EntityType.PAYEE: ORMPayee,
    EntityType.TRANSACTION: ORMTransaction,
    EntityType.BUDGET_LINE: ORMBudgetLine,
    EntityType.SCHEDULED_TRANSACTION: ORMScheduledTransaction,
}


def payload_to_columns(payload: domain.Payload | None) -> dict[str, Any]:
    """Convert the set fields of a payload into column values."""
    columns = {}
    for name, value in payload_fields(payload).items():
        columns[name] = value.value if isinstance(value, enum.Enum) else value
    return columns


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        account_type=orm_account.account_type,
        on_budget=orm_account.on_budget,
        closed=orm_account.closed,
        hidden=orm_account.hidden,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=Decimal(orm_transaction.amount),
        cleared=domain.ClearedStatus(orm_transaction.cleared),
        payee_name=orm_transaction.payee_name or "",
        memo=orm_transaction.memo or "",
        category_id=orm_transaction.category_id,
        flag=domain.Flag(orm_transaction.flag) if orm_transaction.flag else None,
        is_tombstone=orm_transaction.is_tombstone,
    )


def transaction_to_original(orm_transaction: ORMTransaction) -> domain.OriginalTransaction:
    """Build the installment input snapshot from a stored transaction."""
    return domain.OriginalTransaction(
        date=orm_transaction.date,
        amount=Decimal(orm_transaction.amount),
        account_id=orm_transaction.account_id,
        payee_name=orm_transaction.payee_name or "",
        payee_id=orm_transaction.payee_id,
        category_id=orm_transaction.category_id,
        memo=orm_transaction.memo or "",
    )
