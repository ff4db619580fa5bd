"""Shared pytest fixtures for budgetsync tests."""

import asyncio
import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from budgetsync.client.base import BudgetClient
from budgetsync.database.factories import create_sqlite_store
from budgetsync.domain.context import BudgetContext
from budgetsync.domain.entities import (
    AccountPayload,
    ChangeAction,
    ClearedStatus,
    DeviceIdentity,
    EntityType,
    NewChange,
    Transaction,
    TransactionPayload,
)
from budgetsync.domain.ledger import PendingChangeLedger


class FakeBudgetClient(BudgetClient):
    """In-memory budget client that records pushes and can be told to fail."""

    def __init__(self, transactions=None, writable=True, device=None):
        self.transactions = list(transactions or [])
        self.writable = writable
        self.device = device
        self.pushes = []
        self.fail_with = None
        self.on_push = None

    @property
    def can_write(self) -> bool:
        return self.writable

    async def push(self, changes):
        if self.on_push is not None:
            self.on_push(changes)
        if self.fail_with is not None:
            raise self.fail_with
        self.pushes.append(list(changes))

    def get_transaction_snapshot(self, account_id):
        return [t for t in self.transactions if t.account_id == account_id]

    def get_device_identity(self):
        return self.device


def make_transaction(txn_id, amount, cleared=ClearedStatus.UNCLEARED, account_id="acct-1", day=1):
    """Build a snapshot transaction row."""
    return Transaction(
        id=txn_id,
        account_id=account_id,
        date=date(2024, 3, day),
        amount=Decimal(amount),
        cleared=cleared,
        payee_name=f"Payee {txn_id}",
    )


@pytest.fixture
def ledger():
    """Create an empty ledger."""
    return PendingChangeLedger()


@pytest.fixture
def fake_client():
    """Client whose checking account has 500.00 cleared and three uncleared rows."""
    return FakeBudgetClient(
        transactions=[
            make_transaction("t-cleared", "450.00", ClearedStatus.CLEARED, day=1),
            make_transaction("t-reconciled", "50.00", ClearedStatus.RECONCILED, day=2),
            make_transaction("t-1", "20.00", day=3),
            make_transaction("t-2", "3.50", day=4),
            make_transaction("t-3", "3.49", day=5),
            make_transaction("other", "999.00", ClearedStatus.CLEARED, account_id="acct-2"),
        ],
        device=DeviceIdentity(id="0b7f5c2e-device", short_id="A"),
    )


@pytest.fixture
def context(fake_client, ledger):
    """Create an edit-mode context over the fake client."""
    return BudgetContext(client=fake_client, ledger=ledger, edit_mode=True)


@pytest.fixture
def temp_store():
    """Create a temporary SQLite budget store for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()

    yield store

    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def seeded_store(temp_store):
    """Store with one account and three transactions, pushed through a ledger."""
    seed = PendingChangeLedger()
    seed.record(
        NewChange(
            entity_type=EntityType.ACCOUNT,
            action=ChangeAction.CREATE,
            entity_id="acct-1",
            entity_name="Checking",
            payload=AccountPayload(name="Checking", account_type="Checking", on_budget=True),
        )
    )
    for txn_id, amount, cleared in [
        ("t-cleared", "500.00", ClearedStatus.CLEARED),
        ("t-1", "20.00", ClearedStatus.UNCLEARED),
        ("t-2", "3.50", ClearedStatus.UNCLEARED),
        ("t-buy", "-1000.00", ClearedStatus.UNCLEARED),
    ]:
        seed.record(
            NewChange(
                entity_type=EntityType.TRANSACTION,
                action=ChangeAction.CREATE,
                entity_id=txn_id,
                payload=TransactionPayload(
                    account_id="acct-1",
                    date=date(2024, 3, 1),
                    amount=Decimal(amount),
                    payee_name=f"Payee {txn_id}",
                    cleared=cleared,
                ),
            )
        )
    asyncio.run(temp_store.push(seed.snapshot()))
    return temp_store


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
