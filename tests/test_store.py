"""Tests for the SQLAlchemy budget store."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from budgetsync.database.factories import create_sqlite_store
from budgetsync.domain.entities import (
    AccountPayload,
    ChangeAction,
    ClearedStatus,
    EntityType,
    NewChange,
    ScheduledTransactionPayload,
    TransactionPayload,
)
from budgetsync.domain.errors import NotFoundError, ValidationError
from budgetsync.domain.ledger import PendingChangeLedger
from budgetsync.utils.account_resolver import resolve_account


def push(store, *changes):
    """Record changes in a fresh ledger and push them."""
    ledger = PendingChangeLedger()
    ledger.record_many(changes)
    asyncio.run(store.push(ledger.snapshot()))


def txn_update(entity_id, **fields):
    return NewChange(
        entity_type=EntityType.TRANSACTION,
        action=ChangeAction.UPDATE,
        entity_id=entity_id,
        payload=TransactionPayload(**fields),
    )


class TestPush:
    """Tests for applying changes."""

    def test_snapshot_after_create(self, seeded_store):
        """Test created transactions are returned oldest first."""
        snapshot = seeded_store.get_transaction_snapshot("acct-1")

        assert {t.id for t in snapshot} == {"t-cleared", "t-1", "t-2", "t-buy"}
        cleared = next(t for t in snapshot if t.id == "t-cleared")
        assert cleared.amount == Decimal("500.00")
        assert cleared.cleared == ClearedStatus.CLEARED

    def test_update_changes_only_given_fields(self, seeded_store):
        """Test an update leaves unset fields alone."""
        push(seeded_store, txn_update("t-1", cleared=ClearedStatus.RECONCILED, reconciled_on=date(2024, 3, 31)))

        txn = seeded_store.get_transaction("t-1")
        assert txn.cleared == ClearedStatus.RECONCILED
        assert txn.amount == Decimal("20.00")
        assert txn.payee_name == "Payee t-1"

    def test_delete_tombstones(self, seeded_store):
        """Test deleted rows disappear from reads."""
        push(
            seeded_store,
            NewChange(entity_type=EntityType.TRANSACTION, action=ChangeAction.DELETE, entity_id="t-2"),
        )

        assert seeded_store.get_transaction("t-2") is None
        assert "t-2" not in {t.id for t in seeded_store.get_transaction_snapshot("acct-1")}
        assert not seeded_store.entity_exists(EntityType.TRANSACTION, "t-2")

    def test_create_revives_tombstone(self, seeded_store):
        """Test re-creating a deleted entity brings it back."""
        push(
            seeded_store,
            NewChange(entity_type=EntityType.TRANSACTION, action=ChangeAction.DELETE, entity_id="t-2"),
        )
        push(
            seeded_store,
            NewChange(
                entity_type=EntityType.TRANSACTION,
                action=ChangeAction.CREATE,
                entity_id="t-2",
                payload=TransactionPayload(account_id="acct-1", date=date(2024, 3, 2), amount=Decimal("7.00")),
            ),
        )

        assert seeded_store.get_transaction("t-2").amount == Decimal("7.00")

    def test_update_missing_entity_rejected(self, seeded_store):
        """Test updating an unknown entity fails the whole push."""
        ledger = PendingChangeLedger()
        ledger.record(txn_update("t-1", memo="kept?"))
        ledger.record(txn_update("missing", memo="nope"))

        with pytest.raises(NotFoundError):
            asyncio.run(seeded_store.push(ledger.snapshot()))
        assert seeded_store.get_transaction("t-1").memo == ""

    def test_create_existing_rejected(self, seeded_store):
        """Test creating an entity that already exists fails."""
        with pytest.raises(ValidationError, match="already exists"):
            push(
                seeded_store,
                NewChange(
                    entity_type=EntityType.ACCOUNT,
                    action=ChangeAction.CREATE,
                    entity_id="acct-1",
                    payload=AccountPayload(name="Again"),
                ),
            )

    def test_read_only_refuses_push(self, temp_store):
        """Test a read-only store rejects pushes."""
        store = create_sqlite_store(database_path=temp_store.database_path, read_only=True)
        assert not store.can_write
        with pytest.raises(PermissionError):
            asyncio.run(store.push([]))
        store.disconnect()

    def test_scheduled_transaction(self, seeded_store):
        """Test scheduled transactions are stored."""
        push(
            seeded_store,
            NewChange(
                entity_type=EntityType.SCHEDULED_TRANSACTION,
                action=ChangeAction.CREATE,
                entity_id="sched-1",
                payload=ScheduledTransactionPayload(
                    account_id="acct-1",
                    date_first=date(2024, 4, 1),
                    date_next=date(2024, 4, 1),
                    frequency="Monthly",
                    amount=Decimal("-333.34"),
                ),
            ),
        )
        assert seeded_store.entity_exists(EntityType.SCHEDULED_TRANSACTION, "sched-1")


class TestLocalState:
    """Tests for device registration and ledger persistence."""

    def test_register_device_once(self, temp_store):
        """Test registration is idempotent."""
        assert temp_store.get_device_identity() is None

        first = temp_store.register_device()
        second = temp_store.register_device()

        assert first == second
        assert first.short_id == first.id[:4].upper()

    def test_ledger_round_trip(self, temp_store):
        """Test a saved ledger is loaded with the same entries."""
        ledger = PendingChangeLedger()
        ledger.record(txn_update("t-1", amount=Decimal("12.34"), date=date(2024, 3, 5)))
        ledger.record(txn_update("t-1", cleared=ClearedStatus.CLEARED))

        temp_store.save_ledger(ledger)
        loaded = temp_store.load_ledger()

        assert loaded.snapshot() == ledger.snapshot()

    def test_load_empty_ledger(self, temp_store):
        assert temp_store.load_ledger().count == 0

    def test_original_transaction(self, seeded_store):
        """Test the installment input is built from the stored row."""
        original = seeded_store.get_original_transaction("t-buy")

        assert original.amount == Decimal("-1000.00")
        assert original.account_id == "acct-1"
        assert original.date == date(2024, 3, 1)
        assert seeded_store.get_original_transaction("missing") is None


class TestResolveAccount:
    """Tests for resolving account names."""

    def test_by_id(self, seeded_store):
        assert resolve_account(seeded_store, PendingChangeLedger(), "acct-1") == "acct-1"

    def test_by_name_case_insensitive(self, seeded_store):
        assert resolve_account(seeded_store, PendingChangeLedger(), "checking") == "acct-1"

    def test_pending_create(self, seeded_store):
        """Test accounts created offline resolve by name."""
        ledger = PendingChangeLedger()
        ledger.record(
            NewChange(
                entity_type=EntityType.ACCOUNT,
                action=ChangeAction.CREATE,
                entity_id="acct-new",
                payload=AccountPayload(name="Savings"),
            )
        )

        assert resolve_account(seeded_store, ledger, "Savings") == "acct-new"
        assert resolve_account(seeded_store, ledger, "acct-new") == "acct-new"

    def test_pending_delete_hides_name(self, seeded_store):
        """Test an account with a pending delete no longer resolves by name."""
        ledger = PendingChangeLedger()
        ledger.record(NewChange(entity_type=EntityType.ACCOUNT, action=ChangeAction.DELETE, entity_id="acct-1"))

        with pytest.raises(NotFoundError):
            resolve_account(seeded_store, ledger, "Checking")

    def test_unknown(self, seeded_store):
        with pytest.raises(NotFoundError, match="not found"):
            resolve_account(seeded_store, PendingChangeLedger(), "Nope")
