"""Tests for domain entities."""

from datetime import date
from decimal import Decimal

import pytest

from budgetsync.domain.entities import (
    AccountPayload,
    ChangeAction,
    ClearedStatus,
    EntityType,
    Flag,
    PendingChange,
    TransactionPayload,
    merge_payload,
    payload_fields,
    payload_from_dict,
    payload_to_dict,
)
from budgetsync.domain.events import EventEmitter


class TestPayloads:
    """Tests for payload helpers."""

    def test_merge_lays_set_fields_over_base(self):
        """Test only fields set on the incoming payload replace the base."""
        base = TransactionPayload(amount=Decimal("10.00"), memo="lunch", payee_name="Cafe")
        incoming = TransactionPayload(memo="dinner", flag=Flag.RED)

        merged = merge_payload(base, incoming)

        assert merged == TransactionPayload(
            amount=Decimal("10.00"), memo="dinner", payee_name="Cafe", flag=Flag.RED
        )

    def test_merge_with_none(self):
        payload = AccountPayload(name="Cash")
        assert merge_payload(None, payload) is payload
        assert merge_payload(payload, None) is payload

    def test_payload_fields_skips_unset(self):
        assert payload_fields(AccountPayload(name="Cash", hidden=False)) == {"name": "Cash", "hidden": False}
        assert payload_fields(None) == {}

    def test_dict_conversion_restores_types(self):
        """Test decimals, dates and enums survive a JSON-safe dict."""
        payload = TransactionPayload(
            date=date(2024, 3, 1),
            amount=Decimal("-12.50"),
            cleared=ClearedStatus.CLEARED,
            flag=Flag.ORANGE,
        )

        data = payload_to_dict(payload)

        assert data == {"date": "2024-03-01", "amount": "-12.50", "cleared": "Cleared", "flag": "Orange"}
        assert payload_from_dict(EntityType.TRANSACTION, data) == payload

    def test_payloads_are_immutable(self):
        payload = AccountPayload(name="Cash")
        with pytest.raises(Exception):
            payload.name = "Wallet"


class TestPendingChange:
    """Tests for PendingChange records."""

    def test_record_defaults(self):
        """Test older records without optional keys still load."""
        change = PendingChange.from_record(
            {
                "id": "c1",
                "entity_type": "payee",
                "action": "delete",
                "entity_id": "p1",
                "payload": None,
            }
        )

        assert change.action == ChangeAction.DELETE
        assert change.revision == 1
        assert change.entity_name == ""
        assert change.key == (EntityType.PAYEE, "p1")


class TestEventEmitter:
    """Tests for the publish/subscribe helper."""

    def test_unsubscribe(self):
        emitter = EventEmitter()
        seen = []
        unsubscribe = emitter.subscribe(seen.append)

        emitter.emit(1)
        unsubscribe()
        emitter.emit(2)

        assert seen == [1]
        assert len(emitter) == 0

    def test_listener_may_unsubscribe_itself(self):
        """Test removing a listener during emit does not skip the others."""
        emitter = EventEmitter()
        seen = []
        unsubscribe = None

        def once(value):
            seen.append(("once", value))
            unsubscribe()

        unsubscribe = emitter.subscribe(once)
        emitter.subscribe(lambda value: seen.append(("always", value)))

        emitter.emit("x")
        emitter.emit("y")

        assert seen == [("once", "x"), ("always", "x"), ("always", "y")]
