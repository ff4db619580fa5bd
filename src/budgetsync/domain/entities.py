"""Domain model entities for budgetsync.

These are pure data classes representing the offline-editing concepts,
independent of the budget client's storage. Payloads form a closed set:
each entity type has exactly one payload class, so a change carrying the
wrong shape is caught when it is recorded instead of when it is pushed.
"""

import enum
from dataclasses import dataclass, field, fields, replace
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union


class EntityType(str, enum.Enum):
    """Kinds of budget entity a pending change can target."""

    ACCOUNT = "account"
    CATEGORY = "category"
    PAYEE = "payee"
    TRANSACTION = "transaction"
    BUDGET_LINE = "budget_line"
    SCHEDULED_TRANSACTION = "scheduled_transaction"


class ChangeAction(str, enum.Enum):
    """What a pending change does to its entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ClearedStatus(str, enum.Enum):
    """Confidence that a transaction matches bank records."""

    UNCLEARED = "Uncleared"
    CLEARED = "Cleared"
    RECONCILED = "Reconciled"


class Flag(str, enum.Enum):
    """Transaction flag colours."""

    RED = "Red"
    ORANGE = "Orange"
    YELLOW = "Yellow"
    GREEN = "Green"
    BLUE = "Blue"
    PURPLE = "Purple"


# Payloads. Every field defaults to None, meaning "not set"; an update
# payload only carries the fields being changed.


@dataclass(frozen=True)
class AccountPayload:
    """Fields of an account."""

    name: Optional[str] = None
    account_type: Optional[str] = None
    on_budget: Optional[bool] = None
    closed: Optional[bool] = None
    hidden: Optional[bool] = None


@dataclass(frozen=True)
class CategoryPayload:
    """Fields of a budget category."""

    name: Optional[str] = None
    master_category_id: Optional[str] = None
    sortable_index: Optional[int] = None
    hidden: Optional[bool] = None


@dataclass(frozen=True)
class PayeePayload:
    """Fields of a payee."""

    name: Optional[str] = None


@dataclass(frozen=True)
class TransactionPayload:
    """Fields of a transaction."""

    account_id: Optional[str] = None
    reconciled_on: Optional[date] = None
    date: Optional[date] = None
    amount: Optional[Decimal] = None
    payee_id: Optional[str] = None
    payee_name: Optional[str] = None
    category_id: Optional[str] = None
    memo: Optional[str] = None
    cleared: Optional[ClearedStatus] = None
    flag: Optional[Flag] = None
    transfer_account_id: Optional[str] = None


@dataclass(frozen=True)
class BudgetLinePayload:
    """Amount budgeted for a category in one month (YYYY-MM)."""

    category_id: Optional[str] = None
    month: Optional[str] = None
    budgeted: Optional[Decimal] = None


@dataclass(frozen=True)
class ScheduledTransactionPayload:
    """Fields of a recurring scheduled transaction."""

    account_id: Optional[str] = None
    date_first: Optional[date] = None
    date_next: Optional[date] = None
    frequency: Optional[str] = None
    amount: Optional[Decimal] = None
    payee_id: Optional[str] = None
    payee_name: Optional[str] = None
    category_id: Optional[str] = None
    memo: Optional[str] = None
    flag: Optional[Flag] = None


Payload = Union[
    AccountPayload,
    CategoryPayload,
    PayeePayload,
    TransactionPayload,
    BudgetLinePayload,
    ScheduledTransactionPayload,
]

PAYLOAD_TYPES: dict[EntityType, type] = {
    EntityType.ACCOUNT: AccountPayload,
    EntityType.CATEGORY: CategoryPayload,
    EntityType.PAYEE: PayeePayload,
    EntityType.TRANSACTION: TransactionPayload,
    EntityType.BUDGET_LINE: BudgetLinePayload,
    EntityType.SCHEDULED_TRANSACTION: ScheduledTransactionPayload,
}


def merge_payload(base: Optional[Payload], incoming: Optional[Payload]) -> Optional[Payload]:
    """Lay the set fields of ``incoming`` over ``base``.

    Args:
        base: Payload already in the ledger (may be None)
        incoming: Payload of the newer change (may be None)

    Returns:
        Merged payload of the same class as the inputs
    """
    if base is None:
        return incoming
    if incoming is None:
        return base
    updates = {
        f.name: getattr(incoming, f.name)
        for f in fields(incoming)
        if getattr(incoming, f.name) is not None
    }
    return replace(base, **updates)


def payload_fields(payload: Optional[Payload]) -> dict[str, Any]:
    """Return only the fields that are set on a payload."""
    if payload is None:
        return {}
    return {
        f.name: getattr(payload, f.name)
        for f in fields(payload)
        if getattr(payload, f.name) is not None
    }


_DECIMAL_FIELDS = {"amount", "budgeted"}
_DATE_FIELDS = {"date", "date_first", "date_next", "reconciled_on"}


def _to_json_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def payload_to_dict(payload: Optional[Payload]) -> Optional[dict[str, Any]]:
    """Serialize a payload to a JSON-safe dict of its set fields."""
    if payload is None:
        return None
    return {name: _to_json_value(value) for name, value in payload_fields(payload).items()}


def payload_from_dict(entity_type: EntityType, data: Optional[dict[str, Any]]) -> Optional[Payload]:
    """Rebuild a payload from the dict produced by payload_to_dict."""
    if data is None:
        return None
    values: dict[str, Any] = {}
    for name, value in data.items():
        if name in _DECIMAL_FIELDS:
            value = Decimal(value)
        elif name in _DATE_FIELDS:
            value = date.fromisoformat(value)
        elif name == "cleared":
            value = ClearedStatus(value)
        elif name == "flag":
            value = Flag(value)
        values[name] = value
    return PAYLOAD_TYPES[entity_type](**values)


@dataclass(frozen=True)
class NewChange:
    """A mutation the user wants to record in the ledger."""

    entity_type: EntityType
    action: ChangeAction
    entity_id: Optional[str] = None
    entity_name: str = ""
    payload: Optional[Payload] = None


@dataclass(frozen=True)
class PendingChange:
    """A recorded, not yet synchronized mutation.

    ``revision`` starts at 1 and increases each time a later change is
    merged into this entry; ``recorded_at`` is a monotonic clock reading
    used only for ordering and debugging.
    """

    id: str
    entity_type: EntityType
    action: ChangeAction
    entity_id: str
    entity_name: str
    payload: Optional[Payload]
    recorded_at: float
    revision: int = 1

    @property
    def key(self) -> tuple[EntityType, str]:
        return (self.entity_type, self.entity_id)

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict."""
        return {
            "id": self.id,
            "entity_type": self.entity_type.value,
            "action": self.action.value,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "payload": payload_to_dict(self.payload),
            "recorded_at": self.recorded_at,
            "revision": self.revision,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "PendingChange":
        """Rebuild a change from the dict produced by to_record."""
        entity_type = EntityType(record["entity_type"])
        return cls(
            id=record["id"],
            entity_type=entity_type,
            action=ChangeAction(record["action"]),
            entity_id=record["entity_id"],
            entity_name=record.get("entity_name", ""),
            payload=payload_from_dict(entity_type, record.get("payload")),
            recorded_at=record.get("recorded_at", 0.0),
            revision=record.get("revision", 1),
        )


@dataclass(frozen=True)
class Transaction:
    """Read-only transaction row as returned by the budget client."""

    id: str
    account_id: str
    date: date
    amount: Decimal
    cleared: ClearedStatus = ClearedStatus.UNCLEARED
    payee_name: str = ""
    memo: str = ""
    category_id: Optional[str] = None
    flag: Optional[Flag] = None
    is_tombstone: bool = False


@dataclass(frozen=True)
class DeviceIdentity:
    """Identity of this device in the budget's sync folder."""

    id: str
    short_id: str


@dataclass(frozen=True)
class OriginalTransaction:
    """Snapshot of the purchase being split into installments."""

    date: date
    amount: Decimal
    account_id: str
    payee_name: str = ""
    payee_id: Optional[str] = None
    category_id: Optional[str] = None
    category_name: str = ""
    memo: str = ""


@dataclass(frozen=True)
class InstallmentConfig:
    """Input to the installment plan calculator.

    ``start_date`` may be a date or any string parse_date accepts.
    """

    original: OriginalTransaction
    months: int
    start_date: Union[date, str, None]
    counter_category_id: Optional[str] = None


@dataclass(frozen=True)
class InstallmentPlan:
    """Result of splitting a purchase into monthly installments."""

    monthly_amount: Decimal
    total_amount: Decimal
    rounding_adjustment: Decimal
    counter_entry: NewChange
    schedule_entry: NewChange
    payments: tuple[Decimal, ...] = field(default_factory=tuple)

    @property
    def first_payment(self) -> Decimal:
        return self.payments[0]


@dataclass(frozen=True)
class SyncResult:
    """Outcome of flushing the ledger to the budget client."""

    success: bool
    message: str
    changes_applied: int = 0
    error: Optional[Exception] = None


@dataclass(frozen=True)
class Account:
    """Budget account as returned by the local store."""

    id: str
    name: str
    account_type: Optional[str] = None
    on_budget: bool = True
    closed: bool = False
    hidden: bool = False
