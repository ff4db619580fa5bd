"""SQLAlchemy implementation of the budget client.

Stands in for the remote budget store: push() applies pending changes to
local tables, and a key-value table keeps the pending ledger between
command-line invocations.
"""

import json
import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from budgetsync.client.base import BudgetClient
from budgetsync.database.mappers import (
    ORM_MODELS,
    account_to_domain,
    payload_to_columns,
    transaction_to_domain,
    transaction_to_original,
)
from budgetsync.database.models import (
    Account,
    Device,
    KeyValue,
    Transaction,
    create_session_factory,
)
from budgetsync.domain.entities import (
    Account as DomainAccount,
    ChangeAction,
    DeviceIdentity,
    EntityType,
    OriginalTransaction,
    PendingChange,
    Transaction as DomainTransaction,
)
from budgetsync.domain.errors import NotFoundError, ValidationError
from budgetsync.domain.ledger import PendingChangeLedger

log = logging.getLogger(__name__)

LEDGER_KEY = "pending_changes"


class SQLAlchemyBudgetStore(BudgetClient):
    """SQLAlchemy-backed budget store."""

    def __init__(self, database_url: str, read_only: bool = False):
        """Initialize the store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
            read_only: If True, push() is refused
        """
        self.database_url = database_url
        self.read_only = read_only
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    # BudgetClient

    @property
    def can_write(self) -> bool:
        return not self.read_only

    async def push(self, changes: list[PendingChange]) -> None:
        """Apply changes in a single database transaction."""
        if self.read_only:
            raise PermissionError("Budget is read-only")

        session = self._get_session()
        try:
            for change in changes:
                self._apply(session, change)
            session.commit()
        except Exception:
            session.rollback()
            raise
        log.debug("Applied %d change(s) to %s", len(changes), self.database_url)

    def get_transaction_snapshot(self, account_id: str) -> list[DomainTransaction]:
        """Return all live transactions of an account, oldest first."""
        session = self._get_session()
        rows = (
            session.query(Transaction)
            .filter(Transaction.account_id == account_id, Transaction.is_tombstone.is_(False))
            .order_by(Transaction.date, Transaction.id)
            .all()
        )
        return [transaction_to_domain(row) for row in rows]

    def get_device_identity(self) -> Optional[DeviceIdentity]:
        """Return the registered device, if any."""
        device = self._get_session().query(Device).first()
        if device is None:
            return None
        return DeviceIdentity(id=device.id, short_id=device.short_id)

    # Local reads

    def register_device(self) -> DeviceIdentity:
        """Register this device, or return the existing registration."""
        existing = self.get_device_identity()
        if existing is not None:
            return existing
        session = self._get_session()
        device_id = str(uuid.uuid4())
        device = Device(id=device_id, short_id=device_id[:4].upper())
        session.add(device)
        session.commit()
        return DeviceIdentity(id=device.id, short_id=device.short_id)

    def get_account(self, account_id: str) -> Optional[DomainAccount]:
        """Get live account by ID."""
        account = self._get_session().get(Account, account_id)
        if account is None or account.is_tombstone:
            return None
        return account_to_domain(account)

    def list_accounts(self) -> list[DomainAccount]:
        """List live accounts by name."""
        accounts = (
            self._get_session()
            .query(Account)
            .filter(Account.is_tombstone.is_(False))
            .order_by(Account.name)
            .all()
        )
        return [account_to_domain(acc) for acc in accounts]

    def get_transaction(self, transaction_id: str) -> Optional[DomainTransaction]:
        """Get live transaction by ID."""
        row = self._get_session().get(Transaction, transaction_id)
        if row is None or row.is_tombstone:
            return None
        return transaction_to_domain(row)

    def get_original_transaction(self, transaction_id: str) -> Optional[OriginalTransaction]:
        """Get a transaction as installment plan input."""
        row = self._get_session().get(Transaction, transaction_id)
        if row is None or row.is_tombstone:
            return None
        return transaction_to_original(row)

    def entity_exists(self, entity_type: EntityType, entity_id: str) -> bool:
        """Whether a live entity with this id is stored."""
        row = self._get_session().get(ORM_MODELS[EntityType(entity_type)], entity_id)
        return row is not None and not row.is_tombstone

    # Key-value storage

    def get_value(self, key: str) -> Optional[str]:
        row = self._get_session().get(KeyValue, key)
        return row.value if row is not None else None

    def set_value(self, key: str, value: str) -> None:
        session = self._get_session()
        row = session.get(KeyValue, key)
        if row is None:
            session.add(KeyValue(key=key, value=value))
        else:
            row.value = value
        session.commit()

    def load_ledger(self) -> PendingChangeLedger:
        """Load the pending ledger saved by save_ledger (empty if none)."""
        raw = self.get_value(LEDGER_KEY)
        if raw is None:
            return PendingChangeLedger()
        return PendingChangeLedger.from_records(json.loads(raw))

    def save_ledger(self, ledger: PendingChangeLedger) -> None:
        """Persist the pending ledger."""
        self.set_value(LEDGER_KEY, json.dumps(ledger.to_records()))

    # Internals

    def _apply(self, session: Session, change: PendingChange) -> None:
        model = ORM_MODELS[change.entity_type]
        row = session.get(model, change.entity_id)
        label = f"{change.entity_type.value} {change.entity_id}"

        if change.action == ChangeAction.CREATE:
            if row is not None and not row.is_tombstone:
                raise ValidationError(f"Cannot create {label}: it already exists")
            columns = payload_to_columns(change.payload)
            if row is None:
                session.add(model(id=change.entity_id, **columns))
            else:
                for name, value in columns.items():
                    setattr(row, name, value)
                row.is_tombstone = False
        elif row is None or row.is_tombstone:
            raise NotFoundError(f"Cannot {change.action.value} {label}: not found")
        elif change.action == ChangeAction.UPDATE:
            for name, value in payload_to_columns(change.payload).items():
                setattr(row, name, value)
        else:
            row.is_tombstone = True
        session.flush()
