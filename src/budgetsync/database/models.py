"""SQLAlchemy models for the local budget store."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    String,
    Integer,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Budget account model."""

    __tablename__ = "accounts"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=True)
    on_budget = Column(Boolean, default=True, nullable=False)
    closed = Column(Boolean, default=False, nullable=False)
    hidden = Column(Boolean, default=False, nullable=False)
    is_tombstone = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="account")


class Category(Base):
    """Budget category model."""

    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    master_category_id = Column(String, nullable=True)
    sortable_index = Column(Integer, nullable=True)
    hidden = Column(Boolean, default=False, nullable=False)
    is_tombstone = Column(Boolean, default=False, nullable=False)


class Payee(Base):
    """Payee model."""

    __tablename__ = "payees"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    is_tombstone = Column(Boolean, default=False, nullable=False)


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payee_id = Column(String, nullable=True)
    payee_name = Column(String, nullable=True)
    category_id = Column(String, nullable=True)
    memo = Column(String, nullable=True)
    cleared = Column(String, default="Uncleared", nullable=False)
    flag = Column(String, nullable=True)
    transfer_account_id = Column(String, nullable=True)
    reconciled_on = Column(Date, nullable=True)
    is_tombstone = Column(Boolean, default=False, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions")


class BudgetLine(Base):
    """Amount budgeted for a category in one month."""

    __tablename__ = "budget_lines"

    id = Column(String, primary_key=True)
    category_id = Column(String, nullable=False)
    month = Column(String(7), nullable=False)
    budgeted = Column(Numeric(12, 2), default=0, nullable=False)
    is_tombstone = Column(Boolean, default=False, nullable=False)

    __table_args__ = (UniqueConstraint("category_id", "month", name="uq_category_month"),)


class ScheduledTransaction(Base):
    """Recurring scheduled transaction model."""

    __tablename__ = "scheduled_transactions"

    id = Column(String, primary_key=True)
    account_id = Column(String, nullable=False)
    date_first = Column(Date, nullable=False)
    date_next = Column(Date, nullable=False)
    frequency = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payee_id = Column(String, nullable=True)
    payee_name = Column(String, nullable=True)
    category_id = Column(String, nullable=True)
    memo = Column(String, nullable=True)
    flag = Column(String, nullable=True)
    is_tombstone = Column(Boolean, default=False, nullable=False)


class Device(Base):
    """This device's registration in the budget."""

    __tablename__ = "devices"

    id = Column(String, primary_key=True)
    short_id = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class KeyValue(Base):
    """Opaque key-value storage for local state such as the pending ledger."""

    __tablename__ = "key_values"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
