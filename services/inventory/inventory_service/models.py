"""
SQLAlchemy ORM models for the Inventory service.

Defines the database schema for items and the transaction ledger.
"""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from .database import Base


class TransactionKind(str, enum.Enum):
    """Direction of a stock movement: BUY adds units, SELL removes them."""
    BUY = "BUY"
    SELL = "SELL"


class TransactionStatus(str, enum.Enum):
    """
    Lifecycle status of a transaction.

    Only COMPLETED is ever produced; the other states are reserved and have
    no transitions defined.
    """
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REVERSED = "REVERSED"


class Item(Base):
    """
    Inventory item owned by a single user.

    Attributes:
        id (int): Primary key, auto-incremented item ID
        name (str): Display name
        sku (str): Stock Keeping Unit, unique per owner
        quantity (int): Units on hand, never negative
        price (Decimal): Unit price
        owner_id (int): ID of the owning user (issued by the Users service)
        created_at (datetime): Timestamp when the item was created
    """
    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("owner_id", "sku", name="uq_items_owner_sku"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    sku = Column(String, index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    owner_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    transactions = relationship(
        "Transaction",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="Transaction.id",
    )


class Transaction(Base):
    """
    Append-only record of a quantity change against one item.

    Attributes:
        id (int): Primary key
        item_id (int): Item the transaction applies to
        user_id (int): User who performed the transaction (optional)
        kind (TransactionKind): BUY or SELL
        status (TransactionStatus): Always COMPLETED for recorded transactions
        quantity (int): Units bought or sold, always positive
        price_per_unit (Decimal): Unit price agreed for this transaction
        total_amount (Decimal): quantity * price_per_unit, fixed at creation
        transaction_date (datetime): Server time of the transaction
        inventory_before (int): Item quantity immediately before
        inventory_after (int): Item quantity immediately after
        notes (str): Optional free text
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    kind = Column(Enum(TransactionKind, name="transaction_kind"), nullable=False)
    status = Column(
        Enum(TransactionStatus, name="transaction_status"),
        nullable=False,
        default=TransactionStatus.COMPLETED,
    )
    quantity = Column(Integer, nullable=False)
    price_per_unit = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)
    transaction_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    inventory_before = Column(Integer, nullable=False)
    inventory_after = Column(Integer, nullable=False)
    notes = Column(String(1000), nullable=True)

    item = relationship("Item", back_populates="transactions")
