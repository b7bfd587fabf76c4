"""
Pydantic schemas for request/response validation in the Inventory service.

These schemas define the structure of data for API requests and responses.
Business rules (positive quantities, non-negative prices, stock levels) are
enforced by the service layer so every caller gets the same errors.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from .models import TransactionKind, TransactionStatus


class ItemBase(BaseModel):
    """Base schema with common item attributes."""
    name: str
    sku: str
    quantity: int = 0
    price: Decimal = Decimal("0")

class ItemCreate(ItemBase):
    """Schema for creating a new item."""
    pass

class ItemUpdate(ItemBase):
    """Schema for updating an item. Every field is overwritten."""
    pass

class Item(ItemBase):
    """
    Schema for item responses, includes all database fields.

    Attributes:
        id (int): Item's unique identifier
        owner_id (int): ID of the owning user
        created_at (datetime): When the item was created
    """
    id: int
    owner_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionCreate(BaseModel):
    """
    Schema for recording a buy or sell transaction.

    The kind may also be sent as ``type``.
    """
    item_id: int
    kind: str = Field(..., alias="type", description="BUY or SELL (case-insensitive)")
    quantity: int
    price_per_unit: Decimal
    notes: Optional[str] = None

    class Config:
        populate_by_name = True

class NotesUpdate(BaseModel):
    """Schema for attaching notes to a transaction that has none."""
    notes: str

class Transaction(BaseModel):
    """
    Schema for transaction responses.

    Attributes:
        id (int): Transaction identifier
        item_id (int): Item the transaction applies to
        user_id (int): User who performed it (optional)
        kind (TransactionKind): BUY or SELL
        status (TransactionStatus): Lifecycle status
        quantity (int): Units moved
        price_per_unit (Decimal): Unit price
        total_amount (Decimal): quantity * price_per_unit
        transaction_date (datetime): When it happened
        inventory_before (int): Item quantity before
        inventory_after (int): Item quantity after
        notes (str): Optional notes
    """
    id: int
    item_id: int
    user_id: Optional[int] = None
    kind: TransactionKind
    status: TransactionStatus
    quantity: int
    price_per_unit: Decimal
    total_amount: Decimal
    transaction_date: datetime
    inventory_before: int
    inventory_after: int
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class TransactionSummary(BaseModel):
    """Spending, sales and profit totals for one owner."""
    total_spending: Decimal
    total_sales: Decimal
    net_profit: Decimal


class ItemSummary(BaseModel):
    """Condensed item view used by the dashboard lists."""
    id: int
    name: str
    sku: str
    quantity: int
    price: Decimal
    total_value: Decimal

class Dashboard(BaseModel):
    """
    Dashboard statistics for one owner.

    Attributes:
        total_items (int): Number of items
        total_inventory_value (Decimal): Sum of price * quantity
        total_item_quantity (int): Sum of quantities
        low_stock_items_count (int): Items below the low stock threshold
        total_transactions (int): Number of transactions
        total_spending (Decimal): Sum of BUY totals
        total_sales (Decimal): Sum of SELL totals
        net_profit (Decimal): total_sales - total_spending
        recent_transactions (List[Transaction]): Newest transactions
        top_value_items (List[ItemSummary]): Highest value items
        low_stock_items (List[ItemSummary]): Lowest quantity items below the threshold
    """
    total_items: int
    total_inventory_value: Decimal
    total_item_quantity: int
    low_stock_items_count: int
    total_transactions: int
    total_spending: Decimal
    total_sales: Decimal
    net_profit: Decimal
    recent_transactions: List[Transaction] = Field(default_factory=list)
    top_value_items: List[ItemSummary] = Field(default_factory=list)
    low_stock_items: List[ItemSummary] = Field(default_factory=list)
