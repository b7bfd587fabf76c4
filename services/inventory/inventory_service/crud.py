"""
CRUD (Create, Read, Update, Delete) operations for the Inventory service.

Every query is scoped to an owner: a record that belongs to someone else
behaves exactly like a record that does not exist.

Item quantities normally change only through the transaction processor, which
writes them with a locked compare-and-set. ``update_item`` is a plain full
overwrite: a quantity sent with an update replaces whatever a sale or purchase
committed in the meantime, and no ledger record is written for the difference.
"""
import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from . import models, schemas
from .errors import NotFoundError, ValidationError
from .transactions import validate_price

logger = logging.getLogger(__name__)


def _validate_item_fields(db: Session, item: schemas.ItemBase, owner_id: int, item_id: Optional[int] = None) -> None:
    """
    Check the business rules shared by item create and update.

    Raises:
        ValidationError: naming the first offending field
    """
    if not item.name or not item.name.strip():
        raise ValidationError("name", "name is required")
    if not item.sku or not item.sku.strip():
        raise ValidationError("sku", "sku is required")
    if item.quantity < 0:
        raise ValidationError("quantity", "Quantity cannot be negative")
    validate_price(item.price, "price")

    existing = get_item_by_sku(db, item.sku, owner_id)
    if existing is not None and existing.id != item_id:
        raise ValidationError("sku", "SKU already exists")


def get_item(db: Session, item_id: int, owner_id: int) -> Optional[models.Item]:
    """
    Retrieve a single item by ID if it belongs to the owner.

    Args:
        db: Database session
        item_id: ID of the item to retrieve
        owner_id: ID of the requesting user

    Returns:
        Item object or None if not found or not owned
    """
    return (
        db.query(models.Item)
        .filter(models.Item.id == item_id, models.Item.owner_id == owner_id)
        .first()
    )

def get_item_by_sku(db: Session, sku: str, owner_id: int) -> Optional[models.Item]:
    """
    Retrieve one of the owner's items by SKU.

    Args:
        db: Database session
        sku: SKU to search for
        owner_id: ID of the requesting user

    Returns:
        Item object or None if not found
    """
    return (
        db.query(models.Item)
        .filter(models.Item.sku == sku, models.Item.owner_id == owner_id)
        .first()
    )

def get_items(db: Session, owner_id: int, skip: int = 0, limit: int = 100) -> List[models.Item]:
    """
    Retrieve the owner's items with pagination.

    Args:
        db: Database session
        owner_id: ID of the requesting user
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return

    Returns:
        List of Item objects ordered by ID
    """
    return (
        db.query(models.Item)
        .filter(models.Item.owner_id == owner_id)
        .order_by(models.Item.id)
        .offset(skip)
        .limit(limit)
        .all()
    )

def create_item(db: Session, item: schemas.ItemCreate, owner_id: int) -> models.Item:
    """
    Create a new item owned by the given user.

    Args:
        db: Database session
        item: Item data to create
        owner_id: ID of the owning user

    Returns:
        Created Item object

    Raises:
        ValidationError: if name or SKU is blank, quantity or price is
            negative, or the SKU is already used by this owner
    """
    _validate_item_fields(db, item, owner_id)
    db_item = models.Item(
        name=item.name,
        sku=item.sku,
        quantity=item.quantity,
        price=item.price,
        owner_id=owner_id,
    )
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    logger.info(f"Created item {db_item.id} ({db_item.sku}) for owner {owner_id}")
    return db_item

def update_item(db: Session, item_id: int, item: schemas.ItemUpdate, owner_id: int) -> models.Item:
    """
    Overwrite name, SKU, quantity and price of an owned item.

    The quantity is not compare-and-set: it replaces any quantity recorded by
    transactions since the caller last read the item.

    Args:
        db: Database session
        item_id: ID of the item to update
        item: New item data (all fields are written)
        owner_id: ID of the requesting user

    Returns:
        Updated Item object

    Raises:
        NotFoundError: if no owned item matches
        ValidationError: if the new data breaks an item rule
    """
    db_item = get_item(db, item_id, owner_id)
    if db_item is None:
        raise NotFoundError("Item", item_id)

    _validate_item_fields(db, item, owner_id, item_id=item_id)
    db_item.name = item.name
    db_item.sku = item.sku
    db_item.quantity = item.quantity
    db_item.price = item.price

    db.commit()
    db.refresh(db_item)
    return db_item

def delete_item(db: Session, item_id: int, owner_id: int) -> bool:
    """
    Delete an owned item together with its transactions.

    Deleting an item that does not exist or is not owned is a no-op.

    Returns:
        True if an item was deleted, False otherwise
    """
    db_item = get_item(db, item_id, owner_id)
    if db_item is None:
        return False

    db.delete(db_item)
    db.commit()
    logger.info(f"Deleted item {item_id} for owner {owner_id}")
    return True


def _owned_transactions(db: Session, owner_id: int):
    return (
        db.query(models.Transaction)
        .join(models.Item)
        .filter(models.Item.owner_id == owner_id)
    )

def get_transactions(db: Session, owner_id: int, skip: int = 0, limit: int = 100) -> List[models.Transaction]:
    """
    Retrieve the owner's transactions, newest first.

    Args:
        db: Database session
        owner_id: ID of the requesting user
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return

    Returns:
        List of Transaction objects
    """
    return (
        _owned_transactions(db, owner_id)
        .order_by(models.Transaction.transaction_date.desc(), models.Transaction.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_transaction(db: Session, transaction_id: int, owner_id: int) -> Optional[models.Transaction]:
    """Retrieve one of the owner's transactions by ID, or None."""
    return (
        _owned_transactions(db, owner_id)
        .filter(models.Transaction.id == transaction_id)
        .first()
    )

def get_item_transactions(db: Session, item_id: int, owner_id: int) -> List[models.Transaction]:
    """
    Retrieve the history of an owned item, newest first.

    Raises:
        NotFoundError: if the item does not exist or is not owned
    """
    if get_item(db, item_id, owner_id) is None:
        raise NotFoundError("Item", item_id)
    return (
        db.query(models.Transaction)
        .filter(models.Transaction.item_id == item_id)
        .order_by(models.Transaction.transaction_date.desc(), models.Transaction.id.desc())
        .all()
    )

def _sum_total(db: Session, owner_id: int, kind: models.TransactionKind) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(models.Transaction.total_amount), 0))
        .select_from(models.Transaction)
        .join(models.Item)
        .filter(models.Item.owner_id == owner_id, models.Transaction.kind == kind)
        .scalar()
    )
    return Decimal(str(total or 0)).quantize(Decimal("0.01"))

def get_transaction_summary(db: Session, owner_id: int) -> schemas.TransactionSummary:
    """
    Total spending (BUY), total sales (SELL) and net profit for an owner.
    """
    spending = _sum_total(db, owner_id, models.TransactionKind.BUY)
    sales = _sum_total(db, owner_id, models.TransactionKind.SELL)
    return schemas.TransactionSummary(
        total_spending=spending,
        total_sales=sales,
        net_profit=sales - spending,
    )
