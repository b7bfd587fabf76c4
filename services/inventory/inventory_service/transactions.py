"""
Transaction processing for the Inventory service.

Buy and sell operations change an item's quantity and append an immutable
transaction record with before/after snapshots. Both writes happen in one
database transaction: either the item and its record are committed together
or neither is.

The item row is re-read under a row lock and written back with a
compare-and-set on the quantity that was read, so two concurrent sales of the
same item can never both pass the stock check.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

from . import models
from .errors import (
    ConcurrentUpdateError,
    InsufficientInventoryError,
    InvalidKindError,
    LedgerError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 1000
MAX_UPDATE_ATTEMPTS = 3
CENT = Decimal("0.01")
# Limits of the Numeric(10, 2) price and Numeric(14, 2) total columns
MAX_PRICE = Decimal("100000000")
MAX_TOTAL = Decimal("1000000000000")


def validate_quantity(quantity) -> int:
    """
    Validate a transaction quantity.

    Args:
        quantity: Requested number of units

    Returns:
        The quantity as an int

    Raises:
        ValidationError: if quantity is not a positive whole number
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity", "Quantity must be a whole number")
    if quantity <= 0:
        raise ValidationError("quantity", "Quantity must be greater than 0")
    return quantity


def validate_price(value, field: str = "price_per_unit") -> Decimal:
    """
    Validate a money amount and convert it to Decimal.

    Args:
        value: Price as Decimal, int, float or numeric string
        field: Field name reported in the error

    Returns:
        The price as a Decimal

    Raises:
        ValidationError: if the price is missing, not a number, negative,
            too large for a price column, or has more than two decimal places
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(field, "Price is required")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(field, f"Price is not a number: {value!r}")
    if not price.is_finite():
        raise ValidationError(field, "Price must be a finite number")
    if price < 0:
        raise ValidationError(field, "Price cannot be negative")
    if price >= MAX_PRICE:
        raise ValidationError(field, f"Price must be less than {MAX_PRICE}")
    if price != price.quantize(CENT):
        raise ValidationError(field, "Price cannot have more than 2 decimal places")
    return price


def validate_unit_price(unit_price) -> Decimal:
    """Validate a transaction's price per unit."""
    return validate_price(unit_price, "price_per_unit")


def validate_notes(notes: Optional[str]) -> Optional[str]:
    """Return notes to store, or None when empty."""
    if not notes:
        return None
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError("notes", f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
    return notes


def validate_total(quantity: int, price: Decimal) -> Decimal:
    """Return quantity * price, rejecting totals the ledger cannot store."""
    total = price * quantity
    if total >= MAX_TOTAL:
        raise ValidationError("quantity", f"Transaction total must be less than {MAX_TOTAL}")
    return total


def parse_kind(kind: Union[models.TransactionKind, str]) -> models.TransactionKind:
    """
    Resolve a transaction kind from an enum member or a case-insensitive name.

    Raises:
        InvalidKindError: for anything other than BUY or SELL
    """
    if isinstance(kind, models.TransactionKind):
        return kind
    if isinstance(kind, str):
        try:
            return models.TransactionKind(kind.strip().upper())
        except ValueError:
            pass
    raise InvalidKindError(kind)


def _apply_quantity_change(
    db: Session,
    item_id: int,
    kind: models.TransactionKind,
    quantity: int,
) -> Tuple[models.Item, int, int]:
    """
    Read the item under lock, check stock and write the new quantity.

    The caller's item object may be stale, so the quantity is always re-read
    from the database. The update only applies if the quantity is still the
    value that was read.

    Returns:
        Tuple of (item, inventory_before, inventory_after)
    """
    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        item = (
            db.query(models.Item)
            .filter(models.Item.id == item_id)
            .populate_existing()
            .with_for_update()
            .one_or_none()
        )
        if item is None:
            raise NotFoundError("Item", item_id)

        before = item.quantity
        if kind == models.TransactionKind.SELL:
            if before < quantity:
                raise InsufficientInventoryError(available=before, requested=quantity)
            after = before - quantity
        else:
            after = before + quantity

        result = db.execute(
            update(models.Item)
            .where(models.Item.id == item_id, models.Item.quantity == before)
            .values(quantity=after)
        )
        if result.rowcount == 1:
            return item, before, after

        logger.warning(f"Item {item_id} changed during {kind.value} (attempt {attempt}), retrying")

    raise ConcurrentUpdateError(item_id)


def _build_transaction(
    item: models.Item,
    kind: models.TransactionKind,
    quantity: int,
    price: Decimal,
    user_id: Optional[int],
    inventory_before: int,
    inventory_after: int,
    notes: Optional[str],
) -> models.Transaction:
    return models.Transaction(
        item=item,
        user_id=user_id,
        kind=kind,
        status=models.TransactionStatus.COMPLETED,
        quantity=quantity,
        price_per_unit=price,
        total_amount=price * quantity,
        transaction_date=datetime.utcnow(),
        inventory_before=inventory_before,
        inventory_after=inventory_after,
        notes=notes,
    )


def _record(
    db: Session,
    item: models.Item,
    kind: models.TransactionKind,
    quantity: int,
    price: Decimal,
    user_id: Optional[int],
    notes: Optional[str],
) -> models.Transaction:
    item_id = item.id
    try:
        locked_item, before, after = _apply_quantity_change(db, item_id, kind, quantity)
        transaction = _build_transaction(locked_item, kind, quantity, price, user_id, before, after, notes)
        db.add(transaction)
        db.commit()
    except LedgerError as e:
        db.rollback()
        logger.warning(f"Rejected {kind.value} on item {item_id}: {e.message}")
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Failed to record {kind.value} on item {item_id}, rolled back")
        raise

    db.refresh(transaction)
    logger.info(
        f"Recorded {kind.value} #{transaction.id} on item {item_id}: "
        f"{quantity} x {price} ({before} -> {after})"
    )
    return transaction


def process_buy(
    db: Session,
    item: models.Item,
    quantity: int,
    unit_price,
    user_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> models.Transaction:
    """
    Process a BUY transaction, increasing the item's quantity.

    Args:
        db: Database session
        item: Item being purchased (only its id is trusted)
        quantity: Number of units to buy (must be positive)
        unit_price: Purchase price per unit (must be non-negative)
        user_id: ID of the user making the purchase
        notes: Optional notes stored with the transaction

    Returns:
        The committed transaction record

    Raises:
        ValidationError: if quantity, price or notes are invalid
    """
    quantity = validate_quantity(quantity)
    price = validate_unit_price(unit_price)
    notes = validate_notes(notes)
    validate_total(quantity, price)
    return _record(db, item, models.TransactionKind.BUY, quantity, price, user_id, notes)


def process_sell(
    db: Session,
    item: models.Item,
    quantity: int,
    unit_price,
    user_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> models.Transaction:
    """
    Process a SELL transaction, decreasing the item's quantity.

    Args:
        db: Database session
        item: Item being sold (only its id is trusted)
        quantity: Number of units to sell (must be positive and <= available)
        unit_price: Sale price per unit (must be non-negative)
        user_id: ID of the user making the sale
        notes: Optional notes stored with the transaction

    Returns:
        The committed transaction record

    Raises:
        ValidationError: if quantity, price or notes are invalid
        InsufficientInventoryError: if the item has fewer units than requested
    """
    quantity = validate_quantity(quantity)
    price = validate_unit_price(unit_price)
    notes = validate_notes(notes)
    validate_total(quantity, price)
    return _record(db, item, models.TransactionKind.SELL, quantity, price, user_id, notes)


def process_transaction(
    db: Session,
    item: models.Item,
    kind: Union[models.TransactionKind, str],
    quantity: int,
    unit_price,
    user_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> models.Transaction:
    """
    Process a buy or sell transaction based on its kind.

    Main entry point for the API layer, which must already have checked
    that ``item`` belongs to the acting user.

    Raises:
        InvalidKindError: if kind is not BUY or SELL
    """
    kind = parse_kind(kind)
    if kind == models.TransactionKind.BUY:
        return process_buy(db, item, quantity, unit_price, user_id=user_id, notes=notes)
    return process_sell(db, item, quantity, unit_price, user_id=user_id, notes=notes)


def attach_notes(db: Session, transaction_id: int, owner_id: int, notes: str) -> models.Transaction:
    """
    Attach notes to a recorded transaction that has none yet.

    This is the only change allowed on a completed transaction.

    Raises:
        NotFoundError: if the transaction does not exist or is not owned
        ValidationError: if notes are empty, too long, or already set
    """
    notes = validate_notes(notes)
    if notes is None:
        raise ValidationError("notes", "Notes cannot be empty")

    transaction = (
        db.query(models.Transaction)
        .join(models.Item)
        .filter(models.Transaction.id == transaction_id, models.Item.owner_id == owner_id)
        .first()
    )
    if transaction is None:
        raise NotFoundError("Transaction", transaction_id)
    if transaction.notes:
        raise ValidationError("notes", "Transaction already has notes")

    transaction.notes = notes
    db.commit()
    db.refresh(transaction)
    return transaction
