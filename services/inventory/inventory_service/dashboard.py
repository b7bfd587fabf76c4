"""
Dashboard statistics for the Inventory service.

Read-only aggregation over an owner's items and transactions.
"""
from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.orm import Session

from . import cache, crud, models, schemas

LOW_STOCK_THRESHOLD = 10
RECENT_TRANSACTIONS_LIMIT = 10
TOP_ITEMS_LIMIT = 5


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


def _item_summary(item: models.Item) -> schemas.ItemSummary:
    return schemas.ItemSummary(
        id=item.id,
        name=item.name,
        sku=item.sku,
        quantity=item.quantity,
        price=item.price,
        total_value=_money(item.price * item.quantity),
    )


def get_dashboard(db: Session, owner_id: int) -> schemas.Dashboard:
    """
    Compute the dashboard for one owner.

    Args:
        db: Database session
        owner_id: ID of the requesting user

    Returns:
        Dashboard schema with inventory and transaction statistics
    """
    items = db.query(models.Item).filter(models.Item.owner_id == owner_id)
    item_value = models.Item.price * models.Item.quantity

    total_items = items.count()
    total_value = items.with_entities(func.coalesce(func.sum(item_value), 0)).scalar()
    total_quantity = items.with_entities(func.coalesce(func.sum(models.Item.quantity), 0)).scalar()
    low_stock = items.filter(models.Item.quantity < LOW_STOCK_THRESHOLD)
    low_stock_count = low_stock.count()

    transactions = (
        db.query(models.Transaction)
        .join(models.Item)
        .filter(models.Item.owner_id == owner_id)
    )
    summary = crud.get_transaction_summary(db, owner_id)

    recent = (
        transactions
        .order_by(models.Transaction.transaction_date.desc(), models.Transaction.id.desc())
        .limit(RECENT_TRANSACTIONS_LIMIT)
        .all()
    )
    top_value = items.order_by(item_value.desc(), models.Item.id).limit(TOP_ITEMS_LIMIT).all()
    lowest = low_stock.order_by(models.Item.quantity.asc(), models.Item.id).limit(TOP_ITEMS_LIMIT).all()

    return schemas.Dashboard(
        total_items=total_items,
        total_inventory_value=_money(total_value),
        total_item_quantity=int(total_quantity or 0),
        low_stock_items_count=low_stock_count,
        total_transactions=transactions.count(),
        total_spending=summary.total_spending,
        total_sales=summary.total_sales,
        net_profit=summary.net_profit,
        recent_transactions=[schemas.Transaction.model_validate(t) for t in recent],
        top_value_items=[_item_summary(i) for i in top_value],
        low_stock_items=[_item_summary(i) for i in lowest],
    )


def get_cached_dashboard(db: Session, owner_id: int) -> schemas.Dashboard:
    """
    Return the owner's dashboard, served from Redis when available.
    """
    cached = cache.get_cache(cache.dashboard_key(owner_id))
    if cached is not None:
        return schemas.Dashboard.model_validate(cached)

    dashboard = get_dashboard(db, owner_id)
    cache.set_cache(cache.dashboard_key(owner_id), dashboard.model_dump(mode="json"))
    return dashboard
