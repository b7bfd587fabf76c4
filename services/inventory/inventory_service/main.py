"""
    Inventory Service API

    This module implements a FastAPI-based microservice for tracking inventory items
    and the buy/sell transactions recorded against them, with PostgreSQL persistence.

    The service exposes:
    - CRUD endpoints for the current user's items
    - Transaction endpoints: record a buy or sell, browse history, summaries
    - Dashboard endpoint: aggregated inventory and sales statistics
    - CSV exports of items and transactions
    - Health endpoint: Provides service health status for monitoring and orchestration

    Every endpoint except the health check requires a JWT issued by the Users service,
    and only ever sees the data owned by that user.
"""
from typing import List
import csv
import io
import logging
from fastapi import FastAPI, Depends, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from . import auth, cache, crud, dashboard, models, schemas, transactions
from .config import LOG_LEVEL
from .database import engine, get_db
from .errors import LedgerError, NotFoundError

logging.basicConfig(level=LOG_LEVEL)

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="inventory-service")


@app.exception_handler(LedgerError)
async def handle_ledger_error(request: Request, exc: LedgerError):
    """Translate domain errors into JSON responses with their status code."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _csv_response(header: List[str], rows, filename: str) -> StreamingResponse:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(header)
    writer.writerows(rows)
    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@app.get("/healthz", response_model=dict)
def health():
    """
    Health check endpoint for the inventory service.

    Returns:
        dict: A dictionary containing the health status of the service.
            - status (str): "healthy" if the service is operational.

    Example:
        GET /healthz
        Response: {"status": "healthy"}
    """
    return {"status": "healthy"}


# ---- Items ----

@app.get("/items", response_model=List[schemas.Item])
def list_items(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    List the current user's items with pagination.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100)
        db: Database session (injected)
        current_user: Current authenticated user (injected)

    Returns:
        List of item objects
    """
    return crud.get_items(db, owner_id=current_user.id, skip=skip, limit=limit)

@app.get("/items/export/csv")
def export_items_csv(
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Export the current user's items to CSV.

    Returns:
        CSV file with columns: id, name, sku, quantity, price, created_at
    """
    items = crud.get_items(db, owner_id=current_user.id, skip=0, limit=10000)
    rows = (
        [item.id, item.name, item.sku, item.quantity, item.price, item.created_at.isoformat()]
        for item in items
    )
    return _csv_response(['id', 'name', 'sku', 'quantity', 'price', 'created_at'], rows, "items.csv")

@app.get("/items/{item_id}", response_model=schemas.Item)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Get one of the current user's items.

    Raises:
        NotFoundError: 404 if the item does not exist or belongs to someone else
    """
    db_item = crud.get_item(db, item_id=item_id, owner_id=current_user.id)
    if db_item is None:
        raise NotFoundError("Item", item_id)
    return db_item

@app.post("/items", response_model=schemas.Item, status_code=status.HTTP_201_CREATED)
def create_item(
    item: schemas.ItemCreate,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Create an item owned by the current user.

    Raises:
        ValidationError: 400 if name or SKU is blank, a value is negative,
            or the SKU already exists
    """
    db_item = crud.create_item(db, item=item, owner_id=current_user.id)
    cache.invalidate_dashboard(current_user.id)
    return db_item

@app.put("/items/{item_id}", response_model=schemas.Item)
def update_item(
    item_id: int,
    item: schemas.ItemUpdate,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Overwrite one of the current user's items.

    Raises:
        NotFoundError: 404 if the item is not found
        ValidationError: 400 if the new values are invalid
    """
    db_item = crud.update_item(db, item_id=item_id, item=item, owner_id=current_user.id)
    cache.invalidate_dashboard(current_user.id)
    return db_item

@app.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Delete one of the current user's items and its transactions.

    Deleting an unknown item also answers 204.
    """
    if crud.delete_item(db, item_id=item_id, owner_id=current_user.id):
        cache.invalidate_dashboard(current_user.id)


# ---- Transactions ----

@app.get("/transactions", response_model=List[schemas.Transaction])
def list_transactions(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    List the current user's transactions, newest first.
    """
    return crud.get_transactions(db, owner_id=current_user.id, skip=skip, limit=limit)

@app.get("/transactions/summary", response_model=schemas.TransactionSummary)
def get_transaction_summary(
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Total spending, total sales and net profit of the current user.
    """
    return crud.get_transaction_summary(db, owner_id=current_user.id)

@app.get("/transactions/export/csv")
def export_transactions_csv(
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Export the current user's transaction history to CSV.
    """
    history = crud.get_transactions(db, owner_id=current_user.id, skip=0, limit=10000)
    header = [
        'id', 'item_id', 'kind', 'status', 'quantity', 'price_per_unit', 'total_amount',
        'inventory_before', 'inventory_after', 'transaction_date', 'notes'
    ]
    rows = (
        [
            t.id, t.item_id, t.kind.value, t.status.value, t.quantity, t.price_per_unit,
            t.total_amount, t.inventory_before, t.inventory_after,
            t.transaction_date.isoformat(), t.notes or ''
        ]
        for t in history
    )
    return _csv_response(header, rows, "transactions.csv")

@app.get("/transactions/item/{item_id}", response_model=List[schemas.Transaction])
def list_item_transactions(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    History of one of the current user's items, newest first.

    Raises:
        NotFoundError: 404 if the item is not found
    """
    return crud.get_item_transactions(db, item_id=item_id, owner_id=current_user.id)

@app.get("/transactions/{transaction_id}", response_model=schemas.Transaction)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Get one of the current user's transactions.
    """
    transaction = crud.get_transaction(db, transaction_id=transaction_id, owner_id=current_user.id)
    if transaction is None:
        raise NotFoundError("Transaction", transaction_id)
    return transaction

@app.post("/transactions", response_model=schemas.Transaction, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: schemas.TransactionCreate,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Record a buy or sell against one of the current user's items.

    The item quantity update and the transaction record are committed together.

    Example:
        POST /transactions
        {"item_id": 1, "kind": "SELL", "quantity": 10, "price_per_unit": "50.00",
         "notes": "Sold to Customer ABC"}

    Raises:
        NotFoundError: 404 if the item is not found
        InvalidKindError: 400 if kind is not BUY or SELL
        ValidationError: 400 for a non-positive quantity or negative price
        InsufficientInventoryError: 400 when selling more than is in stock
    """
    item = crud.get_item(db, item_id=payload.item_id, owner_id=current_user.id)
    if item is None:
        raise NotFoundError("Item", payload.item_id)

    transaction = transactions.process_transaction(
        db,
        item,
        payload.kind,
        payload.quantity,
        payload.price_per_unit,
        user_id=current_user.id,
        notes=payload.notes,
    )
    cache.invalidate_dashboard(current_user.id)
    return transaction

@app.patch("/transactions/{transaction_id}/notes", response_model=schemas.Transaction)
def attach_transaction_notes(
    transaction_id: int,
    payload: schemas.NotesUpdate,
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Attach notes to a transaction recorded without any.
    """
    transaction = transactions.attach_notes(
        db, transaction_id=transaction_id, owner_id=current_user.id, notes=payload.notes
    )
    cache.invalidate_dashboard(current_user.id)
    return transaction


# ---- Dashboard ----

@app.get("/dashboard", response_model=schemas.Dashboard)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: auth.CurrentUser = Depends(auth.get_current_user)
):
    """
    Inventory and transaction statistics of the current user.

    Returns:
        Dashboard with totals, recent transactions, top value items and low stock items
    """
    return dashboard.get_cached_dashboard(db, owner_id=current_user.id)
