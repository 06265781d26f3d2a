from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.inventory_items import (
    InventoryAvailability,
    InventoryCategory,
    InventoryCategoryCreate,
    InventoryCategoryUpdate,
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventorySummary,
    InvoiceRequest,
    StockAdjustment,
    StockIn,
)
from schemas.inventory_transactions import InventoryTransaction
from schemas.expenses import Expense
from schemas.batch_inventory_consumption import BatchInventoryDetail
from utils.auth_utils import get_current_user, get_user_identifier
from crud import inventory_items as crud_inventory_items
from crud import expenses as crud_expenses
from crud import batch_inventory_consumption as crud_consumption

router = APIRouter(prefix="/inventory-items", tags=["Inventory Items"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("inventory_items")


@router.post("/", response_model=InventoryItem, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    item: InventoryItemCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Create a new inventory item, optionally with opening stock."""
    new_item = crud_inventory_items.create_inventory_item(db=db, item=item, changed_by=get_user_identifier(user))
    logger.info(f"Inventory item '{new_item.name}' created by user {get_user_identifier(user)}")
    return new_item


@router.get("/", response_model=List[InventoryItem])
def read_inventory_items(
    skip: int = 0,
    limit: int = 100,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Retrieve inventory items, optionally filtered by category or a name/SKU/description search."""
    return crud_inventory_items.get_inventory_items(db, category_id=category_id, search=search, skip=skip, limit=limit)


@router.get("/categories", response_model=List[InventoryCategory])
def read_inventory_categories(db: Session = Depends(get_db)):
    return crud_inventory_items.get_inventory_categories(db)


@router.post("/categories", response_model=InventoryCategory, status_code=status.HTTP_201_CREATED)
def create_inventory_category(
    category: InventoryCategoryCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    return crud_inventory_items.create_inventory_category(db, category, changed_by=get_user_identifier(user))


@router.patch("/categories/{category_id}", response_model=InventoryCategory)
def update_inventory_category(
    category_id: int,
    category: InventoryCategoryUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    return crud_inventory_items.update_inventory_category(db, category_id, category, changed_by=get_user_identifier(user))


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_category(category_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Delete an unused category. Categories that still have items are refused with 409."""
    crud_inventory_items.delete_inventory_category(db, category_id, changed_by=get_user_identifier(user))
    return None


@router.get("/low-stock", response_model=List[InventoryItem])
def read_low_stock_items(db: Session = Depends(get_db)):
    return crud_inventory_items.get_low_stock_items(db)


@router.get("/expiry-alerts", response_model=List[InventoryItem])
def read_expiry_alerts(within_days: int = Query(30, ge=0), db: Session = Depends(get_db)):
    return crud_inventory_items.get_expiry_alerts(db, within_days=within_days)


@router.get("/summary", response_model=InventorySummary)
def read_inventory_summary(within_days: int = Query(30, ge=0), db: Session = Depends(get_db)):
    return crud_inventory_items.get_inventory_summary(db, within_days=within_days)


@router.get("/transactions", response_model=List[InventoryTransaction])
def read_inventory_transactions(
    item_id: Optional[int] = None,
    transaction_type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="Start date cannot be after the end date")
    return crud_inventory_items.get_inventory_transactions(
        db, item_id=item_id, transaction_type=transaction_type, start_date=start_date, end_date=end_date
    )


@router.get("/{item_id}", response_model=InventoryItem)
def read_inventory_item(item_id: int, db: Session = Depends(get_db)):
    """Retrieve a single inventory item by ID."""
    db_item = crud_inventory_items.get_inventory_item(db=db, item_id=item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return db_item


@router.patch("/{item_id}", response_model=InventoryItem)
def update_inventory_item(
    item_id: int,
    item: InventoryItemUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    """Update descriptive fields and thresholds. Stock, invoiced quantity and cost are ledger-managed."""
    return crud_inventory_items.update_inventory_item(db, item_id, item, changed_by=get_user_identifier(user))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    crud_inventory_items.delete_inventory_item(db, item_id, changed_by=get_user_identifier(user))
    logger.info(f"Inventory item {item_id} deleted by user {get_user_identifier(user)}")
    return None


@router.get("/{item_id}/availability", response_model=InventoryAvailability)
def read_availability(item_id: int, db: Session = Depends(get_db)):
    return crud_inventory_items.get_availability(db, item_id)


@router.post("/{item_id}/stock-in", response_model=InventoryItem)
def add_stock(item_id: int, stock: StockIn, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_inventory_items.add_stock(
        db, item_id, stock.quantity, stock.unit_cost,
        reference_type=stock.reference_type, reference_id=stock.reference_id, batch_id=stock.batch_id,
        notes=stock.notes, changed_by=get_user_identifier(user),
    )


@router.post("/{item_id}/adjust", response_model=InventoryItem)
def adjust_stock(item_id: int, adjustment: StockAdjustment, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Correct the physical count after a stock take."""
    return crud_inventory_items.adjust_stock(
        db, item_id, adjustment.new_quantity, notes=adjustment.notes, changed_by=get_user_identifier(user)
    )


@router.post("/{item_id}/invoice", response_model=InventoryItem)
def invoice_quantity(item_id: int, request: InvoiceRequest, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_inventory_items.add_invoiced_quantity(
        db, item_id, request.quantity,
        reference_type=request.reference_type, reference_id=request.reference_id, batch_id=request.batch_id,
        notes=request.notes, changed_by=get_user_identifier(user),
    )


@router.post("/{item_id}/release", response_model=InventoryItem)
def release_quantity(item_id: int, request: InvoiceRequest, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_inventory_items.release_invoiced_quantity(
        db, item_id, request.quantity,
        reference_type=request.reference_type, reference_id=request.reference_id,
        notes=request.notes, changed_by=get_user_identifier(user),
    )


@router.get("/{item_id}/accounting-records", response_model=List[Expense])
def read_accounting_records(item_id: int, db: Session = Depends(get_db)):
    """Expenses that invoiced this item."""
    return crud_expenses.get_inventory_accounting_records(db, item_id)


@router.get("/{item_id}/consumption", response_model=List[BatchInventoryDetail])
def read_consumption_records(item_id: int, db: Session = Depends(get_db)):
    """Batches that drew on this item."""
    return crud_consumption.get_inventory_consumption_records(db, item_id)
