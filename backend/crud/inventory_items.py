"""
Inventory ledger.

Keeps current_stock (physical quantity), invoiced_quantity (stock already
claimed by recorded expenses) and unit_cost for every item, and guarantees
0 <= invoiced_quantity <= current_stock after every write.

Stock and reservation checks are part of the UPDATE statement itself
(``WHERE current_stock >= :qty``), so two sessions working on the same item
cannot both pass a check against a stale read.

Reservations are never lost when stock drops below them. The part that no
longer fits is held in unbacked_invoiced_quantity and moves back into
invoiced_quantity as stock returns, so consuming and then restoring a
quantity leaves the item exactly as it was.

stock_in, consume_stock, restore_stock, reserve_invoice_quantity,
release_invoice_quantity and set_stock_level only flush; they are the
building blocks other ledgers compose inside their own transaction.
add_stock, consume_inventory_for_batch, add_invoiced_quantity,
release_invoiced_quantity and adjust_stock wrap them and commit.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
import logging
from typing import Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session, joinedload

from crud.app_config import get_accounting_config
from crud.audit_log import create_audit_log
from database import transaction
from exceptions import (
    ConflictError,
    InsufficientStockError,
    InvoiceCapacityError,
    NotFoundError,
    ValidationError,
)
from models.batch_inventory_consumption import BatchInventoryConsumption
from models.expenses import Expense
from models.inventory_items import InventoryCategory, InventoryItem
from models.inventory_transactions import InventoryTransaction
from schemas.audit_log import AuditLogCreate
from schemas.inventory_items import (
    InventoryCategoryCreate,
    InventoryCategoryUpdate,
    InventoryItemCreate,
    InventoryItemUpdate,
)
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
# Scales of the Numeric columns quantities and unit costs are stored in
QUANTITY_PLACES = Decimal("0.001")
UNIT_COST_PLACES = Decimal("0.0001")


def to_decimal(value, field: str = "quantity", places: Optional[Decimal] = None) -> Decimal:
    """
    Parse value as a finite Decimal.

    With ``places`` the value must already fit that scale: a quantity of
    1.0004 is rejected rather than silently stored as 1.000, so totals
    computed from it match what the database keeps.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if places is not None:
        try:
            fits = result == result.quantize(places)
        except InvalidOperation:
            fits = False
        if not fits:
            raise ValidationError(f"{field} allows at most {-places.as_tuple().exponent} decimal places")
    return result


def require_positive(value, field: str = "quantity", places: Optional[Decimal] = QUANTITY_PLACES) -> Decimal:
    result = to_decimal(value, field, places)
    if result <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return result


def require_non_negative(value, field: str, places: Optional[Decimal] = QUANTITY_PLACES) -> Decimal:
    result = to_decimal(value, field, places)
    if result < 0:
        raise ValidationError(f"{field} must be greater than or equal to 0")
    return result


def require_unit_cost(value, field: str = "unit_cost") -> Decimal:
    return require_non_negative(value, field, UNIT_COST_PLACES)


# ==================== CATEGORIES ====================

def get_inventory_categories(db: Session):
    return db.query(InventoryCategory).order_by(InventoryCategory.name).all()


def get_inventory_category(db: Session, category_id: int):
    return db.query(InventoryCategory).filter(InventoryCategory.id == category_id).first()


def get_inventory_category_or_raise(db: Session, category_id: int) -> InventoryCategory:
    category = get_inventory_category(db, category_id)
    if category is None:
        raise NotFoundError("Inventory category", category_id)
    return category


def _ensure_unique_category(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(InventoryCategory).filter(InventoryCategory.name == name)
    if exclude_id is not None:
        query = query.filter(InventoryCategory.id != exclude_id)
    if query.first():
        raise ConflictError(f"Inventory category '{name}' already exists")


def create_inventory_category(db: Session, category: InventoryCategoryCreate, changed_by: Optional[str] = None) -> InventoryCategory:
    if not category.name.strip():
        raise ValidationError("name is required")
    _ensure_unique_category(db, category.name)
    db_category = InventoryCategory(**category.model_dump(), created_by=changed_by, updated_by=changed_by)
    with transaction(db):
        db.add(db_category)
    db.refresh(db_category)
    logger.info(f"Inventory category '{db_category.name}' created by {changed_by}")
    return db_category


def update_inventory_category(db: Session, category_id: int, category: InventoryCategoryUpdate,
                              changed_by: Optional[str] = None) -> InventoryCategory:
    db_category = get_inventory_category_or_raise(db, category_id)
    update_data = category.model_dump(exclude_unset=True)
    if update_data.get("name") is not None:
        _ensure_unique_category(db, update_data["name"], exclude_id=category_id)

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_category)
        for key, value in update_data.items():
            setattr(db_category, key, value)
        db_category.updated_by = changed_by
        db.flush()
        create_audit_log(db, AuditLogCreate(
            table_name='inventory_categories',
            record_id=category_id,
            changed_by=changed_by,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_category)
        ))
    db.refresh(db_category)
    return db_category


def delete_inventory_category(db: Session, category_id: int, changed_by: Optional[str] = None) -> bool:
    db_category = get_inventory_category_or_raise(db, category_id)
    if db.query(InventoryItem.id).filter(InventoryItem.category_id == category_id).first():
        raise ConflictError("Inventory category still has items and cannot be deleted.")

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_category)
        db.delete(db_category)
        create_audit_log(db, AuditLogCreate(
            table_name='inventory_categories',
            record_id=category_id,
            changed_by=changed_by,
            action='DELETE',
            old_values=old_values,
            new_values=None
        ))
    logger.info(f"Inventory category {category_id} deleted by {changed_by}")
    return True


# ==================== READ PATH ====================

def get_inventory_item(db: Session, item_id: int):
    return db.query(InventoryItem).filter(InventoryItem.id == item_id).first()


def get_inventory_item_or_raise(db: Session, item_id: int) -> InventoryItem:
    item = get_inventory_item(db, item_id)
    if item is None:
        raise NotFoundError("Inventory item", item_id)
    return item


def _reload(db: Session, item_id: int) -> InventoryItem:
    """Fresh row state after a bulk UPDATE bypassed the identity map."""
    return db.query(InventoryItem).populate_existing().filter(InventoryItem.id == item_id).one()


def get_inventory_items(db: Session, category_id: Optional[int] = None, search: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = db.query(InventoryItem).options(joinedload(InventoryItem.category))
    if category_id is not None:
        query = query.filter(InventoryItem.category_id == category_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            InventoryItem.name.ilike(pattern),
            InventoryItem.sku.ilike(pattern),
            InventoryItem.description.ilike(pattern),
        ))
    return query.order_by(InventoryItem.name).offset(skip).limit(limit).all()


def get_availability(db: Session, item_id: int) -> dict:
    item = get_inventory_item_or_raise(db, item_id)
    return {
        "inventory_item_id": item.id,
        "current_stock": item.current_stock,
        "invoiced_quantity": item.invoiced_quantity,
        "unbacked_invoiced_quantity": item.unbacked_invoiced_quantity,
        "available_for_consumption": item.current_stock,
        "available_for_invoice": max(ZERO, item.current_stock - item.invoiced_quantity),
    }


def get_low_stock_items(db: Session):
    return db.query(InventoryItem).filter(
        InventoryItem.current_stock <= InventoryItem.minimum_stock
    ).order_by((InventoryItem.minimum_stock - InventoryItem.current_stock).desc()).all()


def get_expiry_alerts(db: Session, within_days: int = 30, today: Optional[date] = None):
    today = today or date.today()
    return db.query(InventoryItem).filter(
        InventoryItem.expiry_date.isnot(None),
        InventoryItem.expiry_date <= today + timedelta(days=within_days),
    ).order_by(InventoryItem.expiry_date.asc()).all()


def get_inventory_summary(db: Session, within_days: int = 30) -> dict:
    total_items = db.query(func.count(InventoryItem.id)).scalar() or 0
    total_value = ZERO
    for stock, unit_cost in db.query(InventoryItem.current_stock, InventoryItem.unit_cost).all():
        total_value += (stock or ZERO) * (unit_cost or ZERO)
    return {
        "total_items": total_items,
        "low_stock_count": len(get_low_stock_items(db)),
        "expiry_count": len(get_expiry_alerts(db, within_days)),
        "total_value": total_value,
    }


def get_inventory_transactions(db: Session, item_id: Optional[int] = None, transaction_type: Optional[str] = None,
                               start_date: Optional[date] = None, end_date: Optional[date] = None):
    query = db.query(InventoryTransaction)
    if item_id is not None:
        query = query.filter(InventoryTransaction.inventory_item_id == item_id)
    if transaction_type:
        query = query.filter(InventoryTransaction.transaction_type == transaction_type)
    if start_date:
        query = query.filter(func.date(InventoryTransaction.transaction_date) >= start_date)
    if end_date:
        query = query.filter(func.date(InventoryTransaction.transaction_date) <= end_date)
    return query.order_by(InventoryTransaction.transaction_date.desc(), InventoryTransaction.id.desc()).all()


# ==================== LEDGER PRIMITIVES (flush only) ====================

def _backed(claims, stock):
    """Part of the outstanding reservations the stock can cover."""
    return case((claims > stock, stock), else_=claims)


def _unbacked(claims, stock):
    return case((claims > stock, claims - stock), else_=0)


def _rebalance(item: InventoryItem):
    """Re-split an item's reservations after current_stock was set in Python."""
    claims = (item.invoiced_quantity or ZERO) + (item.unbacked_invoiced_quantity or ZERO)
    item.invoiced_quantity = min(claims, item.current_stock)
    item.unbacked_invoiced_quantity = claims - item.invoiced_quantity


def _record_transaction(db: Session, item: InventoryItem, transaction_type: str, quantity: Decimal,
                        old_quantity: Decimal, new_quantity: Decimal, unit_cost: Optional[Decimal] = None,
                        reference_type: Optional[str] = None, reference_id: Optional[int] = None,
                        batch_id: Optional[int] = None, notes: Optional[str] = None,
                        changed_by: Optional[str] = None) -> InventoryTransaction:
    entry = InventoryTransaction(
        inventory_item_id=item.id,
        transaction_type=transaction_type,
        quantity=quantity,
        unit_cost=unit_cost,
        total_cost=quantity * unit_cost if unit_cost is not None else None,
        old_quantity=old_quantity,
        new_quantity=new_quantity,
        reference_type=reference_type,
        reference_id=reference_id,
        batch_id=batch_id,
        notes=notes,
        changed_by=changed_by,
    )
    db.add(entry)
    return entry


def stock_in(db: Session, item_id: int, quantity, unit_cost, reference_type: str = "purchase",
             reference_id: Optional[int] = None, batch_id: Optional[int] = None,
             notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    quantity = require_positive(quantity)
    unit_cost = require_unit_cost(unit_cost)
    costing_method = get_accounting_config(db).inventory_costing_method

    db.flush()
    item = db.query(InventoryItem).populate_existing().filter(InventoryItem.id == item_id).with_for_update().first()
    if item is None:
        raise NotFoundError("Inventory item", item_id)

    old_stock = item.current_stock or ZERO
    current_cost = item.unit_cost or ZERO
    if costing_method == "weighted_average" and old_stock + quantity > 0:
        new_cost = ((old_stock * current_cost) + (quantity * unit_cost)) / (old_stock + quantity)
        item.unit_cost = new_cost.quantize(UNIT_COST_PLACES)
    else:
        item.unit_cost = unit_cost
    item.current_stock = old_stock + quantity
    _rebalance(item)
    item.updated_by = changed_by

    _record_transaction(db, item, "in", quantity, old_stock, item.current_stock, unit_cost=unit_cost,
                        reference_type=reference_type, reference_id=reference_id, batch_id=batch_id,
                        notes=notes, changed_by=changed_by)
    db.flush()
    return item


def consume_stock(db: Session, item_id: int, quantity, batch_id: Optional[int] = None,
                  reference_type: str = "batch_consumption", reference_id: Optional[int] = None,
                  notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    quantity = require_positive(quantity)
    db.flush()

    remaining = InventoryItem.current_stock - quantity
    claims = InventoryItem.invoiced_quantity + InventoryItem.unbacked_invoiced_quantity
    updated = db.query(InventoryItem).filter(
        InventoryItem.id == item_id,
        InventoryItem.current_stock >= quantity,
    ).update({
        InventoryItem.current_stock: remaining,
        InventoryItem.invoiced_quantity: _backed(claims, remaining),
        InventoryItem.unbacked_invoiced_quantity: _unbacked(claims, remaining),
        InventoryItem.updated_by: changed_by,
    }, synchronize_session=False)

    if not updated:
        item = get_inventory_item_or_raise(db, item_id)
        logger.warning(f"Rejected consumption of {quantity} {item.unit} of '{item.name}': only {item.current_stock} in stock")
        raise InsufficientStockError(item_id, item.current_stock, quantity)

    item = _reload(db, item_id)
    _record_transaction(db, item, "out", quantity, item.current_stock + quantity, item.current_stock,
                        unit_cost=item.unit_cost, reference_type=reference_type, reference_id=reference_id,
                        batch_id=batch_id, notes=notes, changed_by=changed_by)
    db.flush()
    return item


def restore_stock(db: Session, item_id: int, quantity, batch_id: Optional[int] = None,
                  reference_type: str = "batch_consumption", reference_id: Optional[int] = None,
                  notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    """Exact inverse of consume_stock: stock and reservations return, unit_cost is untouched."""
    quantity = require_positive(quantity)
    db.flush()

    restored = InventoryItem.current_stock + quantity
    claims = InventoryItem.invoiced_quantity + InventoryItem.unbacked_invoiced_quantity
    updated = db.query(InventoryItem).filter(InventoryItem.id == item_id).update({
        InventoryItem.current_stock: restored,
        InventoryItem.invoiced_quantity: _backed(claims, restored),
        InventoryItem.unbacked_invoiced_quantity: _unbacked(claims, restored),
        InventoryItem.updated_by: changed_by,
    }, synchronize_session=False)
    if not updated:
        raise NotFoundError("Inventory item", item_id)

    item = _reload(db, item_id)
    _record_transaction(db, item, "in", quantity, item.current_stock - quantity, item.current_stock,
                        unit_cost=item.unit_cost, reference_type=reference_type, reference_id=reference_id,
                        batch_id=batch_id, notes=notes, changed_by=changed_by)
    db.flush()
    return item


def reserve_invoice_quantity(db: Session, item_id: int, quantity, reference_type: str = "invoice",
                             reference_id: Optional[int] = None, batch_id: Optional[int] = None,
                             notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    quantity = require_positive(quantity)
    db.flush()

    # Capacity is only left when nothing is unbacked, so the new quantity is fully backed
    updated = db.query(InventoryItem).filter(
        InventoryItem.id == item_id,
        InventoryItem.current_stock - InventoryItem.invoiced_quantity >= quantity,
    ).update({
        InventoryItem.invoiced_quantity: InventoryItem.invoiced_quantity + quantity,
        InventoryItem.updated_by: changed_by,
    }, synchronize_session=False)

    if not updated:
        item = get_inventory_item_or_raise(db, item_id)
        available = max(ZERO, item.current_stock - item.invoiced_quantity)
        logger.warning(f"Rejected invoicing {quantity} of '{item.name}': only {available} available for invoice")
        raise InvoiceCapacityError(item_id, available, quantity)

    item = _reload(db, item_id)
    _record_transaction(db, item, "invoice", quantity, item.invoiced_quantity - quantity, item.invoiced_quantity,
                        reference_type=reference_type, reference_id=reference_id, batch_id=batch_id,
                        notes=f"Invoiced: {notes or 'Accounting entry'}", changed_by=changed_by)
    db.flush()
    return item


def release_invoice_quantity(db: Session, item_id: int, quantity, reference_type: str = "invoice",
                             reference_id: Optional[int] = None, batch_id: Optional[int] = None,
                             notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    """Give back a reservation. Never takes the reserved total below zero."""
    quantity = require_positive(quantity)
    get_inventory_item_or_raise(db, item_id)
    db.flush()
    old_invoiced = _reload(db, item_id).invoiced_quantity

    claims = InventoryItem.invoiced_quantity + InventoryItem.unbacked_invoiced_quantity
    remaining_claims = case((claims >= quantity, claims - quantity), else_=0)
    db.query(InventoryItem).filter(InventoryItem.id == item_id).update({
        InventoryItem.invoiced_quantity: _backed(remaining_claims, InventoryItem.current_stock),
        InventoryItem.unbacked_invoiced_quantity: _unbacked(remaining_claims, InventoryItem.current_stock),
        InventoryItem.updated_by: changed_by,
    }, synchronize_session=False)

    item = _reload(db, item_id)
    _record_transaction(db, item, "release", quantity, old_invoiced, item.invoiced_quantity,
                        reference_type=reference_type, reference_id=reference_id, batch_id=batch_id,
                        notes=f"Released: {notes or 'Accounting entry'}", changed_by=changed_by)
    db.flush()
    return item


def set_stock_level(db: Session, item_id: int, new_quantity, notes: Optional[str] = None,
                    changed_by: Optional[str] = None) -> InventoryItem:
    new_quantity = require_non_negative(new_quantity, "new_quantity")
    db.flush()
    item = db.query(InventoryItem).populate_existing().filter(InventoryItem.id == item_id).with_for_update().first()
    if item is None:
        raise NotFoundError("Inventory item", item_id)

    old_stock = item.current_stock
    item.current_stock = new_quantity
    _rebalance(item)
    item.updated_by = changed_by

    _record_transaction(db, item, "adjustment", new_quantity - old_stock, old_stock, new_quantity,
                        reference_type="adjustment", notes=notes, changed_by=changed_by)
    db.flush()
    return item


# ==================== PUBLIC OPERATIONS (commit) ====================

def add_stock(db: Session, item_id: int, quantity, unit_cost, reference_type: str = "purchase",
              reference_id: Optional[int] = None, batch_id: Optional[int] = None,
              notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    with transaction(db):
        item = stock_in(db, item_id, quantity, unit_cost, reference_type=reference_type, reference_id=reference_id,
                        batch_id=batch_id, notes=notes, changed_by=changed_by)
    db.refresh(item)
    logger.info(f"Added {quantity} {item.unit} of '{item.name}' at {unit_cost} by {changed_by}")
    return item


def consume_inventory_for_batch(db: Session, item_id: int, quantity, batch_id: int,
                                notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    with transaction(db):
        item = consume_stock(db, item_id, quantity, batch_id=batch_id, reference_id=batch_id,
                             notes=f"Consumed for batch production: {notes or 'Production usage'}",
                             changed_by=changed_by)
    db.refresh(item)
    logger.info(f"Consumed {quantity} {item.unit} of '{item.name}' for batch {batch_id} by {changed_by}")
    return item


def add_invoiced_quantity(db: Session, item_id: int, quantity, reference_type: str = "invoice",
                          reference_id: Optional[int] = None, batch_id: Optional[int] = None,
                          notes: Optional[str] = None, changed_by: Optional[str] = None) -> InventoryItem:
    with transaction(db):
        item = reserve_invoice_quantity(db, item_id, quantity, reference_type=reference_type,
                                        reference_id=reference_id, batch_id=batch_id, notes=notes,
                                        changed_by=changed_by)
    db.refresh(item)
    logger.info(f"Invoiced {quantity} of '{item.name}' ({reference_type} {reference_id}) by {changed_by}")
    return item


def release_invoiced_quantity(db: Session, item_id: int, quantity, reference_type: str = "invoice",
                              reference_id: Optional[int] = None, notes: Optional[str] = None,
                              changed_by: Optional[str] = None) -> InventoryItem:
    with transaction(db):
        item = release_invoice_quantity(db, item_id, quantity, reference_type=reference_type,
                                        reference_id=reference_id, notes=notes, changed_by=changed_by)
    db.refresh(item)
    return item


def adjust_stock(db: Session, item_id: int, new_quantity, notes: Optional[str] = None,
                 changed_by: Optional[str] = None) -> InventoryItem:
    with transaction(db):
        item = set_stock_level(db, item_id, new_quantity, notes=notes, changed_by=changed_by)
    db.refresh(item)
    logger.info(f"Stock of '{item.name}' adjusted to {new_quantity} by {changed_by}")
    return item


# ==================== ITEM CRUD ====================

def _ensure_unique(db: Session, name: Optional[str], sku: Optional[str], exclude_id: Optional[int] = None):
    if name is not None:
        query = db.query(InventoryItem).filter(InventoryItem.name == name)
        if exclude_id is not None:
            query = query.filter(InventoryItem.id != exclude_id)
        if query.first():
            raise ConflictError("Inventory item with this name already exists")
    if sku:
        query = db.query(InventoryItem).filter(InventoryItem.sku == sku)
        if exclude_id is not None:
            query = query.filter(InventoryItem.id != exclude_id)
        if query.first():
            raise ConflictError("Inventory item with this SKU already exists")


def new_inventory_item(db: Session, data: dict, changed_by: Optional[str] = None) -> InventoryItem:
    """Insert an item with zero stock (flush only)."""
    _ensure_unique(db, data.get("name"), data.get("sku"))
    if data.get("category_id") is not None:
        get_inventory_category_or_raise(db, data["category_id"])
    for field in ("minimum_stock", "maximum_stock"):
        if data.get(field) is not None:
            require_non_negative(data[field], field)
    db_item = InventoryItem(**data, current_stock=ZERO, invoiced_quantity=ZERO, unbacked_invoiced_quantity=ZERO,
                            unit_cost=ZERO, created_by=changed_by, updated_by=changed_by)
    db.add(db_item)
    db.flush()
    return db_item


def create_inventory_item(db: Session, item: InventoryItemCreate, changed_by: Optional[str] = None) -> InventoryItem:
    data = item.model_dump(exclude={"opening_stock", "unit_cost"})
    with transaction(db):
        db_item = new_inventory_item(db, data, changed_by)
        if item.opening_stock:
            stock_in(db, db_item.id, item.opening_stock, item.unit_cost or ZERO,
                     notes="Initial stock entry", changed_by=changed_by)
    db.refresh(db_item)
    return db_item


def update_inventory_item(db: Session, item_id: int, item: InventoryItemUpdate, changed_by: Optional[str] = None) -> InventoryItem:
    db_item = get_inventory_item_or_raise(db, item_id)
    update_data = item.model_dump(exclude_unset=True)
    _ensure_unique(db, update_data.get("name"), update_data.get("sku"), exclude_id=item_id)
    if update_data.get("category_id") is not None:
        get_inventory_category_or_raise(db, update_data["category_id"])
    for field in ("minimum_stock", "maximum_stock"):
        if update_data.get(field) is not None:
            require_non_negative(update_data[field], field)

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_item)
        for key, value in update_data.items():
            setattr(db_item, key, value)
        db_item.updated_by = changed_by
        db.flush()
        create_audit_log(db, AuditLogCreate(
            table_name='inventory_items',
            record_id=item_id,
            changed_by=changed_by,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_item)
        ))
    db.refresh(db_item)
    return db_item


def delete_inventory_item(db: Session, item_id: int, changed_by: Optional[str] = None) -> bool:
    db_item = get_inventory_item_or_raise(db, item_id)

    referenced = (
        db.query(Expense.id).filter(Expense.inventory_item_id == item_id).first()
        or db.query(BatchInventoryConsumption.id).filter(BatchInventoryConsumption.inventory_item_id == item_id).first()
    )
    if referenced:
        raise ConflictError("Inventory item is referenced by expenses or batch consumption and cannot be deleted.")

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_item)
        db.query(InventoryTransaction).filter(InventoryTransaction.inventory_item_id == item_id).delete(synchronize_session=False)
        db.delete(db_item)
        create_audit_log(db, AuditLogCreate(
            table_name='inventory_items',
            record_id=item_id,
            changed_by=changed_by,
            action='DELETE',
            old_values=old_values,
            new_values=None
        ))
    return True
