import logging
import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from crud.audit_log import create_audit_log
from crud.inventory_items import (
    get_inventory_item,
    new_inventory_item,
    release_invoice_quantity,
    require_non_negative,
    require_positive,
    require_unit_cost,
    reserve_invoice_quantity,
    stock_in,
    ZERO,
)
from database import transaction
from exceptions import InvoiceCapacityError, NotFoundError, ValidationError
from models.accounting_heads import AccountingHead, ExpenseCategory
from models.batch import Batch
from models.expenses import Expense
from models.inventory_items import InventoryItem
from models.products import Product
from schemas.audit_log import AuditLogCreate
from schemas.expenses import ExpenseCreate, ExpenseUpdate, InventoryPurchaseCreate
from utils import sqlalchemy_to_dict
from utils.identifiers import generate_expense_number

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
INVENTORY_TOKEN = re.compile(r"inventory_item_id:(\d+)")

REFERENCES = (
    ("accounting_head_id", AccountingHead, "Accounting head"),
    ("expense_category_id", ExpenseCategory, "Expense category"),
    ("batch_id", Batch, "Batch"),
    ("product_id", Product, "Product"),
    ("inventory_item_id", InventoryItem, "Inventory item"),
)


def validate_references(db: Session, data: dict, references=REFERENCES):
    """Raise NotFoundError for the first foreign key in data that points nowhere."""
    for field, model, label in references:
        value = data.get(field)
        if value is not None and db.query(model.id).filter(model.id == value).first() is None:
            raise NotFoundError(label, value)


def validate_amounts(data: dict):
    if "amount" in data:
        if data["amount"] is None:
            raise ValidationError("amount is required")
        data["amount"] = require_non_negative(data["amount"], "amount", CENTS)
    if data.get("quantity") is not None:
        data["quantity"] = require_positive(data["quantity"])


def get_expense(db: Session, expense_id: int):
    return db.query(Expense).options(
        selectinload(Expense.accounting_head),
        selectinload(Expense.batch),
    ).filter(Expense.id == expense_id).first()


def get_expense_or_raise(db: Session, expense_id: int) -> Expense:
    db_expense = get_expense(db, expense_id)
    if db_expense is None:
        raise NotFoundError("Expense", expense_id)
    return db_expense


def get_expenses(
    db: Session,
    accounting_head_id: Optional[int] = None,
    batch_id: Optional[int] = None,
    product_id: Optional[int] = None,
    inventory_item_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(Expense).options(
        selectinload(Expense.accounting_head),
        selectinload(Expense.batch),
    )
    if accounting_head_id is not None:
        query = query.filter(Expense.accounting_head_id == accounting_head_id)
    if batch_id is not None:
        query = query.filter(Expense.batch_id == batch_id)
    if product_id is not None:
        query = query.filter(Expense.product_id == product_id)
    if inventory_item_id is not None:
        query = query.filter(Expense.inventory_item_id == inventory_item_id)
    if date_from:
        query = query.filter(Expense.expense_date >= date_from)
    if date_to:
        query = query.filter(Expense.expense_date <= date_to)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Expense.description.ilike(pattern), Expense.vendor_name.ilike(pattern)))
    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).offset(skip).limit(limit).all()


def get_inventory_accounting_records(db: Session, inventory_item_id: int):
    if get_inventory_item(db, inventory_item_id) is None:
        raise NotFoundError("Inventory item", inventory_item_id)
    return db.query(Expense).options(selectinload(Expense.accounting_head)).filter(
        Expense.inventory_item_id == inventory_item_id
    ).order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def _check_invoice_capacity(db: Session, item_id: int, quantity: Decimal):
    item = get_inventory_item(db, item_id)
    if item is None:
        raise NotFoundError("Inventory item", item_id)
    available = max(ZERO, item.current_stock - item.invoiced_quantity)
    if quantity > available:
        logger.warning(f"Expense rejected: {quantity} of '{item.name}' requested, {available} available for invoice")
        raise InvoiceCapacityError(item_id, available, quantity)


def _new_expense(db: Session, data: dict, changed_by: Optional[str]) -> Expense:
    db_expense = Expense(
        **data,
        expense_number=generate_expense_number(),
        invoiced_quantity=ZERO,
        created_by=changed_by,
        updated_by=changed_by,
    )
    db.add(db_expense)
    db.flush()
    return db_expense


def _reserve_for_expense(db: Session, db_expense: Expense, changed_by: Optional[str]):
    reserve_invoice_quantity(
        db, db_expense.inventory_item_id, db_expense.quantity,
        reference_type="expense", reference_id=db_expense.id, batch_id=db_expense.batch_id,
        notes=db_expense.description, changed_by=changed_by,
    )
    db_expense.invoiced_quantity = db_expense.quantity


def _release_for_expense(db: Session, db_expense: Expense, changed_by: Optional[str]):
    if db_expense.inventory_item_id is None or not db_expense.invoiced_quantity:
        return
    release_invoice_quantity(
        db, db_expense.inventory_item_id, db_expense.invoiced_quantity,
        reference_type="expense", reference_id=db_expense.id, batch_id=db_expense.batch_id,
        notes=db_expense.description, changed_by=changed_by,
    )
    db_expense.invoiced_quantity = ZERO


def create_expense(db: Session, expense: ExpenseCreate, changed_by: str = None) -> Expense:
    """
    Record an expense. When it names an inventory item and a quantity, that
    quantity is invoiced against the item in the same transaction as the insert.
    """
    data = expense.model_dump()
    validate_amounts(data)
    validate_references(db, data)

    reserves = data.get("inventory_item_id") is not None and data.get("quantity") is not None
    if reserves:
        _check_invoice_capacity(db, data["inventory_item_id"], data["quantity"])

    with transaction(db):
        db_expense = _new_expense(db, data, changed_by)
        if reserves:
            _reserve_for_expense(db, db_expense, changed_by)

    logger.info(f"Expense {db_expense.expense_number} of {db_expense.amount} created by {changed_by}")
    return get_expense(db, db_expense.id)


def update_expense(db: Session, expense_id: int, expense: ExpenseUpdate, changed_by: str = None) -> Expense:
    db_expense = get_expense_or_raise(db, expense_id)
    update_data = expense.model_dump(exclude_unset=True)
    validate_amounts(update_data)
    validate_references(db, update_data)

    new_item_id = update_data.get("inventory_item_id", db_expense.inventory_item_id)
    new_quantity = update_data.get("quantity", db_expense.quantity)
    target = new_quantity if new_item_id is not None and new_quantity is not None else ZERO
    moves_reservation = (
        new_item_id != db_expense.inventory_item_id
        or Decimal(target) != Decimal(db_expense.invoiced_quantity or ZERO)
    )

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_expense)
        if moves_reservation:
            _release_for_expense(db, db_expense, changed_by)
        for key, value in update_data.items():
            setattr(db_expense, key, value)
        db_expense.updated_by = changed_by
        db.flush()
        if moves_reservation and target:
            _reserve_for_expense(db, db_expense, changed_by)
        db.flush()
        create_audit_log(db, AuditLogCreate(
            table_name='expenses',
            record_id=expense_id,
            changed_by=changed_by,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_expense)
        ))

    logger.info(f"Expense {db_expense.expense_number} updated by {changed_by}")
    return get_expense(db, expense_id)


def delete_expense(db: Session, expense_id: int, changed_by: str = None) -> bool:
    """Delete an expense and give back any quantity it holds invoiced."""
    db_expense = get_expense_or_raise(db, expense_id)

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_expense)
        _release_for_expense(db, db_expense, changed_by)
        db.delete(db_expense)
        create_audit_log(db, AuditLogCreate(
            table_name='expenses',
            record_id=expense_id,
            changed_by=changed_by,
            action='DELETE',
            old_values=old_values,
            new_values=None
        ))

    logger.info(f"Expense {old_values['expense_number']} deleted by {changed_by}")
    return True


def record_inventory_purchase(db: Session, purchase: InventoryPurchaseCreate, changed_by: str = None) -> Expense:
    """
    Stock-in plus its expense, as one unit.

    Creates the item first when ``new_item`` is given. The expense amount is
    quantity * unit_cost and the purchased quantity is invoiced against the item.
    """
    if (purchase.inventory_item_id is None) == (purchase.new_item is None):
        raise ValidationError("Provide exactly one of inventory_item_id or new_item")
    quantity = require_positive(purchase.quantity)
    unit_cost = require_unit_cost(purchase.unit_cost)

    data = purchase.model_dump(exclude={"new_item", "quantity", "unit_cost"})
    validate_references(db, data)

    with transaction(db):
        if purchase.new_item is not None:
            item = new_inventory_item(db, purchase.new_item.model_dump(), changed_by)
            data["inventory_item_id"] = item.id
        else:
            item = get_inventory_item(db, purchase.inventory_item_id)

        data.update(
            amount=(quantity * unit_cost).quantize(CENTS, rounding=ROUND_HALF_UP),
            quantity=quantity,
            unit=item.unit,
            description=data.get("description") or f"Purchase of {quantity} {item.unit} {item.name}",
            vendor_name=data.get("vendor_name") or item.supplier_name,
        )
        db_expense = _new_expense(db, data, changed_by)
        stock_in(db, item.id, quantity, unit_cost, reference_type="expense", reference_id=db_expense.id,
                 batch_id=db_expense.batch_id, notes=db_expense.description, changed_by=changed_by)
        _reserve_for_expense(db, db_expense, changed_by)

    logger.info(f"Inventory purchase {db_expense.expense_number}: {quantity} {item.unit} of '{item.name}' at {unit_cost} by {changed_by}")
    return get_expense(db, db_expense.id)


# ==================== LEGACY LINK BACKFILL ====================

def parse_inventory_item_token(description: Optional[str]) -> Optional[int]:
    """Item id from an ``inventory_item_id:<id>`` token in a free-text description."""
    if not description:
        return None
    match = INVENTORY_TOKEN.search(description)
    return int(match.group(1)) if match else None


def backfill_inventory_links(db: Session, changed_by: str = None) -> dict:
    """
    Populate Expense.inventory_item_id from description tokens, once.

    Rows that already have the column set are left alone. The quantity such an
    expense invoiced at the time is recorded as its reservation, capped by what
    the item still has reserved, backed or not.
    """
    stats = {"scanned": 0, "linked": 0, "missing_item": 0}
    unassigned = {}
    candidates = db.query(Expense).filter(
        Expense.inventory_item_id.is_(None),
        Expense.description.like("%inventory_item_id:%"),
    ).all()

    with transaction(db):
        for db_expense in candidates:
            stats["scanned"] += 1
            item_id = parse_inventory_item_token(db_expense.description)
            if item_id is None:
                continue
            item = get_inventory_item(db, item_id)
            if item is None:
                stats["missing_item"] += 1
                logger.warning(f"Expense {db_expense.expense_number} references missing inventory item {item_id}")
                continue
            db_expense.inventory_item_id = item_id
            unassigned.setdefault(item_id, item.total_invoiced_quantity)
            if db_expense.quantity:
                reserved = min(Decimal(db_expense.quantity), unassigned[item_id])
                db_expense.invoiced_quantity = reserved
                unassigned[item_id] -= reserved
            db_expense.updated_by = changed_by
            stats["linked"] += 1

    logger.info(f"Inventory link backfill: {stats}")
    return stats
