import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from crud.audit_log import create_audit_log
from crud.inventory_items import require_positive, require_unit_cost, restore_stock
from database import transaction
from exceptions import ConflictError, NotFoundError, ValidationError
from models.batch import Batch, BatchCategory, BatchProduct, BATCH_STATUSES
from models.batch_inventory_consumption import BatchInventoryConsumption
from models.expenses import Expense
from models.income import Income
from models.products import Product
from schemas.audit_log import AuditLogCreate
from schemas.batch import BatchCategoryCreate, BatchCreate, BatchUpdate, BatchProductCreate, BatchProductUpdate
from utils import sqlalchemy_to_dict
from utils.identifiers import generate_batch_number as random_batch_number, sequential_batch_number

logger = logging.getLogger(__name__)


def _validate_status(status: Optional[str]):
    if status is not None and status not in BATCH_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(BATCH_STATUSES)}")


# ==================== BATCH CATEGORIES ====================

def get_batch_categories(db: Session):
    return db.query(BatchCategory).order_by(BatchCategory.name).all()


def get_batch_category(db: Session, category_id: int):
    return db.query(BatchCategory).filter(BatchCategory.id == category_id).first()


def create_batch_category(db: Session, category: BatchCategoryCreate, changed_by: str = None):
    code = category.code.strip().upper()
    if not code:
        raise ValidationError("code is required")
    existing = db.query(BatchCategory).filter(
        (BatchCategory.name == category.name) | (BatchCategory.code == code)
    ).first()
    if existing:
        raise ConflictError("Batch category with this name or code already exists")

    db_category = BatchCategory(**category.model_dump(exclude={"code"}), code=code,
                                created_by=changed_by, updated_by=changed_by)
    with transaction(db):
        db.add(db_category)
    db.refresh(db_category)
    return db_category


def generate_batch_number(db: Session, category_id: Optional[int] = None) -> dict:
    """
    Next batch number and default name.

    Within a category the number is CODE-NNN, NNN being one more than the
    category's batch count, bumped past numbers already in use. Without a
    category a random BATCH-<ms>-<rand> number is returned.
    """
    if category_id is None:
        number = random_batch_number()
        return {"batch_number": number, "batch_name": number}

    category = get_batch_category(db, category_id)
    if category is None:
        raise NotFoundError("Batch category", category_id)

    sequence = db.query(Batch).filter(Batch.batch_category_id == category_id).count() + 1
    number = sequential_batch_number(category.code, sequence)
    while db.query(Batch.id).filter(Batch.batch_number == number).first():
        sequence += 1
        number = sequential_batch_number(category.code, sequence)
    return {"batch_number": number, "batch_name": f"{number} - {category.name}"}


# ==================== BATCHES ====================

def get_batch_by_id(db: Session, batch_id: int):
    return db.query(Batch).options(
        selectinload(Batch.batch_products).selectinload(BatchProduct.product)
    ).filter(Batch.id == batch_id).first()


def get_batch_or_raise(db: Session, batch_id: int) -> Batch:
    db_batch = get_batch_by_id(db, batch_id)
    if db_batch is None:
        raise NotFoundError("Batch", batch_id)
    return db_batch


def get_all_batches(db: Session, status: Optional[str] = None, skip: int = 0, limit: int = 100):
    query = db.query(Batch).options(
        selectinload(Batch.batch_products).selectinload(BatchProduct.product)
    )
    if status:
        query = query.filter(Batch.status == status)
    return query.order_by(Batch.production_date.desc(), Batch.id.desc()).offset(skip).limit(limit).all()


def create_batch(db: Session, batch: BatchCreate, changed_by: str = None):
    _validate_status(batch.status)
    data = batch.model_dump()

    if data.get("batch_category_id") is not None and get_batch_category(db, data["batch_category_id"]) is None:
        raise NotFoundError("Batch category", data["batch_category_id"])

    if not data.get("batch_number"):
        generated = generate_batch_number(db, data.get("batch_category_id"))
        data["batch_number"] = generated["batch_number"]
        if not data.get("batch_name"):
            data["batch_name"] = generated["batch_name"]

    if db.query(Batch.id).filter(Batch.batch_number == data["batch_number"]).first():
        raise ConflictError(f"Batch number {data['batch_number']} already exists")

    db_batch = Batch(**data, created_by=changed_by, updated_by=changed_by)
    with transaction(db):
        db.add(db_batch)
    db.refresh(db_batch)
    logger.info(f"Batch {db_batch.batch_number} created by {changed_by}")
    return db_batch


def update_batch(db: Session, batch_id: int, batch_data: BatchUpdate, changed_by: str = None):
    db_batch = get_batch_or_raise(db, batch_id)
    update_data = batch_data.model_dump(exclude_unset=True)
    _validate_status(update_data.get("status"))

    new_number = update_data.get("batch_number")
    if new_number is not None and new_number != db_batch.batch_number:
        if db.query(Batch.id).filter(Batch.batch_number == new_number).first():
            raise ConflictError(f"Batch number {new_number} already exists")
    if update_data.get("batch_category_id") is not None and get_batch_category(db, update_data["batch_category_id"]) is None:
        raise NotFoundError("Batch category", update_data["batch_category_id"])

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_batch)
        for key, value in update_data.items():
            setattr(db_batch, key, value)
        db_batch.updated_by = changed_by
        db.flush()
        create_audit_log(db, AuditLogCreate(
            table_name='batches',
            record_id=batch_id,
            changed_by=changed_by,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_batch)
        ))
    db.refresh(db_batch)
    return db_batch


def delete_batch(db: Session, batch_id: int, changed_by: str = None):
    """
    Delete a batch with its products and consumption rows.

    Consumed quantities go back to stock, and expenses/income that pointed at
    the batch are kept but detached.
    """
    db_batch = get_batch_or_raise(db, batch_id)

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_batch)
        consumptions = db.query(BatchInventoryConsumption).filter(
            BatchInventoryConsumption.batch_id == batch_id
        ).all()
        for record in consumptions:
            restore_stock(db, record.inventory_item_id, record.quantity_consumed,
                          batch_id=db_batch.id, reference_id=record.id,
                          notes=f"Batch {db_batch.batch_number} deleted",
                          changed_by=changed_by)
            db.delete(record)

        db.query(Expense).filter(Expense.batch_id == batch_id).update(
            {Expense.batch_id: None}, synchronize_session=False)
        db.query(Income).filter(Income.batch_id == batch_id).update(
            {Income.batch_id: None}, synchronize_session=False)
        db.flush()

        db.delete(db_batch)
        create_audit_log(db, AuditLogCreate(
            table_name='batches',
            record_id=batch_id,
            changed_by=changed_by,
            action='DELETE',
            old_values=old_values,
            new_values=None
        ))
    logger.info(f"Batch {old_values['batch_number']} deleted by {changed_by}; {len(consumptions)} consumption rows restored to stock")
    return True


# ==================== BATCH PRODUCTS ====================

def get_batch_products(db: Session, batch_id: int):
    get_batch_or_raise(db, batch_id)
    return db.query(BatchProduct).options(selectinload(BatchProduct.product)).filter(
        BatchProduct.batch_id == batch_id
    ).order_by(BatchProduct.id).all()


def add_product_to_batch(db: Session, batch_id: int, item: BatchProductCreate, changed_by: str = None):
    get_batch_or_raise(db, batch_id)
    if db.query(Product.id).filter(Product.id == item.product_id).first() is None:
        raise NotFoundError("Product", item.product_id)
    quantity = require_positive(item.quantity)
    unit_cost = require_unit_cost(item.unit_cost)

    db_item = BatchProduct(
        batch_id=batch_id,
        product_id=item.product_id,
        quantity=quantity,
        unit_cost=unit_cost,
        total_cost=quantity * unit_cost,
        created_by=changed_by,
        updated_by=changed_by,
    )
    with transaction(db):
        db.add(db_item)
    db.refresh(db_item)
    return db_item


def update_batch_product(db: Session, batch_product_id: int, item: BatchProductUpdate, changed_by: str = None):
    db_item = db.query(BatchProduct).filter(BatchProduct.id == batch_product_id).first()
    if db_item is None:
        raise NotFoundError("Batch product", batch_product_id)

    update_data = item.model_dump(exclude_unset=True)
    if update_data.get("quantity") is not None:
        db_item.quantity = require_positive(update_data["quantity"])
    if update_data.get("unit_cost") is not None:
        db_item.unit_cost = require_unit_cost(update_data["unit_cost"])
    db_item.total_cost = Decimal(db_item.quantity) * Decimal(db_item.unit_cost)
    db_item.updated_by = changed_by

    with transaction(db):
        db.flush()
    db.refresh(db_item)
    return db_item


def remove_product_from_batch(db: Session, batch_product_id: int, changed_by: str = None):
    db_item = db.query(BatchProduct).filter(BatchProduct.id == batch_product_id).first()
    if db_item is None:
        raise NotFoundError("Batch product", batch_product_id)
    with transaction(db):
        db.delete(db_item)
    logger.info(f"Batch product {batch_product_id} removed by {changed_by}")
    return True
