import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from crud.inventory_items import (
    consume_stock,
    get_inventory_item,
    require_positive,
    require_unit_cost,
    restore_stock,
)
from database import transaction
from exceptions import NotFoundError, ValidationError
from models.batch import Batch
from models.batch_inventory_consumption import BatchInventoryConsumption
from models.inventory_items import InventoryItem
from schemas.audit_log import AuditLogCreate
from schemas.batch_inventory_consumption import (
    BatchInventoryConsumptionCreate,
    BatchInventoryConsumptionUpdate,
    ConsumptionBase,
)
from utils import local_now, sqlalchemy_to_dict

logger = logging.getLogger(__name__)


def _get_batch(db: Session, batch_id: int) -> Batch:
    db_batch = db.query(Batch).filter(Batch.id == batch_id).first()
    if db_batch is None:
        raise NotFoundError("Batch", batch_id)
    return db_batch


def _get_item(db: Session, item_id: int) -> InventoryItem:
    item = get_inventory_item(db, item_id)
    if item is None:
        raise NotFoundError("Inventory item", item_id)
    return item


def get_consumption(db: Session, consumption_id: int):
    return db.query(BatchInventoryConsumption).filter(BatchInventoryConsumption.id == consumption_id).first()


def _consume_line(db: Session, batch_id: int, line: ConsumptionBase, changed_by: Optional[str]) -> BatchInventoryConsumption:
    """Insert one consumption row and take its quantity out of stock (flush only)."""
    quantity = require_positive(line.quantity_consumed, "quantity_consumed")
    item = _get_item(db, line.inventory_item_id)
    unit_cost = item.unit_cost if line.unit_cost is None else require_unit_cost(line.unit_cost)

    record = BatchInventoryConsumption(
        batch_id=batch_id,
        inventory_item_id=item.id,
        quantity_consumed=quantity,
        unit_cost=unit_cost,
        total_cost=quantity * Decimal(unit_cost),
        consumption_date=line.consumption_date or local_now().date(),
        notes=line.notes,
        created_by=changed_by,
        updated_by=changed_by,
    )
    db.add(record)
    db.flush()
    consume_stock(db, item.id, quantity, batch_id=batch_id, reference_id=record.id,
                  notes=line.notes, changed_by=changed_by)
    return record


def add_batch_inventory_consumption(db: Session, consumption: BatchInventoryConsumptionCreate, changed_by: str = None):
    """Record that a batch used some inventory; the row and the stock decrement commit together."""
    db_batch = _get_batch(db, consumption.batch_id)
    with transaction(db):
        record = _consume_line(db, db_batch.id, consumption, changed_by)
    db.refresh(record)
    logger.info(f"Batch {db_batch.batch_number} consumed {record.quantity_consumed} of item {record.inventory_item_id} by {changed_by}")
    return record


def add_batch_inventory_consumptions(db: Session, batch_id: int, items: List[ConsumptionBase], changed_by: str = None):
    """Multi-line form: either every line is recorded or none is."""
    if not items:
        raise ValidationError("At least one consumption line is required")
    db_batch = _get_batch(db, batch_id)
    with transaction(db):
        records = [_consume_line(db, batch_id, line, changed_by) for line in items]
    for record in records:
        db.refresh(record)
    logger.info(f"Batch {db_batch.batch_number}: {len(records)} consumption lines recorded by {changed_by}")
    return records


def update_batch_inventory_consumption(db: Session, consumption_id: int, consumption: BatchInventoryConsumptionUpdate,
                                       changed_by: str = None):
    """
    Edit a consumption row and move stock by exactly the difference.

    A larger quantity consumes the extra (and can fail for lack of stock), a
    smaller one restores the excess. Switching item restores the old item in
    full and consumes the new quantity from the new item.
    """
    update_data = consumption.model_dump(exclude_unset=True)
    for field in ("inventory_item_id", "quantity_consumed", "consumption_date"):
        if field in update_data and update_data[field] is None:
            raise ValidationError(f"{field} cannot be empty")

    with transaction(db):
        record = db.query(BatchInventoryConsumption).filter(
            BatchInventoryConsumption.id == consumption_id
        ).with_for_update().first()
        if record is None:
            raise NotFoundError("Batch inventory consumption", consumption_id)
        old_values = sqlalchemy_to_dict(record)

        old_item_id = record.inventory_item_id
        old_quantity = Decimal(record.quantity_consumed)
        new_item_id = update_data.get("inventory_item_id", old_item_id)
        new_quantity = require_positive(update_data.get("quantity_consumed", old_quantity), "quantity_consumed")
        stock_meta = dict(batch_id=record.batch_id, reference_id=record.id, notes="Consumption edited", changed_by=changed_by)

        if new_item_id != old_item_id:
            new_item = _get_item(db, new_item_id)
            restore_stock(db, old_item_id, old_quantity, **stock_meta)
            consume_stock(db, new_item_id, new_quantity, **stock_meta)
            if "unit_cost" not in update_data or update_data["unit_cost"] is None:
                record.unit_cost = new_item.unit_cost
        else:
            delta = new_quantity - old_quantity
            if delta > 0:
                consume_stock(db, old_item_id, delta, **stock_meta)
            elif delta < 0:
                restore_stock(db, old_item_id, -delta, **stock_meta)

        if update_data.get("unit_cost") is not None:
            record.unit_cost = require_unit_cost(update_data["unit_cost"])
        record.inventory_item_id = new_item_id
        record.quantity_consumed = new_quantity
        record.total_cost = new_quantity * Decimal(record.unit_cost)
        if "consumption_date" in update_data:
            record.consumption_date = update_data["consumption_date"]
        if "notes" in update_data:
            record.notes = update_data["notes"]
        record.updated_by = changed_by
        db.flush()

        create_audit_log(db, AuditLogCreate(
            table_name='batch_inventory_consumption',
            record_id=consumption_id,
            changed_by=changed_by,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(record)
        ))
    db.refresh(record)
    logger.info(f"Consumption {consumption_id} updated by {changed_by}: {old_quantity} -> {new_quantity}")
    return record


def delete_batch_inventory_consumption(db: Session, consumption_id: int, changed_by: str = None):
    with transaction(db):
        record = db.query(BatchInventoryConsumption).filter(
            BatchInventoryConsumption.id == consumption_id
        ).with_for_update().first()
        if record is None:
            raise NotFoundError("Batch inventory consumption", consumption_id)
        old_values = sqlalchemy_to_dict(record)
        restore_stock(db, record.inventory_item_id, record.quantity_consumed, batch_id=record.batch_id,
                      reference_id=record.id, notes="Consumption deleted", changed_by=changed_by)
        db.delete(record)
        create_audit_log(db, AuditLogCreate(
            table_name='batch_inventory_consumption',
            record_id=consumption_id,
            changed_by=changed_by,
            action='DELETE',
            old_values=old_values,
            new_values=None
        ))
    logger.info(f"Consumption {consumption_id} deleted by {changed_by}; {old_values['quantity_consumed']} restored to stock")
    return True


def _detail(record: BatchInventoryConsumption, item: InventoryItem, db_batch: Batch) -> dict:
    return {
        "id": record.id,
        "batch_id": record.batch_id,
        "inventory_item_id": record.inventory_item_id,
        "quantity_consumed": record.quantity_consumed,
        "unit_cost": record.unit_cost,
        "total_cost": record.total_cost,
        "consumption_date": record.consumption_date,
        "notes": record.notes,
        "item_name": item.name,
        "item_unit": item.unit,
        "batch_number": db_batch.batch_number,
        "batch_name": db_batch.batch_name,
    }


def get_batch_inventory_consumption(db: Session, batch_id: int):
    _get_batch(db, batch_id)
    rows = db.query(BatchInventoryConsumption, InventoryItem, Batch).join(
        InventoryItem, BatchInventoryConsumption.inventory_item_id == InventoryItem.id
    ).join(
        Batch, BatchInventoryConsumption.batch_id == Batch.id
    ).filter(
        BatchInventoryConsumption.batch_id == batch_id
    ).order_by(BatchInventoryConsumption.consumption_date.desc(), BatchInventoryConsumption.id.desc()).all()
    return [_detail(*row) for row in rows]


def get_inventory_consumption_records(db: Session, inventory_item_id: int):
    _get_item(db, inventory_item_id)
    rows = db.query(BatchInventoryConsumption, InventoryItem, Batch).join(
        InventoryItem, BatchInventoryConsumption.inventory_item_id == InventoryItem.id
    ).join(
        Batch, BatchInventoryConsumption.batch_id == Batch.id
    ).filter(
        BatchInventoryConsumption.inventory_item_id == inventory_item_id
    ).order_by(BatchInventoryConsumption.consumption_date.desc(), BatchInventoryConsumption.id.desc()).all()
    return [_detail(*row) for row in rows]
