import logging
from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from crud.audit_log import create_audit_log
from crud.expenses import validate_amounts, validate_references, REFERENCES
from database import transaction
from exceptions import NotFoundError
from models.income import Income
from schemas.audit_log import AuditLogCreate
from schemas.income import IncomeCreate, IncomeUpdate
from utils import sqlalchemy_to_dict
from utils.identifiers import generate_income_number

logger = logging.getLogger(__name__)

INCOME_REFERENCES = tuple(ref for ref in REFERENCES if ref[0] in ("accounting_head_id", "batch_id", "product_id"))


def get_income_record(db: Session, income_id: int):
    return db.query(Income).options(
        selectinload(Income.accounting_head),
        selectinload(Income.batch),
    ).filter(Income.id == income_id).first()


def get_income(
    db: Session,
    accounting_head_id: Optional[int] = None,
    batch_id: Optional[int] = None,
    product_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(Income).options(
        selectinload(Income.accounting_head),
        selectinload(Income.batch),
    )
    if accounting_head_id is not None:
        query = query.filter(Income.accounting_head_id == accounting_head_id)
    if batch_id is not None:
        query = query.filter(Income.batch_id == batch_id)
    if product_id is not None:
        query = query.filter(Income.product_id == product_id)
    if date_from:
        query = query.filter(Income.income_date >= date_from)
    if date_to:
        query = query.filter(Income.income_date <= date_to)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Income.description.ilike(pattern), Income.customer_name.ilike(pattern)))
    return query.order_by(Income.income_date.desc(), Income.id.desc()).offset(skip).limit(limit).all()


def create_income(db: Session, income: IncomeCreate, changed_by: str = None):
    data = income.model_dump()
    validate_amounts(data)
    validate_references(db, data, INCOME_REFERENCES)

    db_income = Income(
        **data,
        income_number=generate_income_number(),
        created_by=changed_by,
        updated_by=changed_by,
    )
    with transaction(db):
        db.add(db_income)
    logger.info(f"Income {db_income.income_number} of {db_income.amount} created by {changed_by}")
    return get_income_record(db, db_income.id)


def update_income(db: Session, income_id: int, income: IncomeUpdate, changed_by: str = None):
    db_income = get_income_record(db, income_id)
    if db_income is None:
        raise NotFoundError("Income", income_id)
    update_data = income.model_dump(exclude_unset=True)
    validate_amounts(update_data)
    validate_references(db, update_data, INCOME_REFERENCES)

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_income)
        for key, value in update_data.items():
            setattr(db_income, key, value)
        db_income.updated_by = changed_by
        db.flush()
        create_audit_log(db, AuditLogCreate(
            table_name='income',
            record_id=income_id,
            changed_by=changed_by,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_income)
        ))
    return get_income_record(db, income_id)


def delete_income(db: Session, income_id: int, changed_by: str = None):
    db_income = get_income_record(db, income_id)
    if db_income is None:
        raise NotFoundError("Income", income_id)

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_income)
        db.delete(db_income)
        create_audit_log(db, AuditLogCreate(
            table_name='income',
            record_id=income_id,
            changed_by=changed_by,
            action='DELETE',
            old_values=old_values,
            new_values=None
        ))
    logger.info(f"Income {old_values['income_number']} deleted by {changed_by}")
    return True
