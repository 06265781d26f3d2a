import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from database import transaction
from exceptions import ConflictError, NotFoundError, ValidationError
from models.accounting_heads import AccountingHead, ExpenseCategory
from schemas.accounting_heads import AccountingHeadCreate, AccountingHeadUpdate, ExpenseCategoryCreate
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)


def get_accounting_head(db: Session, head_id: int):
    return db.query(AccountingHead).filter(AccountingHead.id == head_id).first()


def get_accounting_heads(db: Session, head_type: Optional[str] = None, active_only: bool = False):
    query = db.query(AccountingHead)
    if head_type:
        query = query.filter(AccountingHead.type == head_type)
    if active_only:
        query = query.filter(AccountingHead.is_active.is_(True))
    return query.order_by(AccountingHead.name).all()


def create_accounting_head(db: Session, head: AccountingHeadCreate, changed_by: str = None):
    if not head.name.strip():
        raise ValidationError("name is required")
    if db.query(AccountingHead.id).filter(AccountingHead.name == head.name).first():
        raise ConflictError(f"Accounting head '{head.name}' already exists")

    db_head = AccountingHead(**head.model_dump(), created_by=changed_by, updated_by=changed_by)
    with transaction(db):
        db.add(db_head)
    db.refresh(db_head)
    logger.info(f"Accounting head '{db_head.name}' ({db_head.type}) created by {changed_by}")
    return db_head


def update_accounting_head(db: Session, head_id: int, head: AccountingHeadUpdate, changed_by: str = None):
    db_head = get_accounting_head(db, head_id)
    if db_head is None:
        raise NotFoundError("Accounting head", head_id)

    update_data = head.model_dump(exclude_unset=True)
    new_name = update_data.get("name")
    if new_name is not None and new_name != db_head.name:
        if db.query(AccountingHead.id).filter(AccountingHead.name == new_name).first():
            raise ConflictError(f"Accounting head '{new_name}' already exists")

    with transaction(db):
        old_values = sqlalchemy_to_dict(db_head)
        for key, value in update_data.items():
            setattr(db_head, key, value)
        db_head.updated_by = changed_by
        db.flush()
        create_audit_log(db, AuditLogCreate(
            table_name='accounting_heads',
            record_id=head_id,
            changed_by=changed_by,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_head)
        ))
    db.refresh(db_head)
    return db_head


def get_expense_categories(db: Session, accounting_head_id: Optional[int] = None):
    query = db.query(ExpenseCategory)
    if accounting_head_id is not None:
        query = query.filter(ExpenseCategory.accounting_head_id == accounting_head_id)
    return query.order_by(ExpenseCategory.name).all()


def get_expense_category(db: Session, category_id: int):
    return db.query(ExpenseCategory).filter(ExpenseCategory.id == category_id).first()


def create_expense_category(db: Session, category: ExpenseCategoryCreate, changed_by: str = None):
    if get_accounting_head(db, category.accounting_head_id) is None:
        raise NotFoundError("Accounting head", category.accounting_head_id)
    duplicate = db.query(ExpenseCategory.id).filter(
        ExpenseCategory.accounting_head_id == category.accounting_head_id,
        ExpenseCategory.name == category.name,
    ).first()
    if duplicate:
        raise ConflictError(f"Expense category '{category.name}' already exists under this head")

    db_category = ExpenseCategory(**category.model_dump(), created_by=changed_by, updated_by=changed_by)
    with transaction(db):
        db.add(db_category)
    db.refresh(db_category)
    return db_category
