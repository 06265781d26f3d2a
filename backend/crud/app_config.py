import logging
import os

from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from exceptions import ValidationError
from models.app_config import AppConfig
from schemas.app_config import AccountingConfig, AccountingConfigUpdate, INVENTORY_COSTING_METHODS
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict

logger = logging.getLogger(__name__)

BATCH_COST_INCLUDES_CONSUMPTION = "batch_cost_includes_consumption"
INVENTORY_COSTING_METHOD = "inventory_costing_method"

TRUE_VALUES = ("1", "true", "yes", "on")


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in TRUE_VALUES


def _defaults() -> dict:
    return {
        BATCH_COST_INCLUDES_CONSUMPTION: os.getenv("BATCH_COST_INCLUDES_CONSUMPTION", "true"),
        INVENTORY_COSTING_METHOD: os.getenv("INVENTORY_COSTING_METHOD", "last_cost"),
    }


def get_config(db: Session, name: str = None):
    if name:
        return db.query(AppConfig).filter(AppConfig.name == name).first()
    return db.query(AppConfig).all()


def get_accounting_config(db: Session) -> AccountingConfig:
    """Stored accounting policies, falling back to environment defaults."""
    config_dict = _defaults()
    config_dict.update({c.name: c.value for c in get_config(db)})
    costing_method = config_dict[INVENTORY_COSTING_METHOD]
    if costing_method not in INVENTORY_COSTING_METHODS:
        logger.warning(f"Unknown inventory costing method '{costing_method}', using last_cost")
        costing_method = "last_cost"
    return AccountingConfig(
        batch_cost_includes_consumption=_parse_bool(config_dict[BATCH_COST_INCLUDES_CONSUMPTION]),
        inventory_costing_method=costing_method,
    )


def update_accounting_config(db: Session, config_updates: AccountingConfigUpdate, user_id: str = None) -> AccountingConfig:
    updates = config_updates.model_dump(exclude_unset=True)
    method = updates.get(INVENTORY_COSTING_METHOD)
    if method is not None and method not in INVENTORY_COSTING_METHODS:
        raise ValidationError(
            f"inventory_costing_method must be one of {', '.join(INVENTORY_COSTING_METHODS)}"
        )

    for name, value in updates.items():
        if value is None:
            continue
        value = str(value).lower() if isinstance(value, bool) else str(value)

        db_config = get_config(db, name)
        if db_config:
            old_values = sqlalchemy_to_dict(db_config)
            db_config.value = value
            db_config.updated_by = user_id
            action = 'UPDATE'
        else:
            db_config = AppConfig(name=name, value=value, created_by=user_id)
            db.add(db_config)
            old_values = {}
            action = 'CREATE'
        db.flush()

        create_audit_log(db, AuditLogCreate(
            table_name='app_config',
            record_id=db_config.id,
            changed_by=user_id,
            action=action,
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_config)
        ))

    db.commit()
    logger.info(f"Accounting configuration updated by {user_id}: {updates}")
    return get_accounting_config(db)
