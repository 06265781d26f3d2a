from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas.app_config import AccountingConfig, AccountingConfigUpdate
from crud import app_config as crud_app_config
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(dependencies=[Depends(get_current_user)])
logger = logging.getLogger(__name__)


@router.get("/configurations/accounting", response_model=AccountingConfig)
def get_accounting_config(db: Session = Depends(get_db)):
    """Current accounting policies (stored values over environment defaults)."""
    return crud_app_config.get_accounting_config(db)


@router.patch("/configurations/accounting", response_model=AccountingConfig)
def update_accounting_config(config: AccountingConfigUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_app_config.update_accounting_config(db, config, user_id=get_user_identifier(user))
