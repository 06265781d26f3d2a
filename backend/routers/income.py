from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.income import Income, IncomeCreate, IncomeUpdate
from crud import income as crud_income
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/income", tags=["Income"], dependencies=[Depends(get_current_user)])


@router.post("/", response_model=Income, status_code=status.HTTP_201_CREATED)
def create_income(income: IncomeCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_income.create_income(db, income, changed_by=get_user_identifier(user))


@router.get("/", response_model=List[Income])
def read_income(
    accounting_head_id: Optional[int] = None,
    batch_id: Optional[int] = None,
    product_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="Start date cannot be after the end date")
    return crud_income.get_income(
        db,
        accounting_head_id=accounting_head_id,
        batch_id=batch_id,
        product_id=product_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        skip=skip,
        limit=limit,
    )


@router.get("/{income_id}", response_model=Income)
def read_income_record(income_id: int, db: Session = Depends(get_db)):
    db_income = crud_income.get_income_record(db, income_id)
    if db_income is None:
        raise HTTPException(status_code=404, detail="Income record not found")
    return db_income


@router.patch("/{income_id}", response_model=Income)
def update_income(income_id: int, income: IncomeUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_income.update_income(db, income_id, income, changed_by=get_user_identifier(user))


@router.delete("/{income_id}")
def delete_income(income_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    crud_income.delete_income(db, income_id, changed_by=get_user_identifier(user))
    return {"message": "Income record deleted successfully"}
