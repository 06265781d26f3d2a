from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.expenses import Expense, ExpenseCreate, ExpenseUpdate, InventoryPurchaseCreate
from crud import expenses as crud_expenses
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/expenses", tags=["Expenses"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger(__name__)


@router.post("/", response_model=Expense, status_code=status.HTTP_201_CREATED)
def create_expense(expense: ExpenseCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Record an expense. With inventory_item_id and quantity, the quantity is invoiced against the item."""
    return crud_expenses.create_expense(db, expense, changed_by=get_user_identifier(user))


@router.post("/inventory-purchase", response_model=Expense, status_code=status.HTTP_201_CREATED)
def record_inventory_purchase(purchase: InventoryPurchaseCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Add stock (to an existing or new item) and book the matching expense in one step."""
    return crud_expenses.record_inventory_purchase(db, purchase, changed_by=get_user_identifier(user))


@router.get("/", response_model=List[Expense])
def read_expenses(
    accounting_head_id: Optional[int] = None,
    batch_id: Optional[int] = None,
    product_id: Optional[int] = None,
    inventory_item_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="Start date cannot be after the end date")
    return crud_expenses.get_expenses(
        db,
        accounting_head_id=accounting_head_id,
        batch_id=batch_id,
        product_id=product_id,
        inventory_item_id=inventory_item_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        skip=skip,
        limit=limit,
    )


@router.get("/{expense_id}", response_model=Expense)
def read_expense(expense_id: int, db: Session = Depends(get_db)):
    db_expense = crud_expenses.get_expense(db, expense_id)
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense


@router.patch("/{expense_id}", response_model=Expense)
def update_expense(expense_id: int, expense: ExpenseUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_expenses.update_expense(db, expense_id, expense, changed_by=get_user_identifier(user))


@router.delete("/{expense_id}")
def delete_expense(expense_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    crud_expenses.delete_expense(db, expense_id, changed_by=get_user_identifier(user))
    return {"message": "Expense deleted successfully"}
