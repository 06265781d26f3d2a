from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Literal, Optional

from database import get_db
from schemas.accounting_heads import (
    AccountingHead,
    AccountingHeadCreate,
    AccountingHeadUpdate,
    ExpenseCategory,
    ExpenseCategoryCreate,
)
from schemas.products import Product, ProductCreate, ProductUpdate
from crud import accounting_heads as crud_heads
from crud import products as crud_products
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(tags=["Accounting Heads"], dependencies=[Depends(get_current_user)])


@router.get("/accounting-heads/", response_model=List[AccountingHead])
def list_accounting_heads(type: Optional[Literal["expense", "income"]] = None, active_only: bool = False, db: Session = Depends(get_db)):
    return crud_heads.get_accounting_heads(db, head_type=type, active_only=active_only)


@router.post("/accounting-heads/", response_model=AccountingHead, status_code=status.HTTP_201_CREATED)
def create_accounting_head(head: AccountingHeadCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_heads.create_accounting_head(db, head, changed_by=get_user_identifier(user))


@router.get("/accounting-heads/{head_id}", response_model=AccountingHead)
def read_accounting_head(head_id: int, db: Session = Depends(get_db)):
    head = crud_heads.get_accounting_head(db, head_id)
    if head is None:
        raise HTTPException(status_code=404, detail="Accounting head not found")
    return head


@router.patch("/accounting-heads/{head_id}", response_model=AccountingHead)
def update_accounting_head(head_id: int, head: AccountingHeadUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_heads.update_accounting_head(db, head_id, head, changed_by=get_user_identifier(user))


@router.get("/accounting-heads/{head_id}/categories", response_model=List[ExpenseCategory])
def list_head_categories(head_id: int, db: Session = Depends(get_db)):
    if crud_heads.get_accounting_head(db, head_id) is None:
        raise HTTPException(status_code=404, detail="Accounting head not found")
    return crud_heads.get_expense_categories(db, accounting_head_id=head_id)


@router.post("/expense-categories/", response_model=ExpenseCategory, status_code=status.HTTP_201_CREATED)
def create_expense_category(category: ExpenseCategoryCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_heads.create_expense_category(db, category, changed_by=get_user_identifier(user))


@router.get("/products/", response_model=List[Product])
def list_products(active_only: bool = False, db: Session = Depends(get_db)):
    return crud_products.get_products(db, active_only=active_only)


@router.post("/products/", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(product: ProductCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_products.create_product(db, product, changed_by=get_user_identifier(user))


@router.patch("/products/{product_id}", response_model=Product)
def update_product(product_id: int, product: ProductUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_products.update_product(db, product_id, product, changed_by=get_user_identifier(user))
