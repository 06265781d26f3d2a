from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Optional

from schemas.expenses import HeadRef, BatchRef


class IncomeBase(BaseModel):
    amount: Decimal
    income_date: date
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    accounting_head_id: Optional[int] = None
    batch_id: Optional[int] = None
    product_id: Optional[int] = None

class IncomeCreate(IncomeBase):
    pass

class IncomeUpdate(BaseModel):
    amount: Optional[Decimal] = None
    income_date: Optional[date] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    customer_name: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    accounting_head_id: Optional[int] = None
    batch_id: Optional[int] = None
    product_id: Optional[int] = None

class Income(IncomeBase):
    id: int
    income_number: str
    accounting_head: Optional[HeadRef] = None
    batch: Optional[BatchRef] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True
