from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Optional

from schemas.inventory_items import InventoryItemBase


class HeadRef(BaseModel):
    id: int
    name: str
    type: str

    class Config:
        from_attributes = True

class BatchRef(BaseModel):
    id: int
    batch_number: str
    batch_name: Optional[str] = None

    class Config:
        from_attributes = True


class ExpenseBase(BaseModel):
    amount: Decimal
    expense_date: date
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    accounting_head_id: Optional[int] = None
    expense_category_id: Optional[int] = None
    batch_id: Optional[int] = None
    product_id: Optional[int] = None
    # When set together with quantity, that quantity is invoiced against the item
    inventory_item_id: Optional[int] = None

class ExpenseCreate(ExpenseBase):
    pass

class ExpenseUpdate(BaseModel):
    amount: Optional[Decimal] = None
    expense_date: Optional[date] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    accounting_head_id: Optional[int] = None
    expense_category_id: Optional[int] = None
    batch_id: Optional[int] = None
    product_id: Optional[int] = None
    inventory_item_id: Optional[int] = None

class Expense(ExpenseBase):
    id: int
    expense_number: str
    invoiced_quantity: Decimal
    accounting_head: Optional[HeadRef] = None
    batch: Optional[BatchRef] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class InventoryPurchaseCreate(BaseModel):
    """Stock-in of an existing or new item, booked as an expense that invoices the same quantity."""
    inventory_item_id: Optional[int] = None
    new_item: Optional[InventoryItemBase] = None
    quantity: Decimal
    unit_cost: Decimal
    expense_date: date
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    accounting_head_id: Optional[int] = None
    expense_category_id: Optional[int] = None
    batch_id: Optional[int] = None
    product_id: Optional[int] = None
