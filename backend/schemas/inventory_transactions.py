from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional

class InventoryTransaction(BaseModel):
    id: int
    inventory_item_id: int
    transaction_type: str
    quantity: Decimal
    unit_cost: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None
    old_quantity: Decimal
    new_quantity: Decimal
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    batch_id: Optional[int] = None
    notes: Optional[str] = None
    changed_by: Optional[str] = None
    transaction_date: datetime

    class Config:
        from_attributes = True
