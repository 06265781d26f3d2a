from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Optional, List

class ConsumptionBase(BaseModel):
    inventory_item_id: int
    quantity_consumed: Decimal
    # Defaults to the item's current unit_cost
    unit_cost: Optional[Decimal] = None
    consumption_date: Optional[date] = None
    notes: Optional[str] = None

class BatchInventoryConsumptionCreate(ConsumptionBase):
    batch_id: int

class BatchInventoryConsumptionLines(BaseModel):
    items: List[ConsumptionBase]

class BatchInventoryConsumptionUpdate(BaseModel):
    inventory_item_id: Optional[int] = None
    quantity_consumed: Optional[Decimal] = None
    unit_cost: Optional[Decimal] = None
    consumption_date: Optional[date] = None
    notes: Optional[str] = None

class BatchInventoryConsumption(BaseModel):
    id: int
    batch_id: int
    inventory_item_id: int
    quantity_consumed: Decimal
    unit_cost: Decimal
    total_cost: Decimal
    consumption_date: date
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class BatchInventoryDetail(BatchInventoryConsumption):
    """Consumption row joined with its item and batch for display."""
    item_name: str
    item_unit: str
    batch_number: str
    batch_name: Optional[str] = None
