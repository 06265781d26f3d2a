from pydantic import BaseModel
from typing import Optional

INVENTORY_COSTING_METHODS = ("last_cost", "weighted_average")


class AccountingConfig(BaseModel):
    # Whether batch profit/loss counts inventory consumed by the batch as a cost
    batch_cost_includes_consumption: bool
    # How add_stock updates an item's unit_cost: "last_cost" or "weighted_average"
    inventory_costing_method: str


class AccountingConfigUpdate(BaseModel):
    batch_cost_includes_consumption: Optional[bool] = None
    inventory_costing_method: Optional[str] = None
