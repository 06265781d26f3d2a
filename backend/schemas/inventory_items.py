from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from datetime import datetime, date

class InventoryCategoryBase(BaseModel):
    name: str
    description: Optional[str] = None

class InventoryCategoryCreate(InventoryCategoryBase):
    pass

class InventoryCategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

class InventoryCategory(InventoryCategoryBase):
    id: int

    class Config:
        from_attributes = True


class InventoryItemBase(BaseModel):
    name: str
    unit: str # e.g., "kg", "liters", "jars", "units"
    sku: Optional[str] = None
    category_id: Optional[int] = None
    description: Optional[str] = None
    minimum_stock: Decimal = Decimal(0)
    maximum_stock: Decimal = Decimal(0)
    supplier_name: Optional[str] = None
    storage_location: Optional[str] = None
    expiry_date: Optional[date] = None

class InventoryItemCreate(InventoryItemBase):
    # Optional stock-in performed together with the create
    opening_stock: Optional[Decimal] = None
    unit_cost: Optional[Decimal] = None

class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    sku: Optional[str] = None
    category_id: Optional[int] = None
    description: Optional[str] = None
    # current_stock, invoiced_quantity and unit_cost are system-managed, not directly updated via this schema
    minimum_stock: Optional[Decimal] = None
    maximum_stock: Optional[Decimal] = None
    supplier_name: Optional[str] = None
    storage_location: Optional[str] = None
    expiry_date: Optional[date] = None

class InventoryItem(InventoryItemBase):
    id: int
    unit_cost: Decimal
    current_stock: Decimal
    invoiced_quantity: Decimal
    unbacked_invoiced_quantity: Decimal = Decimal(0)
    available_for_invoice: Decimal
    is_low_stock: bool
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockIn(BaseModel):
    quantity: Decimal
    unit_cost: Decimal
    reference_type: Optional[str] = "purchase"
    reference_id: Optional[int] = None
    batch_id: Optional[int] = None
    notes: Optional[str] = None

class StockAdjustment(BaseModel):
    new_quantity: Decimal
    notes: Optional[str] = None

class InvoiceRequest(BaseModel):
    quantity: Decimal
    reference_type: Optional[str] = "invoice"
    reference_id: Optional[int] = None
    batch_id: Optional[int] = None
    notes: Optional[str] = None

class InventoryAvailability(BaseModel):
    inventory_item_id: int
    current_stock: Decimal
    invoiced_quantity: Decimal
    unbacked_invoiced_quantity: Decimal
    available_for_consumption: Decimal
    available_for_invoice: Decimal

class InventorySummary(BaseModel):
    total_items: int
    low_stock_count: int
    expiry_count: int
    total_value: Decimal
