from typing import Optional, List
from pydantic import BaseModel
from datetime import date
from decimal import Decimal


class BatchCategoryBase(BaseModel):
    name: str
    code: str
    description: Optional[str] = None

class BatchCategoryCreate(BatchCategoryBase):
    pass

class BatchCategory(BatchCategoryBase):
    id: int

    class Config:
        from_attributes = True


class ProductRef(BaseModel):
    id: int
    name: str
    slug: str

    class Config:
        from_attributes = True


class BatchProductCreate(BaseModel):
    product_id: int
    quantity: Decimal
    unit_cost: Decimal = Decimal(0)

class BatchProductUpdate(BaseModel):
    quantity: Optional[Decimal] = None
    unit_cost: Optional[Decimal] = None

class BatchProduct(BaseModel):
    id: int
    batch_id: int
    product_id: int
    quantity: Decimal
    unit_cost: Decimal
    total_cost: Decimal
    product: Optional[ProductRef] = None

    class Config:
        from_attributes = True


class BatchBase(BaseModel):
    batch_name: Optional[str] = None
    description: Optional[str] = None
    production_date: date
    status: str = "active"
    batch_category_id: Optional[int] = None
    total_quantity: Optional[Decimal] = None
    unit: Optional[str] = None

class BatchCreate(BatchBase):
    # Generated when omitted: sequential per category, else BATCH-<ms>-<rand>
    batch_number: Optional[str] = None

class BatchUpdate(BaseModel):
    batch_number: Optional[str] = None
    batch_name: Optional[str] = None
    description: Optional[str] = None
    production_date: Optional[date] = None
    status: Optional[str] = None
    batch_category_id: Optional[int] = None
    total_quantity: Optional[Decimal] = None
    unit: Optional[str] = None

class Batch(BatchBase):
    id: int
    batch_number: str
    batch_products: List[BatchProduct] = []

    class Config:
        from_attributes = True


class GeneratedBatchNumber(BaseModel):
    batch_number: str
    batch_name: str
