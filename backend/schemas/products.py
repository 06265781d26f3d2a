from pydantic import BaseModel
from typing import Optional

class ProductBase(BaseModel):
    name: str
    slug: str
    is_active: bool = True

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    is_active: Optional[bool] = None

class Product(ProductBase):
    id: int

    class Config:
        from_attributes = True
