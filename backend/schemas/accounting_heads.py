from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

class AccountingHeadBase(BaseModel):
    name: str
    type: Literal["expense", "income"]
    description: Optional[str] = None
    is_active: bool = True

class AccountingHeadCreate(AccountingHeadBase):
    pass

class AccountingHeadUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[Literal["expense", "income"]] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

class AccountingHead(AccountingHeadBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseCategoryBase(BaseModel):
    accounting_head_id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True

class ExpenseCategoryCreate(ExpenseCategoryBase):
    pass

class ExpenseCategory(ExpenseCategoryBase):
    id: int

    class Config:
        from_attributes = True
