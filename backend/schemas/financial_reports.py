from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from datetime import date

class LedgerLine(BaseModel):
    id: int
    amount: Decimal
    description: Optional[str] = None
    date: date

class BatchProfitLoss(BaseModel):
    batch_id: int
    total_expenses: Decimal
    total_income: Decimal
    inventory_consumption_cost: Decimal
    total_cost: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    includes_consumption_cost: bool
    expenses: List[LedgerLine] = []
    income: List[LedgerLine] = []

class BatchCostSummary(BaseModel):
    batch_id: int
    batch_number: str
    batch_name: Optional[str] = None
    production_date: date
    status: str
    total_expenses: Decimal
    inventory_consumption_cost: Decimal
    total_cost: Decimal
    total_income: Decimal
    net_profit: Decimal
    profit_margin: Decimal

class DashboardSummary(BaseModel):
    total_expenses: Decimal
    total_income: Decimal
    net_profit: Decimal
    profit_margin: Decimal

class AccountingHeadSummary(BaseModel):
    accounting_head_id: int
    head_name: str
    head_type: str
    total_amount: Decimal
    transaction_count: int

class ProductCostLine(BaseModel):
    expense_id: int
    expense_date: date
    product_id: int
    product_name: str
    accounting_head: Optional[str] = None
    batch_id: Optional[int] = None
    amount: Decimal
    quantity: Optional[Decimal] = None
    unit_cost: Optional[Decimal] = None

class ProductCostSummary(BaseModel):
    product_id: int
    product_name: str
    accounting_head: Optional[str] = None
    total_cost: Decimal
    total_quantity: Decimal
    avg_unit_cost: Decimal
    transaction_count: int

class MonthlySummary(DashboardSummary):
    year: int
    month: int
    expense_count: int
    income_count: int
