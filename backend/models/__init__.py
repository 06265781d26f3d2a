from models.app_config import AppConfig
from models.audit_log import AuditLog
from models.accounting_heads import AccountingHead, ExpenseCategory
from models.products import Product
from models.batch import Batch, BatchCategory, BatchProduct
from models.inventory_items import InventoryCategory, InventoryItem
from models.inventory_transactions import InventoryTransaction
from models.expenses import Expense
from models.income import Income
from models.batch_inventory_consumption import BatchInventoryConsumption

__all__ = ['AccountingHead', 'AppConfig', 'AuditLog', 'Batch', 'BatchCategory', 'BatchInventoryConsumption', 'BatchProduct', 'Expense', 'ExpenseCategory', 'Income', 'InventoryCategory', 'InventoryItem', 'InventoryTransaction', 'Product',]
