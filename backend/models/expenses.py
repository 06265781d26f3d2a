from sqlalchemy import Column, Integer, String, Text, Date, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    expense_number = Column(String, nullable=False, unique=True, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=True)
    unit = Column(String, nullable=True)
    expense_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    vendor_name = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    accounting_head_id = Column(Integer, ForeignKey("accounting_heads.id"), nullable=True, index=True)
    expense_category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=True, index=True)
    # Quantity of inventory_item this expense currently holds reserved (invoiced)
    invoiced_quantity = Column(Numeric(12, 3), nullable=False, default=0)

    accounting_head = relationship("AccountingHead")
    expense_category = relationship("ExpenseCategory")
    batch = relationship("Batch")
    product = relationship("Product")
    inventory_item = relationship("InventoryItem")
