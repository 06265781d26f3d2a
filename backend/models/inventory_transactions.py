from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from utils import local_now

TRANSACTION_TYPES = ("in", "out", "adjustment", "invoice", "release")


class InventoryTransaction(Base):
    """One row per change to an item's stock or invoiced quantity."""
    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False, index=True)
    transaction_type = Column(String, nullable=False)  # see TRANSACTION_TYPES
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_cost = Column(Numeric(12, 4), nullable=True)
    total_cost = Column(Numeric(18, 7), nullable=True)
    # For "invoice"/"release" rows these track invoiced_quantity, otherwise current_stock
    old_quantity = Column(Numeric(12, 3), nullable=False)
    new_quantity = Column(Numeric(12, 3), nullable=False)
    reference_type = Column(String, nullable=True)  # "purchase", "expense", "batch_consumption", ...
    reference_id = Column(Integer, nullable=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="SET NULL"), nullable=True)
    notes = Column(String, nullable=True)
    changed_by = Column(String, nullable=True)
    transaction_date = Column(DateTime(timezone=True), default=local_now, index=True)

    inventory_item = relationship("InventoryItem", back_populates="transactions")
