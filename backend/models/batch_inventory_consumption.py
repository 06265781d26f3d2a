from sqlalchemy import Column, Integer, Text, Date, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class BatchInventoryConsumption(Base, TimestampMixin):
    __tablename__ = "batch_inventory_consumption"
    __table_args__ = (
        CheckConstraint('quantity_consumed > 0', name='ck_consumption_quantity_positive'),
    )

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=False, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False, index=True)
    quantity_consumed = Column(Numeric(12, 3), nullable=False)
    unit_cost = Column(Numeric(12, 4), nullable=False)  # snapshot of the item's cost basis
    total_cost = Column(Numeric(18, 7), nullable=False)  # quantity_consumed * unit_cost, exact
    consumption_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    batch = relationship("Batch", back_populates="inventory_consumption")
    inventory_item = relationship("InventoryItem", back_populates="consumption_records")
