from sqlalchemy import Column, Integer, String, Text, Numeric, Date, CheckConstraint, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from database import Base
from models.audit_mixin import TimestampMixin


class InventoryCategory(Base, TimestampMixin):
    __tablename__ = "inventory_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)  # e.g., "Spices", "Packaging", "Oil"
    description = Column(Text, nullable=True)

    items = relationship("InventoryItem", back_populates="category")


class InventoryItem(Base, TimestampMixin):
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint('current_stock >= 0', name='ck_inventory_items_stock_non_negative'),
        CheckConstraint('invoiced_quantity >= 0', name='ck_inventory_items_invoiced_non_negative'),
        CheckConstraint('invoiced_quantity <= current_stock', name='ck_inventory_items_invoiced_within_stock'),
        CheckConstraint('unbacked_invoiced_quantity >= 0', name='ck_inventory_items_unbacked_non_negative'),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    sku = Column(String, nullable=True, unique=True)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("inventory_categories.id"), nullable=True, index=True)
    unit = Column(String, nullable=False) # e.g., "kg", "liters", "jars", "units"
    # current_stock, invoiced_quantity and unit_cost are managed by the ledger, not edited directly
    unit_cost = Column(Numeric(12, 4), default=0, nullable=False)
    current_stock = Column(Numeric(12, 3), default=0, nullable=False)
    invoiced_quantity = Column(Numeric(12, 3), default=0, nullable=False)
    # Invoiced quantity the current stock cannot cover (stock consumed or counted below the reservations).
    # Non-zero only while invoiced_quantity == current_stock; moves back into invoiced_quantity as stock returns.
    unbacked_invoiced_quantity = Column(Numeric(12, 3), default=0, nullable=False)
    minimum_stock = Column(Numeric(12, 3), default=0, nullable=False)
    maximum_stock = Column(Numeric(12, 3), default=0, nullable=False)
    supplier_name = Column(String, nullable=True)
    storage_location = Column(String, nullable=True)
    expiry_date = Column(Date, nullable=True)

    category = relationship("InventoryCategory", back_populates="items")
    transactions = relationship("InventoryTransaction", back_populates="inventory_item")
    consumption_records = relationship("BatchInventoryConsumption", back_populates="inventory_item")

    @hybrid_property
    def available_for_invoice(self):
        return self.current_stock - self.invoiced_quantity

    @hybrid_property
    def total_invoiced_quantity(self):
        return self.invoiced_quantity + self.unbacked_invoiced_quantity

    @hybrid_property
    def is_low_stock(self):
        return self.current_stock <= self.minimum_stock

    @property
    def category_name(self):
        return self.category.name if self.category else None
