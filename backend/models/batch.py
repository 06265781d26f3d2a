from sqlalchemy import Column, Integer, String, Text, Date, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

BATCH_STATUSES = ("active", "completed", "cancelled")


class BatchCategory(Base, TimestampMixin):
    __tablename__ = "batch_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    code = Column(String(20), nullable=False, unique=True)  # prefix for sequential batch numbers, e.g. "PKL"
    description = Column(Text, nullable=True)

    batches = relationship("Batch", back_populates="category")


class Batch(Base, TimestampMixin):
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, index=True)
    batch_number = Column(String, nullable=False, unique=True, index=True)
    batch_name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    production_date = Column(Date, nullable=False)
    # One of BATCH_STATUSES; any status may move to any other.
    status = Column(String, nullable=False, default="active")
    batch_category_id = Column(Integer, ForeignKey("batch_categories.id"), nullable=True)
    total_quantity = Column(Numeric(12, 3), nullable=True)
    unit = Column(String, nullable=True)

    category = relationship("BatchCategory", back_populates="batches")
    batch_products = relationship("BatchProduct", back_populates="batch", cascade="all, delete-orphan")
    inventory_consumption = relationship("BatchInventoryConsumption", back_populates="batch")


class BatchProduct(Base, TimestampMixin):
    __tablename__ = "batch_products"

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_cost = Column(Numeric(12, 4), nullable=False, default=0)
    total_cost = Column(Numeric(18, 7), nullable=False, default=0)

    batch = relationship("Batch", back_populates="batch_products")
    product = relationship("Product")
