from sqlalchemy import Column, Integer, String, Text, Date, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Income(Base, TimestampMixin):
    __tablename__ = "income"

    id = Column(Integer, primary_key=True, index=True)
    income_number = Column(String, nullable=False, unique=True, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=True)
    unit = Column(String, nullable=True)
    income_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    customer_name = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    accounting_head_id = Column(Integer, ForeignKey("accounting_heads.id"), nullable=True, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id"), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)

    accounting_head = relationship("AccountingHead")
    batch = relationship("Batch")
    product = relationship("Product")
