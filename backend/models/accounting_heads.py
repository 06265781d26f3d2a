from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

ACCOUNTING_HEAD_TYPES = ("expense", "income")


class AccountingHead(Base, TimestampMixin):
    __tablename__ = "accounting_heads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    type = Column(String, nullable=False)  # "expense" or "income"
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    categories = relationship("ExpenseCategory", back_populates="accounting_head")


class ExpenseCategory(Base, TimestampMixin):
    __tablename__ = "expense_categories"
    __table_args__ = (UniqueConstraint('accounting_head_id', 'name', name='_expense_category_head_name_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    accounting_head_id = Column(Integer, ForeignKey("accounting_heads.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    accounting_head = relationship("AccountingHead", back_populates="categories")
