from sqlalchemy import Column, Integer, String, Boolean
from database import Base
from models.audit_mixin import TimestampMixin

class Product(Base, TimestampMixin):
    """Catalogue product as far as the books need it: something costs and income can be attributed to."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
