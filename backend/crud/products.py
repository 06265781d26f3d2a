from sqlalchemy.orm import Session

from database import transaction
from exceptions import ConflictError, NotFoundError
from models.products import Product
from schemas.products import ProductCreate, ProductUpdate


def get_product(db: Session, product_id: int):
    return db.query(Product).filter(Product.id == product_id).first()


def get_products(db: Session, active_only: bool = False):
    query = db.query(Product)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name).all()


def create_product(db: Session, product: ProductCreate, changed_by: str = None):
    if db.query(Product.id).filter(Product.slug == product.slug).first():
        raise ConflictError(f"Product with slug '{product.slug}' already exists")
    db_product = Product(**product.model_dump(), created_by=changed_by, updated_by=changed_by)
    with transaction(db):
        db.add(db_product)
    db.refresh(db_product)
    return db_product


def update_product(db: Session, product_id: int, product: ProductUpdate, changed_by: str = None):
    db_product = get_product(db, product_id)
    if db_product is None:
        raise NotFoundError("Product", product_id)
    update_data = product.model_dump(exclude_unset=True)
    new_slug = update_data.get("slug")
    if new_slug is not None and new_slug != db_product.slug:
        if db.query(Product.id).filter(Product.slug == new_slug).first():
            raise ConflictError(f"Product with slug '{new_slug}' already exists")
    with transaction(db):
        for key, value in update_data.items():
            setattr(db_product, key, value)
        db_product.updated_by = changed_by
    db.refresh(db_product)
    return db_product
