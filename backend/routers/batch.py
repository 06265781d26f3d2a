from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.batch import (
    Batch as BatchSchema,
    BatchCategory,
    BatchCategoryCreate,
    BatchCreate,
    BatchProduct,
    BatchProductCreate,
    BatchProductUpdate,
    BatchUpdate,
    GeneratedBatchNumber,
)
from schemas.batch_inventory_consumption import (
    BatchInventoryConsumption,
    BatchInventoryConsumptionLines,
    BatchInventoryDetail,
)
from schemas.financial_reports import BatchProfitLoss
from crud import batch as crud_batch
from crud import batch_inventory_consumption as crud_consumption
from crud import financial_reports as crud_reports
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/batches", tags=["batches"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger(__name__)


@router.get("/categories", response_model=List[BatchCategory])
def list_batch_categories(db: Session = Depends(get_db)):
    return crud_batch.get_batch_categories(db)


@router.post("/categories", response_model=BatchCategory, status_code=status.HTTP_201_CREATED)
def create_batch_category(category: BatchCategoryCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_batch.create_batch_category(db, category, changed_by=get_user_identifier(user))


@router.get("/next-number", response_model=GeneratedBatchNumber)
def preview_batch_number(category_id: Optional[int] = None, db: Session = Depends(get_db)):
    """The number and default name the next batch in this category would get."""
    return crud_batch.generate_batch_number(db, category_id)


@router.post("/", response_model=BatchSchema, status_code=status.HTTP_201_CREATED)
def create_batch(batch: BatchCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_batch = crud_batch.create_batch(db=db, batch=batch, changed_by=get_user_identifier(user))
    return crud_batch.get_batch_by_id(db, db_batch.id)


@router.get("/", response_model=List[BatchSchema])
def read_batches(status: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud_batch.get_all_batches(db, status=status, skip=skip, limit=limit)


@router.get("/{batch_id}", response_model=BatchSchema)
def read_batch(batch_id: int, db: Session = Depends(get_db)):
    db_batch = crud_batch.get_batch_by_id(db, batch_id=batch_id)
    if db_batch is None:
        raise HTTPException(status_code=404, detail="Batch not found")
    return db_batch


@router.patch("/{batch_id}", response_model=BatchSchema)
def update_batch(batch_id: int, batch_data: BatchUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    crud_batch.update_batch(db, batch_id, batch_data, changed_by=get_user_identifier(user))
    return crud_batch.get_batch_by_id(db, batch_id)


@router.delete("/{batch_id}")
def delete_batch(batch_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Delete a batch; consumed inventory goes back to stock and linked expenses/income are detached."""
    crud_batch.delete_batch(db, batch_id, changed_by=get_user_identifier(user))
    return {"message": "Batch deleted successfully"}


@router.get("/{batch_id}/products", response_model=List[BatchProduct])
def read_batch_products(batch_id: int, db: Session = Depends(get_db)):
    return crud_batch.get_batch_products(db, batch_id)


@router.post("/{batch_id}/products", response_model=BatchProduct, status_code=status.HTTP_201_CREATED)
def add_product_to_batch(batch_id: int, item: BatchProductCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_batch.add_product_to_batch(db, batch_id, item, changed_by=get_user_identifier(user))


@router.patch("/products/{batch_product_id}", response_model=BatchProduct)
def update_batch_product(batch_product_id: int, item: BatchProductUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_batch.update_batch_product(db, batch_product_id, item, changed_by=get_user_identifier(user))


@router.delete("/products/{batch_product_id}")
def remove_product_from_batch(batch_product_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    crud_batch.remove_product_from_batch(db, batch_product_id, changed_by=get_user_identifier(user))
    return {"message": "Product removed from batch"}


@router.get("/{batch_id}/inventory", response_model=List[BatchInventoryDetail])
def read_batch_inventory(batch_id: int, db: Session = Depends(get_db)):
    return crud_consumption.get_batch_inventory_consumption(db, batch_id)


@router.post("/{batch_id}/inventory", response_model=List[BatchInventoryConsumption], status_code=status.HTTP_201_CREATED)
def add_batch_inventory(batch_id: int, lines: BatchInventoryConsumptionLines, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    """Record several consumption lines for a batch; all succeed or none do."""
    return crud_consumption.add_batch_inventory_consumptions(db, batch_id, lines.items, changed_by=get_user_identifier(user))


@router.get("/{batch_id}/profit-loss", response_model=BatchProfitLoss)
def read_batch_profit_loss(batch_id: int, db: Session = Depends(get_db)):
    return crud_reports.get_batch_profit_loss(db, batch_id)
