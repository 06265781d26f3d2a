from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from schemas.batch_inventory_consumption import (
    BatchInventoryConsumption,
    BatchInventoryConsumptionCreate,
    BatchInventoryConsumptionUpdate,
)
from crud import batch_inventory_consumption as crud_consumption
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/batch-inventory-consumption", tags=["Batch Inventory Consumption"], dependencies=[Depends(get_current_user)])


@router.post("/", response_model=BatchInventoryConsumption, status_code=status.HTTP_201_CREATED)
def add_consumption(consumption: BatchInventoryConsumptionCreate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_consumption.add_batch_inventory_consumption(db, consumption, changed_by=get_user_identifier(user))


@router.get("/{consumption_id}", response_model=BatchInventoryConsumption)
def read_consumption(consumption_id: int, db: Session = Depends(get_db)):
    record = crud_consumption.get_consumption(db, consumption_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Consumption record not found")
    return record


@router.patch("/{consumption_id}", response_model=BatchInventoryConsumption)
def update_consumption(consumption_id: int, consumption: BatchInventoryConsumptionUpdate, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return crud_consumption.update_batch_inventory_consumption(db, consumption_id, consumption, changed_by=get_user_identifier(user))


@router.delete("/{consumption_id}")
def delete_consumption(consumption_id: int, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    crud_consumption.delete_batch_inventory_consumption(db, consumption_id, changed_by=get_user_identifier(user))
    return {"message": "Consumption record deleted and stock restored"}
