from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import financial_reports as crud_reports
from schemas.financial_reports import (
    AccountingHeadSummary,
    BatchCostSummary,
    DashboardSummary,
    MonthlySummary,
    ProductCostLine,
    ProductCostSummary,
)
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/financial-reports", tags=["Financial Reports"], dependencies=[Depends(get_current_user)])


def _check_range(date_from: Optional[date], date_to: Optional[date]):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="Start date cannot be after the end date")


@router.get("/dashboard", response_model=DashboardSummary)
def read_dashboard_summary(db: Session = Depends(get_db)):
    return crud_reports.get_dashboard_summary(db)


@router.get("/monthly", response_model=MonthlySummary)
def read_monthly_summary(year: int = Query(..., ge=2000), month: int = Query(..., ge=1, le=12), db: Session = Depends(get_db)):
    return crud_reports.get_monthly_summary(db, year, month)


@router.get("/profit-loss", response_model=List[BatchCostSummary])
def read_profit_loss_analysis(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    batch_id: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    _check_range(date_from, date_to)
    return crud_reports.get_profit_loss_analysis(db, date_from=date_from, date_to=date_to, batch_id=batch_id, status=status)


@router.get("/batch-cost-summary", response_model=List[BatchCostSummary])
def read_batch_cost_summary(batch_id: Optional[int] = None, db: Session = Depends(get_db)):
    return crud_reports.get_batch_cost_summary(db, batch_id=batch_id)


@router.get("/accounting-heads", response_model=List[AccountingHeadSummary])
def read_accounting_head_summary(type: Optional[str] = None, db: Session = Depends(get_db)):
    return crud_reports.get_accounting_head_summary(db, head_type=type)


@router.get("/product-costs", response_model=List[ProductCostLine])
def read_product_cost_analysis(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    product_id: Optional[int] = None,
    accounting_head_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    _check_range(date_from, date_to)
    return crud_reports.get_product_cost_analysis(db, date_from, date_to, product_id, accounting_head_id)


@router.get("/product-costs/summary", response_model=List[ProductCostSummary])
def read_product_cost_summary(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    product_id: Optional[int] = None,
    accounting_head_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    _check_range(date_from, date_to)
    return crud_reports.get_product_cost_summary(db, date_from, date_to, product_id, accounting_head_id)


@router.get("/profit-loss/export")
def export_profit_loss(date_from: Optional[date] = None, date_to: Optional[date] = None, db: Session = Depends(get_db)):
    _check_range(date_from, date_to)
    excel_file = crud_reports.export_profit_loss_report(db, date_from=date_from, date_to=date_to)

    # Prepare the response
    headers = {
        'Content-Disposition': 'attachment; filename="profit_loss_report.xlsx"'
    }
    return StreamingResponse(excel_file, media_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', headers=headers)
