"""
Profit/loss figures derived from expenses, income and batch consumption.

Nothing here writes. Margins are net profit over cost, as a percentage,
and 0 whenever the cost is 0.
"""

import calendar
import logging
from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import Optional

import pandas as pd
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.app_config import get_accounting_config
from exceptions import NotFoundError, ValidationError
from models.accounting_heads import AccountingHead
from models.batch import Batch
from models.batch_inventory_consumption import BatchInventoryConsumption
from models.expenses import Expense
from models.income import Income
from models.products import Product

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
HUNDRED = Decimal(100)
MARGIN_PLACES = Decimal("0.01")


def profit_margin(net_profit: Decimal, cost: Decimal) -> Decimal:
    if not cost:
        return ZERO
    return (Decimal(net_profit) / Decimal(cost) * HUNDRED).quantize(MARGIN_PLACES)


def _total(db: Session, column, *criteria) -> Decimal:
    return Decimal(db.query(func.sum(column)).filter(*criteria).scalar() or ZERO)


def _totals_by_batch(db: Session, column, batch_column, batch_ids) -> dict:
    rows = db.query(batch_column, func.sum(column)).filter(batch_column.in_(batch_ids)).group_by(batch_column).all()
    return {batch_id: Decimal(total or ZERO) for batch_id, total in rows}


def _batch_figures(total_expenses: Decimal, total_income: Decimal, consumption_cost: Decimal, includes_consumption: bool) -> dict:
    total_cost = total_expenses + consumption_cost if includes_consumption else total_expenses
    net_profit = total_income - total_cost
    return {
        "total_expenses": total_expenses,
        "total_income": total_income,
        "inventory_consumption_cost": consumption_cost,
        "total_cost": total_cost,
        "net_profit": net_profit,
        "profit_margin": profit_margin(net_profit, total_cost),
    }


def get_batch_profit_loss(db: Session, batch_id: int) -> dict:
    """
    Profit and loss of one batch, with the expense and income lines behind it.

    Whether consumed inventory counts toward total_cost follows the
    batch_cost_includes_consumption setting; the consumption cost is always
    reported on its own.
    """
    db_batch = db.query(Batch).filter(Batch.id == batch_id).first()
    if db_batch is None:
        raise NotFoundError("Batch", batch_id)

    expenses = db.query(Expense).filter(Expense.batch_id == batch_id).order_by(Expense.expense_date.desc()).all()
    income = db.query(Income).filter(Income.batch_id == batch_id).order_by(Income.income_date.desc()).all()
    consumption_cost = _total(db, BatchInventoryConsumption.total_cost, BatchInventoryConsumption.batch_id == batch_id)
    includes_consumption = get_accounting_config(db).batch_cost_includes_consumption

    figures = _batch_figures(
        sum((Decimal(e.amount) for e in expenses), ZERO),
        sum((Decimal(i.amount) for i in income), ZERO),
        consumption_cost,
        includes_consumption,
    )
    return {
        "batch_id": batch_id,
        **figures,
        "includes_consumption_cost": includes_consumption,
        "expenses": [
            {"id": e.id, "amount": e.amount, "description": e.description, "date": e.expense_date}
            for e in expenses
        ],
        "income": [
            {"id": i.id, "amount": i.amount, "description": i.description, "date": i.income_date}
            for i in income
        ],
    }


def get_profit_loss_analysis(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None,
                             batch_id: Optional[int] = None, status: Optional[str] = None):
    """One row per batch, newest production date first."""
    query = db.query(Batch)
    if batch_id is not None:
        query = query.filter(Batch.id == batch_id)
    if date_from:
        query = query.filter(Batch.production_date >= date_from)
    if date_to:
        query = query.filter(Batch.production_date <= date_to)
    if status:
        query = query.filter(Batch.status == status)
    batches = query.order_by(Batch.production_date.desc(), Batch.id.desc()).all()
    if not batches:
        return []

    batch_ids = [b.id for b in batches]
    expense_totals = _totals_by_batch(db, Expense.amount, Expense.batch_id, batch_ids)
    income_totals = _totals_by_batch(db, Income.amount, Income.batch_id, batch_ids)
    consumption_totals = _totals_by_batch(db, BatchInventoryConsumption.total_cost, BatchInventoryConsumption.batch_id, batch_ids)
    includes_consumption = get_accounting_config(db).batch_cost_includes_consumption

    results = []
    for b in batches:
        results.append({
            "batch_id": b.id,
            "batch_number": b.batch_number,
            "batch_name": b.batch_name,
            "production_date": b.production_date,
            "status": b.status,
            **_batch_figures(
                expense_totals.get(b.id, ZERO),
                income_totals.get(b.id, ZERO),
                consumption_totals.get(b.id, ZERO),
                includes_consumption,
            ),
        })
    return results


def get_batch_cost_summary(db: Session, batch_id: Optional[int] = None):
    if batch_id is not None and db.query(Batch.id).filter(Batch.id == batch_id).first() is None:
        raise NotFoundError("Batch", batch_id)
    return get_profit_loss_analysis(db, batch_id=batch_id)


def _summary(total_expenses: Decimal, total_income: Decimal) -> dict:
    net_profit = total_income - total_expenses
    return {
        "total_expenses": total_expenses,
        "total_income": total_income,
        "net_profit": net_profit,
        "profit_margin": profit_margin(net_profit, total_expenses),
    }


def get_dashboard_summary(db: Session) -> dict:
    """All-time totals over every expense and income row, batch-linked or not."""
    return _summary(_total(db, Expense.amount), _total(db, Income.amount))


def get_monthly_summary(db: Session, year: int, month: int) -> dict:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])

    expense_criteria = (Expense.expense_date >= start, Expense.expense_date <= end)
    income_criteria = (Income.income_date >= start, Income.income_date <= end)
    return {
        "year": year,
        "month": month,
        **_summary(_total(db, Expense.amount, *expense_criteria), _total(db, Income.amount, *income_criteria)),
        "expense_count": db.query(func.count(Expense.id)).filter(*expense_criteria).scalar() or 0,
        "income_count": db.query(func.count(Income.id)).filter(*income_criteria).scalar() or 0,
    }


def get_accounting_head_summary(db: Session, head_type: Optional[str] = None):
    heads = db.query(AccountingHead)
    if head_type:
        heads = heads.filter(AccountingHead.type == head_type)
    heads = heads.order_by(AccountingHead.name).all()

    expense_rows = db.query(Expense.accounting_head_id, func.sum(Expense.amount), func.count(Expense.id)).group_by(Expense.accounting_head_id).all()
    income_rows = db.query(Income.accounting_head_id, func.sum(Income.amount), func.count(Income.id)).group_by(Income.accounting_head_id).all()
    totals = {
        "expense": {head_id: (Decimal(total or ZERO), count) for head_id, total, count in expense_rows},
        "income": {head_id: (Decimal(total or ZERO), count) for head_id, total, count in income_rows},
    }

    summary = []
    for head in heads:
        total, count = totals.get(head.type, {}).get(head.id, (ZERO, 0))
        summary.append({
            "accounting_head_id": head.id,
            "head_name": head.name,
            "head_type": head.type,
            "total_amount": total,
            "transaction_count": count,
        })
    return summary


def _product_expense_query(db: Session, date_from: Optional[date], date_to: Optional[date],
                           product_id: Optional[int], accounting_head_id: Optional[int]):
    query = db.query(Expense, Product.name, AccountingHead.name).join(
        Product, Expense.product_id == Product.id
    ).outerjoin(
        AccountingHead, Expense.accounting_head_id == AccountingHead.id
    )
    if product_id is not None:
        query = query.filter(Expense.product_id == product_id)
    if accounting_head_id is not None:
        query = query.filter(Expense.accounting_head_id == accounting_head_id)
    if date_from:
        query = query.filter(Expense.expense_date >= date_from)
    if date_to:
        query = query.filter(Expense.expense_date <= date_to)
    return query


def get_product_cost_analysis(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None,
                              product_id: Optional[int] = None, accounting_head_id: Optional[int] = None):
    """Every expense attributed to a product, newest first."""
    rows = _product_expense_query(db, date_from, date_to, product_id, accounting_head_id).order_by(
        Expense.expense_date.desc(), Expense.id.desc()
    ).all()
    lines = []
    for expense, product_name, head_name in rows:
        quantity = Decimal(expense.quantity) if expense.quantity is not None else None
        lines.append({
            "expense_id": expense.id,
            "expense_date": expense.expense_date,
            "product_id": expense.product_id,
            "product_name": product_name,
            "accounting_head": head_name,
            "batch_id": expense.batch_id,
            "amount": expense.amount,
            "quantity": quantity,
            "unit_cost": Decimal(expense.amount) / quantity if quantity else None,
        })
    return lines


def get_product_cost_summary(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None,
                             product_id: Optional[int] = None, accounting_head_id: Optional[int] = None):
    """Expenses grouped by product and accounting head, highest total cost first."""
    groups = {}
    for expense, product_name, head_name in _product_expense_query(db, date_from, date_to, product_id, accounting_head_id).all():
        key = (expense.product_id, head_name)
        group = groups.setdefault(key, {
            "product_id": expense.product_id,
            "product_name": product_name,
            "accounting_head": head_name,
            "total_cost": ZERO,
            "total_quantity": ZERO,
            "transaction_count": 0,
        })
        group["total_cost"] += Decimal(expense.amount)
        group["total_quantity"] += Decimal(expense.quantity or ZERO)
        group["transaction_count"] += 1

    summary = []
    for group in groups.values():
        group["avg_unit_cost"] = group["total_cost"] / group["total_quantity"] if group["total_quantity"] else ZERO
        summary.append(group)
    summary.sort(key=lambda g: g["total_cost"], reverse=True)
    return summary


EXPORT_COLUMNS = {
    "batch_number": "Batch",
    "batch_name": "Name",
    "production_date": "Production Date",
    "status": "Status",
    "total_expenses": "Expenses",
    "inventory_consumption_cost": "Inventory Consumed",
    "total_cost": "Total Cost",
    "total_income": "Income",
    "net_profit": "Net Profit",
    "profit_margin": "Margin %",
}


def export_profit_loss_report(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None) -> BytesIO:
    """Per-batch analysis as an in-memory .xlsx workbook."""
    rows = get_profit_loss_analysis(db, date_from=date_from, date_to=date_to)
    df = pd.DataFrame(rows, columns=["batch_id", *EXPORT_COLUMNS.keys()])
    df = df.drop(columns=["batch_id"]).rename(columns=EXPORT_COLUMNS)
    money_columns = [EXPORT_COLUMNS[key] for key in EXPORT_COLUMNS if key not in ("batch_number", "batch_name", "production_date", "status")]
    for column in money_columns:
        df[column] = df[column].astype(float)

    excel_file = BytesIO()
    with pd.ExcelWriter(excel_file, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Profit and Loss")
        ws = writer.sheets["Profit and Loss"]
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for idx, column in enumerate(df.columns, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = max(12, len(column) + 2)
    excel_file.seek(0)
    logger.info(f"Profit and loss export generated with {len(rows)} batches")
    return excel_file
