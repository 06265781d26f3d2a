import re
from datetime import date
from decimal import Decimal

import pytest

from conftest import assert_invariant
from crud import accounting_heads as crud_heads
from crud import expenses as crud_expenses
from crud import income as crud_income
from crud import inventory_items as crud_inventory_items
from crud.audit_log import get_audit_logs
from exceptions import InvoiceCapacityError, NotFoundError, ValidationError
from models.expenses import Expense
from schemas.accounting_heads import AccountingHeadCreate, ExpenseCategoryCreate
from schemas.expenses import ExpenseCreate, ExpenseUpdate, InventoryPurchaseCreate
from schemas.income import IncomeCreate, IncomeUpdate
from schemas.inventory_items import InventoryItemBase


def _expense(db, **kwargs):
    kwargs.setdefault("amount", Decimal(100))
    kwargs.setdefault("expense_date", date(2026, 3, 1))
    return crud_expenses.create_expense(db, ExpenseCreate(**kwargs), changed_by="tester")


def test_expense_number_format(db):
    expense = _expense(db)
    assert re.fullmatch(r"EXP-\d{13}-[0-9A-Z]{6}", expense.expense_number)
    assert expense.created_by == "tester"


def test_negative_amount_is_rejected(db):
    with pytest.raises(ValidationError):
        _expense(db, amount=Decimal("-0.01"))
    assert db.query(Expense).count() == 0


def test_unknown_references_are_not_found(db):
    with pytest.raises(NotFoundError):
        _expense(db, batch_id=99)
    with pytest.raises(NotFoundError):
        _expense(db, accounting_head_id=99)
    with pytest.raises(NotFoundError):
        _expense(db, inventory_item_id=99, quantity=Decimal(1))


def test_linked_expense_reserves_quantity(db, make_item):
    item = make_item(stock=20)

    expense = _expense(db, inventory_item_id=item.id, quantity=Decimal(8))

    assert expense.invoiced_quantity == Decimal(8)
    item = crud_inventory_items.get_inventory_item(db, item.id)
    assert item.invoiced_quantity == Decimal(8)
    invoice = crud_inventory_items.get_inventory_transactions(db, item_id=item.id, transaction_type="invoice")[0]
    assert invoice.reference_type == "expense"
    assert invoice.reference_id == expense.id


def test_over_capacity_expense_leaves_nothing_behind(db, make_item):
    item = make_item(stock=10)
    _expense(db, inventory_item_id=item.id, quantity=Decimal(6))

    with pytest.raises(InvoiceCapacityError):
        _expense(db, inventory_item_id=item.id, quantity=Decimal(5))

    assert db.query(Expense).count() == 1
    assert crud_inventory_items.get_inventory_item(db, item.id).invoiced_quantity == Decimal(6)


def test_failed_reservation_rolls_back_the_expense_insert(db, make_item, monkeypatch):
    item = make_item(stock=10)

    # Stock disappears between the capacity check and the reservation
    monkeypatch.setattr(crud_expenses, "_check_invoice_capacity", lambda *args: None)
    with pytest.raises(InvoiceCapacityError):
        _expense(db, inventory_item_id=item.id, quantity=Decimal(11))

    assert db.query(Expense).count() == 0
    assert crud_inventory_items.get_inventory_item(db, item.id).invoiced_quantity == 0


def test_delete_expense_releases_its_reservation(db, make_item):
    item = make_item(stock=10)
    expense = _expense(db, inventory_item_id=item.id, quantity=Decimal(4))

    crud_expenses.delete_expense(db, expense.id, changed_by="tester")

    assert crud_expenses.get_expense(db, expense.id) is None
    assert crud_inventory_items.get_inventory_item(db, item.id).invoiced_quantity == 0
    assert get_audit_logs(db, "expenses", expense.id)[-1].action == "DELETE"


def test_update_quantity_moves_reservation(db, make_item):
    item = make_item(stock=10)
    expense = _expense(db, inventory_item_id=item.id, quantity=Decimal(4))

    expense = crud_expenses.update_expense(db, expense.id, ExpenseUpdate(quantity=Decimal(9)), changed_by="tester")

    assert expense.invoiced_quantity == Decimal(9)
    assert crud_inventory_items.get_inventory_item(db, item.id).invoiced_quantity == Decimal(9)


def test_update_over_capacity_keeps_old_reservation(db, make_item):
    item = make_item(stock=10)
    expense = _expense(db, inventory_item_id=item.id, quantity=Decimal(4))

    with pytest.raises(InvoiceCapacityError):
        crud_expenses.update_expense(db, expense.id, ExpenseUpdate(quantity=Decimal(11)))

    assert crud_expenses.get_expense(db, expense.id).quantity == Decimal(4)
    assert crud_inventory_items.get_inventory_item(db, item.id).invoiced_quantity == Decimal(4)


def test_update_item_moves_reservation_between_items(db, make_item):
    first = make_item(stock=10)
    second = make_item(stock=10)
    expense = _expense(db, inventory_item_id=first.id, quantity=Decimal(3))

    crud_expenses.update_expense(db, expense.id, ExpenseUpdate(inventory_item_id=second.id))

    assert crud_inventory_items.get_inventory_item(db, first.id).invoiced_quantity == 0
    assert crud_inventory_items.get_inventory_item(db, second.id).invoiced_quantity == Decimal(3)


def test_plain_field_update_does_not_touch_inventory(db, make_item):
    item = make_item(stock=10)
    expense = _expense(db, inventory_item_id=item.id, quantity=Decimal(3))

    expense = crud_expenses.update_expense(db, expense.id, ExpenseUpdate(vendor_name="Kalimati traders"))

    assert expense.vendor_name == "Kalimati traders"
    assert crud_inventory_items.get_inventory_transactions(db, item_id=item.id, transaction_type="release") == []


def test_inventory_purchase_for_new_item(db):
    purchase = InventoryPurchaseCreate(
        new_item=InventoryItemBase(name="Mustard oil", unit="liters", supplier_name="Bhatbhateni"),
        quantity=Decimal(20),
        unit_cost=Decimal("310.50"),
        expense_date=date(2026, 3, 3),
    )

    expense = crud_expenses.record_inventory_purchase(db, purchase, changed_by="tester")

    assert expense.amount == Decimal("6210.00")
    assert expense.vendor_name == "Bhatbhateni"
    item = crud_inventory_items.get_inventory_item(db, expense.inventory_item_id)
    assert item.current_stock == Decimal(20)
    assert item.unit_cost == Decimal("310.50")
    assert item.invoiced_quantity == Decimal(20)
    assert_invariant(item)


def test_inventory_purchase_needs_exactly_one_item_source(db, make_item):
    item = make_item(stock=0)
    with pytest.raises(ValidationError):
        crud_expenses.record_inventory_purchase(db, InventoryPurchaseCreate(
            inventory_item_id=item.id,
            new_item=InventoryItemBase(name="Other", unit="kg"),
            quantity=Decimal(1), unit_cost=Decimal(1), expense_date=date(2026, 3, 3),
        ))
    with pytest.raises(ValidationError):
        crud_expenses.record_inventory_purchase(db, InventoryPurchaseCreate(
            quantity=Decimal(1), unit_cost=Decimal(1), expense_date=date(2026, 3, 3),
        ))


def test_filters_and_search(db, make_batch):
    batch = make_batch()
    head = crud_heads.create_accounting_head(db, AccountingHeadCreate(name="Raw materials", type="expense"))
    _expense(db, description="Timur seeds", vendor_name="Ilam farms", expense_date=date(2026, 1, 10),
             accounting_head_id=head.id, batch_id=batch.id)
    _expense(db, description="Gas cylinder", expense_date=date(2026, 2, 10))
    _expense(db, description="Labels", vendor_name="Print house ILAM", expense_date=date(2026, 3, 10))

    assert len(crud_expenses.get_expenses(db, search="ilam")) == 2
    assert len(crud_expenses.get_expenses(db, accounting_head_id=head.id)) == 1
    assert len(crud_expenses.get_expenses(db, batch_id=batch.id)) == 1
    in_range = crud_expenses.get_expenses(db, date_from=date(2026, 2, 10), date_to=date(2026, 3, 10))
    assert [e.description for e in in_range] == ["Labels", "Gas cylinder"]


def test_inventory_accounting_records_use_the_link_column(db, make_item):
    item = make_item(stock=10)
    _expense(db, inventory_item_id=item.id, quantity=Decimal(2))
    _expense(db, description=f"inventory_item_id:{item.id}")

    records = crud_expenses.get_inventory_accounting_records(db, item.id)

    assert len(records) == 1


def test_parse_inventory_item_token():
    assert crud_expenses.parse_inventory_item_token("Purchase of oil inventory_item_id:42") == 42
    assert crud_expenses.parse_inventory_item_token("No token here") is None
    assert crud_expenses.parse_inventory_item_token(None) is None


def test_backfill_links_legacy_descriptions(db, make_item):
    item = make_item(stock=10)
    crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(3))
    legacy = _expense(db, description=f"Chilli purchase inventory_item_id:{item.id}", quantity=Decimal(3))
    orphan = _expense(db, description="Old entry inventory_item_id:9999")

    stats = crud_expenses.backfill_inventory_links(db)

    assert stats == {"scanned": 2, "linked": 1, "missing_item": 1}
    legacy = crud_expenses.get_expense(db, legacy.id)
    assert legacy.inventory_item_id == item.id
    assert legacy.invoiced_quantity == Decimal(3)
    assert crud_expenses.get_expense(db, orphan.id).inventory_item_id is None

    assert crud_expenses.backfill_inventory_links(db)["linked"] == 0

    crud_expenses.delete_expense(db, legacy.id)
    assert crud_inventory_items.get_inventory_item(db, item.id).invoiced_quantity == 0


def test_income_lifecycle(db, make_batch):
    batch = make_batch()
    income = crud_income.create_income(db, IncomeCreate(
        amount=Decimal(800), income_date=date(2026, 3, 20), customer_name="Thamel Deli", batch_id=batch.id,
    ), changed_by="tester")
    assert re.fullmatch(r"INC-\d{13}-[0-9A-Z]{6}", income.income_number)

    income = crud_income.update_income(db, income.id, IncomeUpdate(amount=Decimal(850)), changed_by="tester")
    assert income.amount == Decimal(850)
    assert [i.id for i in crud_income.get_income(db, search="thamel")] == [income.id]

    crud_income.delete_income(db, income.id, changed_by="tester")
    assert crud_income.get_income_record(db, income.id) is None
    with pytest.raises(NotFoundError):
        crud_income.delete_income(db, income.id)


def test_expense_category_belongs_to_head(db):
    head = crud_heads.create_accounting_head(db, AccountingHeadCreate(name="Packaging", type="expense"))
    category = crud_heads.create_expense_category(db, ExpenseCategoryCreate(accounting_head_id=head.id, name="Jars"))

    assert [c.id for c in crud_heads.get_expense_categories(db, head.id)] == [category.id]
    with pytest.raises(NotFoundError):
        crud_heads.create_expense_category(db, ExpenseCategoryCreate(accounting_head_id=999, name="Lids"))
