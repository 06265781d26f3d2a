from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import assert_invariant
from crud import app_config as crud_app_config
from crud import batch_inventory_consumption as crud_consumption
from crud import expenses as crud_expenses
from crud import inventory_items as crud_inventory_items
from crud.audit_log import get_audit_logs
from exceptions import (
    ConflictError,
    InsufficientStockError,
    InvoiceCapacityError,
    NotFoundError,
    ValidationError,
)
from schemas.app_config import AccountingConfigUpdate
from schemas.batch_inventory_consumption import BatchInventoryConsumptionCreate
from schemas.expenses import ExpenseCreate
from schemas.inventory_items import (
    InventoryCategoryCreate,
    InventoryCategoryUpdate,
    InventoryItemUpdate,
)


def test_create_item_with_opening_stock_logs_stock_in(db, make_item):
    item = make_item(name="Timur", stock=100, unit_cost=5)

    assert item.current_stock == Decimal(100)
    assert item.invoiced_quantity == 0
    assert item.unit_cost == Decimal(5)
    transactions = crud_inventory_items.get_inventory_transactions(db, item_id=item.id)
    assert [t.transaction_type for t in transactions] == ["in"]
    assert transactions[0].old_quantity == 0
    assert transactions[0].new_quantity == 100


def test_duplicate_item_name_is_a_conflict(db, make_item):
    make_item(name="Jimbu")
    with pytest.raises(ConflictError):
        make_item(name="Jimbu")


def test_consume_exactly_current_stock_leaves_zero(db, make_item, make_batch):
    item = make_item(stock=100)
    batch = make_batch()

    item = crud_inventory_items.consume_inventory_for_batch(db, item.id, Decimal(100), batch.id)

    assert item.current_stock == 0
    assert_invariant(item)


def test_consume_more_than_stock_is_rejected_and_stock_unchanged(db, make_item, make_batch):
    item = make_item(stock=100)
    batch = make_batch()

    with pytest.raises(InsufficientStockError) as exc_info:
        crud_inventory_items.consume_inventory_for_batch(db, item.id, Decimal("100.001"), batch.id)

    assert exc_info.value.available == Decimal(100)
    assert exc_info.value.requested == Decimal("100.001")
    assert crud_inventory_items.get_inventory_item(db, item.id).current_stock == Decimal(100)


@pytest.mark.parametrize("quantity", [0, -1, "-0.5"])
def test_non_positive_quantities_are_validation_errors(db, make_item, make_batch, quantity):
    item = make_item(stock=10)
    batch = make_batch()

    with pytest.raises(ValidationError):
        crud_inventory_items.consume_inventory_for_batch(db, item.id, quantity, batch.id)
    with pytest.raises(ValidationError):
        crud_inventory_items.add_invoiced_quantity(db, item.id, quantity)
    with pytest.raises(ValidationError):
        crud_inventory_items.add_stock(db, item.id, quantity, 5)


def test_unknown_item_is_not_found(db):
    with pytest.raises(NotFoundError):
        crud_inventory_items.consume_inventory_for_batch(db, 999, 1, None)
    with pytest.raises(NotFoundError):
        crud_inventory_items.add_invoiced_quantity(db, 999, 1)
    with pytest.raises(NotFoundError):
        crud_inventory_items.get_availability(db, 999)


def test_invoice_up_to_available_then_one_more_fails(db, make_item):
    item = make_item(stock=50)
    crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(20))

    item = crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(30))
    assert item.invoiced_quantity == Decimal(50)

    with pytest.raises(InvoiceCapacityError) as exc_info:
        crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(1))
    assert exc_info.value.available == 0
    assert_invariant(crud_inventory_items.get_inventory_item(db, item.id))


def test_scenario_consume_then_invoice_through_expense(db, make_item, make_batch):
    item = make_item(stock=100, unit_cost=5)
    batch = make_batch()

    item = crud_inventory_items.consume_inventory_for_batch(db, item.id, Decimal(30), batch.id)
    assert item.current_stock == Decimal(70)

    crud_expenses.create_expense(db, ExpenseCreate(
        amount=Decimal(200), expense_date=date(2026, 3, 2), quantity=Decimal(40), inventory_item_id=item.id,
    ), changed_by="tester")
    availability = crud_inventory_items.get_availability(db, item.id)
    assert availability["invoiced_quantity"] == Decimal(40)
    assert availability["available_for_invoice"] == Decimal(30)
    assert availability["available_for_consumption"] == Decimal(70)

    with pytest.raises(InvoiceCapacityError):
        crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(31))


def test_consumption_below_reserved_level_holds_the_excess_as_unbacked(db, make_item, make_batch):
    item = make_item(stock=100)
    batch = make_batch()
    crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(80))

    item = crud_inventory_items.consume_inventory_for_batch(db, item.id, Decimal(50), batch.id)

    assert item.current_stock == Decimal(50)
    assert item.invoiced_quantity == Decimal(50)
    assert item.unbacked_invoiced_quantity == Decimal(30)
    assert crud_inventory_items.get_availability(db, item.id)["available_for_invoice"] == 0
    assert_invariant(item)


def test_consume_then_delete_consumption_restores_reservations(db, make_item, make_batch):
    item = make_item(stock=100)
    batch = make_batch()
    crud_expenses.create_expense(db, ExpenseCreate(
        amount=Decimal(400), expense_date=date(2026, 3, 1), quantity=Decimal(80), inventory_item_id=item.id,
    ), changed_by="tester")
    record = crud_consumption.add_batch_inventory_consumption(db, BatchInventoryConsumptionCreate(
        batch_id=batch.id, inventory_item_id=item.id, quantity_consumed=Decimal(50)), changed_by="tester")

    crud_consumption.delete_batch_inventory_consumption(db, record.id, changed_by="tester")

    availability = crud_inventory_items.get_availability(db, item.id)
    assert availability["current_stock"] == Decimal(100)
    assert availability["invoiced_quantity"] == Decimal(80)
    assert availability["unbacked_invoiced_quantity"] == 0
    assert availability["available_for_invoice"] == Decimal(20)
    with pytest.raises(InvoiceCapacityError):
        crud_expenses.create_expense(db, ExpenseCreate(
            amount=Decimal(250), expense_date=date(2026, 3, 2), quantity=Decimal(50), inventory_item_id=item.id,
        ), changed_by="tester")


def test_partial_restock_moves_unbacked_back_first(db, make_item, make_batch):
    item = make_item(stock=100)
    batch = make_batch()
    crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(80))
    crud_inventory_items.consume_inventory_for_batch(db, item.id, Decimal(50), batch.id)

    item = crud_inventory_items.add_stock(db, item.id, Decimal(10), Decimal(5))
    assert item.invoiced_quantity == Decimal(60)
    assert item.unbacked_invoiced_quantity == Decimal(20)

    item = crud_inventory_items.release_invoiced_quantity(db, item.id, Decimal(25))
    assert item.invoiced_quantity == Decimal(55)
    assert item.unbacked_invoiced_quantity == 0
    assert crud_inventory_items.get_availability(db, item.id)["available_for_invoice"] == Decimal(5)
    assert_invariant(item)


def test_quantity_finer_than_stored_scale_is_rejected(db, make_item, make_batch):
    item = make_item(stock=10)
    batch = make_batch()

    with pytest.raises(ValidationError):
        crud_consumption.add_batch_inventory_consumption(db, BatchInventoryConsumptionCreate(
            batch_id=batch.id, inventory_item_id=item.id, quantity_consumed=Decimal("1.0004")))

    assert crud_consumption.get_batch_inventory_consumption(db, batch.id) == []
    assert crud_inventory_items.get_inventory_item(db, item.id).current_stock == Decimal(10)
    with pytest.raises(ValidationError):
        crud_inventory_items.add_stock(db, item.id, Decimal(1), Decimal("2.50005"))
    with pytest.raises(ValidationError):
        crud_inventory_items.add_invoiced_quantity(db, item.id, "0.0001")


def test_trailing_zeros_within_scale_are_accepted(db, make_item, make_batch):
    item = make_item(stock=10)

    record = crud_consumption.add_batch_inventory_consumption(db, BatchInventoryConsumptionCreate(
        batch_id=make_batch().id, inventory_item_id=item.id, quantity_consumed=Decimal("1.000"),
        unit_cost=Decimal("2.50000")))

    assert record.total_cost == Decimal("2.5")
    assert crud_inventory_items.get_inventory_item(db, item.id).current_stock == Decimal(9)


def test_release_never_goes_below_zero(db, make_item):
    item = make_item(stock=10)
    crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(4))

    item = crud_inventory_items.release_invoiced_quantity(db, item.id, Decimal(9))

    assert item.invoiced_quantity == 0
    release = crud_inventory_items.get_inventory_transactions(db, item_id=item.id, transaction_type="release")[0]
    assert release.old_quantity == Decimal(4)
    assert release.new_quantity == 0


def test_add_stock_uses_last_cost_by_default(db, make_item):
    item = make_item(stock=100, unit_cost=5)

    item = crud_inventory_items.add_stock(db, item.id, Decimal(100), Decimal(7))

    assert item.current_stock == Decimal(200)
    assert item.unit_cost == Decimal(7)


def test_add_stock_weighted_average_when_configured(db, make_item):
    crud_app_config.update_accounting_config(
        db, AccountingConfigUpdate(inventory_costing_method="weighted_average"), user_id="tester")
    item = make_item(stock=100, unit_cost=5)

    item = crud_inventory_items.add_stock(db, item.id, Decimal(100), Decimal(7))

    assert item.unit_cost == Decimal(6)


def test_add_stock_rejects_negative_cost(db, make_item):
    item = make_item(stock=1)
    with pytest.raises(ValidationError):
        crud_inventory_items.add_stock(db, item.id, Decimal(1), Decimal(-1))


def test_adjust_stock_below_reservations_keeps_the_excess_unbacked(db, make_item):
    item = make_item(stock=100)
    crud_inventory_items.add_invoiced_quantity(db, item.id, Decimal(60))

    item = crud_inventory_items.adjust_stock(db, item.id, Decimal(40), notes="Stock take")

    assert item.current_stock == Decimal(40)
    assert item.invoiced_quantity == Decimal(40)
    assert item.unbacked_invoiced_quantity == Decimal(20)
    adjustment = crud_inventory_items.get_inventory_transactions(db, item_id=item.id, transaction_type="adjustment")[0]
    assert adjustment.quantity == Decimal(-60)


def test_adjust_stock_rejects_negative_count(db, make_item):
    item = make_item(stock=5)
    with pytest.raises(ValidationError):
        crud_inventory_items.adjust_stock(db, item.id, Decimal(-1))


def test_update_item_leaves_ledger_fields_alone(db, make_item):
    item = make_item(name="Old name", stock=12, unit_cost=3)

    item = crud_inventory_items.update_inventory_item(
        db, item.id, InventoryItemUpdate(name="Sichuan pepper", minimum_stock=Decimal(5)), changed_by="tester")

    assert item.name == "Sichuan pepper"
    assert item.minimum_stock == Decimal(5)
    assert item.current_stock == Decimal(12)
    assert item.unit_cost == Decimal(3)


def test_delete_item_referenced_by_expense_is_refused(db, make_item):
    item = make_item(stock=10)
    crud_expenses.create_expense(db, ExpenseCreate(
        amount=Decimal(50), expense_date=date(2026, 3, 2), quantity=Decimal(2), inventory_item_id=item.id,
    ), changed_by="tester")

    with pytest.raises(ConflictError):
        crud_inventory_items.delete_inventory_item(db, item.id)
    assert crud_inventory_items.get_inventory_item(db, item.id) is not None


def test_delete_unreferenced_item(db, make_item):
    item = make_item(stock=10)

    assert crud_inventory_items.delete_inventory_item(db, item.id, changed_by="tester") is True
    assert crud_inventory_items.get_inventory_item(db, item.id) is None
    assert crud_inventory_items.get_inventory_transactions(db, item_id=item.id) == []


def test_search_matches_name_sku_and_description(db, make_item):
    make_item(name="Mustard oil", sku="OIL-01")
    make_item(name="Jars 250ml", description="Glass jar for achar")
    make_item(name="Salt")

    assert [i.name for i in crud_inventory_items.get_inventory_items(db, search="oil-0")] == ["Mustard oil"]
    assert [i.name for i in crud_inventory_items.get_inventory_items(db, search="ACHAR")] == ["Jars 250ml"]


def test_low_stock_expiry_and_summary(db, make_item):
    today = date.today()
    make_item(name="Chilli", stock=2, unit_cost=10, minimum_stock=Decimal(5))
    make_item(name="Garlic", stock=50, unit_cost=2, expiry_date=today + timedelta(days=10))
    make_item(name="Ginger", stock=50, unit_cost=1, expiry_date=today + timedelta(days=90))

    assert [i.name for i in crud_inventory_items.get_low_stock_items(db)] == ["Chilli"]
    assert [i.name for i in crud_inventory_items.get_expiry_alerts(db, within_days=30)] == ["Garlic"]

    summary = crud_inventory_items.get_inventory_summary(db)
    assert summary["total_items"] == 3
    assert summary["low_stock_count"] == 1
    assert summary["expiry_count"] == 1
    assert summary["total_value"] == Decimal(2 * 10 + 50 * 2 + 50 * 1)


def test_categories_group_items(db, make_item):
    spices = crud_inventory_items.create_inventory_category(
        db, InventoryCategoryCreate(name="Spices", description="Dry whole and ground spices"), changed_by="tester")
    packaging = crud_inventory_items.create_inventory_category(db, InventoryCategoryCreate(name="Packaging"))
    make_item(name="Timur", category_id=spices.id)
    make_item(name="Jars 250ml", category_id=packaging.id)
    make_item(name="Salt")

    items = crud_inventory_items.get_inventory_items(db, category_id=spices.id)

    assert [i.name for i in items] == ["Timur"]
    assert items[0].category_name == "Spices"
    assert [c.name for c in crud_inventory_items.get_inventory_categories(db)] == ["Packaging", "Spices"]


def test_item_with_unknown_category_is_not_found(db, make_item):
    with pytest.raises(NotFoundError):
        make_item(name="Timur", category_id=42)

    item = make_item(name="Jimbu")
    with pytest.raises(NotFoundError):
        crud_inventory_items.update_inventory_item(db, item.id, InventoryItemUpdate(category_id=42))


def test_category_names_are_unique(db):
    crud_inventory_items.create_inventory_category(db, InventoryCategoryCreate(name="Oil"))
    other = crud_inventory_items.create_inventory_category(db, InventoryCategoryCreate(name="Spices"))

    with pytest.raises(ConflictError):
        crud_inventory_items.create_inventory_category(db, InventoryCategoryCreate(name="Oil"))
    with pytest.raises(ConflictError):
        crud_inventory_items.update_inventory_category(db, other.id, InventoryCategoryUpdate(name="Oil"))


def test_category_in_use_cannot_be_deleted(db, make_item):
    spices = crud_inventory_items.create_inventory_category(db, InventoryCategoryCreate(name="Spices"))
    item = make_item(name="Timur", category_id=spices.id)

    with pytest.raises(ConflictError):
        crud_inventory_items.delete_inventory_category(db, spices.id)

    crud_inventory_items.update_inventory_item(db, item.id, InventoryItemUpdate(category_id=None))
    crud_inventory_items.update_inventory_category(
        db, spices.id, InventoryCategoryUpdate(description="Whole spices"), changed_by="tester")
    assert crud_inventory_items.delete_inventory_category(db, spices.id, changed_by="tester") is True
    assert crud_inventory_items.get_inventory_category(db, spices.id) is None
    assert [log.action for log in get_audit_logs(db, "inventory_categories", spices.id)] == ["UPDATE", "DELETE"]
