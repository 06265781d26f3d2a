from decimal import Decimal


def _create_item(client, **overrides):
    payload = {"name": "Timur", "unit": "kg", "opening_stock": "10", "unit_cost": "4.5"}
    payload.update(overrides)
    response = client.post("/inventory-items/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _create_batch(client, **overrides):
    payload = {"production_date": "2026-03-01"}
    payload.update(overrides)
    response = client.post("/batches/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_root(client):
    assert client.get("/").status_code == 200


def test_requests_without_token_are_unauthorized(anonymous_client):
    response = anonymous_client.get("/inventory-items/")
    assert response.status_code == 401
    assert response.json()["detail"] == "Authorization header is missing"


def test_create_item_and_read_availability(client):
    item = _create_item(client)

    assert Decimal(item["current_stock"]) == Decimal(10)
    assert Decimal(item["available_for_invoice"]) == Decimal(10)

    availability = client.get(f"/inventory-items/{item['id']}/availability").json()
    assert Decimal(availability["available_for_consumption"]) == Decimal(10)


def test_over_invoicing_is_409_with_code(client):
    item = _create_item(client)

    response = client.post(f"/inventory-items/{item['id']}/invoice", json={"quantity": "11"})

    assert response.status_code == 409
    assert response.json()["code"] == "INVOICE_CAPACITY_EXCEEDED"


def test_over_consumption_is_409_with_code(client):
    item = _create_item(client)
    batch = _create_batch(client)

    response = client.post(f"/batches/{batch['id']}/inventory", json={
        "items": [{"inventory_item_id": item["id"], "quantity_consumed": "10.5"}],
    })

    assert response.status_code == 409
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    assert client.get(f"/batches/{batch['id']}/inventory").json() == []


def test_consumption_then_batch_profit_loss(client):
    item = _create_item(client, unit_cost="2.5")
    batch = _create_batch(client)
    client.post("/expenses/", json={"amount": "500", "expense_date": "2026-03-01", "batch_id": batch["id"]})
    client.post("/income/", json={"amount": "800", "income_date": "2026-03-02", "batch_id": batch["id"]})

    response = client.post(f"/batches/{batch['id']}/inventory", json={
        "items": [{"inventory_item_id": item["id"], "quantity_consumed": "4"}],
    })
    assert response.status_code == 201

    report = client.get(f"/batches/{batch['id']}/profit-loss").json()
    assert Decimal(report["total_cost"]) == Decimal(510)
    assert Decimal(report["net_profit"]) == Decimal(290)


def test_missing_batch_is_404(client):
    response = client.get("/batches/999/profit-loss")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_negative_expense_amount_is_400(client):
    response = client.post("/expenses/", json={"amount": "-5", "expense_date": "2026-03-01"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_expense_records_the_authenticated_user(client):
    response = client.post("/expenses/", json={"amount": "5", "expense_date": "2026-03-01"})

    assert response.status_code == 201
    assert response.json()["created_by"] == "admin@himalayanflavours.test"


def test_deleting_a_referenced_item_is_409(client):
    item = _create_item(client)
    client.post("/expenses/", json={
        "amount": "20", "expense_date": "2026-03-01", "inventory_item_id": item["id"], "quantity": "2",
    })

    response = client.delete(f"/inventory-items/{item['id']}")

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


def test_accounting_configuration_round_trip(client):
    config = client.get("/configurations/accounting").json()
    assert config == {"batch_cost_includes_consumption": True, "inventory_costing_method": "last_cost"}

    response = client.patch("/configurations/accounting", json={"inventory_costing_method": "weighted_average"})
    assert response.status_code == 200
    assert response.json()["inventory_costing_method"] == "weighted_average"

    response = client.patch("/configurations/accounting", json={"inventory_costing_method": "fifo"})
    assert response.status_code == 400
    assert client.get("/configurations/accounting").json()["inventory_costing_method"] == "weighted_average"


def test_batch_numbering_endpoints(client):
    category = client.post("/batches/categories", json={"name": "Pickles", "code": "pkl"}).json()

    preview = client.get("/batches/next-number", params={"category_id": category["id"]}).json()
    batch = _create_batch(client, batch_category_id=category["id"])

    assert preview["batch_number"] == "PKL-001"
    assert batch["batch_number"] == "PKL-001"
    assert client.post("/batches/categories", json={"name": "Again", "code": "PKL"}).status_code == 409


def test_profit_loss_export_is_a_workbook(client):
    _create_batch(client, batch_number="PKL-001")

    response = client.get("/financial-reports/profit-loss/export")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "profit_loss_report.xlsx" in response.headers["content-disposition"]
    assert response.content[:2] == b"PK"


def test_dashboard_and_monthly_summary(client):
    client.post("/expenses/", json={"amount": "400", "expense_date": "2026-03-01"})
    client.post("/income/", json={"amount": "500", "income_date": "2026-03-03"})

    dashboard = client.get("/financial-reports/dashboard").json()
    assert Decimal(dashboard["profit_margin"]) == Decimal(25)

    monthly = client.get("/financial-reports/monthly", params={"year": 2026, "month": 3}).json()
    assert monthly["expense_count"] == 1
    assert client.get("/financial-reports/monthly", params={"year": 2026, "month": 13}).status_code == 422


def test_inventory_category_endpoints(client):
    response = client.post("/inventory-items/categories", json={"name": "Spices"})
    assert response.status_code == 201
    spices = response.json()
    _create_item(client, category_id=spices["id"])
    _create_item(client, name="Jars")

    items = client.get("/inventory-items/", params={"category_id": spices["id"]}).json()
    assert [i["name"] for i in items] == ["Timur"]
    assert items[0]["category_name"] == "Spices"

    assert client.post("/inventory-items/categories", json={"name": "Spices"}).status_code == 409
    assert client.delete(f"/inventory-items/categories/{spices['id']}").status_code == 409
    renamed = client.patch(f"/inventory-items/categories/{spices['id']}", json={"name": "Whole spices"})
    assert renamed.json()["name"] == "Whole spices"
    assert client.post("/inventory-items/", json={"name": "X", "unit": "kg", "category_id": 99}).status_code == 404


def test_amounts_and_quantities_beyond_stored_precision_are_400(client):
    item = _create_item(client)

    response = client.post("/expenses/", json={"amount": "10.005", "expense_date": "2026-03-01"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"

    response = client.post(f"/inventory-items/{item['id']}/invoice", json={"quantity": "1.0004"})
    assert response.status_code == 400
    assert Decimal(client.get(f"/inventory-items/{item['id']}").json()["invoiced_quantity"]) == 0
