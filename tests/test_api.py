"""
HTTP tests for the Inventory service.
"""
from decimal import Decimal

import pytest

from conftest import read_quantity


@pytest.fixture
def item_id(client, auth_headers):
    response = client.post(
        "/items",
        json={"name": "Product A", "sku": "SKU-A", "quantity": 100, "price": "25.00"},
        headers=auth_headers(1),
    )
    assert response.status_code == 201
    return response.json()["id"]


def _record(client, headers, item_id, kind, quantity, price="50.00", **extra):
    payload = {"item_id": item_id, "kind": kind, "quantity": quantity, "price_per_unit": price}
    payload.update(extra)
    return client.post("/transactions", json=payload, headers=headers)


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_endpoints_require_a_token(client):
    assert client.get("/items").status_code in (401, 403)


def test_invalid_token_is_rejected(client):
    response = client.get("/items", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_item_crud(client, auth_headers, item_id):
    headers = auth_headers(1)

    fetched = client.get(f"/items/{item_id}", headers=headers).json()
    assert fetched["owner_id"] == 1
    assert Decimal(fetched["price"]) == Decimal("25.00")

    response = client.put(
        f"/items/{item_id}",
        json={"name": "Product A2", "sku": "SKU-A", "quantity": 90, "price": "30.00"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Product A2"

    assert [i["id"] for i in client.get("/items", headers=headers).json()] == [item_id]

    assert client.delete(f"/items/{item_id}", headers=headers).status_code == 204
    assert client.get(f"/items/{item_id}", headers=headers).status_code == 404


def test_items_of_other_users_look_missing(client, auth_headers, item_id):
    other = auth_headers(2)

    response = client.get(f"/items/{item_id}", headers=other)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
    assert client.get("/items", headers=other).json() == []
    assert client.put(
        f"/items/{item_id}", json={"name": "Mine", "sku": "X", "quantity": 1, "price": "1.00"}, headers=other
    ).status_code == 404


def test_blank_item_name_is_a_validation_error(client, auth_headers):
    response = client.post(
        "/items", json={"name": " ", "sku": "SKU-B", "quantity": 1, "price": "1.00"}, headers=auth_headers(1)
    )

    assert response.status_code == 400
    assert response.json()["field"] == "name"


def test_deleting_unknown_item_is_a_noop(client, auth_headers):
    assert client.delete("/items/4242", headers=auth_headers(1)).status_code == 204


def test_buy_transaction(client, auth_headers, item_id):
    response = _record(client, auth_headers(1), item_id, "BUY", 50, price="20.00")

    assert response.status_code == 201
    body = response.json()
    assert body["kind"] == "BUY"
    assert body["status"] == "COMPLETED"
    assert body["inventory_before"] == 100
    assert body["inventory_after"] == 150
    assert Decimal(body["total_amount"]) == Decimal("1000.00")
    assert body["user_id"] == 1
    assert read_quantity(item_id) == 150


def test_sell_with_notes(client, auth_headers, item_id):
    response = _record(client, auth_headers(1), item_id, "sell", 10, notes="Sold to Customer ABC")

    assert response.status_code == 201
    assert response.json()["notes"] == "Sold to Customer ABC"
    assert response.json()["inventory_after"] == 90


def test_insufficient_inventory(client, auth_headers, item_id):
    response = _record(client, auth_headers(1), item_id, "SELL", 150)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "insufficient_inventory"
    assert body["available"] == 100
    assert body["requested"] == 150
    assert body["detail"] == "Insufficient inventory. Available: 100, Requested: 150"
    assert read_quantity(item_id) == 100


def test_transaction_on_foreign_item_is_not_found(client, auth_headers, item_id):
    response = _record(client, auth_headers(2), item_id, "SELL", 1)

    assert response.status_code == 404
    assert read_quantity(item_id) == 100


def test_invalid_kind(client, auth_headers, item_id):
    response = _record(client, auth_headers(1), item_id, "RETURN", 1)

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_kind"


def test_kind_may_be_sent_as_type(client, auth_headers, item_id):
    response = client.post(
        "/transactions",
        json={"item_id": item_id, "type": "BUY", "quantity": 2, "price_per_unit": "3.00"},
        headers=auth_headers(1),
    )

    assert response.status_code == 201
    assert response.json()["kind"] == "BUY"
    assert read_quantity(item_id) == 102


def test_huge_price_is_a_validation_error(client, auth_headers, item_id):
    response = _record(client, auth_headers(1), item_id, "BUY", 1, price="1e30")

    assert response.status_code == 400
    assert response.json()["field"] == "price_per_unit"
    assert read_quantity(item_id) == 100


@pytest.mark.parametrize("quantity,price,field", [
    (0, "1.00", "quantity"),
    (-5, "1.00", "quantity"),
    (1, "-1.00", "price_per_unit"),
])
def test_invalid_transaction_values(client, auth_headers, item_id, quantity, price, field):
    response = _record(client, auth_headers(1), item_id, "BUY", quantity, price=price)

    assert response.status_code == 400
    assert response.json()["field"] == field
    assert client.get("/transactions", headers=auth_headers(1)).json() == []


def test_transaction_history(client, auth_headers, item_id):
    headers = auth_headers(1)
    buy = _record(client, headers, item_id, "BUY", 5).json()
    sell = _record(client, headers, item_id, "SELL", 3).json()

    listed = client.get("/transactions", headers=headers).json()
    assert [t["id"] for t in listed] == [sell["id"], buy["id"]]

    history = client.get(f"/transactions/item/{item_id}", headers=headers).json()
    assert [t["id"] for t in history] == [sell["id"], buy["id"]]

    assert client.get(f"/transactions/{buy['id']}", headers=headers).json()["quantity"] == 5
    assert client.get(f"/transactions/{buy['id']}", headers=auth_headers(2)).status_code == 404
    assert client.get(f"/transactions/item/{item_id}", headers=auth_headers(2)).status_code == 404


def test_attach_notes(client, auth_headers, item_id):
    headers = auth_headers(1)
    tx = _record(client, headers, item_id, "BUY", 1).json()

    response = client.patch(f"/transactions/{tx['id']}/notes", json={"notes": "Late delivery"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["notes"] == "Late delivery"

    again = client.patch(f"/transactions/{tx['id']}/notes", json={"notes": "Changed"}, headers=headers)
    assert again.status_code == 400
    assert again.json()["field"] == "notes"


def test_summary(client, auth_headers, item_id):
    headers = auth_headers(1)
    _record(client, headers, item_id, "BUY", 50, price="2.00")
    _record(client, headers, item_id, "SELL", 30, price="5.00")

    summary = client.get("/transactions/summary", headers=headers).json()

    assert Decimal(summary["total_spending"]) == Decimal("100.00")
    assert Decimal(summary["total_sales"]) == Decimal("150.00")
    assert Decimal(summary["net_profit"]) == Decimal("50.00")


def test_csv_exports(client, auth_headers, item_id):
    headers = auth_headers(1)
    _record(client, headers, item_id, "SELL", 2, notes="cash")

    items_csv = client.get("/items/export/csv", headers=headers)
    assert items_csv.status_code == 200
    assert items_csv.headers["content-type"].startswith("text/csv")
    lines = items_csv.text.splitlines()
    assert lines[0] == "id,name,sku,quantity,price,created_at"
    assert lines[1].startswith(f"{item_id},Product A,SKU-A,98,")

    tx_lines = client.get("/transactions/export/csv", headers=headers).text.splitlines()
    assert tx_lines[0].startswith("id,item_id,kind,status,quantity")
    assert ",SELL,COMPLETED,2," in tx_lines[1]
    assert tx_lines[1].endswith(",cash")


def test_dashboard_endpoint(client, auth_headers, item_id):
    headers = auth_headers(1)
    _record(client, headers, item_id, "SELL", 95)

    body = client.get("/dashboard", headers=headers).json()

    assert body["total_items"] == 1
    assert body["total_item_quantity"] == 5
    assert body["low_stock_items_count"] == 1
    assert body["total_transactions"] == 1
    assert Decimal(body["total_sales"]) == Decimal("4750.00")
    assert body["low_stock_items"][0]["id"] == item_id
