"""
Scan-order tests: the hand-off of CONFIRMED orders to a delivery company.
"""

from backoffice.models import ScannedOrder
from backoffice.models.users import WAREHOUSE_AGENT


def scan(client, headers, order_id, **extra):
    return client.post("/api/scan-orders", headers=headers, json={"orderId": order_id, **extra})


def test_scan_confirmed_order(client, users, warehouse_headers, make_product, make_order):
    order = make_order(make_product("P"), status="CONFIRMED")

    resp = scan(client, warehouse_headers, order.id, deliveryCompany="Amana", trackingNumber="TRK-1")

    assert resp.status_code == 201
    body = resp.get_json()["scannedOrder"]
    assert body["orderId"] == order.id
    assert body["deliveryCompany"] == "Amana"
    assert body["scannedBy"] == users[WAREHOUSE_AGENT].id
    assert body["order"]["status"] == "IN_TRANSIT"
    assert order.status == "IN_TRANSIT"


def test_second_scan_conflicts(client, warehouse_headers, make_product, make_order):
    order = make_order(make_product("P"), status="CONFIRMED")
    assert scan(client, warehouse_headers, order.id).status_code == 201

    resp = scan(client, warehouse_headers, order.id)

    assert resp.status_code == 409
    assert ScannedOrder.query.count() == 1


def test_only_confirmed_orders(client, warehouse_headers, make_product, make_order):
    order = make_order(make_product("P"), status="PENDING")

    resp = scan(client, warehouse_headers, order.id)

    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "orderId"
    assert order.status == "PENDING"


def test_unknown_order(client, warehouse_headers):
    assert scan(client, warehouse_headers, 999).status_code == 404


def test_order_id_beyond_column_range(client, warehouse_headers):
    resp = scan(client, warehouse_headers, 10**20)
    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "orderId"


def test_order_id_required(client, warehouse_headers):
    resp = client.post("/api/scan-orders", headers=warehouse_headers, json={})
    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "orderId"


def test_list_with_today_count(client, admin_headers, warehouse_headers, make_product, make_order):
    product = make_product("P")
    first = make_order(product, status="CONFIRMED")
    second = make_order(product, status="CONFIRMED")
    scan(client, warehouse_headers, first.id)
    scan(client, warehouse_headers, second.id)

    resp = client.get("/api/scan-orders?limit=1", headers=admin_headers)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["total"] == 2
    assert body["totalPages"] == 2
    assert body["todayScans"] == 2
    assert [s["orderId"] for s in body["scannedOrders"]] == [second.id]


def test_roles(client, shop_agent_headers, confirmer_headers, make_product, make_order):
    order = make_order(make_product("P"), status="CONFIRMED")
    assert client.get("/api/scan-orders", headers=shop_agent_headers).status_code == 403
    assert scan(client, confirmer_headers, order.id).status_code == 403
