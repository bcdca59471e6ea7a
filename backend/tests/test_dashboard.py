"""
Dashboard aggregation tests.

Verifies:
- Empty store yields zeros (never null) and six zero-filled month buckets
- Revenue counts DELIVERED orders only; "today" starts at UTC midnight
- Stock figures cover active products only
- Top products / recent orders / low-stock lists are ordered and capped
"""

from datetime import datetime, timedelta

from backoffice.services import dashboard_service
from backoffice.time_utils import first_of_month, start_of_day, utcnow


def test_empty_dashboard_is_all_zero(client, admin_headers):
    resp = client.get("/api/dashboard/stats", headers=admin_headers)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["stats"] == {
        "totalProducts": 0,
        "totalStockValue": 0,
        "totalStockUnits": 0,
        "lowStockCount": 0,
        "outOfStockCount": 0,
        "totalOrders": 0,
        "pendingOrders": 0,
        "totalRevenue": 0,
        "todayRevenue": 0,
        "todayOrders": 0,
    }
    assert body["charts"]["ordersByStatus"] == []
    assert body["charts"]["topProducts"] == []
    assert len(body["charts"]["revenueByMonth"]) == 6
    assert all(m["revenue"] == 0 and m["count"] == 0 for m in body["charts"]["revenueByMonth"])
    assert body["recentOrders"] == []
    assert body["lowStockProducts"] == []


def test_super_admin_allowed_shop_agent_forbidden(client, super_admin_headers, shop_agent_headers):
    assert client.get("/api/dashboard/stats", headers=super_admin_headers).status_code == 200
    resp = client.get("/api/dashboard/stats", headers=shop_agent_headers)
    assert resp.status_code == 403


def test_stock_figures(client, admin_headers, make_product):
    make_product("A", quantity=5, min_stock_level=10, cost_price="2.50")   # low
    make_product("B", quantity=0, min_stock_level=10, cost_price="1.00")   # low + out
    make_product("C", quantity=20, min_stock_level=10, cost_price="3.00")
    make_product("D", quantity=100, cost_price="9.00", is_active=False)    # ignored

    stats = client.get("/api/dashboard/stats", headers=admin_headers).get_json()["stats"]

    assert stats["totalProducts"] == 3
    assert stats["totalStockUnits"] == 25
    assert stats["totalStockValue"] == 72.5
    assert stats["lowStockCount"] == 2
    assert stats["outOfStockCount"] == 1


def test_stock_page_counts_the_same_products(client, admin_headers, make_product):
    make_product("A", quantity=5, min_stock_level=10, cost_price="2.50")
    make_product("B", quantity=0, min_stock_level=10)
    make_product("D", quantity=0, is_active=False)

    dashboard = client.get("/api/dashboard/stats", headers=admin_headers).get_json()["stats"]
    stock = client.get("/api/stock", headers=admin_headers).get_json()["stats"]

    assert stock["totalProducts"] == dashboard["totalProducts"] == 2
    assert stock["totalUnits"] == dashboard["totalStockUnits"] == 5
    assert stock["totalValue"] == dashboard["totalStockValue"] == 12.5
    assert stock["lowStockCount"] == dashboard["lowStockCount"] == 2
    assert stock["outOfStockCount"] == dashboard["outOfStockCount"] == 1


def test_low_stock_products_lowest_first(client, admin_headers, make_product):
    make_product("A", quantity=7)
    make_product("B", quantity=0)
    make_product("C", quantity=3)
    make_product("OK", quantity=50)

    low = client.get("/api/dashboard/stats", headers=admin_headers).get_json()["lowStockProducts"]
    assert [p["sku"] for p in low] == ["B", "C", "A"]


def test_revenue_counts_delivered_only(client, admin_headers, make_product, make_order):
    product = make_product("P", selling_price="10.00")
    make_order(product, 2, status="DELIVERED", delivery_price="5.00")   # 25
    make_order(product, 1, status="DELIVERED")                          # 10
    make_order(product, 3, status="PENDING")
    make_order(product, 1, status="CANCELLED")

    stats = client.get("/api/dashboard/stats", headers=admin_headers).get_json()["stats"]

    assert stats["totalOrders"] == 4
    assert stats["pendingOrders"] == 1
    assert stats["totalRevenue"] == 35.0
    assert stats["todayRevenue"] == 35.0
    assert stats["todayOrders"] == 4


def test_today_starts_at_midnight(app, make_product, make_order):
    product = make_product("P", selling_price="10.00")
    now = utcnow()
    make_order(product, 1, status="DELIVERED", created_at=start_of_day(now) - timedelta(minutes=1))
    make_order(product, 2, status="DELIVERED", created_at=start_of_day(now) + timedelta(minutes=1))

    assert dashboard_service.delivered_revenue(since=start_of_day(now)) == 20.0
    assert dashboard_service.count_orders(since=start_of_day(now)) == 1


def test_orders_by_status_histogram(client, admin_headers, make_product, make_order):
    product = make_product("P")
    for status in ("PENDING", "PENDING", "DELIVERED", "RETURNED"):
        make_order(product, 1, status=status)

    histogram = client.get("/api/dashboard/stats", headers=admin_headers).get_json()["charts"]["ordersByStatus"]
    assert histogram == [
        {"status": "PENDING", "count": 2},
        {"status": "DELIVERED", "count": 1},
        {"status": "RETURNED", "count": 1},
    ]


def test_revenue_by_month_buckets(app, make_product, make_order):
    now = datetime(2024, 3, 15, 12, 0, 0)
    product = make_product("P", selling_price="10.00")
    make_order(product, 1, status="DELIVERED", created_at=datetime(2024, 3, 2))
    make_order(product, 2, status="DELIVERED", created_at=datetime(2024, 3, 10))
    make_order(product, 4, status="DELIVERED", created_at=datetime(2024, 1, 20))
    make_order(product, 9, status="PENDING", created_at=datetime(2024, 2, 20))
    make_order(product, 9, status="DELIVERED", created_at=datetime(2023, 9, 30))   # outside window

    months = dashboard_service.revenue_by_month(now)

    assert [m["month"] for m in months] == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]
    assert months[-1] == {"month": "2024-03", "revenue": 30.0, "count": 2}
    assert months[3] == {"month": "2024-01", "revenue": 40.0, "count": 1}
    assert months[4] == {"month": "2024-02", "revenue": 0, "count": 0}


def test_window_start_is_first_of_month():
    assert first_of_month(datetime(2024, 3, 31, 23, 59), 5) == datetime(2023, 10, 1)
    assert first_of_month(datetime(2024, 1, 1), 1) == datetime(2023, 12, 1)


def test_top_products(client, admin_headers, make_product, make_order):
    a = make_product("A", selling_price="10.00")
    b = make_product("B", selling_price="20.00")
    make_order(a, 5, status="DELIVERED")
    make_order(b, 2, status="DELIVERED")
    make_order(b, 1, status="DELIVERED")
    make_order(b, 50, status="PENDING")   # not sold yet

    top = client.get("/api/dashboard/stats", headers=admin_headers).get_json()["charts"]["topProducts"]

    assert [t["productSku"] for t in top] == ["A", "B"]
    assert top[0]["totalQuantity"] == 5
    assert top[0]["totalRevenue"] == 50.0
    assert top[1]["totalQuantity"] == 3
    assert top[1]["totalRevenue"] == 60.0


def test_recent_orders_capped_at_ten(client, admin_headers, make_product, make_order):
    product = make_product("P")
    base = utcnow() - timedelta(hours=1)
    for i in range(12):
        make_order(product, 1, created_at=base + timedelta(minutes=i))

    recent = client.get("/api/dashboard/stats", headers=admin_headers).get_json()["recentOrders"]
    assert len(recent) == 10
    assert recent[0]["orderNumber"] == "ORD-20240101-T00012"


def test_order_stats_endpoint(client, admin_headers, make_product, make_order):
    product = make_product("P", selling_price="10.00")
    make_order(product, 1, status="DELIVERED")
    make_order(product, 1, status="PENDING")

    resp = client.get("/api/orders/stats", headers=admin_headers)

    assert resp.status_code == 200
    stats = resp.get_json()["stats"]
    assert stats["totalOrders"] == 2
    assert stats["pendingOrders"] == 1
    assert stats["deliveredOrders"] == 1
    assert stats["totalRevenue"] == 10.0
    assert len(stats["revenueByMonth"]) == 6
