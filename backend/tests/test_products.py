"""
Product catalog tests.

Verifies:
- Creating a product also creates its stock row
- SKU / barcode uniqueness and the OTHER -> customCategory rule
- Search, sort and pagination (including a page past the end)
- Delete is a soft delete
- CSV import reports bad rows without rejecting the good ones
"""

import io

import pytest

from backoffice.extensions import db
from backoffice.models import Product, Stock


def product_body(**overrides):
    body = {"name": "Wireless Mouse", "sku": "MOUSE-1", "category": "ELECTRONICS",
            "sellingPrice": "99.90", "costPrice": 40}
    body.update(overrides)
    return body


def create(client, headers, **overrides):
    return client.post("/api/products", headers=headers, json=product_body(**overrides))


def upload(client, headers, content: str, filename: str = "products.csv"):
    return client.post(
        "/api/products/import-csv",
        headers=headers,
        data={"file": (io.BytesIO(content.encode("utf-8")), filename)},
        content_type="multipart/form-data",
    )


class TestCreateProduct:

    def test_creates_stock_row(self, client, admin_headers):
        resp = create(client, admin_headers, minStockLevel=5, warehouseLocation="B-2")

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["sellingPrice"] == "99.90"
        assert product["costPrice"] == "40.00"
        assert product["stockQuantity"] == 0
        assert product["minStockLevel"] == 5
        assert product["warehouseLocation"] == "B-2"
        assert Stock.query.filter_by(product_id=product["id"]).count() == 1

    def test_default_min_stock_level(self, client, admin_headers):
        product = create(client, admin_headers).get_json()["product"]
        assert product["minStockLevel"] == 10

    def test_duplicate_sku(self, client, admin_headers):
        assert create(client, admin_headers).status_code == 201
        resp = create(client, admin_headers, name="Other mouse")
        assert resp.status_code == 409
        assert Product.query.count() == 1

    def test_duplicate_barcode(self, client, admin_headers):
        create(client, admin_headers, barcode="6111")
        assert create(client, admin_headers, sku="MOUSE-2", barcode="6111").status_code == 409

    def test_other_requires_custom_category(self, client, admin_headers):
        resp = create(client, admin_headers, category="OTHER")
        assert resp.status_code == 400
        assert resp.get_json()["details"][0]["field"] == "customCategory"

        resp = create(client, admin_headers, category="other", customCategory="Gadgets")
        assert resp.status_code == 201
        assert resp.get_json()["product"]["category"] == "OTHER"

    @pytest.mark.parametrize("overrides,field", [
        ({"sellingPrice": 0}, "sellingPrice"),
        ({"costPrice": -1}, "costPrice"),
        ({"sellingPrice": "abc"}, "sellingPrice"),
        ({"category": "CARS"}, "category"),
        ({"name": ""}, "name"),
        ({"minStockLevel": -1}, "minStockLevel"),
    ])
    def test_invalid_input(self, client, admin_headers, overrides, field):
        resp = create(client, admin_headers, **overrides)
        assert resp.status_code == 400
        assert resp.get_json()["details"][0]["field"] == field

    def test_shop_agent_cannot_create(self, client, shop_agent_headers):
        assert create(client, shop_agent_headers).status_code == 403


class TestUpdateAndDelete:

    def test_update_fields_and_stock_settings(self, client, admin_headers):
        product_id = create(client, admin_headers).get_json()["product"]["id"]

        resp = client.put(f"/api/products/{product_id}", headers=admin_headers,
                          json={"sellingPrice": 120, "minStockLevel": 2})

        assert resp.status_code == 200
        product = resp.get_json()["product"]
        assert product["sellingPrice"] == "120.00"
        assert product["minStockLevel"] == 2
        assert product["name"] == "Wireless Mouse"

    def test_update_keeps_own_sku(self, client, admin_headers):
        product_id = create(client, admin_headers).get_json()["product"]["id"]
        resp = client.put(f"/api/products/{product_id}", headers=admin_headers, json={"sku": "MOUSE-1"})
        assert resp.status_code == 200

    def test_update_to_taken_sku(self, client, admin_headers):
        create(client, admin_headers)
        other_id = create(client, admin_headers, sku="MOUSE-2").get_json()["product"]["id"]
        resp = client.put(f"/api/products/{other_id}", headers=admin_headers, json={"sku": "MOUSE-1"})
        assert resp.status_code == 409

    def test_soft_delete(self, client, super_admin_headers):
        product_id = create(client, super_admin_headers).get_json()["product"]["id"]

        resp = client.delete(f"/api/products/{product_id}", headers=super_admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["product"]["isActive"] is False
        assert db_product(product_id).is_active is False
        listed = client.get("/api/products", headers=super_admin_headers).get_json()
        assert listed["total"] == 0

    def test_admin_cannot_delete(self, client, admin_headers):
        product_id = create(client, admin_headers).get_json()["product"]["id"]
        assert client.delete(f"/api/products/{product_id}", headers=admin_headers).status_code == 403

    def test_missing_product(self, client, admin_headers):
        assert client.get("/api/products/999", headers=admin_headers).status_code == 404
        assert client.put("/api/products/999", headers=admin_headers, json={"name": "x"}).status_code == 404
        assert client.get(f"/api/products/{10**20}", headers=admin_headers).status_code == 404


def db_product(product_id):
    return db.session.get(Product, product_id)


class TestListProducts:

    def test_search(self, client, admin_headers, make_product):
        make_product("KB-1", name="Keyboard")
        make_product("MS-1", name="Mouse")

        body = client.get("/api/products?search=key", headers=admin_headers).get_json()
        assert [p["sku"] for p in body["products"]] == ["KB-1"]

        body = client.get("/api/products?search=ms-", headers=admin_headers).get_json()
        assert [p["sku"] for p in body["products"]] == ["MS-1"]

    def test_sort_and_pagination(self, client, admin_headers, make_product):
        for sku, price in (("A", "30.00"), ("B", "10.00"), ("C", "20.00")):
            make_product(sku, selling_price=price)

        body = client.get("/api/products?sort=sellingPrice&order=asc&limit=2", headers=admin_headers).get_json()

        assert [p["sku"] for p in body["products"]] == ["B", "C"]
        assert body["total"] == 3
        assert body["totalPages"] == 2

    def test_page_past_the_end(self, client, admin_headers, make_product):
        make_product("A")
        body = client.get("/api/products?page=5", headers=admin_headers).get_json()
        assert body["products"] == []
        assert body["total"] == 1
        assert body["page"] == 5

    def test_empty_catalog(self, client, shop_agent_headers):
        body = client.get("/api/products", headers=shop_agent_headers).get_json()
        assert body == {"products": [], "total": 0, "page": 1, "limit": 10, "totalPages": 0}

    @pytest.mark.parametrize("query", ["limit=101", "limit=0", "page=0", "sort=price", "order=up"])
    def test_bad_query(self, client, admin_headers, query):
        assert client.get(f"/api/products?{query}", headers=admin_headers).status_code == 400

    def test_warehouse_agent_cannot_list(self, client, warehouse_headers):
        assert client.get("/api/products", headers=warehouse_headers).status_code == 403


class TestCsvImport:

    def test_imports_good_rows_and_reports_bad_ones(self, client, admin_headers, make_product):
        make_product("TAKEN")
        content = (
            "Name,SKU,SellingPrice,CostPrice,Category,CustomCategory\n"
            "Lamp,LAMP-1,50,20,HOME,\n"
            ",NO-NAME,10,5,HOME,\n"
            "Clock,CLOCK-1,abc,5,HOME,\n"
            "Thing,TAKEN,10,5,HOME,\n"
            "Gizmo,GIZMO-1,15,5,OTHER,\n"
            "Lamp copy,LAMP-1,50,20,HOME,\n"
        )

        resp = upload(client, admin_headers, content)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["imported"] == 2
        assert [p["sku"] for p in body["products"]] == ["LAMP-1", "GIZMO-1"]
        assert [e["row"] for e in body["errors"]] == [3, 4, 5, 7]

        gizmo = Product.query.filter_by(sku="GIZMO-1").one()
        assert gizmo.custom_category == "Uncategorized"
        assert gizmo.stock.quantity == 0

    def test_missing_required_column(self, client, admin_headers):
        resp = upload(client, admin_headers, "name,sku,sellingPrice\nA,B,1\n")
        assert resp.status_code == 400
        assert "costprice" in resp.get_json()["details"][0]["message"]

    def test_header_only(self, client, admin_headers):
        assert upload(client, admin_headers, "name,sku,sellingPrice,costPrice\n").status_code == 400

    def test_not_a_csv(self, client, admin_headers):
        resp = upload(client, admin_headers, "name,sku\n", filename="products.xlsx")
        assert resp.status_code == 400

    def test_no_file(self, client, admin_headers):
        resp = client.post("/api/products/import-csv", headers=admin_headers, data={},
                           content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["details"][0]["field"] == "file"
