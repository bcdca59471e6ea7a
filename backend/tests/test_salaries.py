"""
Salary tests; total is derived as base + bonuses - deductions.
"""

import pytest

from backoffice.models import Salary


def salary_body(**overrides):
    body = {"employeeName": "Youssef", "position": "Packer", "baseSalary": 3000,
            "bonuses": 500, "deductions": 200, "month": 3, "year": 2024}
    body.update(overrides)
    return body


def create(client, headers, **overrides):
    return client.post("/api/salaries", headers=headers, json=salary_body(**overrides))


def test_total_is_derived(client, admin_headers):
    resp = create(client, admin_headers)

    assert resp.status_code == 201
    salary = resp.get_json()["salary"]
    assert salary["totalAmount"] == "3300.00"
    assert salary["isPaid"] is False
    assert salary["paidAt"] is None


def test_bonuses_and_deductions_default_to_zero(client, admin_headers):
    body = salary_body()
    del body["bonuses"], body["deductions"]

    salary = client.post("/api/salaries", headers=admin_headers, json=body).get_json()["salary"]

    assert salary["bonuses"] == "0.00"
    assert salary["totalAmount"] == "3000.00"


def test_total_amount_not_accepted(client, admin_headers):
    resp = create(client, admin_headers, totalAmount="1.00")
    assert resp.status_code == 400


@pytest.mark.parametrize("overrides,field", [
    ({"month": 13}, "month"),
    ({"month": 0}, "month"),
    ({"year": 1999}, "year"),
    ({"baseSalary": 0}, "baseSalary"),
    ({"bonuses": -1}, "bonuses"),
    ({"deductions": 5000}, "deductions"),
])
def test_invalid_input(client, admin_headers, overrides, field):
    resp = create(client, admin_headers, **overrides)
    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == field
    assert Salary.query.count() == 0


def test_update_recomputes_and_is_idempotent(client, admin_headers):
    salary_id = create(client, admin_headers).get_json()["salary"]["id"]

    first = client.put(f"/api/salaries/{salary_id}", headers=admin_headers, json={"bonuses": 0})
    second = client.put(f"/api/salaries/{salary_id}", headers=admin_headers, json={"bonuses": 0})

    assert first.status_code == 200
    assert first.get_json()["salary"]["totalAmount"] == "2800.00"
    assert second.get_json()["salary"]["totalAmount"] == "2800.00"


def test_update_checks_merged_total(client, admin_headers):
    salary_id = create(client, admin_headers).get_json()["salary"]["id"]
    resp = client.put(f"/api/salaries/{salary_id}", headers=admin_headers, json={"deductions": 3501})
    assert resp.status_code == 400


def test_mark_paid(client, admin_headers):
    salary_id = create(client, admin_headers).get_json()["salary"]["id"]

    resp = client.put(f"/api/salaries/{salary_id}", headers=admin_headers, json={"paidAt": "2024-03-31T10:00:00Z"})

    salary = resp.get_json()["salary"]
    assert salary["isPaid"] is True
    assert salary["paidAt"] == "2024-03-31T10:00:00Z"


def test_list_with_stats(client, admin_headers):
    create(client, admin_headers, month=3, baseSalary=3000, bonuses=0, deductions=0, paidAt="2024-03-31T10:00:00Z")
    create(client, admin_headers, month=3, baseSalary=2000, bonuses=0, deductions=0)
    create(client, admin_headers, month=2, baseSalary=1000, bonuses=0, deductions=0)

    body = client.get("/api/salaries?month=3&year=2024", headers=admin_headers).get_json()

    assert body["total"] == 2
    assert body["stats"] == {"totalPaid": 3000.0, "totalPending": 2000.0, "paidCount": 1, "pendingCount": 1}

    body = client.get("/api/salaries", headers=admin_headers).get_json()
    assert body["total"] == 3
    assert body["stats"]["totalPending"] == 3000.0


def test_invalid_month_filter(client, admin_headers):
    assert client.get("/api/salaries?month=13", headers=admin_headers).status_code == 400


def test_delete(client, admin_headers):
    salary_id = create(client, admin_headers).get_json()["salary"]["id"]
    assert client.delete(f"/api/salaries/{salary_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/salaries/{salary_id}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/salaries/{10**20}", headers=admin_headers).status_code == 404


def test_warehouse_forbidden(client, warehouse_headers):
    assert client.get("/api/salaries", headers=warehouse_headers).status_code == 403
