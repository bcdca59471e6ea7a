"""
Health endpoint and app-level behaviour.
"""


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["timestamp"].endswith("Z")


def test_health_does_not_expose_store_contents(client):
    database = client.get("/api/health").get_json()["checks"]["database"]

    assert set(database) == {"status", "latency_ms"}


def test_unknown_api_route_is_json(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_method_not_allowed_is_json(client, admin_headers):
    resp = client.patch("/api/charges", headers=admin_headers)
    assert resp.status_code == 405
    assert "error" in resp.get_json()


def test_non_object_body(client, admin_headers):
    resp = client.post("/api/charges", headers=admin_headers, json=["not", "an", "object"])
    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "body"


def test_cli_init_seeds_one_user_per_role(app):
    from backoffice.models import User

    result = app.test_cli_runner().invoke(args=["system", "init"])

    assert result.exit_code == 0, result.output
    assert {u.role for u in User.query.all()} == {
        "SUPER_ADMIN", "ADMIN", "SHOP_AGENT", "WAREHOUSE_AGENT", "CONFIRMER",
    }

    # Running it twice does not duplicate accounts
    app.test_cli_runner().invoke(args=["system", "init"])
    assert User.query.count() == 5
