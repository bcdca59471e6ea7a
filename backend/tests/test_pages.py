"""
Browser page guard tests.

Verifies:
- Anonymous visits to dashboard paths go to /login with a callbackUrl
- An invalid cookie is cleared on the way to /login
- Each role is kept inside its own path prefix
- "/" and "/login" send a signed-in user to their landing page
"""

from urllib.parse import parse_qs, urlparse

import pytest

from backoffice.models.users import ADMIN, CONFIRMER, SHOP_AGENT, SUPER_ADMIN, WAREHOUSE_AGENT

from conftest import token_for


def sign_in(client, user):
    client.set_cookie("auth_token", token_for(user))


def location(resp) -> str:
    return resp.headers["Location"]


def cleared(resp) -> bool:
    return any(
        h.startswith("auth_token=;") or h.startswith('auth_token="";')
        for h in resp.headers.getlist("Set-Cookie")
    )


class TestAnonymous:

    def test_dashboard_path_redirects_to_login(self, client):
        resp = client.get("/admin/products")

        assert resp.status_code == 302
        target = urlparse(location(resp))
        assert target.path == "/login"
        assert parse_qs(target.query) == {"callbackUrl": ["/admin/products"]}

    def test_root_redirects_to_login(self, client):
        resp = client.get("/")
        assert resp.status_code == 302
        assert location(resp) == "/login"

    def test_login_page_renders(self, client):
        resp = client.get("/login")
        assert resp.status_code == 200
        assert b'data-page="login"' in resp.data

    def test_invalid_cookie_is_cleared(self, client):
        client.set_cookie("auth_token", "not-a-jwt")

        resp = client.get("/super-admin/dashboard")

        assert resp.status_code == 302
        assert urlparse(location(resp)).path == "/login"
        assert cleared(resp)

    def test_non_dashboard_paths_untouched(self, client):
        assert client.get("/api/health").status_code == 200


class TestSignedIn:

    @pytest.mark.parametrize("role,landing", [
        (SUPER_ADMIN, "/super-admin/dashboard"),
        (ADMIN, "/admin/dashboard"),
        (SHOP_AGENT, "/shop-agent/orders"),
        (WAREHOUSE_AGENT, "/warehouse-agent/scan-orders"),
        (CONFIRMER, "/confirmer"),
    ])
    def test_root_and_login_go_to_landing(self, client, users, role, landing):
        sign_in(client, users[role])

        for path in ("/", "/login"):
            resp = client.get(path)
            assert resp.status_code == 302
            assert location(resp) == landing

    def test_own_prefix_serves_shell(self, client, users):
        sign_in(client, users[ADMIN])

        resp = client.get("/admin/orders/42")

        assert resp.status_code == 200
        assert b'data-role="ADMIN"' in resp.data

    def test_foreign_prefix_redirects_to_own_landing(self, client, users):
        sign_in(client, users[SHOP_AGENT])

        resp = client.get("/super-admin/admins")

        assert resp.status_code == 302
        assert location(resp) == "/shop-agent/orders"

    def test_admin_is_not_super_admin(self, client, users):
        sign_in(client, users[ADMIN])
        resp = client.get("/super-admin/dashboard")
        assert location(resp) == "/admin/dashboard"

    def test_deactivated_user_sent_to_login(self, client, users, db_session):
        user = users[CONFIRMER]
        sign_in(client, user)
        user.is_active = False
        db_session.commit()

        resp = client.get("/confirmer")

        assert urlparse(location(resp)).path == "/login"
        assert cleared(resp)
