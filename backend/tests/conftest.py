"""
Pytest fixtures for back-office API tests.

Provides test database setup, one user per role, token helpers, and
catalog / order builders.
"""

import pytest
from decimal import Decimal

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Order, OrderItem, Product, Stock, User
from backoffice.models.users import ADMIN, CONFIRMER, SHOP_AGENT, SUPER_ADMIN, USER_ROLES, WAREHOUSE_AGENT
from backoffice.services.auth_service import hash_password
from backoffice.services.token_service import issue_token


TEST_SECRET = "test-secret-that-is-long-enough-for-hs256-signing"
PASSWORD = "Password123!"

ROLE_PHONES = {
    SUPER_ADMIN: "0600000001",
    ADMIN: "0600000002",
    SHOP_AGENT: "0600000003",
    WAREHOUSE_AGENT: "0600000004",
    CONFIRMER: "0600000005",
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'JWT_SECRET': TEST_SECRET,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash(app):
    """bcrypt at cost 12 is slow; hash the shared test password once."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def users(db_session, password_hash):
    """One active user per role, keyed by role."""
    created = {}
    for role in USER_ROLES:
        user = User(
            phone=ROLE_PHONES[role],
            password_hash=password_hash,
            role=role,
            name=role.replace("_", " ").title(),
            is_active=True,
        )
        db_session.add(user)
        created[role] = user
    db_session.commit()
    return created


def token_for(user: User) -> str:
    return issue_token(user.id, user.phone, user.role)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def get_auth_token(client, phone: str, password: str) -> str:
    """Helper to get auth token for a user through the login endpoint."""
    response = client.post('/api/auth/login', json={'phone': phone, 'password': password})
    if response.status_code == 200:
        return response.json.get('token')
    return None


@pytest.fixture(scope='function')
def headers(users):
    """headers(role) -> bearer headers for that role's user."""
    def _headers(role: str) -> dict:
        return auth_headers(token_for(users[role]))
    return _headers


@pytest.fixture(scope='function')
def super_admin_headers(headers):
    return headers(SUPER_ADMIN)


@pytest.fixture(scope='function')
def admin_headers(headers):
    return headers(ADMIN)


@pytest.fixture(scope='function')
def shop_agent_headers(headers):
    return headers(SHOP_AGENT)


@pytest.fixture(scope='function')
def warehouse_headers(headers):
    return headers(WAREHOUSE_AGENT)


@pytest.fixture(scope='function')
def confirmer_headers(headers):
    return headers(CONFIRMER)


@pytest.fixture(scope='function')
def make_product(db_session):
    """make_product(sku, quantity=..., ...) -> Product with its stock row."""
    def _make(
        sku: str,
        name: str | None = None,
        quantity: int = 0,
        min_stock_level: int = 10,
        selling_price: str = "10.00",
        cost_price: str = "4.00",
        is_active: bool = True,
    ) -> Product:
        product = Product(
            name=name or f"Product {sku}",
            sku=sku,
            category="ELECTRONICS",
            selling_price=Decimal(selling_price),
            cost_price=Decimal(cost_price),
            is_active=is_active,
        )
        db_session.add(product)
        db_session.flush()
        db_session.add(Stock(product_id=product.id, quantity=quantity, min_stock_level=min_stock_level))
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def make_order(db_session):
    """
    make_order(product, quantity, status=..., created_by=...) -> Order

    Inserts directly (no stock movement); use the API when stock matters.
    """
    counter = {"n": 0}

    def _make(product: Product, quantity: int = 1, status: str = "PENDING", payment_status: str = "UNPAID",
              created_by: int | None = None, created_at=None, delivery_price: str = "0.00") -> Order:
        counter["n"] += 1
        subtotal = Decimal(product.selling_price) * quantity
        order = Order(
            order_number=f"ORD-20240101-T{counter['n']:05d}",
            customer_name="Test Customer",
            customer_phone="0611111111",
            customer_address="1 Test Street",
            customer_city="Casablanca",
            delivery_price=Decimal(delivery_price),
            total_amount=subtotal + Decimal(delivery_price),
            status=status,
            payment_status=payment_status,
            created_by=created_by,
        )
        if created_at is not None:
            order.created_at = created_at
        order.items.append(OrderItem(
            product_id=product.id,
            quantity=quantity,
            unit_price=Decimal(product.selling_price),
            subtotal=subtotal,
        ))
        db_session.add(order)
        db_session.commit()
        return order
    return _make
