"""
Pytest fixtures for ERP backend tests.

Provides test database setup, users with tokens, catalog fixtures and the
test client.
"""

import pytest

from erp import create_app
from erp.extensions import db
from erp.models import Category, Partner, User
from erp.models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER
from erp.permissions import default_permissions_for_role
from erp.services import products_service
from erp.services.auth_service import hash_password

TEST_PASSWORD = "secret123"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'JWT_SECRET': 'test-jwt-secret',
    'BCRYPT_ROUNDS': 4,
    'LOW_STOCK_THRESHOLD': 10,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        db.session.expire_all()


def _make_user(db_session, name, email, role, permissions=None):
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        permissions=default_permissions_for_role(role) if permissions is None else permissions,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "Admin User", "admin@test.com", ROLE_ADMIN)


@pytest.fixture(scope='function')
def manager_user(db_session):
    return _make_user(db_session, "Manager User", "manager@test.com", ROLE_MANAGER)


@pytest.fixture(scope='function')
def basic_user(db_session):
    """Role USER with the default USER permissions (no purchases, no financial)."""
    return _make_user(db_session, "Basic User", "user@test.com", ROLE_USER)


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email, TEST_PASSWORD))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, manager_user.email, TEST_PASSWORD))


@pytest.fixture(scope='function')
def user_headers(client, basic_user):
    return auth_headers(get_auth_token(client, basic_user.email, TEST_PASSWORD))


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Beverages", description="Drinks")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def client_partner(db_session):
    partner = Partner(type="CLIENT", name="Maria Silva", document="12345678901")
    db_session.add(partner)
    db_session.commit()
    return partner


@pytest.fixture(scope='function')
def supplier(db_session):
    partner = Partner(type="SUPPLIER", name="Acme Distribuidora", fantasy_name="Acme", document="11222333000181")
    db_session.add(partner)
    db_session.commit()
    return partner


@pytest.fixture(scope='function')
def make_product(db_session, admin_user):
    """
    Factory: create a product through the service so the opening stock is
    recorded as an "Initial stock" movement.
    """
    counter = {"n": 0}

    def _make(stock=0, price_cents=1000, **extra):
        counter["n"] += 1
        payload = {
            "sku": f"SKU-{counter['n']:04d}",
            "name": f"Product {counter['n']}",
            "price_cents": price_cents,
            "stock": stock,
        }
        payload.update(extra)
        return products_service.create_product(payload, actor_id=admin_user.id)

    return _make


@pytest.fixture(scope='function')
def product(make_product):
    """Product with stock = 10."""
    return make_product(stock=10)


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
