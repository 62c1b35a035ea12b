"""
Pytest fixtures for Tally backend tests.

Provides test database setup, two isolated tenants (users), auth helpers
and small factories for materials, orders and products.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from tally import create_app
from tally.extensions import db
from tally.models import User, Material, Order, OrderItem, Product, ProductMaterial
from tally.services.auth_service import hash_password

PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

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

        db.session.rollback()


def _make_user(db_session, email: str, name: str) -> User:
    user = User(email=email, name=name, password_hash=hash_password(PASSWORD))
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def user_a(db_session):
    """First tenant."""
    return _make_user(db_session, "seller_a@example.com", "Seller A")


@pytest.fixture(scope='function')
def user_b(db_session):
    """Second tenant."""
    return _make_user(db_session, "seller_b@example.com", "Seller B")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str | None:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(client, user_a):
    return auth_headers(get_auth_token(client, user_a.email))


@pytest.fixture(scope='function')
def headers_b(client, user_b):
    return auth_headers(get_auth_token(client, user_b.email))


def make_material(db_session, user, *, name="Gildan T-Shirt", color="Black", size="M",
                  quantity=0, pack_size=24) -> Material:
    m = Material(user_id=user.id, name=name, color=color, size=size,
                 quantity=quantity, pack_size=pack_size)
    db_session.add(m)
    db_session.commit()
    return m


def make_order(db_session, user, items, *, name="Order", status="PENDING", priority=0,
               due_date: datetime | None = None, created_at: datetime | None = None) -> Order:
    """items: list of (material, quantity_needed)"""
    order = Order(user_id=user.id, name=name, status=status, priority=priority, due_date=due_date)
    if created_at is not None:
        order.created_at = created_at
    for material, qty in items:
        order.order_items.append(OrderItem(material_id=material.id, quantity_needed=qty))
    db_session.add(order)
    db_session.commit()
    return order


def make_product(db_session, user, components, *, name="Logo Tee", category=None) -> Product:
    """components: list of (material, quantity_required)"""
    product = Product(user_id=user.id, name=name, category=category)
    for material, qty in components:
        product.product_materials.append(ProductMaterial(material_id=material.id, quantity_required=qty))
    db_session.add(product)
    db_session.commit()
    return product
