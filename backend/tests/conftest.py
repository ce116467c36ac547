"""
Pytest fixtures for cubby shop backend tests.

Provides test database setup, seed fixtures, and test client.
"""

import pytest

from cubbyshop import create_app
from cubbyshop.extensions import db
from cubbyshop.models import Cubby, InventoryItem, User
from cubbyshop.services import settings_service
from cubbyshop.validation import rate_to_bps
from decimal import Decimal


WEEKDAYS_ONLY = {
    "monday": True,
    "tuesday": True,
    "wednesday": True,
    "thursday": True,
    "friday": True,
    "saturday": False,
    "sunday": False,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def weekdays_only(db_session):
    """Shop open Monday-Friday."""
    settings_service.set_setting(settings_service.SHOP_OPEN_DAYS, dict(WEEKDAYS_ONLY))
    return dict(WEEKDAYS_ONLY)


@pytest.fixture(scope='function')
def seller(db_session):
    user = User(email="seller@example.com", full_name="Sam Seller", role="seller")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def other_seller(db_session):
    user = User(email="other@example.com", full_name="Olive Other", role="seller")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def cubby(db_session):
    cubby = Cubby(cubby_number="C-001", location="Front wall")
    db_session.add(cubby)
    db_session.commit()
    return cubby


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory for inventory items."""
    counter = {"n": 0}

    def _make(price_cents=2000, quantity=10, seller=None, commission_rate=None):
        counter["n"] += 1
        item = InventoryItem(
            sku=f"SKU-{counter['n']:04d}",
            name=f"Item {counter['n']}",
            price_cents=price_cents,
            quantity=quantity,
            seller_id=seller.id if seller else None,
            commission_rate_bps=rate_to_bps(Decimal(str(commission_rate))) if commission_rate is not None else None,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return _make
