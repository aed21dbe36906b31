import pytest
from datetime import date, timedelta
from decimal import Decimal
import uuid

from bakery import create_app
from bakery.database import create_schema, drop_schema, get_session
from bakery.models import (
    User, UserRole, Category, Product, ProductStatus, DeliveryZone,
    Coupon, CouponType
)
from bakery.services.delivery_service import next_weekend_dates


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (SQLite in memory)."""
    return create_app('config.TestingConfig')


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """
    Fresh schema per test.

    Yields the scoped session proxy: requests made through the test client
    remove the underlying session, so tests re-query by id after a request.
    """
    create_schema()
    db_session = get_session()
    yield db_session
    db_session.remove()
    drop_schema()


# =====================================================
# DATES
# =====================================================

@pytest.fixture
def friday():
    return date(2026, 10, 23)


@pytest.fixture
def saturday(friday):
    return friday + timedelta(days=1)


@pytest.fixture
def delivery_date():
    """Next weekend date from the real clock, for API tests."""
    return next_weekend_dates(1)[0]


@pytest.fixture
def weekday_date():
    """A future Monday..Friday."""
    current = date.today() + timedelta(days=1)
    while current.weekday() >= 5:
        current += timedelta(days=1)
    return current


# =====================================================
# CATALOG
# =====================================================

@pytest.fixture
def category(session):
    category = Category(name='Panes', slug='panes', order=1, active=True)
    session.add(category)
    session.commit()
    return category


def _make_product(session, name, price, stock=20, status=ProductStatus.PUBLISHED, category=None, **extra):
    product = Product(
        slug=f"{name.lower().replace(' ', '-')}-{str(uuid.uuid4())[:6]}",
        name=name,
        price_pen=Decimal(price),
        status=status,
        stock=stock,
        category_id=category.id if category else None,
        **extra
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture
def make_product(session):
    """Factory: make_product('Pan', '18.00', stock=5)."""
    def _factory(name, price, **kwargs):
        return _make_product(session, name, price, **kwargs)
    return _factory


@pytest.fixture
def bread(session, category):
    """Pan de Masa Madre at S/ 18.00."""
    return _make_product(session, 'Pan de Masa Madre', '18.00', stock=20, category=category, featured=True,
                         tags=['artesanal', 'masa madre'])


@pytest.fixture
def croissant(session):
    """Croissant at S/ 8.00."""
    return _make_product(session, 'Croissant', '8.00', stock=30)


@pytest.fixture
def zone(session):
    """Miraflores, fee S/ 10.00."""
    zone = DeliveryZone(name='Miraflores', fee_pen=Decimal('10.00'), active=True, order=1)
    session.add(zone)
    session.commit()
    return zone


@pytest.fixture
def welcome_coupon(session):
    """10% off, minimum S/ 30.00, capped at S/ 15.00."""
    coupon = Coupon(
        code='WELCOME10',
        type=CouponType.PERCENTAGE,
        value=Decimal('10.00'),
        min_subtotal_pen=Decimal('30.00'),
        max_discount_pen=Decimal('15.00'),
        max_uses=100,
        uses=0,
        active=True
    )
    session.add(coupon)
    session.commit()
    return coupon


# =====================================================
# USERS
# =====================================================

@pytest.fixture
def customer(session):
    user = User(email='cliente@test.pe', name='Cliente', role=UserRole.CUSTOMER.value, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def admin_user(session):
    user = User(email='admin@test.pe', name='Admin', role=UserRole.ADMIN.value, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def admin_client(client, admin_user):
    """Client logged in as ADMIN."""
    # Read the id first: opening the session transaction removes the DB session
    user_id = admin_user.id
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
    return client


@pytest.fixture
def customer_client(client, customer):
    """Client logged in as a CUSTOMER."""
    user_id = customer.id
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
    return client


# =====================================================
# CHECKOUT PAYLOADS
# =====================================================

@pytest.fixture
def checkout_payload(bread, croissant, zone, delivery_date):
    """Camel-case checkout body as the storefront sends it: 2 x 18.00 + 1 x 8.00."""
    return {
        'email': 'ana@example.pe',
        'name': 'Ana Torres',
        'phone': '987654321',
        'address': 'Av. Larco 123',
        'district': 'Miraflores',
        'deliveryDate': delivery_date.isoformat(),
        'deliveryWindow': 'MORNING',
        'zoneId': zone.id,
        'items': [
            {'productId': bread.id, 'quantity': 2},
            {'productId': croissant.id, 'quantity': 1},
        ],
        'tipPEN': 0,
    }
