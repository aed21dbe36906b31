"""
Integration tests for health check, metrics, CLI seed and error rendering.
"""

from bakery.cli_commands import seed_database
from bakery.models import Product, Coupon, DeliveryZone, User


class TestHealth:
    """GET /health"""

    def test_healthy(self, client, session):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'


class TestMetrics:
    """GET /metrics"""

    def test_checkout_counters_exposed(self, client, session, checkout_payload, weekday_date):
        client.post('/api/checkout', json=checkout_payload)
        checkout_payload['deliveryDate'] = weekday_date.isoformat()
        client.post('/api/checkout', json=checkout_payload)

        body = client.get('/metrics').get_data(as_text=True)

        assert 'bakery_orders_created_total{delivery_window="MORNING"}' in body
        assert 'bakery_checkout_rejections_total{reason="SchedulingError"}' in body
        assert 'http_requests_total' in body


class TestErrors:
    """Unknown routes render JSON."""

    def test_404_json(self, client, session):
        response = client.get('/no-existe')
        assert response.status_code == 404
        assert response.get_json() == {'status': 'error', 'message': 'Recurso no encontrado'}

    def test_405_json(self, client, session):
        response = client.get('/api/checkout')
        assert response.status_code == 405
        assert response.get_json()['status'] == 'error'


class TestSeed:
    """Demo data loader."""

    def test_seed_is_idempotent(self, session):
        first = seed_database(session, admin_password='secreto123')
        second = seed_database(session, admin_password='secreto123')

        assert first == {'admin': 1, 'categories': 4, 'zones': 4, 'products': 6, 'coupons': 2}
        assert second == {'admin': 0, 'categories': 0, 'zones': 0, 'products': 0, 'coupons': 0}

        assert session.query(Product).count() == 6
        assert session.query(DeliveryZone).filter_by(name='Surco').one().fee_pen == 15
        assert session.query(Coupon).filter_by(code='WELCOME10').one().max_discount_pen == 15
        admin = session.query(User).filter_by(email='admin@baykery.pe').one()
        assert admin.is_admin
        assert admin.check_password('secreto123')

    def test_seed_command(self, app, session):
        result = app.test_cli_runner().invoke(args=['seed', '--admin-password', 'secreto123'])

        assert result.exit_code == 0
        assert 'products: 6' in result.output


class TestConfig:
    """Storefront settings loaded by the factory."""

    def test_defaults(self, app):
        assert app.config['MAX_ORDERS_PER_WINDOW'] == 50
        assert app.config['ORDER_NUMBER_MAX_ATTEMPTS'] == 5
        assert app.config['PRODUCTS_PAGE_SIZE'] == 12
        assert app.config['DELIVERY_DATES_COUNT'] == 4
        assert 'BUSINESS_NAME' not in app.config
