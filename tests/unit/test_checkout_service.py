"""
Unit tests for order computation: validation order, pricing and the atomic commit.
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from bakery.exceptions import (
    SchedulingError, CapacityError, ProductUnavailableError, InsufficientStockError,
    InvalidZoneError, ValidationError, OrderPersistenceError
)
from bakery.models import Product, Coupon, CouponType, Order, OrderStatus, PaymentStatus, ProductStatus, DeliveryWindow
from bakery.services import checkout_service
from bakery.services.checkout_service import create_order, quote_order, quote_to_dict


def _checkout(zone, items, delivery_date, **overrides):
    data = {
        'email': 'ana@example.pe',
        'name': 'Ana Torres',
        'phone': '987654321',
        'address': 'Av. Larco 123',
        'district': 'Miraflores',
        'notes': None,
        'delivery_date': delivery_date,
        'delivery_window': 'MORNING',
        'zone_id': zone.id,
        'items': items,
        'coupon_code': None,
        'tip_pen': Decimal('0'),
    }
    data.update(overrides)
    return data


@pytest.fixture
def cart(bread, croissant):
    """2 x 18.00 + 1 x 8.00"""
    return [
        {'product_id': bread.id, 'quantity': 2},
        {'product_id': croissant.id, 'quantity': 1},
    ]


class TestPricing:
    """Totals, discounts and rounding."""

    def test_subtotal_and_total_without_coupon(self, session, zone, cart, friday, saturday):
        quote = quote_order(session, _checkout(zone, cart, saturday), today=friday)

        assert quote['subtotal'] == Decimal('44.00')
        assert quote['delivery_fee'] == Decimal('10.00')
        assert quote['discount'] == Decimal('0.00')
        assert quote['total'] == Decimal('54.00')
        assert quote['coupon'] is None

    def test_percentage_coupon_discount(self, session, zone, cart, welcome_coupon, friday, saturday):
        quote = quote_order(session, _checkout(zone, cart, saturday, coupon_code='WELCOME10'), today=friday)

        assert quote['discount'] == Decimal('4.40')
        assert quote['total'] == Decimal('49.60')
        assert quote['coupon'].code == 'WELCOME10'

    def test_coupon_code_is_case_insensitive(self, session, zone, cart, welcome_coupon, friday, saturday):
        quote = quote_order(session, _checkout(zone, cart, saturday, coupon_code='  welcome10 '), today=friday)
        assert quote['discount'] == Decimal('4.40')

    def test_coupon_below_minimum_is_ignored(self, session, zone, croissant, welcome_coupon, friday, saturday):
        items = [{'product_id': croissant.id, 'quantity': 1}]
        quote = quote_order(session, _checkout(zone, items, saturday, coupon_code='WELCOME10'), today=friday)

        assert quote['discount'] == Decimal('0.00')
        assert quote['coupon'] is None
        assert quote['total'] == Decimal('18.00')

    def test_unknown_coupon_is_ignored(self, session, zone, cart, friday, saturday):
        quote = quote_order(session, _checkout(zone, cart, saturday, coupon_code='NOEXISTE'), today=friday)
        assert quote['discount'] == Decimal('0.00')
        assert quote['total'] == Decimal('54.00')

    def test_discount_capped_by_max_discount(self, session, zone, make_product, friday, saturday):
        cake = make_product('Pastel', '200.00')
        coupon = Coupon(code='MITAD', type=CouponType.PERCENTAGE, value=Decimal('50'), max_discount_pen=Decimal('15.00'), uses=0)
        session.add(coupon)
        session.commit()

        items = [{'product_id': cake.id, 'quantity': 1}]
        quote = quote_order(session, _checkout(zone, items, saturday, coupon_code='MITAD'), today=friday)

        assert quote['discount'] == Decimal('15.00')
        assert quote['total'] == Decimal('195.00')

    def test_fixed_discount_never_exceeds_subtotal(self, session, zone, croissant, friday, saturday):
        coupon = Coupon(code='GRANDE', type=CouponType.FIXED, value=Decimal('50.00'), uses=0)
        session.add(coupon)
        session.commit()

        items = [{'product_id': croissant.id, 'quantity': 1}]
        quote = quote_order(session, _checkout(zone, items, saturday, coupon_code='GRANDE'), today=friday)

        assert quote['discount'] == Decimal('8.00')
        assert quote['total'] == Decimal('10.00')

    def test_tip_is_added_to_total(self, session, zone, cart, friday, saturday):
        quote = quote_order(session, _checkout(zone, cart, saturday, tip_pen=Decimal('5.50')), today=friday)
        assert quote['total'] == Decimal('59.50')

    def test_total_identity_holds(self, session, zone, cart, welcome_coupon, friday, saturday):
        quote = quote_order(
            session,
            _checkout(zone, cart, saturday, coupon_code='WELCOME10', tip_pen=Decimal('3.33')),
            today=friday
        )
        assert quote['total'] == quote['subtotal'] + quote['delivery_fee'] - quote['discount'] + quote['tip']
        assert quote['discount'] <= quote['subtotal']

    def test_prices_come_from_database(self, session, zone, bread, friday, saturday):
        items = [{'product_id': bread.id, 'quantity': 1, 'price_pen': '0.01'}]
        quote = quote_order(session, _checkout(zone, items, saturday), today=friday)
        assert quote['subtotal'] == Decimal('18.00')

    def test_duplicate_lines_are_merged(self, session, zone, bread, friday, saturday):
        items = [
            {'product_id': bread.id, 'quantity': 1},
            {'product_id': bread.id, 'quantity': 2},
        ]
        quote = quote_order(session, _checkout(zone, items, saturday), today=friday)

        assert len(quote['lines']) == 1
        assert quote['lines'][0]['quantity'] == 3
        assert quote['subtotal'] == Decimal('54.00')

    def test_quote_to_dict(self, session, zone, cart, friday, saturday):
        data = quote_to_dict(quote_order(session, _checkout(zone, cart, saturday), today=friday))

        assert data['total_pen'] == '54.00'
        assert data['delivery_date'] == saturday.isoformat()
        assert [item['quantity'] for item in data['items']] == [2, 1]


class TestValidationOrder:
    """Rejections, in the order they are checked."""

    def test_weekday_rejected(self, session, zone, cart, friday):
        thursday = friday - timedelta(days=1)
        with pytest.raises(SchedulingError, match='sábado o domingo'):
            quote_order(session, _checkout(zone, cart, friday), today=thursday)

    def test_weekday_rejected_even_with_bad_zone(self, session, cart, friday):
        class NoZone:
            id = 9999
        with pytest.raises(SchedulingError):
            quote_order(session, _checkout(NoZone, cart, friday), today=friday - timedelta(days=2))

    def test_today_rejected(self, session, zone, cart, saturday):
        with pytest.raises(SchedulingError, match='futura'):
            quote_order(session, _checkout(zone, cart, saturday), today=saturday)

    def test_past_weekend_rejected(self, session, zone, cart, saturday):
        with pytest.raises(SchedulingError):
            quote_order(session, _checkout(zone, cart, saturday), today=saturday + timedelta(days=3))

    def test_tomorrow_weekend_accepted(self, session, zone, cart, friday, saturday):
        quote = quote_order(session, _checkout(zone, cart, saturday), today=friday)
        assert quote['delivery_date'] == saturday

    def test_capacity_exceeded(self, session, zone, cart, friday, saturday):
        create_order(session, _checkout(zone, cart, saturday), max_orders_per_window=1, today=friday)

        with pytest.raises(CapacityError, match='sábado'):
            create_order(session, _checkout(zone, cart, saturday), max_orders_per_window=1, today=friday)

    def test_capacity_is_per_window(self, session, zone, cart, friday, saturday):
        create_order(session, _checkout(zone, cart, saturday), max_orders_per_window=1, today=friday)

        order = create_order(
            session, _checkout(zone, cart, saturday, delivery_window='AFTERNOON'),
            max_orders_per_window=1, today=friday
        )
        assert order.delivery_window == DeliveryWindow.AFTERNOON

    def test_cancelled_orders_free_capacity(self, session, zone, cart, friday, saturday):
        first = create_order(session, _checkout(zone, cart, saturday), max_orders_per_window=1, today=friday)
        first.status = OrderStatus.CANCELLED
        session.commit()

        second = create_order(session, _checkout(zone, cart, saturday), max_orders_per_window=1, today=friday)
        assert second.id is not None

    def test_draft_product_unavailable(self, session, zone, make_product, friday, saturday):
        draft = make_product('Pan de Prueba', '10.00', status=ProductStatus.DRAFT)
        items = [{'product_id': draft.id, 'quantity': 1}]

        with pytest.raises(ProductUnavailableError) as excinfo:
            quote_order(session, _checkout(zone, items, saturday), today=friday)
        assert excinfo.value.unavailable == ['Pan de Prueba']

    def test_missing_product_unavailable(self, session, zone, friday, saturday):
        items = [{'product_id': 424242, 'quantity': 1}]
        with pytest.raises(ProductUnavailableError) as excinfo:
            quote_order(session, _checkout(zone, items, saturday), today=friday)
        assert excinfo.value.unavailable == ['#424242']

    def test_insufficient_stock(self, session, zone, make_product, friday, saturday):
        cake = make_product('Pastel de Chocolate', '45.00', stock=1)
        items = [{'product_id': cake.id, 'quantity': 2}]

        with pytest.raises(InsufficientStockError) as excinfo:
            create_order(session, _checkout(zone, items, saturday), today=friday)
        assert 'Pastel de Chocolate' in excinfo.value.message

        assert session.get(Product, cake.id).stock == 1
        assert session.query(Order).count() == 0

    def test_inactive_zone(self, session, zone, cart, friday, saturday):
        zone.active = False
        session.commit()

        with pytest.raises(InvalidZoneError):
            quote_order(session, _checkout(zone, cart, saturday), today=friday)

    def test_empty_cart(self, session, zone, friday, saturday):
        with pytest.raises(ValidationError):
            quote_order(session, _checkout(zone, [], saturday), today=friday)


class TestCreateOrder:
    """Persisting the order."""

    def test_order_persisted_with_snapshots(self, session, zone, cart, bread, croissant, friday, saturday):
        order = create_order(session, _checkout(zone, cart, saturday), today=friday)

        assert order.order_number.startswith('ORD-')
        assert order.order_number == order.order_number.upper()
        assert order.total_pen == Decimal('54.00')
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.payment_provider == 'CULQI'
        assert [(i.name_snapshot, i.price_snapshot_pen, i.quantity) for i in order.items] == [
            ('Pan de Masa Madre', Decimal('18.00'), 2),
            ('Croissant', Decimal('8.00'), 1),
        ]

    def test_stock_decremented(self, session, zone, cart, bread, croissant, friday, saturday):
        bread_id, croissant_id = bread.id, croissant.id
        create_order(session, _checkout(zone, cart, saturday), today=friday)

        assert session.get(Product, bread_id).stock == 18
        assert session.get(Product, croissant_id).stock == 29

    def test_coupon_use_counted_once(self, session, zone, cart, welcome_coupon, friday, saturday):
        order = create_order(session, _checkout(zone, cart, saturday, coupon_code='welcome10'), today=friday)

        assert order.coupon_code == 'WELCOME10'
        assert order.discount_pen == Decimal('4.40')
        assert session.get(Coupon, welcome_coupon.id).uses == 1

    def test_ignored_coupon_not_counted(self, session, zone, croissant, welcome_coupon, friday, saturday):
        items = [{'product_id': croissant.id, 'quantity': 1}]
        order = create_order(session, _checkout(zone, items, saturday, coupon_code='WELCOME10'), today=friday)

        assert order.coupon_code is None
        assert order.discount_pen == Decimal('0.00')
        assert session.get(Coupon, welcome_coupon.id).uses == 0

    def test_exhausted_coupon_ignored(self, session, zone, cart, welcome_coupon, friday, saturday):
        welcome_coupon.max_uses = 1
        welcome_coupon.uses = 1
        session.commit()

        order = create_order(session, _checkout(zone, cart, saturday, coupon_code='WELCOME10'), today=friday)
        assert order.discount_pen == Decimal('0.00')
        assert session.get(Coupon, welcome_coupon.id).uses == 1

    def test_user_attached(self, session, zone, cart, customer, friday, saturday):
        order = create_order(session, _checkout(zone, cart, saturday), today=friday, user_id=customer.id)
        assert order.user_id == customer.id

    def test_failure_mid_commit_leaves_nothing(self, session, zone, cart, bread, croissant, welcome_coupon,
                                               friday, saturday, monkeypatch):
        bread_id, croissant_id, coupon_id = bread.id, croissant.id, welcome_coupon.id

        def broken(*args, **kwargs):
            raise RuntimeError('disk full')
        monkeypatch.setattr(checkout_service, '_next_order_number', broken)

        with pytest.raises(OrderPersistenceError) as excinfo:
            create_order(session, _checkout(zone, cart, saturday, coupon_code='WELCOME10'), today=friday)

        assert excinfo.value.status_code == 500
        assert 'disk full' not in excinfo.value.message
        assert session.get(Product, bread_id).stock == 20
        assert session.get(Product, croissant_id).stock == 30
        assert session.get(Coupon, coupon_id).uses == 0
        assert session.query(Order).count() == 0

    def test_order_number_retries_on_collision(self, session, zone, cart, friday, saturday, monkeypatch):
        first = create_order(session, _checkout(zone, cart, saturday), today=friday)
        taken = first.order_number

        numbers = iter([taken, 'ORD-NUEVO-001'])
        monkeypatch.setattr(checkout_service, 'generate_order_number', lambda: next(numbers))

        second = create_order(session, _checkout(zone, cart, saturday), today=friday)
        assert second.order_number == 'ORD-NUEVO-001'

    def test_order_number_gives_up(self, session, zone, cart, friday, saturday, monkeypatch):
        first = create_order(session, _checkout(zone, cart, saturday), today=friday)
        taken = first.order_number
        monkeypatch.setattr(checkout_service, 'generate_order_number', lambda: taken)

        with pytest.raises(OrderPersistenceError):
            create_order(session, _checkout(zone, cart, saturday), today=friday, order_number_attempts=2)
        assert session.query(Order).count() == 1
