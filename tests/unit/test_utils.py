"""
Unit tests for formatters, helpers and payload flattening.
"""

import re
from datetime import date
from decimal import Decimal

from bakery.models import DeliveryWindow
from bakery.utils.formatters import money_pen, date_es
from bakery.utils.helpers import to_money, to_base36, generate_order_number, slugify
from bakery.utils.payloads import camel_to_snake, normalize_keys, to_formdata


class TestFormatters:
    """PEN amounts and Spanish dates."""

    def test_money_pen(self):
        assert money_pen(18) == 'S/ 18.00'
        assert money_pen(Decimal('1234.5')) == 'S/ 1,234.50'
        assert money_pen(None) == '-'
        assert money_pen('abc') == '-'

    def test_date_es(self):
        assert date_es(date(2026, 10, 24)) == '24 de octubre de 2026'
        assert date_es(date(2026, 10, 24), with_weekday=True) == 'sábado 24 de octubre de 2026'
        assert date_es(None) == '-'


class TestHelpers:
    """Money rounding, base 36, order numbers, slugs."""

    def test_to_money_half_up(self):
        assert to_money('4.405') == Decimal('4.41')
        assert to_money(0.1 + 0.2) == Decimal('0.30')
        assert to_money(Decimal('10')) == Decimal('10.00')

    def test_to_base36(self):
        assert to_base36(0) == '0'
        assert to_base36(35) == 'Z'
        assert to_base36(36) == '10'

    def test_order_number_format(self):
        number = generate_order_number()
        assert re.fullmatch(r'ORD-[0-9A-Z]+-[0-9A-Z]{3}', number)

    def test_slugify(self):
        assert slugify('Pan de Masa Madre') == 'pan-de-masa-madre'
        assert slugify('Croissant  de Almendras!') == 'croissant-de-almendras'
        assert slugify('Año Nuevo Pastelería') == 'ano-nuevo-pasteleria'


class TestPayloads:
    """camelCase JSON to WTForms formdata."""

    def test_camel_to_snake(self):
        assert camel_to_snake('deliveryDate') == 'delivery_date'
        assert camel_to_snake('tipPEN') == 'tip_pen'
        assert camel_to_snake('zone_id') == 'zone_id'

    def test_normalize_keys_nested(self):
        data = normalize_keys({'items': [{'productId': 1, 'quantity': 2}], 'couponCode': 'X'})
        assert data == {'items': [{'product_id': 1, 'quantity': 2}], 'coupon_code': 'X'}

    def test_to_formdata_flattens_lists(self):
        formdata = to_formdata({
            'items': [{'product_id': 1, 'quantity': 2}, {'product_id': 5, 'quantity': 1}],
            'tags': ['a', 'b'],
        })
        assert formdata['items-0-product_id'] == '1'
        assert formdata['items-1-quantity'] == '1'
        assert formdata['tags-1'] == 'b'

    def test_to_formdata_scalars(self):
        formdata = to_formdata({
            'fee_pen': Decimal('10.50'),
            'active': True,
            'featured': False,
            'notes': None,
            'delivery_date': date(2026, 10, 24),
            'delivery_window': DeliveryWindow.MORNING,
        })
        assert formdata['fee_pen'] == '10.50'
        assert formdata['active'] == 'y'
        assert 'featured' not in formdata
        assert 'notes' not in formdata
        assert formdata['delivery_date'] == '2026-10-24'
        assert formdata['delivery_window'] == 'MORNING'
