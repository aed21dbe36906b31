"""
Checkout service with transactional logic.

Turns a cart plus a delivery selection into a priced order. Validation runs
in a fixed order (first failure wins):

    1. delivery date is a Saturday or Sunday
    2. delivery date is tomorrow or later
    3. the (date, window) slot still has capacity
    4. every product exists and is PUBLISHED
    5. every product has enough stock
    6. the delivery zone exists and is active
    7. the coupon, if any, applies (otherwise it is ignored)

The commit decrements stock, bumps the coupon usage counter and inserts the
order with its item snapshots in one transaction.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Any

from bakery.models import Order, OrderItem, DeliveryWindow, OrderStatus, PaymentStatus
from bakery.exceptions import (
    BakeryError, ValidationError, SchedulingError, CapacityError,
    ProductUnavailableError, InsufficientStockError, InvalidZoneError,
    OrderPersistenceError
)
from bakery.services.catalog_service import get_products_by_ids
from bakery.services.coupon_service import resolve_discount
from bakery.services.delivery_service import is_weekend, count_booked_orders, get_active_zone, WINDOW_LABELS
from bakery.utils.formatters import date_es, money_pen
from bakery.utils.helpers import generate_order_number, to_money

logger = logging.getLogger(__name__)

DEFAULT_MAX_ORDERS_PER_WINDOW = 50
DEFAULT_ORDER_NUMBER_ATTEMPTS = 5


def quote_order(
    session,
    checkout: Dict[str, Any],
    max_orders_per_window: int = DEFAULT_MAX_ORDERS_PER_WINDOW,
    today: date = None,
    now: datetime = None
) -> Dict[str, Any]:
    """
    Validate and price a checkout without writing anything.

    Returns:
        dict with keys: lines, subtotal, delivery_fee, discount, tip, total,
        coupon (applied Coupon or None), zone, delivery_date, delivery_window.
    """
    return _price_checkout(session, checkout, max_orders_per_window, today, now, lock=False)


def create_order(
    session,
    checkout: Dict[str, Any],
    max_orders_per_window: int = DEFAULT_MAX_ORDERS_PER_WINDOW,
    today: date = None,
    now: datetime = None,
    user_id: int = None,
    payment_provider: str = 'CULQI',
    order_number_attempts: int = DEFAULT_ORDER_NUMBER_ATTEMPTS
) -> Order:
    """
    Confirm a checkout with full transactional processing.

    Args:
        session: SQLAlchemy session
        checkout: cleaned checkout data (see CheckoutForm.to_checkout)
        max_orders_per_window: capacity of each (date, window) slot
        today: reference date for the "future date" rule (defaults to today)
        now: reference time for coupon validity (defaults to now, UTC)
        user_id: logged-in customer, if any
        payment_provider: provider recorded on the order
        order_number_attempts: tries to find an unused order number

    Returns:
        The persisted Order.

    Raises:
        BusinessLogicError subclasses for rejected checkouts,
        ValidationError for malformed carts,
        OrderPersistenceError for unexpected storage failures.
    """
    try:
        quote = _price_checkout(session, checkout, max_orders_per_window, today, now, lock=True)

        # 1. Decrement stock (rows are locked by _price_checkout)
        for line in quote['lines']:
            product = line['product']
            product.stock = product.stock - line['quantity']

        # 2. Count coupon usage
        coupon = quote['coupon']
        if coupon is not None:
            coupon.uses = (coupon.uses or 0) + 1

        # 3. Create Order with item snapshots
        order = Order(
            order_number=_next_order_number(session, order_number_attempts),
            user_id=user_id,
            email=checkout['email'],
            name=checkout['name'],
            phone=checkout['phone'],
            address=checkout['address'],
            district=checkout['district'],
            notes=checkout.get('notes'),
            delivery_date=quote['delivery_date'],
            delivery_window=quote['delivery_window'],
            zone_id=quote['zone'].id,
            coupon_code=coupon.code if coupon is not None else None,
            subtotal_pen=quote['subtotal'],
            delivery_fee_pen=quote['delivery_fee'],
            discount_pen=quote['discount'],
            tip_pen=quote['tip'],
            total_pen=quote['total'],
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_provider=payment_provider
        )
        for line in quote['lines']:
            order.items.append(OrderItem(
                product_id=line['product'].id,
                name_snapshot=line['product'].name,
                price_snapshot_pen=line['unit_price'],
                quantity=line['quantity']
            ))
        session.add(order)
        session.commit()

    except BakeryError as e:
        session.rollback()
        logger.warning(f"Checkout rejected: {e.message}")
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating order: {e}", exc_info=True)
        raise OrderPersistenceError() from e

    logger.info(
        f"Order {order.order_number} created: {len(order.items)} items, "
        f"total {money_pen(order.total_pen)}, delivery {order.delivery_date} {order.delivery_window.value}"
    )
    return order


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _merge_items(items: List[Dict[str, Any]]) -> "OrderedDict[int, int]":
    """Collapse cart lines into {product_id: quantity}, keeping first-seen order."""
    if not items:
        raise ValidationError({'items': ['El carrito está vacío']})

    quantities = OrderedDict()
    for index, item in enumerate(items):
        try:
            product_id = int(item['product_id'])
            quantity = int(item['quantity'])
        except (KeyError, TypeError, ValueError):
            raise ValidationError({'items': [f'Línea {index + 1} inválida']})
        if quantity <= 0:
            raise ValidationError({'items': ['La cantidad debe ser mayor a 0']})
        quantities[product_id] = quantities.get(product_id, 0) + quantity
    return quantities


def _delivery_window(value) -> DeliveryWindow:
    if isinstance(value, DeliveryWindow):
        return value
    try:
        return DeliveryWindow(value)
    except ValueError:
        raise ValidationError({'delivery_window': ['Horario de entrega inválido']})


def _price_checkout(session, checkout, max_orders_per_window, today, now, lock) -> Dict[str, Any]:
    delivery_date = checkout['delivery_date']
    if isinstance(delivery_date, datetime):
        delivery_date = delivery_date.date()
    window = _delivery_window(checkout['delivery_window'])
    today = today or date.today()

    # 1. Weekend only
    if not is_weekend(delivery_date):
        raise SchedulingError('La fecha de entrega debe ser sábado o domingo')

    # 2. At least tomorrow
    if delivery_date <= today:
        raise SchedulingError('La fecha de entrega debe ser futura')

    # 3. Slot capacity
    booked = count_booked_orders(session, delivery_date, window)
    if booked >= max_orders_per_window:
        raise CapacityError(
            f'No hay cupos disponibles para el {date_es(delivery_date, with_weekday=True)} '
            f'por la {WINDOW_LABELS[window]}'
        )

    # 4. Products exist and are published
    quantities = _merge_items(checkout.get('items'))
    products = {p.id: p for p in get_products_by_ids(session, quantities.keys(), lock=lock)}

    unavailable = []
    for product_id in quantities:
        product = products.get(product_id)
        if product is None:
            unavailable.append(f'#{product_id}')
        elif not product.is_published:
            unavailable.append(product.name)
    if unavailable:
        raise ProductUnavailableError(unavailable)

    # 5. Stock
    for product_id, quantity in quantities.items():
        product = products[product_id]
        if product.stock < quantity:
            raise InsufficientStockError(product.name, quantity, product.stock)

    # Prices come from the database, never from the client
    lines = []
    subtotal = Decimal('0.00')
    for product_id, quantity in quantities.items():
        product = products[product_id]
        unit_price = to_money(product.price_pen)
        line_total = to_money(unit_price * quantity)
        lines.append({
            'product': product,
            'quantity': quantity,
            'unit_price': unit_price,
            'line_total': line_total,
        })
        subtotal += line_total
    subtotal = to_money(subtotal)

    # 6. Delivery zone
    zone = get_active_zone(session, checkout.get('zone_id'))
    if zone is None:
        raise InvalidZoneError()
    delivery_fee = to_money(zone.fee_pen)

    # 7. Coupon (never an error)
    coupon, discount = resolve_discount(session, checkout.get('coupon_code'), subtotal, now=now, lock=lock)

    tip = to_money(checkout.get('tip_pen') or 0)
    if tip < 0:
        raise ValidationError({'tip_pen': ['La propina no puede ser negativa']})

    total = to_money(subtotal + delivery_fee - discount + tip)

    return {
        'lines': lines,
        'subtotal': subtotal,
        'delivery_fee': delivery_fee,
        'discount': discount,
        'tip': tip,
        'total': total,
        'coupon': coupon,
        'zone': zone,
        'delivery_date': delivery_date,
        'delivery_window': window,
    }


def _next_order_number(session, attempts: int) -> str:
    """Generate an order number not used by any existing order."""
    for _ in range(max(attempts, 1)):
        candidate = generate_order_number()
        taken = session.query(Order.id).filter(Order.order_number == candidate).first()
        if taken is None:
            return candidate
        logger.warning(f"Order number collision on {candidate}, retrying")
    raise OrderPersistenceError('No se pudo generar un número de pedido')


def quote_to_dict(quote: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-friendly view of a quote."""
    return {
        'delivery_date': quote['delivery_date'].isoformat(),
        'delivery_window': quote['delivery_window'].value,
        'zone': quote['zone'].to_dict(),
        'coupon_code': quote['coupon'].code if quote['coupon'] is not None else None,
        'items': [
            {
                'product_id': line['product'].id,
                'name': line['product'].name,
                'price_pen': str(line['unit_price']),
                'quantity': line['quantity'],
                'line_total_pen': str(line['line_total']),
            }
            for line in quote['lines']
        ],
        'subtotal_pen': str(quote['subtotal']),
        'delivery_fee_pen': str(quote['delivery_fee']),
        'discount_pen': str(quote['discount']),
        'tip_pen': str(quote['tip']),
        'total_pen': str(quote['total']),
    }
