"""
Storefront API blueprint.
Public catalog, delivery options and checkout.
"""
import logging
from flask import Blueprint, jsonify, request, g, current_app

from bakery.database import get_session
from bakery.exceptions import BusinessLogicError, ValidationError
from bakery.forms.base import bind_form
from bakery.forms.checkout_forms import CheckoutForm
from bakery.models import ProductStatus
from bakery.services import catalog_service, checkout_service, delivery_service
from bakery.blueprints.metrics import record_order_created, record_checkout_rejection
from bakery.utils.payloads import request_payload

logger = logging.getLogger(__name__)

store_bp = Blueprint('store', __name__, url_prefix='/api')

TRUE_VALUES = ('1', 'true', 'yes', 'y', 'on')


def _bool_arg(name: str) -> bool:
    return (request.args.get(name) or '').strip().lower() in TRUE_VALUES


def _int_arg(name: str, default: int) -> int:
    value = request.args.get(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError({name: ['Debe ser un número entero']})


def _is_admin() -> bool:
    user = g.get('user')
    return bool(user and user.is_admin)


# =====================================================
# CATALOG
# =====================================================

@store_bp.route('/products')
def products_list():
    """
    Published products with filters and pagination.

    Query params: category (slug), featured, search, status (admins only),
    page, limit.
    """
    status = None
    status_arg = request.args.get('status')
    if status_arg and _is_admin():
        try:
            status = ProductStatus(status_arg.upper())
        except ValueError:
            raise ValidationError({'status': ['Estado inválido']})

    result = catalog_service.list_products(
        get_session(),
        category_slug=request.args.get('category') or None,
        featured=_bool_arg('featured'),
        search=request.args.get('search') or None,
        status=status,
        include_unpublished=_is_admin(),
        page=_int_arg('page', 1),
        limit=_int_arg('limit', current_app.config.get('PRODUCTS_PAGE_SIZE', 12))
    )
    return jsonify({
        'products': [p.to_dict() for p in result['products']],
        'pagination': result['pagination'],
    })


@store_bp.route('/products/<slug>')
def product_detail(slug):
    product = catalog_service.get_product_by_slug(get_session(), slug, include_unpublished=_is_admin())
    return jsonify(product.to_dict())


@store_bp.route('/categories')
def categories_list():
    include_inactive = _bool_arg('includeInactive') or _bool_arg('include_inactive')
    rows = catalog_service.list_categories(
        get_session(),
        include_inactive=include_inactive,
        count_all_products=_is_admin()
    )
    return jsonify([category.to_dict(product_count=count) for category, count in rows])


# =====================================================
# DELIVERY
# =====================================================

@store_bp.route('/delivery-zones')
def delivery_zones():
    return jsonify([zone.to_dict() for zone in delivery_service.list_zones(get_session())])


@store_bp.route('/delivery-dates')
def delivery_dates():
    """Next weekend dates a customer can pick, starting tomorrow."""
    count = _int_arg('count', current_app.config.get('DELIVERY_DATES_COUNT', 4))
    count = max(min(count, 12), 1)
    return jsonify([
        {'date': value.isoformat(), 'weekday': 'SATURDAY' if value.weekday() == delivery_service.SATURDAY else 'SUNDAY'}
        for value in delivery_service.next_weekend_dates(count)
    ])


# =====================================================
# CHECKOUT
# =====================================================

def _checkout_data() -> dict:
    form = bind_form(CheckoutForm, request_payload(request))
    return form.to_checkout()


@store_bp.route('/checkout/preview', methods=['POST'])
def checkout_preview():
    """Price a cart without placing the order."""
    db_session = get_session()
    try:
        quote = checkout_service.quote_order(
            db_session,
            _checkout_data(),
            max_orders_per_window=current_app.config['MAX_ORDERS_PER_WINDOW']
        )
        return jsonify(checkout_service.quote_to_dict(quote))
    finally:
        # Nothing from a preview is ever written
        db_session.rollback()


@store_bp.route('/checkout', methods=['POST'])
def checkout():
    """Place an order. Returns 201 with the persisted order."""
    user = g.get('user')
    try:
        order = checkout_service.create_order(
            get_session(),
            _checkout_data(),
            max_orders_per_window=current_app.config['MAX_ORDERS_PER_WINDOW'],
            user_id=user.id if user else None,
            payment_provider=current_app.config.get('DEFAULT_PAYMENT_PROVIDER', 'CULQI'),
            order_number_attempts=current_app.config.get('ORDER_NUMBER_MAX_ATTEMPTS', 5)
        )
    except (ValidationError, BusinessLogicError) as e:
        record_checkout_rejection(e)
        raise

    record_order_created(order)
    return jsonify({'status': 'success', 'order': order.to_dict()}), 201
