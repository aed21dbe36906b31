"""
Admin blueprint.
JSON back office for catalog, delivery zones, coupons and orders.
Every mutation is audited in the same transaction.
"""
import logging
from flask import Blueprint, jsonify, request

from bakery.database import get_session
from bakery.exceptions import NotFoundError, ValidationError
from bakery.forms.base import bind_form
from bakery.forms.admin_forms import ProductForm, CategoryForm, DeliveryZoneForm, CouponForm, OrderStatusForm
from bakery.middleware import admin_required
from bakery.models import AuditAction, OrderStatus
from bakery.services import (
    audit_service, catalog_service, coupon_service, dashboard_service,
    delivery_service, order_service
)
from bakery.utils.payloads import request_payload

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def _commit(session_db):
    """Commit the request transaction, rolling back if the commit fails."""
    try:
        session_db.commit()
    except Exception:
        session_db.rollback()
        raise


@admin_bp.route('/dashboard')
@admin_required
def dashboard():
    return jsonify(dashboard_service.get_dashboard_stats(get_session()))


# =====================================================
# PRODUCTS
# =====================================================

@admin_bp.route('/products')
@admin_required
def products_list():
    """All products, every status."""
    result = catalog_service.list_products(
        get_session(),
        category_slug=request.args.get('category') or None,
        search=request.args.get('search') or None,
        include_unpublished=True,
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', 50, type=int)
    )
    return jsonify({
        'products': [p.to_dict() for p in result['products']],
        'pagination': result['pagination'],
    })


@admin_bp.route('/products', methods=['POST'])
@admin_required
def product_create():
    session_db = get_session()
    form = bind_form(ProductForm, request_payload(request))
    product = catalog_service.create_product(session_db, form.data)
    audit_service.log_action(session_db, AuditAction.PRODUCT_CREATED, 'product', product.id,
                             {'slug': product.slug, 'name': product.name})
    _commit(session_db)
    return jsonify(product.to_dict()), 201


@admin_bp.route('/products/<slug>', methods=['PATCH'])
@admin_required
def product_update(slug):
    """Partial update: fields not sent keep their current value."""
    session_db = get_session()
    product = catalog_service.get_product_by_slug(session_db, slug, include_unpublished=True)
    payload = request_payload(request)
    form = bind_form(ProductForm, payload, base=catalog_service.product_form_data(product))
    catalog_service.update_product(session_db, product, form.data)
    audit_service.log_action(session_db, AuditAction.PRODUCT_UPDATED, 'product', product.id,
                             {'fields': sorted(payload.keys())})
    _commit(session_db)
    return jsonify(product.to_dict())


@admin_bp.route('/products/<slug>', methods=['DELETE'])
@admin_required
def product_delete(slug):
    session_db = get_session()
    product = catalog_service.get_product_by_slug(session_db, slug, include_unpublished=True)
    product_id = product.id
    catalog_service.delete_product(session_db, product)
    audit_service.log_action(session_db, AuditAction.PRODUCT_DELETED, 'product', product_id, {'slug': slug})
    _commit(session_db)
    return jsonify({'status': 'success'})


# =====================================================
# CATEGORIES
# =====================================================

@admin_bp.route('/categories')
@admin_required
def categories_list():
    rows = catalog_service.list_categories(get_session(), include_inactive=True, count_all_products=True)
    return jsonify([category.to_dict(product_count=count) for category, count in rows])


@admin_bp.route('/categories', methods=['POST'])
@admin_required
def category_create():
    session_db = get_session()
    form = bind_form(CategoryForm, request_payload(request))
    category = catalog_service.create_category(session_db, form.data)
    audit_service.log_action(session_db, AuditAction.CATEGORY_CREATED, 'category', category.id,
                             {'slug': category.slug})
    _commit(session_db)
    return jsonify(category.to_dict()), 201


@admin_bp.route('/categories/<slug>', methods=['PATCH'])
@admin_required
def category_update(slug):
    session_db = get_session()
    category = catalog_service.get_category_by_slug(session_db, slug)
    payload = request_payload(request)
    form = bind_form(CategoryForm, payload, base=catalog_service.category_form_data(category))
    catalog_service.update_category(session_db, category, form.data)
    audit_service.log_action(session_db, AuditAction.CATEGORY_UPDATED, 'category', category.id,
                             {'fields': sorted(payload.keys())})
    _commit(session_db)
    return jsonify(category.to_dict())


@admin_bp.route('/categories/<slug>', methods=['DELETE'])
@admin_required
def category_delete(slug):
    session_db = get_session()
    category = catalog_service.get_category_by_slug(session_db, slug)
    category_id = category.id
    catalog_service.delete_category(session_db, category)
    audit_service.log_action(session_db, AuditAction.CATEGORY_DELETED, 'category', category_id, {'slug': slug})
    _commit(session_db)
    return jsonify({'status': 'success'})


# =====================================================
# DELIVERY ZONES
# =====================================================

def _zone_or_404(session_db, zone_id):
    zone = delivery_service.get_zone(session_db, zone_id)
    if not zone:
        raise NotFoundError('Zona no encontrada')
    return zone


@admin_bp.route('/delivery-zones')
@admin_required
def zones_list():
    return jsonify([zone.to_dict() for zone in delivery_service.list_zones(get_session(), include_inactive=True)])


@admin_bp.route('/delivery-zones', methods=['POST'])
@admin_required
def zone_create():
    session_db = get_session()
    form = bind_form(DeliveryZoneForm, request_payload(request))
    zone = delivery_service.create_zone(session_db, form.data)
    audit_service.log_action(session_db, AuditAction.ZONE_CREATED, 'delivery_zone', zone.id, {'name': zone.name})
    _commit(session_db)
    return jsonify(zone.to_dict()), 201


@admin_bp.route('/delivery-zones/<int:zone_id>', methods=['PATCH'])
@admin_required
def zone_update(zone_id):
    session_db = get_session()
    zone = _zone_or_404(session_db, zone_id)
    payload = request_payload(request)
    base = {
        'name': zone.name,
        'description': zone.description,
        'fee_pen': zone.fee_pen,
        'active': zone.active,
        'order': zone.order,
    }
    form = bind_form(DeliveryZoneForm, payload, base=base)
    delivery_service.update_zone(session_db, zone, form.data)
    audit_service.log_action(session_db, AuditAction.ZONE_UPDATED, 'delivery_zone', zone.id,
                             {'fields': sorted(payload.keys())})
    _commit(session_db)
    return jsonify(zone.to_dict())


@admin_bp.route('/delivery-zones/<int:zone_id>', methods=['DELETE'])
@admin_required
def zone_delete(zone_id):
    session_db = get_session()
    zone = _zone_or_404(session_db, zone_id)
    name = zone.name
    delivery_service.delete_zone(session_db, zone)
    audit_service.log_action(session_db, AuditAction.ZONE_DELETED, 'delivery_zone', zone_id, {'name': name})
    _commit(session_db)
    return jsonify({'status': 'success'})


# =====================================================
# COUPONS
# =====================================================

def _coupon_or_404(session_db, coupon_id):
    coupon = coupon_service.get_coupon(session_db, coupon_id)
    if not coupon:
        raise NotFoundError('Cupón no encontrado')
    return coupon


@admin_bp.route('/coupons')
@admin_required
def coupons_list():
    return jsonify([coupon.to_dict() for coupon in coupon_service.list_coupons(get_session())])


@admin_bp.route('/coupons', methods=['POST'])
@admin_required
def coupon_create():
    session_db = get_session()
    form = bind_form(CouponForm, request_payload(request))
    coupon = coupon_service.create_coupon(session_db, form.data)
    audit_service.log_action(session_db, AuditAction.COUPON_CREATED, 'coupon', coupon.id, {'code': coupon.code})
    _commit(session_db)
    return jsonify(coupon.to_dict()), 201


@admin_bp.route('/coupons/<int:coupon_id>', methods=['PATCH'])
@admin_required
def coupon_update(coupon_id):
    session_db = get_session()
    coupon = _coupon_or_404(session_db, coupon_id)
    payload = request_payload(request)
    base = {
        'code': coupon.code,
        'type': coupon.type.value,
        'value': coupon.value,
        'min_subtotal_pen': coupon.min_subtotal_pen,
        'max_discount_pen': coupon.max_discount_pen,
        'starts_at': coupon.starts_at,
        'ends_at': coupon.ends_at,
        'max_uses': coupon.max_uses,
        'active': coupon.active,
    }
    form = bind_form(CouponForm, payload, base=base)
    coupon_service.update_coupon(session_db, coupon, form.data)
    audit_service.log_action(session_db, AuditAction.COUPON_UPDATED, 'coupon', coupon.id,
                             {'fields': sorted(payload.keys())})
    _commit(session_db)
    return jsonify(coupon.to_dict())


@admin_bp.route('/coupons/<int:coupon_id>', methods=['DELETE'])
@admin_required
def coupon_delete(coupon_id):
    session_db = get_session()
    coupon = _coupon_or_404(session_db, coupon_id)
    code = coupon.code
    coupon_service.delete_coupon(session_db, coupon)
    audit_service.log_action(session_db, AuditAction.COUPON_DELETED, 'coupon', coupon_id, {'code': code})
    _commit(session_db)
    return jsonify({'status': 'success'})


# =====================================================
# ORDERS
# =====================================================

@admin_bp.route('/orders')
@admin_required
def orders_list():
    """Orders newest first. ?status=PENDING filters by fulfillment status."""
    status = None
    status_arg = request.args.get('status')
    if status_arg:
        try:
            status = OrderStatus(status_arg.upper())
        except ValueError:
            raise ValidationError({'status': ['Estado inválido']})

    orders = order_service.list_orders(get_session(), status=status)
    return jsonify([order.to_dict() for order in orders])


@admin_bp.route('/orders/<order_number>')
@admin_required
def order_detail(order_number):
    return jsonify(order_service.get_order_by_number(get_session(), order_number).to_dict())


@admin_bp.route('/orders/<order_number>/status', methods=['PATCH'])
@admin_required
def order_status_update(order_number):
    """Change fulfillment and/or payment status. Stock is never restored here."""
    session_db = get_session()
    order = order_service.get_order_by_number(session_db, order_number)
    form = bind_form(OrderStatusForm, request_payload(request))
    changes = order_service.update_order_status(
        session_db, order,
        status=form.status.data or None,
        payment_status=form.payment_status.data or None
    )
    if changes:
        audit_service.log_action(session_db, AuditAction.ORDER_STATUS_CHANGED, 'order', order.id,
                                 {'order_number': order.order_number, 'changes': changes})
        logger.info(f"Order {order.order_number} status changed: {changes}")
    _commit(session_db)
    return jsonify(order.to_dict())


@admin_bp.route('/audit-logs')
@admin_required
def audit_logs():
    """Most recent audit entries. ?action=ZONE_CREATED filters by action."""
    action = None
    action_arg = request.args.get('action')
    if action_arg:
        try:
            action = AuditAction(action_arg.upper())
        except ValueError:
            raise ValidationError({'action': ['Acción inválida']})

    logs = audit_service.get_audit_logs(
        get_session(),
        limit=request.args.get('limit', 100, type=int),
        offset=request.args.get('offset', 0, type=int),
        action_filter=action
    )
    return jsonify([log.to_dict() for log in logs])
