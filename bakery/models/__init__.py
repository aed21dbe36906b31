"""Models package - exports all SQLAlchemy models."""
from bakery.models.user import User, UserRole
from bakery.models.category import Category
from bakery.models.product import Product, ProductStatus
from bakery.models.delivery_zone import DeliveryZone
from bakery.models.coupon import Coupon, CouponType
from bakery.models.order import (
    Order, OrderStatus, PaymentStatus, DeliveryWindow,
    INACTIVE_ORDER_STATUSES, PENDING_ORDER_STATUSES
)
from bakery.models.order_item import OrderItem
from bakery.models.audit_log import AuditLog, AuditAction

__all__ = [
    'User', 'UserRole',
    'Category', 'Product', 'ProductStatus',
    'DeliveryZone', 'Coupon', 'CouponType',
    'Order', 'OrderStatus', 'PaymentStatus', 'DeliveryWindow',
    'INACTIVE_ORDER_STATUSES', 'PENDING_ORDER_STATUSES',
    'OrderItem',
    'AuditLog', 'AuditAction',
]
