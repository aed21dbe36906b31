"""
Dashboard service.
Aggregated counters for the admin dashboard.
"""
from sqlalchemy import func

from bakery.models import Product, Order, Category, PENDING_ORDER_STATUSES


def get_dashboard_stats(session) -> dict:
    """
    Returns:
        dict with keys:
            - product_count: int
            - order_count: int
            - category_count: int
            - pending_orders: int (orders PENDING or PAID)
    """
    product_count = session.query(func.count(Product.id)).scalar() or 0
    order_count = session.query(func.count(Order.id)).scalar() or 0
    category_count = session.query(func.count(Category.id)).scalar() or 0
    pending_orders = session.query(func.count(Order.id)).filter(
        Order.status.in_(PENDING_ORDER_STATUSES)
    ).scalar() or 0

    return {
        'product_count': product_count,
        'order_count': order_count,
        'category_count': category_count,
        'pending_orders': pending_orders,
    }
