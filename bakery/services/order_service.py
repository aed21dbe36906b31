"""Order service - admin listing and status changes."""
from typing import List, Optional
from sqlalchemy.orm import selectinload, joinedload

from bakery.models import Order, OrderStatus, PaymentStatus
from bakery.exceptions import NotFoundError


def list_orders(session, status: Optional[OrderStatus] = None, limit: int = 200) -> List[Order]:
    """Orders newest first, optionally filtered by fulfillment status."""
    query = session.query(Order).options(
        selectinload(Order.items),
        joinedload(Order.zone)
    )
    if status is not None:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()


def get_order_by_number(session, order_number: str) -> Order:
    order = session.query(Order).options(
        selectinload(Order.items),
        joinedload(Order.zone)
    ).filter(Order.order_number == order_number).first()
    if not order:
        raise NotFoundError('Pedido no encontrado')
    return order


def update_order_status(session, order: Order, status: Optional[str] = None,
                        payment_status: Optional[str] = None) -> dict:
    """
    Change fulfillment and/or payment status.

    Stock is not restored when an order is cancelled or refunded.

    Returns:
        dict of changed fields: {'status': (old, new), ...}
    """
    changes = {}
    if status:
        new_status = OrderStatus(status)
        if new_status != order.status:
            changes['status'] = (order.status.value, new_status.value)
            order.status = new_status
    if payment_status:
        new_payment = PaymentStatus(payment_status)
        if new_payment != order.payment_status:
            changes['payment_status'] = (order.payment_status.value, new_payment.value)
            order.payment_status = new_payment
    session.flush()
    return changes
