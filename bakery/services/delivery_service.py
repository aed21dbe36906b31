"""
Delivery service.
Weekend scheduling helpers, slot capacity and delivery zones.
"""
from datetime import date, timedelta
from typing import List, Optional
from sqlalchemy import func

from bakery.models import DeliveryZone, Order, DeliveryWindow, INACTIVE_ORDER_STATUSES
from bakery.exceptions import ConflictError

SATURDAY = 5
SUNDAY = 6

WINDOW_LABELS = {
    DeliveryWindow.MORNING: 'mañana',
    DeliveryWindow.AFTERNOON: 'tarde',
}


def is_weekend(value: date) -> bool:
    """True for Saturday and Sunday."""
    return value.weekday() in (SATURDAY, SUNDAY)


def next_weekend_dates(count: int = 4, today: date = None) -> List[date]:
    """
    Next ``count`` weekend dates, starting tomorrow.

    Examples:
        On Friday 2026-10-23 -> [2026-10-24, 2026-10-25, 2026-10-31, 2026-11-01]
        On Saturday 2026-10-24 -> [2026-10-25, 2026-10-31, ...]
    """
    today = today or date.today()
    dates = []
    current = today + timedelta(days=1)
    while len(dates) < count:
        if is_weekend(current):
            dates.append(current)
        current += timedelta(days=1)
    return dates


def count_booked_orders(session, delivery_date: date, window: DeliveryWindow) -> int:
    """Orders holding a slot for (date, window): everything but cancelled/refunded."""
    return session.query(func.count(Order.id)).filter(
        Order.delivery_date == delivery_date,
        Order.delivery_window == window,
        Order.status.notin_(INACTIVE_ORDER_STATUSES)
    ).scalar() or 0


def get_active_zone(session, zone_id) -> Optional[DeliveryZone]:
    """Zone by id, only if active."""
    if zone_id is None:
        return None
    return session.query(DeliveryZone).filter(
        DeliveryZone.id == zone_id,
        DeliveryZone.active == True  # noqa: E712
    ).first()


# =====================================================
# ZONES CRUD
# =====================================================

def list_zones(session, include_inactive: bool = False) -> List[DeliveryZone]:
    query = session.query(DeliveryZone)
    if not include_inactive:
        query = query.filter(DeliveryZone.active == True)  # noqa: E712
    return query.order_by(DeliveryZone.order.asc(), DeliveryZone.name.asc()).all()


def get_zone(session, zone_id: int) -> Optional[DeliveryZone]:
    return session.query(DeliveryZone).filter(DeliveryZone.id == zone_id).first()


def _apply_fields(zone: DeliveryZone, data: dict):
    zone.name = data['name'].strip()
    zone.description = data.get('description') or None
    zone.fee_pen = data['fee_pen']
    zone.active = bool(data.get('active', True))
    zone.order = data.get('order') or 0


def create_zone(session, data: dict) -> DeliveryZone:
    zone = DeliveryZone()
    _apply_fields(zone, data)
    session.add(zone)
    session.flush()
    return zone


def update_zone(session, zone: DeliveryZone, data: dict) -> DeliveryZone:
    _apply_fields(zone, data)
    session.flush()
    return zone


def delete_zone(session, zone: DeliveryZone):
    """Delete a zone. Zones referenced by orders can only be deactivated."""
    in_use = session.query(Order.id).filter(Order.zone_id == zone.id).first()
    if in_use:
        raise ConflictError('La zona tiene pedidos asociados; desactívala en lugar de eliminarla')
    session.delete(zone)
    session.flush()
