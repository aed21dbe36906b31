"""
Coupon service.
Case-insensitive lookup, applicability rules and discount arithmetic.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple, List
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from bakery.models import Coupon, CouponType
from bakery.exceptions import ConflictError
from bakery.utils.helpers import to_money

ZERO = Decimal('0.00')


def normalize_code(code: Optional[str]) -> str:
    """Coupon codes are compared upper-case and without surrounding spaces."""
    return (code or '').strip().upper()


def find_coupon(session, code: Optional[str], lock: bool = False) -> Optional[Coupon]:
    """Fetch coupon by code, ignoring case. Returns None for blank codes."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    query = session.query(Coupon).filter(func.upper(Coupon.code) == normalized)
    if lock:
        query = query.with_for_update()
    return query.first()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_coupon_applicable(coupon: Coupon, subtotal: Decimal, now: datetime = None) -> bool:
    """
    Check whether a coupon applies to a cart subtotal.

    A coupon applies when it is active, ``now`` is inside its validity
    window (when set), it has uses left (when capped) and the subtotal
    reaches its minimum (when set).
    """
    if coupon is None or not coupon.active:
        return False

    now = _as_utc(now or datetime.now(timezone.utc))
    if coupon.starts_at and _as_utc(coupon.starts_at) > now:
        return False
    if coupon.ends_at and _as_utc(coupon.ends_at) < now:
        return False
    if coupon.max_uses is not None and (coupon.uses or 0) >= coupon.max_uses:
        return False
    if coupon.min_subtotal_pen is not None and subtotal < to_money(coupon.min_subtotal_pen):
        return False
    return True


def compute_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """
    Discount for ``subtotal``: percentage or fixed amount, capped by the
    coupon's maximum discount and never above the subtotal.
    """
    if coupon.type == CouponType.PERCENTAGE:
        discount = to_money(subtotal * Decimal(str(coupon.value)) / Decimal('100'))
    else:
        discount = to_money(coupon.value)

    if coupon.max_discount_pen is not None:
        discount = min(discount, to_money(coupon.max_discount_pen))

    return max(min(discount, to_money(subtotal)), ZERO)


def resolve_discount(session, code: Optional[str], subtotal: Decimal,
                     now: datetime = None, lock: bool = False) -> Tuple[Optional[Coupon], Decimal]:
    """
    Look up ``code`` and compute its discount.

    Invalid, unknown or inapplicable coupons are not an error: they yield
    ``(None, 0.00)``.
    """
    coupon = find_coupon(session, code, lock=lock)
    if not is_coupon_applicable(coupon, subtotal, now):
        return None, ZERO

    discount = compute_discount(coupon, subtotal)
    if discount <= 0:
        return None, ZERO
    return coupon, discount


# =====================================================
# ADMIN CRUD
# =====================================================

def list_coupons(session) -> List[Coupon]:
    return session.query(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()


def get_coupon(session, coupon_id: int) -> Optional[Coupon]:
    return session.query(Coupon).filter(Coupon.id == coupon_id).first()


def _ensure_code_available(session, code: str, exclude_id: int = None):
    query = session.query(Coupon.id).filter(func.upper(Coupon.code) == code)
    if exclude_id is not None:
        query = query.filter(Coupon.id != exclude_id)
    if query.first():
        raise ConflictError(f'Ya existe un cupón con el código {code}')


def _apply_fields(coupon: Coupon, data: dict):
    coupon.code = normalize_code(data['code'])
    coupon.type = CouponType(data['type'])
    coupon.value = data['value']
    coupon.min_subtotal_pen = data.get('min_subtotal_pen')
    coupon.max_discount_pen = data.get('max_discount_pen')
    coupon.starts_at = data.get('starts_at')
    coupon.ends_at = data.get('ends_at')
    coupon.max_uses = data.get('max_uses')
    coupon.active = bool(data.get('active', True))


def create_coupon(session, data: dict) -> Coupon:
    """Create a coupon. The caller commits."""
    code = normalize_code(data['code'])
    _ensure_code_available(session, code)
    coupon = Coupon(uses=0)
    _apply_fields(coupon, data)
    session.add(coupon)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise ConflictError(f'Ya existe un cupón con el código {code}')
    return coupon


def update_coupon(session, coupon: Coupon, data: dict) -> Coupon:
    """Update a coupon. Usage counter is left untouched."""
    _ensure_code_available(session, normalize_code(data['code']), exclude_id=coupon.id)
    _apply_fields(coupon, data)
    session.flush()
    return coupon


def delete_coupon(session, coupon: Coupon):
    session.delete(coupon)
    session.flush()
