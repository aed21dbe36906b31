"""Coupon model."""
import enum
from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, Enum
from sqlalchemy.sql import func
from bakery.database import Base, BigId


class CouponType(enum.Enum):
    """Discount type."""
    PERCENTAGE = 'PERCENTAGE'
    FIXED = 'FIXED'


class Coupon(Base):
    """Discount code. Codes are stored upper-case."""

    __tablename__ = 'coupon'

    id = Column(BigId, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True)
    type = Column(Enum(CouponType, name='coupon_type'), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    min_subtotal_pen = Column(Numeric(10, 2), nullable=True)
    max_discount_pen = Column(Numeric(10, 2), nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=True)
    ends_at = Column(DateTime(timezone=True), nullable=True)
    max_uses = Column(Integer, nullable=True)
    uses = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'type': self.type.value,
            'value': str(self.value),
            'min_subtotal_pen': str(self.min_subtotal_pen) if self.min_subtotal_pen is not None else None,
            'max_discount_pen': str(self.max_discount_pen) if self.max_discount_pen is not None else None,
            'starts_at': self.starts_at.isoformat() if self.starts_at else None,
            'ends_at': self.ends_at.isoformat() if self.ends_at else None,
            'max_uses': self.max_uses,
            'uses': self.uses,
            'active': self.active,
        }

    def __repr__(self):
        return f"<Coupon(code='{self.code}', type={self.type.value}, uses={self.uses})>"
