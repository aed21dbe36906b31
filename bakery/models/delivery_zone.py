"""Delivery Zone model."""
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from bakery.database import Base, BigId


class DeliveryZone(Base):
    """Named delivery area with a flat per-order fee."""

    __tablename__ = 'delivery_zone'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    fee_pen = Column(Numeric(10, 2), nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'fee_pen': str(self.fee_pen),
            'active': self.active,
            'order': self.order,
        }

    def __repr__(self):
        return f"<DeliveryZone(id={self.id}, name='{self.name}', fee={self.fee_pen})>"
