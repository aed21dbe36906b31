"""Order model."""
import enum
from sqlalchemy import Column, BigInteger, String, Text, Numeric, Date, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bakery.database import Base, BigId


class OrderStatus(enum.Enum):
    """Fulfillment status."""
    PENDING = 'PENDING'
    PAID = 'PAID'
    PROCESSING = 'PROCESSING'
    READY = 'READY'
    DELIVERED = 'DELIVERED'
    CANCELLED = 'CANCELLED'
    REFUNDED = 'REFUNDED'


# Orders in these states do not take a delivery slot
INACTIVE_ORDER_STATUSES = (OrderStatus.CANCELLED, OrderStatus.REFUNDED)

# Orders still waiting on the kitchen, shown on the admin dashboard
PENDING_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.PAID)


class PaymentStatus(enum.Enum):
    """Payment status."""
    PENDING = 'PENDING'
    PAID = 'PAID'
    FAILED = 'FAILED'
    REFUNDED = 'REFUNDED'


class DeliveryWindow(enum.Enum):
    """Delivery time window."""
    MORNING = 'MORNING'
    AFTERNOON = 'AFTERNOON'


class Order(Base):
    """Customer order with totals computed at checkout."""

    __tablename__ = 'customer_order'
    __table_args__ = (
        Index('ix_customer_order_delivery_slot', 'delivery_date', 'delivery_window'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    order_number = Column(String(40), nullable=False, unique=True, index=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=True)

    # Contact / address
    email = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    phone = Column(String(30), nullable=False)
    address = Column(String(500), nullable=False)
    district = Column(String(100), nullable=False)
    notes = Column(Text, nullable=True)

    # Delivery
    delivery_date = Column(Date, nullable=False)
    delivery_window = Column(Enum(DeliveryWindow, name='delivery_window'), nullable=False)
    zone_id = Column(BigInteger, ForeignKey('delivery_zone.id'), nullable=False)
    coupon_code = Column(String(50), nullable=True)

    # Totals
    subtotal_pen = Column(Numeric(10, 2), nullable=False)
    delivery_fee_pen = Column(Numeric(10, 2), nullable=False)
    discount_pen = Column(Numeric(10, 2), nullable=False, default=0)
    tip_pen = Column(Numeric(10, 2), nullable=False, default=0)
    total_pen = Column(Numeric(10, 2), nullable=False)

    status = Column(Enum(OrderStatus, name='order_status'), nullable=False, default=OrderStatus.PENDING)
    payment_status = Column(Enum(PaymentStatus, name='payment_status'), nullable=False, default=PaymentStatus.PENDING)
    payment_provider = Column(String(20), nullable=False, default='CULQI')

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship('User', back_populates='orders')
    zone = relationship('DeliveryZone')
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan',
                         order_by='OrderItem.id')

    def to_dict(self):
        return {
            'id': self.id,
            'order_number': self.order_number,
            'email': self.email,
            'name': self.name,
            'phone': self.phone,
            'address': self.address,
            'district': self.district,
            'notes': self.notes,
            'delivery_date': self.delivery_date.isoformat(),
            'delivery_window': self.delivery_window.value,
            'zone': self.zone.to_dict() if self.zone else None,
            'coupon_code': self.coupon_code,
            'subtotal_pen': str(self.subtotal_pen),
            'delivery_fee_pen': str(self.delivery_fee_pen),
            'discount_pen': str(self.discount_pen),
            'tip_pen': str(self.tip_pen),
            'total_pen': str(self.total_pen),
            'status': self.status.value,
            'payment_status': self.payment_status.value,
            'payment_provider': self.payment_provider,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'items': [item.to_dict() for item in self.items],
        }

    def __repr__(self):
        return f"<Order(order_number='{self.order_number}', total={self.total_pen}, status={self.status.value})>"
