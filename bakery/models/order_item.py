"""Order Item model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from bakery.database import Base, BigId


class OrderItem(Base):
    """Order line. Name and price are snapshots taken at checkout."""

    __tablename__ = 'order_item'

    id = Column(BigId, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('customer_order.id'), nullable=False)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    name_snapshot = Column(String(200), nullable=False)
    price_snapshot_pen = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    # Relationships
    order = relationship('Order', back_populates='items')
    product = relationship('Product')

    @property
    def line_total_pen(self):
        return self.price_snapshot_pen * self.quantity

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'name': self.name_snapshot,
            'price_pen': str(self.price_snapshot_pen),
            'quantity': self.quantity,
            'line_total_pen': str(self.line_total_pen),
        }

    def __repr__(self):
        return f"<OrderItem(id={self.id}, product_id={self.product_id}, qty={self.quantity})>"
