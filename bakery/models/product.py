"""Product model."""
import enum
from sqlalchemy import Column, BigInteger, Integer, String, Text, Boolean, Numeric, DateTime, Enum, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bakery.database import Base, BigId


class ProductStatus(enum.Enum):
    """Publication status."""
    DRAFT = 'DRAFT'
    PUBLISHED = 'PUBLISHED'
    ARCHIVED = 'ARCHIVED'


class Product(Base):
    """Product model."""

    __tablename__ = 'product'

    id = Column(BigId, primary_key=True, autoincrement=True)
    slug = Column(String(100), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price_pen = Column(Numeric(10, 2), nullable=False)
    cost_pen = Column(Numeric(10, 2), nullable=True)  # Precio de costo
    status = Column(Enum(ProductStatus, name='product_status'), nullable=False, default=ProductStatus.DRAFT)
    weekend_only = Column(Boolean, nullable=False, default=True)
    allergens = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    stock = Column(Integer, nullable=False, default=0)
    sku = Column(String(100), nullable=True)
    weight = Column(Integer, nullable=True)  # grams
    featured = Column(Boolean, nullable=False, default=False)
    category_id = Column(BigInteger, ForeignKey('category.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship('Category', back_populates='products')

    @property
    def is_published(self):
        return self.status == ProductStatus.PUBLISHED

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'name': self.name,
            'description': self.description,
            'price_pen': str(self.price_pen),
            'cost_pen': str(self.cost_pen) if self.cost_pen is not None else None,
            'status': self.status.value,
            'weekend_only': self.weekend_only,
            'allergens': list(self.allergens or []),
            'tags': list(self.tags or []),
            'images': list(self.images or []),
            'stock': self.stock,
            'sku': self.sku,
            'weight': self.weight,
            'featured': self.featured,
            'category': {
                'id': self.category.id,
                'name': self.category.name,
                'slug': self.category.slug,
            } if self.category else None,
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
