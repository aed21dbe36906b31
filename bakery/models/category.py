"""Category model."""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bakery.database import Base, BigId


class Category(Base):
    """Product Category."""

    __tablename__ = 'category'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    products = relationship('Product', back_populates='category')

    def to_dict(self, product_count=None):
        data = {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'image': self.image,
            'order': self.order,
            'active': self.active,
        }
        if product_count is not None:
            data['product_count'] = product_count
        return data

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
