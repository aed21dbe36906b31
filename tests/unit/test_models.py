"""
Unit tests for SQLAlchemy models.
"""

import pytest
from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from bakery.models import User, UserRole, Product, ProductStatus, Category, OrderItem


class TestUserModel:
    """Tests for User model."""

    def test_password_hashing(self, session):
        user = User(email='user@test.pe', active=True)
        user.set_password('mypassword')

        assert user.password_hash != 'mypassword'
        assert user.check_password('mypassword') is True
        assert user.check_password('wrongpassword') is False

    def test_passwordless_user_cannot_log_in(self):
        assert User(email='x@test.pe').check_password('') is False

    def test_roles(self, session, customer, admin_user):
        assert customer.role == UserRole.CUSTOMER.value
        assert customer.is_admin is False
        assert admin_user.is_admin is True

    def test_email_unique(self, session, customer):
        session.add(User(email=customer.email, name='Duplicado'))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()


class TestProductModel:
    """Tests for Product model."""

    def test_defaults(self, session):
        product = Product(slug='pan', name='Pan', price_pen=Decimal('5.00'))
        session.add(product)
        session.commit()

        assert product.status == ProductStatus.DRAFT
        assert product.weekend_only is True
        assert product.stock == 0
        assert product.tags == []
        assert product.is_published is False

    def test_slug_unique(self, session, bread):
        session.add(Product(slug=bread.slug, name='Otro', price_pen=Decimal('1.00')))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_to_dict_money_as_string(self, session, bread, category):
        data = bread.to_dict()
        assert data['price_pen'] == '18.00'
        assert data['category']['slug'] == category.slug


class TestOrderItemModel:
    """Tests for OrderItem snapshots."""

    def test_line_total(self):
        item = OrderItem(name_snapshot='Pan', price_snapshot_pen=Decimal('18.00'), quantity=2)
        assert item.line_total_pen == Decimal('36.00')


class TestCategoryModel:
    """Tests for Category model."""

    def test_to_dict_with_count(self, category):
        data = category.to_dict(product_count=3)
        assert data['product_count'] == 3
        assert 'product_count' not in category.to_dict()
