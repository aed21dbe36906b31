"""
Catalog service - products and categories.
Storefront listing/lookup and admin create/update/delete.
"""
import math
from typing import Dict, Any, Iterable, List, Optional, Tuple
from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import joinedload

from bakery.models import Product, ProductStatus, Category, OrderItem
from bakery.exceptions import ConflictError, NotFoundError
from bakery.utils.helpers import slugify


# =====================================================
# PRODUCTS
# =====================================================

def list_products(
    session,
    category_slug: Optional[str] = None,
    featured: bool = False,
    search: Optional[str] = None,
    status: Optional[ProductStatus] = None,
    include_unpublished: bool = False,
    page: int = 1,
    limit: int = 12
) -> Dict[str, Any]:
    """
    List products with filters and pagination.

    Non-admin callers only ever see PUBLISHED products; ``status`` is honoured
    only when ``include_unpublished`` is set.

    Returns:
        dict with ``products`` (list of Product) and ``pagination``.
    """
    page = max(page, 1)
    limit = max(min(limit, 100), 1)

    query = session.query(Product).options(joinedload(Product.category))

    if not include_unpublished:
        query = query.filter(Product.status == ProductStatus.PUBLISHED)
    elif status is not None:
        query = query.filter(Product.status == status)

    if category_slug:
        query = query.join(Category, Product.category_id == Category.id).filter(Category.slug == category_slug)

    if featured:
        query = query.filter(Product.featured == True)  # noqa: E712

    if search:
        term = f'%{search.strip().lower()}%'
        query = query.filter(or_(
            func.lower(Product.name).like(term),
            func.lower(Product.description).like(term),
            func.lower(cast(Product.tags, String)).like(term)
        ))

    total = query.order_by(None).count()
    products = query.order_by(
        Product.featured.desc(),
        Product.created_at.desc(),
        Product.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return {
        'products': products,
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': math.ceil(total / limit) if total else 0,
        },
    }


def get_product_by_slug(session, slug: str, include_unpublished: bool = False) -> Product:
    """Fetch product by slug or raise NotFoundError (hidden drafts look missing)."""
    product = session.query(Product).options(joinedload(Product.category)).filter(Product.slug == slug).first()
    if not product or (not include_unpublished and not product.is_published):
        raise NotFoundError('Producto no encontrado')
    return product


def get_products_by_ids(session, product_ids: Iterable[int], lock: bool = False) -> List[Product]:
    """
    Fetch products by id with their current price, stock and status.

    With ``lock`` the rows are read FOR UPDATE so concurrent checkouts
    serialize on stock.
    """
    product_ids = list(product_ids)
    if not product_ids:
        return []
    query = session.query(Product).filter(Product.id.in_(product_ids)).order_by(Product.id)
    if lock:
        query = query.with_for_update()
    return query.all()


def _unique_slug_or_conflict(session, model, slug: str, label: str, exclude_id: int = None):
    query = session.query(model.id).filter(model.slug == slug)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise ConflictError(f'Ya existe {label} con este slug')


def _resolve_category_id(session, category_id) -> Optional[int]:
    if not category_id:
        return None
    exists = session.query(Category.id).filter(Category.id == category_id).first()
    if not exists:
        raise NotFoundError('La categoría seleccionada no existe')
    return category_id


def _apply_product_fields(session, product: Product, data: dict):
    product.slug = data.get('slug') or slugify(data['name'])
    product.name = data['name'].strip()
    product.description = data.get('description') or None
    product.price_pen = data['price_pen']
    product.cost_pen = data.get('cost_pen')
    product.status = ProductStatus(data.get('status') or ProductStatus.DRAFT.value)
    product.weekend_only = bool(data.get('weekend_only', True))
    product.allergens = list(data.get('allergens') or [])
    product.tags = list(data.get('tags') or [])
    product.images = list(data.get('images') or [])
    product.stock = data['stock']
    product.sku = data.get('sku') or None
    product.weight = data.get('weight')
    product.featured = bool(data.get('featured', False))
    product.category_id = _resolve_category_id(session, data.get('category_id'))


def create_product(session, data: dict) -> Product:
    """Create a product. Slug comes from the name when omitted. The caller commits."""
    slug = data.get('slug') or slugify(data['name'])
    _unique_slug_or_conflict(session, Product, slug, 'un producto')
    product = Product()
    _apply_product_fields(session, product, dict(data, slug=slug))
    session.add(product)
    session.flush()
    return product


def update_product(session, product: Product, data: dict) -> Product:
    slug = data.get('slug') or product.slug
    if slug != product.slug:
        _unique_slug_or_conflict(session, Product, slug, 'un producto', exclude_id=product.id)
    _apply_product_fields(session, product, dict(data, slug=slug))
    session.flush()
    return product


def delete_product(session, product: Product):
    """Delete a product. Order items keep their name/price snapshots."""
    session.query(OrderItem).filter(OrderItem.product_id == product.id).update(
        {OrderItem.product_id: None}, synchronize_session=False
    )
    session.delete(product)
    session.flush()


def product_form_data(product: Product) -> dict:
    """Current values of a product in form shape, used as base for partial updates."""
    return {
        'slug': product.slug,
        'name': product.name,
        'description': product.description,
        'price_pen': product.price_pen,
        'cost_pen': product.cost_pen,
        'status': product.status.value,
        'weekend_only': product.weekend_only,
        'allergens': list(product.allergens or []),
        'tags': list(product.tags or []),
        'images': list(product.images or []),
        'stock': product.stock,
        'sku': product.sku,
        'weight': product.weight,
        'category_id': product.category_id,
        'featured': product.featured,
    }


# =====================================================
# CATEGORIES
# =====================================================

def list_categories(session, include_inactive: bool = False,
                    count_all_products: bool = False) -> List[Tuple[Category, int]]:
    """
    Categories ordered by ``order`` then ``name``, each with its product count.

    Counts include only PUBLISHED products unless ``count_all_products``.
    """
    join_condition = Product.category_id == Category.id
    if not count_all_products:
        join_condition = join_condition & (Product.status == ProductStatus.PUBLISHED)

    query = session.query(Category, func.count(Product.id)).outerjoin(Product, join_condition)
    if not include_inactive:
        query = query.filter(Category.active == True)  # noqa: E712

    return query.group_by(Category.id).order_by(Category.order.asc(), Category.name.asc()).all()


def get_category_by_slug(session, slug: str) -> Category:
    category = session.query(Category).filter(Category.slug == slug).first()
    if not category:
        raise NotFoundError('Categoría no encontrada')
    return category


def _apply_category_fields(category: Category, data: dict):
    category.name = data['name'].strip()
    category.slug = data['slug']
    category.description = data.get('description') or None
    category.image = data.get('image') or None
    category.order = data.get('order') or 0
    category.active = bool(data.get('active', True))


def create_category(session, data: dict) -> Category:
    slug = data.get('slug') or slugify(data['name'])
    _unique_slug_or_conflict(session, Category, slug, 'una categoría')
    category = Category()
    _apply_category_fields(category, dict(data, slug=slug))
    session.add(category)
    session.flush()
    return category


def update_category(session, category: Category, data: dict) -> Category:
    slug = data.get('slug') or category.slug
    if slug != category.slug:
        _unique_slug_or_conflict(session, Category, slug, 'una categoría', exclude_id=category.id)
    _apply_category_fields(category, dict(data, slug=slug))
    session.flush()
    return category


def delete_category(session, category: Category):
    """Delete a category. Its products stay, uncategorized."""
    session.query(Product).filter(Product.category_id == category.id).update(
        {Product.category_id: None}, synchronize_session=False
    )
    session.delete(category)
    session.flush()


def category_form_data(category: Category) -> dict:
    return {
        'name': category.name,
        'slug': category.slug,
        'description': category.description,
        'image': category.image,
        'order': category.order,
        'active': category.active,
    }
