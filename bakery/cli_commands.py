"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask create-admin: Create (or promote) an admin user
- flask seed: Load demo categories, zones, products, coupons and admin
"""

import click
import re
from decimal import Decimal
from bakery.database import create_schema, get_session
from bakery.models import (
    User, UserRole, Category, Product, ProductStatus, DeliveryZone, Coupon, CouponType
)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

SEED_CATEGORIES = [
    {'name': 'Panes', 'slug': 'panes', 'description': 'Panes artesanales recién horneados', 'order': 1},
    {'name': 'Pasteles', 'slug': 'pasteles', 'description': 'Deliciosos pasteles caseros', 'order': 2},
    {'name': 'Galletas', 'slug': 'galletas', 'description': 'Galletas crujientes y suaves', 'order': 3},
    {'name': 'Croissants', 'slug': 'croissants', 'description': 'Croissants hojaldrados y mantequillosos', 'order': 4},
]

SEED_ZONES = [
    {'name': 'Miraflores', 'description': 'Distrito de Miraflores', 'fee_pen': Decimal('10.00'), 'order': 1},
    {'name': 'San Isidro', 'description': 'Distrito de San Isidro', 'fee_pen': Decimal('10.00'), 'order': 2},
    {'name': 'Barranco', 'description': 'Distrito de Barranco', 'fee_pen': Decimal('12.00'), 'order': 3},
    {'name': 'Surco', 'description': 'Distrito de Santiago de Surco', 'fee_pen': Decimal('15.00'), 'order': 4},
]

SEED_PRODUCTS = [
    {
        'slug': 'pan-de-masa-madre', 'name': 'Pan de Masa Madre', 'category': 'panes',
        'description': 'Pan artesanal hecho con masa madre natural, fermentado lentamente durante 24 horas '
                       'para un sabor profundo y corteza crujiente.',
        'price_pen': Decimal('18.00'), 'cost_pen': Decimal('8.00'),
        'allergens': ['gluten'], 'tags': ['artesanal', 'masa madre', 'sin conservantes'],
        'images': ['https://images.unsplash.com/photo-1549931319-a545dcf3bc73?w=800'],
        'stock': 20, 'sku': 'PAN-MM-001', 'weight': 500, 'featured': True,
    },
    {
        'slug': 'croissant-mantequilla', 'name': 'Croissant de Mantequilla', 'category': 'croissants',
        'description': 'Croissant francés tradicional con capas hojaldradas y mantequillosas. '
                       'Horneado fresco cada mañana.',
        'price_pen': Decimal('8.00'), 'cost_pen': Decimal('3.50'),
        'allergens': ['gluten', 'lácteos'], 'tags': ['francés', 'mantequilla', 'hojaldrado'],
        'images': ['https://images.unsplash.com/photo-1555507036-ab1f4038808a?w=800'],
        'stock': 30, 'sku': 'CRO-MAN-001', 'weight': 80, 'featured': True,
    },
    {
        'slug': 'pastel-chocolate', 'name': 'Pastel de Chocolate', 'category': 'pasteles',
        'description': 'Pastel de chocolate húmedo y esponjoso con ganache de chocolate oscuro. '
                       'Perfecto para celebraciones.',
        'price_pen': Decimal('45.00'), 'cost_pen': Decimal('20.00'),
        'allergens': ['gluten', 'lácteos', 'huevo'], 'tags': ['chocolate', 'celebración', 'premium'],
        'images': ['https://images.unsplash.com/photo-1578985545062-69928b1d9587?w=800'],
        'stock': 10, 'sku': 'PAS-CHO-001', 'weight': 1000, 'featured': True,
    },
    {
        'slug': 'galletas-chispas-chocolate', 'name': 'Galletas con Chispas de Chocolate', 'category': 'galletas',
        'description': 'Galletas clásicas americanas con generosas chispas de chocolate. '
                       'Suaves por dentro, crujientes por fuera.',
        'price_pen': Decimal('12.00'), 'cost_pen': Decimal('5.00'),
        'allergens': ['gluten', 'lácteos', 'huevo'], 'tags': ['chocolate', 'galletas', 'clásico'],
        'images': ['https://images.unsplash.com/photo-1499636136210-6f4ee915583e?w=800'],
        'stock': 25, 'sku': 'GAL-CHO-001', 'weight': 200, 'featured': False,
    },
    {
        'slug': 'pan-integral', 'name': 'Pan Integral', 'category': 'panes',
        'description': 'Pan 100% integral con semillas de girasol, linaza y sésamo. Rico en fibra y nutrientes.',
        'price_pen': Decimal('15.00'), 'cost_pen': Decimal('7.00'),
        'allergens': ['gluten', 'semillas'], 'tags': ['integral', 'saludable', 'semillas'],
        'images': ['https://images.unsplash.com/photo-1509440159596-0249088772ff?w=800'],
        'stock': 15, 'sku': 'PAN-INT-001', 'weight': 450, 'featured': False,
    },
    {
        'slug': 'croissant-almendras', 'name': 'Croissant de Almendras', 'category': 'croissants',
        'description': 'Croissant relleno con crema de almendras y cubierto con almendras laminadas. '
                       'Un clásico francés.',
        'price_pen': Decimal('12.00'), 'cost_pen': Decimal('5.50'),
        'allergens': ['gluten', 'lácteos', 'frutos secos'], 'tags': ['almendras', 'francés', 'premium'],
        'images': ['https://images.unsplash.com/photo-1623334044303-241021148842?w=800'],
        'stock': 20, 'sku': 'CRO-ALM-001', 'weight': 120, 'featured': False,
    },
]

SEED_COUPONS = [
    {
        'code': 'WELCOME10', 'type': CouponType.PERCENTAGE, 'value': Decimal('10.00'),
        'min_subtotal_pen': Decimal('30.00'), 'max_discount_pen': Decimal('15.00'), 'max_uses': 100,
    },
    {
        'code': 'PRIMERACOMPRA', 'type': CouponType.FIXED, 'value': Decimal('10.00'),
        'min_subtotal_pen': Decimal('50.00'), 'max_discount_pen': None, 'max_uses': 50,
    },
]


def seed_database(session, admin_email='admin@baykery.pe', admin_password='admin123') -> dict:
    """
    Insert demo data. Rows that already exist (by slug, name or code) are left alone.

    Returns:
        dict with how many rows of each kind were created.
    """
    created = {'admin': 0, 'categories': 0, 'zones': 0, 'products': 0, 'coupons': 0}

    if not session.query(User).filter_by(email=admin_email).first():
        admin = User(email=admin_email, name='Admin Baykery', role=UserRole.ADMIN.value)
        admin.set_password(admin_password)
        session.add(admin)
        created['admin'] = 1

    categories = {}
    for data in SEED_CATEGORIES:
        category = session.query(Category).filter_by(slug=data['slug']).first()
        if not category:
            category = Category(active=True, **data)
            session.add(category)
            created['categories'] += 1
        categories[data['slug']] = category

    for data in SEED_ZONES:
        if not session.query(DeliveryZone).filter_by(name=data['name']).first():
            session.add(DeliveryZone(active=True, **data))
            created['zones'] += 1

    session.flush()

    for data in SEED_PRODUCTS:
        if session.query(Product).filter_by(slug=data['slug']).first():
            continue
        fields = dict(data)
        category = categories[fields.pop('category')]
        session.add(Product(
            status=ProductStatus.PUBLISHED,
            weekend_only=True,
            category_id=category.id,
            **fields
        ))
        created['products'] += 1

    for data in SEED_COUPONS:
        if not session.query(Coupon).filter_by(code=data['code']).first():
            session.add(Coupon(active=True, uses=0, **data))
            created['coupons'] += 1

    session.commit()
    return created


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables."""
        create_schema()
        click.echo(click.style('✅ Tablas creadas', fg='green'))

    @app.cli.command('create-admin')
    @click.option('--email', prompt=True, help='Admin email address')
    @click.option('--name', default=None, help='Display name')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
    def create_admin(email, name, password):
        """Create a new admin user, or promote an existing one."""
        email = email.strip().lower()

        if not re.match(EMAIL_PATTERN, email):
            click.echo(click.style('❌ Email inválido. Use formato: user@example.com', fg='red'))
            raise SystemExit(1)

        if len(password) < 8:
            click.echo(click.style('❌ La contraseña debe tener al menos 8 caracteres.', fg='red'))
            raise SystemExit(1)

        db_session = get_session()
        try:
            user = db_session.query(User).filter_by(email=email).first()
            if user:
                user.role = UserRole.ADMIN.value
                user.active = True
                action = 'promovido'
            else:
                user = User(email=email, name=name, role=UserRole.ADMIN.value)
                db_session.add(user)
                action = 'creado'
            user.set_password(password)
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Error al crear administrador: {e}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'\n✅ Administrador {action} exitosamente!', fg='green', bold=True))
        click.echo(f'   Email: {email}')
        click.echo(f'   ID: {user.id}')

    @app.cli.command('seed')
    @click.option('--admin-email', default='admin@baykery.pe', show_default=True)
    @click.option('--admin-password', envvar='SEED_ADMIN_PASSWORD', default='admin123', show_default=True)
    def seed(admin_email, admin_password):
        """Load demo catalog, zones, coupons and admin user."""
        create_schema()
        db_session = get_session()
        try:
            created = seed_database(db_session, admin_email=admin_email, admin_password=admin_password)
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Seed falló: {e}', fg='red'))
            raise SystemExit(1)

        for kind, count in created.items():
            click.echo(f'   {kind}: {count}')
        click.echo(click.style('🎉 Seed completado', fg='green', bold=True))
