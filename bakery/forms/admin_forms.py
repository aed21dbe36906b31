"""
Admin forms for catalog, delivery zones, coupons and orders.
"""
from datetime import timezone
from decimal import Decimal
from flask_wtf import FlaskForm
from wtforms import (
    StringField, TextAreaField, IntegerField, DecimalField, DateTimeField,
    SelectField, BooleanField, FieldList
)
from wtforms.validators import DataRequired, InputRequired, NumberRange, Length, Optional, Regexp, URL, AnyOf, ValidationError

from bakery.models import ProductStatus, CouponType, OrderStatus, PaymentStatus

SLUG_PATTERN = r'^[a-z0-9]+(?:-[a-z0-9]+)*$'

DATETIME_FORMATS = [
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S%z',
    '%Y-%m-%dT%H:%M:%S.%f%z',
    '%Y-%m-%dT%H:%M',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d',
]


class UTCDateTimeField(DateTimeField):
    """DateTimeField that shifts offset-aware input to UTC; naive input is taken as UTC."""

    def process_formdata(self, valuelist):
        super().process_formdata(valuelist)
        if self.data is not None and self.data.tzinfo is not None:
            self.data = self.data.astimezone(timezone.utc)


class ProductForm(FlaskForm):
    """Create/update a product."""

    defaults = {'status': ProductStatus.DRAFT.value, 'weekend_only': True}

    slug = StringField(
        'Slug',
        validators=[Optional(), Length(max=100), Regexp(SLUG_PATTERN, message='Slug inválido')]
    )
    name = StringField('Nombre', validators=[DataRequired(message='El nombre es requerido'), Length(max=200)])
    description = TextAreaField('Descripción', validators=[Optional()])
    price_pen = DecimalField(
        'Precio',
        places=2,
        validators=[
            InputRequired(message='El precio es requerido'),
            NumberRange(min=Decimal('0.01'), message='El precio debe ser mayor a 0')
        ]
    )
    cost_pen = DecimalField(
        'Costo',
        places=2,
        validators=[Optional(), NumberRange(min=Decimal('0.01'), message='El costo debe ser mayor a 0')]
    )
    status = SelectField('Estado', choices=[(s.value, s.value) for s in ProductStatus])
    weekend_only = BooleanField('Solo fines de semana')
    allergens = FieldList(StringField('Alérgeno', validators=[DataRequired(), Length(max=50)]))
    tags = FieldList(StringField('Etiqueta', validators=[DataRequired(), Length(max=50)]))
    images = FieldList(StringField('Imagen', validators=[DataRequired(), URL(message='URL de imagen inválida')]))
    stock = IntegerField(
        'Stock',
        validators=[
            InputRequired(message='El stock es requerido'),
            NumberRange(min=0, message='El stock no puede ser negativo')
        ]
    )
    sku = StringField('SKU', validators=[Optional(), Length(max=100)])
    weight = IntegerField('Peso (g)', validators=[Optional(), NumberRange(min=1, message='El peso debe ser mayor a 0')])
    category_id = IntegerField('Categoría', validators=[Optional()])
    featured = BooleanField('Destacado')


class CategoryForm(FlaskForm):
    """Create/update a category."""

    defaults = {'active': True}

    name = StringField('Nombre', validators=[DataRequired(message='El nombre es requerido'), Length(max=100)])
    slug = StringField(
        'Slug',
        validators=[Optional(), Length(max=100), Regexp(SLUG_PATTERN, message='Slug inválido')]
    )
    description = TextAreaField('Descripción', validators=[Optional()])
    image = StringField('Imagen', validators=[Optional(), URL(message='URL de imagen inválida')])
    order = IntegerField('Orden', default=0, validators=[Optional(), NumberRange(min=0)])
    active = BooleanField('Activa')


class DeliveryZoneForm(FlaskForm):
    """Create/update a delivery zone."""

    defaults = {'active': True}

    name = StringField('Nombre', validators=[DataRequired(message='El nombre es requerido'), Length(max=100)])
    description = TextAreaField('Descripción', validators=[Optional()])
    fee_pen = DecimalField(
        'Costo de envío',
        places=2,
        validators=[
            InputRequired(message='El costo de envío es requerido'),
            NumberRange(min=0, message='El costo de envío no puede ser negativo')
        ]
    )
    active = BooleanField('Activa')
    order = IntegerField('Orden', default=0, validators=[Optional(), NumberRange(min=0)])


class CouponForm(FlaskForm):
    """Create/update a coupon."""

    defaults = {'active': True}

    code = StringField('Código', validators=[DataRequired(message='El código es requerido'), Length(max=50)])
    type = SelectField('Tipo', choices=[(t.value, t.value) for t in CouponType],
                       validators=[DataRequired(message='El tipo es requerido')])
    value = DecimalField(
        'Valor',
        places=2,
        validators=[
            InputRequired(message='El valor es requerido'),
            NumberRange(min=Decimal('0.01'), message='El valor debe ser mayor a 0')
        ]
    )
    min_subtotal_pen = DecimalField('Subtotal mínimo', places=2, validators=[Optional(), NumberRange(min=0)])
    max_discount_pen = DecimalField('Descuento máximo', places=2, validators=[Optional(), NumberRange(min=0)])
    starts_at = UTCDateTimeField('Desde', format=DATETIME_FORMATS, validators=[Optional()])
    ends_at = UTCDateTimeField('Hasta', format=DATETIME_FORMATS, validators=[Optional()])
    max_uses = IntegerField('Usos máximos', validators=[Optional(), NumberRange(min=1)])
    active = BooleanField('Activo')

    def validate_value(self, field):
        if self.type.data == CouponType.PERCENTAGE.value and field.data is not None and field.data > 100:
            raise ValidationError('El porcentaje no puede ser mayor a 100')

    def validate_ends_at(self, field):
        if field.data and self.starts_at.data:
            starts_at, ends_at = self.starts_at.data, field.data
            # Both are UTC at this point; naive ones just lack the tzinfo
            if (starts_at.tzinfo is None) != (ends_at.tzinfo is None):
                starts_at, ends_at = starts_at.replace(tzinfo=None), ends_at.replace(tzinfo=None)
            if ends_at < starts_at:
                raise ValidationError('La fecha de fin debe ser posterior a la de inicio')


class OrderStatusForm(FlaskForm):
    """Update order fulfillment and/or payment status."""

    status = StringField(
        'Estado',
        validators=[Optional(), AnyOf([s.value for s in OrderStatus], message='Estado inválido')]
    )
    payment_status = StringField(
        'Estado de pago',
        validators=[Optional(), AnyOf([s.value for s in PaymentStatus], message='Estado de pago inválido')]
    )

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        if not self.status.data and not self.payment_status.data:
            self.status.errors.append('Indica un estado o un estado de pago')
            return False
        return True
