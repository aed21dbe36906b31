"""
Checkout form: shape validation of the checkout payload.
Business rules (weekend, capacity, stock) live in the checkout service.
"""
from decimal import Decimal
from flask_wtf import FlaskForm
from wtforms import Form, StringField, TextAreaField, IntegerField, DecimalField, DateField, SelectField, FieldList, FormField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Length, Optional, Regexp, ValidationError

from bakery.models import DeliveryWindow

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

# Dates may come as plain dates or as the ISO timestamps browsers produce
DELIVERY_DATE_FORMATS = [
    '%Y-%m-%d',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%S.%fZ',
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y-%m-%dT%H:%M:%S%z',
    '%Y-%m-%dT%H:%M:%S.%f%z',
]


class OrderItemForm(Form):
    """One cart line."""

    product_id = IntegerField(
        'Producto',
        validators=[InputRequired(message='El producto es requerido')]
    )
    quantity = IntegerField(
        'Cantidad',
        validators=[
            InputRequired(message='La cantidad es requerida'),
            NumberRange(min=1, message='La cantidad debe ser mayor a 0')
        ]
    )


class CheckoutForm(FlaskForm):
    """Checkout payload."""

    email = StringField(
        'Email',
        validators=[
            DataRequired(message='El email es requerido'),
            Regexp(EMAIL_PATTERN, message='Email inválido'),
            Length(max=255)
        ]
    )
    name = StringField('Nombre', validators=[DataRequired(message='El nombre es requerido'), Length(max=200)])
    phone = StringField(
        'Teléfono',
        validators=[
            DataRequired(message='El teléfono es requerido'),
            Length(min=9, max=30, message='El teléfono debe tener al menos 9 dígitos')
        ]
    )
    address = StringField('Dirección', validators=[DataRequired(message='La dirección es requerida'), Length(max=500)])
    district = StringField('Distrito', validators=[DataRequired(message='El distrito es requerido'), Length(max=100)])
    notes = TextAreaField('Notas', validators=[Optional(), Length(max=1000)])

    delivery_date = DateField(
        'Fecha de entrega',
        format=DELIVERY_DATE_FORMATS,
        validators=[DataRequired(message='La fecha de entrega es requerida')]
    )
    delivery_window = SelectField(
        'Horario',
        choices=[(w.value, w.value) for w in DeliveryWindow],
        validators=[DataRequired(message='El horario de entrega es requerido')]
    )
    zone_id = IntegerField('Zona', validators=[InputRequired(message='La zona de entrega es requerida')])

    items = FieldList(FormField(OrderItemForm))

    coupon_code = StringField('Cupón', validators=[Optional(), Length(max=50)])
    tip_pen = DecimalField(
        'Propina',
        places=2,
        default=Decimal('0'),
        validators=[Optional(), NumberRange(min=0, message='La propina no puede ser negativa')]
    )

    def validate_items(self, field):
        if not field.entries:
            raise ValidationError('El carrito está vacío')

    def to_checkout(self) -> dict:
        """Return the cleaned data in the shape the checkout service takes."""
        return {
            'email': self.email.data.strip(),
            'name': self.name.data.strip(),
            'phone': self.phone.data.strip(),
            'address': self.address.data.strip(),
            'district': self.district.data.strip(),
            'notes': (self.notes.data or '').strip() or None,
            'delivery_date': self.delivery_date.data,
            'delivery_window': self.delivery_window.data,
            'zone_id': self.zone_id.data,
            'items': [
                {'product_id': entry.product_id.data, 'quantity': entry.quantity.data}
                for entry in self.items.entries
            ],
            'coupon_code': (self.coupon_code.data or '').strip() or None,
            'tip_pen': self.tip_pen.data if self.tip_pen.data is not None else Decimal('0'),
        }
