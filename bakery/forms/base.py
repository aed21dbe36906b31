"""
Binding of JSON/form payloads to WTForms classes.

Forms are used for input-shape validation only: a failed bind raises
ValidationError carrying the field-level errors.
"""
from bakery.exceptions import ValidationError
from bakery.utils.payloads import to_formdata


def bind_form(form_cls, payload: dict, base: dict = None):
    """
    Build and validate ``form_cls`` from ``payload``.

    Args:
        form_cls: FlaskForm subclass. Its optional ``defaults`` dict is applied first.
        payload: snake_case request data.
        base: current values of the record being edited (partial updates).

    Returns:
        The validated form.

    Raises:
        ValidationError: with ``form.errors`` as field-level detail.
    """
    data = dict(getattr(form_cls, 'defaults', None) or {})
    data.update(base or {})
    data.update(payload or {})

    form = form_cls(formdata=to_formdata(data), meta={'csrf': False})
    if not form.validate():
        raise ValidationError(form.errors)
    return form
