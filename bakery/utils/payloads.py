"""
Request payload helpers.

JSON bodies use camelCase keys (``deliveryDate``, ``tipPEN``) while forms and
services use snake_case. Nested lists are flattened into the
``items-0-product_id`` key layout that WTForms ``FieldList`` expects.
"""
import re
from decimal import Decimal
from werkzeug.datastructures import MultiDict

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')


def camel_to_snake(key: str) -> str:
    """'deliveryDate' -> 'delivery_date', 'tipPEN' -> 'tip_pen'."""
    return _CAMEL_BOUNDARY.sub('_', key).lower()


def normalize_keys(value):
    """Recursively convert dict keys to snake_case."""
    if isinstance(value, dict):
        return {camel_to_snake(k): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_keys(v) for v in value]
    return value


def _scalar(value) -> str:
    if isinstance(value, bool):
        return 'y' if value else ''
    if isinstance(value, Decimal):
        return format(value, 'f')
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if hasattr(value, 'value'):  # enum members
        return str(value.value)
    return str(value)


def to_formdata(payload: dict) -> MultiDict:
    """
    Flatten a JSON-like dict into a MultiDict for WTForms.

    None and False are omitted so that Optional/BooleanField behave as if
    the field was not submitted.
    """
    pairs = []

    def _walk(prefix, value):
        if value is None or value is False:
            return
        if isinstance(value, dict):
            for key, sub in value.items():
                _walk(f"{prefix}-{key}" if prefix else key, sub)
        elif isinstance(value, (list, tuple)):
            for index, sub in enumerate(value):
                _walk(f"{prefix}-{index}", sub)
        else:
            pairs.append((prefix, _scalar(value)))

    _walk('', payload or {})
    return MultiDict(pairs)


def request_payload(request) -> dict:
    """Read JSON or form body with snake_case keys."""
    if request.is_json:
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            return {}
        return normalize_keys(payload)
    return normalize_keys(request.form.to_dict())
