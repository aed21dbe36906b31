"""Small helpers shared by services and blueprints."""
import re
import secrets
import time
import unicodedata
from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal('0.01')

_BASE36_ALPHABET = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'


def to_money(value) -> Decimal:
    """Convert to Decimal rounded to cents (half up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_base36(number: int) -> str:
    """Encode a non-negative integer in upper-case base 36."""
    if number < 0:
        raise ValueError('number must be non-negative')
    if number == 0:
        return '0'
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36_ALPHABET[rem])
    return ''.join(reversed(digits))


def generate_order_number() -> str:
    """
    Generate a human-readable order number: ORD-<timestamp>-<suffix>.

    The timestamp is milliseconds since the epoch in base 36 and the suffix
    is three random base-36 characters. Unique with high probability only.
    """
    timestamp = to_base36(int(time.time() * 1000))
    suffix = ''.join(secrets.choice(_BASE36_ALPHABET) for _ in range(3))
    return f"ORD-{timestamp}-{suffix}"


def slugify(text: str) -> str:
    """Generate URL-safe slug: 'Pan de Masa Madre' -> 'pan-de-masa-madre'."""
    slug = unicodedata.normalize('NFKD', text or '')
    slug = slug.encode('ascii', 'ignore').decode('ascii')
    slug = re.sub(r'[^a-z0-9]+', '-', slug.lower())
    return slug.strip('-')[:100]
