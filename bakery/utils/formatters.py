"""
Utilidades de formateo para mensajes y templates.
Montos en soles (PEN) y fechas en español, estilo peruano.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union


MONTHS_ES = (
    'enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio',
    'julio', 'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre',
)

WEEKDAYS_ES = ('lunes', 'martes', 'miércoles', 'jueves', 'viernes', 'sábado', 'domingo')


def money_pen(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Formatea un monto en soles con exactamente 2 decimales.

    Separador de miles: coma (,). Separador decimal: punto (.).

    Examples:
        money_pen(18) -> "S/ 18.00"
        money_pen(Decimal('1234.5')) -> "S/ 1,234.50"
        money_pen(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    return f"{sign}S/ {abs(num):,.2f}"


def date_es(value: Union[date, datetime, None], with_weekday: bool = False) -> str:
    """
    Formatea una fecha en forma larga: "24 de octubre de 2026".

    Examples:
        date_es(date(2026, 10, 24)) -> "24 de octubre de 2026"
        date_es(date(2026, 10, 24), with_weekday=True) -> "sábado 24 de octubre de 2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    text = f"{value.day} de {MONTHS_ES[value.month - 1]} de {value.year}"
    if with_weekday:
        text = f"{WEEKDAYS_ES[value.weekday()]} {text}"
    return text
