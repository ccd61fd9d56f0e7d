"""
Cálculo de totales del borrador.

Las líneas con cantidad negativa restan del subtotal (devolución dentro de la
factura). Se recalcula en cada lectura y no redondea: el redondeo a dos
decimales ocurre al persistir.
"""
from decimal import Decimal
from typing import Iterable, Union

from app.modules.billing.schemas import DraftLine, Totals

HUNDRED = Decimal('100')


def calculate_totals(lines: Iterable[DraftLine], discount_percentage: Union[Decimal, int, str]) -> Totals:
    discount_percentage = Decimal(str(discount_percentage))
    subtotal = sum((line.unit_price * line.quantity for line in lines), Decimal('0'))
    discount = subtotal * discount_percentage / HUNDRED
    return Totals(
        subtotal=subtotal,
        discount_percentage=discount_percentage,
        discount=discount,
        total=subtotal - discount
    )


def discount_factor(discount_percentage: Union[Decimal, int, str]) -> Decimal:
    """1 - pct/100, para valorar devoluciones después del descuento"""
    return Decimal('1') - Decimal(str(discount_percentage)) / HUNDRED
