from decimal import Decimal
from typing import Optional, Union

from app.modules.billing.numbering import generate_return_number
from app.modules.billing.pricing import discount_factor
from app.modules.billing.schemas import DraftLine
from app.modules.returns.schemas import ReturnRecord, ReturnReason


def build_return(
    item_id: str,
    quantity: int,
    unit_price: Decimal,
    discount_percentage: Union[Decimal, int, str],
    reason: ReturnReason,
    linked_invoice_number: Optional[str] = None
) -> ReturnRecord:
    """Valoriza la devolución con el descuento de la factura aplicado."""
    unit_value = unit_price * discount_factor(discount_percentage)
    return ReturnRecord(
        return_number=generate_return_number(),
        item_id=item_id,
        quantity=quantity,
        unit_value_after_discount=unit_value,
        total_value=unit_value * quantity,
        reason=reason,
        linked_invoice_number=linked_invoice_number
    )


def return_from_line(line: DraftLine, discount_percentage, invoice_number: str) -> ReturnRecord:
    """Devolución para una línea negativa de una factura confirmada."""
    if not line.is_return:
        raise ValueError(f"La línea {line.item_id} no es una devolución (cantidad {line.quantity})")
    return build_return(
        item_id=line.item_id,
        quantity=abs(line.quantity),
        unit_price=line.unit_price,
        discount_percentage=discount_percentage,
        reason=ReturnReason.NEGATIVE_QUANTITY_ADJUSTMENT,
        linked_invoice_number=invoice_number
    )


def manual_return(item_id: str, quantity: int, unit_price: Decimal, discount_percentage) -> ReturnRecord:
    """Reducción manual de cantidad sobre una línea ya facturada; no queda ligada a la factura."""
    if quantity <= 0:
        raise ValueError("La cantidad a devolver debe ser mayor a 0")
    return build_return(
        item_id=item_id,
        quantity=quantity,
        unit_price=unit_price,
        discount_percentage=discount_percentage,
        reason=ReturnReason.MANUAL_ADJUSTMENT
    )
