"""
Mutaciones sobre un borrador de factura: agregar, cambiar cantidad y quitar líneas.
"""
import logging
from typing import Optional, Union

from app.core.config import settings
from app.modules.products.schemas import CatalogItem
from app.modules.billing.catalog import CatalogSnapshot
from app.modules.billing.exceptions import DuplicateLineError, InvalidQuantityError, StockExceededWarning
from app.modules.billing.numbering import generate_invoice_number
from app.modules.billing.schemas import DraftLine, InvoiceDraft

logger = logging.getLogger(__name__)


def new_draft() -> InvoiceDraft:
    """Borrador vacío con un número de factura nuevo"""
    return InvoiceDraft(invoice_number=generate_invoice_number())


def add_line(draft: InvoiceDraft, item: CatalogItem, qty: int = 1) -> DraftLine:
    """
    Agregar un ítem del catálogo al borrador.

    Un ítem que ya está en el borrador no se vuelve a agregar (la cantidad se
    cambia con update_quantity). El precio y el stock del momento se copian
    en la línea.
    """
    if draft.find_line(item.id) is not None:
        raise DuplicateLineError(item.id)
    if qty == 0 or qty < settings.MIN_LINE_QUANTITY:
        raise InvalidQuantityError(item.id, qty, "fuera del rango permitido")

    line = DraftLine(
        item_id=item.id,
        code=item.code,
        name=item.name,
        unit_price=item.unit_price,
        quantity=qty,
        original_qty=item.available_qty
    )
    draft.lines.append(line)
    logger.debug(f"Line added to {draft.invoice_number}: {item.id} x {qty}")
    return line


def parse_quantity(item_id: str, value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise InvalidQuantityError(item_id, value, "no es un entero")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidQuantityError(item_id, value, "no es un entero")


def update_quantity(
    draft: InvoiceDraft,
    catalog: CatalogSnapshot,
    item_id: str,
    new_qty: Union[int, str],
    floor: Optional[int] = None
) -> Optional[DraftLine]:
    """
    Cambiar la cantidad de una línea.

    - Mayor que el stock actual del catálogo: se rechaza con StockExceededWarning
      y el borrador no cambia.
    - Negativa: permitida hasta el piso configurado (devolución dentro de la factura).
    - Cero: equivale a remove_line.

    Devuelve la línea actualizada, o None si la línea se quitó o no existía.
    """
    if floor is None:
        floor = settings.MIN_LINE_QUANTITY

    quantity = parse_quantity(item_id, new_qty)
    line = draft.find_line(item_id)
    if line is None:
        logger.debug(f"Quantity update ignored, {item_id} not in {draft.invoice_number}")
        return None

    if quantity == 0:
        remove_line(draft, item_id)
        return None

    if quantity < floor:
        raise InvalidQuantityError(item_id, quantity, f"mínimo permitido {floor}")

    if quantity > 0:
        available = catalog.available_qty(item_id)
        if quantity > available:
            raise StockExceededWarning(item_id, quantity, available)

    line.quantity = quantity
    return line


def remove_line(draft: InvoiceDraft, item_id: str) -> bool:
    """Quitar la línea del ítem. No hace nada si no está."""
    before = len(draft.lines)
    draft.lines = [line for line in draft.lines if line.item_id != item_id]
    return len(draft.lines) != before
