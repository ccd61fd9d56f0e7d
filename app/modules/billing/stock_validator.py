from typing import List

from app.modules.billing.catalog import CatalogSnapshot
from app.modules.billing.exceptions import AggregateValidationError
from app.modules.billing.schemas import InvoiceDraft, StockViolation


def find_stock_violations(draft: InvoiceDraft, catalog: CatalogSnapshot) -> List[StockViolation]:
    """Líneas positivas que piden más de lo disponible. Las devoluciones (<= 0) siempre caben."""
    violations = []
    for line in draft.lines:
        if line.quantity <= 0:
            continue
        available = catalog.available_qty(line.item_id)
        if line.quantity > available:
            violations.append(StockViolation(
                item_id=line.item_id,
                requested=line.quantity,
                available=available
            ))
    return violations


def validate_stock(draft: InvoiceDraft, catalog: CatalogSnapshot) -> None:
    """Todo o nada: cualquier línea fuera de stock bloquea la confirmación completa."""
    violations = find_stock_violations(draft, catalog)
    if violations:
        raise AggregateValidationError(violations)
