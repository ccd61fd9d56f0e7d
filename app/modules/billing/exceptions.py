"""
Excepciones del motor de facturación

Taxonomía:
- ValidationError: el borrador no puede confirmarse (vacío, stock insuficiente, cantidad inválida)
- DuplicateLineError: el ítem ya está en el borrador
- StockExceededWarning / EmptyDraftWarning: avisos informativos, la acción se ignora
- PersistenceError: falló la creación de la factura, la confirmación se aborta
- SideEffectError: falló una devolución o un ajuste de stock después de confirmar
- DraftNotFoundError: el borrador no está en la cola de pendientes
- CatalogItemNotFoundError: el ítem no está en el snapshot del catálogo
"""
from typing import List, Optional


class BillingError(Exception):
    """Error base del motor de facturación"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BillingError):
    pass


class EmptyDraftError(ValidationError):
    def __init__(self, invoice_number: str):
        super().__init__(f"La factura {invoice_number} no tiene ítems")
        self.invoice_number = invoice_number


class InvalidQuantityError(ValidationError):
    def __init__(self, item_id: str, value, reason: str):
        super().__init__(f"Cantidad inválida para {item_id}: {value!r} ({reason})")
        self.item_id = item_id
        self.value = value


class AggregateValidationError(ValidationError):
    """Todas las líneas que superan el stock disponible, reportadas juntas"""

    def __init__(self, violations: List["StockViolation"]):
        details = ", ".join(
            f"{v.item_id} (solicitado: {v.requested}, disponible: {v.available})"
            for v in violations
        )
        super().__init__(f"Stock insuficiente: {details}")
        self.violations = violations


class DuplicateLineError(BillingError):
    def __init__(self, item_id: str):
        super().__init__(f"El ítem {item_id} ya está en la factura; modifique la cantidad")
        self.item_id = item_id


class StockExceededWarning(BillingError, UserWarning):
    def __init__(self, item_id: str, requested: int, available: int):
        super().__init__(
            f"Stock insuficiente para {item_id}. Disponible: {available}, Solicitado: {requested}"
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available


class EmptyDraftWarning(BillingError, UserWarning):
    def __init__(self):
        super().__init__("No hay ítems para guardar en la cola")


class PersistenceError(BillingError):
    def __init__(self, invoice_number: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"No se pudo guardar la factura {invoice_number}{detail}")
        self.invoice_number = invoice_number
        self.cause = cause


class SideEffectError(BillingError):
    def __init__(self, kind: str, target: str, cause: BaseException):
        super().__init__(f"Falló {kind} para {target}: {cause}")
        self.kind = kind
        self.target = target
        self.cause = cause


class DraftNotFoundError(BillingError, KeyError):
    def __init__(self, draft_id: str):
        super().__init__(f"No existe un borrador pendiente con id {draft_id}")
        self.draft_id = draft_id

    def __str__(self):
        return self.message


class CatalogItemNotFoundError(BillingError, KeyError):
    def __init__(self, item_id: str):
        super().__init__(f"El ítem {item_id} no existe en el catálogo")
        self.item_id = item_id

    def __str__(self):
        return self.message
