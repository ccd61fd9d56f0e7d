from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List, Union
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from app.modules.invoices.schemas import CommittedInvoice
from app.modules.returns.schemas import ReturnRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DraftState(str, Enum):
    """
    Estados persistentes del borrador.

    COMMITTING y VALIDATION_FAILED son transitorios y no se guardan: duran lo
    que dura CommitOrchestrator.commit. Un fallo de validación o de
    persistencia deja el borrador en ACTIVE sin cambios; solo una factura
    creada lo pasa a COMMITTED.
    """
    ACTIVE = "ACTIVE"
    PARKED = "PARKED"
    COMMITTED = "COMMITTED"      # Terminal
    DISCARDED = "DISCARDED"      # Terminal


class DraftLine(BaseModel):
    item_id: str
    code: Optional[str] = None
    name: Optional[str] = None
    unit_price: Decimal  # Copiado al agregar la línea
    quantity: int  # Con signo: negativa = devolución dentro de la factura
    original_qty: int  # Stock del catálogo al agregar, solo auditoría

    @property
    def is_return(self) -> bool:
        """Única convención de signo: cantidad negativa = devolución"""
        return self.quantity < 0

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class InvoiceDraft(BaseModel):
    draft_id: str = Field(default_factory=lambda: uuid4().hex)
    invoice_number: str
    lines: List[DraftLine] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    state: DraftState = DraftState.ACTIVE

    def find_line(self, item_id: str) -> Optional[DraftLine]:
        for line in self.lines:
            if line.item_id == item_id:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return len(self.lines) == 0


class PendingEntry(BaseModel):
    draft_id: str
    draft: InvoiceDraft
    label: str
    parked_at: datetime = Field(default_factory=utcnow)


class Totals(BaseModel):
    subtotal: Decimal
    discount_percentage: Decimal
    discount: Decimal
    total: Decimal

    class Config:
        frozen = True


class StockViolation(BaseModel):
    item_id: str
    requested: int
    available: int

    class Config:
        frozen = True


class SideEffectKind(str, Enum):
    RETURN = "return"
    STOCK_UPDATE = "stock_update"
    ACTIVITY_LOG = "activity_log"
    INVOICE_HOOK = "invoice_hook"


class SideEffectOutcome(BaseModel):
    """Una tarea del outbox posterior a la confirmación y su resultado"""
    kind: SideEffectKind
    target: str  # item_id o número de factura
    succeeded: bool
    detail: Optional[str] = None  # Número de devolución, nueva cantidad, ...
    error: Optional[str] = None


class CommitResult(BaseModel):
    invoice: CommittedInvoice
    returns: List[ReturnRecord] = Field(default_factory=list)
    side_effects: List[SideEffectOutcome] = Field(default_factory=list)
    next_draft: InvoiceDraft

    @property
    def failed_side_effects(self) -> List[SideEffectOutcome]:
        return [outcome for outcome in self.side_effects if not outcome.succeeded]

    @property
    def fully_applied(self) -> bool:
        return not self.failed_side_effects


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    type: NotificationType
    message: str
    created_at: datetime = Field(default_factory=utcnow)


# ===== API schemas =====

class AddLineRequest(BaseModel):
    item_id: str = Field(..., min_length=1)
    quantity: int = Field(1, description="Cantidad inicial, con signo")


class UpdateQuantityRequest(BaseModel):
    quantity: Union[int, str] = Field(..., description="Se interpreta como entero")


class ParkRequest(BaseModel):
    label: Optional[str] = Field(None, max_length=100)


class ManualReturnRequest(BaseModel):
    item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="Unidades que se reducen de la línea")
    unit_price: Decimal = Field(..., ge=0)


class DraftOut(BaseModel):
    draft: InvoiceDraft
    totals: Totals


class PendingEntryOut(BaseModel):
    draft_id: str
    invoice_number: str
    label: str
    parked_at: datetime
    line_count: int


class EngineStateOut(BaseModel):
    active: DraftOut
    queue: List[PendingEntryOut]
    notifications: List[Notification] = Field(default_factory=list)


class CommitOut(BaseModel):
    invoice: CommittedInvoice
    returns: List[ReturnRecord]
    side_effects: List[SideEffectOutcome]
    next_draft: InvoiceDraft
    notifications: List[Notification] = Field(default_factory=list)


class ManualReturnOut(BaseModel):
    record: ReturnRecord
    side_effects: List[SideEffectOutcome]
    notifications: List[Notification] = Field(default_factory=list)
