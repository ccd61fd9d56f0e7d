"""
Cola de facturas pendientes.

EngineState guarda el único borrador ACTIVE y los borradores PARKED, indexados
por draft_id en orden de llegada. Solo se modifica con park / resume / discard
y con la confirmación (replace_active).
"""
import logging
from collections import OrderedDict
from typing import List, Optional

from app.modules.billing.draft_builder import new_draft
from app.modules.billing.exceptions import DraftNotFoundError, EmptyDraftWarning
from app.modules.billing.schemas import DraftState, InvoiceDraft, Notification, PendingEntry

logger = logging.getLogger(__name__)


class EngineState:
    def __init__(self, active_draft: Optional[InvoiceDraft] = None):
        self.active_draft: InvoiceDraft = active_draft or new_draft()
        self.queue: "OrderedDict[str, PendingEntry]" = OrderedDict()
        self.notifications: List[Notification] = []

    def pending(self) -> List[PendingEntry]:
        return list(self.queue.values())


class PendingQueueManager:
    def __init__(self, state: EngineState):
        self.state = state

    def default_label(self) -> str:
        return f"Customer {len(self.state.queue) + 1}"

    def park(self, label: Optional[str] = None) -> PendingEntry:
        """
        Mueve el borrador activo a la cola y abre uno vacío con número nuevo.

        Un borrador sin líneas no se guarda (EmptyDraftWarning).
        """
        draft = self.state.active_draft
        if draft.is_empty:
            raise EmptyDraftWarning()

        entry = PendingEntry(
            draft_id=draft.draft_id,
            draft=draft,
            label=label.strip() if label and label.strip() else self.default_label()
        )
        draft.state = DraftState.PARKED
        self.state.queue[draft.draft_id] = entry
        self.state.active_draft = new_draft()

        logger.info(f"Draft {draft.invoice_number} parked as '{entry.label}' (queue: {len(self.state.queue)})")
        return entry

    def resume(self, draft_id: str, label: Optional[str] = None) -> InvoiceDraft:
        """
        Retoma un borrador de la cola.

        Si el borrador activo tiene líneas se estaciona primero, así que la cola
        conserva su tamaño (intercambio). Un activo vacío simplemente se descarta.
        """
        if draft_id not in self.state.queue:
            raise DraftNotFoundError(draft_id)

        if not self.state.active_draft.is_empty:
            self.park(label)
        else:
            self.state.active_draft.state = DraftState.DISCARDED

        entry = self.state.queue.pop(draft_id)
        entry.draft.state = DraftState.ACTIVE
        self.state.active_draft = entry.draft

        logger.info(f"Draft {entry.draft.invoice_number} resumed ('{entry.label}')")
        return entry.draft

    def discard(self, draft_id: str) -> PendingEntry:
        """Elimina un borrador de la cola; el activo no se toca."""
        entry = self.state.queue.pop(draft_id, None)
        if entry is None:
            raise DraftNotFoundError(draft_id)
        entry.draft.state = DraftState.DISCARDED
        logger.info(f"Draft {entry.draft.invoice_number} discarded ('{entry.label}')")
        return entry

    def replace_active(self, draft: InvoiceDraft) -> None:
        """Instala el borrador nuevo tras una confirmación."""
        draft.state = DraftState.ACTIVE
        self.state.active_draft = draft
