"""
Fachada del motor de facturación para una sesión de caja.

Reúne el borrador activo, la cola de pendientes y las notificaciones de la
sesión. Los avisos (stock insuficiente, cola vacía) y los fallos de efectos
secundarios se convierten en notificaciones; los errores de validación y de
persistencia se notifican y además se propagan a quien llama.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from app.modules.billing import draft_builder
from app.modules.billing.catalog import CatalogSnapshot
from app.modules.billing.commit import CommitOrchestrator, InvoiceHook, run_side_effect
from app.modules.billing.exceptions import (
    CatalogItemNotFoundError, EmptyDraftWarning, PersistenceError,
    StockExceededWarning, ValidationError
)
from app.modules.billing.gateway import BillingGateway
from app.modules.billing.pricing import calculate_totals
from app.modules.billing.queue import EngineState, PendingQueueManager
from app.modules.billing.return_emitter import manual_return
from app.modules.billing.schemas import (
    CommitResult, DraftLine, InvoiceDraft, Notification, NotificationType,
    PendingEntry, SideEffectKind, SideEffectOutcome, Totals
)
from app.modules.returns.schemas import ReturnRecord

logger = logging.getLogger(__name__)


class BillingEngine:
    def __init__(
        self,
        state: EngineState,
        gateway: BillingGateway,
        on_invoice_generated: Optional[InvoiceHook] = None
    ):
        self.state = state
        self.gateway = gateway
        self.queue = PendingQueueManager(state)
        self.orchestrator = CommitOrchestrator(gateway, on_invoice_generated)

    # ===== Estado =====

    @property
    def active_draft(self) -> InvoiceDraft:
        return self.state.active_draft

    def pending(self) -> List[PendingEntry]:
        return self.state.pending()

    def totals(self, discount_percentage: Union[Decimal, int, str]) -> Totals:
        return calculate_totals(self.active_draft.lines, discount_percentage)

    def notify(self, type: NotificationType, message: str) -> Notification:
        notification = Notification(type=type, message=message)
        self.state.notifications.append(notification)
        return notification

    def drain_notifications(self) -> List[Notification]:
        notifications = list(self.state.notifications)
        self.state.notifications.clear()
        return notifications

    # ===== Líneas =====

    def add_line(self, catalog: CatalogSnapshot, item_id: str, qty: int = 1) -> DraftLine:
        item = catalog.get(item_id)
        if item is None:
            raise CatalogItemNotFoundError(item_id)
        return draft_builder.add_line(self.active_draft, item, qty)

    def update_quantity(self, catalog: CatalogSnapshot, item_id: str, new_qty) -> Optional[DraftLine]:
        try:
            return draft_builder.update_quantity(self.active_draft, catalog, item_id, new_qty)
        except StockExceededWarning as warning:
            logger.info(f"Quantity edit ignored on {self.active_draft.invoice_number}: {warning.message}")
            self.notify(NotificationType.WARNING, warning.message)
            return self.active_draft.find_line(item_id)

    def remove_line(self, item_id: str) -> bool:
        return draft_builder.remove_line(self.active_draft, item_id)

    # ===== Cola =====

    def park(self, label: Optional[str] = None) -> Optional[PendingEntry]:
        try:
            entry = self.queue.park(label)
        except EmptyDraftWarning as warning:
            self.notify(NotificationType.WARNING, warning.message)
            return None
        self.notify(NotificationType.INFO, f"Factura guardada en la cola: {entry.label}")
        return entry

    def resume(self, draft_id: str, label: Optional[str] = None) -> InvoiceDraft:
        draft = self.queue.resume(draft_id, label)
        self.notify(NotificationType.SUCCESS, f"Factura cargada: {draft.invoice_number}")
        return draft

    def discard(self, draft_id: str) -> PendingEntry:
        return self.queue.discard(draft_id)

    # ===== Confirmación =====

    def commit(self, catalog: CatalogSnapshot, discount_percentage) -> CommitResult:
        try:
            result = self.orchestrator.commit(self.active_draft, catalog, discount_percentage)
        except (ValidationError, PersistenceError) as e:
            self.notify(NotificationType.ERROR, e.message)
            raise

        self.queue.replace_active(result.next_draft)
        self.notify(NotificationType.SUCCESS, f"Factura {result.invoice.invoice_number} generada")
        for outcome in result.failed_side_effects:
            self.notify(NotificationType.ERROR, outcome.error)
        return result

    def record_manual_return(
        self,
        catalog: CatalogSnapshot,
        item_id: str,
        quantity: int,
        unit_price: Decimal,
        discount_percentage
    ) -> Tuple[ReturnRecord, List[SideEffectOutcome]]:
        """
        Reducción manual de una línea ya facturada: genera la devolución y
        devuelve las unidades al stock, ambas de mejor esfuerzo. El ítem debe
        estar en el snapshot: su stock es la base del ajuste.
        """
        if catalog.get(item_id) is None:
            raise CatalogItemNotFoundError(item_id)

        record = manual_return(item_id, quantity, unit_price, discount_percentage)
        new_qty = catalog.available_qty(item_id) + quantity

        outcomes = [
            run_side_effect(
                SideEffectKind.RETURN, item_id,
                lambda: self.gateway.create_return(record),
                detail=record.return_number
            ),
            run_side_effect(
                SideEffectKind.STOCK_UPDATE, item_id,
                lambda: self.gateway.update_item_stock(item_id, new_qty),
                detail=str(new_qty)
            ),
        ]
        for outcome in outcomes:
            if not outcome.succeeded:
                self.notify(NotificationType.ERROR, outcome.error)

        if outcomes[0].succeeded:
            self.notify(NotificationType.SUCCESS, f"Devolución {record.return_number} registrada")
        return record, outcomes
