"""
Confirmación de un borrador.

Secuencia: validar → totales → crear factura → devoluciones → stock → bitácora.
Solo la creación de la factura es bloqueante; si falla no se hace nada más y el
borrador queda ACTIVE sin cambios. Lo que sigue son llamadas independientes y
de mejor esfuerzo: sus fallos quedan en el outbox del CommitResult, sin
deshacer la factura ni reintentar.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from app.modules.activity.service import INVOICE_GENERATED
from app.modules.invoices.schemas import CommittedInvoice, InvoiceDraftSnapshot, InvoiceLineSnapshot
from app.modules.returns.schemas import ReturnRecord
from app.modules.billing.catalog import CatalogSnapshot
from app.modules.billing.draft_builder import new_draft
from app.modules.billing.exceptions import (
    CatalogItemNotFoundError, EmptyDraftError, PersistenceError, SideEffectError, ValidationError
)
from app.modules.billing.gateway import BillingGateway
from app.modules.billing.pricing import calculate_totals
from app.modules.billing.return_emitter import return_from_line
from app.modules.billing.schemas import (
    CommitResult, DraftState, InvoiceDraft, SideEffectKind, SideEffectOutcome, Totals, utcnow
)
from app.modules.billing.stock_validator import validate_stock

logger = logging.getLogger(__name__)

InvoiceHook = Callable[[CommittedInvoice], None]


def run_side_effect(kind: SideEffectKind, target: str, call, detail: Optional[str] = None) -> SideEffectOutcome:
    """Ejecuta una tarea del outbox una sola vez y registra su resultado."""
    try:
        call()
    except Exception as e:
        error = SideEffectError(kind.value, target, e)
        logger.error(error.message, exc_info=True)
        return SideEffectOutcome(kind=kind, target=target, succeeded=False, detail=detail, error=error.message)
    return SideEffectOutcome(kind=kind, target=target, succeeded=True, detail=detail)


def missing_item_outcome(item_id: str) -> SideEffectOutcome:
    """Ajuste de stock que no se escribe: sin el ítem en el snapshot no hay stock base."""
    error = SideEffectError(SideEffectKind.STOCK_UPDATE.value, item_id, CatalogItemNotFoundError(item_id))
    logger.error(error.message)
    return SideEffectOutcome(kind=SideEffectKind.STOCK_UPDATE, target=item_id, succeeded=False, error=error.message)


def build_snapshot(draft: InvoiceDraft, totals: Totals, date: datetime) -> InvoiceDraftSnapshot:
    return InvoiceDraftSnapshot(
        invoice_number=draft.invoice_number,
        lines=[
            InvoiceLineSnapshot(
                item_id=line.item_id,
                name=line.name,
                code=line.code,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total
            )
            for line in draft.lines
        ],
        subtotal=totals.subtotal,
        discount_percentage=totals.discount_percentage,
        discount=totals.discount,
        total=totals.total,
        date=date
    )


class CommitOrchestrator:
    def __init__(self, gateway: BillingGateway, on_invoice_generated: Optional[InvoiceHook] = None):
        self.gateway = gateway
        self.on_invoice_generated = on_invoice_generated

    def commit(self, draft: InvoiceDraft, catalog: CatalogSnapshot, discount_percentage) -> CommitResult:
        if draft.state != DraftState.ACTIVE:
            raise ValidationError(f"Solo se puede confirmar un borrador activo (estado: {draft.state.value})")
        if draft.is_empty:
            raise EmptyDraftError(draft.invoice_number)

        validate_stock(draft, catalog)

        totals = calculate_totals(draft.lines, discount_percentage)
        snapshot = build_snapshot(draft, totals, utcnow())

        try:
            invoice = self.gateway.create_invoice(snapshot)
        except Exception as e:
            logger.error(f"Invoice {draft.invoice_number} could not be persisted: {str(e)}", exc_info=True)
            raise PersistenceError(draft.invoice_number, e) from e

        logger.info(f"Invoice {invoice.invoice_number} committed (total: {invoice.total})")

        side_effects: List[SideEffectOutcome] = []
        returns = self._emit_returns(draft, totals, invoice, side_effects)
        self._adjust_stock(draft, catalog, side_effects)
        self._log_activity(invoice, side_effects)

        draft.state = DraftState.COMMITTED
        next_draft = new_draft()

        self._fire_hook(invoice, side_effects)

        failed = [outcome for outcome in side_effects if not outcome.succeeded]
        if failed:
            logger.warning(
                f"Invoice {invoice.invoice_number} committed with {len(failed)} failed side effect(s)"
            )

        return CommitResult(
            invoice=invoice,
            returns=returns,
            side_effects=side_effects,
            next_draft=next_draft
        )

    def _emit_returns(
        self,
        draft: InvoiceDraft,
        totals: Totals,
        invoice: CommittedInvoice,
        side_effects: List[SideEffectOutcome]
    ) -> List[ReturnRecord]:
        returns = []
        for line in draft.lines:
            if not line.is_return:
                continue
            record = return_from_line(line, totals.discount_percentage, invoice.invoice_number)
            outcome = run_side_effect(
                SideEffectKind.RETURN, line.item_id,
                lambda: self.gateway.create_return(record),
                detail=record.return_number
            )
            side_effects.append(outcome)
            if outcome.succeeded:
                returns.append(record)
        return returns

    def _adjust_stock(self, draft: InvoiceDraft, catalog: CatalogSnapshot, side_effects: List[SideEffectOutcome]) -> None:
        # Positivas descuentan del stock; negativas lo devuelven
        for line in draft.lines:
            if line.item_id not in catalog:
                side_effects.append(missing_item_outcome(line.item_id))
                continue
            new_qty = catalog.available_qty(line.item_id) - line.quantity
            side_effects.append(run_side_effect(
                SideEffectKind.STOCK_UPDATE, line.item_id,
                lambda: self.gateway.update_item_stock(line.item_id, new_qty),
                detail=str(new_qty)
            ))

    def _log_activity(self, invoice: CommittedInvoice, side_effects: List[SideEffectOutcome]) -> None:
        side_effects.append(run_side_effect(
            SideEffectKind.ACTIVITY_LOG, invoice.invoice_number,
            lambda: self.gateway.log_activity(
                INVOICE_GENERATED,
                f"Generated invoice: {invoice.invoice_number} (Total: {invoice.total})",
                invoice.invoice_number
            )
        ))

    def _fire_hook(self, invoice: CommittedInvoice, side_effects: List[SideEffectOutcome]) -> None:
        if self.on_invoice_generated is None:
            return
        side_effects.append(run_side_effect(
            SideEffectKind.INVOICE_HOOK, invoice.invoice_number,
            lambda: self.on_invoice_generated(invoice)
        ))
