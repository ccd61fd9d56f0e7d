"""
Dependencias del módulo de facturación

- Estado del motor por sesión de caja (en memoria, una sesión = un cajero)
- Construcción del motor con el gateway SQL de la petición
- Snapshot del catálogo y porcentaje de descuento vigentes
"""
import logging
from collections import OrderedDict
from decimal import Decimal

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.database.database import get_db
from app.modules.invoices.schemas import CommittedInvoice
from app.modules.billing.catalog import CatalogSnapshot
from app.modules.billing.engine import BillingEngine
from app.modules.billing.gateway import SqlBillingGateway
from app.modules.billing.queue import EngineState

logger = logging.getLogger(__name__)

# Orden de uso: el primero es el menos reciente
_engine_states: "OrderedDict[str, EngineState]" = OrderedDict()


def get_session_id(request: Request) -> str:
    """Extract session_id from request state set by SessionMiddleware"""
    if not hasattr(request.state, 'session_id'):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Session context not found. Ensure X-Session-ID header is provided."
        )
    return request.state.session_id


def get_engine_state(session_id: str = Depends(get_session_id)) -> EngineState:
    state = _engine_states.get(session_id)
    if state is not None:
        _engine_states.move_to_end(session_id)
        return state

    state = EngineState()
    _engine_states[session_id] = state
    logger.info(f"Billing session {session_id} started with draft {state.active_draft.invoice_number}")

    while len(_engine_states) > settings.MAX_BILLING_SESSIONS:
        evicted_id, evicted = _engine_states.popitem(last=False)
        logger.warning(
            f"Billing session {evicted_id} evicted ({len(evicted.queue)} pending draft(s) dropped)"
        )
    return state


def drop_engine_state(session_id: str) -> bool:
    """Cerrar la sesión de caja: el borrador activo y la cola se pierden."""
    state = _engine_states.pop(session_id, None)
    if state is None:
        return False
    logger.info(f"Billing session {session_id} closed ({len(state.queue)} pending draft(s) dropped)")
    return True


def active_session_count() -> int:
    return len(_engine_states)


def reset_engine_states() -> None:
    _engine_states.clear()


def get_gateway(db: Session = Depends(get_db)) -> SqlBillingGateway:
    return SqlBillingGateway(db)


def log_generated_invoice(invoice: CommittedInvoice) -> None:
    logger.info(f"Invoice generated: {invoice.invoice_number} ({len(invoice.lines)} lines, total {invoice.total})")


def get_billing_engine(
    state: EngineState = Depends(get_engine_state),
    gateway: SqlBillingGateway = Depends(get_gateway)
) -> BillingEngine:
    return BillingEngine(state, gateway, on_invoice_generated=log_generated_invoice)


def get_catalog(gateway: SqlBillingGateway = Depends(get_gateway)) -> CatalogSnapshot:
    return CatalogSnapshot(gateway.fetch_catalog())


def get_discount_percentage(gateway: SqlBillingGateway = Depends(get_gateway)) -> Decimal:
    return gateway.fetch_settings().discount_percentage
