from fastapi import APIRouter, Depends, HTTPException, Query, status
from decimal import Decimal
from typing import List, Optional

from app.modules.products.schemas import CatalogList
from app.modules.billing.catalog import CatalogSnapshot
from app.modules.billing.dependencies import (
    drop_engine_state, get_billing_engine, get_catalog, get_discount_percentage, get_session_id
)
from app.modules.billing.engine import BillingEngine
from app.modules.billing.exceptions import (
    AggregateValidationError, BillingError, CatalogItemNotFoundError, DraftNotFoundError,
    DuplicateLineError, PersistenceError, ValidationError
)
from app.modules.billing.schemas import (
    AddLineRequest, CommitOut, DraftOut, EngineStateOut, ManualReturnOut, ManualReturnRequest,
    ParkRequest, PendingEntryOut, UpdateQuantityRequest
)

router = APIRouter(prefix="/billing", tags=["Billing"])


def to_http_exception(error: BillingError) -> HTTPException:
    """Traducir errores del motor a respuestas HTTP"""
    if isinstance(error, AggregateValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": error.message,
                "violations": [v.model_dump() for v in error.violations]
            }
        )
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
    if isinstance(error, DuplicateLineError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    if isinstance(error, (CatalogItemNotFoundError, DraftNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, PersistenceError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)


def pending_out(engine: BillingEngine) -> List[PendingEntryOut]:
    return [
        PendingEntryOut(
            draft_id=entry.draft_id,
            invoice_number=entry.draft.invoice_number,
            label=entry.label,
            parked_at=entry.parked_at,
            line_count=len(entry.draft.lines)
        )
        for entry in engine.pending()
    ]


def state_out(engine: BillingEngine, discount_percentage: Decimal) -> EngineStateOut:
    return EngineStateOut(
        active=DraftOut(draft=engine.active_draft, totals=engine.totals(discount_percentage)),
        queue=pending_out(engine),
        notifications=engine.drain_notifications()
    )


@router.get("/catalog", response_model=CatalogList)
def search_catalog(
    search: Optional[str] = Query(None, description="Buscar por nombre o código"),
    catalog: CatalogSnapshot = Depends(get_catalog)
):
    """Productos disponibles para agregar a la factura"""
    items = catalog.search(search)
    return CatalogList(items=items, total=len(items), search=search)


@router.get("/draft", response_model=EngineStateOut)
def get_state(
    engine: BillingEngine = Depends(get_billing_engine),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """
    Borrador activo con sus totales, la cola de pendientes y las notificaciones

    Los totales se recalculan en cada lectura con el descuento configurado.
    """
    return state_out(engine, discount_percentage)


@router.post("/draft/lines", response_model=EngineStateOut, status_code=status.HTTP_201_CREATED)
def add_line(
    data: AddLineRequest,
    engine: BillingEngine = Depends(get_billing_engine),
    catalog: CatalogSnapshot = Depends(get_catalog),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """Agregar un producto al borrador activo (un ítem repetido se rechaza con 409)"""
    try:
        engine.add_line(catalog, data.item_id, data.quantity)
    except BillingError as e:
        raise to_http_exception(e)
    return state_out(engine, discount_percentage)


@router.patch("/draft/lines/{item_id}", response_model=EngineStateOut)
def update_quantity(
    item_id: str,
    data: UpdateQuantityRequest,
    engine: BillingEngine = Depends(get_billing_engine),
    catalog: CatalogSnapshot = Depends(get_catalog),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """
    Cambiar la cantidad de una línea

    Si supera el stock disponible el cambio se ignora y se devuelve una
    notificación de advertencia. Cero quita la línea; negativa es devolución.
    """
    try:
        engine.update_quantity(catalog, item_id, data.quantity)
    except BillingError as e:
        raise to_http_exception(e)
    return state_out(engine, discount_percentage)


@router.delete("/draft/lines/{item_id}", response_model=EngineStateOut)
def remove_line(
    item_id: str,
    engine: BillingEngine = Depends(get_billing_engine),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """Quitar una línea del borrador activo"""
    engine.remove_line(item_id)
    return state_out(engine, discount_percentage)


@router.post("/draft/park", response_model=EngineStateOut)
def park_draft(
    data: ParkRequest,
    engine: BillingEngine = Depends(get_billing_engine),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """Guardar el borrador activo en la cola y abrir uno nuevo"""
    engine.park(data.label)
    return state_out(engine, discount_percentage)


@router.post("/draft/commit", response_model=CommitOut, status_code=status.HTTP_201_CREATED)
def commit_draft(
    engine: BillingEngine = Depends(get_billing_engine),
    catalog: CatalogSnapshot = Depends(get_catalog),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """
    Generar la factura del borrador activo

    Valida stock (todo o nada), persiste la factura y luego registra
    devoluciones y ajustes de stock. Los fallos posteriores a la factura se
    informan en side_effects sin deshacerla.
    """
    try:
        result = engine.commit(catalog, discount_percentage)
    except BillingError as e:
        raise to_http_exception(e)
    return CommitOut(
        invoice=result.invoice,
        returns=result.returns,
        side_effects=result.side_effects,
        next_draft=result.next_draft,
        notifications=engine.drain_notifications()
    )


@router.get("/queue", response_model=List[PendingEntryOut])
def list_queue(engine: BillingEngine = Depends(get_billing_engine)):
    """Facturas pendientes de la sesión"""
    return pending_out(engine)


@router.post("/queue/{draft_id}/resume", response_model=EngineStateOut)
def resume_draft(
    draft_id: str,
    data: Optional[ParkRequest] = None,
    engine: BillingEngine = Depends(get_billing_engine),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """
    Retomar una factura pendiente

    Si el borrador activo tiene ítems se guarda primero en la cola.
    """
    try:
        engine.resume(draft_id, data.label if data else None)
    except BillingError as e:
        raise to_http_exception(e)
    return state_out(engine, discount_percentage)


@router.delete("/queue/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
def discard_draft(draft_id: str, engine: BillingEngine = Depends(get_billing_engine)):
    """Eliminar una factura pendiente"""
    try:
        engine.discard(draft_id)
    except BillingError as e:
        raise to_http_exception(e)


@router.post("/returns/manual", response_model=ManualReturnOut, status_code=status.HTTP_201_CREATED)
def manual_return(
    data: ManualReturnRequest,
    engine: BillingEngine = Depends(get_billing_engine),
    catalog: CatalogSnapshot = Depends(get_catalog),
    discount_percentage: Decimal = Depends(get_discount_percentage)
):
    """Reducir la cantidad de una línea ya facturada generando una devolución"""
    try:
        record, outcomes = engine.record_manual_return(
            catalog, data.item_id, data.quantity, data.unit_price, discount_percentage
        )
    except BillingError as e:
        raise to_http_exception(e)
    return ManualReturnOut(
        record=record,
        side_effects=outcomes,
        notifications=engine.drain_notifications()
    )


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def close_session(session_id: str = Depends(get_session_id)):
    """
    Cerrar la sesión de caja

    Libera el borrador activo y la cola de pendientes de la sesión. La
    siguiente petición con el mismo X-Session-ID empieza de cero.
    """
    if not drop_engine_state(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sesión de caja no encontrada")
