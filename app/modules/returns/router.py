from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database.database import get_db
from app.modules.returns.service import ReturnService
from app.modules.returns.schemas import ReturnList

# Solo lectura: las devoluciones se generan al confirmar facturas o con /billing/returns/manual
router = APIRouter(prefix="/returns", tags=["Returns"])


@router.get("/", response_model=ReturnList)
def list_returns(
    invoice_number: Optional[str] = Query(None, description="Solo las devoluciones de esta factura"),
    db: Session = Depends(get_db)
):
    """Listar devoluciones, las más recientes primero"""
    return ReturnService(db).get_returns(invoice_number)
