from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database.database import get_db
from app.modules.invoices.service import InvoiceService
from app.modules.invoices.schemas import CommittedInvoice, InvoiceList

# Solo lectura: las facturas se crean a través del motor de facturación (/billing)
router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("/", response_model=InvoiceList)
def list_invoices(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Buscar por número de factura"),
    db: Session = Depends(get_db)
):
    """Listar facturas generadas"""
    return InvoiceService(db).get_invoices(limit, offset, search)


@router.get("/{invoice_number}", response_model=CommittedInvoice)
def get_invoice(invoice_number: str, db: Session = Depends(get_db)):
    """Obtener una factura por su número"""
    return InvoiceService(db).get_invoice_by_number(invoice_number)
