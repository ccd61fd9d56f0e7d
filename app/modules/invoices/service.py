from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from app.modules.invoices.models import Invoice, InvoiceLineItem
from app.modules.invoices.schemas import (
    InvoiceDraftSnapshot, InvoiceLineSnapshot, CommittedInvoice, InvoiceList
)

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


def to_money(value) -> Decimal:
    """Redondeo a dos decimales (solo al persistir)"""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_committed_invoice(invoice: Invoice) -> CommittedInvoice:
    return CommittedInvoice(
        invoice_number=invoice.number,
        lines=[
            InvoiceLineSnapshot(
                item_id=item.item_id,
                name=item.name,
                code=item.code,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total
            )
            for item in invoice.line_items
        ],
        subtotal=invoice.subtotal,
        discount_percentage=invoice.discount_percentage,
        discount=invoice.discount,
        total=invoice.total,
        date=invoice.date
    )


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db

    def create_invoice(self, snapshot: InvoiceDraftSnapshot) -> CommittedInvoice:
        """
        Persistir un borrador como factura en una sola transacción.

        No toca inventario ni devoluciones: esos efectos los dispara el motor
        de facturación después, cada uno por separado.
        """
        # El total sale de los importes ya redondeados para que cuadre al centavo
        subtotal = to_money(snapshot.subtotal)
        discount = to_money(snapshot.discount)
        try:
            invoice = Invoice(
                number=snapshot.invoice_number,
                date=snapshot.date,
                subtotal=subtotal,
                discount_percentage=snapshot.discount_percentage,
                discount=discount,
                total=subtotal - discount
            )
            self.db.add(invoice)
            self.db.flush()

            for position, line in enumerate(snapshot.lines):
                self.db.add(InvoiceLineItem(
                    invoice_id=invoice.id,
                    item_id=line.item_id,
                    position=position,
                    name=line.name,
                    code=line.code,
                    quantity=line.quantity,
                    unit_price=to_money(line.unit_price),
                    line_total=to_money(line.line_total)
                ))

            self.db.commit()
            self.db.refresh(invoice)

            logger.info(f"Invoice {invoice.number} persisted with {len(snapshot.lines)} lines (total: {invoice.total})")
            return to_committed_invoice(invoice)

        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una factura con el número {snapshot.invoice_number}"
            )
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating invoice {snapshot.invoice_number}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error interno del servidor: {str(e)}"
            )

    def get_invoice_by_number(self, invoice_number: str) -> CommittedInvoice:
        invoice = self.db.query(Invoice).options(
            selectinload(Invoice.line_items)
        ).filter(Invoice.number == invoice_number).first()

        if not invoice:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Factura no encontrada"
            )
        return to_committed_invoice(invoice)

    def get_invoices(self, limit: int = 100, offset: int = 0, search: Optional[str] = None) -> InvoiceList:
        """Listar facturas, las más recientes primero"""
        query = self.db.query(Invoice).options(selectinload(Invoice.line_items))
        if search:
            query = query.filter(Invoice.number.ilike(f"%{search}%"))

        total = query.count()
        invoices = query.order_by(desc(Invoice.date)).offset(offset).limit(limit).all()

        return InvoiceList(
            invoices=[to_committed_invoice(invoice) for invoice in invoices],
            total=total,
            limit=limit,
            offset=offset
        )
