from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from datetime import datetime


class InvoiceLineSnapshot(BaseModel):
    item_id: str
    name: Optional[str] = None
    code: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    class Config:
        frozen = True


class InvoiceDraftSnapshot(BaseModel):
    """Datos de un borrador listos para persistir como factura"""
    invoice_number: str = Field(..., min_length=1, max_length=50)
    lines: List[InvoiceLineSnapshot] = Field(..., min_length=1)
    subtotal: Decimal
    discount_percentage: Decimal
    discount: Decimal
    total: Decimal
    date: datetime

    @field_validator('discount_percentage')
    @classmethod
    def validate_discount_percentage(cls, v):
        if v < 0 or v > 100:
            raise ValueError('El porcentaje de descuento debe estar entre 0 y 100')
        return v


class CommittedInvoice(BaseModel):
    """Factura persistida. Inmutable una vez creada."""
    invoice_number: str
    lines: List[InvoiceLineSnapshot]
    subtotal: Decimal
    discount_percentage: Decimal
    discount: Decimal
    total: Decimal
    date: datetime

    class Config:
        frozen = True


class InvoiceList(BaseModel):
    invoices: List[CommittedInvoice]
    total: int
    limit: int
    offset: int
