"""
Módulo de Facturas (Invoices)

Persistencia de las facturas confirmadas por el motor de facturación:

- invoices: cabecera con subtotal, descuento y total
- invoice_line_items: líneas con cantidad con signo (negativa = devolución)

Una factura es inmutable una vez creada; este módulo solo la guarda y la consulta.
"""

from .models import Invoice, InvoiceLineItem
from .schemas import InvoiceDraftSnapshot, CommittedInvoice
from .service import InvoiceService
from .router import router

__all__ = [
    "Invoice", "InvoiceLineItem",
    "InvoiceDraftSnapshot", "CommittedInvoice",
    "InvoiceService",
    "router"
]
