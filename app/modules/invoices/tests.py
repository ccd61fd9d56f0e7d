"""
Tests para la persistencia de facturas y devoluciones
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from fastapi import HTTPException

from app.modules.invoices.schemas import InvoiceDraftSnapshot, InvoiceLineSnapshot
from app.modules.invoices.service import InvoiceService, to_money
from app.modules.returns.schemas import ReturnReason, ReturnRecord
from app.modules.returns.service import ReturnService


@pytest.fixture
def snapshot():
    return InvoiceDraftSnapshot(
        invoice_number="INV12345678ABC",
        lines=[
            InvoiceLineSnapshot(item_id="a", name="Gasa", quantity=3, unit_price=Decimal("3.33"), line_total=Decimal("9.99")),
            InvoiceLineSnapshot(item_id="b", name="Alcohol", quantity=-1, unit_price=Decimal("2.00"), line_total=Decimal("-2.00")),
        ],
        subtotal=Decimal("7.99"),
        discount_percentage=Decimal("3"),
        discount=Decimal("0.2397"),
        total=Decimal("7.7503"),
        date=datetime.now(timezone.utc)
    )


class TestInvoiceService:
    def test_money_rounding(self):
        assert to_money(Decimal("0.005")) == Decimal("0.01")
        assert to_money(Decimal("7.7503")) == Decimal("7.75")

    def test_create_invoice_rounds_on_persist(self, db_session, snapshot):
        invoice = InvoiceService(db_session).create_invoice(snapshot)
        assert invoice.total == Decimal("7.75")
        assert invoice.discount == Decimal("0.24")
        assert [line.item_id for line in invoice.lines] == ["a", "b"]
        assert invoice.lines[1].quantity == -1

    def test_total_matches_rounded_subtotal_minus_discount(self, db_session):
        """Descuento de medio centavo: el total cuadra con los importes guardados"""
        invoice = InvoiceService(db_session).create_invoice(InvoiceDraftSnapshot(
            invoice_number="INV12345678HLF",
            lines=[InvoiceLineSnapshot(item_id="a", quantity=1, unit_price=Decimal("0.50"), line_total=Decimal("0.50"))],
            subtotal=Decimal("0.50"),
            discount_percentage=Decimal("3"),
            discount=Decimal("0.015"),
            total=Decimal("0.485"),
            date=datetime.now(timezone.utc)
        ))
        assert invoice.discount == Decimal("0.02")
        assert invoice.total == invoice.subtotal - invoice.discount
        assert invoice.total == Decimal("0.48")

    def test_duplicate_number_conflict(self, db_session, snapshot):
        service = InvoiceService(db_session)
        service.create_invoice(snapshot)
        with pytest.raises(HTTPException) as exc_info:
            service.create_invoice(snapshot)
        assert exc_info.value.status_code == 409

    def test_list_and_search(self, db_session, snapshot):
        service = InvoiceService(db_session)
        service.create_invoice(snapshot)
        assert service.get_invoices().total == 1
        assert service.get_invoices(search="99999").total == 0

    def test_unknown_invoice(self, client):
        response = client.get("/invoices/INV00000000XXX")
        assert response.status_code == 404


class TestReturnService:
    def test_create_and_filter_by_invoice(self, db_session):
        service = ReturnService(db_session)
        service.create_return(ReturnRecord(
            return_number="RET12345678ABC",
            item_id="a",
            quantity=3,
            unit_value_after_discount=Decimal("14.55"),
            total_value=Decimal("43.65"),
            reason=ReturnReason.NEGATIVE_QUANTITY_ADJUSTMENT,
            linked_invoice_number="INV12345678ABC"
        ))
        service.create_return(ReturnRecord(
            return_number="RET12345678XYZ",
            item_id="a",
            quantity=1,
            unit_value_after_discount=Decimal("14.55"),
            total_value=Decimal("14.55"),
            reason=ReturnReason.MANUAL_ADJUSTMENT
        ))
        linked = service.get_returns("INV12345678ABC")
        assert linked.total == 1
        assert linked.returns[0].total_value == Decimal("43.65")
        assert service.get_returns().total == 2
