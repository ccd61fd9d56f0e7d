from app.database.database import Base
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from uuid import uuid4
from app.common.mixins import BaseMixin, TimestampMixin


class Invoice(Base, BaseMixin):
    __tablename__ = "invoices"

    number = Column(String(50), nullable=False)  # INV + timestamp + sufijo aleatorio
    date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Totals (calculated by the billing engine)
    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    discount = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False, default=0)

    line_items = relationship(
        "InvoiceLineItem", back_populates="invoice",
        cascade="all, delete-orphan", order_by="InvoiceLineItem.position"
    )

    __table_args__ = (
        UniqueConstraint("number", name="uq_invoice_number"),
    )


class InvoiceLineItem(Base, TimestampMixin):
    __tablename__ = "invoice_line_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(Uuid(as_uuid=True), ForeignKey("invoices.id"), nullable=False)
    item_id = Column(String(36), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Snapshot data (para preservar información si el producto cambia)
    name = Column(String(200), nullable=True)
    code = Column(String(50), nullable=True)

    quantity = Column(Integer, nullable=False)  # Con signo: negativa = devolución
    unit_price = Column(Numeric(15, 2), nullable=False)
    line_total = Column(Numeric(15, 2), nullable=False)  # quantity * unit_price

    invoice = relationship("Invoice", back_populates="line_items")
