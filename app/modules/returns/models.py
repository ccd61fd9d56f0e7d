from app.database.database import Base
from sqlalchemy import Column, Integer, String, Numeric, UniqueConstraint
from app.common.mixins import BaseMixin


class Return(Base, BaseMixin):
    """Devolución de mercancía, derivada de una línea negativa o de un ajuste manual"""
    __tablename__ = "returns"

    number = Column(String(50), nullable=False)  # RET + timestamp + sufijo aleatorio
    item_id = Column(String(36), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_value_after_discount = Column(Numeric(15, 2), nullable=False)
    total_value = Column(Numeric(15, 2), nullable=False)
    reason = Column(String(50), nullable=False)
    linked_invoice_number = Column(String(50), nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint("number", name="uq_return_number"),
    )
