from app.database.database import Base
from sqlalchemy import Column, String, Text
from app.common.mixins import BaseMixin


class ActivityLog(Base, BaseMixin):
    """Bitácora de acciones del punto de venta"""
    __tablename__ = "activity_logs"

    action = Column(String(50), nullable=False, index=True)  # invoice_generated
    description = Column(Text, nullable=False)
    reference = Column(String(50), nullable=True)  # Número de factura / devolución
