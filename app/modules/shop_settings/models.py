from app.database.database import Base
from sqlalchemy import Column, String, Numeric
from app.common.mixins import BaseMixin


class ShopSettings(Base, BaseMixin):
    """Configuración de la tienda (una sola fila)"""
    __tablename__ = "shop_settings"

    shop_name = Column(String(200), nullable=False)
    currency = Column(String(10), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
