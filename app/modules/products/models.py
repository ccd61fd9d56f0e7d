from app.database.database import Base
from sqlalchemy import Column, Integer, String, Boolean, Numeric, UniqueConstraint
from app.common.mixins import BaseMixin


class Product(Base, BaseMixin):
    """Ítem vendible del catálogo con su stock disponible"""
    __tablename__ = "products"

    code = Column(String(50), nullable=False)  # Código interno / código de barras
    name = Column(String(200), nullable=False)
    price_sale = Column(Numeric(15, 2), nullable=False, default=0)  # Precio de venta
    price_base = Column(Numeric(15, 2), nullable=False, default=0)  # Precio base/costo
    quantity = Column(Integer, nullable=False, default=0)  # Stock disponible
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("code", name="uq_product_code"),
    )
