from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_, func
from fastapi import HTTPException, status
import logging

from app.modules.products.models import Product
from app.modules.products.schemas import ProductCreate, CatalogItem

logger = logging.getLogger(__name__)


def to_catalog_item(product: Product) -> CatalogItem:
    """Proyección de un Product a la vista de catálogo del motor."""
    return CatalogItem(
        id=str(product.id),
        code=product.code,
        name=product.name,
        unit_price=product.price_sale,
        available_qty=product.quantity
    )


class ProductService:
    """Service for catalog and stock operations."""

    def __init__(self, db: Session):
        self.db = db

    def create_product(self, product_data: ProductCreate) -> Product:
        """Crear producto en el catálogo"""
        try:
            product = Product(
                code=product_data.code,
                name=product_data.name,
                price_sale=product_data.price_sale,
                price_base=product_data.price_base,
                quantity=product_data.quantity
            )
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
            return product
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un producto con el código '{product_data.code}'"
            )

    def get_product(self, product_id: UUID) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Producto no encontrado"
            )
        return product

    def fetch_catalog(self, search: Optional[str] = None) -> List[CatalogItem]:
        """Snapshot del catálogo activo, opcionalmente filtrado por nombre o código."""
        query = self.db.query(Product).filter(Product.is_active == True)

        if search and search.strip():
            term = f"%{search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(Product.name).like(term),
                    func.lower(Product.code).like(term)
                )
            )

        products = query.order_by(Product.name).all()
        return [to_catalog_item(product) for product in products]

    def update_stock(self, product_id: UUID, new_quantity: int) -> Product:
        """Fijar la cantidad disponible de un producto."""
        product = self.get_product(product_id)
        previous = product.quantity
        try:
            product.quantity = new_quantity
            self.db.commit()
            self.db.refresh(product)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Stock updated for {product.code}: {previous} -> {new_quantity}")
        return product
