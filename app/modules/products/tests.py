"""
Tests para el catálogo de productos
"""

import pytest
from decimal import Decimal
from fastapi import HTTPException
from uuid import uuid4

from app.modules.products.schemas import ProductCreate
from app.modules.products.service import ProductService


class TestProductService:
    def test_duplicate_code_conflict(self, db_session, sample_products):
        with pytest.raises(HTTPException) as exc_info:
            ProductService(db_session).create_product(ProductCreate(
                code="PARA500", name="Otro", price_sale=Decimal("1.00")
            ))
        assert exc_info.value.status_code == 409

    def test_catalog_sorted_by_name(self, db_session, sample_products):
        items = ProductService(db_session).fetch_catalog()
        assert [item.code for item in items] == ["AMOX250", "IBU400", "PARA500"]
        assert items[0].available_qty == 5

    def test_catalog_search_by_code(self, db_session, sample_products):
        items = ProductService(db_session).fetch_catalog("ibu")
        assert len(items) == 1
        assert items[0].unit_price == Decimal("15.00")

    def test_inactive_products_hidden(self, db_session, sample_products):
        sample_products[0].is_active = False
        db_session.commit()
        codes = [item.code for item in ProductService(db_session).fetch_catalog()]
        assert "PARA500" not in codes

    def test_update_stock(self, db_session, sample_products):
        product = ProductService(db_session).update_stock(sample_products[1].id, 42)
        assert product.quantity == 42

    def test_update_stock_unknown_product(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            ProductService(db_session).update_stock(uuid4(), 1)
        assert exc_info.value.status_code == 404
