from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List


class ProductCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    price_sale: Decimal = Field(..., ge=0, description="Precio de venta unitario")
    price_base: Decimal = Field(Decimal('0'), ge=0)
    quantity: int = Field(0, ge=0, description="Stock inicial")

    @field_validator('code', 'name')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v


class CatalogItem(BaseModel):
    """Vista de solo lectura de un ítem del catálogo, tal como la consume el motor de facturación"""
    id: str
    code: str
    name: str
    unit_price: Decimal = Field(..., ge=0)
    available_qty: int

    class Config:
        frozen = True


class CatalogList(BaseModel):
    items: List[CatalogItem]
    total: int
    search: Optional[str] = None
