from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from datetime import datetime


class ShopSettingsUpdate(BaseModel):
    shop_name: str = Field(..., min_length=1, max_length=200)
    currency: str = Field(..., min_length=1, max_length=10)
    discount_percentage: Decimal = Field(..., description="Descuento general aplicado a cada factura")

    @field_validator('discount_percentage')
    @classmethod
    def validate_discount(cls, v):
        if v < 0 or v > 100:
            raise ValueError('El porcentaje de descuento debe estar entre 0 y 100')
        return v


class ShopSettingsOut(BaseModel):
    shop_name: str
    currency: str
    discount_percentage: Decimal
    updated_at: datetime

    class Config:
        from_attributes = True
