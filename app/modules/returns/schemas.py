from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from enum import Enum


class ReturnReason(str, Enum):
    NEGATIVE_QUANTITY_ADJUSTMENT = "negative-quantity-adjustment"  # Línea negativa dentro de la factura
    MANUAL_ADJUSTMENT = "manual-adjustment"  # Reducción manual sobre una factura existente


class ReturnRecord(BaseModel):
    return_number: str
    item_id: str
    quantity: int = Field(..., ge=0)
    unit_value_after_discount: Decimal
    total_value: Decimal
    reason: ReturnReason
    linked_invoice_number: Optional[str] = None

    class Config:
        frozen = True


class ReturnList(BaseModel):
    returns: List[ReturnRecord]
    total: int
