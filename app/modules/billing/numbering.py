"""
Generación de números de factura y devolución.

Formato: prefijo + últimos 8 dígitos del timestamp en milisegundos +
3 caracteres aleatorios en base 36 (mayúsculas). Ej: INV12345678K3Z
"""
import secrets
import string
import time
from typing import Optional

from app.core.config import settings

BASE36_UPPER = string.digits + string.ascii_uppercase
TIMESTAMP_DIGITS = 8
SUFFIX_LENGTH = 3


def generate_number(prefix: str, now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    timestamp = str(now_ms)[-TIMESTAMP_DIGITS:]
    suffix = "".join(secrets.choice(BASE36_UPPER) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}{timestamp}{suffix}"


def generate_invoice_number(now_ms: Optional[int] = None) -> str:
    return generate_number(settings.INVOICE_NUMBER_PREFIX, now_ms)


def generate_return_number(now_ms: Optional[int] = None) -> str:
    return generate_number(settings.RETURN_NUMBER_PREFIX, now_ms)
