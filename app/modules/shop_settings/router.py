from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.shop_settings.service import ShopSettingsService
from app.modules.shop_settings.schemas import ShopSettingsOut, ShopSettingsUpdate

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/", response_model=ShopSettingsOut)
def get_settings(db: Session = Depends(get_db)):
    """
    Obtener la configuración de la tienda

    Si no existe se crea con los valores por defecto (descuento 3%).
    """
    return ShopSettingsService(db).get_settings()


@router.put("/", response_model=ShopSettingsOut)
def update_settings(data: ShopSettingsUpdate, db: Session = Depends(get_db)):
    """Actualizar nombre, moneda y porcentaje de descuento"""
    return ShopSettingsService(db).update_settings(data)
