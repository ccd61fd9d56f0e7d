from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging

from app.core.config import settings
from app.modules.shop_settings.models import ShopSettings
from app.modules.shop_settings.schemas import ShopSettingsUpdate

logger = logging.getLogger(__name__)


class ShopSettingsService:
    def __init__(self, db: Session):
        self.db = db

    def get_settings(self) -> ShopSettings:
        """Obtener la configuración, creando la de por defecto si no existe"""
        shop_settings = self.db.query(ShopSettings).first()
        if shop_settings:
            return shop_settings

        shop_settings = ShopSettings(
            shop_name=settings.DEFAULT_SHOP_NAME,
            currency=settings.DEFAULT_CURRENCY,
            discount_percentage=settings.DEFAULT_DISCOUNT_PERCENTAGE
        )
        self.db.add(shop_settings)
        self.db.commit()
        self.db.refresh(shop_settings)
        logger.info("Default shop settings created")
        return shop_settings

    def update_settings(self, data: ShopSettingsUpdate) -> ShopSettings:
        """Actualizar la configuración de la tienda"""
        shop_settings = self.get_settings()
        try:
            shop_settings.shop_name = data.shop_name
            shop_settings.currency = data.currency
            shop_settings.discount_percentage = data.discount_percentage
            self.db.commit()
            self.db.refresh(shop_settings)
            return shop_settings
        except Exception as e:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Error actualizando la configuración: {str(e)}"
            )
