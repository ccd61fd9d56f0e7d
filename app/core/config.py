from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from decimal import Decimal
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'billing_user'
    POSTGRES_PASSWORD: str = 'billing_pass'
    POSTGRES_DB: str = 'billing_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # Sobrescribe la URL de Postgres (p.ej. sqlite:// en tests)

    # Billing policy
    DEFAULT_DISCOUNT_PERCENTAGE: Decimal = Decimal('3')
    MIN_LINE_QUANTITY: int = -999  # Piso para cantidades negativas (devolución dentro de la factura)
    INVOICE_NUMBER_PREFIX: str = 'INV'
    RETURN_NUMBER_PREFIX: str = 'RET'
    DEFAULT_SHOP_NAME: str = 'Medical Shop'
    DEFAULT_CURRENCY: str = '$'

    # Session header used by the billing endpoints
    SESSION_HEADER: str = 'X-Session-ID'
    MAX_SESSION_ID_LENGTH: int = 64
    MAX_BILLING_SESSIONS: int = 500  # Estados en memoria; se descarta el de uso más antiguo

    # Orígenes permitidos para la caja (separados por coma)
    CORS_ORIGINS: str = "*"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("MIN_LINE_QUANTITY")
    @classmethod
    def validate_min_line_quantity(cls, v):
        if v > 0:
            raise ValueError("MIN_LINE_QUANTITY no puede ser positivo")
        return v

    @field_validator("MAX_BILLING_SESSIONS")
    @classmethod
    def validate_max_billing_sessions(cls, v):
        if v < 1:
            raise ValueError("MAX_BILLING_SESSIONS debe ser al menos 1")
        return v

    @field_validator("DEFAULT_DISCOUNT_PERCENTAGE")
    @classmethod
    def validate_default_discount(cls, v):
        if v < 0 or v > 100:
            raise ValueError("DEFAULT_DISCOUNT_PERCENTAGE debe estar entre 0 y 100")
        return v

settings = Settings()
