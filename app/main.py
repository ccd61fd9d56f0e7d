from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import settings
from app.database.database import sync_engine, Base
from app.common.middleware import SessionMiddleware, SecurityHeadersMiddleware

from app.modules.billing.router import router as billing_router
from app.modules.billing.dependencies import active_session_count
from app.modules.invoices.router import router as invoices_router
from app.modules.returns.router import router as returns_router
from app.modules.shop_settings.router import router as settings_router

# Modelos registrados en Base.metadata
import app.modules.products.models
import app.modules.invoices.models
import app.modules.returns.models
import app.modules.shop_settings.models
import app.modules.activity.models

logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
is_production = settings.ENVIRONMENT == "production"

app = FastAPI(
    title="Shop Billing API",
    description="Invoice drafts, stock reconciliation and pending-invoice queue for the shop counter",
    version=API_VERSION,
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc"
)

# El último middleware agregado es el primero en ejecutarse
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(SessionMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.SESSION_HEADER],
)

app.include_router(billing_router)
app.include_router(invoices_router)
app.include_router(returns_router)
app.include_router(settings_router)

# Fuera de producción el esquema se crea al arrancar; en producción se usan migraciones
if settings.ENVIRONMENT in ("development", "test"):
    Base.metadata.create_all(bind=sync_engine)


@app.get("/")
async def read_root():
    return {
        "message": "Shop Billing API is running",
        "version": API_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "billing_sessions": active_session_count()
    }


@app.on_event("startup")
async def startup_event():
    logger.info(f"Shop Billing API {API_VERSION} starting ({settings.ENVIRONMENT}, debug={settings.DEBUG})")
    logger.info(f"Default discount: {settings.DEFAULT_DISCOUNT_PERCENTAGE}%")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shop Billing API shutting down, {active_session_count()} billing session(s) in memory dropped")
