"""
Fixtures compartidas para los tests

La base de datos de tests es SQLite en memoria (una sola conexión compartida),
así que el entorno se fija antes de importar la aplicación.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.main import app
from app.database.database import Base, SessionLocal, get_db, sync_engine
from app.modules.billing.dependencies import reset_engine_states
from app.modules.products.schemas import ProductCreate
from app.modules.products.service import ProductService


@pytest.fixture(scope="function")
def db_session() -> Session:
    """Sesión aislada por test: el esquema se crea y se elimina en cada uno"""
    Base.metadata.create_all(bind=sync_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=sync_engine)


@pytest.fixture
def client(db_session: Session):
    """TestClient que usa la sesión del test y un estado de motor limpio"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    reset_engine_states()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    reset_engine_states()


@pytest.fixture
def session_headers():
    return {"X-Session-ID": "caja-1"}


@pytest.fixture
def sample_products(db_session: Session):
    """Catálogo pequeño con stock conocido"""
    service = ProductService(db_session)
    return [
        service.create_product(ProductCreate(
            code="PARA500", name="Paracetamol 500mg", price_sale=Decimal("10.00"), quantity=10
        )),
        service.create_product(ProductCreate(
            code="AMOX250", name="Amoxicilina 250mg", price_sale=Decimal("20.00"), quantity=5
        )),
        service.create_product(ProductCreate(
            code="IBU400", name="Ibuprofeno 400mg", price_sale=Decimal("15.00"), quantity=0
        )),
    ]
