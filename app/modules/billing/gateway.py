"""
Colaboradores externos del motor de facturación.

BillingGateway describe las llamadas que el motor consume; SqlBillingGateway
las implementa sobre los servicios SQLAlchemy. Cada llamada confirma su propia
transacción: no hay atomicidad entre llamadas.
"""
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from app.modules.activity.service import ActivityService
from app.modules.invoices.schemas import CommittedInvoice, InvoiceDraftSnapshot
from app.modules.invoices.service import InvoiceService
from app.modules.products.schemas import CatalogItem
from app.modules.products.service import ProductService
from app.modules.returns.schemas import ReturnRecord
from app.modules.returns.service import ReturnService
from app.modules.shop_settings.schemas import ShopSettingsOut
from app.modules.shop_settings.service import ShopSettingsService


class BillingGateway(Protocol):
    def fetch_catalog(self) -> List[CatalogItem]: ...

    def fetch_settings(self) -> ShopSettingsOut: ...

    def create_invoice(self, snapshot: InvoiceDraftSnapshot) -> CommittedInvoice: ...

    def update_item_stock(self, item_id: str, new_qty: int) -> None: ...

    def create_return(self, record: ReturnRecord) -> None: ...

    def log_activity(self, action: str, description: str, reference: Optional[str] = None) -> None: ...


class SqlBillingGateway:
    def __init__(self, db: Session):
        self.db = db
        self.products = ProductService(db)
        self.invoices = InvoiceService(db)
        self.returns = ReturnService(db)
        self.shop_settings = ShopSettingsService(db)
        self.activity = ActivityService(db)

    def fetch_catalog(self) -> List[CatalogItem]:
        return self.products.fetch_catalog()

    def fetch_settings(self) -> ShopSettingsOut:
        return ShopSettingsOut.model_validate(self.shop_settings.get_settings())

    def create_invoice(self, snapshot: InvoiceDraftSnapshot) -> CommittedInvoice:
        return self.invoices.create_invoice(snapshot)

    def update_item_stock(self, item_id: str, new_qty: int) -> None:
        self.products.update_stock(UUID(item_id), new_qty)

    def create_return(self, record: ReturnRecord) -> None:
        self.returns.create_return(record)

    def log_activity(self, action: str, description: str, reference: Optional[str] = None) -> None:
        self.activity.log_activity(action, description, reference)
