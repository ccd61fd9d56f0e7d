"""
Seed script: Populate the catalog with demo pharmacy products and default shop settings.

What it creates:
- Shop settings (default discount 3%) if missing.
- Products (default 60) with unique codes, sale/base prices and initial stock.
- Optionally a few invoices committed through the billing engine, including
  negative-quantity lines that spin off returns.

Run from the project root:
    python scripts/seed_catalog.py --products 60 --invoices 10

Note: This is intended for development environments only.
"""

# Add project root to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import random
from decimal import Decimal

from app.database.database import SessionLocal, Base, sync_engine
from app.modules.products.models import Product
from app.modules.products.schemas import ProductCreate
from app.modules.products.service import ProductService
from app.modules.shop_settings.service import ShopSettingsService
from app.modules.billing.catalog import CatalogSnapshot
from app.modules.billing.engine import BillingEngine
from app.modules.billing.exceptions import ValidationError
from app.modules.billing.gateway import SqlBillingGateway
from app.modules.billing.queue import EngineState

import app.modules.invoices.models  # noqa: F401
import app.modules.returns.models  # noqa: F401
import app.modules.shop_settings.models  # noqa: F401
import app.modules.activity.models  # noqa: F401

NAMES = [
    "Paracetamol 500mg", "Ibuprofeno 400mg", "Amoxicilina 500mg", "Loratadina 10mg",
    "Omeprazol 20mg", "Vitamina C 1g", "Suero oral", "Alcohol antiséptico",
    "Gasas estériles", "Jarabe para la tos", "Acetaminofén infantil", "Crema antibiótica",
]


def pick(seq):
    return random.choice(seq)


def create_products(db, count: int):
    service = ProductService(db)
    created = []
    for i in range(count):
        code = f"MED{i + 1:04d}"
        if db.query(Product).filter(Product.code == code).first():
            continue
        base = Decimal(random.randint(200, 5000)) / Decimal(100)
        product = service.create_product(ProductCreate(
            code=code,
            name=f"{pick(NAMES)} #{i + 1}",
            price_base=base,
            price_sale=(base * Decimal('1.35')).quantize(Decimal('0.01')),
            quantity=random.randint(0, 200)
        ))
        created.append(product)
    return created


def create_invoices(db, count: int) -> int:
    gateway = SqlBillingGateway(db)
    discount = gateway.fetch_settings().discount_percentage
    engine = BillingEngine(EngineState(), gateway)
    committed = 0

    for _ in range(count):
        catalog = CatalogSnapshot(gateway.fetch_catalog())
        in_stock = [item for item in catalog.items() if item.available_qty > 0]
        if not in_stock:
            break

        for item in random.sample(in_stock, k=min(len(in_stock), random.randint(1, 4))):
            engine.add_line(catalog, item.id, random.randint(1, min(5, item.available_qty)))

        # De vez en cuando una devolución dentro de la factura
        if random.random() < 0.2:
            returned = pick(catalog.items())
            if engine.active_draft.find_line(returned.id) is None:
                engine.add_line(catalog, returned.id, -random.randint(1, 3))

        try:
            result = engine.commit(catalog, discount)
        except ValidationError as e:
            print(f"Skipped draft: {e.message}")
            continue
        committed += 1
        if not result.fully_applied:
            print(f"Invoice {result.invoice.invoice_number} has failed side effects")

    return committed


def main():
    parser = argparse.ArgumentParser(description="Seed demo catalog data")
    parser.add_argument("--products", type=int, default=60)
    parser.add_argument("--invoices", type=int, default=0)
    args = parser.parse_args()

    Base.metadata.create_all(bind=sync_engine)

    db = SessionLocal()
    try:
        shop_settings = ShopSettingsService(db).get_settings()
        print(f"Shop: {shop_settings.shop_name} (discount {shop_settings.discount_percentage}%)")

        print("Creating products...")
        products = create_products(db, args.products)
        print(f"Products created: {len(products)}")

        if args.invoices:
            print("Creating invoices through the billing engine...")
            print(f"Invoices created: {create_invoices(db, args.invoices)}")

        print("\nSeed completed.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
