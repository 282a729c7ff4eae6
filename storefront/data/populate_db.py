"""Seed the catalog from ``raw/catalog.csv`` (demo data)."""
import csv
import os

from .database import build_engine, build_session_factory, create_tables
from .models import Product

CATALOG_CSV_PATH = os.path.join(os.path.dirname(__file__), "raw", "catalog.csv")


def _price(value):
    value = (value or "").replace("$", "").strip()
    return float(value) if value else None


def read_catalog(path: str = CATALOG_CSV_PATH):
    with open(path, mode="r", encoding="utf-8") as csvfile:
        for row in csv.DictReader(csvfile):
            yield Product(
                title=row["title"],
                category=row["category"],
                sub_category=row.get("sub_category") or None,
                company=row.get("company") or None,
                color=row.get("color") or None,
                new_price=_price(row["new_price"]),
                prev_price=_price(row.get("prev_price")),
                img=row.get("img") or None,
                sku=row.get("sku") or None,
                slug=row.get("slug") or None,
            )


def populate_products(engine=None, path: str = CATALOG_CSV_PATH) -> int:
    """Insert the demo catalog into an empty products table. Returns rows added."""
    engine = engine or build_engine(os.getenv("DATABASE_URL"))
    create_tables(engine)

    db = build_session_factory(engine)()
    try:
        if db.query(Product).count() > 0:
            print("Products table is not empty. Skipping population.")
            return 0
        products = list(read_catalog(path))
        db.add_all(products)
        db.commit()
        print(f"Successfully populated the products table ({len(products)} products).")
        return len(products)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    populate_products()
