"""Demo catalog loader."""

import unittest

from storefront.data.database import build_engine, build_session_factory
from storefront.data.models import Product
from storefront.data.populate_db import populate_products


class TestPopulateProducts(unittest.TestCase):
    def test_loads_once(self):
        engine = build_engine("sqlite://")
        added = populate_products(engine)
        self.assertGreater(added, 0)
        self.assertEqual(populate_products(engine), 0)

        db = build_session_factory(engine)()
        try:
            self.assertEqual(db.query(Product).count(), added)
            runner = db.query(Product).filter(Product.sku == "SHOE-TR2-BL").one()
            self.assertEqual(runner.prev_price, 119.99)
        finally:
            db.close()
            engine.dispose()


if __name__ == "__main__":
    unittest.main()
