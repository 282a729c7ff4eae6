"""Product catalog."""
from typing import Any, Dict, List, Mapping

from ..app.errors import NotFoundError, ValidationError
from ..data.models import Product
from ..data.stores import ProductStore
from ..utils.logger import get_logger

logger = get_logger(__name__)

# API field name -> model attribute
FIELD_MAP = {
    "title": "title",
    "category": "category",
    "subCategory": "sub_category",
    "company": "company",
    "color": "color",
    "newPrice": "new_price",
    "prevPrice": "prev_price",
    "img": "img",
    "sku": "sku",
    "slug": "slug",
    "productNumber": "product_number",
}
REQUIRED_FIELDS = ("title", "category", "newPrice")


def _build(data: Mapping[str, Any]) -> Product:
    missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required product fields: {', '.join(missing)}", code="MissingFields")
    values = {attr: data.get(field) for field, attr in FIELD_MAP.items() if data.get(field) is not None}
    return Product(**values)


class ProductService:
    def __init__(self, db):
        self.products = ProductStore(db)

    def create(self, data: Mapping[str, Any]) -> Product:
        product = self.products.save(_build(data))
        logger.info("Product %s created", product.id)
        return product

    def bulk_create(self, rows: List[Mapping[str, Any]]) -> List[Product]:
        if not isinstance(rows, list) or not rows:
            raise ValidationError("Invalid product data. Expected an array of products.", code="InvalidPayload")
        # validate everything before inserting anything
        products = [_build(row) for row in rows]
        for product in products:
            self.products.add(product)
        self.products.commit()
        logger.info("Bulk-created %d products", len(products))
        return products

    def filter(self, category=None, sub_category=None, min_price=None, max_price=None) -> List[Product]:
        if sub_category and not category:
            raise ValidationError(
                'Filtering by subCategory requires a "category" query parameter to be specified.',
                code="MissingCategory")
        return self.products.filter(category, sub_category, min_price, max_price)

    def list_all(self) -> List[Product]:
        return self.products.filter()

    def search(self, text) -> List[Product]:
        if not text or not str(text).strip():
            raise ValidationError("search query parameter required", code="MissingQuery")
        return self.products.search(str(text))

    def get(self, product_id) -> Product:
        product = self.products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found for the given ID", code="ProductNotFound")
        return product

    def update(self, product_id, data: Mapping[str, Any]) -> Product:
        product = self.get(product_id)
        for field, attr in FIELD_MAP.items():
            if field in data and data[field] is not None:
                setattr(product, attr, data[field])
        self.products.commit()
        return product

    def delete(self, product_id) -> None:
        product = self.get(product_id)
        self.products.delete(product)
        self.products.commit()
        logger.info("Product %s deleted", product_id)

    def image_url(self, product_id) -> str:
        product = self.get(product_id)
        if not product.img:
            raise NotFoundError("Image URL not found for this product", code="ImageNotFound")
        return product.img

    @staticmethod
    def documents(products) -> List[Dict[str, Any]]:
        return [p.to_document() for p in products]
