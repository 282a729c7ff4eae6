"""Product catalog endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ...data.models import User
from ...schemas.shop_models import ProductIn
from ...services.products import ProductService
from ..dependencies import get_product_service, require_admin

router = APIRouter(prefix="/api", tags=["products"])


@router.post("/products/add", status_code=status.HTTP_201_CREATED)
def add_product(body: ProductIn, _: User = Depends(require_admin),
                products: ProductService = Depends(get_product_service)):
    product = products.create(body.to_fields())
    return {"message": "Product added successfully", "product": product.to_document()}


@router.post("/products/bulk-create", status_code=status.HTTP_201_CREATED)
def bulk_create(body: List[ProductIn], _: User = Depends(require_admin),
                products: ProductService = Depends(get_product_service)):
    created = products.bulk_create([row.to_fields() for row in body])
    return {"message": f"{len(created)} products created successfully",
            "products": ProductService.documents(created)}


@router.get("/products")
def filter_products(category: Optional[str] = None, subCategory: Optional[str] = None,
                    minPrice: Optional[float] = None, maxPrice: Optional[float] = None,
                    products: ProductService = Depends(get_product_service)):
    return ProductService.documents(products.filter(category, subCategory, minPrice, maxPrice))


@router.get("/products/getAllProducts")
def all_products(products: ProductService = Depends(get_product_service)):
    return ProductService.documents(products.list_all())


@router.get("/products/search")
def search_products(query: Optional[str] = None, products: ProductService = Depends(get_product_service)):
    return ProductService.documents(products.search(query))


@router.get("/products/getProductImage/{product_id}")
def product_image(product_id: str, products: ProductService = Depends(get_product_service)):
    return {"imageUrl": products.image_url(product_id)}


@router.get("/product/{product_id}")
def get_product(product_id: str, products: ProductService = Depends(get_product_service)):
    return products.get(product_id).to_document()


@router.put("/product/update/{product_id}")
def update_product(product_id: str, body: ProductIn, _: User = Depends(require_admin),
                   products: ProductService = Depends(get_product_service)):
    product = products.update(product_id, body.to_fields())
    return {"message": "Product updated successfully", "product": product.to_document()}


@router.delete("/product/delete/{product_id}")
def delete_product(product_id: str, _: User = Depends(require_admin),
                   products: ProductService = Depends(get_product_service)):
    products.delete(product_id)
    return {"message": "Product deleted successfully"}
