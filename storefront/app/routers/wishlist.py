"""Wishlist endpoints for the signed-in user."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...data.models import User
from ...services.wishlist import WishlistService
from ..dependencies import get_current_user, get_wishlist_service

router = APIRouter(prefix="/api/users/wishlist", tags=["wishlist"])


@router.post("/add/{product_id}")
def add_to_wishlist(product_id: str, user: User = Depends(get_current_user),
                    wishlists: WishlistService = Depends(get_wishlist_service)):
    products, created = wishlists.add(user.id, product_id)
    return JSONResponse(status_code=201 if created else 200,
                        content={"message": "Product added to wishlist", "products": products})


@router.get("/getItems")
def get_wishlist(user: User = Depends(get_current_user),
                 wishlists: WishlistService = Depends(get_wishlist_service)):
    return wishlists.get_items(user.id)


@router.delete("/remove/{product_id}")
def remove_from_wishlist(product_id: str, user: User = Depends(get_current_user),
                         wishlists: WishlistService = Depends(get_wishlist_service)):
    products = wishlists.remove(user.id, product_id)
    return {"message": "Product removed from wishlist", "products": products}
