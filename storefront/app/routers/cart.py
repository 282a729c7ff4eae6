"""Cart endpoints. Quantities change by delta; an emptied cart is deleted."""
from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ...data.models import User
from ...schemas.shop_models import CartAddRequest
from ...services.cart_service import CartService
from ..dependencies import ensure_owner_or_admin, get_cart_service, get_current_user
from ..errors import ValidationError

router = APIRouter(prefix="/api", tags=["cart"])


@router.post("/users/cart/add")
def add_to_cart(body: CartAddRequest, user: User = Depends(get_current_user),
                carts: CartService = Depends(get_cart_service)):
    if not body.items:
        raise ValidationError("Missing required fields for cart operation.", code="MissingFields")
    cart, created = carts.add_items(user.id, [item.model_dump(by_alias=True) for item in body.items])
    if cart is None:
        return {"message": "Cart is now empty", "cart": {"userId": user.id, "items": []}}
    message = "Cart created and item added" if created else "Cart updated successfully"
    return JSONResponse(status_code=201 if created else 200,
                        content=jsonable_encoder({"message": message, "cart": cart.to_document()}))


@router.get("/user/cart/getItems")
def get_cart_items(user: User = Depends(get_current_user), carts: CartService = Depends(get_cart_service)):
    return carts.get_cart(user.id)


@router.delete("/users/cart/remove/{user_id}/{product_id}")
def remove_from_cart(user_id: str, product_id: str, caller: User = Depends(get_current_user),
                     carts: CartService = Depends(get_cart_service)):
    ensure_owner_or_admin(caller, user_id)
    cart = carts.remove_item(user_id, product_id)
    if cart is None:
        return {"message": "Item removed, cart is now empty", "cart": {"userId": user_id, "items": []}}
    return {"message": "Item removed from cart", "cart": cart.to_document()}


@router.delete("/users/cart/remove/{user_id}")
def delete_cart(user_id: str, caller: User = Depends(get_current_user),
                carts: CartService = Depends(get_cart_service)):
    ensure_owner_or_admin(caller, user_id)
    carts.delete_cart(user_id)
    return {"message": "Cart deleted successfully"}
