"""Order endpoints: create, checkout, status changes, delivery OTP, returns."""
from typing import Optional

from fastapi import APIRouter, Depends, status

from ...data.models import Order, User
from ...schemas.order_models import (CancelItemRequest, CheckoutRequest, OrderCreate, StatusUpdate,
                                     VerifyOtpRequest)
from ...services.addresses import AddressService, format_address
from ...services.order_lifecycle import OrderLifecycleManager
from ..dependencies import (ensure_owner_or_admin, get_address_service, get_current_user, get_lifecycle,
                            require_admin)
from ..errors import ValidationError

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _owned(lifecycle: OrderLifecycleManager, order_id: str, caller: User) -> Order:
    order = lifecycle.get_order(order_id)
    ensure_owner_or_admin(caller, order.user_id)
    return order


@router.post("/add", status_code=status.HTTP_201_CREATED)
def add_order(body: OrderCreate, caller: User = Depends(get_current_user),
              lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    user_id = body.user_id or caller.id
    ensure_owner_or_admin(caller, user_id)
    items = [item.model_dump(by_alias=True) for item in body.items]
    order = lifecycle.create_order(user_id, items, body.shipping_address,
                                   total_amount=body.total_amount, status=body.status)
    return {"message": "Order created successfully", "order": order.to_document()}


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
def checkout(body: CheckoutRequest, caller: User = Depends(get_current_user),
             lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
             addresses: AddressService = Depends(get_address_service)):
    shipping_address: Optional[str] = body.shipping_address
    if not shipping_address and body.address_index is not None:
        saved = addresses.list_for_user(caller.id)
        if not 0 <= body.address_index < len(saved):
            raise ValidationError("No saved address at that index", code="InvalidAddressIndex")
        shipping_address = format_address(saved[body.address_index])
    order = lifecycle.checkout(caller.id, shipping_address)
    return {"message": "Order placed successfully", "order": order.to_document()}


@router.get("/getOrders")
def get_orders(caller: User = Depends(get_current_user),
               lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    return lifecycle.list_for_user(caller.id)


@router.get("/getAllOrders")
def get_all_orders(page: int = 1, limit: int = 10, sortBy: str = "orderDate", sortOrder: str = "desc",
                   _: User = Depends(require_admin),
                   lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    return lifecycle.list_all(page, limit, sortBy, sortOrder)


@router.put("/updateStatus/{order_id}")
def update_status(order_id: str, body: StatusUpdate, _: User = Depends(require_admin),
                  lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    order = lifecycle.update_status(order_id, body.status)
    return {"message": f"Order status updated to {order.status.value}", "order": order.to_document()}


@router.get("/status/{order_id}")
def order_status(order_id: str, caller: User = Depends(get_current_user),
                 lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    order = _owned(lifecycle, order_id, caller)
    return {"status": order.status.value}


@router.post("/verify-otp/{order_id}")
def verify_otp(order_id: str, body: VerifyOtpRequest, caller: User = Depends(get_current_user),
               lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    _owned(lifecycle, order_id, caller)
    order = lifecycle.verify_delivery_otp(order_id, body.user_otp)
    return {"message": "Order marked as Delivered", "order": order.to_document()}


@router.post("/cancel-item/{order_id}")
def cancel_item(order_id: str, body: CancelItemRequest, caller: User = Depends(get_current_user),
                lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    _owned(lifecycle, order_id, caller)
    order = lifecycle.cancel_item(order_id, body.product_id)
    return {"message": "Item removed from order", "order": order.to_document()}


@router.post("/request-return/{order_id}")
def request_return(order_id: str, caller: User = Depends(get_current_user),
                   lifecycle: OrderLifecycleManager = Depends(get_lifecycle)):
    _owned(lifecycle, order_id, caller)
    order = lifecycle.request_return(order_id)
    return {"message": "Return requested", "order": order.to_document()}
