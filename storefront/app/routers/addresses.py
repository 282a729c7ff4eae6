"""Saved address endpoints."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...data.models import User
from ...schemas.shop_models import AddressIn
from ...services.addresses import AddressService
from ..dependencies import ensure_owner_or_admin, get_address_service, get_current_user

router = APIRouter(prefix="/api/users", tags=["addresses"])


@router.get("/{user_id}/addresses")
def list_addresses(user_id: str, caller: User = Depends(get_current_user),
                   addresses: AddressService = Depends(get_address_service)):
    ensure_owner_or_admin(caller, user_id)
    return addresses.list_for_user(user_id)


@router.post("/addresses/add/{user_id}")
def add_address(user_id: str, body: AddressIn, caller: User = Depends(get_current_user),
                addresses: AddressService = Depends(get_address_service)):
    ensure_owner_or_admin(caller, user_id)
    saved, created = addresses.add(user_id, body.to_fields())
    return JSONResponse(status_code=201 if created else 200,
                        content={"message": "Address saved successfully", "addresses": saved})
