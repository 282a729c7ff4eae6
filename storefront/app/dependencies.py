"""FastAPI dependencies: database session, caller identity, service factories.

Every collaborator lives on ``app.state`` (see ``main.create_app``), so tests
can hand in fakes without patching module globals.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..data.database import session_scope
from ..data.models import User
from ..services.addresses import AddressService
from ..services.analytics import AnalyticsService
from ..services.cart_service import CartService
from ..services.order_lifecycle import OrderLifecycleManager
from ..services.password_reset import PasswordResetService
from ..services.products import ProductService
from ..services.reviews import ReviewService
from ..services.users import UserService
from ..services.wishlist import WishlistService
from .controller import ChatController
from .errors import AuthorizationError, ForbiddenError

bearer_scheme = HTTPBearer(auto_error=False)


def get_db(request: Request):
    yield from session_scope(request.app.state.session_factory)


def get_config(request: Request):
    return request.app.state.config


def get_user_service(request: Request, db: Session = Depends(get_db)) -> UserService:
    state = request.app.state
    return UserService(db, state.hasher, state.tokens, state.notifier, state.config.SHOP_NAME)


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
                     users: UserService = Depends(get_user_service)) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthorizationError("Not authorized, no token", code="MissingToken")
    return users.authenticate(credentials.credentials)


def get_optional_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
                      users: UserService = Depends(get_user_service)) -> Optional[User]:
    """Like ``get_current_user`` but anonymous callers get ``None``.

    A token that is present but invalid is still rejected.
    """
    if credentials is None or not credentials.credentials:
        return None
    return users.authenticate(credentials.credentials)


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError("Access denied. Admins only.", code="AdminOnly")
    return user


def ensure_owner_or_admin(user: User, owner_id) -> None:
    if user.is_admin or user.id == owner_id:
        return
    raise ForbiddenError("You can only access your own resources", code="NotOwner")


def get_password_reset_service(request: Request, db: Session = Depends(get_db)) -> PasswordResetService:
    state = request.app.state
    return PasswordResetService(db, state.hasher, state.tokens, state.notifier, state.reset_otp,
                                max_attempts=state.config.RESET_OTP_MAX_ATTEMPTS)


def get_lifecycle(request: Request, db: Session = Depends(get_db)) -> OrderLifecycleManager:
    state = request.app.state
    return OrderLifecycleManager(db, state.notifier, state.delivery_otp,
                                 max_otp_attempts=state.config.DELIVERY_OTP_MAX_ATTEMPTS)


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    return ProductService(db)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_wishlist_service(db: Session = Depends(get_db)) -> WishlistService:
    return WishlistService(db)


def get_review_service(request: Request, db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db, clock=request.app.state.clock)


def get_address_service(db: Session = Depends(get_db)) -> AddressService:
    return AddressService(db)


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


def get_chat_controller(request: Request, db: Session = Depends(get_db)) -> ChatController:
    state = request.app.state
    return ChatController(db, state.completion_client, state.config)


def get_payment_gateway(request: Request):
    return request.app.state.payment_gateway
