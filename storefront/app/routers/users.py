"""Account endpoints."""
from fastapi import APIRouter, Depends, Request, status

from ...data.models import User
from ...schemas.user_models import AdminCreate, LoginRequest, ProfileUpdate, SignupRequest
from ...services.users import UserService
from ..dependencies import ensure_owner_or_admin, get_current_user, get_user_service, require_admin

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, users: UserService = Depends(get_user_service)):
    user, token = users.signup(body.username, body.email, body.password)
    return {"message": "User registered successfully", "token": token, "user": user.to_public()}


@router.post("/login")
def login(body: LoginRequest, users: UserService = Depends(get_user_service)):
    user, token = users.login(body.email, body.password)
    return {"message": "Login successful", "token": token, "user": user.to_public()}


@router.post("/admin/create", status_code=status.HTTP_201_CREATED)
def create_admin(body: AdminCreate, request: Request, users: UserService = Depends(get_user_service)):
    admin = users.create_admin(body.secret_key, request.app.state.config.ADMIN_SECRET_KEY,
                               body.username, body.email, body.password)
    return {"message": "Admin created successfully", "user": admin.to_public()}


@router.get("")
def list_users(_: User = Depends(require_admin), users: UserService = Depends(get_user_service)):
    return [u.to_public() for u in users.list_users()]


@router.get("/{user_id}")
def get_user(user_id: str, caller: User = Depends(get_current_user),
             users: UserService = Depends(get_user_service)):
    ensure_owner_or_admin(caller, user_id)
    return users.get_user(user_id).to_public()


@router.put("/{user_id}/edit-profile")
def edit_profile(user_id: str, body: ProfileUpdate, caller: User = Depends(get_current_user),
                 users: UserService = Depends(get_user_service)):
    ensure_owner_or_admin(caller, user_id)
    user = users.update_profile(user_id, body.username, body.email)
    return {"message": "Profile updated successfully", "user": user.to_public()}
