"""Accounts: signup, login, profiles, admin bootstrap."""
import hmac
from typing import List, Optional, Tuple

from ..app.errors import (AuthorizationError, ForbiddenError, NotFoundError,
                          StateConflictError, ValidationError)
from ..data.models import User, UserRole
from ..data.stores import UserStore
from ..utils.logger import get_logger
from ..utils.security import PasswordHasher, TokenService
from . import emails
from .notifier import Notifier

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


class UserService:
    def __init__(self, db, hasher: PasswordHasher, tokens: TokenService, notifier: Notifier,
                 shop_name: str = "our shop"):
        self.users = UserStore(db)
        self.hasher = hasher
        self.tokens = tokens
        self.notifier = notifier
        self.shop_name = shop_name

    def _check_conflicts(self, username: str, email: str, exclude_id: Optional[str] = None):
        by_name = self.users.get_by_username(username)
        if by_name is not None and by_name.id != exclude_id:
            raise StateConflictError("Username already exists", code="UsernameTaken")
        by_email = self.users.get_by_email(email)
        if by_email is not None and by_email.id != exclude_id:
            raise StateConflictError("Email already exists", code="EmailTaken")

    def signup(self, username, email, password) -> Tuple[User, str]:
        username = _clean(username)
        email = _clean(email).lower()
        password = password if isinstance(password, str) else ""
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required", code="MissingFields")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                                  code="WeakPassword")
        self._check_conflicts(username, email)

        user = User(username=username, email=email, password_hash=self.hasher.hash(password),
                    role=UserRole.user.value, attributes={})
        self.users.save(user)
        logger.info("User %s signed up", user.id)
        self.notifier.notify(emails.welcome(user, self.shop_name))
        return user, self.tokens.issue_auth_token(user)

    def login(self, email, password) -> Tuple[User, str]:
        email = _clean(email).lower()
        password = password if isinstance(password, str) else ""
        if not email or not password:
            raise ValidationError("Email and password are required", code="MissingFields")
        user = self.users.get_by_email(email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            raise AuthorizationError("Invalid credentials", code="InvalidCredentials")
        return user, self.tokens.issue_auth_token(user)

    def authenticate(self, token: str) -> User:
        claims = self.tokens.decode_auth_token(token)
        user = self.users.get(claims.get("id"))
        if user is None:
            raise AuthorizationError("Not authorized, user not found", code="UserNotFound")
        return user

    def list_users(self) -> List[User]:
        return self.users.list_all()

    def get_user(self, user_id) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found", code="UserNotFound")
        return user

    def update_profile(self, user_id, username, email) -> User:
        username = _clean(username)
        email = _clean(email).lower()
        if not username or not email:
            raise ValidationError("Username and email are required", code="MissingFields")
        user = self.get_user(user_id)
        self._check_conflicts(username, email, exclude_id=user.id)
        user.username = username
        user.email = email
        self.users.commit()
        return user

    def create_admin(self, secret_key, configured_secret, username, email, password) -> User:
        if not configured_secret or not isinstance(secret_key, str) or \
                not hmac.compare_digest(secret_key.encode("utf-8"), configured_secret.encode("utf-8")):
            raise ForbiddenError("Unauthorized", code="InvalidAdminSecret")
        if self.users.find_admin() is not None:
            raise StateConflictError("Admin already exists", code="AdminExists")
        username = _clean(username)
        email = _clean(email).lower()
        if not password:
            raise ValidationError("Password is required", code="MissingFields")
        if not username or not email:
            raise ValidationError("Username and email are required", code="MissingFields")
        self._check_conflicts(username, email)
        admin = User(username=username, email=email, password_hash=self.hasher.hash(password),
                     role=UserRole.admin.value, attributes={})
        self.users.save(admin)
        logger.info("Admin account %s created", admin.id)
        return admin
