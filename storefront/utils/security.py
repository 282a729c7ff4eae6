"""Security helpers: password hashing, signed tokens, PII masking for logs."""
import re
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt

from ..app.errors import AuthorizationError, StateConflictError, ValidationError
from .clock import utcnow

_ALGORITHM = "HS256"


class PasswordHasher:
    """bcrypt wrapper; ``rounds`` is lowered in tests to keep them fast."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: Optional[str]) -> bool:
        if not plain or not hashed:
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # malformed hash in storage
            return False


class TokenService:
    """Issues and verifies HS256 JWTs for login sessions and password resets."""

    def __init__(self, secret: str, expires_days: int = 7, reset_minutes: int = 15, clock=utcnow):
        self.secret = secret
        self.expires_days = expires_days
        self.reset_minutes = reset_minutes
        self.clock = clock

    def _encode(self, payload: Dict[str, Any], lifetime: timedelta) -> str:
        now = self.clock()
        claims = dict(payload)
        claims["iat"] = now
        claims["exp"] = now + lifetime
        return jwt.encode(claims, self.secret, algorithm=_ALGORITHM)

    def issue_auth_token(self, user) -> str:
        payload = {
            "user": {
                "id": user.id,
                "email": user.email,
                "role": user.role,
                "userName": user.username,
            }
        }
        return self._encode(payload, timedelta(days=self.expires_days))

    def decode_auth_token(self, token: str) -> Dict[str, Any]:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthorizationError("Token expired", code="TokenExpired")
        except jwt.InvalidTokenError:
            raise AuthorizationError("Invalid token", code="InvalidToken")
        user = claims.get("user")
        if not isinstance(user, dict) or not user.get("id"):
            raise AuthorizationError("Invalid token", code="InvalidToken")
        return user

    def issue_reset_token(self, user_id: str, token_id: Optional[str] = None) -> str:
        payload = {"id": user_id, "purpose": "password_reset"}
        if token_id:
            payload["jti"] = token_id
        return self._encode(payload, timedelta(minutes=self.reset_minutes))

    def decode_reset_token(self, token: str) -> Dict[str, Any]:
        """Return the reset claims (``id`` and optional ``jti``)."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=[_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise StateConflictError("Reset token expired", code="ResetTokenExpired")
        except jwt.InvalidTokenError:
            raise ValidationError("Invalid reset token", code="InvalidResetToken")
        if claims.get("purpose") != "password_reset" or not claims.get("id"):
            raise ValidationError("Invalid reset token", code="InvalidResetToken")
        return {"id": claims["id"], "jti": claims.get("jti")}


def redact_address(address) -> str:
    """Keep only the last two comma-separated segments of an address."""
    if not address or not isinstance(address, str):
        return "Redacted"
    parts = [p.strip() for p in address.split(",") if p.strip()]
    if not parts:
        return "Redacted"
    return f"{', '.join(parts[-2:])} (full address redacted)"


def mask_pii(text: str) -> str:
    # phone numbers and long digit runs, then email addresses
    masked = re.sub(r"\b\d{10,}\b", "[REDACTED]", text or "")
    masked = re.sub(r"[\w.+-]+@[\w-]+\.[\w.]+", "[EMAIL]", masked)
    return masked


def preview(text: str, limit: int = 120) -> str:
    text = mask_pii(text or "")
    return text if len(text) <= limit else text[:limit] + "..."
