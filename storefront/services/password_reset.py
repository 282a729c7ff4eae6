"""Password reset: emailed OTP -> short-lived reset token -> new password.

The reset state lives on the user row as::

    {otpHash, otpExpires, otpAttempts, verified, resetTokenUsed, tokenId}

A reset token can be redeemed once, and only for the flow that issued it.
"""
import secrets
from datetime import datetime

from ..app.errors import OtpAttemptsExceeded, StateConflictError, ValidationError
from ..data.stores import UserStore
from ..utils.logger import get_logger
from ..utils.security import PasswordHasher, TokenService
from . import emails
from .notifier import Notifier
from .otp import OtpGenerator
from .users import MIN_PASSWORD_LENGTH

logger = get_logger(__name__)

GENERIC_SENT_MESSAGE = "If an account with that email exists, an OTP has been sent."


class PasswordResetService:
    def __init__(self, db, hasher: PasswordHasher, tokens: TokenService, notifier: Notifier,
                 otp: OtpGenerator, max_attempts: int = 5):
        self.users = UserStore(db)
        self.hasher = hasher
        self.tokens = tokens
        self.notifier = notifier
        self.otp = otp
        self.max_attempts = max_attempts

    def request_reset(self, email) -> str:
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Email is required", code="MissingFields")
        user = self.users.get_by_email(email)
        if user is None:
            # same answer either way so accounts can't be enumerated
            return GENERIC_SENT_MESSAGE

        issued = self.otp.issue()
        user.reset_password = {
            "otpHash": issued.hashed,
            "otpExpires": issued.expires_at.isoformat(),
            "otpAttempts": 0,
            "verified": False,
            "resetTokenUsed": False,
            "tokenId": None,
        }
        self.users.commit()
        ttl_minutes = int(self.otp.ttl.total_seconds() // 60)
        self.notifier.notify(emails.password_reset_otp(user, issued.code, ttl_minutes))
        return GENERIC_SENT_MESSAGE

    def validate_otp(self, email, code) -> str:
        if not email or not code:
            raise ValidationError("Email and OTP are required", code="MissingFields")
        user = self.users.get_by_email(email)
        state = dict(user.reset_password or {}) if user is not None else {}
        if not state.get("otpHash"):
            raise StateConflictError("Invalid OTP or expired", code="NoOtpIssued")

        expires = state.get("otpExpires")
        if not expires or self.otp.is_expired(datetime.fromisoformat(expires)):
            user.reset_password = None
            self.users.commit()
            raise StateConflictError("OTP expired", code="OtpExpired")
        if (state.get("otpAttempts") or 0) >= self.max_attempts:
            raise OtpAttemptsExceeded("Too many OTP attempts. Please request a new OTP.")
        if not self.otp.matches(code, state["otpHash"]):
            state["otpAttempts"] = (state.get("otpAttempts") or 0) + 1
            user.reset_password = state
            self.users.commit()
            raise StateConflictError("Invalid OTP", code="OtpMismatch")

        state["verified"] = True
        state["otpAttempts"] = 0
        state["tokenId"] = secrets.token_hex(8)
        user.reset_password = state
        self.users.commit()
        return self.tokens.issue_reset_token(user.id, state["tokenId"])

    def reset_password(self, reset_token, new_password) -> None:
        if not reset_token or not new_password:
            raise ValidationError("resetToken and newPassword are required", code="MissingFields")
        claims = self.tokens.decode_reset_token(reset_token)
        user = self.users.get(claims["id"])
        state = dict(user.reset_password or {}) if user is not None else {}
        if state.get("resetTokenUsed"):
            raise StateConflictError("Reset token already used", code="ResetTokenUsed")
        if not state.get("verified") or (state.get("tokenId") and state["tokenId"] != claims.get("jti")):
            raise StateConflictError("Invalid or expired reset flow", code="ResetFlowInvalid")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                                  code="WeakPassword")
        if self.hasher.verify(new_password, user.password_hash):
            raise ValidationError("New password cannot be the same as the old password", code="PasswordReused")

        user.password_hash = self.hasher.hash(new_password)
        user.reset_password = {
            "otpHash": None,
            "otpExpires": None,
            "otpAttempts": 0,
            "verified": False,
            "resetTokenUsed": True,
            "tokenId": None,
        }
        self.users.commit()
        logger.info("Password reset completed for user %s", user.id)
        self.notifier.notify(emails.password_changed(user))
