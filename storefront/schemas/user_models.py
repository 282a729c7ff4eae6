"""Account and password-reset payloads."""
from typing import Optional

from .base import CamelModel


class SignupRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None


class AdminCreate(CamelModel):
    secret_key: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class ValidateOtpRequest(CamelModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    reset_token: Optional[str] = None
    new_password: Optional[str] = None
