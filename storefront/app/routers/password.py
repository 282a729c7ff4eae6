"""Password reset endpoints: forgot -> validate OTP -> reset."""
from fastapi import APIRouter, Depends

from ...schemas.user_models import ForgotPasswordRequest, ResetPasswordRequest, ValidateOtpRequest
from ...services.password_reset import PasswordResetService
from ..dependencies import get_password_reset_service

router = APIRouter(prefix="/api/users", tags=["password"])


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest,
                    resets: PasswordResetService = Depends(get_password_reset_service)):
    return {"message": resets.request_reset(body.email)}


@router.post("/validate-otp")
def validate_otp(body: ValidateOtpRequest, resets: PasswordResetService = Depends(get_password_reset_service)):
    token = resets.validate_otp(body.email, body.otp)
    return {"message": "OTP verified", "resetToken": token}


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest,
                   resets: PasswordResetService = Depends(get_password_reset_service)):
    resets.reset_password(body.reset_token, body.new_password)
    return {"message": "Password reset successful"}
