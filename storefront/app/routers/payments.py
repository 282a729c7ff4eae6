"""Payment endpoints backed by the injected gateway."""
from fastapi import APIRouter, Depends, Request

from ...data.models import User
from ...schemas.shop_models import PaymentOrderRequest, PaymentVerification
from ...services.payments import PaymentGateway, amount_to_paise
from ...utils.logger import get_logger
from ..dependencies import get_current_user, get_payment_gateway
from ..errors import ValidationError

router = APIRouter(prefix="/api", tags=["payments"])
logger = get_logger(__name__)


@router.get("/payment")
def payment_info(request: Request):
    return {"message": "Payment API is running", "keyId": request.app.state.config.RAZORPAY_KEY_ID}


@router.post("/create-order")
def create_payment_order(body: PaymentOrderRequest, user: User = Depends(get_current_user),
                         gateway: PaymentGateway = Depends(get_payment_gateway)):
    amount = amount_to_paise(body.amount_in_rupees, body.amount_in_paise)
    notes = dict(body.receipt_notes or {}, userId=user.id)
    order = gateway.create_order(amount, notes)
    logger.info("Payment order %s created for user %s (%d paise)", order.get("id"), user.id, amount)
    return order


@router.post("/verify-payment")
def verify_payment(body: PaymentVerification, gateway: PaymentGateway = Depends(get_payment_gateway)):
    if not gateway.verify_signature(body.razorpay_order_id, body.razorpay_payment_id, body.razorpay_signature):
        logger.warning("Payment signature mismatch for order %s", body.razorpay_order_id)
        raise ValidationError("Invalid signature", code="InvalidSignature")
    return {"success": True, "message": "Payment verified"}
