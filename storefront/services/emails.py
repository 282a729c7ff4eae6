"""Transactional email templates."""
from html import escape

from .notifier import Notification

_FOOTER = '<hr/><p style="color:#666">E-Commerce Team</p>'


def _name(user) -> str:
    return (getattr(user, "username", None) or "Customer") if user is not None else "Customer"


def _email(user):
    return getattr(user, "email", None) if user is not None else None


def _wrap(body: str) -> str:
    return f'<div style="font-family:Arial,sans-serif;color:#222">{body}{_FOOTER}</div>'


def _item_line(item) -> str:
    return f"{item.get('title') or item.get('productId') or 'Item'} - Qty: {item.get('quantity')} - Price: {item.get('price')}"


def order_confirmation(user, order) -> Notification:
    items = order.items or []
    text = (f"Hi {_name(user)},\n\nYour order has been placed successfully.\n\n"
            f"Order ID: {order.id}\nStatus: {order.status.value}\nTotal: {order.total_amount}\n\n"
            "Items:\n" + "\n".join(_item_line(i) for i in items) +
            f"\n\nShipping Address:\n{order.shipping_address}\n\nThank you for shopping with us.")
    html = _wrap(
        "<h2>Order Confirmation</h2>"
        f"<p>Hi {escape(_name(user))},</p><p>Your order has been placed successfully.</p>"
        f"<p><strong>Order ID:</strong> {order.id}</p>"
        f"<p><strong>Status:</strong> {escape(order.status.value)}</p>"
        f"<p><strong>Total:</strong> {order.total_amount}</p>"
        "<p><strong>Items:</strong></p><ul>" +
        "".join(f"<li>{escape(_item_line(i))}</li>" for i in items) + "</ul>"
        f"<p><strong>Shipping Address:</strong></p><pre>{escape(order.shipping_address or '')}</pre>"
    )
    return Notification(_email(user), "Order Confirmation - Thank you for your purchase", text, html,
                        kind="order_confirmation")


def delivery_otp(user, order, code: str, ttl_minutes: int) -> Notification:
    text = f"Your delivery OTP is {code}. Valid for {ttl_minutes} minutes. Order: {order.id}"
    html = _wrap(
        "<h2>Your order is on the way</h2>"
        f"<p>Hi {escape(_name(user))},</p><p>Your delivery OTP is:</p>"
        f'<div style="font-size:24px;font-weight:700;letter-spacing:3px;margin:10px 0">{code}</div>'
        f"<p>This OTP is valid for <strong>{ttl_minutes} minutes</strong>. "
        "Share it with the delivery agent to complete delivery.</p>"
        f"<p>Order ID: <strong>{order.id}</strong></p>"
    )
    return Notification(_email(user), "Your Delivery OTP", text, html, kind="delivery_otp")


def status_update(user, order) -> Notification:
    status = order.status.value
    text = (f"Hi {_name(user)},\n\nYour order status has been updated.\n\n"
            f"Order ID: {order.id}\nNew Status: {status}\n\nThank you.")
    html = _wrap(
        f"<p>Hi {escape(_name(user))},</p>"
        f"<p>Your order <strong>{order.id}</strong> status has been updated to <strong>{escape(status)}</strong>.</p>"
        "<p>Thanks for shopping with us.</p>"
    )
    return Notification(_email(user), f"Order Update - {status}", text, html, kind="status_update")


def delivered(user, order) -> Notification:
    text = (f"Hi {_name(user)},\n\nYour order {order.id} has been delivered successfully.\n\n"
            "Thank you for shopping with us.")
    html = _wrap(
        f"<p>Hi {escape(_name(user))},</p>"
        f"<p>Your order <strong>{order.id}</strong> has been delivered successfully.</p>"
        "<p>We hope you enjoy your purchase.</p>"
    )
    return Notification(_email(user), "Order Delivered - Thank you", text, html, kind="delivered")


def item_removed(user, order, item) -> Notification:
    text = (f"Hi {_name(user)},\n\nAn item was removed from your order {order.id}.\n\n"
            f"Removed Item: {item.get('title') or item.get('productId')}\nQuantity: {item.get('quantity')}\n\n"
            f"New total: {order.total_amount}\n\nIf you didn't request this, contact support.")
    html = _wrap(
        f"<p>Hi {escape(_name(user))},</p>"
        f"<p>The following item was removed from your order <strong>{order.id}</strong>:</p>"
        f"<ul><li>{escape(_item_line(item))}</li></ul>"
        f"<p><strong>New total:</strong> {order.total_amount}</p>"
    )
    return Notification(_email(user), "Order Update - Item Removed", text, html, kind="item_removed")


def return_requested(user, order) -> Notification:
    text = (f"Hi {_name(user)},\n\nWe've received your return request for order {order.id}. "
            "Our team will review and contact you with the next steps.\n\nThank you.")
    html = _wrap(
        f"<p>Hi {escape(_name(user))},</p>"
        f"<p>We've received your return request for order <strong>{order.id}</strong>. "
        "Our team will review and contact you with the next steps.</p>"
    )
    return Notification(_email(user), "Return Request Received", text, html, kind="return_requested")


def welcome(user, shop_name: str) -> Notification:
    text = (f"Hi {_name(user)},\n\nWelcome to {shop_name}! Your account has been created.\n\n"
            "Happy shopping.")
    html = _wrap(
        f"<h2>Welcome to {escape(shop_name)}</h2>"
        f"<p>Hi {escape(_name(user))},</p><p>Your account has been created. Happy shopping.</p>"
    )
    return Notification(_email(user), f"Welcome to {shop_name}", text, html, kind="welcome")


def password_reset_otp(user, code: str, ttl_minutes: int) -> Notification:
    text = (f"Your password reset code is {code}. It expires in {ttl_minutes} minutes. "
            "If you didn't request this, you can ignore this email.")
    html = _wrap(
        "<h2>Password reset</h2>"
        f"<p>Hi {escape(_name(user))},</p><p>Your password reset code is:</p>"
        f'<div style="font-size:24px;font-weight:700;letter-spacing:3px;margin:10px 0">{code}</div>'
        f"<p>It expires in <strong>{ttl_minutes} minutes</strong>.</p>"
    )
    return Notification(_email(user), "Your password reset code", text, html, kind="password_reset_otp")


def password_changed(user) -> Notification:
    text = (f"Hi {_name(user)},\n\nYour password was changed. "
            "If this wasn't you, contact support immediately.")
    html = _wrap(
        f"<p>Hi {escape(_name(user))},</p><p>Your password was changed. "
        "If this wasn't you, contact support immediately.</p>"
    )
    return Notification(_email(user), "Your password was changed", text, html, kind="password_changed")
