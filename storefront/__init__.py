"""Storefront: e-commerce backend with order lifecycle, delivery OTPs and a support chatbot."""

__version__ = "1.0.0"
