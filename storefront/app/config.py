#!/usr/bin/env python3
"""
Configuration management for the storefront backend.
"""

import os
from dotenv import load_dotenv

from ..utils.logger import get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """Configuration class for the application.

    Values are read once from the environment. Tests subclass this class and
    override attributes instead of touching ``os.environ``.
    """

    # Application Configuration
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    PORT = int(os.getenv("PORT", 4000))

    # Database Configuration
    DATABASE_URL = os.getenv("DATABASE_URL")

    # Auth Configuration
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", 7))
    RESET_TOKEN_MINUTES = int(os.getenv("RESET_TOKEN_MINUTES", 15))
    ADMIN_SECRET_KEY = os.getenv("ADMIN_SECRET_KEY")
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

    # OTP Configuration
    DELIVERY_OTP_TTL_MINUTES = int(os.getenv("DELIVERY_OTP_TTL_MINUTES", 10))
    DELIVERY_OTP_MAX_ATTEMPTS = int(os.getenv("DELIVERY_OTP_MAX_ATTEMPTS", 5))
    RESET_OTP_TTL_MINUTES = int(os.getenv("RESET_OTP_TTL_MINUTES", 15))
    RESET_OTP_MAX_ATTEMPTS = int(os.getenv("RESET_OTP_MAX_ATTEMPTS", 5))

    # Completion service (OpenAI-compatible chat completions)
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    COMPLETION_TIMEOUT = float(os.getenv("COMPLETION_TIMEOUT", 30))
    COMPLETION_RETRY_DELAY = float(os.getenv("COMPLETION_RETRY_DELAY", 0.3))
    USE_LLM = _env_bool("USE_LLM", "true")

    # Mail Configuration
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    MAIL_FROM = os.getenv("MAIL_FROM", "E-Commerce <no-reply@example.com>")

    # Payment gateway
    RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
    RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

    # Support contact used in chatbot replies
    SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "support@myawesomeshop.com")
    SHOP_NAME = os.getenv("SHOP_NAME", "MyAwesomeShop")

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT in ("production", "prod")

    @classmethod
    def debug_print(cls):
        logger.info("[CONFIG] ENVIRONMENT=%s", cls.ENVIRONMENT)
        logger.info("[CONFIG] DATABASE_URL set=%s", bool(cls.DATABASE_URL))
        logger.info("[CONFIG] OPENAI_MODEL=%s set=%s", cls.OPENAI_MODEL, bool(cls.OPENAI_API_KEY))
        logger.info("[CONFIG] RESEND set=%s RAZORPAY set=%s", bool(cls.RESEND_API_KEY), bool(cls.RAZORPAY_KEY_ID))

    @classmethod
    def validate(cls):
        """Validate that all required configuration is present."""
        missing = []

        if cls.is_production():
            if not os.getenv("JWT_SECRET"):
                missing.append("JWT_SECRET")
            if not cls.DATABASE_URL:
                missing.append("DATABASE_URL")

        if not cls.RAZORPAY_KEY_ID or not cls.RAZORPAY_KEY_SECRET:
            logger.warning("RAZORPAY_KEY_ID or RAZORPAY_KEY_SECRET is not set. Payment endpoints will fail until set.")
        if not cls.RESEND_API_KEY:
            logger.warning("RESEND_API_KEY is not set. Outgoing email is disabled.")

        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        return True
