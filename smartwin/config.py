import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "1") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base Flask configuration shared across environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-key-change-this-in-production"
    JSON_SORT_KEYS = False

    # Pesapal v3 gateway
    # PESAPAL_ENV selects the default base URL; PESAPAL_BASE_URL overrides it.
    PESAPAL_ENV = os.environ.get("PESAPAL_ENV", "sandbox")
    PESAPAL_BASE_URL = os.environ.get("PESAPAL_BASE_URL", "")
    PESAPAL_CONSUMER_KEY = os.environ.get("PESAPAL_CONSUMER_KEY", "")
    PESAPAL_CONSUMER_SECRET = os.environ.get("PESAPAL_CONSUMER_SECRET", "")
    PESAPAL_IPN_URL = os.environ.get(
        "PESAPAL_IPN_URL", "https://smartwinofficial.co.uk/api/pesapal-ipn"
    )
    PESAPAL_IPN_NOTIFICATION_TYPE = os.environ.get("PESAPAL_IPN_NOTIFICATION_TYPE", "GET")
    PESAPAL_COUNTRY_CODE = os.environ.get("PESAPAL_COUNTRY_CODE", "KE")
    PESAPAL_TIMEOUT = float(os.environ.get("PESAPAL_TIMEOUT", 30))
    PESAPAL_TOKEN_TTL = int(os.environ.get("PESAPAL_TOKEN_TTL", 300))  # 5 minutes
    PESAPAL_TOKEN_SAFETY_MARGIN = int(os.environ.get("PESAPAL_TOKEN_SAFETY_MARGIN", 30))

    # Checkout
    PAYMENT_SUCCESS_URL = os.environ.get(
        "PAYMENT_SUCCESS_URL", "https://smartwinofficial.co.uk/payment-success"
    )
    PAYMENT_REFERENCE_PREFIX = os.environ.get("PAYMENT_REFERENCE_PREFIX", "SMARTWIN")
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")
    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "Smart Win")

    # Operator notifications (Resend)
    RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
    RESEND_FROM_EMAIL = os.environ.get("RESEND_FROM_EMAIL", "onboarding@resend.dev")
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "info@smartwinofficial.co.uk")
    PAYMENT_NOTIFY_DEDUP = _env_flag("PAYMENT_NOTIFY_DEDUP")
    PAYMENT_NOTIFY_DEDUP_TTL = int(os.environ.get("PAYMENT_NOTIFY_DEDUP_TTL", 86400))


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
    PESAPAL_ENV = os.environ.get("PESAPAL_ENV", "production")


class TestingConfig(Config):
    TESTING = True
    PESAPAL_ENV = "sandbox"
    PESAPAL_BASE_URL = "https://pesapal.test/v3"
    PESAPAL_CONSUMER_KEY = "test-consumer-key"
    PESAPAL_CONSUMER_SECRET = "test-consumer-secret"
    PESAPAL_IPN_URL = "https://merchant.test/api/pesapal-ipn"
    PESAPAL_TIMEOUT = 5.0
    PAYMENT_SUCCESS_URL = "https://merchant.test/payment-success"
    DEFAULT_CURRENCY = "USD"
    BUSINESS_NAME = "Smart Win"
    RESEND_API_KEY = "re_test_key"
    ADMIN_EMAIL = "ops@merchant.test"
    PAYMENT_NOTIFY_DEDUP = True
