"""
Payment System Configuration
Explicit settings object handed to every payment component.
"""

from typing import Any, Mapping, Optional


PESAPAL_BASE_URLS = {
    'production': 'https://pay.pesapal.com/v3',
    'sandbox': 'https://cybqa.pesapal.com/pesapalv3',
}

# Labels used to build the default order description
PAYMENT_METHOD_DISPLAY_NAMES = {
    'mobile': 'Mobile Money',
    'card': 'Card Payment',
}


class PaymentConfig:
    """
    Payment system configuration.

    Built once per process from the Flask config (``from_mapping``) and passed
    to the gateway, token cache, registrar, submitter, reconciler and notifier
    at construction. Tests build it directly.
    """

    def __init__(self,
                 consumer_key: str = '',
                 consumer_secret: str = '',
                 environment: str = 'sandbox',
                 base_url: Optional[str] = None,
                 ipn_url: str = '',
                 ipn_notification_type: str = 'GET',
                 country_code: str = 'KE',
                 timeout: float = 30.0,
                 token_ttl: int = 300,
                 token_safety_margin: int = 30,
                 success_url: str = '',
                 reference_prefix: str = 'SMARTWIN',
                 default_currency: str = 'USD',
                 business_name: str = 'Smart Win',
                 resend_api_key: str = '',
                 resend_from_email: str = 'onboarding@resend.dev',
                 admin_email: str = '',
                 notify_dedup: bool = True,
                 notify_dedup_ttl: int = 86400):
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.environment = (environment or 'sandbox').lower()
        self.base_url = (base_url or PESAPAL_BASE_URLS.get(self.environment)
                         or PESAPAL_BASE_URLS['sandbox']).rstrip('/')
        self.ipn_url = ipn_url
        self.ipn_notification_type = ipn_notification_type
        self.country_code = country_code
        self.timeout = timeout
        self.token_ttl = token_ttl
        self.token_safety_margin = token_safety_margin
        self.success_url = success_url
        self.reference_prefix = reference_prefix
        self.default_currency = default_currency
        self.business_name = business_name
        self.resend_api_key = resend_api_key
        self.resend_from_email = resend_from_email
        self.admin_email = admin_email
        self.notify_dedup = notify_dedup
        self.notify_dedup_ttl = notify_dedup_ttl

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'PaymentConfig':
        """
        Build payment settings from a Flask config (or any mapping).

        Args:
            config: Mapping holding the ``PESAPAL_*``, ``RESEND_*`` and
                payment keys defined in ``smartwin.config.Config``

        Returns:
            PaymentConfig instance
        """
        return cls(
            consumer_key=config.get('PESAPAL_CONSUMER_KEY', ''),
            consumer_secret=config.get('PESAPAL_CONSUMER_SECRET', ''),
            environment=config.get('PESAPAL_ENV', 'sandbox'),
            base_url=config.get('PESAPAL_BASE_URL') or None,
            ipn_url=config.get('PESAPAL_IPN_URL', ''),
            ipn_notification_type=config.get('PESAPAL_IPN_NOTIFICATION_TYPE', 'GET'),
            country_code=config.get('PESAPAL_COUNTRY_CODE', 'KE'),
            timeout=float(config.get('PESAPAL_TIMEOUT', 30)),
            token_ttl=int(config.get('PESAPAL_TOKEN_TTL', 300)),
            token_safety_margin=int(config.get('PESAPAL_TOKEN_SAFETY_MARGIN', 30)),
            success_url=config.get('PAYMENT_SUCCESS_URL', ''),
            reference_prefix=config.get('PAYMENT_REFERENCE_PREFIX', 'SMARTWIN'),
            default_currency=config.get('DEFAULT_CURRENCY', 'USD'),
            business_name=config.get('BUSINESS_NAME', 'Smart Win'),
            resend_api_key=config.get('RESEND_API_KEY', ''),
            resend_from_email=config.get('RESEND_FROM_EMAIL', 'onboarding@resend.dev'),
            admin_email=config.get('ADMIN_EMAIL', ''),
            notify_dedup=bool(config.get('PAYMENT_NOTIFY_DEDUP', True)),
            notify_dedup_ttl=int(config.get('PAYMENT_NOTIFY_DEDUP_TTL', 86400)),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    def is_gateway_enabled(self) -> bool:
        """Check if the Pesapal credentials are configured."""
        return bool(self.consumer_key and self.consumer_secret)

    def describe_method(self, payment_method: Optional[str]) -> str:
        """Default order description for a payment method label."""
        label = PAYMENT_METHOD_DISPLAY_NAMES['mobile'] if payment_method == 'mobile' \
            else PAYMENT_METHOD_DISPLAY_NAMES['card']
        return f"{self.business_name} Payment - {label}"

    def __repr__(self):
        return f'<PaymentConfig {self.environment} {self.base_url}>'
