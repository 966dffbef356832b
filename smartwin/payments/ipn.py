"""
IPN registration.
Makes sure the gateway knows where to send payment notifications.
"""

import logging
from urllib.parse import urlparse

from smartwin.payments.config import PaymentConfig
from smartwin.payments.exceptions import IPNRegistrationException
from smartwin.payments.gateways.base import BasePaymentGateway
from smartwin.payments.token_cache import TokenCache

logger = logging.getLogger(__name__)


class IPNRegistrar:
    """
    Registers the callback URL with the gateway.

    Registration is repeated for every order. The provider may hand back a
    new ``ipn_id`` each time, so the id is returned to the caller and never
    kept here.
    """

    def __init__(self, gateway: BasePaymentGateway, token_cache: TokenCache, config: PaymentConfig):
        self.gateway = gateway
        self.token_cache = token_cache
        self.config = config

    def ensure_registered(self, callback_url: str) -> str:
        """
        Register ``callback_url`` and return the notification id to use for
        the current order.

        Raises:
            IPNRegistrationException: If the URL is unusable or rejected
            PaymentAuthException: If no token could be obtained
        """
        self._check_url(callback_url)
        token = self.token_cache.get_token()

        body = self.gateway.register_ipn(
            token.value, callback_url, self.config.ipn_notification_type
        )
        notification_id = body['ipn_id']
        logger.info(f"IPN URL {callback_url} registered as {notification_id}")
        return notification_id

    def _check_url(self, callback_url: str):
        if not callback_url:
            raise IPNRegistrationException("IPN callback URL is not configured")

        parsed = urlparse(callback_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise IPNRegistrationException(f"Invalid IPN callback URL: {callback_url}")
        if self.config.is_production and parsed.scheme != 'https':
            raise IPNRegistrationException(
                f"IPN callback URL must use HTTPS in production: {callback_url}"
            )
