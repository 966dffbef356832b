"""
Gateway token cache.

Holds at most one bearer token per process and refreshes it when it is
about to expire. Concurrent callers that find the token stale are
serialized so only one of them authenticates.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from smartwin.payments.config import PaymentConfig
from smartwin.payments.exceptions import (
    PaymentAuthException,
    PaymentGatewayException,
    PaymentTimeoutException,
)
from smartwin.payments.gateways.base import BasePaymentGateway
from smartwin.payments.models import AuthToken
from smartwin.payments.utils import parse_gateway_datetime, utcnow

logger = logging.getLogger(__name__)


class TokenCache:
    """
    Cache for the gateway's bearer token.

    Args:
        gateway: Gateway client used to request tokens
        config: Payment settings (``token_ttl``, ``token_safety_margin``)
        clock: Callable returning the current aware UTC datetime
    """

    def __init__(self, gateway: BasePaymentGateway, config: PaymentConfig,
                 clock: Callable[[], datetime] = utcnow):
        self.gateway = gateway
        self.default_ttl = timedelta(seconds=config.token_ttl)
        self.safety_margin = timedelta(seconds=config.token_safety_margin)
        self.clock = clock
        self._token: Optional[AuthToken] = None
        self._lock = threading.Lock()

    def get_token(self) -> AuthToken:
        """
        Return a valid token, authenticating if the cached one is stale.

        Raises:
            PaymentAuthException: If the gateway refuses the credentials or the
                call fails. Not retried.
            PaymentTimeoutException: If the token request times out
        """
        with self._lock:
            now = self.clock()
            if self._token and self._token.is_valid(now, self.safety_margin):
                return self._token

            self._token = self._authenticate(now)
            return self._token

    def invalidate(self):
        """Drop the cached token so the next call authenticates."""
        with self._lock:
            self._token = None

    @property
    def cached_token(self) -> Optional[AuthToken]:
        return self._token

    def _authenticate(self, now: datetime) -> AuthToken:
        try:
            body = self.gateway.request_token()
        except (PaymentAuthException, PaymentTimeoutException):
            raise
        except PaymentGatewayException as e:
            raise PaymentAuthException(
                f"Token request failed: {str(e)}",
                gateway_response=e.gateway_response,
                status_code=e.status_code,
            ) from e

        expires_at = parse_gateway_datetime(body.get('expiryDate'))
        if expires_at is None or expires_at <= now:
            expires_at = now + self.default_ttl

        logger.info(f"Obtained gateway token, valid until {expires_at.isoformat()}")
        return AuthToken(value=body['token'], obtained_at=now, expires_at=expires_at)
