"""
Pytest configuration and shared fixtures.

The gateway and notifier stubs count every call so tests can assert that
validation failures never reach the network and that notifications fire
exactly once.
"""
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from smartwin import create_app
from smartwin.config import TestingConfig
from smartwin.payments.config import PaymentConfig
from smartwin.payments.exceptions import NotificationException
from smartwin.payments.gateways.base import BasePaymentGateway
from smartwin.payments.notifications import Notifier


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now = self.now + timedelta(seconds=seconds)


class StubGateway(BasePaymentGateway):
    """In-memory gateway that records calls instead of making HTTP requests."""

    def __init__(self, config: PaymentConfig):
        super().__init__(config)
        self.calls = Counter()
        self.submitted: List[Dict[str, Any]] = []
        self.registered: List[str] = []
        self.status_queries: List[str] = []
        self.token_error: Optional[Exception] = None
        self.ipn_error: Optional[Exception] = None
        self.submit_error: Optional[Exception] = None
        self.status_error: Optional[Exception] = None
        self.token_expiry: Optional[str] = None
        self.status_payload: Dict[str, Any] = {
            'payment_status_description': 'Completed',
            'amount': 100,
            'currency': 'USD',
            'payment_method': 'Visa',
            'merchant_reference': 'SMARTWIN-1',
            'confirmation_code': 'CONF123',
            'status_code': 1,
        }
        self._lock = threading.Lock()
        self._sequence = 0

    def get_method_name(self) -> str:
        return 'stub'

    def _next(self, name: str) -> int:
        with self._lock:
            self.calls[name] += 1
            self._sequence += 1
            return self._sequence

    def request_token(self) -> Dict[str, Any]:
        n = self._next('request_token')
        if self.token_error:
            raise self.token_error
        return {'token': f'token-{n}', 'expiryDate': self.token_expiry, 'status': '200'}

    def register_ipn(self, token: str, url: str, notification_type: str = 'GET') -> Dict[str, Any]:
        n = self._next('register_ipn')
        if self.ipn_error:
            raise self.ipn_error
        self.registered.append(url)
        return {'url': url, 'ipn_id': f'ipn-{n}', 'ipn_notification_type_description': notification_type}

    def submit_order(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        n = self._next('submit_order')
        if self.submit_error:
            raise self.submit_error
        with self._lock:
            self.submitted.append(payload)
        return {
            'order_tracking_id': f'track-{n}',
            'merchant_reference': payload['id'],
            'redirect_url': f'https://pay.pesapal.test/iframe?OrderTrackingId=track-{n}',
            'status': '200',
        }

    def get_transaction_status(self, token: str, order_tracking_id: str) -> Dict[str, Any]:
        self._next('get_transaction_status')
        if self.status_error:
            raise self.status_error
        self.status_queries.append(order_tracking_id)
        return dict(self.status_payload)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


class StubNotifier(Notifier):
    """Notifier that records summaries and can be told to fail."""

    def __init__(self):
        self.sent: List[Any] = []
        self.attempts = 0
        self.fail = False

    def notify(self, summary: Any, destination: str) -> str:
        self.attempts += 1
        if self.fail:
            raise NotificationException('simulated delivery failure')
        self.sent.append((summary, destination))
        return f'email-{len(self.sent)}'


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def payment_config():
    """Payment settings matching TestingConfig."""
    return PaymentConfig.from_mapping(
        {k: getattr(TestingConfig, k) for k in dir(TestingConfig) if k.isupper()}
    )


@pytest.fixture
def gateway(payment_config):
    return StubGateway(payment_config)


@pytest.fixture
def notifier():
    return StubNotifier()


@pytest.fixture
def app(gateway, notifier, clock):
    return create_app(TestingConfig, gateway=gateway, notifier=notifier, clock=clock)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def payments(app):
    return app.extensions['payments']


@pytest.fixture
def valid_payment():
    return {
        'amount': 100,
        'currency': 'USD',
        'email': 'a@b.com',
        'firstName': 'A',
        'lastName': 'B',
    }
