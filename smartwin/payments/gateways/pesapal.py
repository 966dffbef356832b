"""
Pesapal Payment Gateway Integration
Pesapal API 3.0: token issue, IPN registration, order submission and status queries.
"""

import logging
from typing import Any, Dict, Type

from .base import BasePaymentGateway
from smartwin.payments.exceptions import (
    IPNRegistrationException,
    OrderSubmissionException,
    PaymentAuthException,
    PaymentGatewayException,
    TransactionStatusException,
)
from smartwin.payments.utils import mask_secret

logger = logging.getLogger(__name__)


class PesapalGateway(BasePaymentGateway):
    """
    Pesapal v3 gateway client.

    Pesapal reports some failures with HTTP 200 and an ``error`` object in the
    body, so every response is checked for one before it is trusted.
    """

    AUTH_ENDPOINT = 'api/Auth/RequestToken'
    REGISTER_IPN_ENDPOINT = 'api/URLSetup/RegisterIPN'
    SUBMIT_ORDER_ENDPOINT = 'api/Transactions/SubmitOrderRequest'
    TRANSACTION_STATUS_ENDPOINT = 'api/Transactions/GetTransactionStatus'

    def get_method_name(self) -> str:
        """Return the gateway name."""
        return 'pesapal'

    def _validate_config(self):
        super()._validate_config()
        if not self.config.is_gateway_enabled():
            logger.warning("Pesapal consumer key/secret are not configured; token requests will fail")

    @staticmethod
    def _raise_for_body_error(body: Any, endpoint: str,
                              error_class: Type[PaymentGatewayException]) -> Dict[str, Any]:
        if not isinstance(body, dict):
            raise error_class(
                f"Unexpected response from {endpoint}",
                gateway_response={'body': str(body)[:1000]}
            )
        error = body.get('error')
        if isinstance(error, dict) and not any(error.get(k) for k in ('code', 'message', 'error_type')):
            # Success bodies may carry an error object with null fields
            error = None
        if error:
            message = error.get('message') if isinstance(error, dict) else str(error)
            status = body.get('status')
            raise error_class(
                f"Pesapal rejected {endpoint}: {message or 'unknown error'}",
                gateway_response=body,
                status_code=int(status) if str(status or '').isdigit() else None,
            )
        return body

    def request_token(self) -> Dict[str, Any]:
        """
        Request a bearer token with the configured consumer credentials.
        """
        if not self.config.is_gateway_enabled():
            raise PaymentAuthException("Pesapal consumer key/secret are not configured")

        logger.info({"attempt": "request_token", "endpoint": self.AUTH_ENDPOINT,
                     "consumer_key": mask_secret(self.config.consumer_key)})
        body = self._make_request(
            self.AUTH_ENDPOINT, 'POST',
            data={
                'consumer_key': self.config.consumer_key,
                'consumer_secret': self.config.consumer_secret,
            },
            error_class=PaymentAuthException,
        )
        body = self._raise_for_body_error(body, self.AUTH_ENDPOINT, PaymentAuthException)
        if not body.get('token'):
            raise PaymentAuthException(
                "Pesapal did not return an access token",
                gateway_response={k: v for k, v in body.items() if k != 'token'}
            )
        return body

    def register_ipn(self, token: str, url: str, notification_type: str = 'GET') -> Dict[str, Any]:
        """
        Register an IPN URL. Pesapal accepts repeated registration of the same URL.
        """
        body = self._make_request(
            self.REGISTER_IPN_ENDPOINT, 'POST',
            data={'url': url, 'ipn_notification_type': notification_type},
            token=token,
            error_class=IPNRegistrationException,
        )
        body = self._raise_for_body_error(body, self.REGISTER_IPN_ENDPOINT, IPNRegistrationException)
        if not body.get('ipn_id'):
            raise IPNRegistrationException(
                "Pesapal did not return an ipn_id",
                gateway_response=body
            )
        return body

    def submit_order(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit an order request and return the tracking id and redirect URL.
        """
        logger.info({"attempt": "submit_order", "endpoint": self.SUBMIT_ORDER_ENDPOINT,
                     "reference": payload.get('id'), "amount": payload.get('amount'),
                     "currency": payload.get('currency')})
        body = self._make_request(
            self.SUBMIT_ORDER_ENDPOINT, 'POST',
            data=payload,
            token=token,
            error_class=OrderSubmissionException,
        )
        body = self._raise_for_body_error(body, self.SUBMIT_ORDER_ENDPOINT, OrderSubmissionException)
        if not body.get('redirect_url') or not body.get('order_tracking_id'):
            raise OrderSubmissionException(
                "Pesapal did not return a redirect URL and tracking id",
                gateway_response=body
            )
        return body

    def get_transaction_status(self, token: str, order_tracking_id: str) -> Dict[str, Any]:
        """
        Query the status of an order by its tracking id.
        """
        body = self._make_request(
            self.TRANSACTION_STATUS_ENDPOINT, 'GET',
            params={'orderTrackingId': order_tracking_id},
            token=token,
            error_class=TransactionStatusException,
        )
        if not isinstance(body, dict):
            raise TransactionStatusException(
                f"Unexpected response from {self.TRANSACTION_STATUS_ENDPOINT}",
                gateway_response={'body': str(body)[:1000]}
            )
        # Pending payments come back with an error object ("Pending Payment")
        # next to a status description; only a body without one is a failure.
        if 'payment_status_description' not in body:
            self._raise_for_body_error(body, self.TRANSACTION_STATUS_ENDPOINT, TransactionStatusException)
            raise TransactionStatusException(
                "Pesapal did not return a payment status",
                gateway_response=body
            )
        return body
