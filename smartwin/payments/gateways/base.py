"""
Base Payment Gateway
Abstract base class for the payment gateway client.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import requests

from smartwin.payments.config import PaymentConfig
from smartwin.payments.exceptions import (
    PaymentGatewayException,
    PaymentTimeoutException,
)

logger = logging.getLogger(__name__)


class BasePaymentGateway(ABC):
    """
    Abstract base class for payment gateway implementations.

    The four calls the payment flow needs: token issue, IPN registration,
    order submission and transaction status. Every call returns the decoded
    response body and raises a ``PaymentGatewayException`` subclass on failure.
    """

    def __init__(self, config: PaymentConfig, session: Optional[requests.Session] = None):
        """Initialize the payment gateway with configuration."""
        self.config = config
        self.session = session or requests.Session()
        self._validate_config()

    @abstractmethod
    def get_method_name(self) -> str:
        """
        Return the gateway name (e.g., 'pesapal').
        """
        pass

    @abstractmethod
    def request_token(self) -> Dict[str, Any]:
        """
        Exchange the consumer credentials for a bearer token.

        Returns:
            Dictionary with at least ``token`` and, when the provider states
            one, ``expiryDate``

        Raises:
            PaymentAuthException: If the credentials are rejected
        """
        pass

    @abstractmethod
    def register_ipn(self, token: str, url: str, notification_type: str = 'GET') -> Dict[str, Any]:
        """
        Register a callback URL for instant payment notifications.

        Returns:
            Dictionary with at least ``ipn_id``

        Raises:
            IPNRegistrationException: If the provider rejects the URL
        """
        pass

    @abstractmethod
    def submit_order(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Submit an order request.

        Returns:
            Dictionary with ``order_tracking_id``, ``merchant_reference`` and
            ``redirect_url``

        Raises:
            OrderSubmissionException: If the order is rejected
        """
        pass

    @abstractmethod
    def get_transaction_status(self, token: str, order_tracking_id: str) -> Dict[str, Any]:
        """
        Query the authoritative status of a submitted order.

        Raises:
            TransactionStatusException: If the query fails
        """
        pass

    def _validate_config(self):
        """Validate that gateway configuration is complete."""
        if not self.config.base_url:
            raise PaymentGatewayException(
                f"Payment gateway {self.get_method_name()} is not properly configured. "
                "Missing base URL."
            )

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }
        if token:
            headers['Authorization'] = f"Bearer {token}"
        return headers

    def _make_request(self, endpoint: str, method: str = 'POST',
                      data: Optional[Dict[str, Any]] = None,
                      params: Optional[Dict[str, Any]] = None,
                      token: Optional[str] = None,
                      error_class: Type[PaymentGatewayException] = PaymentGatewayException) -> Any:
        """
        Make HTTP request to payment gateway API.

        Args:
            endpoint: API endpoint, relative to the configured base URL
            method: HTTP method (GET, POST, etc.)
            data: JSON body
            params: Query parameters
            token: Bearer token, if the endpoint needs one
            error_class: Exception raised on a failed call

        Returns:
            Decoded JSON response

        Raises:
            PaymentTimeoutException: If the call exceeds the configured timeout
            error_class: If the request fails or returns a non-2xx status
        """
        url = f"{self.config.base_url}/{endpoint.lstrip('/')}"
        try:
            response = self.session.request(
                method.upper(),
                url,
                json=data,
                params=params,
                headers=self._headers(token),
                timeout=self.config.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error({"gateway": self.get_method_name(), "endpoint": endpoint, "error": "timeout"})
            raise PaymentTimeoutException(
                f"Payment gateway request to {endpoint} timed out after {self.config.timeout}s",
                gateway_response={'error': str(e)}
            )
        except requests.exceptions.RequestException as e:
            logger.error({"gateway": self.get_method_name(), "endpoint": endpoint, "error": str(e)})
            raise error_class(
                f"Payment gateway request failed: {str(e)}",
                gateway_response={'error': str(e)}
            )

        body_text = response.text or ''
        logger.debug({"gateway": self.get_method_name(), "endpoint": endpoint,
                      "status": response.status_code, "response_preview": body_text[:200]})

        if not response.ok:
            raise error_class(
                f"Payment gateway returned HTTP {response.status_code} for {endpoint}",
                gateway_response={'body': body_text[:1000]},
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise error_class(
                f"Payment gateway returned a non-JSON response for {endpoint}",
                gateway_response={'body': body_text[:1000]},
                status_code=response.status_code,
            )
