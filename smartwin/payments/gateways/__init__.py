"""
Payment Gateway Integrations
All payment gateway implementations are in this package.
"""

from smartwin.payments.config import PaymentConfig

from .base import BasePaymentGateway
from .pesapal import PesapalGateway

__all__ = [
    'BasePaymentGateway',
    'PesapalGateway',
    'get_gateway',
]


def get_gateway(method: str, config: PaymentConfig) -> BasePaymentGateway:
    """
    Get the appropriate payment gateway instance for a given method.

    Args:
        method: Gateway name (pesapal)
        config: Payment settings

    Returns:
        Payment gateway instance
    """
    gateways = {
        'pesapal': PesapalGateway,
    }

    gateway_class = gateways.get(method.lower())
    if not gateway_class:
        raise ValueError(f"Unsupported payment gateway: {method}")

    return gateway_class(config)
