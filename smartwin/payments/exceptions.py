"""
Payment System Exceptions
Custom exceptions for payment processing.
"""


class PaymentException(Exception):
    """Base exception for payment-related errors."""
    pass


class PaymentGatewayException(PaymentException):
    """Exception raised when payment gateway returns an error."""
    def __init__(self, message, gateway_response=None, status_code=None):
        super().__init__(message)
        self.gateway_response = gateway_response
        self.status_code = status_code


class PaymentValidationException(PaymentException):
    """Exception raised when payment data validation fails."""
    def __init__(self, message, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class PaymentAuthException(PaymentGatewayException):
    """Exception raised when the gateway refuses or fails to issue a token."""
    pass


class IPNRegistrationException(PaymentGatewayException):
    """Exception raised when the IPN callback URL cannot be registered."""
    pass


class OrderSubmissionException(PaymentGatewayException):
    """Exception raised when the gateway rejects an order request."""
    pass


class TransactionStatusException(PaymentGatewayException):
    """Exception raised when a transaction status query fails."""
    pass


class PaymentTimeoutException(PaymentGatewayException):
    """Exception raised when a gateway call exceeds its timeout."""
    pass


class CallbackInputException(PaymentException):
    """Exception raised when a gateway callback is malformed."""
    pass


class NotificationException(PaymentException):
    """Exception raised when an operator notification cannot be delivered."""
    pass
