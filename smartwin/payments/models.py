"""
Payment Models
In-memory records passed between the payment components.
Nothing here is persisted; each object lives for one request.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class PaymentStatus(Enum):
    """Reconciled payment status, named after Pesapal's status descriptions."""
    PENDING = 'Pending'
    COMPLETED = 'Completed'
    FAILED = 'Failed'
    INVALID = 'Invalid'
    REVERSED = 'Reversed'

    @classmethod
    def from_description(cls, description: Optional[str]) -> 'PaymentStatus':
        """
        Map a provider status description to a status.

        Matching is exact. Anything unrecognized (including empty or a
        differently cased "completed") is PENDING so it never confirms a payment.
        """
        for status in cls:
            if description == status.value:
                return status
        return cls.PENDING


class PaymentRequest:
    """Caller input for a payment, before validation."""

    def __init__(self, amount: Any = None, email: Optional[str] = None,
                 first_name: Optional[str] = None, last_name: Optional[str] = None,
                 currency: Optional[str] = None, description: Optional[str] = None,
                 phone_number: Optional[str] = None, payment_method: Optional[str] = None):
        self.amount = amount
        self.email = email
        self.first_name = first_name
        self.last_name = last_name
        self.currency = currency
        self.description = description
        self.phone_number = phone_number
        self.payment_method = payment_method

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PaymentRequest':
        """Build a request from the JSON body sent by the front-end."""
        return cls(
            amount=data.get('amount'),
            email=data.get('email'),
            first_name=data.get('firstName'),
            last_name=data.get('lastName'),
            currency=data.get('currency'),
            description=data.get('description'),
            phone_number=data.get('phoneNumber'),
            payment_method=data.get('paymentMethod'),
        )

    def __repr__(self):
        return f'<PaymentRequest {self.amount} {self.currency or ""}>'


class Payer:
    """Billing contact attached to an order."""

    def __init__(self, email: str, first_name: str, last_name: str, phone_number: str = ''):
        self.email = email
        self.first_name = first_name
        self.last_name = last_name
        self.phone_number = phone_number or ''

    def to_billing_address(self, country_code: str) -> Dict[str, Any]:
        return {
            'email_address': self.email,
            'phone_number': self.phone_number,
            'country_code': country_code,
            'first_name': self.first_name,
            'middle_name': '',
            'last_name': self.last_name,
            'line_1': '',
            'line_2': '',
            'city': '',
            'state': '',
            'postal_code': '',
            'zip_code': '',
        }


class PaymentOrder:
    """
    A validated order ready for the gateway.
    Immutable once built; its reference is never reused.
    """

    __slots__ = ('reference', 'amount', 'currency', 'payer', 'description',
                 'callback_url', 'notification_id')

    def __init__(self, reference: str, amount: Decimal, currency: str, payer: Payer,
                 description: str, callback_url: str, notification_id: str):
        object.__setattr__(self, 'reference', reference)
        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'currency', currency)
        object.__setattr__(self, 'payer', payer)
        object.__setattr__(self, 'description', description)
        object.__setattr__(self, 'callback_url', callback_url)
        object.__setattr__(self, 'notification_id', notification_id)

    def __setattr__(self, name, value):
        raise AttributeError('PaymentOrder is immutable')

    def to_gateway_payload(self, country_code: str) -> Dict[str, Any]:
        """Convert the order into a SubmitOrderRequest body."""
        return {
            'id': self.reference,
            'currency': self.currency,
            'amount': float(self.amount),
            'description': self.description,
            'callback_url': self.callback_url,
            'notification_id': self.notification_id,
            'billing_address': self.payer.to_billing_address(country_code),
        }

    def __repr__(self):
        return f'<PaymentOrder {self.reference} - {self.amount} {self.currency}>'


class AuthToken:
    """Bearer token issued by the gateway."""

    def __init__(self, value: str, obtained_at: datetime, expires_at: datetime):
        self.value = value
        self.obtained_at = obtained_at
        self.expires_at = expires_at

    def is_valid(self, now: datetime, margin: timedelta = timedelta(0)) -> bool:
        return now < self.expires_at - margin

    def __repr__(self):
        # The token value is a credential; keep it out of logs
        return f'<AuthToken expires {self.expires_at.isoformat()}>'


class TrackingHandle:
    """Join key between a submitted order and its later callback."""

    def __init__(self, order_tracking_id: str, merchant_reference: str):
        self.order_tracking_id = order_tracking_id
        self.merchant_reference = merchant_reference

    def __repr__(self):
        return f'<TrackingHandle {self.order_tracking_id} - {self.merchant_reference}>'


class OrderSubmission:
    """Outcome of a successful order submission."""

    def __init__(self, redirect_url: str, handle: TrackingHandle):
        self.redirect_url = redirect_url
        self.handle = handle

    @property
    def order_tracking_id(self) -> str:
        return self.handle.order_tracking_id

    @property
    def merchant_reference(self) -> str:
        return self.handle.merchant_reference

    def to_dict(self) -> Dict[str, Any]:
        return {
            'orderTrackingId': self.order_tracking_id,
            'merchantReference': self.merchant_reference,
            'redirectUrl': self.redirect_url,
        }


class ReconciliationResult:
    """Authoritative status of a payment, re-queried from the gateway."""

    def __init__(self, tracking_id: str, status: PaymentStatus,
                 status_description: Optional[str] = None,
                 amount: Any = None, currency: Optional[str] = None,
                 payment_method: Optional[str] = None,
                 merchant_reference: Optional[str] = None,
                 confirmation_code: Optional[str] = None,
                 raw_provider_payload: Optional[Dict[str, Any]] = None):
        self.tracking_id = tracking_id
        self.status = status
        self.status_description = status_description
        self.amount = amount
        self.currency = currency
        self.payment_method = payment_method
        self.merchant_reference = merchant_reference
        self.confirmation_code = confirmation_code
        self.raw_provider_payload = raw_provider_payload or {}
        self.notified = False

    @classmethod
    def from_status_payload(cls, tracking_id: str, payload: Dict[str, Any]) -> 'ReconciliationResult':
        """Build a result from a GetTransactionStatus response body."""
        description = payload.get('payment_status_description')
        return cls(
            tracking_id=tracking_id,
            status=PaymentStatus.from_description(description),
            status_description=description,
            amount=payload.get('amount'),
            currency=payload.get('currency'),
            payment_method=payload.get('payment_method'),
            merchant_reference=payload.get('merchant_reference'),
            confirmation_code=payload.get('confirmation_code'),
            raw_provider_payload=payload,
        )

    @property
    def is_completed(self) -> bool:
        return self.status is PaymentStatus.COMPLETED

    def __repr__(self):
        return f'<ReconciliationResult {self.tracking_id} - {self.status.value}>'


class PaymentSummary:
    """Operator-facing summary of a completed payment."""

    subject_template = 'Pesapal Payment Received - {business_name}'
    template = 'emails/payment_received.html'

    def __init__(self, reference: Optional[str], tracking_id: str, amount: Any,
                 currency: Optional[str], payment_method: Optional[str],
                 status: str, timestamp: datetime):
        self.reference = reference
        self.tracking_id = tracking_id
        self.amount = amount
        self.currency = currency
        self.payment_method = payment_method
        self.status = status
        self.timestamp = timestamp

    @classmethod
    def from_result(cls, result: ReconciliationResult, timestamp: datetime) -> 'PaymentSummary':
        return cls(
            reference=result.merchant_reference,
            tracking_id=result.tracking_id,
            amount=result.amount,
            currency=result.currency,
            payment_method=result.payment_method or 'Pesapal',
            status=result.status.value,
            timestamp=timestamp,
        )

    @property
    def amount_display(self) -> str:
        return f"{self.amount} {self.currency or ''}".strip()


class ManualPaymentSubmission:
    """Details a payer reports after paying outside the hosted checkout."""

    REQUIRED_FIELDS = ['paymentMethod', 'fullName', 'email', 'phone', 'transactionId']

    subject_template = 'New Payment Submission - {payment_method} - {full_name}'
    template = 'emails/manual_payment.html'

    def __init__(self, payment_method: str, full_name: str, email: str, phone: str,
                 transaction_id: str, amount_sent: Optional[str] = None,
                 payment_date: Optional[str] = None, additional_notes: Optional[str] = None,
                 submitted_at: Optional[str] = None):
        self.payment_method = payment_method
        self.full_name = full_name
        self.email = email
        self.phone = phone
        self.transaction_id = transaction_id
        self.amount_sent = amount_sent
        self.payment_date = payment_date
        self.additional_notes = additional_notes
        self.submitted_at = submitted_at

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ManualPaymentSubmission':
        return cls(
            payment_method=data.get('paymentMethod'),
            full_name=data.get('fullName'),
            email=data.get('email'),
            phone=data.get('phone'),
            transaction_id=data.get('transactionId'),
            amount_sent=data.get('amountSent'),
            payment_date=data.get('paymentDate'),
            additional_notes=data.get('additionalNotes'),
            submitted_at=data.get('submittedAt'),
        )

    @property
    def is_crypto(self) -> bool:
        return 'crypto' in (self.payment_method or '').lower()

    def __repr__(self):
        return f'<ManualPaymentSubmission {self.payment_method} - {self.transaction_id}>'
