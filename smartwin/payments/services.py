"""
Payment Services
Business logic for payment initiation and callback reconciliation.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from email_validator import EmailNotValidError, validate_email

from smartwin.payments.config import PaymentConfig
from smartwin.payments.exceptions import (
    CallbackInputException,
    PaymentValidationException,
)
from smartwin.payments.gateways.base import BasePaymentGateway
from smartwin.payments.idempotency import NotificationLedger
from smartwin.payments.ipn import IPNRegistrar
from smartwin.payments.models import (
    ManualPaymentSubmission,
    OrderSubmission,
    Payer,
    PaymentOrder,
    PaymentRequest,
    PaymentSummary,
    ReconciliationResult,
    TrackingHandle,
)
from smartwin.payments.notifications import Notifier
from smartwin.payments.token_cache import TokenCache
from smartwin.payments.utils import generate_payment_reference, parse_amount, utcnow

logger = logging.getLogger(__name__)

REQUIRED_PAYMENT_FIELDS = ['amount', 'email', 'firstName', 'lastName']


def _is_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class OrderSubmitter:
    """Builds payment orders and submits them to the gateway."""

    def __init__(self, gateway: BasePaymentGateway, token_cache: TokenCache,
                 registrar: IPNRegistrar, config: PaymentConfig,
                 reference_factory: Optional[Callable[[str], str]] = None):
        self.gateway = gateway
        self.token_cache = token_cache
        self.registrar = registrar
        self.config = config
        self.reference_factory = reference_factory or generate_payment_reference

    def validate(self, request: PaymentRequest) -> PaymentRequest:
        """
        Validate a payment request without touching the network.

        Raises:
            PaymentValidationException: If required fields are missing or the
                amount is not a positive number
        """
        missing = [field for field, value in (
            ('amount', request.amount),
            ('email', request.email),
            ('firstName', request.first_name),
            ('lastName', request.last_name),
        ) if value is None or (isinstance(value, str) and not value.strip())]
        if missing:
            raise PaymentValidationException('Missing required fields', fields=missing)

        if parse_amount(request.amount) is None:
            raise PaymentValidationException('Amount must be a positive number', fields=['amount'])

        not_text = [field for field, value in (
            ('email', request.email),
            ('firstName', request.first_name),
            ('lastName', request.last_name),
        ) if not isinstance(value, str)]
        # Optional fields; a phone number may arrive as a JSON number
        not_text += [field for field, value, allowed in (
            ('currency', request.currency, (str,)),
            ('description', request.description, (str,)),
            ('paymentMethod', request.payment_method, (str,)),
            ('phoneNumber', request.phone_number, (str, int)),
        ) if value is not None and (isinstance(value, bool) or not isinstance(value, allowed))]
        if not_text:
            raise PaymentValidationException('Fields must be text', fields=not_text)

        if not _is_valid_email(request.email.strip()):
            raise PaymentValidationException('Invalid email address', fields=['email'])

        return request

    def build_order(self, request: PaymentRequest, notification_id: str) -> PaymentOrder:
        """Turn a validated request into an order with a fresh reference."""
        reference = self.reference_factory(self.config.reference_prefix)
        success_url = self.config.success_url
        separator = '&' if '?' in success_url else '?'

        return PaymentOrder(
            reference=reference,
            amount=parse_amount(request.amount),
            currency=request.currency or self.config.default_currency,
            payer=Payer(
                email=request.email.strip(),
                first_name=request.first_name.strip(),
                last_name=request.last_name.strip(),
                phone_number=str(request.phone_number or '').strip(),
            ),
            description=request.description or self.config.describe_method(request.payment_method),
            callback_url=f"{success_url}{separator}ref={reference}",
            notification_id=notification_id,
        )

    def submit(self, request: PaymentRequest) -> OrderSubmission:
        """
        Submit a payment order and return where to send the payer.

        Args:
            request: Caller input

        Returns:
            OrderSubmission with the redirect URL and tracking handle

        Raises:
            PaymentValidationException: Before any network call, on bad input
            PaymentAuthException: If no token could be obtained
            IPNRegistrationException: If the IPN URL could not be registered
            OrderSubmissionException: If the gateway rejected the order
            PaymentTimeoutException: If a gateway call timed out
        """
        self.validate(request)

        token = self.token_cache.get_token()
        notification_id = self.registrar.ensure_registered(self.config.ipn_url)
        order = self.build_order(request, notification_id)

        response = self.gateway.submit_order(
            token.value, order.to_gateway_payload(self.config.country_code)
        )

        handle = TrackingHandle(
            order_tracking_id=response['order_tracking_id'],
            merchant_reference=response.get('merchant_reference') or order.reference,
        )
        logger.info(f"Order {order.reference} submitted, tracking id {handle.order_tracking_id}")
        return OrderSubmission(redirect_url=response['redirect_url'], handle=handle)


class CallbackReconciler:
    """
    Handles the gateway's IPN callback by re-querying the authoritative
    status and notifying the operator of completed payments.
    """

    def __init__(self, gateway: BasePaymentGateway, token_cache: TokenCache,
                 notifier: Notifier, config: PaymentConfig,
                 ledger: Optional[NotificationLedger] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.gateway = gateway
        self.token_cache = token_cache
        self.notifier = notifier
        self.config = config
        self.ledger = ledger
        self.clock = clock

    def reconcile(self, tracking_id: Optional[str],
                  merchant_reference: Optional[str] = None) -> ReconciliationResult:
        """
        Reconcile a payment from its tracking id.

        Args:
            tracking_id: Gateway tracking id from the callback
            merchant_reference: Reference echoed by the callback, logged only;
                the status response is authoritative

        Returns:
            ReconciliationResult, whether or not notification succeeded

        Raises:
            CallbackInputException: If the tracking id is missing
            PaymentAuthException: If no token could be obtained
            TransactionStatusException: If the status query failed
            PaymentTimeoutException: If a gateway call timed out
        """
        tracking_id = str(tracking_id or '').strip()
        if not tracking_id:
            raise CallbackInputException('Missing OrderTrackingId')

        logger.info(f"IPN received for {tracking_id} (reference {merchant_reference or 'n/a'})")

        token = self.token_cache.get_token()
        payload = self.gateway.get_transaction_status(token.value, tracking_id)
        result = ReconciliationResult.from_status_payload(tracking_id, payload)

        logger.info(
            f"Transaction {tracking_id} status: {result.status.value} "
            f"(provider said {result.status_description!r})"
        )
        if result.status_description and result.status_description != result.status.value:
            logger.warning(f"Unrecognized payment status {result.status_description!r} for {tracking_id}")

        if result.is_completed:
            result.notified = self._notify(result)

        return result

    def _notify(self, result: ReconciliationResult) -> bool:
        if self.ledger is not None and not self.ledger.claim(result.tracking_id):
            logger.info(f"Payment {result.tracking_id} already notified, skipping")
            return False

        summary = PaymentSummary.from_result(result, self.clock())
        try:
            delivery_id = self.notifier.notify(summary, self.config.admin_email)
        except Exception as e:
            # The callback is still acknowledged; release so a retry can notify
            if self.ledger is not None:
                self.ledger.release(result.tracking_id)
            logger.error(f"Payment notification for {result.tracking_id} failed: {str(e)}", exc_info=True)
            return False

        logger.info(f"Payment notification for {result.tracking_id} sent ({delivery_id})")
        return True


class ManualPaymentService:
    """Forwards payments reported by the payer (paid outside checkout) to the operator."""

    def __init__(self, notifier: Notifier, config: PaymentConfig):
        self.notifier = notifier
        self.config = config

    def submit(self, data: Dict[str, Any]) -> str:
        """
        Validate a manual payment report and notify the operator.

        Returns:
            Delivery identifier from the notifier

        Raises:
            PaymentValidationException: If required fields are missing
            NotificationException: If the notification could not be sent
        """
        missing = [field for field in ManualPaymentSubmission.REQUIRED_FIELDS
                   if not str(data.get(field) or '').strip()]
        if missing:
            raise PaymentValidationException('Missing required fields', fields=missing)

        submission = ManualPaymentSubmission.from_dict(data)
        if not _is_valid_email(str(submission.email).strip()):
            raise PaymentValidationException('Invalid email address', fields=['email'])
        if not submission.submitted_at:
            submission.submitted_at = utcnow().isoformat()

        delivery_id = self.notifier.notify(submission, self.config.admin_email)
        logger.info(f"Manual payment {submission.transaction_id} forwarded ({delivery_id})")
        return delivery_id


class PaymentSystem:
    """The payment components wired for one process."""

    def __init__(self, config: PaymentConfig, gateway: BasePaymentGateway, notifier: Notifier,
                 clock: Callable[[], datetime] = utcnow):
        self.config = config
        self.gateway = gateway
        self.notifier = notifier
        self.token_cache = TokenCache(gateway, config, clock=clock)
        self.registrar = IPNRegistrar(gateway, self.token_cache, config)
        self.ledger = NotificationLedger(config.notify_dedup_ttl, clock=clock) if config.notify_dedup else None
        self.submitter = OrderSubmitter(gateway, self.token_cache, self.registrar, config)
        self.reconciler = CallbackReconciler(gateway, self.token_cache, notifier, config,
                                             ledger=self.ledger, clock=clock)
        self.manual_payments = ManualPaymentService(notifier, config)
