"""
Unit tests for IPN callback reconciliation.
"""
import pytest

from smartwin.payments.exceptions import (
    CallbackInputException,
    PaymentAuthException,
    TransactionStatusException,
)
from smartwin.payments.idempotency import NotificationLedger
from smartwin.payments.models import PaymentStatus, PaymentSummary
from smartwin.payments.services import CallbackReconciler
from smartwin.payments.token_cache import TokenCache


@pytest.fixture
def ledger(clock):
    return NotificationLedger(86400, clock=clock)


@pytest.fixture
def reconciler(gateway, notifier, payment_config, clock, ledger):
    cache = TokenCache(gateway, payment_config, clock=clock)
    return CallbackReconciler(gateway, cache, notifier, payment_config, ledger=ledger, clock=clock)


class TestStatusMapping:

    @pytest.mark.parametrize('description, expected', [
        ('Completed', PaymentStatus.COMPLETED),
        ('Failed', PaymentStatus.FAILED),
        ('Invalid', PaymentStatus.INVALID),
        ('Reversed', PaymentStatus.REVERSED),
        ('Pending', PaymentStatus.PENDING),
        ('', PaymentStatus.PENDING),
        (None, PaymentStatus.PENDING),
        ('completed', PaymentStatus.PENDING),
        ('COMPLETED', PaymentStatus.PENDING),
        ('Completed ', PaymentStatus.PENDING),
        ('Settled', PaymentStatus.PENDING),
    ])
    def test_from_description(self, description, expected):
        assert PaymentStatus.from_description(description) is expected


class TestReconcile:

    def test_missing_tracking_id_makes_no_gateway_calls(self, reconciler, gateway, notifier):
        for tracking_id in (None, '', '   '):
            with pytest.raises(CallbackInputException):
                reconciler.reconcile(tracking_id)

        assert gateway.total_calls == 0
        assert notifier.attempts == 0

    def test_numeric_tracking_id_is_queried_as_text(self, reconciler, gateway):
        result = reconciler.reconcile(12345)

        assert result.tracking_id == '12345'
        assert gateway.status_queries == ['12345']

    def test_completed_payment_notifies_once(self, reconciler, gateway, notifier, clock):
        result = reconciler.reconcile('track-42', 'SMARTWIN-1')

        assert result.status is PaymentStatus.COMPLETED
        assert result.notified is True
        assert gateway.status_queries == ['track-42']
        assert notifier.attempts == 1

        summary, destination = notifier.sent[0]
        assert isinstance(summary, PaymentSummary)
        assert destination == 'ops@merchant.test'
        assert summary.tracking_id == 'track-42'
        assert summary.reference == 'SMARTWIN-1'
        assert summary.amount_display == '100 USD'
        assert summary.payment_method == 'Visa'
        assert summary.timestamp == clock.now

    @pytest.mark.parametrize('description', ['', 'Pending', 'Failed', 'Invalid', 'Reversed',
                                             'completed', 'Something new'])
    def test_other_statuses_do_not_notify(self, reconciler, gateway, notifier, description):
        gateway.status_payload['payment_status_description'] = description

        result = reconciler.reconcile('track-42')

        assert result.status is not PaymentStatus.COMPLETED
        assert result.notified is False
        assert notifier.attempts == 0

    def test_notifier_failure_does_not_fail_reconciliation(self, reconciler, notifier):
        notifier.fail = True

        result = reconciler.reconcile('track-42')

        assert result.status is PaymentStatus.COMPLETED
        assert result.notified is False
        assert notifier.attempts == 1

    def test_failed_notification_can_be_retried(self, reconciler, notifier, ledger):
        notifier.fail = True
        reconciler.reconcile('track-42')
        assert 'track-42' not in ledger

        notifier.fail = False
        result = reconciler.reconcile('track-42')

        assert result.notified is True
        assert len(notifier.sent) == 1

    def test_duplicate_callback_notifies_once(self, reconciler, gateway, notifier):
        reconciler.reconcile('track-42')
        second = reconciler.reconcile('track-42')

        assert second.status is PaymentStatus.COMPLETED
        assert second.notified is False
        assert notifier.attempts == 1
        # status is still re-queried every time
        assert gateway.calls['get_transaction_status'] == 2

    def test_without_ledger_every_callback_notifies(self, gateway, notifier, payment_config, clock):
        cache = TokenCache(gateway, payment_config, clock=clock)
        reconciler = CallbackReconciler(gateway, cache, notifier, payment_config, clock=clock)

        reconciler.reconcile('track-42')
        reconciler.reconcile('track-42')

        assert notifier.attempts == 2

    def test_result_carries_provider_payload(self, reconciler, gateway):
        result = reconciler.reconcile('track-42')

        assert result.amount == 100
        assert result.currency == 'USD'
        assert result.confirmation_code == 'CONF123'
        assert result.raw_provider_payload == gateway.status_payload

    def test_auth_failure_propagates(self, reconciler, gateway, notifier):
        gateway.token_error = PaymentAuthException('bad credentials')

        with pytest.raises(PaymentAuthException):
            reconciler.reconcile('track-42')

        assert gateway.calls['get_transaction_status'] == 0
        assert notifier.attempts == 0

    def test_status_query_failure_propagates(self, reconciler, gateway, notifier):
        gateway.status_error = TransactionStatusException('HTTP 500', status_code=500)

        with pytest.raises(TransactionStatusException):
            reconciler.reconcile('track-42')

        assert notifier.attempts == 0


class TestNotificationLedger:

    def test_claim_once(self, ledger):
        assert ledger.claim('t1') is True
        assert ledger.claim('t1') is False
        assert len(ledger) == 1

    def test_release(self, ledger):
        ledger.claim('t1')
        ledger.release('t1')

        assert ledger.claim('t1') is True

    def test_claims_expire(self, clock):
        ledger = NotificationLedger(60, clock=clock)
        ledger.claim('t1')

        clock.advance(61)

        assert 't1' not in ledger
        assert ledger.claim('t1') is True
