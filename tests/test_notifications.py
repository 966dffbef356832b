"""
Unit tests for the Resend email notifier.
"""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from smartwin.payments.config import PaymentConfig
from smartwin.payments.exceptions import NotificationException
from smartwin.payments.models import ManualPaymentSubmission, PaymentSummary
from smartwin.payments.notifications import ResendNotifier


@pytest.fixture
def resend_notifier(payment_config):
    return ResendNotifier(payment_config)


@pytest.fixture
def summary():
    return PaymentSummary(
        reference='SMARTWIN-1', tracking_id='track-42', amount=100, currency='USD',
        payment_method='Visa', status='Completed',
        timestamp=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def manual_submission():
    return ManualPaymentSubmission(
        payment_method='USDT (TRC20)', full_name='Jane Doe', email='jane@example.com',
        phone='+254700000000', transaction_id='0xabc123', amount_sent='50 USDT',
        submitted_at='2024-01-15T12:00:00+00:00',
    )


class TestResendNotifier:

    def test_sends_payment_summary(self, app, resend_notifier, summary):
        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send') as send:
            send.return_value = {'id': 'email-123'}

            email_id = resend_notifier.notify(summary, 'ops@merchant.test')

        assert email_id == 'email-123'
        params = send.call_args[0][0]
        assert params['to'] == ['ops@merchant.test']
        assert params['from'] == 'Smart Win Payments <onboarding@resend.dev>'
        assert params['subject'] == 'Pesapal Payment Received - Smart Win'
        assert 'track-42' in params['html']
        assert '100 USD' in params['html']
        assert 'SMARTWIN-1' in params['html']

    def test_sends_manual_submission(self, app, resend_notifier, manual_submission):
        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send') as send:
            send.return_value = {'id': 'email-456'}

            resend_notifier.notify(manual_submission, 'ops@merchant.test')

        params = send.call_args[0][0]
        assert params['subject'] == 'New Payment Submission - USDT (TRC20) - Jane Doe'
        assert '0xabc123' in params['html']
        assert 'blockchain explorer' not in params['html']

    def test_crypto_submission_mentions_blockchain(self, app, resend_notifier, manual_submission):
        manual_submission.payment_method = 'Crypto (BTC)'
        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send') as send:
            send.return_value = {'id': 'email-789'}

            resend_notifier.notify(manual_submission, 'ops@merchant.test')

        assert 'blockchain explorer' in send.call_args[0][0]['html']

    def test_object_response_id(self, app, resend_notifier, summary):
        class Sent:
            id = 'email-obj'

        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send', return_value=Sent()):
            assert resend_notifier.notify(summary, 'ops@merchant.test') == 'email-obj'

    def test_preformatted_from_address_kept(self, app, summary):
        config = PaymentConfig(resend_api_key='re_test_key',
                               resend_from_email='Billing <billing@merchant.com>')
        notifier = ResendNotifier(config)

        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send') as send:
            send.return_value = {'id': 'email-1'}
            notifier.notify(summary, 'ops@merchant.test')

        assert send.call_args[0][0]['from'] == 'Billing <billing@merchant.com>'

    def test_missing_api_key(self, app, summary):
        notifier = ResendNotifier(PaymentConfig())

        assert notifier.is_configured() is False
        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send') as send:
            with pytest.raises(NotificationException, match='RESEND_API_KEY'):
                notifier.notify(summary, 'ops@merchant.test')

        send.assert_not_called()

    def test_missing_destination(self, app, resend_notifier, summary):
        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send') as send:
            with pytest.raises(NotificationException):
                resend_notifier.notify(summary, '')

        send.assert_not_called()

    def test_sdk_failure(self, app, resend_notifier, summary):
        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send',
                      side_effect=Exception('rate limited')):
            with pytest.raises(NotificationException, match='rate limited'):
                resend_notifier.notify(summary, 'ops@merchant.test')

    def test_response_without_id(self, app, resend_notifier, summary):
        with app.app_context(), \
                patch('smartwin.payments.notifications.resend.Emails.send', return_value={}):
            with pytest.raises(NotificationException, match='email id'):
                resend_notifier.notify(summary, 'ops@merchant.test')
