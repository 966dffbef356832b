"""
Operator notifications.

The payment flow only depends on ``Notifier``; ``ResendNotifier`` delivers
the summaries as HTML email through Resend.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import resend
from flask import render_template

from smartwin.payments.config import PaymentConfig
from smartwin.payments.exceptions import NotificationException
from smartwin.payments.utils import mask_secret

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Delivers a structured summary to an operator."""

    @abstractmethod
    def notify(self, summary: Any, destination: str) -> str:
        """
        Send ``summary`` to ``destination``.

        Args:
            summary: PaymentSummary or ManualPaymentSubmission
            destination: Operator address

        Returns:
            Delivery identifier

        Raises:
            NotificationException: If the message could not be delivered
        """
        pass

    def is_configured(self) -> bool:
        return True


class ResendNotifier(Notifier):
    """
    Email notifier backed by the Resend API.

    Templates are rendered with Flask, so ``notify`` needs an application
    context (request handlers always have one).
    """

    def __init__(self, config: PaymentConfig):
        self.api_key = config.resend_api_key
        self.from_email = config.resend_from_email
        self.business_name = config.business_name

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _format_from(self) -> str:
        # Format FROM email with business name if available
        if self.business_name and '<' not in self.from_email:
            return f"{self.business_name} Payments <{self.from_email}>"
        return self.from_email

    def render(self, summary: Any) -> str:
        return render_template(summary.template, summary=summary, business_name=self.business_name)

    def subject_for(self, summary: Any) -> str:
        return summary.subject_template.format(business_name=self.business_name, **vars(summary))

    def notify(self, summary: Any, destination: str) -> str:
        if not self.api_key:
            raise NotificationException("RESEND_API_KEY is not configured")
        if not destination:
            raise NotificationException("No notification destination configured")

        subject = self.subject_for(summary)
        html = self.render(summary)

        resend.api_key = self.api_key
        try:
            # Resend API requires "to" as a list
            response = resend.Emails.send({
                "from": self._format_from(),
                "to": [destination],
                "subject": subject,
                "html": html,
            })
        except Exception as e:
            raise NotificationException(f"Failed to send email via Resend: {str(e)}") from e

        email_id = _response_id(response)
        if not email_id:
            raise NotificationException("Resend did not return an email id")

        logger.info(
            f"Notification email sent to {destination}",
            extra={"to": destination, "subject": subject, "email_id": email_id,
                   "api_key": mask_secret(self.api_key)}
        )
        return email_id


def _response_id(response: Any) -> Optional[str]:
    # Handle different response formats
    if isinstance(response, dict):
        return response.get('id')
    return getattr(response, 'id', None)
