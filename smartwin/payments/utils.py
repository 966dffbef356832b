"""
Payment System Utilities
Helper functions for payment processing.
"""

import math
import re
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

_FRACTION_RE = re.compile(r'\.(\d{6})\d+')


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_payment_reference(prefix: str = 'SMARTWIN') -> str:
    """
    Generate a unique merchant reference for an order.

    Combines the namespace prefix, the nanosecond timestamp and a random
    suffix so two submissions in the same instant still differ.

    Args:
        prefix: Namespace prefix

    Returns:
        Reference such as ``SMARTWIN-1718000000000000000-3F9A1C2B``
    """
    return f"{prefix}-{time.time_ns()}-{uuid.uuid4().hex[:8].upper()}"


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a caller-supplied amount.

    Returns:
        The amount as a Decimal, or None if it is missing, not a finite
        number (as a Decimal or as a float), or not positive
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    # The gateway takes a float; 1e400 overflows it and 1e-400 underflows to 0
    as_float = float(amount)
    if not math.isfinite(as_float) or as_float <= 0:
        return None
    return amount


def parse_gateway_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp from the gateway.

    Pesapal sends up to seven fractional digits and a trailing ``Z``, e.g.
    ``2021-08-26T12:29:30.5177702Z``. Naive values are treated as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    text = _FRACTION_RE.sub(r'.\1', value.strip())
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_error_response(error: str, details: Optional[Any] = None, **extra: Any) -> Dict[str, Any]:
    """
    Format a standardized error body.

    Args:
        error: Short error summary
        details: Caller-safe details, omitted when None
        extra: Additional keys to include

    Returns:
        Error response dictionary
    """
    response: Dict[str, Any] = {'error': error}
    if details is not None:
        response['details'] = details
    response.update(extra)
    return response


def mask_secret(value: Optional[str]) -> str:
    """
    Mask a credential for logging (show only first and last few characters).
    """
    if not value:
        return ''
    if len(value) <= 12:
        return '***'
    return f"{value[:4]}...{value[-4:]}"
