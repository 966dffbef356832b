"""
Payment System Package
All payment-related functionality is contained in this package.
"""

from flask import Blueprint

# Create payment blueprint
payment_bp = Blueprint('payments', __name__, url_prefix='/api')

# Import routes to register them with the blueprint
from . import routes  # noqa: E402,F401


def init_payment_system(app, gateway=None, notifier=None, clock=None):
    """
    Initialize the payment system with the Flask app.

    Builds the payment components from the app config once and keeps them
    in ``app.extensions['payments']`` so the token cache is shared by every
    request this process serves.

    Args:
        app: Flask application
        gateway: Gateway client, defaults to Pesapal
        notifier: Operator notifier, defaults to Resend email
        clock: Optional clock for the token cache and ledger
    """
    from .config import PaymentConfig
    from .gateways import get_gateway
    from .notifications import ResendNotifier
    from .services import PaymentSystem

    config = PaymentConfig.from_mapping(app.config)
    gateway = gateway or get_gateway('pesapal', config)
    notifier = notifier or ResendNotifier(config)

    kwargs = {'clock': clock} if clock else {}
    app.extensions['payments'] = PaymentSystem(config, gateway, notifier, **kwargs)

    if not config.is_gateway_enabled():
        app.logger.warning('Pesapal credentials not configured. Set PESAPAL_CONSUMER_KEY and PESAPAL_CONSUMER_SECRET.')
    if not notifier.is_configured():
        app.logger.warning('RESEND_API_KEY not configured; payment notifications will fail.')

    # Register the payment blueprint
    app.register_blueprint(payment_bp)

    return app
