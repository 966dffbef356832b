import logging
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config, DevelopmentConfig, ProductionConfig, TestingConfig

CONFIGS = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}


def get_config_class() -> type[Config]:
    """Pick the config class from FLASK_ENV / APP_ENV, defaulting to Config."""
    env = (os.environ.get('APP_ENV') or os.environ.get('FLASK_ENV') or '').lower()
    return CONFIGS.get(env, Config)


def create_app(config_class: type[Config] | None = None, gateway=None, notifier=None, clock=None):
    app = Flask(__name__)

    config_obj = config_class or get_config_class()
    app.config.from_object(config_obj)

    # Payment modules log through child loggers of app.logger ("smartwin.*")
    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)

    from smartwin.payments import init_payment_system
    init_payment_system(app, gateway=gateway, notifier=notifier, clock=clock)

    @app.route("/_health", methods=["GET"])
    def healthcheck():
        return jsonify({"status": "ok"}), 200

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        """Render routing errors (404, 405, ...) as JSON like the API endpoints."""
        message = 'Method not allowed' if e.code == 405 else e.name
        return jsonify({"error": message}), e.code

    return app
