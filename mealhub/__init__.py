"""Flask application factory."""
import atexit
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from mealhub.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize Sentry for error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Supplier order emails
    from mealhub.services.email_service import init_mail
    init_mail(app)

    # Redis menu cache
    from mealhub.services.cache_service import init_cache
    init_cache(app)

    # Prometheus instrumentation
    from mealhub.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust the reverse proxy headers
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    database = init_db(app)
    if not app.config.get('TESTING'):
        atexit.register(database.dispose)

    # Error Handlers
    from mealhub.exceptions import MealHubError
    from mealhub.database import get_session

    @app.errorhandler(MealHubError)
    def handle_mealhub_error(error):
        """Render application exceptions as JSON and drop any pending work."""
        get_session().rollback()
        if error.status_code >= 500:
            app.logger.error(f"MealHubError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"MealHubError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method Not Allowed'}), 405

    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.description}), error.code

        import traceback
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        get_session().rollback()
        return jsonify({'error': 'Internal Server Error'}), 500

    # Register blueprints
    from mealhub.blueprints.menu import menu_bp
    from mealhub.blueprints.cart import cart_bp
    from mealhub.blueprints.checkout import checkout_bp
    from mealhub.blueprints.payments import payments_bp
    from mealhub.blueprints.orders import orders_bp
    from mealhub.blueprints.metrics import metrics_bp

    app.register_blueprint(menu_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from mealhub.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"PAYMENT_PROVIDER={app.config.get('PAYMENT_PROVIDER')}")
    app.logger.info(f"MAIL_SERVER={app.config.get('MAIL_SERVER')}")

    return app
