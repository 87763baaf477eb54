"""Flask application factory."""
import logging
from flask import Flask, request, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from invoicer.database import init_db

csrf = CSRFProtect()


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    csrf.init_app(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'The session has expired. Fetch a new CSRF token.'}), 400

    # Error tracking only in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
        )

    from invoicer.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    init_db(app)

    from invoicer.middleware import load_current_user

    @app.before_request
    def before_request_handler():
        load_current_user()

    # Error Handlers
    from invoicer.exceptions import InvoicerError

    @app.errorhandler(InvoicerError)
    def handle_invoicer_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"InvoicerError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"InvoicerError [{error.status_code}] on {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from invoicer.blueprints.main import main_bp
    from invoicer.blueprints.auth import auth_bp
    from invoicer.blueprints.catalog import catalog_bp
    from invoicer.blueprints.customers import customers_bp
    from invoicer.blueprints.billing import billing_bp
    from invoicer.blueprints.reports import reports_bp
    from invoicer.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(metrics_bp)

    # The scraper sends no CSRF token
    csrf.exempt(metrics_bp)

    from invoicer.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
