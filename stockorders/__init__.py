"""Flask application factory."""
from flask import Flask, jsonify
from stockorders.database import init_db
import logging
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    # Sentry error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize database
    init_db(app)

    # Redis cache for order statistics
    from stockorders.services.cache_service import init_cache
    init_cache(app)

    # Error Handlers
    from stockorders.exceptions import SaasError

    @app.errorhandler(SaasError)
    def handle_saas_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"SaasError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"SaasError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    from stockorders.blueprints.metrics import metrics_bp
    app.register_blueprint(metrics_bp)

    from stockorders.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
