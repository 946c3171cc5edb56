"""Flask application factory for the nomadic skills survey backend."""
from flask import Flask, jsonify
from flask_cors import CORS
import logging
from werkzeug.exceptions import HTTPException
from .models import db
from .settings import Settings
from .services.storage import init_storage
from .blueprints import auth, sync, storage, dashboard, communities, skills_survey, user_manager, public
from .cli import init_db_command
from .logging_config import setup_logging

logger = logging.getLogger(__name__)

TEST_JWT_SECRET = 'test-secret-not-for-production'


def create_app(test_config=None):
    """Flask application factory for the survey backend.

    Creates and configures a Flask application instance with:
    - SQLAlchemy database integration
    - The storage backend chosen by STORAGE_LOCATION
    - Blueprint registration for API endpoints
    - JWT authentication
    - CLI command registration
    - Logging configuration

    Args:
        test_config (dict, optional): Configuration overrides for testing

    Returns:
        Flask: Configured Flask application instance
    """
    settings = Settings()

    # Setup logging first
    setup_logging(settings.log_level)
    logger.info("Starting Flask application initialization")

    app = Flask(__name__)

    if test_config is None:
        app.config.from_mapping(settings.to_flask_config())
        logger.info("Loaded configuration from environment")
    else:
        # Load the test config if passed in
        app.config.from_mapping(test_config)
        logger.info("Loaded test configuration")

    if not app.config.get('JWT_SECRET'):
        if not app.config.get('TESTING'):
            raise RuntimeError("JWT_SECRET must be set")
        app.config['JWT_SECRET'] = TEST_JWT_SECRET
    app.config.setdefault('JWT_EXPIRES_IN_SECONDS', settings.jwt_expires_in_seconds)
    app.config.setdefault('MAIL_FROM', settings.mail_from)
    app.config.setdefault('INVITATION_URL', settings.invitation_url)
    app.config.setdefault('CORS_ORIGINS', [])
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    logger.info(f"Using database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")

    db.init_app(app)
    logger.info("SQLAlchemy database initialized")

    init_storage(app)
    logger.info(f"Storage backend: {app.config.get('STORAGE_LOCATION', 'LOCAL')}")

    # Register blueprints
    logger.info("Registering API blueprints")
    for module in (auth, sync, storage, dashboard, communities, skills_survey, user_manager, public):
        app.register_blueprint(module.bp)
        logger.debug(f"Registered {module.bp.name} blueprint")
    logger.info("All API blueprints registered successfully")

    # Initialize authentication
    auth.init_auth(app)
    logger.info("Authentication system initialized")

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({'status': e.code, 'message': e.description}), e.code

    CORS(
        app,
        origins=app.config['CORS_ORIGINS'],
        supports_credentials=True,
        allow_headers=['Authorization', 'Content-Type'],
        methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']
    )
    logger.info(f"CORS enabled for origins: {app.config['CORS_ORIGINS']}")

    # Register CLI commands
    app.cli.add_command(init_db_command)
    logger.info("CLI commands registered: init-db")

    logger.info("Flask application initialization completed successfully")
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
