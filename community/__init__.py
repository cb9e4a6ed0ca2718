"""Main Flask application factory."""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_mail import Mail
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config import get_config
from community.models.base import db
from community.services.cache_service import CacheService


# Initialize extensions
jwt = JWTManager()
mail = Mail()
migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["500 per day", "100 per hour"]
)


def create_app(config_name=None):
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)

    # Load configuration
    config = get_config(config_name)
    app.config.from_object(config)
    app.config['UPLOAD_FOLDER'] = Path(app.config['UPLOAD_FOLDER']).resolve()

    # Setup logging
    setup_logging(app)

    # Initialize extensions
    db.init_app(app)
    jwt.init_app(app)
    mail.init_app(app)
    migrate.init_app(app, db)
    CORS(app, origins=app.config['CORS_ORIGINS'])
    limiter.init_app(app)

    # Initialize cache
    app.cache = None
    if app.config.get('CACHE_ENABLED'):
        app.cache = CacheService(app.config['REDIS_URL'])

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Create tables
    with app.app_context():
        db.create_all()

    app.logger.info(f"Community Platform initialized in {config.FLASK_ENV} mode")

    return app


def setup_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Create logs directory
        log_dir = Path(app.config['LOG_FILE']).parent
        log_dir.mkdir(parents=True, exist_ok=True)

        formatter = logging.Formatter(app.config['LOG_FORMAT'])
        level = getattr(logging, app.config['LOG_LEVEL'])

        # File handler
        file_handler = RotatingFileHandler(
            app.config['LOG_FILE'],
            maxBytes=10240000,
            backupCount=10
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)

        # app.logger is the "community" logger; module loggers propagate to it
        app.logger.addHandler(file_handler)
        app.logger.addHandler(console_handler)
        app.logger.setLevel(level)


def register_blueprints(app):
    """Register Flask blueprints."""
    from community.api import messages
    from community.api.v1 import auth, research
    from community import routes

    app.register_blueprint(messages.bp, url_prefix='/api/messages')

    # API v1
    app.register_blueprint(auth.bp, url_prefix='/api/v1/auth')
    app.register_blueprint(research.bp, url_prefix='/api/v1/research')

    # Web routes
    app.register_blueprint(routes.bp)


def register_error_handlers(app):
    """Register error handlers."""
    from community.utils.error_handlers import register_handlers
    register_handlers(app)


def register_cli_commands(app):
    """Register CLI commands."""
    from community.cli import register_commands
    register_commands(app)
