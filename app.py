# app.py

from typing import Optional, Type, TypeVar

from flask import Flask, current_app
from config import get_config
from extensions import db, migrate
from logging_config import setup_logging, get_logger
from repositories import BaseRepository

logger = get_logger(__name__)

R = TypeVar('R', bound=BaseRepository)


def create_app(config_name=None, test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    if test_config:
        app.config.update(test_config)

    # Initialize app with config
    config_class.init_app(app)

    setup_logging(
        app_name="repository-generator",
        log_level=app.config['LOG_LEVEL'],
        json_logs=app.config['LOG_JSON'],
        cache_loggers=not app.config.get('TESTING', False),
    )

    db.init_app(app)
    migrate.init_app(app, db)

    from scripts.commands import init_app as init_commands
    init_commands(app)

    logger.info(
        "Application created",
        env=app.config['APP_ENV'],
        diagnostic_mode=app.config['REPOSITORY_DIAGNOSTIC_MODE'],
    )
    return app


def build_repository(model_class,
                     repository_class: Type[R] = BaseRepository,
                     session=None,
                     app: Optional[Flask] = None) -> R:
    """
    Build a repository for a model using the application's repository flags.

    The diagnostic and raise flags are read from config here, once, and passed
    to the repository explicitly.

    Args:
        model_class: Mapped model class the repository manages
        repository_class: BaseRepository subclass to instantiate
        session: SQLAlchemy session (defaults to the Flask-SQLAlchemy session)
        app: Flask app (defaults to current_app)
    """
    app = app or current_app
    return repository_class.for_model(
        session if session is not None else db.session,
        model_class,
        diagnostic_mode=app.config.get('REPOSITORY_DIAGNOSTIC_MODE', False),
        raise_errors=app.config.get('REPOSITORY_RAISE_ERRORS', False),
    )


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False))
