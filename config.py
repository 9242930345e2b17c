import os
from dotenv import load_dotenv
from typing import Optional

# Find the absolute path of the root directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load the .env file from the root directory
load_dotenv(os.path.join(basedir, '.env'))

TRUTHY_VALUES = {'1', 'true', 'yes', 'on'}


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid"""
    pass


def env_flag(key: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment"""
    value = os.environ.get(key)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in TRUTHY_VALUES


def current_env_name() -> str:
    """Name of the active environment: APP_ENV, then FLASK_ENV, then development"""
    return os.environ.get('APP_ENV') or os.environ.get('FLASK_ENV') or 'development'


class Config:
    """
    Base configuration class. Contains default configuration settings
    and settings applicable to all environments.
    """
    APP_ENV = current_env_name()

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'repositories.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_JSON = env_flag('LOG_JSON', False)

    # Repository behaviour. These are handed to each repository at
    # construction time; repositories never read config themselves.
    REPOSITORY_DIAGNOSTIC_MODE = env_flag('REPOSITORY_DIAGNOSTIC_MODE', False)
    REPOSITORY_RAISE_ERRORS = env_flag('REPOSITORY_RAISE_ERRORS', False)

    # Where `flask make-repository` writes generated modules
    REPOSITORY_OUTPUT_DIR = os.environ.get('REPOSITORY_OUTPUT_DIR') or \
        os.path.join(basedir, 'repositories')

    @classmethod
    def validate_required_config(cls, app) -> None:
        """Validate that all required configuration is present"""
        if not app.config.get('SQLALCHEMY_DATABASE_URI'):
            raise ConfigurationError("SQLALCHEMY_DATABASE_URI is not configured")

    @staticmethod
    def get_required_env(key: str) -> str:
        """Get required environment variable or raise error"""
        value = os.environ.get(key)
        if not value:
            raise ConfigurationError(f"Required environment variable {key} is not set")
        return value

    @classmethod
    def init_app(cls, app):
        """Initialize application with this config"""
        cls.validate_required_config(app)


class LocalConfig(Config):
    """
    Local workstation configuration.

    The only environment where a failing repository operation halts with a
    diagnostic dump instead of logging and returning an empty result.
    """
    APP_ENV = 'local'
    DEBUG = True
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('LOCAL_DATABASE_URL') or \
        Config.SQLALCHEMY_DATABASE_URI

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
    REPOSITORY_DIAGNOSTIC_MODE = env_flag('REPOSITORY_DIAGNOSTIC_MODE', True)


class DevelopmentConfig(Config):
    """Development environment configuration"""
    APP_ENV = 'development'
    DEBUG = True
    TESTING = False

    # Development-specific database URI
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        Config.SQLALCHEMY_DATABASE_URI


class TestingConfig(Config):
    """Testing environment configuration"""
    APP_ENV = 'testing'
    TESTING = True
    DEBUG = True

    # Use in-memory SQLite for tests
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    LOG_LEVEL = 'DEBUG'
    LOG_JSON = False
    REPOSITORY_DIAGNOSTIC_MODE = False
    REPOSITORY_RAISE_ERRORS = False


class ProductionConfig(Config):
    """Production environment configuration"""
    APP_ENV = 'production'
    DEBUG = False
    TESTING = False

    # Production database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', '')

    LOG_JSON = env_flag('LOG_JSON', True)

    # Never halt a request in production, whatever the environment says
    REPOSITORY_DIAGNOSTIC_MODE = False

    @classmethod
    def validate_required_config(cls, app) -> None:
        """Production needs an explicit database URL"""
        if not app.config.get('SQLALCHEMY_DATABASE_URI'):
            app.config['SQLALCHEMY_DATABASE_URI'] = cls.get_required_env('DATABASE_URL')


# Configuration dictionary
config = {
    'local': LocalConfig,
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None) -> type[Config]:
    """Get configuration class based on environment"""
    if config_name is None:
        config_name = current_env_name()

    return config.get(config_name, DevelopmentConfig)
