import os
from dotenv import load_dotenv
from typing import Optional

# Find the absolute path of the root directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load the .env file from the root directory
load_dotenv(os.path.join(basedir, '.env'))


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid"""
    pass


def _int_env(key: str, default: int) -> int:
    """Read an integer setting, treating an empty string as unset"""
    raw = os.environ.get(key)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable {key} must be an integer, got {raw!r}")


class Config:
    """
    Base configuration class. Contains default configuration settings
    and settings applicable to all environments.
    """
    FLASK_ENV = os.environ.get('FLASK_ENV')

    @classmethod
    def validate_required_config(cls) -> None:
        """Validate that all required configuration is present"""
        # Skip validation in testing environment
        if os.environ.get('FLASK_ENV') == 'testing' or os.environ.get('SKIP_ENV_VALIDATION'):
            return

        missing_vars = []
        if cls.ALERT_DELIVERY == 'webhook' and not cls.ALERT_WEBHOOK_URL:
            missing_vars.append('ALERT_WEBHOOK_URL')

        if missing_vars:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        if cls.ALERT_DELIVERY not in ('log', 'webhook'):
            raise ConfigurationError(
                f"ALERT_DELIVERY must be 'log' or 'webhook', got {cls.ALERT_DELIVERY!r}"
            )

    @staticmethod
    def get_required_env(key: str) -> str:
        """Get required environment variable or raise error"""
        value = os.environ.get(key)
        if not value:
            raise ConfigurationError(f"Required environment variable {key} is not set")
        return value

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('POSTGRES_URI') or \
        'sqlite:///' + os.path.join(basedir, 'crm.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Celery (Flask loads the uppercase names, Celery maps them to lowercase)
    CELERY_BROKER_URL = os.environ.get('REDIS_URL') or 'redis://redis:6379/0'
    CELERY_RESULT_BACKEND = os.environ.get('REDIS_URL') or 'redis://redis:6379/0'

    # Alert delivery: 'log' only records to the log, 'webhook' posts to ALERT_WEBHOOK_URL
    ALERT_DELIVERY = os.environ.get('ALERT_DELIVERY', 'log').lower()
    ALERT_WEBHOOK_URL = os.environ.get('ALERT_WEBHOOK_URL')
    WEBHOOK_TIMEOUT_SECONDS = _int_env('WEBHOOK_TIMEOUT_SECONDS', 30)

    # "Today" for alert evaluation is the calendar date in this timezone
    ALERT_TIMEZONE = os.environ.get('ALERT_TIMEZONE', 'America/New_York')

    # Alert windows (days before the date, inclusive)
    DEFAULT_ALERT_LEAD_DAYS = _int_env('DEFAULT_ALERT_LEAD_DAYS', 7)
    BIRTHDAY_LEAD_DAYS = _int_env('BIRTHDAY_LEAD_DAYS', 7)
    NEXT_CONTACT_LEAD_DAYS = _int_env('NEXT_CONTACT_LEAD_DAYS', 7)
    TASK_LEAD_DAYS = _int_env('TASK_LEAD_DAYS', 7)

    # Sent-alert ledger retention sweep
    SENT_ALERT_RETENTION_DAYS = _int_env('SENT_ALERT_RETENTION_DAYS', 30)

    JSON_SORT_KEYS = False

    @classmethod
    def init_app(cls, app):
        """Initialize application with this config"""
        pass


class DevelopmentConfig(Config):
    """Development environment configuration"""
    DEBUG = True
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        Config.SQLALCHEMY_DATABASE_URI

    @classmethod
    def init_app(cls, app):
        """Development-specific initialization"""
        Config.init_app(app)

        # Log to stdout in development
        import logging
        from logging import StreamHandler
        stream_handler = StreamHandler()
        stream_handler.setLevel(logging.DEBUG)
        app.logger.addHandler(stream_handler)


class TestingConfig(Config):
    """Testing environment configuration"""
    TESTING = True
    DEBUG = True

    # Use in-memory SQLite for tests
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    # Use test Redis database
    CELERY_BROKER_URL = 'redis://localhost:6379/1'
    CELERY_RESULT_BACKEND = 'redis://localhost:6379/1'

    ALERT_DELIVERY = 'log'
    ALERT_WEBHOOK_URL = None
    ALERT_TIMEZONE = 'UTC'


class ProductionConfig(Config):
    """Production environment configuration"""
    DEBUG = False
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', '')

    REDIS_URL = os.environ.get('REDIS_URL', '')
    CELERY_BROKER_URL = os.environ.get('REDIS_URL', '')
    CELERY_RESULT_BACKEND = os.environ.get('REDIS_URL', '')

    @classmethod
    def init_app(cls, app):
        """Production-specific initialization"""
        Config.init_app(app)

        if not cls.SQLALCHEMY_DATABASE_URI:
            cls.SQLALCHEMY_DATABASE_URI = cls.get_required_env('POSTGRES_URI')
            app.config['SQLALCHEMY_DATABASE_URI'] = cls.SQLALCHEMY_DATABASE_URI

        # Validate all required config
        cls.validate_required_config()

        # Log to syslog in production
        import logging
        from logging.handlers import SysLogHandler
        syslog_handler = SysLogHandler()
        syslog_handler.setLevel(logging.WARNING)
        app.logger.addHandler(syslog_handler)


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None) -> type[Config]:
    """Get configuration class based on environment"""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    return config.get(config_name, DevelopmentConfig)
