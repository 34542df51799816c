"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > PG_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        PG_HOST = os.getenv('PG_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        PG_PORT = os.getenv('PG_PORT') or os.getenv('POSTGRES_PORT', '5432')
        PG_DB = os.getenv('PG_DB') or os.getenv('POSTGRES_DB', 'mealhub')
        PG_USER = os.getenv('PG_USER') or os.getenv('POSTGRES_USER', 'mealhub')
        PG_PASSWORD = os.getenv('PG_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'mealhub')

        DATABASE_URL = (
            f"postgresql://{PG_USER}:{PG_PASSWORD}"
            f"@{PG_HOST}:{PG_PORT}/{PG_DB}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    SQLALCHEMY_POOL_SIZE = int(os.getenv('SQLALCHEMY_POOL_SIZE', '10'))
    SQLALCHEMY_MAX_OVERFLOW = int(os.getenv('SQLALCHEMY_MAX_OVERFLOW', '20'))

    # Cart / order lifecycle windows
    CART_TTL_HOURS = int(os.getenv('CART_TTL_HOURS', '48'))
    ORDER_EXPIRY_HOURS = int(os.getenv('ORDER_EXPIRY_HOURS', '48'))
    ORDERS_LIST_LIMIT = int(os.getenv('ORDERS_LIST_LIMIT', '500'))

    # Payments
    PAYMENT_PROVIDER = os.getenv('PAYMENT_PROVIDER', 'mock')
    PAYMENT_WEBHOOK_SECRET = os.getenv('PAYMENT_WEBHOOK_SECRET')

    # Supplier dispatch (webhook + email)
    SUPPLIER_NOTIFY_TIMEOUT = float(os.getenv('SUPPLIER_NOTIFY_TIMEOUT', '5'))

    # Email configuration
    MAIL_SERVER = os.getenv('SMTP_HOST', 'smtp.gmail.com')
    MAIL_PORT = int(os.getenv('SMTP_PORT', 587))
    MAIL_USE_TLS = True
    MAIL_USE_SSL = False
    MAIL_USERNAME = os.getenv('SMTP_USER') or ''
    MAIL_PASSWORD = os.getenv('SMTP_PASSWORD') or ''
    MAIL_DEFAULT_SENDER = (
        os.getenv('SMTP_FROM')
        or MAIL_USERNAME
        or 'no-reply@localhost'
    )
    MAIL_SUPPRESS_SEND = os.getenv('MAIL_SUPPRESS_SEND', 'false').lower() == 'true'

    # Redis Cache Configuration
    # Only catalog listings are cached; checkout always reads stock and price from the database
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_MENU_TTL = int(os.getenv('CACHE_MENU_TTL', '30'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'mealhub')


class TestingConfig(Config):
    """In-memory SQLite, no cache, no outgoing mail."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    CACHE_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    PAYMENT_WEBHOOK_SECRET = None
