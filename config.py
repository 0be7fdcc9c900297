"""Configuration module for the order management backend."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'stock')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'stock')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'stock')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    DB_POOL_SIZE = int(os.getenv('DB_POOL_SIZE', '10'))
    DB_MAX_OVERFLOW = int(os.getenv('DB_MAX_OVERFLOW', '20'))

    # Finalization locking
    # Postgres: SET LOCAL lock_timeout for the finalize transaction (0 = wait forever)
    DB_LOCK_TIMEOUT_MS = int(os.getenv('DB_LOCK_TIMEOUT_MS', '5000'))
    # SQLite: seconds a writer waits for the database lock
    SQLITE_BUSY_TIMEOUT = float(os.getenv('SQLITE_BUSY_TIMEOUT', '30'))

    # Reporting window for stock history analysis (months)
    HISTORY_WINDOW_MONTHS = int(os.getenv('HISTORY_WINDOW_MONTHS', '6'))

    # Redis Cache Configuration
    # Shared cache layer for order statistics and reporting reads
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_STATS_TTL = int(os.getenv('CACHE_STATS_TTL', '60'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'stock')

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///test_stockorders.db')
    SQLALCHEMY_ECHO = False
    CACHE_ENABLED = False
    SQLITE_BUSY_TIMEOUT = 60.0
