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

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # CSRF: API clients send the token from /auth/csrf-token in X-CSRFToken
    WTF_CSRF_ENABLED = os.getenv('WTF_CSRF_ENABLED', 'true').lower() == 'true'

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_* > local SQLite file
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL and (os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST')):
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'invoicer')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'invoicer')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'invoicer')

        DATABASE_URL = (
            f"postgresql+psycopg://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    if not DATABASE_URL:
        # Single shop install
        DATABASE_URL = 'sqlite:///invoicer.db'

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Business Information (printed on bills)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'Invoicer Pro')
    BUSINESS_TAGLINE = os.getenv('BUSINESS_TAGLINE', 'Your Business Partner')
    BUSINESS_ADDRESS = os.getenv('BUSINESS_ADDRESS', '')
    BUSINESS_PHONE = os.getenv('BUSINESS_PHONE', '')
    BUSINESS_EMAIL = os.getenv('BUSINESS_EMAIL', '')

    # Billing rules
    BILL_NUMBER_PREFIX = os.getenv('BILL_NUMBER_PREFIX', 'INV')
    MAX_DISCOUNT_PERCENTAGE = int(os.getenv('MAX_DISCOUNT_PERCENTAGE', '100'))

    # Generative AI (product descriptions and sales insights)
    GEMINI_API_KEY = os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')
    GEMINI_BASE_URL = os.getenv('GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta')
    GEMINI_DESCRIPTION_MODEL = os.getenv('GEMINI_DESCRIPTION_MODEL', 'gemini-2.5-flash')
    GEMINI_INSIGHTS_MODEL = os.getenv('GEMINI_INSIGHTS_MODEL', 'gemini-2.5-pro')
    GEMINI_TIMEOUT = int(os.getenv('GEMINI_TIMEOUT', '30'))  # seconds

    # Error tracking
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    GEMINI_API_KEY = None
    SENTRY_DSN = None
