"""Development configuration for the QC tracker application."""

from .base import Config
import os


class DevelopmentConfig(Config):
    """Development configuration."""

    # Debug mode
    DEBUG = True
    TESTING = False

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        'sqlite:///qctracker_dev.db'

    # Logging
    LOG_LEVEL = 'DEBUG'

    # Rate limiting
    RATELIMIT_ENABLED = False  # Disable rate limiting in development
