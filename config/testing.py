"""Testing configuration for the QC tracker application."""

from .base import Config
import os
import tempfile


class TestingConfig(Config):
    """Testing configuration."""

    # Debug mode
    DEBUG = True
    TESTING = True

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite://'

    # Logging
    LOG_LEVEL = 'DEBUG'
    LOG_DIR = os.environ.get('TEST_LOG_DIR') or os.path.join(tempfile.gettempdir(), 'qctracker-test-logs')

    # Rate limiting
    RATELIMIT_ENABLED = False

    # Scheduler
    DUE_CHECK_ENABLED = False
