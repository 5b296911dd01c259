"""Base configuration for the QC tracker application."""

import os


class Config:
    """Base configuration class."""

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///qctracker.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '1000 per 15 minutes')
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True

    # Daily due check
    DUE_CHECK_ENABLED = os.environ.get('DUE_CHECK_ENABLED', 'True').lower() == 'true'
    DUE_CHECK_HOUR = int(os.environ.get('DUE_CHECK_HOUR', 7))
    DUE_CHECK_MINUTE = int(os.environ.get('DUE_CHECK_MINUTE', 0))

    # Per-cadence lookback window overrides in days, e.g. {'weekly': 14}
    QC_LOOKBACK_DAYS = {}
