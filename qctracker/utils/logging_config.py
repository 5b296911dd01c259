"""Logging configuration for the QC tracker application."""

import logging
import logging.config
import os
from pythonjsonlogger import jsonlogger


def setup_logging(log_level='INFO', log_dir='logs'):
    """Set up logging configuration for the application."""

    # Create logs directory if it doesn't exist
    os.makedirs(log_dir, exist_ok=True)

    # Define log format
    audit_format = '%(asctime)s %(name)s %(levelname)s %(message)s %(event_type)s %(machine_id)s'

    # Configure logging
    logging_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(name)s %(funcName)s %(lineno)d: %(message)s'
            },
            'json': {
                '()': jsonlogger.JsonFormatter,
                'format': audit_format
            }
        },
        'handlers': {
            'default': {
                'level': log_level,
                'formatter': 'standard',
                'class': 'logging.StreamHandler',
                'stream': 'ext://sys.stdout'
            },
            'file': {
                'level': log_level,
                'formatter': 'detailed',
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': os.path.join(log_dir, 'app.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5
            },
            'audit_file': {
                'level': 'INFO',
                'formatter': 'json',
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': os.path.join(log_dir, 'audit.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5
            },
            'error_file': {
                'level': 'ERROR',
                'formatter': 'detailed',
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': os.path.join(log_dir, 'error.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5
            }
        },
        'loggers': {
            '': {  # root logger
                'handlers': ['default', 'file'],
                'level': log_level,
                'propagate': False
            },
            'qctracker.audit': {
                'handlers': ['audit_file'],
                'level': 'INFO',
                'propagate': False
            },
            'qctracker.errors': {
                'handlers': ['error_file', 'default'],
                'level': 'ERROR',
                'propagate': False
            }
        }
    }

    logging.config.dictConfig(logging_config)

    # Set specific log levels for third-party libraries
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('apscheduler').setLevel(logging.WARNING)


def get_logger(name):
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


def log_qc_event(event_type, machine_id=None, details=None):
    """Write a QC audit event (submission, status change, due check)."""
    logger = get_logger('qctracker.audit')
    logger.info(
        "QC event",
        extra={
            'event_type': event_type,
            'machine_id': machine_id,
            'details': details
        }
    )
