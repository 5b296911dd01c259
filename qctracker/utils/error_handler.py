"""Error handling and custom exception classes for the QC tracker application."""

from flask import jsonify, request
from qctracker.utils.logging_config import get_logger


# Custom exception classes
class QCTrackerException(Exception):
    """Base exception class for the QC tracker application."""
    pass


class ValidationError(QCTrackerException):
    """Raised when a machine record or QC event fails validation."""

    def __init__(self, message, messages=None):
        super().__init__(message)
        self.messages = messages or {}


class NotFoundError(QCTrackerException):
    """Raised when a machineId or completion does not exist."""
    pass


class InvalidDateError(QCTrackerException):
    """Raised when a date input cannot be parsed."""
    pass


class DatabaseError(QCTrackerException):
    """Raised when database operations fail."""
    pass


# Logger for error handling
logger = get_logger('qctracker.errors')
app_logger = get_logger(__name__)


def handle_error_response(error, status_code, message, details=None):
    """Helper function to create standardized error responses."""
    payload = {
        'error': error,
        'message': message
    }
    if details:
        payload['details'] = details
    return jsonify(payload), status_code


def init_error_handlers(app):
    """Initialize error handlers for the Flask application."""

    @app.errorhandler(ValidationError)
    def validation_error(error):
        app_logger.info(f"Validation error: {request.url} - {error}")
        return handle_error_response('Validation Error', 400, str(error), error.messages)

    @app.errorhandler(InvalidDateError)
    def invalid_date(error):
        app_logger.info(f"Invalid date: {request.url} - {error}")
        return handle_error_response('Invalid Date', 400, str(error))

    @app.errorhandler(NotFoundError)
    def record_not_found(error):
        app_logger.info(f"Not found: {request.url} - {error}")
        return handle_error_response('Not Found', 404, str(error))

    @app.errorhandler(DatabaseError)
    def database_error(error):
        logger.error(f"Database error: {request.url} - {error}", exc_info=True)
        return handle_error_response('Database Error', 500, 'Database error occurred')

    @app.errorhandler(400)
    def bad_request(error):
        logger.error(f"Bad request: {request.url} - {str(error)}")
        return handle_error_response(
            'Bad Request', 400,
            str(error.description) if hasattr(error, 'description') else 'Invalid request'
        )

    @app.errorhandler(404)
    def not_found(error):
        app_logger.info(f"Page not found: {request.url}")
        return handle_error_response('Not Found', 404, 'The requested resource was not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return handle_error_response('Method Not Allowed', 405, 'The method is not allowed for this endpoint')

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        app_logger.warning(f"Rate limit exceeded: {request.url} from {request.remote_addr}")
        return handle_error_response('Rate Limit Exceeded', 429, 'Too many requests. Please try again later.')

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {request.url} - {str(error)}", exc_info=True)
        return handle_error_response('Internal Server Error', 500, 'An unexpected error occurred')
