from datetime import date, datetime
from flask import request
from qctracker.utils.error_handler import InvalidDateError, ValidationError


def utc_today():
    """Current date in UTC"""
    return datetime.utcnow().date()


def parse_date(value, field='date'):
    """Parse an ISO date (YYYY-MM-DD); datetimes are truncated to their date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(f"Invalid {field}: {value!r}")

    text = value.strip()
    try:
        if len(text) > 10:
            return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidDateError(f"Invalid {field}: {value!r}")


def parse_optional_date(value, field='date'):
    """Like parse_date, but None and '' mean 'not supplied'"""
    if value is None or value == '':
        return None
    return parse_date(value, field)


def format_location(location):
    """Get a display string such as 'Main Hospital - MRI Suite 1'"""
    if not location:
        return ''
    building = location.get('building')
    room = location.get('room')
    parts = [part for part in (building, room) if part]
    return ' - '.join(parts)


def json_body():
    """JSON object body of the current request"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
