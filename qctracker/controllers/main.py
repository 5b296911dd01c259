from flask import Blueprint, jsonify
from datetime import datetime
from qctracker import db, limiter
from qctracker.utils.logging_config import get_logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

main_bp = Blueprint('main', __name__)
logger = get_logger(__name__)


@main_bp.route('/api/health')
@limiter.exempt
def health():
    db_status = 'ok'
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        db_status = 'unavailable'

    return jsonify({
        'status': 'ok' if db_status == 'ok' else 'degraded',
        'database': db_status,
        'timestamp': datetime.utcnow().isoformat() + 'Z'
    })
