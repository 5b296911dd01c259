from flask import Blueprint, jsonify
from qctracker import db
from qctracker.utils.reporting import ReportingService

reports_bp = Blueprint('reports', __name__, url_prefix='/api/reports')


@reports_bp.route('/summary', methods=['GET'])
def summary():
    return jsonify(ReportingService(db.session).get_summary())


@reports_bp.route('/monthly-qc/<machine_id>/<int:year>/<int:month>', methods=['GET'])
def monthly_qc(machine_id, year, month):
    return jsonify(ReportingService(db.session).get_monthly_report(machine_id, year, month))
