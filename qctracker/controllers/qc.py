from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError as SchemaValidationError
from qctracker import db
from qctracker.schemas import EvaluationSchema, QCBatchSchema, QCSubmissionSchema
from qctracker.services.due_status import evaluate_due_status
from qctracker.services.qc_service import QCService
from qctracker.utils.error_handler import ValidationError
from qctracker.utils.helpers import json_body

qc_bp = Blueprint('qc', __name__, url_prefix='/api/qc')


def _service():
    return QCService(db.session, lookback=current_app.config.get('QC_LOOKBACK_DAYS'))


def _load(schema, data, message="Invalid QC submission"):
    try:
        return schema.load(data)
    except SchemaValidationError as e:
        raise ValidationError(message, e.messages)


def _event_kwargs(data):
    return {
        'result': data['result'],
        'performed_by': data.get('performed_by'),
        'notes': data.get('notes'),
        'tests': data.get('tests'),
        'worksheet_id': data.get('worksheet_id'),
        'completed': data['completed']
    }


@qc_bp.route('/machines/<machine_id>/qc-history', methods=['GET'])
def qc_history(machine_id):
    limit = request.args.get('limit', type=int)
    if limit is not None and limit < 1:
        raise ValidationError("Invalid limit", {'limit': ['Must be a positive integer.']})

    completions = _service().history(machine_id, cadence=request.args.get('cadence') or None, limit=limit)
    return jsonify([completion.to_dict() for completion in completions])


@qc_bp.route('/submit', methods=['POST'])
def submit_qc():
    data = _load(QCSubmissionSchema(), json_body())
    service = _service()
    completion = service.record_qc(data['machine_id'], data['cadence'], data['date'], **_event_kwargs(data))

    return jsonify({
        'success': True,
        'message': 'QC data submitted successfully',
        'completion': completion.to_dict(),
        'machine': service.store.to_document(service.store.get(data['machine_id']))
    }), 201


@qc_bp.route('/batch', methods=['POST'])
def submit_qc_batch():
    data = _load(QCBatchSchema(), json_body())
    completions = _service().record_qc_batch(data['machine_ids'], data['cadence'], data['date'],
                                             **_event_kwargs(data))

    return jsonify({
        'success': True,
        'recorded': len(completions),
        'completions': [completion.to_dict() for completion in completions]
    }), 201


@qc_bp.route('/due-tasks', methods=['GET'])
def due_tasks():
    return jsonify(_service().due_tasks(request.args.get('today') or None))


@qc_bp.route('/completions/<int:completion_id>', methods=['DELETE'])
def delete_completion(completion_id):
    _service().delete_completion(completion_id)
    return jsonify({'success': True, 'message': f'QC completion {completion_id} deleted'})


@qc_bp.route('/evaluate', methods=['POST'])
def evaluate():
    """Due status of a single cadence for an ad-hoc history"""
    data = _load(EvaluationSchema(), json_body(), "Invalid evaluation request")

    result = evaluate_due_status(
        data['cadence'],
        data['history'],
        data['today'],
        lookback_days=data.get('lookback_days'),
        start_date=data.get('start_date')
    )
    return jsonify(result.to_dict())
