from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError as SchemaValidationError
from qctracker import db
from qctracker.schemas import StatusChangeSchema
from qctracker.services.machine_store import MachineStore
from qctracker.services.qc_service import QCService
from qctracker.utils.error_handler import ValidationError
from qctracker.utils.helpers import json_body

machines_bp = Blueprint('machines', __name__, url_prefix='/api/machines')


def _store():
    return MachineStore(db.session, lookback=current_app.config.get('QC_LOOKBACK_DAYS'))


@machines_bp.route('', methods=['GET'])
def list_machines():
    store = _store()
    machines = store.list(
        type=request.args.get('type') or None,
        status=request.args.get('status') or None,
        building=request.args.get('building') or None
    )
    return jsonify([store.to_document(machine) for machine in machines])


@machines_bp.route('', methods=['POST'])
def create_machine():
    store = _store()
    machine = store.create(json_body())
    return jsonify(store.to_document(machine)), 201


@machines_bp.route('/<machine_id>', methods=['GET'])
def get_machine(machine_id):
    store = _store()
    return jsonify(store.to_document(store.get(machine_id)))


@machines_bp.route('/<machine_id>', methods=['PATCH'])
def update_machine(machine_id):
    store = _store()
    machine = store.update(machine_id, json_body())
    return jsonify(store.to_document(machine))


@machines_bp.route('/<machine_id>/status', methods=['PATCH'])
def change_status(machine_id):
    try:
        data = StatusChangeSchema().load(json_body())
    except SchemaValidationError as e:
        raise ValidationError("Invalid status change", e.messages)

    store = _store()
    machine = store.set_status(machine_id, data['status'])
    return jsonify(store.to_document(machine))


@machines_bp.route('/status/<status>', methods=['GET'])
def machines_by_status(status):
    store = _store()
    return jsonify([store.to_document(machine) for machine in store.list(status=status)])


@machines_bp.route('/type/<machine_type>', methods=['GET'])
def machines_by_type(machine_type):
    store = _store()
    return jsonify([store.to_document(machine) for machine in store.list(type=machine_type)])


@machines_bp.route('/<machine_id>/due-status', methods=['GET'])
def due_status(machine_id):
    service = QCService(db.session, lookback=current_app.config.get('QC_LOOKBACK_DAYS'))
    return jsonify(service.due_status(machine_id, request.args.get('today') or None))
