"""Machine record store for the QC tracker application."""

from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from qctracker.models import Machine, MachineStatus, MachineType, QCCompletion
from qctracker.schemas import MachineSchema
from qctracker.services.due_status import QCHistoryEntry, earliest_next_due
from qctracker.utils.error_handler import DatabaseError, NotFoundError, ValidationError
from qctracker.utils.helpers import utc_today
from qctracker.utils.logging_config import get_logger, log_qc_event

logger = get_logger(__name__)

DEFAULT_SCHEDULE = {'daily': True}


def _as_enum(enum_cls, value, field):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field}: {value!r}", {field: [f"Must be one of: {allowed}."]})


class MachineStore:
    """Validated reads and writes of Machine records.

    The session is passed in by the caller; the store never reaches for an
    application-wide connection. Records are never deleted, decommissioning
    is a transition to ``offline``.
    """

    def __init__(self, session, lookback=None):
        self.session = session
        self.lookback = lookback or {}
        self.schema = MachineSchema()

    def create(self, record, today=None):
        """Register a machine; fails on missing fields, bad enums or a duplicate machineId."""
        data = self._load(record)
        machine_id = data['machine_id']

        if self._find(machine_id) is not None:
            raise ValidationError(f"Machine {machine_id} already exists",
                                  {'machineId': ['A machine with this id already exists.']})

        machine = Machine(machine_id=machine_id)
        data.setdefault('qc_schedule', dict(DEFAULT_SCHEDULE))
        self._apply(machine, data)

        if machine.next_qc_due is None:
            machine.next_qc_due = self.derive_next_due(machine, today)

        self.session.add(machine)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError(f"Machine {machine_id} already exists",
                                  {'machineId': ['A machine with this id already exists.']})
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DatabaseError(str(e)) from e

        logger.info(f"Registered machine {machine_id} ({machine.type.value})")
        log_qc_event('MACHINE_REGISTERED', machine_id, {'type': machine.type.value})
        return machine

    def update(self, machine_id, patch, today=None):
        """Merge a partial document into an existing record."""
        machine = self.get(machine_id)
        data = self._load(patch, partial=True)

        if 'machine_id' in data and data['machine_id'] != machine.machine_id:
            raise ValidationError("machineId cannot be changed",
                                  {'machineId': ['machineId is immutable once assigned.']})
        data.pop('machine_id', None)

        if data.get('location') is not None:
            data['location'] = {**(machine.location or {}), **data['location']}
        if data.get('last_qc') is not None:
            data['last_qc'] = {**(machine.last_qc or {}), **data['last_qc']}
        if 'qc_schedule' in data:
            schedule = {**machine.qc_schedule, **(data['qc_schedule'] or {})}
            if not any(schedule.values()):
                raise ValidationError("Invalid machine record",
                                      {'qcSchedule': ['At least one QC cadence must be enabled.']})
            data['qc_schedule'] = schedule

        previous_status = machine.status
        self._apply(machine, data)

        tracking_changed = 'qc_schedule' in data or 'installation_date' in data
        if tracking_changed and 'next_qc_due' not in data:
            machine.next_qc_due = self.derive_next_due(machine, today)

        self._commit()

        logger.info(f"Updated machine {machine_id}: {', '.join(sorted(data)) or 'no changes'}")
        if machine.status != previous_status:
            log_qc_event('STATUS_CHANGE', machine_id,
                         {'from': previous_status.value, 'to': machine.status.value})
        return machine

    def get(self, machine_id):
        machine = self._find(machine_id)
        if machine is None:
            raise NotFoundError(f"Machine {machine_id} not found")
        return machine

    def list(self, type=None, status=None, building=None):
        """Machines matching every given filter, ordered by machineId."""
        query = self.session.query(Machine)

        machine_type = _as_enum(MachineType, type, 'type')
        if machine_type is not None:
            query = query.filter(Machine.type == machine_type)

        machine_status = _as_enum(MachineStatus, status, 'status')
        if machine_status is not None:
            query = query.filter(Machine.status == machine_status)

        if building:
            query = query.filter(Machine.location_building == building)

        return query.order_by(Machine.machine_id).all()

    def set_status(self, machine_id, status):
        status = _as_enum(MachineStatus, status, 'status')
        if status is None:
            raise ValidationError("Status is required", {'status': ['Missing data for required field.']})

        machine = self.get(machine_id)
        previous_status = machine.status
        machine.status = status
        self._commit()

        if previous_status != status:
            logger.info(f"Machine {machine_id} status {previous_status.value} -> {status.value}")
            log_qc_event('STATUS_CHANGE', machine_id, {'from': previous_status.value, 'to': status.value})
        return machine

    def decommission(self, machine_id):
        """Take a machine out of service; the record stays."""
        return self.set_status(machine_id, MachineStatus.OFFLINE)

    def to_document(self, machine):
        return self.schema.dump(machine.to_record())

    def histories_for(self, machine):
        """Completion history per enabled cadence, most recent first."""
        rows = self.session.query(QCCompletion).filter(
            QCCompletion.machine_id == machine.machine_id
        ).order_by(QCCompletion.date.desc()).all()

        histories = {cadence: [] for cadence in machine.enabled_cadences()}
        for row in rows:
            if row.cadence in histories:
                histories[row.cadence].append(QCHistoryEntry(row.date, row.completed))
        return histories

    def derive_next_due(self, machine, today=None):
        """Earliest deadline across the machine's enabled cadences."""
        histories = self.histories_for(machine) if machine.machine_id and machine.id else {}
        return earliest_next_due(
            machine.qc_schedule, histories, today or utc_today(),
            start_date=machine.installation_date, lookback=self.lookback
        )

    def _find(self, machine_id):
        return self.session.query(Machine).filter_by(machine_id=machine_id).first()

    def _load(self, record, partial=False):
        if not isinstance(record, dict):
            raise ValidationError("Machine record must be a JSON object")
        try:
            return self.schema.load(record, partial=partial)
        except SchemaValidationError as e:
            raise ValidationError("Invalid machine record", e.messages)

    def _apply(self, machine, data):
        for key, value in data.items():
            setattr(machine, key, value)

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DatabaseError(str(e)) from e
