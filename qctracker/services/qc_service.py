"""QC recording and due-task service for the QC tracker application."""

from sqlalchemy.exc import SQLAlchemyError

from qctracker.models import Cadence, DueStatus, MachineStatus, QCCompletion, QCResult
from qctracker.services.due_status import (
    as_cadence, evaluate_schedule, qc_priority, worst_status
)
from qctracker.services.machine_store import MachineStore
from qctracker.utils.error_handler import DatabaseError, NotFoundError, ValidationError
from qctracker.utils.helpers import format_location, parse_date, utc_today
from qctracker.utils.logging_config import get_logger, log_qc_event

logger = get_logger(__name__)

# A failed QC takes these statuses to critical
FAIL_ESCALATES = (MachineStatus.OPERATIONAL, MachineStatus.MAINTENANCE)


class QCService:
    """Service for recording QC events and deriving due status from them."""

    def __init__(self, session, lookback=None):
        self.session = session
        self.lookback = lookback or {}
        self.store = MachineStore(session, lookback=self.lookback)

    def record_qc(self, machine_id, cadence, qc_date, result=QCResult.PASS, performed_by=None,
                  notes=None, tests=None, worksheet_id=None, completed=True, today=None):
        """Record a QC event.

        One completion is kept per (machine, cadence, date); recording the same
        event again replaces it, so retries are harmless.
        """
        machine = self.store.get(machine_id)
        cadence = as_cadence(cadence)
        qc_date = parse_date(qc_date, 'QC date')
        result = self._as_result(result)

        completion = self.session.query(QCCompletion).filter_by(
            machine_id=machine.machine_id, cadence=cadence, date=qc_date
        ).first()
        if completion is None:
            completion = QCCompletion(machine_id=machine.machine_id, cadence=cadence, date=qc_date)
            self.session.add(completion)

        completion.completed = completed
        completion.result = result
        completion.performed_by = performed_by
        completion.notes = notes
        completion.tests = tests or []
        completion.worksheet_id = worksheet_id

        previous_status = machine.status
        if completed and result is QCResult.FAIL and machine.status in FAIL_ESCALATES:
            machine.status = MachineStatus.CRITICAL

        self.session.flush()
        self._resync_machine(machine, today)
        self._commit()

        logger.info(f"Recorded {cadence.value} QC for {machine.machine_id} on {qc_date}: {result.value}")
        log_qc_event('QC_RECORDED', machine.machine_id, {
            'cadence': cadence.value,
            'date': qc_date.isoformat(),
            'result': result.value,
            'performedBy': performed_by
        })
        if machine.status != previous_status:
            log_qc_event('STATUS_CHANGE', machine.machine_id,
                         {'from': previous_status.value, 'to': machine.status.value, 'reason': 'failed QC'})
        return completion

    def record_qc_batch(self, machine_ids, cadence, qc_date, **kwargs):
        """Record the same QC event for several machines.

        Each machine is committed on its own; the batch is not atomic but can
        be retried as a whole because record_qc is idempotent.
        """
        return [self.record_qc(machine_id, cadence, qc_date, **kwargs) for machine_id in machine_ids]

    def history(self, machine_id, cadence=None, limit=None):
        """Get QC completions for a machine, most recent first."""
        machine = self.store.get(machine_id)
        query = self.session.query(QCCompletion).filter_by(machine_id=machine.machine_id)
        if cadence is not None:
            query = query.filter_by(cadence=as_cadence(cadence))
        query = query.order_by(QCCompletion.date.desc(), QCCompletion.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def due_status(self, machine_id, today=None):
        """Per-cadence due status of one machine plus the overall (worst) status."""
        machine = self.store.get(machine_id)
        today = parse_date(today, 'today') if today is not None else utc_today()
        results = self._evaluate(machine, today)
        return {
            'machineId': machine.machine_id,
            'today': today.isoformat(),
            'overall': worst_status(results.values()).value,
            'cadences': {cadence.value: result.to_dict() for cadence, result in results.items()}
        }

    def due_tasks(self, today=None):
        """Overdue and due-today QC tasks across every machine still in service."""
        today = parse_date(today, 'today') if today is not None else utc_today()
        tasks = {}
        for cadence in Cadence:
            tasks[f'{cadence.value}Overdue'] = []
            tasks[f'{cadence.value}DueToday'] = []

        for machine in self.store.list():
            if machine.status is MachineStatus.OFFLINE:
                continue

            for cadence, result in self._evaluate(machine, today).items():
                if result.status is DueStatus.ON_TRACK:
                    continue

                days_overdue = (today - result.first_missing_date).days
                task = {
                    'machineId': machine.machine_id,
                    'machineName': machine.name,
                    'type': machine.type.value,
                    'location': format_location(machine.location),
                    'daysOverdue': days_overdue,
                    'nextDue': result.first_missing_date.isoformat(),
                    'lastQC': machine.last_qc_date.isoformat() if machine.last_qc_date else None,
                    'priority': qc_priority(days_overdue, cadence)
                }
                if result.status is DueStatus.OVERDUE:
                    tasks[f'{cadence.value}Overdue'].append(task)
                else:
                    tasks[f'{cadence.value}DueToday'].append(task)

        return tasks

    def refresh_next_due(self, today=None):
        """Recompute nextQCDue for every machine; returns how many changed."""
        today = parse_date(today, 'today') if today is not None else utc_today()
        changed = 0
        for machine in self.store.list():
            next_due = self.store.derive_next_due(machine, today)
            if machine.next_qc_due != next_due:
                machine.next_qc_due = next_due
                changed += 1
        self._commit()
        return changed

    def delete_completion(self, completion_id, today=None):
        completion = self.session.get(QCCompletion, completion_id)
        if completion is None:
            raise NotFoundError(f"QC completion {completion_id} not found")

        machine = self.store.get(completion.machine_id)
        self.session.delete(completion)
        self.session.flush()
        self._resync_machine(machine, today)
        self._commit()

        logger.info(f"Deleted QC completion {completion_id} for {machine.machine_id}")
        return True

    def clear_completions(self, machine_id=None, today=None):
        """Delete recorded completions (all, or one machine's); returns the count."""
        query = self.session.query(QCCompletion)
        if machine_id is not None:
            machines = [self.store.get(machine_id)]
            query = query.filter_by(machine_id=machine_id)
        else:
            machines = self.store.list()

        count = query.delete(synchronize_session=False)
        self.session.flush()
        for machine in machines:
            self._resync_machine(machine, today)
        self._commit()

        logger.info(f"Cleared {count} QC completion(s){f' for {machine_id}' if machine_id else ''}")
        return count

    def _evaluate(self, machine, today):
        return evaluate_schedule(
            machine.qc_schedule, self.store.histories_for(machine), today,
            lookback=self.lookback, start_date=machine.installation_date
        )

    def _resync_machine(self, machine, today):
        latest = self.session.query(QCCompletion).filter_by(
            machine_id=machine.machine_id, completed=True
        ).order_by(QCCompletion.date.desc(), QCCompletion.id.desc()).first()

        if latest is None:
            machine.last_qc = None
        else:
            machine.last_qc = {
                'date': latest.date,
                'result': latest.result,
                'performed_by': latest.performed_by,
                'notes': latest.notes
            }
        machine.next_qc_due = self.store.derive_next_due(machine, today)

    def _as_result(self, result):
        if isinstance(result, QCResult):
            return result
        try:
            return QCResult(result)
        except ValueError:
            allowed = ', '.join(member.value for member in QCResult)
            raise ValidationError(f"Invalid result: {result!r}", {'result': [f"Must be one of: {allowed}."]})

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DatabaseError(str(e)) from e
