from qctracker.models import Machine, MachineStatus, MachineType, QCCompletion, QCResult
from qctracker.services.machine_store import MachineStore
from qctracker.utils.error_handler import ValidationError
from datetime import MAXYEAR, MINYEAR, date
from sqlalchemy import func
import calendar


class ReportingService:
    def __init__(self, session):
        self.session = session

    def get_machine_statistics(self):
        """Get machine-related statistics"""
        stats = {}

        # Total machines
        stats['total_machines'] = self.session.query(Machine).count()

        # Machines by status
        by_status = dict(
            self.session.query(Machine.status, func.count(Machine.id)).group_by(Machine.status).all()
        )
        stats['machines_by_status'] = {status.value: by_status.get(status, 0) for status in MachineStatus}

        # Machines by type
        by_type = dict(
            self.session.query(Machine.type, func.count(Machine.id)).group_by(Machine.type).all()
        )
        stats['machines_by_type'] = {machine_type.value: by_type.get(machine_type, 0) for machine_type in MachineType}

        return stats

    def get_qc_statistics(self):
        """Get QC completion statistics"""
        stats = {}

        # Total recorded completions
        stats['total_completions'] = self.session.query(QCCompletion).filter_by(completed=True).count()

        # Completions by result
        by_result = dict(
            self.session.query(QCCompletion.result, func.count(QCCompletion.id))
            .filter(QCCompletion.completed.is_(True))
            .group_by(QCCompletion.result).all()
        )
        stats['completions_by_result'] = {result.value: by_result.get(result, 0) for result in QCResult}

        # Completions by cadence
        by_cadence = (
            self.session.query(QCCompletion.cadence, func.count(QCCompletion.id))
            .filter(QCCompletion.completed.is_(True))
            .group_by(QCCompletion.cadence).all()
        )
        stats['completions_by_cadence'] = {cadence.value: count for cadence, count in by_cadence}

        return stats

    def get_summary(self):
        """Fleet summary used by the dashboard and the weekly job"""
        return {
            'machine_stats': self.get_machine_statistics(),
            'qc_stats': self.get_qc_statistics()
        }

    def get_monthly_report(self, machine_id, year, month):
        """QC activity of one machine in one calendar month"""
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month: {month}", {'month': ['Must be between 1 and 12.']})
        if not MINYEAR <= year <= MAXYEAR:
            raise ValidationError(f"Invalid year: {year}", {'year': [f'Must be between {MINYEAR} and {MAXYEAR}.']})

        store = MachineStore(self.session)
        machine = store.get(machine_id)

        start_date = date(year, month, 1)
        end_date = date(year, month, calendar.monthrange(year, month)[1])

        completions = self.session.query(QCCompletion).filter(
            QCCompletion.machine_id == machine.machine_id,
            QCCompletion.date >= start_date,
            QCCompletion.date <= end_date
        ).order_by(QCCompletion.date).all()

        results = {result.value: 0 for result in QCResult}
        for completion in completions:
            if completion.completed and completion.result:
                results[completion.result.value] += 1

        return {
            'period': f"{start_date.strftime('%B')} {year}",
            'machine': store.to_document(machine),
            'completions': [completion.to_dict() for completion in completions],
            'results': results
        }
