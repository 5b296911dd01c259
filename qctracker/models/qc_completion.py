from qctracker import db
from qctracker.models.enums import Cadence, QCResult, enum_values
from datetime import datetime


class QCCompletion(db.Model):
    __tablename__ = 'qc_completions'
    __table_args__ = (
        db.UniqueConstraint('machine_id', 'cadence', 'date', name='uq_completion_machine_cadence_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.String(50), db.ForeignKey('machines.machine_id'), nullable=False, index=True)
    cadence = db.Column(db.Enum(Cadence, name='qc_cadences', values_callable=enum_values), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    completed = db.Column(db.Boolean, default=True, nullable=False)
    result = db.Column(db.Enum(QCResult, name='qc_completion_results', values_callable=enum_values), nullable=True)
    performed_by = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    tests = db.Column(db.JSON, nullable=True)
    worksheet_id = db.Column(db.String(100), nullable=True)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'machineId': self.machine_id,
            'cadence': self.cadence.value,
            'date': self.date.isoformat(),
            'completed': self.completed,
            'result': self.result.value if self.result else None,
            'performedBy': self.performed_by,
            'notes': self.notes,
            'tests': self.tests or [],
            'worksheetId': self.worksheet_id,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None
        }

    def __repr__(self):
        return f'<QCCompletion {self.machine_id} {self.cadence.value} {self.date}>'
