from qctracker import db
from qctracker.models.enums import Cadence, MachineStatus, MachineType, QCResult, enum_values
from datetime import datetime


class Machine(db.Model):
    __tablename__ = 'machines'

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.Enum(MachineType, name='machine_types', values_callable=enum_values), nullable=False)
    manufacturer = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    serial_number = db.Column(db.String(100), nullable=False)

    # Location
    location_building = db.Column(db.String(100), nullable=True)
    location_floor = db.Column(db.String(20), nullable=True)
    location_room = db.Column(db.String(100), nullable=True)

    installation_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.Enum(MachineStatus, name='machine_status', values_callable=enum_values),
                       default=MachineStatus.OPERATIONAL, nullable=False)

    # Last QC
    last_qc_date = db.Column(db.Date, nullable=True)
    last_qc_result = db.Column(db.Enum(QCResult, name='qc_results', values_callable=enum_values), nullable=True)
    last_qc_performed_by = db.Column(db.String(100), nullable=True)
    last_qc_notes = db.Column(db.Text, nullable=True)

    next_qc_due = db.Column(db.Date, nullable=False)

    # QC schedule
    qc_daily = db.Column(db.Boolean, default=False, nullable=False)
    qc_weekly = db.Column(db.Boolean, default=False, nullable=False)
    qc_monthly = db.Column(db.Boolean, default=False, nullable=False)
    qc_quarterly = db.Column(db.Boolean, default=False, nullable=False)
    qc_annual = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    completions = db.relationship('QCCompletion', backref='machine', lazy=True)

    @property
    def location(self):
        if not any((self.location_building, self.location_floor, self.location_room)):
            return None
        return {
            'building': self.location_building,
            'floor': self.location_floor,
            'room': self.location_room
        }

    @location.setter
    def location(self, value):
        value = value or {}
        self.location_building = value.get('building')
        self.location_floor = value.get('floor')
        self.location_room = value.get('room')

    @property
    def last_qc(self):
        if self.last_qc_date is None and self.last_qc_result is None:
            return None
        return {
            'date': self.last_qc_date,
            'result': self.last_qc_result,
            'performed_by': self.last_qc_performed_by,
            'notes': self.last_qc_notes
        }

    @last_qc.setter
    def last_qc(self, value):
        value = value or {}
        self.last_qc_date = value.get('date')
        self.last_qc_result = value.get('result')
        self.last_qc_performed_by = value.get('performed_by')
        self.last_qc_notes = value.get('notes')

    @property
    def qc_schedule(self):
        return {cadence.value: bool(getattr(self, f'qc_{cadence.value}')) for cadence in Cadence}

    @qc_schedule.setter
    def qc_schedule(self, value):
        for cadence in Cadence:
            setattr(self, f'qc_{cadence.value}', bool(value.get(cadence.value, False)))

    def enabled_cadences(self):
        """Cadences switched on in the QC schedule, shortest period first"""
        return [cadence for cadence in Cadence if getattr(self, f'qc_{cadence.value}')]

    def to_record(self):
        """Nested record (snake_case keys) ready for MachineSchema.dump"""
        return {
            'machine_id': self.machine_id,
            'name': self.name,
            'type': self.type,
            'manufacturer': self.manufacturer,
            'model': self.model,
            'serial_number': self.serial_number,
            'location': self.location,
            'installation_date': self.installation_date,
            'status': self.status,
            'last_qc': self.last_qc,
            'next_qc_due': self.next_qc_due,
            'qc_schedule': self.qc_schedule,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }

    def __repr__(self):
        return f'<Machine {self.machine_id}>'
