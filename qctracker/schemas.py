# qctracker/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError, RAISE

from qctracker.models.enums import Cadence, MachineStatus, MachineType, QCResult

_required_text = validate.Length(min=1)


class LocationSchema(Schema):
    building = fields.String(allow_none=True)
    floor = fields.String(allow_none=True)
    room = fields.String(allow_none=True)


class LastQCSchema(Schema):
    date = fields.Date(allow_none=True)
    result = fields.Enum(QCResult, by_value=True, allow_none=True)
    performed_by = fields.String(data_key="performedBy", allow_none=True)
    notes = fields.String(allow_none=True)


class QCScheduleSchema(Schema):
    daily = fields.Boolean(load_default=False)
    weekly = fields.Boolean(load_default=False)
    monthly = fields.Boolean(load_default=False)
    quarterly = fields.Boolean(load_default=False)
    annual = fields.Boolean(load_default=False)

    @validates_schema
    def at_least_one_cadence(self, data, partial=None, **kwargs):
        if partial:
            return
        if not any(data.get(cadence.value) for cadence in Cadence):
            raise ValidationError("At least one QC cadence must be enabled.")


class MachineSchema(Schema):
    """Machine document as exchanged over the API (camelCase keys)."""

    class Meta:
        unknown = RAISE

    machine_id = fields.String(data_key="machineId", required=True, validate=_required_text)
    name = fields.String(required=True, validate=_required_text)
    type = fields.Enum(MachineType, by_value=True, required=True)
    manufacturer = fields.String(required=True, validate=_required_text)
    model = fields.String(required=True, validate=_required_text)
    serial_number = fields.String(data_key="serialNumber", required=True, validate=_required_text)
    location = fields.Nested(LocationSchema, allow_none=True)
    installation_date = fields.Date(data_key="installationDate", required=True)
    status = fields.Enum(MachineStatus, by_value=True, load_default=MachineStatus.OPERATIONAL)
    last_qc = fields.Nested(LastQCSchema, data_key="lastQC", allow_none=True)
    next_qc_due = fields.Date(data_key="nextQCDue")
    qc_schedule = fields.Nested(QCScheduleSchema, data_key="qcSchedule")
    created_at = fields.DateTime(data_key="createdAt", dump_only=True)
    updated_at = fields.DateTime(data_key="updatedAt", dump_only=True)


class StatusChangeSchema(Schema):
    status = fields.Enum(MachineStatus, by_value=True, required=True)


class QCEventSchema(Schema):
    """A QC event as submitted by a technician, minus the machine reference."""

    cadence = fields.Enum(Cadence, by_value=True, required=True)
    date = fields.Date(required=True)
    completed = fields.Boolean(load_default=True)
    result = fields.Enum(QCResult, by_value=True, load_default=QCResult.PASS)
    performed_by = fields.String(data_key="performedBy", allow_none=True)
    notes = fields.String(allow_none=True)
    tests = fields.List(fields.Dict(), load_default=list)
    worksheet_id = fields.String(data_key="worksheetId", allow_none=True)


class QCSubmissionSchema(QCEventSchema):
    machine_id = fields.String(data_key="machineId", required=True, validate=_required_text)


class QCBatchSchema(QCEventSchema):
    machine_ids = fields.List(fields.String(validate=_required_text), data_key="machineIds", required=True,
                              validate=validate.Length(min=1))


class HistoryEntrySchema(Schema):
    date = fields.Date(required=True)
    completed = fields.Boolean(load_default=True, truthy={True}, falsy={False})


class EvaluationSchema(Schema):
    """Ad-hoc due-status request for a single cadence."""

    cadence = fields.Enum(Cadence, by_value=True, required=True)
    today = fields.Date(required=True)
    start_date = fields.Date(data_key="startDate", allow_none=True)
    history = fields.List(fields.Nested(HistoryEntrySchema), load_default=list)
    lookback_days = fields.Integer(data_key="lookbackDays", strict=True, allow_none=True,
                                   validate=validate.Range(min=1))
