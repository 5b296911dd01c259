"""Closed value sets shared by the models, schemas and due-status evaluator."""

import enum


class MachineType(enum.Enum):
    MRI = 'MRI'
    CT = 'CT'
    PET = 'PET'
    PET_CT = 'PET-CT'
    X_RAY = 'X-Ray'
    ULTRASOUND = 'Ultrasound'


class MachineStatus(enum.Enum):
    OPERATIONAL = 'operational'
    MAINTENANCE = 'maintenance'
    OFFLINE = 'offline'
    CRITICAL = 'critical'


class QCResult(enum.Enum):
    PASS = 'pass'
    FAIL = 'fail'
    CONDITIONAL = 'conditional'


class Cadence(enum.Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    ANNUAL = 'annual'


class DueStatus(enum.Enum):
    ON_TRACK = 'onTrack'
    DUE_TODAY = 'dueToday'
    OVERDUE = 'overdue'


def enum_values(enum_cls):
    """Database values for an Enum column (the wire strings, not member names)"""
    return [member.value for member in enum_cls]
