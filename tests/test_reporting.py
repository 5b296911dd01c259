import pytest

from qctracker.services.qc_service import QCService
from qctracker.utils.error_handler import NotFoundError, ValidationError
from qctracker.utils.reporting import ReportingService


def test_machine_statistics(session, make_machine):
    make_machine('MRI-100')
    make_machine('CT-100', type='CT', status='maintenance')
    make_machine('PET-100', type='PET-CT')

    stats = ReportingService(session).get_machine_statistics()

    assert stats['total_machines'] == 3
    assert stats['machines_by_status'] == {'operational': 2, 'maintenance': 1, 'offline': 0, 'critical': 0}
    assert stats['machines_by_type']['PET-CT'] == 1
    assert stats['machines_by_type']['X-Ray'] == 0


def test_qc_statistics_count_completed_events_only(session, make_machine):
    make_machine(qcSchedule={'daily': True, 'monthly': True})
    service = QCService(session)
    service.record_qc('MRI-100', 'daily', '2024-05-13')
    service.record_qc('MRI-100', 'monthly', '2024-05-13', result='conditional')
    service.record_qc('MRI-100', 'daily', '2024-05-14', completed=False)

    stats = ReportingService(session).get_qc_statistics()

    assert stats['total_completions'] == 2
    assert stats['completions_by_result'] == {'pass': 1, 'fail': 0, 'conditional': 1}
    assert stats['completions_by_cadence'] == {'daily': 1, 'monthly': 1}


def test_monthly_report(session, make_machine):
    make_machine()
    service = QCService(session)
    service.record_qc('MRI-100', 'daily', '2024-04-30')
    service.record_qc('MRI-100', 'daily', '2024-05-13')
    service.record_qc('MRI-100', 'daily', '2024-05-31', result='fail')

    report = ReportingService(session).get_monthly_report('MRI-100', 2024, 5)

    assert report['period'] == 'May 2024'
    assert report['machine']['machineId'] == 'MRI-100'
    assert [c['date'] for c in report['completions']] == ['2024-05-13', '2024-05-31']
    assert report['results'] == {'pass': 1, 'fail': 1, 'conditional': 0}


def test_monthly_report_rejects_bad_input(session, make_machine):
    make_machine()
    reporting = ReportingService(session)

    with pytest.raises(ValidationError):
        reporting.get_monthly_report('MRI-100', 2024, 0)
    with pytest.raises(ValidationError):
        reporting.get_monthly_report('MRI-100', 0, 5)
    with pytest.raises(ValidationError):
        reporting.get_monthly_report('MRI-100', 10000, 5)
    with pytest.raises(NotFoundError):
        reporting.get_monthly_report('MRI-999', 2024, 5)
