from datetime import date

import pytest

from qctracker.models import MachineStatus, MachineType
from qctracker.services.machine_store import MachineStore
from qctracker.utils.error_handler import NotFoundError, ValidationError
from tests.conftest import BASE_RECORD, TODAY


def test_create_applies_defaults(make_machine):
    machine = make_machine()

    assert machine.machine_id == 'MRI-100'
    assert machine.type is MachineType.MRI
    assert machine.status is MachineStatus.OPERATIONAL
    assert machine.qc_schedule == {
        'daily': True, 'weekly': False, 'monthly': False, 'quarterly': False, 'annual': False
    }
    assert machine.last_qc is None
    # Nothing recorded since installation on Monday
    assert machine.next_qc_due == date(2024, 5, 13)


def test_create_derives_next_due_from_installation_date(make_machine):
    machine = make_machine(installationDate='2024-05-15')

    assert machine.next_qc_due == TODAY


def test_create_keeps_explicit_next_due(make_machine):
    machine = make_machine(nextQCDue='2024-06-01', qcSchedule={'monthly': True})

    assert machine.next_qc_due == date(2024, 6, 1)
    assert machine.enabled_cadences()[0].value == 'monthly'


def test_create_rejects_duplicate_machine_id(make_machine):
    make_machine()

    with pytest.raises(ValidationError) as excinfo:
        make_machine()
    assert 'machineId' in excinfo.value.messages


def test_create_rejects_incomplete_or_invalid_records(session):
    store = MachineStore(session)

    with pytest.raises(ValidationError) as excinfo:
        store.create({'machineId': 'CT-009', 'type': 'CT'}, today=TODAY)
    assert {'name', 'manufacturer', 'model', 'serialNumber', 'installationDate'} <= set(excinfo.value.messages)

    with pytest.raises(ValidationError) as excinfo:
        store.create(dict(BASE_RECORD, machineId='FL-001', type='Fluoroscopy'), today=TODAY)
    assert 'type' in excinfo.value.messages

    with pytest.raises(ValidationError) as excinfo:
        store.create(dict(BASE_RECORD, machineId='MRI-009', qcSchedule={'daily': False}), today=TODAY)
    assert 'qcSchedule' in excinfo.value.messages

    with pytest.raises(ValidationError):
        store.create(dict(BASE_RECORD, machineId='MRI-010', colour='blue'), today=TODAY)

    assert store.list() == []


def test_update_merges_nested_documents(session, make_machine):
    make_machine(qcSchedule={'daily': True})
    store = MachineStore(session)

    machine = store.update('MRI-100', {'location': {'room': 'MRI Suite 2'}, 'qcSchedule': {'weekly': True}},
                           today=TODAY)

    assert machine.location == {'building': 'Main Hospital', 'floor': '2', 'room': 'MRI Suite 2'}
    assert machine.qc_schedule['daily'] is True
    assert machine.qc_schedule['weekly'] is True
    assert machine.status is MachineStatus.OPERATIONAL


def test_update_rejects_machine_id_change_and_empty_schedule(session, make_machine):
    make_machine()
    store = MachineStore(session)

    with pytest.raises(ValidationError):
        store.update('MRI-100', {'machineId': 'MRI-200'})

    with pytest.raises(ValidationError):
        store.update('MRI-100', {'qcSchedule': {'daily': False}})

    with pytest.raises(NotFoundError):
        store.update('MRI-999', {'name': 'Ghost'})


def test_get_unknown_machine(session):
    with pytest.raises(NotFoundError):
        MachineStore(session).get('MRI-999')


def test_list_filters(session, make_machine):
    make_machine('MRI-100')
    make_machine('CT-100', type='CT', location={'building': 'Emergency Department', 'room': 'Trauma CT'})
    make_machine('CT-200', type='CT', status='maintenance')
    store = MachineStore(session)

    assert [m.machine_id for m in store.list()] == ['CT-100', 'CT-200', 'MRI-100']
    assert [m.machine_id for m in store.list(type='CT')] == ['CT-100', 'CT-200']
    assert [m.machine_id for m in store.list(status='maintenance')] == ['CT-200']
    assert [m.machine_id for m in store.list(type='CT', building='Emergency Department')] == ['CT-100']

    with pytest.raises(ValidationError):
        store.list(status='broken')


def test_set_status_and_decommission(session, make_machine):
    make_machine()
    store = MachineStore(session)

    assert store.set_status('MRI-100', 'maintenance').status is MachineStatus.MAINTENANCE

    with pytest.raises(ValidationError):
        store.set_status('MRI-100', 'retired')

    store.decommission('MRI-100')
    assert store.get('MRI-100').status is MachineStatus.OFFLINE
    assert len(store.list()) == 1


def test_to_document_uses_camel_case(session, make_machine):
    store = MachineStore(session)
    document = store.to_document(make_machine())

    assert document['machineId'] == 'MRI-100'
    assert document['serialNumber'] == 'SN-MRI-2021-001'
    assert document['installationDate'] == '2024-05-13'
    assert document['nextQCDue'] == '2024-05-13'
    assert document['status'] == 'operational'
    assert document['lastQC'] is None
    assert document['qcSchedule']['daily'] is True
    assert 'createdAt' in document


def test_update_installation_date_rederives_next_due(session, make_machine):
    machine = make_machine()
    assert machine.next_qc_due == date(2024, 5, 13)

    MachineStore(session).update('MRI-100', {'installationDate': '2024-05-15'}, today=TODAY)

    assert machine.installation_date == TODAY
    assert machine.next_qc_due == TODAY
