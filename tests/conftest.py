from datetime import date

import pytest

from qctracker import create_app, db as _db
from qctracker.services.machine_store import MachineStore

# Wednesday
TODAY = date(2024, 5, 15)

BASE_RECORD = {
    'name': 'Siemens MAGNETOM Vida',
    'type': 'MRI',
    'manufacturer': 'Siemens',
    'model': 'MAGNETOM Vida 3T',
    'serialNumber': 'SN-MRI-2021-001',
    'location': {'building': 'Main Hospital', 'floor': '2', 'room': 'MRI Suite 1'},
    'installationDate': '2024-05-13',
}


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return _db.session


@pytest.fixture
def make_machine(session):
    store = MachineStore(session)

    def _make(machine_id='MRI-100', today=TODAY, **overrides):
        record = dict(BASE_RECORD, machineId=machine_id, **overrides)
        return store.create(record, today=today)

    return _make
