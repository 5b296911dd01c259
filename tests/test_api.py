import pytest

from tests.conftest import BASE_RECORD

NEW_MACHINE = dict(BASE_RECORD, machineId='MRI-100')


@pytest.fixture
def registered(client):
    response = client.post('/api/machines', json=NEW_MACHINE)
    assert response.status_code == 201
    return response.get_json()


def _submit(client, day, **overrides):
    payload = {'machineId': 'MRI-100', 'cadence': 'daily', 'date': day, 'performedBy': 'John Smith'}
    payload.update(overrides)
    return client.post('/api/qc/submit', json=payload)


def test_health(client):
    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_create_and_fetch_machine(client, registered):
    assert registered['machineId'] == 'MRI-100'
    assert registered['status'] == 'operational'
    assert registered['qcSchedule']['daily'] is True

    response = client.get('/api/machines/MRI-100')
    assert response.status_code == 200
    assert response.get_json()['serialNumber'] == 'SN-MRI-2021-001'


def test_create_rejects_duplicates_and_bad_documents(client, registered):
    response = client.post('/api/machines', json=NEW_MACHINE)
    assert response.status_code == 400
    body = response.get_json()
    assert body['error'] == 'Validation Error'
    assert 'machineId' in body['details']

    response = client.post('/api/machines', json={'machineId': 'CT-100'})
    assert response.status_code == 400
    assert 'name' in response.get_json()['details']

    response = client.post('/api/machines', data='not json', content_type='text/plain')
    assert response.status_code == 400


def test_unknown_machine_is_404(client):
    response = client.get('/api/machines/MRI-999')

    assert response.status_code == 404
    assert response.get_json()['error'] == 'Not Found'


def test_machines_cannot_be_deleted(client, registered):
    assert client.delete('/api/machines/MRI-100').status_code == 405


def test_update_and_status_change(client, registered):
    response = client.patch('/api/machines/MRI-100', json={'location': {'room': 'MRI Suite 2'}})
    assert response.status_code == 200
    assert response.get_json()['location']['building'] == 'Main Hospital'
    assert response.get_json()['location']['room'] == 'MRI Suite 2'

    response = client.patch('/api/machines/MRI-100/status', json={'status': 'maintenance'})
    assert response.status_code == 200
    assert response.get_json()['status'] == 'maintenance'

    response = client.patch('/api/machines/MRI-100/status', json={'status': 'retired'})
    assert response.status_code == 400
    assert 'status' in response.get_json()['details']


def test_list_by_status_and_type(client, registered):
    client.post('/api/machines', json=dict(BASE_RECORD, machineId='CT-100', type='CT', status='critical'))

    assert [m['machineId'] for m in client.get('/api/machines').get_json()] == ['CT-100', 'MRI-100']
    assert [m['machineId'] for m in client.get('/api/machines/status/critical').get_json()] == ['CT-100']
    assert [m['machineId'] for m in client.get('/api/machines/type/MRI').get_json()] == ['MRI-100']
    assert client.get('/api/machines/status/broken').status_code == 400


def test_submit_and_due_status(client, registered):
    assert _submit(client, '2024-05-13').status_code == 201
    response = _submit(client, '2024-05-14', notes='Phantom within tolerance')
    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['completion']['notes'] == 'Phantom within tolerance'
    assert body['machine']['lastQC']['date'] == '2024-05-14'

    response = client.get('/api/machines/MRI-100/due-status?today=2024-05-15')
    assert response.status_code == 200
    assert response.get_json()['overall'] == 'dueToday'

    history = client.get('/api/qc/machines/MRI-100/qc-history?cadence=daily&limit=1').get_json()
    assert [entry['date'] for entry in history] == ['2024-05-14']


def test_submit_validation(client, registered):
    response = _submit(client, '2024-05-13', cadence='hourly')
    assert response.status_code == 400
    assert 'cadence' in response.get_json()['details']

    response = _submit(client, '2024-05-13', machineId='MRI-999')
    assert response.status_code == 404


def test_batch_submission(client, registered):
    client.post('/api/machines', json=dict(BASE_RECORD, machineId='MRI-200'))

    payload = {'machineIds': ['MRI-100', 'MRI-200'], 'cadence': 'daily', 'date': '2024-05-13'}
    response = client.post('/api/qc/batch', json=payload)
    assert response.status_code == 201
    assert response.get_json()['recorded'] == 2

    response = client.post('/api/qc/batch', json=dict(payload, machineIds=[]))
    assert response.status_code == 400


def test_due_tasks_and_invalid_date(client, registered):
    response = client.get('/api/qc/due-tasks?today=2024-05-16')
    assert response.status_code == 200
    assert response.get_json()['dailyOverdue'][0]['machineId'] == 'MRI-100'

    response = client.get('/api/qc/due-tasks?today=yesterday')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid Date'


def test_delete_completion(client, registered):
    completion = _submit(client, '2024-05-13').get_json()['completion']

    response = client.delete(f"/api/qc/completions/{completion['id']}")
    assert response.status_code == 200
    assert client.get('/api/machines/MRI-100').get_json()['lastQC'] is None

    assert client.delete(f"/api/qc/completions/{completion['id']}").status_code == 404


def test_evaluate(client):
    response = client.post('/api/qc/evaluate', json={
        'cadence': 'daily',
        'today': '2024-05-16',
        'startDate': '2024-05-13',
        'history': [{'date': '2024-05-13', 'completed': True}, {'date': '2024-05-15', 'completed': True}]
    })
    assert response.status_code == 200
    assert response.get_json() == {'status': 'overdue', 'firstMissingDate': '2024-05-14'}

    response = client.post('/api/qc/evaluate', json={'cadence': 'annual', 'today': '2024-05-15',
                                                     'history': [], 'lookbackDays': 7})
    assert response.get_json() == {'status': 'onTrack', 'firstMissingDate': None}

    response = client.post('/api/qc/evaluate', json={'cadence': 'daily', 'today': '2024-02-30'})
    assert response.status_code == 400


def test_reports(client, registered):
    _submit(client, '2024-05-13')
    _submit(client, '2024-05-14', result='fail')

    summary = client.get('/api/reports/summary').get_json()
    assert summary['machine_stats']['total_machines'] == 1
    assert summary['machine_stats']['machines_by_status']['critical'] == 1
    assert summary['qc_stats']['completions_by_result'] == {'pass': 1, 'fail': 1, 'conditional': 0}

    report = client.get('/api/reports/monthly-qc/MRI-100/2024/5').get_json()
    assert report['period'] == 'May 2024'
    assert report['results']['fail'] == 1
    assert len(report['completions']) == 2

    assert client.get('/api/reports/monthly-qc/MRI-100/2024/13').status_code == 400


def test_evaluate_uses_boolean_completed_flags(client):
    payload = {
        'cadence': 'daily',
        'today': '2024-05-15',
        'startDate': '2024-05-13',
        'history': [{'date': '2024-05-13', 'completed': True}, {'date': '2024-05-14', 'completed': False}]
    }

    response = client.post('/api/qc/evaluate', json=payload)
    assert response.get_json() == {'status': 'overdue', 'firstMissingDate': '2024-05-14'}

    payload['history'][1]['completed'] = 'false'
    response = client.post('/api/qc/evaluate', json=payload)
    assert response.status_code == 400
    assert 'history' in response.get_json()['details']


def test_evaluate_rejects_non_integer_lookback(client):
    payload = {'cadence': 'daily', 'today': '2024-05-15', 'history': []}

    for lookback in (True, 0, '7'):
        response = client.post('/api/qc/evaluate', json=dict(payload, lookbackDays=lookback))
        assert response.status_code == 400
        assert 'lookbackDays' in response.get_json()['details']


def test_monthly_report_rejects_out_of_range_year(client, registered):
    assert client.get('/api/reports/monthly-qc/MRI-100/0/5').status_code == 400
    assert client.get('/api/reports/monthly-qc/MRI-100/10000/5').status_code == 400
