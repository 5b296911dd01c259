import json

import click

from qctracker import db
from qctracker.services.machine_store import MachineStore
from qctracker.services.qc_service import QCService
from qctracker.utils.helpers import parse_optional_date

SAMPLE_MACHINES = [
    {
        'machineId': 'MRI-001',
        'name': 'Siemens MAGNETOM Vida',
        'type': 'MRI',
        'manufacturer': 'Siemens',
        'model': 'MAGNETOM Vida 3T',
        'serialNumber': 'SN-MRI-2021-001',
        'location': {'building': 'Main Hospital', 'floor': '2', 'room': 'MRI Suite 1'},
        'installationDate': '2021-03-15',
        'status': 'operational',
        'qcSchedule': {'daily': True, 'weekly': True, 'monthly': True, 'quarterly': True, 'annual': True}
    },
    {
        'machineId': 'CT-001',
        'name': 'GE Revolution CT',
        'type': 'CT',
        'manufacturer': 'GE Healthcare',
        'model': 'Revolution CT 256',
        'serialNumber': 'SN-CT-2020-001',
        'location': {'building': 'Main Hospital', 'floor': '1', 'room': 'CT Room 1'},
        'installationDate': '2020-06-20',
        'status': 'operational',
        'qcSchedule': {'daily': True, 'weekly': True, 'monthly': True, 'quarterly': False, 'annual': True}
    },
    {
        'machineId': 'PET-001',
        'name': 'Philips Vereos PET-CT',
        'type': 'PET-CT',
        'manufacturer': 'Philips',
        'model': 'Vereos Digital PET-CT',
        'serialNumber': 'SN-PET-2022-001',
        'location': {'building': 'Nuclear Medicine', 'floor': '1', 'room': 'PET Suite A'},
        'installationDate': '2022-01-10',
        'status': 'maintenance',
        'qcSchedule': {'daily': True, 'weekly': True, 'monthly': True, 'quarterly': True, 'annual': True}
    },
    {
        'machineId': 'MRI-002',
        'name': 'Philips Ingenia 1.5T',
        'type': 'MRI',
        'manufacturer': 'Philips',
        'model': 'Ingenia 1.5T',
        'serialNumber': 'SN-MRI-2019-002',
        'location': {'building': 'Outpatient Center', 'floor': '1', 'room': 'MRI Room 2'},
        'installationDate': '2019-11-05',
        'status': 'operational',
        'qcSchedule': {'daily': True, 'weekly': True, 'monthly': True, 'quarterly': True, 'annual': True}
    },
    {
        'machineId': 'CT-002',
        'name': 'Siemens SOMATOM Force',
        'type': 'CT',
        'manufacturer': 'Siemens',
        'model': 'SOMATOM Force',
        'serialNumber': 'SN-CT-2023-002',
        'location': {'building': 'Emergency Department', 'floor': '1', 'room': 'Trauma CT'},
        'installationDate': '2023-02-28',
        'status': 'critical',
        'qcSchedule': {'daily': True, 'weekly': True, 'monthly': True, 'quarterly': True, 'annual': True}
    }
]


def seed_machines(session, today=None):
    """Insert the sample machines that are not registered yet; returns the new ids"""
    store = MachineStore(session)
    existing = {machine.machine_id for machine in store.list()}
    created = []
    for record in SAMPLE_MACHINES:
        if record['machineId'] in existing:
            continue
        store.create(record, today=today)
        created.append(record['machineId'])
    return created


def register_commands(app):
    @app.cli.command('seed-machines')
    def seed_machines_command():
        """Register the sample imaging machines."""
        created = seed_machines(db.session)
        if created:
            click.echo(f"Created {len(created)} machine(s): {', '.join(created)}")
        else:
            click.echo("Sample machines already present")

    @app.cli.command('due-report')
    @click.option('--today', default=None, help='Evaluate as of this date (YYYY-MM-DD).')
    def due_report_command(today):
        """Print overdue and due-today QC tasks as JSON."""
        service = QCService(db.session, lookback=app.config.get('QC_LOOKBACK_DAYS'))
        tasks = service.due_tasks(parse_optional_date(today, 'today'))
        click.echo(json.dumps(tasks, indent=2))

    @app.cli.command('clear-completions')
    @click.option('--machine', 'machine_id', default=None, help='Only clear this machine.')
    def clear_completions_command(machine_id):
        """Delete recorded QC completions."""
        service = QCService(db.session, lookback=app.config.get('QC_LOOKBACK_DAYS'))
        count = service.clear_completions(machine_id)
        click.echo(f"Cleared {count} QC completion(s)")
