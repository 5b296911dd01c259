import os
from qctracker import create_app, db
from qctracker.cli import seed_machines
from qctracker.utils.due_check_scheduler import DueCheckScheduler


def create_initial_data(app):
    """Register the sample machines when the database is empty"""
    with app.app_context():
        created = seed_machines(db.session)
        if created:
            print(f"Created sample machines: {', '.join(created)}")


if __name__ == '__main__':
    # Determine the environment
    env = os.getenv('FLASK_ENV', 'development')

    # Create the Flask app with appropriate configuration
    app = create_app(env)

    # Create initial data if tables are empty
    create_initial_data(app)

    # Initialize and start the due check scheduler
    scheduler = None
    if app.config['DUE_CHECK_ENABLED']:
        scheduler = DueCheckScheduler(app)
        scheduler.start()

    print(f"Starting QC tracker API in {env} mode...")
    print("Visit http://localhost:5000/api/health to check the service")

    try:
        app.run(debug=(env == 'development'), host='0.0.0.0', port=int(os.getenv('PORT', 5000)),
                use_reloader=False)
    finally:
        if scheduler is not None:
            scheduler.stop()
