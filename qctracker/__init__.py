from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from dotenv import load_dotenv

load_dotenv()

# Initialize extensions
db = SQLAlchemy()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name='default'):
    app = Flask(__name__)

    # Load configuration
    if config_name == 'development':
        from config.development import DevelopmentConfig
        app.config.from_object(DevelopmentConfig)
    elif config_name == 'production':
        from config.production import ProductionConfig
        app.config.from_object(ProductionConfig)
    elif config_name == 'testing':
        from config.testing import TestingConfig
        app.config.from_object(TestingConfig)
    else:
        from config.base import Config
        app.config.from_object(Config)

    # JSON responses keep document field order
    app.json.sort_keys = False

    # Setup logging based on config
    from qctracker.utils.logging_config import setup_logging
    setup_logging(app.config['LOG_LEVEL'], app.config['LOG_DIR'])

    # Initialize extensions with app
    db.init_app(app)
    limiter.init_app(app)

    # Initialize error handlers
    from qctracker.utils.error_handler import init_error_handlers
    init_error_handlers(app)

    # Register blueprints
    from qctracker.controllers.main import main_bp
    from qctracker.controllers.machines import machines_bp
    from qctracker.controllers.qc import qc_bp
    from qctracker.controllers.reports import reports_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(machines_bp)
    app.register_blueprint(qc_bp)
    app.register_blueprint(reports_bp)

    # CLI commands
    from qctracker.cli import register_commands
    register_commands(app)

    # Create tables
    with app.app_context():
        from qctracker import models  # noqa: F401
        db.create_all()

    return app
