from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from qctracker import db
from qctracker.services.qc_service import QCService
from qctracker.utils.helpers import utc_today
from qctracker.utils.logging_config import get_logger, log_qc_event
from qctracker.utils.reporting import ReportingService

logger = get_logger(__name__)


class DueCheckScheduler:
    def __init__(self, app):
        self.scheduler = BackgroundScheduler()
        self.app = app

    def start(self):
        """Start the due check scheduler"""
        # Daily due check before the first shift
        self.scheduler.add_job(
            func=self.daily_due_check,
            trigger=CronTrigger(hour=self.app.config['DUE_CHECK_HOUR'],
                                minute=self.app.config['DUE_CHECK_MINUTE']),
            id='daily_due_check',
            name='Daily QC due check',
            replace_existing=True
        )

        # Weekly summary on Monday at 7 AM
        self.scheduler.add_job(
            func=self.weekly_summary,
            trigger=CronTrigger(day_of_week='mon', hour=7, minute=0),
            id='weekly_summary',
            name='Weekly QC summary',
            replace_existing=True
        )

        self.scheduler.start()
        logger.info("Due check scheduler started")

    def stop(self):
        """Stop the due check scheduler"""
        self.scheduler.shutdown(wait=False)
        logger.info("Due check scheduler stopped")

    def daily_due_check(self, today=None):
        """Refresh nextQCDue for every machine and report overdue and due-today QC"""
        today = today or utc_today()
        logger.info(f"Running daily due check for {today}")

        with self.app.app_context():
            service = QCService(db.session, lookback=self.app.config.get('QC_LOOKBACK_DAYS'))
            changed = service.refresh_next_due(today)
            tasks = service.due_tasks(today)

        overdue = {key: items for key, items in tasks.items() if key.endswith('Overdue') and items}
        due_today = {key: items for key, items in tasks.items() if key.endswith('DueToday') and items}

        for key, items in overdue.items():
            for task in items:
                logger.warning(
                    f"{task['machineId']} {key[:-len('Overdue')]} QC overdue since {task['nextDue']} "
                    f"({task['daysOverdue']} day(s), priority {task['priority']})"
                )
                log_qc_event('QC_OVERDUE', task['machineId'], task)

        summary = {
            'date': today.isoformat(),
            'next_due_updated': changed,
            'overdue': sum(len(items) for items in overdue.values()),
            'due_today': sum(len(items) for items in due_today.values())
        }
        logger.info(f"Daily due check finished: {summary}")
        log_qc_event('DUE_CHECK', details=summary)
        return summary

    def weekly_summary(self):
        """Log fleet and QC statistics"""
        with self.app.app_context():
            summary = ReportingService(db.session).get_summary()

        logger.info(f"Weekly QC summary: {summary}")
        return summary
