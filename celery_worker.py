# celery_worker.py
from app import create_app
from celery_config import create_celery_app
from logging_config import get_logger

logger = get_logger(__name__)

# Create Celery instance with shared configuration
celery = create_celery_app(__name__)

# The Flask app provides the context (config, db session, services) tasks run in
flask_app = create_app()


class ContextTask(celery.Task):
    def __call__(self, *args, **kwargs):
        with flask_app.app_context():
            return self.run(*args, **kwargs)


celery.Task = ContextTask

# --- Celery Beat Schedule ---
from celery.schedules import crontab

celery.conf.beat_schedule = {
    'run-alert-evaluation': {
        'task': 'tasks.alert_tasks.run_alert_evaluation',
        # Hourly; the ledger keeps repeated passes from re-sending
        'schedule': 3600.0,
    },
    'prune-sent-alerts': {
        'task': 'tasks.alert_tasks.prune_sent_alerts',
        # Daily at 3 AM UTC
        'schedule': crontab(hour=3, minute=0),
    },
}
celery.conf.timezone = 'UTC'

# Import tasks so they're registered with Celery
with flask_app.app_context():
    import tasks.alert_tasks  # noqa: F401
    logger.info("Registered tasks", tasks=sorted(celery.tasks.keys()))
