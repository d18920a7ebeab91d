"""
Celery application for the booking engine.

Background jobs: waitlist promotion retries, stale waitlist expiry,
reservation completion and rolling recurring materialization.
"""
import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('booking_engine')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

app.conf.beat_schedule = {
    'expire-waitlist-entries': {
        'task': 'apps.engine.tasks.expire_waitlist_entries',
        'schedule': crontab(minute=15, hour=0),
    },
    'complete-past-reservations': {
        'task': 'apps.engine.tasks.complete_past_reservations',
        'schedule': crontab(minute=30, hour=0),
    },
    'materialize-recurring-rules': {
        'task': 'apps.engine.tasks.materialize_recurring_rules',
        'schedule': crontab(minute=0, hour=1),
    },
}
