"""
Celery app for LifeFlow

Runs the emergency broadcast (queued by hospitals.signals on request creation)
and the nightly job that puts donors back in the pool after their cooldown.

    celery -A lifeflow worker -l info
    celery -A lifeflow beat -l info
"""
import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lifeflow.settings')

app = Celery('lifeflow')

# Broker, serializers and eager mode come from the CELERY_* settings
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.beat_schedule = {
    'restore-donor-availability': {
        'task': 'donors.tasks.restore_donor_availability',
        'schedule': crontab(hour=0, minute=30),
    },
}

# Finds donors/tasks.py
app.autodiscover_tasks()
