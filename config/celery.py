import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Periodic twins of the sweeps that already run lazily on every read
from celery.schedules import crontab
app.conf.beat_schedule = {
    "expire-pending-orders": {
        "task": "apps.delivery.tasks.expire_pending_orders",
        # Every minute; pending orders expire after ORDER_AUTO_EXPIRY_MINUTES
        "schedule": crontab(),
    },
    "restore-menu-availability": {
        "task": "apps.delivery.tasks.restore_menu_availability",
        # Daily at the restoration hour, server time (MENU_RESTORE_HOUR)
        "schedule": crontab(minute=0, hour=int(os.getenv("MENU_RESTORE_HOUR", "9"))),
    },
}
