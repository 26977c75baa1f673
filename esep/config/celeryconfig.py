from celery.schedules import crontab
from .settings import settings

# Basic Celery Configuration
broker_url = f"redis://:{settings.REDIS_PASSWORD}@{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
result_backend = f"redis://:{settings.REDIS_PASSWORD}@{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"

# Task Discovery
include = ["esep.tasks"]

# Timezone Configuration
timezone = settings.TIMEZONE
enable_utc = True

# Task Result Configuration
result_expires = 3600

# Task Serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"

# Task Execution Configuration
task_track_started = True
task_time_limit = 10 * 60
task_soft_time_limit = 8 * 60

# Worker Configuration
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# Task Retry Configuration
task_acks_late = True
task_reject_on_worker_lost = True
task_default_retry_delay = 60
task_max_retries = 3

beat_schedule = {
    # Expiring registrations digest - 9:00 AM local time
    "daily-expiring-registrations-reporter": {
        "task": "esep.tasks.cron.expiring_registrations_reporter.expiring_registrations_reporter_task",
        "schedule": crontab(hour=9, minute=0),
        "args": ("expiring_registrations_reporter_cron",),
    },
}

# Default Queue
task_default_queue = "esep"

# Beat Scheduler Configuration
beat_schedule_filename = "tmp/celerybeat-schedule"
