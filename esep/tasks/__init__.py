from .cron import *

__all__ = [
    # Scheduled/Cron Tasks
    "expiring_registrations_reporter_task",
]
