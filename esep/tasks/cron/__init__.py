from .expiring_registrations_reporter import expiring_registrations_reporter_task

__all__ = [
    "expiring_registrations_reporter_task",
]
