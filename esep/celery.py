from celery import Celery

# Create Celery app
celery = Celery("esep")

# Load configuration from esep.config.celeryconfig module
celery.config_from_object("esep.config.celeryconfig")
