"""Celery application for the storefront service.

``DJANGO_SETTINGS_MODULE`` is set before the app is created so Celery
reads its configuration from the Django settings (``CELERY_`` prefix).
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("storefront")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Finds tasks.py in every installed app (core, payments).
app.autodiscover_tasks()
