"""Celery application for background and periodic trip processing."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hailing_backend.settings")

app = Celery("hailing_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
