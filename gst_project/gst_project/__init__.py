# Celery instance is defined in gst_project/celery.py
# Importing it here makes sure the app is loaded whenever Django starts,
# so @shared_task functions bind to it
from .celery import celery_app

# 'from gst_project import *', only exports celery_app
__all__ = ("celery_app",)
