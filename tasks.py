"""
Celery worker entry point:

    celery -A tasks worker --concurrency=$CELERY_WORKER_CONCURRENCY --loglevel=INFO
"""
import os

from studysphere import create_app

flask_app = create_app(os.getenv("FLASK_ENV", "production"))
celery = flask_app.extensions["celery"]
