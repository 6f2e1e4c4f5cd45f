# studysphere/tasks/celery_app.py
import logging

from celery import Celery

logger = logging.getLogger(__name__)

celery = Celery("studysphere")


def init_celery(flask_app) -> Celery:
    """
    Bind the Celery app to a Flask app: config comes from ``flask_app.config``
    and every task body runs inside an application context.
    """
    cfg = flask_app.config
    celery.conf.update(
        broker_url=cfg["CELERY_BROKER_URL"],
        result_backend=cfg["CELERY_RESULT_BACKEND"],
        task_always_eager=cfg["CELERY_TASK_ALWAYS_EAGER"],
        worker_concurrency=cfg["CELERY_WORKER_CONCURRENCY"],
        task_ignore_result=False,
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone=cfg.get("TZ", "UTC"),
        enable_utc=True,
        # a job is acked only once the runner returns; a crashed worker hands it back
        task_acks_late=True,
        worker_prefetch_multiplier=1,
    )

    TaskBase = celery.Task

    class ContextTask(TaskBase):
        def __call__(self, *args, **kwargs):
            with flask_app.app_context():
                return TaskBase.__call__(self, *args, **kwargs)

    celery.Task = ContextTask
    celery.set_default()
    flask_app.extensions["celery"] = celery

    if cfg.get("CELERY_CHECK_BROKER"):
        _check_broker(celery)

    # register tasks
    from studysphere.tasks import job_tasks  # noqa: F401

    return celery


def _check_broker(app: Celery) -> None:
    url = app.conf.broker_url
    try:
        with app.connection() as conn:
            conn.ensure_connection(max_retries=1)
        logger.info("Celery broker reachable: %s", url)
    except Exception as e:
        logger.error("Celery broker unreachable (%s): %s", url, e)
