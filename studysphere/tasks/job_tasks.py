# studysphere/tasks/job_tasks.py
import logging
from typing import Optional

from celery import shared_task

from studysphere.models import JobStatus
from studysphere.services.collaborators import get_collaborators
from studysphere.services.job_store import JobStore
from studysphere.services.pipelines import build_pipelines
from studysphere.services.runner import JobRunner

logger = logging.getLogger(__name__)


@shared_task(name="jobs.run")
def run_job(job_id: str):
    runner = JobRunner(JobStore(), build_pipelines(get_collaborators()))
    return runner.run(job_id)


def dispatch_job(job_id: str) -> Optional[str]:
    """
    Hand a freshly created job to the worker pool. Fire-and-forget: the
    caller has already built its response and does not wait on the result.
    """
    try:
        async_res = run_job.delay(job_id)
    except Exception as e:
        # broker down: the job would sit in pending forever, so fail it now
        logger.exception("could not enqueue job", extra={"job_id": job_id})
        store = JobStore()
        store.rollback()
        store.update_status(job_id, JobStatus.FAILED, error_detail=f"Could not enqueue job: {e}")
        return None
    logger.info("job enqueued", extra={"job_id": job_id, "status": JobStatus.PENDING})
    return getattr(async_res, "id", None)
