# studysphere/services/runner.py
"""
Drives a job from ``pending`` to a terminal status.

The runner is kind-agnostic: it claims the job, runs the stages of the
pipeline registered for the job's kind in order, and records the outcome.
It never raises; a failing stage leaves the job ``failed`` with the stage's
error as ``error_detail`` while everything earlier stages persisted stays.
"""
import logging
import time
from typing import Dict

from prometheus_client import Counter, Histogram

from studysphere.errors import StudySphereError
from studysphere.models import JobStatus
from studysphere.services.job_store import JobStore
from studysphere.services.pipelines import Pipeline

logger = logging.getLogger(__name__)

JOBS_TOTAL = Counter(
    "studysphere_jobs_total",
    "Jobs that reached a terminal status",
    ["kind", "outcome"],
)
JOB_DURATION = Histogram(
    "studysphere_job_duration_seconds",
    "Wall time from claim to terminal status",
    ["kind"],
)

SKIPPED = "skipped"


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, StudySphereError):
        return exc.message
    return str(exc) or exc.__class__.__name__


class JobRunner:
    def __init__(self, store: JobStore, pipelines: Dict[str, Pipeline]):
        self.store = store
        self.pipelines = pipelines

    def run(self, job_id: str) -> dict:
        if not self.store.claim(job_id):
            logger.warning("job not pending, skipping run", extra={"job_id": job_id})
            return {"job_id": job_id, "status": SKIPPED}

        started = time.monotonic()
        kind = "unknown"
        stage_name = None
        try:
            kind = self.store.get(job_id).kind
            pipeline = self.pipelines.get(kind)
            if pipeline is None:
                raise StudySphereError(f"No pipeline registered for kind '{kind}'")

            logger.info("job started", extra={"job_id": job_id, "kind": kind, "status": JobStatus.PROCESSING})
            for stage in pipeline.stages:
                stage_name = stage.name
                logger.info("stage started", extra={"job_id": job_id, "kind": kind, "stage": stage_name})
                t0 = time.monotonic()
                stage.run(self.store, job_id)
                logger.info(
                    "stage done",
                    extra={"job_id": job_id, "kind": kind, "stage": stage_name,
                           "duration_ms": int((time.monotonic() - t0) * 1000)},
                )

            self.store.update_status(job_id, JobStatus.COMPLETED)
            outcome = JobStatus.COMPLETED
        except Exception as e:
            logger.exception(
                "job failed",
                extra={"job_id": job_id, "kind": kind, "stage": stage_name},
            )
            self._mark_failed(job_id, e)
            outcome = JobStatus.FAILED

        elapsed = time.monotonic() - started
        JOBS_TOTAL.labels(kind=kind, outcome=outcome).inc()
        JOB_DURATION.labels(kind=kind).observe(elapsed)
        logger.info(
            "job finished",
            extra={"job_id": job_id, "kind": kind, "outcome": outcome, "duration_ms": int(elapsed * 1000)},
        )
        return {"job_id": job_id, "status": outcome, "stage": stage_name}

    def _mark_failed(self, job_id: str, exc: BaseException) -> None:
        self.store.rollback()
        try:
            self.store.update_status(job_id, JobStatus.FAILED, error_detail=describe_error(exc))
        except Exception:
            # job deleted mid-run, or the database itself is down
            self.store.rollback()
            logger.exception("could not record job failure", extra={"job_id": job_id})
