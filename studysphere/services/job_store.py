# studysphere/services/job_store.py
"""
Persistence for job records.

Every method is its own transaction: a runner stage that persists output
commits immediately, so a later failing stage never rolls it back.
"""
import logging
from datetime import datetime
from typing import List, Optional

from studysphere.errors import Forbidden, InvalidTransition, NotFound
from studysphere.models import db, Job, JobStatus
from studysphere.services.storage import remove_file

logger = logging.getLogger(__name__)

# Fields a runner stage may write besides status
PATCHABLE_FIELDS = frozenset({"extracted_text", "label", "label_confidence"})

ERROR_DETAIL_MAX = 1000


class JobStore:
    def __init__(self, session=None):
        self.session = session or db.session

    # ---------------------------
    # Creation / lookup
    # ---------------------------

    def create(self, kind: str, owner_id: str, source_ref: str, **fields) -> Job:
        job = Job(
            kind=kind,
            owner_id=str(owner_id),
            source_ref=source_ref,
            status=JobStatus.PENDING,
            original_filename=fields.get("original_filename"),
            title=fields.get("title"),
        )
        self.session.add(job)
        self.session.commit()
        logger.info("job created", extra={"job_id": job.id, "kind": kind, "status": job.status})
        return job

    def get(self, job_id: str) -> Job:
        # populate_existing: another session (the worker) may have moved the job on
        job = self.session.get(Job, job_id, populate_existing=True)
        if job is None:
            raise NotFound("Job not found")
        return job

    def get_owned(self, job_id: str, owner_id: str, kind: Optional[str] = None) -> Job:
        job = self.get(job_id)
        if kind is not None and job.kind != kind:
            raise NotFound("Job not found")
        if job.owner_id != str(owner_id):
            raise Forbidden("Not authorized to access this job")
        return job

    def list_by_owner(self, owner_id: str, kind: Optional[str] = None) -> List[Job]:
        q = self.session.query(Job).filter(Job.owner_id == str(owner_id))
        if kind is not None:
            q = q.filter(Job.kind == kind)
        return q.order_by(Job.created_at.desc()).all()

    # ---------------------------
    # Mutation (runner only)
    # ---------------------------

    def claim(self, job_id: str) -> bool:
        """pending -> processing, compare-and-swap. True only for the one caller that wins."""
        rows = (
            self.session.query(Job).filter(Job.id == job_id, Job.status == JobStatus.PENDING)
            .update(
                {Job.status: JobStatus.PROCESSING, Job.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        self.session.commit()
        return rows == 1

    def update_status(self, job_id: str, new_status: str, error_detail: Optional[str] = None, **patch) -> Job:
        job = self.get(job_id)
        if not JobStatus.can_transition(job.status, new_status):
            raise InvalidTransition(f"Job {job_id}: {job.status} -> {new_status} not allowed")

        self._apply_patch(job, patch)
        job.status = new_status
        if new_status == JobStatus.FAILED:
            job.error_detail = (error_detail or "Unknown error occurred")[:ERROR_DETAIL_MAX]
        job.updated_at = datetime.utcnow()
        self.session.commit()
        return job

    def patch(self, job_id: str, **fields) -> Job:
        job = self.get(job_id)
        if job.is_terminal:
            raise InvalidTransition(f"Job {job_id} is {job.status}; no further writes")
        self._apply_patch(job, fields)
        job.updated_at = datetime.utcnow()
        self.session.commit()
        return job

    def add_result(self, job_id: str, *rows) -> None:
        job = self.get(job_id)
        if job.is_terminal:
            raise InvalidTransition(f"Job {job_id} is {job.status}; no further writes")
        for row in rows:
            row.job_id = job.id
            self.session.add(row)
        job.updated_at = datetime.utcnow()
        self.session.commit()

    def delete(self, job_id: str, owner_id: str) -> None:
        job = self.get_owned(job_id, owner_id)
        source_ref, kind = job.source_ref, job.kind
        self.session.delete(job)
        self.session.commit()
        remove_file(source_ref)
        logger.info("job deleted", extra={"job_id": job_id, "kind": kind})

    def rollback(self) -> None:
        self.session.rollback()

    @staticmethod
    def _apply_patch(job: Job, fields: dict) -> None:
        unknown = set(fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Not patchable: {', '.join(sorted(unknown))}")
        for k, v in fields.items():
            setattr(job, k, v)
