# studysphere/routes/common.py
"""Helpers shared by the job blueprints: envelope, snapshots and submission."""
from typing import Optional

from flask import g, jsonify, request

from studysphere.errors import BadRequest
from studysphere.models import Job, JobKind
from studysphere.services.job_store import JobStore
from studysphere.services.storage import ALLOWED_EXTENSIONS, remove_file, save_upload


def _iso(dt):
    return dt.replace(microsecond=0).isoformat() + "Z" if dt else None


def ok(data=None, code: int = 200, message: Optional[str] = None):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), code


def job_to_dict(job: Job) -> dict:
    return {
        "id": job.id,
        "kind": job.kind,
        "status": job.status,
        "title": job.title,
        "original_filename": job.original_filename,
        "extracted_text": job.extracted_text,
        "label": job.label,
        "label_confidence": job.label_confidence,
        "error_detail": job.error_detail,
        "created_at": _iso(job.created_at),
        "updated_at": _iso(job.updated_at),
    }


def _homework_result(job: Job):
    s = job.solution
    if s is None:
        return None
    return {
        "problem_type": job.label,
        "confidence": job.label_confidence,
        "step_by_step_solution": s.step_by_step_solution,
        "final_answer": s.final_answer,
        "explanation": s.explanation,
    }


def _note_result(job: Job):
    summary, mindmap = job.note_summary, job.mindmap
    if summary is None and mindmap is None:
        return None
    return {
        "summary": summary.summary if summary else None,
        "key_concepts": summary.key_concepts if summary else None,
        "mindmap": mindmap.mindmap_data if mindmap else None,
    }


def _research_result(job: Job):
    s, c, q = job.paper_summary, job.paper_citation, job.research_question
    if s is None and c is None and q is None:
        return None
    return {
        "summary": {"abstract": s.abstract, "key_findings": s.key_findings} if s else None,
        "citations": {
            "citations": c.citations,
            "formatted_citations": c.formatted_citations,
        } if c else None,
        "research_questions": {
            "questions": q.questions,
            "research_gaps": q.research_gaps,
            "methodology_suggestions": q.methodology_suggestions,
        } if q else None,
    }


_RESULT_BUILDERS = {
    JobKind.HOMEWORK: _homework_result,
    JobKind.NOTE: _note_result,
    JobKind.RESEARCH: _research_result,
}


def snapshot(job: Job) -> dict:
    return {"job": job_to_dict(job), "result": _RESULT_BUILDERS[job.kind](job)}


def submit_upload(kind: str, field: str, **fields):
    """
    Store the uploaded artifact, create a pending job and hand it to the
    worker pool. The response is built before dispatch so it always reports
    the status at creation time.
    """
    # deferred import of the task module
    from studysphere.tasks.job_tasks import dispatch_job

    file = request.files.get(field)
    if file is None:
        raise BadRequest(f"No file uploaded (expected form field '{field}')")

    path, original = save_upload(file, ALLOWED_EXTENSIONS[kind])
    store = JobStore()
    try:
        job = store.create(kind, g.user_id, path, original_filename=original, **fields)
    except Exception:
        store.rollback()
        remove_file(path)
        raise

    data = {"jobId": job.id, "status": job.status}
    dispatch_job(job.id)
    return ok(data, 201, message="Upload accepted, processing started")


def list_jobs(kind: str):
    jobs = JobStore().list_by_owner(g.user_id, kind=kind)
    return ok([job_to_dict(j) for j in jobs])


def get_job(kind: str, job_id: str):
    job = JobStore().get_owned(job_id, g.user_id, kind=kind)
    return ok(snapshot(job))


def delete_job(kind: str, job_id: str):
    store = JobStore()
    store.get_owned(job_id, g.user_id, kind=kind)
    store.delete(job_id, g.user_id)
    return ok(None, message="Deleted")
