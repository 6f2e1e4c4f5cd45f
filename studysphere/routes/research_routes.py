# studysphere/routes/research_routes.py
from flask import Blueprint, g, request

from studysphere.auth import require_auth
from studysphere.errors import BadRequest
from studysphere.models import JobKind
from studysphere.routes.common import delete_job, get_job, list_jobs, ok, submit_upload
from studysphere.services.collaborators import get_collaborators
from studysphere.services.job_store import JobStore

bp = Blueprint("research", __name__)

RELATED_LIMIT_MAX = 100


@bp.post("/upload")
@require_auth
def upload():
    """
    Research: upload a paper
    ---
    tags:
      - Research
    consumes:
      - multipart/form-data
    security:
      - Bearer: []
    parameters:
      - in: formData
        name: file
        type: file
        required: true
        description: pdf, doc or docx.
      - in: formData
        name: title
        type: string
        required: true
        example: "Attention Is All You Need"
    responses:
      201:
        description: Accepted, job pending
      400:
        description: Missing file or title
    """
    title = (request.form.get("title") or "").strip()
    if not title:
        raise BadRequest("Title is required")
    return submit_upload(JobKind.RESEARCH, "file", title=title)


@bp.get("/list")
@require_auth
def list_papers():
    """
    Research: list own papers, newest first
    ---
    tags:
      - Research
    security:
      - Bearer: []
    responses:
      200:
        description: OK
    """
    return list_jobs(JobKind.RESEARCH)


@bp.get("/<job_id>")
@require_auth
def get_paper(job_id: str):
    """
    Research: status with summary, citations and research questions
    ---
    tags:
      - Research
    security:
      - Bearer: []
    parameters:
      - in: path
        name: job_id
        required: true
        type: string
    responses:
      200:
        description: Snapshot; a failed paper keeps the parts produced before the failure
      403:
        description: Not the owner
      404:
        description: Not found
    """
    return get_job(JobKind.RESEARCH, job_id)


@bp.delete("/<job_id>")
@require_auth
def delete(job_id: str):
    """
    Research: delete
    ---
    tags:
      - Research
    security:
      - Bearer: []
    parameters:
      - in: path
        name: job_id
        required: true
        type: string
    responses:
      200:
        description: Deleted
      404:
        description: Not found
    """
    return delete_job(JobKind.RESEARCH, job_id)


@bp.get("/<job_id>/related")
@require_auth
def related(job_id: str):
    """
    Research: related papers from Semantic Scholar (not stored)
    ---
    tags:
      - Research
    security:
      - Bearer: []
    parameters:
      - in: path
        name: job_id
        required: true
        type: string
      - in: query
        name: limit
        required: false
        type: integer
        default: 10
    responses:
      200:
        description: OK
      429:
        description: Still rate limited after retries
      502:
        description: Search failed
    """
    try:
        limit = int(request.args.get("limit", 10))
    except ValueError:
        raise BadRequest("limit must be an integer")
    if not 1 <= limit <= RELATED_LIMIT_MAX:
        raise BadRequest(f"limit must be between 1 and {RELATED_LIMIT_MAX}")

    job = JobStore().get_owned(job_id, g.user_id, kind=JobKind.RESEARCH)
    papers = get_collaborators().scholar.search_related(job.title, limit=limit)
    return ok(papers)
