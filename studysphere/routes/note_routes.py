# studysphere/routes/note_routes.py
from flask import Blueprint

from studysphere.auth import require_auth
from studysphere.models import JobKind
from studysphere.routes.common import delete_job, get_job, list_jobs, submit_upload

bp = Blueprint("notes", __name__)


@bp.post("/upload")
@require_auth
def upload():
    """
    Notes: upload a lecture recording
    ---
    tags:
      - Notes
    consumes:
      - multipart/form-data
    security:
      - Bearer: []
    parameters:
      - in: formData
        name: audio
        type: file
        required: true
        description: mp3, wav, webm, ogg or m4a.
    responses:
      201:
        description: Accepted, job pending
      400:
        description: Missing or invalid audio
    """
    return submit_upload(JobKind.NOTE, "audio")


@bp.get("/list")
@require_auth
def list_notes():
    """
    Notes: list own notes, newest first
    ---
    tags:
      - Notes
    security:
      - Bearer: []
    responses:
      200:
        description: OK
    """
    return list_jobs(JobKind.NOTE)


@bp.get("/<job_id>")
@require_auth
def get_note(job_id: str):
    """
    Notes: status, summary and mindmap
    ---
    tags:
      - Notes
    security:
      - Bearer: []
    parameters:
      - in: path
        name: job_id
        required: true
        type: string
    responses:
      200:
        description: Snapshot
      403:
        description: Not the owner
      404:
        description: Not found
    """
    return get_job(JobKind.NOTE, job_id)


@bp.delete("/<job_id>")
@require_auth
def delete(job_id: str):
    """
    Notes: delete
    ---
    tags:
      - Notes
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
    return delete_job(JobKind.NOTE, job_id)
