# studysphere/routes/homework_routes.py
from flask import Blueprint

from studysphere.auth import require_auth
from studysphere.models import JobKind
from studysphere.routes.common import delete_job, get_job, list_jobs, submit_upload

bp = Blueprint("homework", __name__)  # prefix applied in create_app


@bp.post("/upload")
@require_auth
def upload():
    """
    Homework: upload a problem
    ---
    tags:
      - Homework
    consumes:
      - multipart/form-data
    security:
      - Bearer: []
    parameters:
      - in: formData
        name: file
        type: file
        required: true
        description: PDF or image (png, jpg, jpeg) of the problem.
    responses:
      201:
        description: Accepted, job pending
      400:
        description: Missing or invalid file
      401:
        description: Not authenticated
    """
    return submit_upload(JobKind.HOMEWORK, "file")


@bp.get("/list")
@require_auth
def list_homework():
    """
    Homework: list own submissions, newest first
    ---
    tags:
      - Homework
    security:
      - Bearer: []
    responses:
      200:
        description: OK
    """
    return list_jobs(JobKind.HOMEWORK)


@bp.get("/solved/<job_id>")
@require_auth
def get_solved(job_id: str):
    """
    Homework: status and solution
    ---
    tags:
      - Homework
    security:
      - Bearer: []
    parameters:
      - in: path
        name: job_id
        required: true
        type: string
    responses:
      200:
        description: Snapshot (result is null until the solution exists)
      403:
        description: Not the owner
      404:
        description: Not found
    """
    return get_job(JobKind.HOMEWORK, job_id)


@bp.delete("/<job_id>")
@require_auth
def delete(job_id: str):
    """
    Homework: delete with its solution and uploaded file
    ---
    tags:
      - Homework
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
      403:
        description: Not the owner
      404:
        description: Not found
    """
    return delete_job(JobKind.HOMEWORK, job_id)
