# studysphere/routes/quiz_routes.py
from flask import Blueprint, g, request

from studysphere.auth import require_auth
from studysphere.models import Quiz, QuizAttempt
from studysphere.routes.common import _iso, ok
from studysphere.services.collaborators import get_collaborators
from studysphere.services.quiz_service import QuizService, parse_generation_params
from studysphere.services.storage import ALLOWED_EXTENSIONS, save_upload

bp = Blueprint("quiz", __name__)


def _service() -> QuizService:
    return QuizService(get_collaborators())


def _quiz_to_dict(quiz: Quiz, with_questions: bool = True) -> dict:
    out = {
        "quiz_id": quiz.id,
        "quiz_title": quiz.title,
        "subject": quiz.subject,
        "difficulty": quiz.difficulty,
        "created_at": _iso(quiz.created_at),
        "questionCount": len(quiz.questions),
    }
    if with_questions:
        out["questions"] = [
            {
                "question_id": q.id,
                "question_text": q.question_text,
                "options": q.options,
                "correct_answer": q.correct_answer,
            }
            for q in quiz.questions
        ]
    return out


def _attempt_to_dict(a: QuizAttempt) -> dict:
    return {
        "attempt_id": a.id,
        "quiz_id": a.quiz_id,
        "answers": a.answers,
        "correct": a.correct,
        "total": a.total,
        "score": a.score,
        "created_at": _iso(a.created_at),
    }


@bp.post("/generate")
@require_auth
def generate():
    """
    Quiz: generate from a course document
    ---
    tags:
      - Quiz
    consumes:
      - multipart/form-data
    security:
      - Bearer: []
    parameters:
      - in: formData
        name: file
        type: file
        required: true
        description: pdf or docx.
      - in: formData
        name: num_questions
        type: integer
        required: true
        example: 10
      - in: formData
        name: difficulty
        type: string
        required: true
        enum: [easy, medium, hard]
    responses:
      201:
        description: Quiz created
      400:
        description: Invalid parameters or file
      502:
        description: Generation failed
    """
    n, difficulty = parse_generation_params(request.form.get("num_questions"), request.form.get("difficulty"))
    path, _ = save_upload(request.files.get("file"), ALLOWED_EXTENSIONS["quiz"])
    quiz = _service().generate(g.user_id, path, n, difficulty)
    return ok({"quiz_id": quiz.id, "quiz": _quiz_to_dict(quiz)}, 201, message="Quiz generated")


@bp.get("/")
@require_auth
def list_quizzes():
    """
    Quiz: list own quizzes, newest first
    ---
    tags:
      - Quiz
    security:
      - Bearer: []
    responses:
      200:
        description: OK
    """
    quizzes = _service().list_for(g.user_id)
    return ok({"quizzes": [_quiz_to_dict(q, with_questions=False) for q in quizzes]})


@bp.get("/<quiz_id>")
@require_auth
def get_quiz(quiz_id: str):
    """
    Quiz: detail with questions
    ---
    tags:
      - Quiz
    security:
      - Bearer: []
    parameters:
      - in: path
        name: quiz_id
        required: true
        type: string
    responses:
      200:
        description: OK
      404:
        description: Not found
    """
    return ok({"quiz": _quiz_to_dict(_service().get(quiz_id, g.user_id))})


@bp.delete("/<quiz_id>")
@require_auth
def delete_quiz(quiz_id: str):
    """
    Quiz: delete with questions and attempts
    ---
    tags:
      - Quiz
    security:
      - Bearer: []
    parameters:
      - in: path
        name: quiz_id
        required: true
        type: string
    responses:
      200:
        description: Deleted
      404:
        description: Not found
    """
    _service().delete(quiz_id, g.user_id)
    return ok(None, message="Quiz deleted")


@bp.post("/<quiz_id>/attempt")
@require_auth
def submit_attempt(quiz_id: str):
    """
    Quiz: submit answers and get the score
    ---
    tags:
      - Quiz
    consumes:
      - application/json
    security:
      - Bearer: []
    parameters:
      - in: path
        name: quiz_id
        required: true
        type: string
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - answers
          properties:
            answers:
              type: object
              description: "{question_id: selected option text}"
    responses:
      201:
        description: Scored
      400:
        description: Bad answers
      404:
        description: Not found
    """
    data = request.get_json(silent=True) or {}
    attempt = _service().submit_attempt(quiz_id, g.user_id, data.get("answers"))
    return ok({
        "attempt_id": attempt.id,
        "score": attempt.correct,
        "total": attempt.total,
        "percentage": attempt.score,
    }, 201, message="Quiz submitted")


@bp.get("/<quiz_id>/attempts")
@require_auth
def list_attempts(quiz_id: str):
    """
    Quiz: own attempts for a quiz, newest first
    ---
    tags:
      - Quiz
    security:
      - Bearer: []
    parameters:
      - in: path
        name: quiz_id
        required: true
        type: string
    responses:
      200:
        description: OK
      404:
        description: Not found
    """
    attempts = _service().attempts_for(quiz_id, g.user_id)
    return ok({"attempts": [_attempt_to_dict(a) for a in attempts]})


@bp.get("/attempt/<attempt_id>")
@require_auth
def get_attempt(attempt_id: str):
    """
    Quiz: a single attempt with its quiz
    ---
    tags:
      - Quiz
    security:
      - Bearer: []
    parameters:
      - in: path
        name: attempt_id
        required: true
        type: string
    responses:
      200:
        description: OK
      404:
        description: Not found
    """
    attempt = _service().get_attempt(attempt_id, g.user_id)
    out = _attempt_to_dict(attempt)
    out["quiz"] = _quiz_to_dict(attempt.quiz)
    return ok({"attempt": out})
