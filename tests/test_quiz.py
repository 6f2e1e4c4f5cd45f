import pytest

from studysphere.errors import BadRequest, GenerationError
from studysphere.services.quiz_service import parse_generation_params, validate_quiz_payload


def _generate(upload, **form):
    form.setdefault("num_questions", "2")
    form.setdefault("difficulty", "medium")
    return upload("/api/quiz/generate", filename="course.pdf", **form)


@pytest.mark.parametrize("n,difficulty", [("0", "easy"), ("51", "easy"), ("ten", "easy"), ("5", "extreme"), ("5", None)])
def test_generation_params_rejected(n, difficulty):
    with pytest.raises(BadRequest):
        parse_generation_params(n, difficulty)


def test_generation_params_normalized():
    assert parse_generation_params("50", " Hard ") == (50, "hard")


def test_payload_needs_four_options():
    payload = {"questions": [{"question_text": "Q", "options": ["a", "b", "c"], "correct_answer": "a"}]}
    with pytest.raises(GenerationError, match="exactly 4 options"):
        validate_quiz_payload(payload)


def test_payload_answer_must_be_an_option():
    payload = {"questions": [{"question_text": "Q", "options": ["a", "b", "c", "d"], "correct_answer": "B"}]}
    with pytest.raises(GenerationError, match="must match one of the options"):
        validate_quiz_payload(payload)


def test_payload_without_questions():
    with pytest.raises(GenerationError):
        validate_quiz_payload({"questions": []})


def test_generate_and_read(upload, client, auth_headers, fake_collaborators):
    rv = _generate(upload)
    assert rv.status_code == 201
    quiz = rv.json["data"]["quiz"]
    assert quiz["quiz_title"] == "Cell Biology Basics"
    assert quiz["questionCount"] == 2
    assert [q["correct_answer"] for q in quiz["questions"]] == ["Mitochondria", "Nucleus"]
    assert "Number of Questions: 2" in fake_collaborators.gemini.prompts[-1]

    rv = client.get(f"/api/quiz/{quiz['quiz_id']}", headers=auth_headers())
    assert rv.status_code == 200
    assert rv.json["data"]["quiz"]["subject"] == "Biology"

    listed = client.get("/api/quiz/", headers=auth_headers()).json["data"]["quizzes"]
    assert [q["quiz_id"] for q in listed] == [quiz["quiz_id"]]
    assert "questions" not in listed[0]


def test_generate_rejects_wrong_file_type(upload, fake_collaborators):
    rv = upload("/api/quiz/generate", filename="course.png", num_questions="5", difficulty="easy")
    assert rv.status_code == 400


def test_invalid_generation_is_502(upload, fake_collaborators):
    bad = {"quiz_title": "T", "subject": "S",
           "questions": [{"question_text": "Q", "options": ["a", "b"], "correct_answer": "a"}]}
    fake_collaborators.gemini.replies["Generate a quiz"] = bad

    rv = _generate(upload)
    assert rv.status_code == 502
    assert "exactly 4 options" in rv.json["error"]


def test_attempt_scoring(upload, client, auth_headers, fake_collaborators):
    quiz = _generate(upload).json["data"]["quiz"]
    q1, q2 = quiz["questions"]

    rv = client.post(
        f"/api/quiz/{quiz['quiz_id']}/attempt",
        json={"answers": {q1["question_id"]: "Mitochondria", q2["question_id"]: "Membrane"}},
        headers=auth_headers(),
    )
    assert rv.status_code == 201
    data = rv.json["data"]
    assert (data["score"], data["total"], data["percentage"]) == (1, 2, 50.0)

    attempts = client.get(f"/api/quiz/{quiz['quiz_id']}/attempts", headers=auth_headers()).json["data"]["attempts"]
    assert [a["attempt_id"] for a in attempts] == [data["attempt_id"]]

    one = client.get(f"/api/quiz/attempt/{data['attempt_id']}", headers=auth_headers()).json["data"]["attempt"]
    assert one["correct"] == 1
    assert one["quiz"]["quiz_id"] == quiz["quiz_id"]


def test_attempt_needs_answers_object(upload, client, auth_headers, fake_collaborators):
    quiz_id = _generate(upload).json["data"]["quiz_id"]
    rv = client.post(f"/api/quiz/{quiz_id}/attempt", json={"answers": ["a"]}, headers=auth_headers())
    assert rv.status_code == 400


def test_other_users_quiz_is_not_found(upload, client, auth_headers, fake_collaborators):
    quiz_id = _generate(upload, user_id="alice").json["data"]["quiz_id"]

    assert client.get(f"/api/quiz/{quiz_id}", headers=auth_headers("bob")).status_code == 404
    assert client.delete(f"/api/quiz/{quiz_id}", headers=auth_headers("bob")).status_code == 404
    rv = client.post(f"/api/quiz/{quiz_id}/attempt", json={"answers": {}}, headers=auth_headers("bob"))
    assert rv.status_code == 404


def test_delete_quiz(upload, client, auth_headers, fake_collaborators):
    quiz_id = _generate(upload).json["data"]["quiz_id"]
    assert client.delete(f"/api/quiz/{quiz_id}", headers=auth_headers()).status_code == 200
    assert client.get(f"/api/quiz/{quiz_id}", headers=auth_headers()).status_code == 404
