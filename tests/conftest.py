import io
import json
import os

import pytest
import requests

from studysphere import create_app
from studysphere.auth import create_access_token
from studysphere.errors import GenerationError
from studysphere.models import db as _db
from studysphere.services.collaborators import EXTENSION_KEY, Collaborators, get_collaborators
from studysphere.services.job_store import JobStore
from studysphere.services.pipelines import build_pipelines
from studysphere.services.runner import JobRunner

SOLUTION = {
    "step_by_step_solution": [
        {"step": 1, "description": "Subtract 3 from both sides", "calculation": "2x = 4"},
        {"step": 2, "description": "Divide by 2", "calculation": "x = 2"},
    ],
    "final_answer": "x = 2",
    "explanation": "Isolate x.",
}
NOTE = {
    "summary": "Photosynthesis turns light into chemical energy.",
    "key_concepts": ["chlorophyll", "light reactions"],
    "mindmap_data": {"root": "Photosynthesis", "children": [{"name": "Light reactions"}]},
}
PAPER_SUMMARY = {"abstract": "We study attention.", "key_findings": ["Attention works", "RNNs not needed"]}
CITATIONS = {
    "citations": [
        {"authors": ["Vaswani, A.", "Shazeer, N."], "title": "Attention Is All You Need",
         "year": 2017, "journal": "NeurIPS", "doi": "10.5555/3295222"},
    ]
}
QUESTIONS = {"questions": ["Does attention scale?"], "research_gaps": ["Long contexts"]}
METHODOLOGIES = {"methodologies": ["Ablation study"]}
QUIZ = {
    "quiz_title": "Cell Biology Basics",
    "subject": "Biology",
    "questions": [
        {"question_text": "Powerhouse of the cell?",
         "options": ["Nucleus", "Mitochondria", "Ribosome", "Golgi"], "correct_answer": "Mitochondria"},
        {"question_text": "Where is DNA stored?",
         "options": ["Nucleus", "Membrane", "Cytoplasm", "Vacuole"], "correct_answer": "Nucleus"},
    ],
}


# ---------------------------
# Fakes
# ---------------------------

class FakeExtractor:
    def __init__(self, text="Solve for x: 2x + 3 = 7"):
        self.text = text
        self.error = None
        self.calls = []

    def extract(self, path):
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return self.text


class FakeClassifier:
    def __init__(self, label="mathematic", confidence=0.93):
        self.result = (label, confidence)
        self.error = None

    def classify(self, text):
        if self.error is not None:
            raise self.error
        return self.result


class FakeLLM:
    """Replies are picked by the first marker found in the prompt."""

    def __init__(self, replies=None):
        self.replies = dict(replies or {})
        self.prompts = []

    def complete(self, prompt, **kwargs):
        self.prompts.append(prompt)
        for marker, reply in self.replies.items():
            if marker in prompt:
                break
        else:
            raise GenerationError("no scripted reply")
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)


class FakeTranscriber:
    def __init__(self, text="Today we cover photosynthesis."):
        self.text = text
        self.error = None

    def transcribe(self, path):
        if self.error is not None:
            raise self.error
        return self.text


class FakeScholar:
    def __init__(self):
        self.papers = [{"paperId": "p1", "title": "Related", "url": None, "abstract": None, "authors": []}]
        self.queries = []

    def search_related(self, query, limit=10):
        self.queries.append((query, limit))
        return self.papers[:limit]


class FakeResponse:
    def __init__(self, status_code=200, payload=None, headers=None):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """requests.Session stand-in: returns queued responses and records calls."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.responses.pop(0)

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)

    def request(self, method, url, **kwargs):
        return self._next(method, url, **kwargs)


# ---------------------------
# App fixtures
# ---------------------------

@pytest.fixture(scope="session")
def app():
    os.environ["FLASK_ENV"] = "testing"
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.drop_all()


@pytest.fixture(autouse=True)
def _clean_db(app):
    yield
    _db.session.remove()
    _db.drop_all()
    _db.create_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_headers(app):
    def _make(user_id="user-1"):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _make


@pytest.fixture()
def fake_collaborators(app):
    fakes = Collaborators(
        extractor=FakeExtractor(),
        classifier=FakeClassifier(),
        llm=FakeLLM({
            "homework tutor": SOLUTION,
            "Analyze the following note": NOTE,
            "potential research questions": QUESTIONS,
            "research methodologies": METHODOLOGIES,
        }),
        gemini=FakeLLM({
            "concise abstract": PAPER_SUMMARY,
            "Extract all citations": CITATIONS,
            "Generate a quiz": QUIZ,
        }),
        transcriber=FakeTranscriber(),
        scholar=FakeScholar(),
    )
    original = app.extensions[EXTENSION_KEY]["collaborators"]
    app.extensions[EXTENSION_KEY]["collaborators"] = fakes
    yield fakes
    app.extensions[EXTENSION_KEY]["collaborators"] = original


@pytest.fixture()
def dispatched(monkeypatch):
    """Job ids handed to the worker pool, in order; nothing actually runs."""
    ids = []

    class DummyAsync:
        def __init__(self, task_id):
            self.id = task_id

    def fake_delay(job_id):
        ids.append(job_id)
        return DummyAsync(f"task-{job_id}")

    monkeypatch.setattr("studysphere.tasks.job_tasks.run_job.delay", fake_delay)
    return ids


@pytest.fixture()
def settle(app, dispatched):
    """Run every dispatched job to completion, as a worker would."""
    def _settle():
        runner = JobRunner(JobStore(), build_pipelines(get_collaborators()))
        out = []
        while dispatched:
            out.append(runner.run(dispatched.pop(0)))
        return out
    return _settle


@pytest.fixture()
def upload(client, auth_headers):
    def _upload(url, field="file", filename="problem.pdf", content=b"%PDF-1.4 test", user_id="user-1", **form):
        data = dict(form)
        data[field] = (io.BytesIO(content), filename)
        return client.post(url, data=data, headers=auth_headers(user_id), content_type="multipart/form-data")
    return _upload
