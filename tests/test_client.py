import threading

import pytest

from studysphere.client import CancelToken, ClientError, PollCancelled, PollTimeout, StudySphereClient

from conftest import FakeResponse, FakeSession


def _snap(status):
    return FakeResponse(200, {"success": True, "data": {"job": {"id": "j1", "status": status}, "result": None}})


def _client(responses):
    session = FakeSession(responses)
    return StudySphereClient("http://api.test/", "tok", session=session), session


def test_poll_returns_terminal_snapshot():
    client, session = _client([_snap("pending"), _snap("processing"), _snap("completed")])
    seen = []

    snap = client.poll("homework", "j1", interval=0, on_update=lambda s: seen.append(s["job"]["status"]))

    assert snap["job"]["status"] == "completed"
    assert seen == ["pending", "processing", "completed"]
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "http://api.test/api/homework/solved/j1")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


def test_failed_is_terminal_too():
    client, _ = _client([_snap("failed")])
    assert client.poll("note", "j1", interval=0)["job"]["status"] == "failed"


def test_poll_times_out_at_attempt_ceiling():
    client, session = _client([_snap("processing")] * 3)
    with pytest.raises(PollTimeout):
        client.poll("research", "j1", interval=0, max_attempts=3)
    assert len(session.calls) == 3


def test_cancel_before_first_read():
    client, session = _client([_snap("pending")])
    token = CancelToken()
    token.cancel()
    with pytest.raises(PollCancelled):
        client.poll("homework", "j1", cancel=token)
    assert session.calls == []


def test_cancel_interrupts_wait():
    client, session = _client([_snap("pending")] * 5)
    token = CancelToken()
    # a long interval; the cancel must wake the poller right away
    timer = threading.Timer(0.05, token.cancel)
    timer.start()
    try:
        with pytest.raises(PollCancelled):
            client.poll("homework", "j1", interval=30, cancel=token)
    finally:
        timer.cancel()
    assert len(session.calls) == 1


def test_http_error_is_raised():
    client, _ = _client([FakeResponse(404, {"success": False, "error": "Job not found"})])
    with pytest.raises(ClientError) as exc:
        client.status("homework", "missing")
    assert exc.value.status_code == 404
    assert str(exc.value) == "Job not found"


def test_submit(tmp_path):
    path = tmp_path / "paper.pdf"
    path.write_bytes(b"%PDF")
    client, session = _client([FakeResponse(201, {"success": True, "data": {"jobId": "j9", "status": "pending"}})])

    assert client.submit("research", str(path), title="Attention") == "j9"
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://api.test/api/research/upload")
    assert kwargs["data"] == {"title": "Attention"}
    assert "file" in kwargs["files"]


def test_unknown_kind():
    client, _ = _client([])
    with pytest.raises(ValueError):
        client.status("essay", "j1")
