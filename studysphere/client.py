# studysphere/client.py
"""
Python client for the job endpoints.

``submit`` uploads an artifact and returns the job id; ``poll`` then
re-reads the job at a fixed interval until it reaches ``completed`` or
``failed``::

    client = StudySphereClient("http://localhost:5000", token)
    job_id = client.submit("homework", "problem.pdf")
    snap = client.poll("homework", job_id, on_update=print)
"""
import logging
import os
import threading
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"completed", "failed"})

# kind -> (upload path, multipart field, status path template)
ROUTES = {
    "homework": ("/api/homework/upload", "file", "/api/homework/solved/{id}"),
    "note": ("/api/notes/upload", "audio", "/api/notes/{id}"),
    "research": ("/api/research/upload", "file", "/api/research/{id}"),
}


class ClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PollTimeout(ClientError):
    pass


class PollCancelled(ClientError):
    pass


class CancelToken:
    """Cancelling wakes a poller that is sleeping between attempts."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


class StudySphereClient:
    def __init__(self, base_url: str, token: str, session: Optional[requests.Session] = None,
                 timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _routes(self, kind: str):
        try:
            return ROUTES[kind]
        except KeyError:
            raise ValueError(f"Unknown job kind '{kind}'. Expected one of: {', '.join(ROUTES)}")

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            resp = self.session.request(
                method,
                self.base_url + path,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise ClientError(f"{method} {path} failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or not body.get("success", False):
            raise ClientError(body.get("error") or f"{method} {path} returned {resp.status_code}", resp.status_code)
        return body.get("data")

    def submit(self, kind: str, path: str, **fields) -> str:
        """Upload ``path`` as a new job of ``kind``; extra fields (e.g. ``title``) go into the form."""
        upload_path, field, _ = self._routes(kind)
        with open(path, "rb") as fh:
            data = self._request(
                "POST", upload_path,
                files={field: (os.path.basename(path), fh)},
                data=fields,
            )
        return data["jobId"]

    def status(self, kind: str, job_id: str) -> dict:
        _, _, status_path = self._routes(kind)
        return self._request("GET", status_path.format(id=job_id))

    def poll(self, kind: str, job_id: str, interval: float = 2.0, max_attempts: int = 30,
             cancel: Optional[CancelToken] = None,
             on_update: Optional[Callable[[dict], None]] = None) -> dict:
        """
        Read the job every ``interval`` seconds until it is terminal.

        Raises ``PollTimeout`` after ``max_attempts`` reads without a terminal
        status and ``PollCancelled`` as soon as ``cancel`` is triggered.
        """
        cancel = cancel or CancelToken()
        for attempt in range(1, max_attempts + 1):
            if cancel.cancelled:
                raise PollCancelled(f"Polling of job {job_id} cancelled")

            snap = self.status(kind, job_id)
            if on_update is not None:
                on_update(snap)
            status = snap["job"]["status"]
            if status in TERMINAL_STATUSES:
                return snap

            logger.debug("job %s still %s (attempt %d/%d)", job_id, status, attempt, max_attempts)
            if attempt < max_attempts and cancel.wait(interval):
                raise PollCancelled(f"Polling of job {job_id} cancelled")

        raise PollTimeout(f"Job {job_id} not finished after {max_attempts} attempts")
