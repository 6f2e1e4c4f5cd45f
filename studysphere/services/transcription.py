# studysphere/services/transcription.py
import logging
import time
from typing import Callable, Optional

import requests

from studysphere.errors import TranscriptionError

logger = logging.getLogger(__name__)


class AssemblyAIClient:
    """
    Upload -> create transcript -> wait for it.

    AssemblyAI transcribes asynchronously on their side, so ``transcribe``
    polls the transcript resource until it reports ``completed`` or ``error``.
    """

    def __init__(self, api_key: str, base_url: str, session: Optional[requests.Session] = None,
                 timeout: float = 60, poll_interval: float = 3.0, max_wait: float = 600.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self._sleep = sleep

    def _headers(self):
        return {"authorization": self.api_key}

    def _upload(self, path: str) -> str:
        with open(path, "rb") as fh:
            resp = self.session.post(
                f"{self.base_url}/upload", data=fh, headers=self._headers(), timeout=self.timeout
            )
        resp.raise_for_status()
        return resp.json()["upload_url"]

    def transcribe(self, path: str) -> str:
        if not self.api_key:
            raise TranscriptionError("ASSEMBLY_API_KEY is not set")

        try:
            audio_url = self._upload(path)
            resp = self.session.post(
                f"{self.base_url}/transcript",
                json={"audio_url": audio_url},
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            transcript_id = resp.json()["id"]

            waited = 0.0
            while True:
                resp = self.session.get(
                    f"{self.base_url}/transcript/{transcript_id}",
                    headers=self._headers(),
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                data = resp.json()
                status = data.get("status")

                if status == "completed":
                    break
                if status == "error":
                    raise TranscriptionError(f"Transcription failed: {data.get('error') or 'unknown error'}")
                if waited >= self.max_wait:
                    raise TranscriptionError(f"Transcription not ready after {self.max_wait:.0f}s")

                self._sleep(self.poll_interval)
                waited += self.poll_interval
        except (OSError, requests.RequestException, KeyError, ValueError) as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        text = (data.get("text") or "").strip()
        if not text:
            raise TranscriptionError("Transcription failed: empty transcript")
        return text
