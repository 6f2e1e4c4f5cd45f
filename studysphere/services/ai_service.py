# studysphere/services/ai_service.py
"""
HTTP clients for the hosted language models.

* ``HuggingFaceChat``      OpenAI-compatible chat completions on the HF router
* ``GeminiClient``         Google Generative Language ``generateContent``
* ``ZeroShotClassifier``   bart-large-mnli zero-shot classification

All of them take an injected ``requests.Session`` and raise the collaborator
errors from ``studysphere.errors``; callers decide whether to degrade.
"""
import logging
from typing import List, Optional, Sequence, Tuple

import requests

from studysphere.errors import ClassificationError, GenerationError
from studysphere.services.parsing import extract_json_object, require_keys

logger = logging.getLogger(__name__)

PROBLEM_LABELS = ("mathematic", "linguistic", "programming", "scientific")
DEFAULT_PROBLEM_LABEL = "mathematic"


class HuggingFaceChat:
    def __init__(self, api_key: str, url: str, model: str,
                 session: Optional[requests.Session] = None, timeout: float = 60):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.session = session or requests.Session()
        self.timeout = timeout

    def complete(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.7) -> str:
        if not self.api_key:
            raise GenerationError("HUGGINGFACE_API_KEY is not set")

        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        try:
            resp = self.session.post(
                self.url,
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationError(f"Chat completion failed: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Unexpected chat completion response: {data}") from e

        if not content.strip():
            raise GenerationError("Empty chat completion")
        return content


class GeminiClient:
    def __init__(self, api_key: str, model: str, base_url: str,
                 session: Optional[requests.Session] = None, timeout: float = 60):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise GenerationError("Gemini API key not set")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        try:
            resp = self.session.post(
                url,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise GenerationError(f"Gemini request failed: {e}") from e

        parts = []
        for cand in data.get("candidates") or []:
            for part in (cand.get("content") or {}).get("parts") or []:
                if part.get("text"):
                    parts.append(part["text"])
            if parts:
                break

        text = "".join(parts)
        if not text:
            raise GenerationError("No response from Gemini")
        return text


class ZeroShotClassifier:
    def __init__(self, api_key: str, url: str, labels: Sequence[str] = PROBLEM_LABELS,
                 session: Optional[requests.Session] = None, timeout: float = 60):
        self.api_key = api_key
        self.url = url
        self.labels = list(labels)
        self.session = session or requests.Session()
        self.timeout = timeout

    def classify(self, text: str) -> Tuple[str, float]:
        """Return ``(label, confidence)`` for the best candidate label."""
        if not self.api_key:
            raise ClassificationError("HUGGINGFACE_API_KEY is not set")
        try:
            resp = self.session.post(
                self.url,
                json={"inputs": text[:4000], "parameters": {"candidate_labels": self.labels}},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ClassificationError(f"Classification request failed: {e}") from e

        label, score = self._top(data)
        if label not in self.labels:
            raise ClassificationError(f"Unknown label from classifier: {label!r}")
        return label, score

    @staticmethod
    def _top(data) -> Tuple[str, float]:
        # Legacy shape: {"labels": [...], "scores": [...]} sorted by score
        if isinstance(data, dict) and data.get("labels"):
            return data["labels"][0], float(data["scores"][0])
        # Router shape: [{"label": ..., "score": ...}, ...]
        if isinstance(data, list) and data and isinstance(data[0], dict):
            best = max(data, key=lambda d: d.get("score", 0.0))
            return best.get("label"), float(best.get("score", 0.0))
        raise ClassificationError(f"Unexpected classifier response: {data}")


def ask_json(client, prompt: str, required: List[str] = ()):
    """Run a completion and parse it as a JSON object with the required keys."""
    return require_keys(extract_json_object(client.complete(prompt)), required)
