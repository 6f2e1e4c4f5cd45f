# studysphere/services/scholar_client.py
import logging
import time
from typing import Callable, Dict, List, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from studysphere.errors import CollaboratorError, RateLimited

logger = logging.getLogger(__name__)

USER_AGENT = "StudySphere/1.0 (Research Module)"
SEARCH_FIELDS = "title,url,abstract,authors"


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return None


class SemanticScholarClient:
    """
    Related-paper search.

    The only collaborator that retries: HTTP 429 is retried up to
    ``max_attempts`` calls in total, waiting ``Retry-After`` seconds when the
    server sends it and ``backoff_base * 2**(n-1)`` otherwise.
    """

    def __init__(self, url: str, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 timeout: float = 10, max_attempts: int = 3, backoff_base: float = 0.5,
                 sleep: Callable[[float], None] = time.sleep):
        self.url = url
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self._sleep = sleep

    def _wait(self, retry_state) -> float:
        exc = retry_state.outcome.exception()
        retry_after = getattr(exc, "retry_after", None)
        if retry_after is not None:
            delay = retry_after
        else:
            delay = self.backoff_base * 2 ** (retry_state.attempt_number - 1)
        logger.warning(
            "Semantic Scholar rate limited (429); retry %d in %.2fs",
            retry_state.attempt_number, delay,
        )
        return delay

    def _search_once(self, query: str, limit: int) -> List[Dict]:
        headers = {"User-Agent": USER_AGENT}
        if self.api_key:
            headers["x-api-key"] = self.api_key

        try:
            resp = self.session.get(
                self.url,
                params={"query": query, "fields": SEARCH_FIELDS, "limit": limit},
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CollaboratorError(f"Failed to fetch related papers: {e}") from e

        if resp.status_code == 429:
            raise RateLimited(
                "Semantic Scholar rate limit exceeded",
                retry_after=_parse_retry_after(resp.headers.get("Retry-After")),
            )
        try:
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise CollaboratorError(f"Failed to fetch related papers: {e}") from e

        return [
            {
                "paperId": p.get("paperId"),
                "title": p.get("title"),
                "url": p.get("url"),
                "abstract": p.get("abstract"),
                "authors": p.get("authors") or [],
            }
            for p in data.get("data") or []
        ]

    def search_related(self, query: str, limit: int = 10) -> List[Dict]:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(RateLimited),
            sleep=self._sleep,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                papers = self._search_once(query, limit)
        return papers
