import pytest

from studysphere.errors import CollaboratorError, RateLimited
from studysphere.services.scholar_client import SemanticScholarClient

from conftest import FakeResponse, FakeSession

URL = "https://api.semanticscholar.org/graph/v1/paper/search"
PAPERS = {"data": [{"paperId": "abc", "title": "Related work", "url": "https://s2/abc",
                    "abstract": None, "authors": [{"name": "Doe"}]}]}


def _client(responses, **kw):
    sleeps = []
    session = FakeSession(responses)
    client = SemanticScholarClient(URL, session=session, sleep=sleeps.append, **kw)
    return client, session, sleeps


def test_retries_after_429_and_honors_retry_after():
    client, session, sleeps = _client([
        FakeResponse(429, headers={"Retry-After": "2"}),
        FakeResponse(429),
        FakeResponse(200, PAPERS),
    ])

    papers = client.search_related("attention", limit=3)

    assert papers[0]["paperId"] == "abc"
    assert len(session.calls) == 3
    # Retry-After on the first 429, exponential backoff on the second
    assert sleeps == [2.0, 1.0]
    _, url, kwargs = session.calls[0]
    assert kwargs["params"] == {"query": "attention", "fields": "title,url,abstract,authors", "limit": 3}
    assert kwargs["headers"]["User-Agent"].startswith("StudySphere/1.0")


def test_gives_up_after_three_attempts():
    client, session, sleeps = _client([FakeResponse(429)] * 5)

    with pytest.raises(RateLimited):
        client.search_related("attention")

    assert len(session.calls) == 3
    assert sleeps == [0.5, 1.0]


def test_other_errors_are_not_retried():
    client, session, sleeps = _client([FakeResponse(500), FakeResponse(200, PAPERS)])

    with pytest.raises(CollaboratorError) as exc:
        client.search_related("attention")

    assert not isinstance(exc.value, RateLimited)
    assert len(session.calls) == 1
    assert sleeps == []


def test_api_key_header():
    client, session, _ = _client([FakeResponse(200, {"data": []})], api_key="k-123")
    assert client.search_related("x") == []
    assert session.calls[0][2]["headers"]["x-api-key"] == "k-123"
