# studysphere/services/parsing.py
import json
import re
from typing import Any, Dict, Iterable

from studysphere.errors import GenerationError

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the JSON object out of an LLM reply.

    Models wrap answers in markdown fences or add prose around them; we drop
    the fences and keep everything between the first ``{`` and the last ``}``.
    """
    if not text or not text.strip():
        raise GenerationError("Empty response from model")

    cleaned = _FENCE.sub("", text.strip())
    first, last = cleaned.find("{"), cleaned.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise GenerationError("No JSON object found in model response")

    try:
        parsed = json.loads(cleaned[first:last + 1])
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model response is not valid JSON: {e.msg}") from e

    if not isinstance(parsed, dict):
        raise GenerationError("Model response is not a JSON object")
    return parsed


def require_keys(payload: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    missing = [k for k in keys if payload.get(k) in (None, "")]
    if missing:
        raise GenerationError(f"Model response missing {', '.join(missing)}")
    return payload


def as_str_list(value) -> list:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v not in (None, "")]
