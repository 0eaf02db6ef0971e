"""Best-effort extraction of one JSON object from free-form model output."""
from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, Iterable, Optional

FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class OracleResponseError(ValueError):
    """Raised when the oracle reply does not contain a parseable JSON object."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(candidate)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def from_fenced_block(text: str) -> Optional[Dict[str, Any]]:
    match = FENCED_BLOCK_RE.search(text)
    if not match:
        return None
    inner = match.group(1).strip()
    return _loads_object(inner) or from_brace_span(inner)


def from_brace_span(text: str) -> Optional[Dict[str, Any]]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return _loads_object(text[start : end + 1])


def from_direct_parse(text: str) -> Optional[Dict[str, Any]]:
    return _loads_object(text.strip())


DEFAULT_STRATEGIES: tuple[Callable[[str], Optional[Dict[str, Any]]], ...] = (
    from_fenced_block,
    from_brace_span,
    from_direct_parse,
)


def extract_json_object(
    text: str,
    strategies: Iterable[Callable[[str], Optional[Dict[str, Any]]]] = DEFAULT_STRATEGIES,
) -> Dict[str, Any]:
    """Try each strategy in order and return the first JSON object found."""
    if not text or not text.strip():
        raise OracleResponseError("Empty response from language model", raw_text=text or "")

    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            return result
    raise OracleResponseError("No JSON object found in language model response", raw_text=text)
