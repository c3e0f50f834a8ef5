"""
Parsing of model output into raw record dicts.

Strategies run in order and the first one that yields records wins. Keep
this list short: each entry covers one response shape actually seen from
the model.
"""

import json
import re
from typing import Any, Callable, Optional

from enhancement_bridge.core.constants import RECORD_LIST_KEY
from enhancement_bridge.core.logging import get_logger

logger = get_logger(__name__)

RawRecords = list[dict[str, Any]]
ParseStrategy = Callable[[str], Optional[RawRecords]]

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_STORIES_ANCHOR_RE = re.compile(r'"stories"\s*:\s*\[')
_LIST_KEYS = tuple(RECORD_LIST_KEY.values())


def strip_code_fences(raw: str) -> str:
    """Remove markdown code fence markers (``` and ```json)."""
    return _FENCE_RE.sub("", raw).strip()


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _slice(text: str, opener: str, closer: str, start: Optional[int] = None) -> Optional[str]:
    begin = text.find(opener) if start is None else start
    end = text.rfind(closer)
    if begin == -1 or end == -1 or end < begin:
        return None
    return text[begin : end + 1]


def _dicts(items: Any) -> Optional[RawRecords]:
    if not isinstance(items, list):
        return None
    return [item for item in items if isinstance(item, dict)] or None


def parse_envelope(text: str) -> Optional[RawRecords]:
    """Outermost {...} holding an "enhancements" or "stories" list."""
    span = _slice(text, "{", "}")
    data = _loads(span) if span else None
    if not isinstance(data, dict):
        return None
    for key in _LIST_KEYS:
        if key in data:
            return _dicts(data[key])
    return None


def parse_top_level_array(text: str) -> Optional[RawRecords]:
    """A bare JSON array is taken as the record list itself."""
    if not text.startswith("["):
        return None
    span = _slice(text, "[", "]")
    return _dicts(_loads(span)) if span else None


def parse_stories_anchor(text: str) -> Optional[RawRecords]:
    """Re-slice from a "stories": [ anchor when the envelope is damaged."""
    match = _STORIES_ANCHOR_RE.search(text)
    if not match:
        return None
    span = _slice(text, "[", "]", start=match.end() - 1)
    return _dicts(_loads(span)) if span else None


def parse_bare_object(text: str) -> Optional[RawRecords]:
    """A single record object without an envelope."""
    span = _slice(text, "{", "}")
    data = _loads(span) if span else None
    if not isinstance(data, dict) or any(key in data for key in _LIST_KEYS):
        return None
    return [data]


PARSE_STRATEGIES: tuple[tuple[str, ParseStrategy], ...] = (
    ("envelope", parse_envelope),
    ("top_level_array", parse_top_level_array),
    ("stories_anchor", parse_stories_anchor),
    ("bare_object", parse_bare_object),
)


def parse_records(raw: str) -> Optional[RawRecords]:
    """
    Parse model output into a list of record dicts.

    Returns:
        The records from the first successful strategy, or None
    """
    cleaned = strip_code_fences(raw)
    for name, strategy in PARSE_STRATEGIES:
        records = strategy(cleaned)
        if records:
            logger.debug("Parsed model output", strategy=name, count=len(records))
            return records
    logger.warning("No parse strategy matched model output", preview=cleaned[:200])
    return None
