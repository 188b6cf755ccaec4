from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional

from models import ParsedNone, ParsedRecovered, ParsedStrict, ParseOutcome
from utils.logging import get_logger


logger = get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_FENCE_CLOSE = re.compile(r"\r?\n?[ \t]*```$")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def strip_code_fences(text: Optional[str]) -> str:
    """Remove a leading ```lang line and a trailing ``` from a model reply."""
    text = (text or "").strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_response(raw: Optional[str]) -> ParseOutcome:
    """Classify a model reply as strict JSON, recovered JSON or unparseable text."""
    content = strip_code_fences(raw)

    data = _load_object(content)
    if data is not None:
        return ParsedStrict(data=data)

    match = _JSON_OBJECT.search(content)
    if match is None:
        logger.error(f"No JSON object found in model response: {content!r}")
        return ParsedNone(raw=content)

    data = _load_object(match.group(0))
    if data is None:
        logger.error(f"Failed to parse JSON from model response: {content!r}")
        return ParsedNone(raw=content)
    return ParsedRecovered(data=data, raw=content)


def extract_numbers(text: str) -> List[float]:
    return [float(m.group(0)) for m in _NUMBER.finditer(text or "")]


def flatten_text(text: str, max_chars: int) -> str:
    return re.sub(r"[\r\n]", " ", text or "")[:max_chars]


def coerce_number(value: Any) -> float:
    """Best-effort numeric read of a JSON value; anything unusable becomes 0.

    Strings are read by their leading numeric prefix, so "14/20" gives 14.
    Overflowing values stay infinite so that clamping pins them to a bound;
    only NaN is unusable.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return 0.0
        try:
            number = float(match.group(0))
        except ValueError:
            return 0.0
    else:
        return 0.0
    return 0.0 if math.isnan(number) else number


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)
