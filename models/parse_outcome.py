from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Union


@dataclass(frozen=True)
class ParsedStrict:
    """The whole (fence-stripped) response was a JSON object."""

    data: Dict[str, Any]


@dataclass(frozen=True)
class ParsedRecovered:
    """A JSON object was cut out of surrounding prose."""

    data: Dict[str, Any]
    raw: str = field(repr=False, default="")


@dataclass(frozen=True)
class ParsedNone:
    """No JSON object could be parsed; only the raw text is available."""

    raw: str


ParseOutcome = Union[ParsedStrict, ParsedRecovered, ParsedNone]
