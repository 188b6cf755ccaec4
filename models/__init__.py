from .evaluation import EvaluationRequest, EvaluationResult
from .parse_outcome import ParsedStrict, ParsedRecovered, ParsedNone, ParseOutcome

__all__ = [
    "EvaluationRequest",
    "EvaluationResult",
    "ParsedStrict",
    "ParsedRecovered",
    "ParsedNone",
    "ParseOutcome",
]
