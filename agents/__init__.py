from .rubric import DEFAULT_RUBRIC, RubricConfig, ScoreBounds
from .rubric_scorer import RubricScorer

__all__ = [
    "DEFAULT_RUBRIC",
    "RubricConfig",
    "ScoreBounds",
    "RubricScorer",
]
