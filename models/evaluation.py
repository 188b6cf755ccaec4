from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EvaluationRequest:
    submitted_text: str
    reference_answer: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.submitted_text, str) or not self.submitted_text.strip():
            raise ValueError("submitted_text must be a non-empty string")
        if self.reference_answer is None:
            object.__setattr__(self, "reference_answer", "")


@dataclass(frozen=True)
class EvaluationResult:
    total_score: float
    goal_score: float
    context_score: float
    source_score: float
    expectation_score: float
    feedback: str
    enhanced_text: str

    @property
    def subscore_sum(self) -> float:
        return self.goal_score + self.context_score + self.source_score + self.expectation_score

    @property
    def is_consistent(self) -> bool:
        # Advisory only: the total is reported as the model gave it.
        return abs(self.total_score - self.subscore_sum) < 1e-9
