from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from models import EvaluationRequest, EvaluationResult


def _plain_number(value: float) -> Union[int, float]:
    return int(value) if float(value).is_integer() else value


def result_to_dict(result: EvaluationResult) -> dict[str, Any]:
    """Wire shape returned to callers of the scoring endpoint."""
    return {
        "score": _plain_number(result.total_score),
        "goal_score": _plain_number(result.goal_score),
        "context_score": _plain_number(result.context_score),
        "source_score": _plain_number(result.source_score),
        "expectation_score": _plain_number(result.expectation_score),
        "feedback": result.feedback,
        "enhanced_prompt": result.enhanced_text,
    }


def audit_record(
    request: EvaluationRequest,
    result: EvaluationResult,
    created_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Row written to the prompt_feedback audit table."""
    created_at = created_at or datetime.now(timezone.utc)
    return {
        "prompt": request.submitted_text,
        "model_answer": request.reference_answer,
        "score": result.total_score,
        "goal_score": result.goal_score,
        "context_score": result.context_score,
        "source_score": result.source_score,
        "expectation_score": result.expectation_score,
        "feedback": result.feedback,
        "created_at": created_at.isoformat(),
    }
