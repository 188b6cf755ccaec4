from __future__ import annotations

from typing import Any, Dict, Optional

from models import (
    EvaluationRequest,
    EvaluationResult,
    ParsedNone,
    ParsedRecovered,
    ParsedStrict,
    ParseOutcome,
)
from parsers import coerce_number, coerce_text, extract_numbers, flatten_text, parse_response
from tools.audit_sink import AuditSink, NullAuditSink
from tools.export import audit_record
from tools.llm_client import LLMClient, LLMError
from utils.logging import preview
from utils.telemetry import Telemetry
from .base_agent import BaseAgent
from .rubric import DEFAULT_RUBRIC, ENHANCED_FIELD, FEEDBACK_FIELD, SCORE_FIELDS, TOTAL_FIELD, RubricConfig


_OUTCOME_NAMES = {
    ParsedStrict: "strict",
    ParsedRecovered: "recovered",
    ParsedNone: "none",
}


class RubricScorer(BaseAgent):
    """Grades a prompt against the Goal/Context/Source/Expectation rubric.

    ``evaluate`` always returns a fully populated, range-checked
    :class:`EvaluationResult` once the model has answered. Only upstream
    transport and quota failures escape, as ``UpstreamUnavailable``,
    ``UpstreamRateLimited`` or ``UpstreamBillingRequired``.
    """

    def __init__(
        self,
        config: RubricConfig = DEFAULT_RUBRIC,
        llm: Optional[LLMClient] = None,
        audit_sink: Optional[AuditSink] = None,
        telemetry: Optional[Telemetry] = None,
    ):
        super().__init__("rubric_scorer", "Scores prompts against the four-criterion rubric", llm)
        self.config = config
        self.audit_sink = audit_sink if audit_sink is not None else NullAuditSink()
        self.telemetry = telemetry if telemetry is not None else Telemetry()

    async def evaluate(self, submitted_text: str, reference_answer: Optional[str] = "") -> EvaluationResult:
        request = EvaluationRequest(submitted_text=submitted_text, reference_answer=reference_answer or "")
        return await self.evaluate_request(request)

    async def evaluate_request(self, request: EvaluationRequest) -> EvaluationResult:
        self.logger.info(f"Scoring prompt: {preview(request.submitted_text)}")
        user = self.config.build_user_message(request)
        try:
            with self.telemetry.timer("upstream_ms"):
                raw = await self.acomplete(
                    self.config.system_prompt,
                    user,
                    temperature=self.config.temperature,
                    max_tokens=self.config.max_tokens,
                )
        except LLMError as e:
            self.telemetry.incr(f"upstream_error:{type(e).__name__}")
            raise

        outcome = parse_response(raw)
        self.telemetry.incr(f"parse:{_OUTCOME_NAMES[type(outcome)]}")
        result = self.normalize(outcome, request)
        self.telemetry.incr("evaluations")
        self.logger.info(
            f"Calculated score: {result.total_score} "
            f"(goal={result.goal_score} context={result.context_score} "
            f"source={result.source_score} expectation={result.expectation_score})"
        )
        if not result.is_consistent:
            self.logger.debug(f"Total {result.total_score} differs from sub-score sum {result.subscore_sum}")

        await self._record_audit(request, result)
        return result

    def normalize(self, outcome: ParseOutcome, request: EvaluationRequest) -> EvaluationResult:
        fields = self._fields_from(outcome)
        total = self.config.total_bounds
        criterion = self.config.criterion_bounds

        feedback = fields.get(FEEDBACK_FIELD)
        enhanced = fields.get(ENHANCED_FIELD)
        return EvaluationResult(
            total_score=total.clamp(coerce_number(fields.get(TOTAL_FIELD))),
            goal_score=criterion.clamp(coerce_number(fields.get("goal_score"))),
            context_score=criterion.clamp(coerce_number(fields.get("context_score"))),
            source_score=criterion.clamp(coerce_number(fields.get("source_score"))),
            expectation_score=criterion.clamp(coerce_number(fields.get("expectation_score"))),
            feedback=coerce_text(feedback) if feedback else "",
            enhanced_text=(coerce_text(enhanced) if enhanced else "") or request.submitted_text,
        )

    def _fields_from(self, outcome: ParseOutcome) -> Dict[str, Any]:
        if isinstance(outcome, (ParsedStrict, ParsedRecovered)):
            return dict(outcome.data)

        numbers = extract_numbers(outcome.raw)
        fields: Dict[str, Any] = dict(zip(SCORE_FIELDS, numbers))
        fields[FEEDBACK_FIELD] = flatten_text(outcome.raw, self.config.feedback_max_chars)
        return fields

    async def _record_audit(self, request: EvaluationRequest, result: EvaluationResult) -> None:
        try:
            await self.audit_sink.record(audit_record(request, result))
        except Exception as e:
            self.telemetry.incr("audit_errors")
            self.logger.error(f"Error storing feedback: {e}")
