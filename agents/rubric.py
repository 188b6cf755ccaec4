from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from models import EvaluationRequest


@dataclass(frozen=True)
class ScoreBounds:
    low: float
    high: float

    def clamp(self, value: float) -> float:
        return max(self.low, min(self.high, value))


@dataclass(frozen=True)
class Criterion:
    letter: str
    name: str
    heading: str
    question: str
    field: str
    levels: Tuple[str, str, str, str, str]  # descriptions for 5, 4, 3, 2, 1


CRITERIA: Tuple[Criterion, ...] = (
    Criterion(
        letter="A",
        name="Goal",
        heading="Clarity of Purpose",
        question="Did the user clearly state what they want Copilot to do?",
        field="goal_score",
        levels=(
            "Excellent: Clearly states desired outcome with no ambiguity.",
            "Good: Mostly clear goal; minor clarifications needed.",
            "Fair: Somewhat clear; leaves room for interpretation.",
            "Poor: Vague or partially missing goal.",
            "Very Poor: No clear goal; Copilot must guess user intent.",
        ),
    ),
    Criterion(
        letter="B",
        name="Context",
        heading="Relevant Background Information",
        question="Did the user provide relevant background (audience, domain, constraints)?",
        field="context_score",
        levels=(
            "Excellent: All necessary background details provided (audience, domain, constraints).",
            "Good: Most relevant context included; minor details missing.",
            "Fair: Some context, but key details missing.",
            "Poor: Minimal context; important information lacking.",
            "Very Poor: No context; prompt isolated and unclear.",
        ),
    ),
    Criterion(
        letter="C",
        name="Source",
        heading="Reference Material or Data",
        question="Did the user include references, examples, or data Copilot should use?",
        field="source_score",
        levels=(
            "Excellent: Accurate sources, examples, or data included.",
            "Good: Some source material provided, but not comprehensive.",
            "Fair: Vague mention of sources without specifics.",
            "Poor: Sources suggested but not provided.",
            "Very Poor: No sources or references; relies on assumptions.",
        ),
    ),
    Criterion(
        letter="D",
        name="Expectation",
        heading="Output Format & Quality",
        question="Did the user specify output format, tone, length, and quality?",
        field="expectation_score",
        levels=(
            "Excellent: Clearly specifies output type, tone, length, and quality standards.",
            "Good: Indicates output format but lacks minor details.",
            "Fair: General idea of output given, some ambiguity remains.",
            "Poor: Minimal guidance on output expectations.",
            "Very Poor: No indication of output format or quality.",
        ),
    ),
)

TOTAL_FIELD = "score"
FEEDBACK_FIELD = "feedback"
ENHANCED_FIELD = "enhanced_prompt"
# Numeric fields in reply order; bare numbers in a prose reply are read in this order.
SCORE_FIELDS: Tuple[str, ...] = (TOTAL_FIELD,) + tuple(c.field for c in CRITERIA)


def render_system_prompt(
    criteria: Tuple[Criterion, ...] = CRITERIA,
    total_bounds: ScoreBounds = ScoreBounds(0, 20),
    criterion_bounds: ScoreBounds = ScoreBounds(1, 5),
) -> str:
    lo, hi = int(criterion_bounds.low), int(criterion_bounds.high)
    t_lo, t_hi = int(total_bounds.low), int(total_bounds.high)
    letters = ", ".join(c.letter for c in criteria)

    lines = [
        "You are an expert prompt evaluator. Your task is to assess how well the user's prompt "
        "aligns with the following rubric and optionally reference the provided model answer.",
        "",
        "Evaluation Criteria:",
    ]
    lines += [f"{c.letter}. {c.name}: {c.question}" for c in criteria]
    lines += [
        "",
        "Scoring Instructions:",
        f"- Rate each criterion ({letters}) from {lo} to {hi} using the detailed descriptions below.",
        f"- Sum the {len(criteria)} scores to produce a total score between {t_lo} and {t_hi}.",
        "",
        "Detailed Rubric:",
    ]
    for c in criteria:
        lines.append(f"{c.letter}. {c.name} ({c.heading})")
        for level, description in zip(range(hi, lo - 1, -1), c.levels):
            lines.append(f"{level} – {description}")
        lines.append("")

    analysis = " ".join(f"{i}. {c.name}: {c.question}" for i, c in enumerate(criteria, start=1))
    lines += [
        "Output Requirements:",
        "Return ONLY a valid JSON object with these fields:",
        f"- {TOTAL_FIELD}: the sum of the criterion scores, between {t_lo} and {t_hi}",
    ]
    lines += [f"- {c.field}: score for {c.name} ({lo}-{hi})" for c in criteria]
    lines += [
        f"- {FEEDBACK_FIELD}: a string explaining why the prompt is good or bad and how to improve it. "
        f"Cover each part one by one: {analysis}",
        f"- {ENHANCED_FIELD}: an improved version of the user's prompt that addresses the issues identified",
        "",
        "Do not include additional text.",
    ]
    return "\n".join(lines)


@dataclass(frozen=True)
class RubricConfig:
    """Everything the scorer needs to know about the rubric and its limits.

    When ``system_prompt`` is not given it is rendered from the configured
    bounds, so the model is told the same ranges the scorer clamps to.
    """

    system_prompt: Optional[str] = None
    total_bounds: ScoreBounds = ScoreBounds(0, 20)
    criterion_bounds: ScoreBounds = ScoreBounds(1, 5)
    feedback_max_chars: int = 2000
    temperature: float = 0.2
    max_tokens: int = 1500

    def __post_init__(self):
        if self.system_prompt is None:
            prompt = render_system_prompt(total_bounds=self.total_bounds, criterion_bounds=self.criterion_bounds)
            object.__setattr__(self, "system_prompt", prompt)

    def build_user_message(self, request: EvaluationRequest) -> str:
        return (
            f"Model Answer:\n{request.reference_answer}\n\n"
            "Evaluate this prompt and return the JSON object described above for the following prompt:\n\n"
            f"{request.submitted_text}"
        )


DEFAULT_RUBRIC = RubricConfig()
