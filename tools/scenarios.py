from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Union

from agents.rubric_scorer import RubricScorer
from tools.export import result_to_dict
from tools.llm_client import ChatMessage


Reply = Union[str, BaseException]


class ScriptedLLMClient:
    """Stand-in for LLMClient that replays canned replies in order.

    An exception in the script is raised instead of returned. Every call is
    kept in ``calls`` as ``(system_prompt, user_content)``.
    """

    provider = "scripted"
    model = "scripted"
    ready = True

    def __init__(self, replies: Iterable[Reply]):
        self._replies: List[Reply] = list(replies)
        self.calls: List[tuple[str, str]] = []
        self.closed = False

    async def acomplete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        temperature: float = 0.2,
        max_tokens: int = 1500,
    ) -> str:
        self.calls.append((system_prompt, "\n".join(m.content for m in messages)))
        if not self._replies:
            raise AssertionError("ScriptedLLMClient ran out of replies")
        reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def aclose(self) -> None:
        self.closed = True


CLEAN_JSON = (
    '{"score": 14, "goal_score": 4, "context_score": 3, "source_score": 3, '
    '"expectation_score": 4, "feedback": "Goal is clear; add data sources.", '
    '"enhanced_prompt": "Summarise the deck status for the flight director in three bullet points."}'
)

SCENARIOS: Dict[str, str] = {
    "clean_json": CLEAN_JSON,
    "fenced_json": f"```json\n{CLEAN_JSON}\n```",
    "embedded_json": f"Here is my evaluation: {CLEAN_JSON} Thanks!",
    "prose_only": "This prompt scores around 14 out of 20, context 3",
    "out_of_range": (
        '{"score": 23, "goal_score": 6, "context_score": -1, "source_score": 3, '
        '"expectation_score": 4, "feedback": "ok", "enhanced_prompt": "Please analyze..."}'
    ),
    "no_numbers": "I cannot grade this prompt.",
}


async def run_scenario(name: str, submitted_text: str = "Please analyze the decks",
                       reference_answer: Optional[str] = "") -> dict:
    scorer = RubricScorer(llm=ScriptedLLMClient([SCENARIOS[name]]))  # type: ignore[arg-type]
    result = await scorer.evaluate(submitted_text, reference_answer)
    return result_to_dict(result)


async def run_all() -> dict:
    return {name: await run_scenario(name) for name in SCENARIOS}


if __name__ == "__main__":
    import json
    print(json.dumps(asyncio.run(run_all()), indent=2))
