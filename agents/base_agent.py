from __future__ import annotations

from typing import Optional

from tools.llm_client import LLMClient, ChatMessage
from utils.logging import get_logger


class BaseAgent:
    def __init__(self, name: str, role: str, llm: Optional[LLMClient] = None):
        self.name = name
        self.role = role
        self.logger = get_logger(f"agent.{name}")
        self.llm = llm if llm is not None else LLMClient()

    async def acomplete(
        self,
        system_prompt: str,
        user_content: str,
        temperature: float = 0.2,
        max_tokens: int = 1500,
    ) -> str:
        messages = [ChatMessage(role="user", content=user_content)]
        return await self.llm.acomplete(system_prompt, messages, temperature=temperature, max_tokens=max_tokens)

    async def aclose(self) -> None:
        await self.llm.aclose()
