from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import os

try:
    from dotenv import load_dotenv, find_dotenv
    load_dotenv(find_dotenv(), override=False)
except Exception:
    pass


DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1"


@dataclass
class AppConfig:
    openai_api_key: Optional[str]
    anthropic_api_key: Optional[str]
    gateway_api_key: Optional[str]
    gateway_base_url: str
    model_preference: str
    request_timeout_seconds: int
    log_level: str
    supabase_url: Optional[str]
    supabase_service_role_key: Optional[str]
    audit_table: str
    feedback_max_chars: int

    @property
    def audit_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


def load_config() -> AppConfig:
    return AppConfig(
        openai_api_key=(
            os.getenv("OPENAI_API_KEY")
            or os.getenv("OPENAI_KEY")
            or os.getenv("OPEN_API_KEY")
        ),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
        gateway_api_key=os.getenv("LLM_GATEWAY_API_KEY") or os.getenv("LOVABLE_API_KEY"),
        gateway_base_url=os.getenv("LLM_GATEWAY_URL", DEFAULT_GATEWAY_URL),
        model_preference=os.getenv("MODEL_PREFERENCE", "openai:gpt-4o-mini"),
        request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
        audit_table=os.getenv("AUDIT_TABLE", "prompt_feedback"),
        feedback_max_chars=int(os.getenv("FEEDBACK_MAX_CHARS", "2000")),
    )
