"""Shared fixtures for scorer tests."""

import pytest

from agents.rubric_scorer import RubricScorer
from tools.audit_sink import AuditSink
from tools.scenarios import ScriptedLLMClient
from utils.config import AppConfig


class RecordingAuditSink(AuditSink):
    def __init__(self):
        self.entries = []

    async def record(self, entry):
        self.entries.append(entry)


class FailingAuditSink(AuditSink):
    async def record(self, entry):
        raise RuntimeError("audit store is down")


@pytest.fixture
def config_factory():
    """Build an AppConfig without touching the process environment."""

    def _make(**overrides) -> AppConfig:
        values = dict(
            openai_api_key="sk-test",
            anthropic_api_key=None,
            gateway_api_key=None,
            gateway_base_url="https://gateway.example/v1",
            model_preference="openai:gpt-4o-mini",
            request_timeout_seconds=5,
            log_level="INFO",
            supabase_url=None,
            supabase_service_role_key=None,
            audit_table="prompt_feedback",
            feedback_max_chars=2000,
        )
        values.update(overrides)
        return AppConfig(**values)

    return _make


@pytest.fixture
def make_scorer():
    """Return (scorer, scripted_llm) wired to the given canned replies."""

    def _make(*replies, **kwargs):
        llm = ScriptedLLMClient(replies)
        return RubricScorer(llm=llm, **kwargs), llm

    return _make


@pytest.fixture
def recording_sink():
    return RecordingAuditSink()


@pytest.fixture
def failing_sink():
    return FailingAuditSink()
