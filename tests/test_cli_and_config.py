"""Tests for the command line entry point, configuration and serialization."""

import io
import json

import pytest

import main
from models import EvaluationResult
from tools.export import result_to_dict
from tools.llm_client import UpstreamBillingRequired, UpstreamRateLimited, UpstreamUnavailable
from tools.scenarios import SCENARIOS, ScriptedLLMClient, run_all
from utils.config import DEFAULT_GATEWAY_URL, load_config


@pytest.fixture
def scripted_cli(monkeypatch):
    def _install(*replies):
        llm = ScriptedLLMClient(replies)
        monkeypatch.setattr(main, "LLMClient", lambda cfg: llm)
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        # Log records go to stdout; keep them out of the captured output.
        monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
        return llm

    return _install


class TestCli:
    @pytest.mark.asyncio
    async def test_json_output(self, scripted_cli, capsys):
        scripted_cli(SCENARIOS["out_of_range"])

        code = await main.run_cli(["Please analyze the decks", "--reference", "...", "--json"])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["score"] == 20
        assert payload["context_score"] == 1

    @pytest.mark.asyncio
    async def test_summary_output(self, scripted_cli, capsys):
        llm = scripted_cli(SCENARIOS["clean_json"])

        code = await main.run_cli(["Summarise the decks"])

        assert code == 0
        assert llm.closed
        out = capsys.readouterr().out
        assert "Score: 14/20" in out
        assert "Enhanced prompt:" in out

    @pytest.mark.asyncio
    async def test_reads_prompt_and_reference_files(self, scripted_cli, tmp_path):
        llm = scripted_cli(SCENARIOS["clean_json"])
        prompt_file = tmp_path / "prompt.txt"
        prompt_file.write_text("Report the oxygen levels\n", encoding="utf-8")
        ref_file = tmp_path / "ref.txt"
        ref_file.write_text("Oxygen at 21%", encoding="utf-8")

        code = await main.run_cli(["--prompt-file", str(prompt_file), "--reference-file", str(ref_file)])

        assert code == 0
        _, user = llm.calls[0]
        assert "Oxygen at 21%" in user
        assert user.endswith("Report the oxygen levels")

    @pytest.mark.asyncio
    async def test_empty_prompt_exits_2(self, scripted_cli, monkeypatch):
        llm = scripted_cli(SCENARIOS["clean_json"])
        monkeypatch.setattr("sys.stdin", io.StringIO(""))

        assert await main.run_cli([]) == 2
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_prompt_from_stdin(self, scripted_cli, monkeypatch):
        llm = scripted_cli(SCENARIOS["clean_json"])
        monkeypatch.setattr("sys.stdin", io.StringIO("Plot a course to Mars\n"))

        assert await main.run_cli([]) == 0
        assert llm.calls[0][1].endswith("Plot a course to Mars")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,code",
        [
            (UpstreamRateLimited("429"), main.EXIT_RATE_LIMITED),
            (UpstreamBillingRequired("402"), main.EXIT_BILLING_REQUIRED),
            (UpstreamUnavailable("down"), main.EXIT_UPSTREAM_UNAVAILABLE),
        ],
    )
    async def test_upstream_errors_have_distinct_exit_codes(self, scripted_cli, capsys, error, code):
        llm = scripted_cli(error)

        assert await main.run_cli(["Check the fuel"]) == code
        assert capsys.readouterr().err
        assert llm.closed


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in (
            "MODEL_PREFERENCE", "REQUEST_TIMEOUT_SECONDS", "LOG_LEVEL", "AUDIT_TABLE",
            "FEEDBACK_MAX_CHARS", "LLM_GATEWAY_URL", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY",
        ):
            monkeypatch.delenv(name, raising=False)

        cfg = load_config()

        assert cfg.model_preference == "openai:gpt-4o-mini"
        assert cfg.request_timeout_seconds == 30
        assert cfg.audit_table == "prompt_feedback"
        assert cfg.feedback_max_chars == 2000
        assert cfg.gateway_base_url == DEFAULT_GATEWAY_URL
        assert not cfg.audit_enabled

    def test_overrides_and_aliases(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setenv("OPENAI_KEY", "sk-alias")
        monkeypatch.delenv("LLM_GATEWAY_API_KEY", raising=False)
        monkeypatch.setenv("LOVABLE_API_KEY", "gw-alias")
        monkeypatch.setenv("MODEL_PREFERENCE", "gateway:google/gemini-2.5-flash")
        monkeypatch.setenv("FEEDBACK_MAX_CHARS", "500")
        monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "key")

        cfg = load_config()

        assert cfg.openai_api_key == "sk-alias"
        assert cfg.gateway_api_key == "gw-alias"
        assert cfg.model_preference == "gateway:google/gemini-2.5-flash"
        assert cfg.feedback_max_chars == 500
        assert cfg.audit_enabled


class TestExport:
    def test_integral_scores_render_as_ints(self):
        result = EvaluationResult(14.0, 4.0, 3.5, 3.0, 4.0, "fb", "better")

        payload = result_to_dict(result)

        assert payload["score"] == 14 and isinstance(payload["score"], int)
        assert payload["context_score"] == 3.5
        assert payload["enhanced_prompt"] == "better"


@pytest.mark.asyncio
async def test_scripted_scenarios_all_produce_valid_payloads():
    results = await run_all()

    assert set(results) == set(SCENARIOS)
    for payload in results.values():
        assert 0 <= payload["score"] <= 20
        for name in ("goal_score", "context_score", "source_score", "expectation_score"):
            assert 1 <= payload[name] <= 5
    assert results["fenced_json"] == results["clean_json"] == results["embedded_json"]
    assert results["no_numbers"]["score"] == 0
