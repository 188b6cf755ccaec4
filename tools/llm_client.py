from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import asyncio

from utils.config import AppConfig, load_config
from utils.logging import get_logger


logger = get_logger(__name__)


@dataclass
class ChatMessage:
    role: str
    content: str


class LLMError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnavailable(LLMError):
    pass


class UpstreamRateLimited(LLMError):
    pass


class UpstreamBillingRequired(LLMError):
    pass


def _status_of(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    return status if isinstance(status, int) else None


BILLING_ERROR_CODES = frozenset({"insufficient_quota", "billing_hard_limit_reached"})


def _error_code_of(exc: BaseException) -> Optional[str]:
    code = getattr(exc, "code", None)
    body = getattr(exc, "body", None)
    if code is None and isinstance(body, dict):
        code = body.get("code")
        nested = body.get("error")
        if code is None and isinstance(nested, dict):
            code = nested.get("code")
    return code if isinstance(code, str) else None


def classify_upstream_error(exc: BaseException) -> LLMError:
    """Map a vendor SDK or transport exception onto the upstream error types.

    OpenAI reports an exhausted quota as a 429 carrying ``insufficient_quota``;
    that is a billing problem, not a rate limit.
    """
    if isinstance(exc, LLMError):
        return exc
    status = _status_of(exc)
    if _error_code_of(exc) in BILLING_ERROR_CODES:
        return UpstreamBillingRequired(str(exc) or "quota exhausted", status_code=status)
    if status == 429:
        return UpstreamRateLimited(str(exc) or "rate limited", status_code=status)
    if status == 402:
        return UpstreamBillingRequired(str(exc) or "payment required", status_code=status)
    if isinstance(exc, asyncio.TimeoutError):
        return UpstreamUnavailable("request timed out")
    return UpstreamUnavailable(str(exc) or exc.__class__.__name__, status_code=status)


class LLMClient:
    """Chat completion client for openai, anthropic and OpenAI-compatible gateways.

    ``MODEL_PREFERENCE`` selects the backend as ``provider:model``. Requests are
    made exactly once; SDK retries are disabled.
    """

    PROVIDERS = ("openai", "anthropic", "gateway")

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or load_config()
        self._provider, self._model = self._parse_model_preference(self.config.model_preference)
        self._ready: bool = True
        self._unavailable_reason: Optional[str] = None
        self._sdk_client = None
        try:
            if self._provider not in self.PROVIDERS:
                self._ready = False
                self._unavailable_reason = f"unsupported_provider:{self._provider}"
            elif self._provider in ("openai", "gateway"):
                if not self._openai_api_key():
                    self._ready = False
                    self._unavailable_reason = f"missing_{self._provider}_api_key"
                else:
                    try:
                        import openai  # noqa: F401
                    except ImportError:
                        self._ready = False
                        self._unavailable_reason = "missing_openai_package"
            elif self._provider == "anthropic":
                if not self.config.anthropic_api_key:
                    self._ready = False
                    self._unavailable_reason = "missing_anthropic_api_key"
                else:
                    try:
                        from anthropic import AsyncAnthropic  # noqa: F401
                    except ImportError:
                        self._ready = False
                        self._unavailable_reason = "missing_anthropic_package"
        except Exception as e:
            self._ready = False
            self._unavailable_reason = f"preflight_error:{e}"
        status = "ready" if self._ready else f"unavailable:{self._unavailable_reason}"
        logger.info(f"LLM preflight provider={self._provider} model={self._model} status={status}")

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    @property
    def ready(self) -> bool:
        return self._ready

    @staticmethod
    def _parse_model_preference(pref: str) -> tuple[str, str]:
        if ":" in pref:
            provider, model = pref.split(":", 1)
        else:
            provider, model = "openai", pref
        return provider.strip().lower(), model.strip()

    def _openai_api_key(self) -> Optional[str]:
        if self._provider == "gateway":
            return self.config.gateway_api_key
        return self.config.openai_api_key

    def _openai_client(self):
        # One SDK client (and its connection pool) per LLMClient.
        if self._sdk_client is None:
            import openai
            kwargs = {"api_key": self._openai_api_key(), "max_retries": 0}
            if self._provider == "gateway":
                kwargs["base_url"] = self.config.gateway_base_url
            self._sdk_client = openai.AsyncOpenAI(**kwargs)
        return self._sdk_client

    def _anthropic_client(self):
        if self._sdk_client is None:
            from anthropic import AsyncAnthropic
            self._sdk_client = AsyncAnthropic(api_key=self.config.anthropic_api_key, max_retries=0)
        return self._sdk_client

    async def aclose(self) -> None:
        """Release the underlying HTTP connection pool, if one was opened."""
        client, self._sdk_client = self._sdk_client, None
        if client is not None:
            await client.close()
            logger.debug(f"LLM client closed provider={self._provider}")

    async def acomplete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        temperature: float = 0.2,
        max_tokens: int = 1500,
    ) -> str:
        if not self._ready:
            reason = self._unavailable_reason or "provider_unavailable"
            logger.error(f"LLM provider unavailable: {reason}")
            raise UpstreamUnavailable(reason)
        timeout = self.config.request_timeout_seconds
        if self._provider == "anthropic":
            return await self._anthropic_complete(system_prompt, messages, temperature, max_tokens, timeout)
        return await self._openai_complete(system_prompt, messages, temperature, max_tokens, timeout)

    async def _openai_complete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        temperature: float,
        max_tokens: int,
        timeout: int,
    ) -> str:
        try:
            client = self._openai_client()
            full_messages = ([{"role": "system", "content": system_prompt}] +
                             [{"role": m.role, "content": m.content} for m in messages])
            resp = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self._model,
                    messages=full_messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=timeout,
            )
            if not resp.choices:
                return ""
            return resp.choices[0].message.content or ""
        except Exception as e:
            err = classify_upstream_error(e)
            logger.error(f"AI gateway error: {type(err).__name__} status={err.status_code} {e}")
            raise err from e

    async def _anthropic_complete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        temperature: float,
        max_tokens: int,
        timeout: int,
    ) -> str:
        try:
            client = self._anthropic_client()
            user_content = [{"type": "text", "text": m.content} for m in messages]
            resp = await asyncio.wait_for(
                client.messages.create(
                    model=self._model,
                    system=system_prompt,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    messages=[{"role": "user", "content": user_content}],
                ),
                timeout=timeout,
            )
            return "".join(
                getattr(block, "text", "") for block in (resp.content or [])
            )
        except Exception as e:
            err = classify_upstream_error(e)
            logger.error(f"AI gateway error: {type(err).__name__} status={err.status_code} {e}")
            raise err from e
