from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from utils.config import AppConfig
from utils.logging import get_logger


logger = get_logger(__name__)


class AuditSink:
    """Write-only destination for finished evaluations."""

    async def record(self, entry: Dict[str, Any]) -> None:
        raise NotImplementedError


class NullAuditSink(AuditSink):
    async def record(self, entry: Dict[str, Any]) -> None:
        return None


class SupabaseAuditSink(AuditSink):
    """Inserts rows through the Supabase REST (PostgREST) interface."""

    def __init__(
        self,
        url: str,
        service_role_key: str,
        table: str = "prompt_feedback",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self.table = table
        self.timeout = timeout
        self._transport = transport
        self._headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    async def record(self, entry: Dict[str, Any]) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.endpoint, json=[entry], headers=self._headers)
            response.raise_for_status()
        logger.info(f"Stored prompt feedback in Supabase table {self.table}")


def build_audit_sink(config: AppConfig) -> AuditSink:
    if config.audit_enabled:
        return SupabaseAuditSink(
            url=config.supabase_url,  # type: ignore[arg-type]
            service_role_key=config.supabase_service_role_key,  # type: ignore[arg-type]
            table=config.audit_table,
        )
    logger.info("Supabase not configured; skipping storage of feedback")
    return NullAuditSink()
