from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from orgguard.core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class BolnaClient:
    """Voice AI agents via the Bolna API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.bolna.ai",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ValueError("Bolna API key is not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def list_agents(self) -> List[Dict[str, Any]]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(f"{self.base_url}/v2/agent/all", headers=headers)
        if not response.is_success:
            logger.warning("Bolna agents fetch failed: %s %s", response.status_code, response.text)
            raise IntegrationError(
                "Failed to fetch agents from Bolna",
                status_code=response.status_code,
                details=response.text,
            )
        data = response.json() if response.content else []
        return normalize_agents(data)


def normalize_agents(data: Any) -> List[Dict[str, Any]]:
    if not isinstance(data, list):
        return []
    return [
        {
            "id": agent.get("id") or agent.get("agent_id"),
            "name": agent.get("agent_name") or agent.get("name") or "Unnamed Agent",
        }
        for agent in data
        if isinstance(agent, dict)
    ]
