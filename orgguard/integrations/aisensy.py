from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from orgguard.core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class AiSensyClient:
    """WhatsApp template campaigns via the AiSensy campaign API."""

    def __init__(
        self,
        api_key: str,
        source: Optional[str] = None,
        api_url: str = "https://backend.aisensy.com/campaign/t1/api/v2",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ValueError("AiSensy API key is not configured")
        self.api_key = api_key
        self.source = source
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    def build_payload(
        self,
        campaign_name: str,
        destination: str,
        user_name: str,
        template_params: List[str],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "apiKey": self.api_key,
            "campaignName": campaign_name,
            "destination": destination,
            "userName": user_name,
            "templateParams": template_params,
            "buttons": [],
        }
        if self.source:
            payload["source"] = self.source
        return payload

    async def send_campaign(self, payload: Dict[str, Any]) -> str:
        """POST a campaign payload; returns the raw response body."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                self.api_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        body = response.text
        logger.info("AiSensy API response: %s %s", response.status_code, body)
        if not response.is_success:
            raise IntegrationError(
                "WhatsApp API error",
                status_code=response.status_code,
                details=body,
            )
        return body
