"""
Provider Function Routes
Browser-callable proxies to the WhatsApp and voice-agent providers
"""
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from orgguard.api.dependencies import get_app_settings
from orgguard.config import Settings
from orgguard.core.exceptions import IntegrationError
from orgguard.core.security import user_id_from_token
from orgguard.database import get_db
from orgguard.integrations.aisensy import AiSensyClient
from orgguard.integrations.bolna import BolnaClient
from orgguard.models import OrganizationIntegration, OrganizationMember
from orgguard.schemas.functions import VoiceAgentList, WorkshopTestRequest

logger = logging.getLogger(__name__)
router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def cors_json(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


def get_http_transport(request: Request) -> Optional[httpx.AsyncBaseTransport]:
    return getattr(request.app.state, "http_transport", None)


@router.options("/send-workshop-confirmation-test")
@router.options("/list-voice-agents")
async def preflight() -> Response:
    return Response(content=None, headers=CORS_HEADERS)


@router.post("/send-workshop-confirmation-test")
async def send_workshop_confirmation_test(
    payload: Optional[WorkshopTestRequest] = None,
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> JSONResponse:
    """Send the workshop confirmation template to the configured test number."""
    api_key = settings.aisensy_free_api_key.get_secret_value() if settings.aisensy_free_api_key else ""
    if not api_key or not settings.aisensy_free_source:
        return cors_json({"error": "Missing AiSensy FREE configuration"}, status_code=500)

    request_data = payload or WorkshopTestRequest()
    destination = request_data.destination or settings.whatsapp_test_destination
    user_name = request_data.user_name or settings.whatsapp_test_user_name

    client = AiSensyClient(
        api_key=api_key,
        source=settings.aisensy_free_source,
        api_url=settings.aisensy_api_url,
        timeout=settings.provider_timeout_seconds,
        transport=transport,
    )
    message = client.build_payload(
        campaign_name=settings.whatsapp_test_campaign,
        destination=destination,
        user_name=user_name,
        template_params=request_data.template_params(user_name),
    )
    logger.info("Sending test WhatsApp message to %s via %s", destination, settings.whatsapp_test_campaign)

    try:
        result = await client.send_campaign(message)
    except IntegrationError as exc:
        return cors_json(
            {"error": str(exc), "status": exc.status_code, "details": exc.details},
            status_code=500,
        )
    except httpx.HTTPError as exc:
        logger.exception("Error sending test message")
        return cors_json({"error": "Internal server error", "details": str(exc)}, status_code=500)

    return cors_json(
        {
            "success": True,
            "message": f"Test message sent to {destination}",
            "api_response": result,
        }
    )


@router.get("/list-voice-agents")
@router.post("/list-voice-agents")
async def list_voice_agents(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
) -> JSONResponse:
    """List the voice agents configured in the caller's organization's Bolna account."""
    auth_header = request.headers.get("Authorization", "")
    token = auth_header.removeprefix("Bearer ").strip()
    user_id = user_id_from_token(token, settings.secret_key.get_secret_value())
    if user_id is None:
        return cors_json({"error": "Unauthorized"}, status_code=401)

    membership = (
        db.query(OrganizationMember.organization_id)
        .filter(OrganizationMember.user_id == user_id)
        .first()
    )
    if membership is None:
        return cors_json({"error": "No organization found"}, status_code=400)

    integration = (
        db.query(OrganizationIntegration)
        .filter(
            OrganizationIntegration.organization_id == membership.organization_id,
            OrganizationIntegration.integration_type == "bolna",
            OrganizationIntegration.is_active.is_(True),
        )
        .first()
    )
    if integration is None:
        return cors_json(
            {
                "error": "bolna_not_configured",
                "message": "Bolna integration not configured. Add it in Settings > Integrations.",
            }
        )

    api_key = (integration.config or {}).get("api_key") or ""
    if not api_key:
        return cors_json({"error": "bolna_not_configured", "message": "Bolna API key is missing."})

    client = BolnaClient(
        api_key=api_key,
        base_url=settings.bolna_api_url,
        timeout=settings.provider_timeout_seconds,
        transport=transport,
    )
    try:
        agents = await client.list_agents()
    except IntegrationError as exc:
        return cors_json(
            {"error": str(exc), "status": exc.status_code, "details": exc.details},
            status_code=500,
        )
    except httpx.HTTPError as exc:
        logger.exception("list-voice-agents error")
        return cors_json({"error": str(exc) or "Internal server error"}, status_code=500)

    return cors_json(VoiceAgentList(agents=agents).model_dump())
