# smartauto/relay.py
import logging
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_db
from .deps import get_http_client, resolve_claims, security
from .errors import InvalidToken
from .schemas import PAYLOAD_TYPES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook-proxy", tags=["relay"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

WEBHOOK_BASE_URL = os.getenv("WEBHOOK_BASE_URL", "https://automation.smartauto.local/webhook").rstrip("/")

WEBHOOK_URLS: Dict[str, str] = {
    "order": os.getenv("WEBHOOK_ORDER_URL", f"{WEBHOOK_BASE_URL}/tally-sales-order"),
    "invoice": os.getenv("WEBHOOK_INVOICE_URL", f"{WEBHOOK_BASE_URL}/generate-invoice"),
    "complaint": os.getenv("WEBHOOK_COMPLAINT_URL", f"{WEBHOOK_BASE_URL}/sales-complaint"),
    "review": os.getenv("WEBHOOK_REVIEW_URL", f"{WEBHOOK_BASE_URL}/submit-your-review"),
}


@dataclass
class Delivery:
    destination: str
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


def _json(status_code: int, content: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


# ---------- forwarding ----------
async def forward(http: httpx.AsyncClient, destination: str, payload: Dict[str, Any]) -> httpx.Response:
    url = WEBHOOK_URLS[destination]
    r = await http.post(url, json=payload, headers={"Content-Type": "application/json"})
    logger.info("[RELAY] %s -> %s %s", destination, url, r.status_code)
    return r


async def send_invoice(http: httpx.AsyncClient, payload: Dict[str, Any]) -> Delivery:
    try:
        r = await forward(http, "invoice", payload)
    except Exception as e:
        # never changes the primary response
        logger.warning("[RELAY] invoice fan-out failed for %s: %r", payload.get("order_id"), e)
        return Delivery("invoice", ok=False, error=str(e) or e.__class__.__name__)
    if r.is_error:
        logger.warning("[RELAY] invoice fan-out for %s answered %s", payload.get("order_id"), r.status_code)
        return Delivery("invoice", ok=False, status_code=r.status_code, error=r.text)
    return Delivery("invoice", ok=True, status_code=r.status_code)


# ---------- endpoints ----------
@router.options("")
@router.options("/{path:path}")
async def relay_preflight(path: str = ""):
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("")
async def relay_webhook(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    if credentials is None or credentials.scheme.lower() != "bearer":
        return _json(401, {"error": "Unauthorized"})
    try:
        await resolve_claims(db, credentials.credentials)
    except InvalidToken:
        return _json(401, {"error": "Unauthorized"})

    try:
        body = await request.json()
    except ValueError:
        return _json(400, {"error": "Invalid JSON body"})
    if not isinstance(body, dict):
        return _json(400, {"error": "Invalid JSON body"})

    type_ = body.get("type")
    payload = body.get("payload")
    if not isinstance(type_, str) or type_ not in WEBHOOK_URLS:
        return _json(400, {"error": "Invalid webhook type"})

    try:
        PAYLOAD_TYPES[type_].model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "payload" for err in e.errors())
        return _json(400, {"error": f"Invalid payload: {fields}"})

    try:
        primary = await forward(http, type_, payload)
        invoice = await send_invoice(http, payload) if type_ == "order" else None
        result = primary.text
    except Exception as e:
        logger.exception("[RELAY] %s forward failed", type_)
        return _json(500, {"error": str(e) or "Unknown error"})

    content: Dict[str, Any] = {"success": True, "result": result}
    if invoice is not None:
        content["invoice"] = {k: v for k, v in asdict(invoice).items() if k != "destination"}
    return _json(200, content)
