# smartauto/relay_client.py
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import RelayError

logger = logging.getLogger(__name__)


class RelayClient:
    """Posts ``{type, payload}`` to the webhook relay on behalf of the signed-in caller."""

    def __init__(self, http: httpx.AsyncClient, url: str, token: Optional[str]):
        self.http = http
        self.url = url
        self.token = token

    async def send(self, type_: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            r = await self.http.post(self.url, json={"type": type_, "payload": payload}, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("[RELAY-CLIENT] %s not delivered: %s", type_, e)
            raise RelayError(f"Relay unreachable: {e}") from e

        try:
            body = r.json()
        except ValueError:
            body = {"error": r.text}
        if not isinstance(body, dict):
            body = {"result": body}

        if r.is_error:
            logger.warning("[RELAY-CLIENT] %s rejected: %s %s", type_, r.status_code, body)
            raise RelayError(body.get("error") or f"Relay returned {r.status_code}")
        return body
