# gateway.py
"""Messaging gateway client.

The gateway only builds a wa.me deep link and records the attempt, so a
successful response means "link prepared", never "message delivered".
Implementations must not raise: every failure becomes {"success": False, "error": ...}.
"""
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from growth_service import config

logger = logging.getLogger("growth-service.gateway")


# characters encodeURIComponent leaves unescaped
URL_SAFE_CHARS = "!*'()"


def build_whatsapp_url(phone_number: str, message: str) -> str:
    return f"https://wa.me/{phone_number}?text={quote(message, safe=URL_SAFE_CHARS)}"


class MessagingGateway:
    async def send(self, phone_number: str, message: str) -> dict:
        raise NotImplementedError


class HttpMessagingGateway(MessagingGateway):
    """Calls this service's own POST /whatsapp/send endpoint."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or config.BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.GATEWAY_TIMEOUT_SECONDS
        self.transport = transport

    async def send(self, phone_number: str, message: str) -> dict:
        url = f"{self.base_url}/whatsapp/send"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(url, json={"phoneNumber": phone_number, "message": message})
            data = r.json()
        except httpx.HTTPError as e:
            logger.warning(f"[Gateway] Request to {url} failed: {e!r}")
            return {"success": False, "error": str(e) or e.__class__.__name__}
        except ValueError as e:
            logger.warning(f"[Gateway] Invalid response from {url} ({r.status_code}): {e}")
            return {"success": False, "error": f"Invalid gateway response ({r.status_code})"}

        if not isinstance(data, dict):
            return {"success": False, "error": f"Invalid gateway response ({r.status_code})"}
        return {
            "success": bool(data.get("success", False)),
            "error": data.get("error"),
            "whatsappUrl": data.get("whatsappUrl"),
        }


def get_gateway() -> MessagingGateway:
    return HttpMessagingGateway()
