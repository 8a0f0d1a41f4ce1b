# notifier.py
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from growth_service import config, store
from growth_service.events import publish_event
from growth_service.gateway import MessagingGateway
from growth_service.messages import NO_PHONE_ERROR, sanitize_phone
from growth_service.metrics import NOTIFICATIONS_APPENDED, GATEWAY_ATTEMPTS

logger = logging.getLogger("growth-service.notifier")


def resolve_vendor_phone(vendor: Dict[str, Any], shops: List[Dict[str, Any]]) -> Optional[str]:
    """Vendor's own phone, else the first shop's phone, else None.

    A phone without any digits counts as missing.
    """
    if sanitize_phone(vendor.get("phone")):
        return vendor["phone"]
    if shops and sanitize_phone(shops[0].get("phone")):
        return shops[0]["phone"]
    return None


async def deliver(gateway: MessagingGateway, phone: str, text: str) -> tuple[bool, Optional[str]]:
    """Send through the gateway within the timeout budget. Returns (sent, error)."""
    timeout = config.GATEWAY_TIMEOUT_SECONDS
    try:
        result = await asyncio.wait_for(gateway.send(sanitize_phone(phone), text), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"[Gateway] Timed out after {timeout}s sending to {phone}")
        return False, f"Messaging gateway timed out after {timeout}s"
    except Exception as e:
        logger.error(f"[Gateway] Send error for {phone}: {e!r}")
        return False, str(e) or e.__class__.__name__

    sent = bool(result.get("success"))
    if sent:
        return True, None
    return False, result.get("error") or "Unknown error"


async def notify_vendor(vendor: Dict[str, Any], message: str, type: str, gateway: MessagingGateway,
                        whatsapp_message: Optional[str] = None, rule: Optional[str] = None,
                        dedup_key: Optional[str] = None, shops: Optional[List[Dict[str, Any]]] = None,
                        revenue: Optional[float] = None, threshold: Optional[float] = None,
                        now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """Append a notification for the vendor, attempt delivery and write one audit row.

    Returns None when the dedup key was already taken, otherwise a dict with the
    stored notification and the delivery outcome.
    """
    vendor_id = vendor["id"]
    notification = await store.append_notification(
        vendor_id, message, type=type, rule=rule, dedup_key=dedup_key, now=now
    )
    if notification is None:
        return None
    NOTIFICATIONS_APPENDED.labels(rule=rule or "manual").inc()

    if shops is None:
        shops = await store.list_shops(vendor_id)
    phone = resolve_vendor_phone(vendor, shops)

    if phone:
        log_message = whatsapp_message or message
        whatsapp_sent, whatsapp_error = await deliver(gateway, phone, log_message)
        GATEWAY_ATTEMPTS.labels(outcome="sent" if whatsapp_sent else "failed").inc()
    else:
        log_message = message
        whatsapp_sent, whatsapp_error = False, NO_PHONE_ERROR
        GATEWAY_ATTEMPTS.labels(outcome="no_phone").inc()

    await store.write_notification_log(
        notification_id=notification["id"],
        vendor_id=vendor_id,
        vendor_phone=phone,
        message=log_message,
        whatsapp_sent=whatsapp_sent,
        whatsapp_error=whatsapp_error,
        revenue=revenue,
        threshold=threshold,
        now=now,
    )

    await publish_event("notification.created", {
        "id": notification["id"],
        "vendor_id": vendor_id,
        "rule": rule,
        "type": type,
        "whatsapp_sent": whatsapp_sent,
    })
    logger.info(f"[Notify] {rule or 'manual'} → vendor {vendor_id} (whatsapp_sent={whatsapp_sent})")

    return {
        "notification": notification,
        "phone": phone,
        "whatsapp_sent": whatsapp_sent,
        "whatsapp_error": whatsapp_error,
    }
