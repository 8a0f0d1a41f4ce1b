# scanner.py
"""Vendor performance scanner.

Three independent rules per vendor, each firing at most once per vendor ever:
  no_plan     - the vendor never saved a growth plan
  no_shop     - the vendor has no registered shop
  no_activity - the vendor has shops but none of them received an order
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from growth_service import config, store
from growth_service.gateway import MessagingGateway
from growth_service.messages import RULE_MESSAGES, admin_whatsapp
from growth_service.metrics import PIPELINE_RUNS
from growth_service.notifier import notify_vendor

logger = logging.getLogger("growth-service.scanner")


class Activity(str, Enum):
    has_activity = "has_activity"
    no_activity = "no_activity"
    unknown = "unknown"


async def shop_activity(shops: List[Dict[str, Any]]) -> Activity:
    """Stop at the first shop with an order; a failed count makes the answer unknown."""
    try:
        for shop in shops:
            if await store.count_orders_for_shop(shop["id"]) > 0:
                return Activity.has_activity
    except Exception as e:
        logger.error(f"[Scanner] Error checking customer activity: {e!r}")
        return Activity.unknown
    return Activity.no_activity


def already_notified(history: List[Dict[str, Any]], rule: str) -> bool:
    marker = RULE_MESSAGES[rule][0]
    return any(
        n.get("dedup_key") == rule or marker in (n.get("message") or "")
        for n in history
    )


async def candidate_rules(plans: List[Dict[str, Any]], shops: List[Dict[str, Any]]) -> List[str]:
    rules = []
    if not plans:
        rules.append("no_plan")

    if not shops:
        rules.append("no_shop")
    else:
        activity = await shop_activity(shops)
        if activity is Activity.no_activity:
            rules.append("no_activity")
        elif activity is Activity.unknown and config.ACTIVITY_UNKNOWN_POLICY == "notify":
            rules.append("no_activity")
    return rules


async def scan(gateway: MessagingGateway, now: Optional[datetime] = None) -> Dict[str, int]:
    vendors = await store.list_users(role="vendor")

    plans_by_owner: Dict[str, List[Dict[str, Any]]] = {}
    for plan in await store.list_plans():
        if plan.get("user_id"):
            plans_by_owner.setdefault(str(plan["user_id"]), []).append(plan)

    auto_sent = 0
    for vendor in vendors:
        vendor_id = vendor["id"]
        shops = await store.list_shops(vendor_id)
        rules = await candidate_rules(plans_by_owner.get(vendor_id, []), shops)
        if not rules:
            continue

        history = await store.list_notifications(vendor_id)
        for rule in rules:
            if already_notified(history, rule):
                continue
            message = RULE_MESSAGES[rule][1]
            result = await notify_vendor(
                vendor,
                message,
                "warning",
                gateway,
                whatsapp_message=admin_whatsapp(message, "warning"),
                rule=rule,
                dedup_key=rule,
                shops=shops,
                now=now,
            )
            if result is not None:
                auto_sent += 1

    PIPELINE_RUNS.labels(pipeline="scanner", status="ok").inc()
    logger.info(f"[Scanner] Auto-sent {auto_sent} notifications to {len(vendors)} vendors")
    return {"autoSent": auto_sent}
