# revenue.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from growth_service import config, store
from growth_service.gateway import MessagingGateway
from growth_service.messages import REVENUE_MARKER, revenue_notification, revenue_whatsapp
from growth_service.metrics import PIPELINE_RUNS
from growth_service.notifier import notify_vendor

logger = logging.getLogger("growth-service.revenue")

REVENUE_RULE = "revenue_threshold"


# ------------------------- HELPERS -------------------------
def to_local(value) -> Optional[datetime]:
    """Naive local datetime for month bucketing; accepts datetimes and ISO strings."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def same_month(value, now: datetime) -> bool:
    local = to_local(value)
    return local is not None and local.year == now.year and local.month == now.month


def month_key(value: datetime) -> str:
    return f"{value.year}-{value.month:02d}"


def order_timestamp(order: Dict[str, Any], now: datetime) -> datetime:
    return to_local(order.get("created_at")) or to_local(order.get("date")) or now


def order_amount(order: Dict[str, Any]) -> float:
    """Sum of price x quantity over the order lines (quantity defaults to 1)."""
    if order.get("price") is not None:
        return float(order.get("price") or 0) * float(order.get("quantity") or 1)
    total = 0.0
    for item in order.get("items") or []:
        total += float(item.get("price") or 0) * float(item.get("quantity") or 1)
    return total


def effective_vendor_id(order: Dict[str, Any]) -> str:
    # Without an explicit vendor_id the buyer is credited as the seller.
    if order.get("vendor_id"):
        return str(order["vendor_id"])
    if config.REVENUE_BUYER_FALLBACK and order.get("user_id"):
        return str(order["user_id"])
    return "unknown"


def month_revenue_by_vendor(orders: List[Dict[str, Any]], now: datetime) -> Dict[str, float]:
    revenues: Dict[str, float] = {}
    for order in orders:
        if not same_month(order_timestamp(order, now), now):
            continue
        vendor_id = effective_vendor_id(order)
        revenues[vendor_id] = revenues.get(vendor_id, 0) + order_amount(order)
    return revenues


def notified_this_month(history: List[Dict[str, Any]], now: datetime) -> bool:
    key = f"{REVENUE_RULE}:{month_key(now)}"
    for n in history:
        if n.get("dedup_key") == key:
            return True
        if REVENUE_MARKER in (n.get("message") or "") and same_month(n.get("created_at"), now):
            return True
    return False


# ------------------------- THRESHOLD MONITOR -------------------------
async def check(gateway: MessagingGateway, now: Optional[datetime] = None,
                threshold: Optional[float] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    threshold = config.MINIMUM_REVENUE_THRESHOLD if threshold is None else threshold

    vendors = await store.list_users(role="vendor")
    revenues = month_revenue_by_vendor(await store.list_orders(), now)

    sent: List[Dict[str, Any]] = []
    for vendor in vendors:
        vendor_id = vendor["id"]
        revenue = revenues.get(vendor_id, 0)
        if revenue < threshold:
            continue
        if notified_this_month(await store.list_notifications(vendor_id), now):
            continue

        result = await notify_vendor(
            vendor,
            revenue_notification(threshold, revenue),
            "info",
            gateway,
            whatsapp_message=revenue_whatsapp(threshold, revenue),
            rule=REVENUE_RULE,
            dedup_key=f"{REVENUE_RULE}:{month_key(now)}",
            revenue=revenue,
            threshold=threshold,
            now=now,
        )
        if result is None:
            continue
        sent.append({
            "vendorId": vendor_id,
            "vendorName": vendor.get("name") or vendor.get("email") or "Unknown",
            "revenue": revenue,
            "phoneNumber": result["phone"],
            "whatsappSent": result["whatsapp_sent"],
        })

    PIPELINE_RUNS.labels(pipeline="revenue", status="ok").inc()
    logger.info(f"[Revenue] {len(sent)} vendors reached the threshold of {threshold}")
    return {"threshold": threshold, "notificationsSent": len(sent), "vendors": sent}


# ------------------------- MONTHLY SERIES -------------------------
def monthly_revenue(orders: List[Dict[str, Any]], months: int, now: datetime,
                    vendor_id: Optional[str] = None) -> Dict[str, Any]:
    buckets: Dict[str, float] = {}
    for i in range(months - 1, -1, -1):
        index = now.year * 12 + (now.month - 1) - i
        buckets[f"{index // 12}-{index % 12 + 1:02d}"] = 0

    for order in orders:
        if vendor_id and effective_vendor_id(order) != vendor_id:
            continue
        key = month_key(order_timestamp(order, now))
        if key in buckets:
            buckets[key] += order_amount(order)

    data = []
    for key, revenue in buckets.items():
        year, month = (int(part) for part in key.split("-"))
        data.append({
            "month": datetime(year, month, 1).strftime("%b %Y"),
            "monthKey": key,
            "revenue": round(revenue),
            "year": year,
            "monthNumber": month,
        })
    return {"data": data, "totalRevenue": sum(d["revenue"] for d in data)}
