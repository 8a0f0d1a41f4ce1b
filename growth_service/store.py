# store.py
"""Storage helpers shared by the HTTP handlers and the notification pipeline.

Every helper returns plain dicts so callers never hold on to database records.
Notifications are written with a single insert per notification; the unique
(vendor_id, dedup_key) constraint makes a rule notification appear at most once
per vendor even when two pipeline runs race.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from growth_service.catalog import DEFAULT_PRODUCTS
from growth_service.database import database
from growth_service.models import (
    users, shops, products, orders, weekly_plans, notifications, notification_logs, whatsapp_logs,
)

logger = logging.getLogger("growth-service.store")


def new_id() -> str:
    return str(uuid.uuid4())


def _rows(records) -> List[Dict[str, Any]]:
    return [dict(r) for r in records]


# ------------------------- USERS -------------------------
async def create_user(email: str, password_hash: str, role: str, name: str = "",
                      business_type: Optional[str] = None, phone: Optional[str] = None,
                      now: Optional[datetime] = None) -> Dict[str, Any]:
    user = {
        "id": new_id(),
        "email": email.lower(),
        "password_hash": password_hash,
        "role": role.lower(),
        "name": name or "",
        "business_type": business_type,
        "phone": phone,
        "cart": [] if role == "customer" else None,
        "businesses": [] if role == "investor" else None,
        "created_at": now or datetime.now(),
    }
    await database.execute(users.insert().values(**user))
    return user


async def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    row = await database.fetch_one(users.select().where(users.c.id == user_id))
    return dict(row) if row else None


async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    row = await database.fetch_one(users.select().where(users.c.email == email.lower()))
    return dict(row) if row else None


async def list_users(role: Optional[str] = None) -> List[Dict[str, Any]]:
    query = users.select()
    if role:
        query = query.where(users.c.role == role)
    return _rows(await database.fetch_all(query.order_by(users.c.created_at.asc())))


async def update_cart(user_id: str, cart: List[Dict[str, Any]]) -> None:
    await database.execute(users.update().where(users.c.id == user_id).values(cart=cart))


async def touch_last_plan(user_id: str, now: datetime) -> None:
    await database.execute(users.update().where(users.c.id == user_id).values(last_plan_submitted=now))


async def add_business(user_id: str, business: Dict[str, Any], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Append a business to an investor's portfolio and return the whole list."""
    async with database.transaction():
        row = await database.fetch_one(users.select().where(users.c.id == user_id))
        businesses = list(dict(row)["businesses"] or []) if row else []
        businesses.append({**business, "id": new_id(), "created_at": (now or datetime.now()).isoformat()})
        await database.execute(users.update().where(users.c.id == user_id).values(businesses=businesses))
    return businesses


# ------------------------- SHOPS -------------------------
async def add_shop(vendor_id: str, shop: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    row = {
        "id": new_id(),
        "vendor_id": vendor_id,
        "name": shop.get("name") or "",
        "business_type": shop.get("business_type"),
        "address": shop.get("address"),
        "phone": shop.get("phone"),
        "created_at": now or datetime.now(),
    }
    await database.execute(shops.insert().values(**row))
    return row


async def list_shops(vendor_id: str) -> List[Dict[str, Any]]:
    query = shops.select().where(shops.c.vendor_id == vendor_id).order_by(shops.c.seq.asc())
    return _rows(await database.fetch_all(query))


async def list_all_shops() -> List[Dict[str, Any]]:
    return _rows(await database.fetch_all(shops.select().order_by(shops.c.seq.asc())))


# ------------------------- PRODUCTS -------------------------
async def create_product(product: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    row = {
        "id": new_id(),
        "name": product["name"],
        "description": product.get("description"),
        "price": product.get("price") or 0,
        "category": product.get("category"),
        "image": product.get("image"),
        "stock": product.get("stock") or 0,
        "rating": product.get("rating") or 0,
        "reviews": product.get("reviews") or 0,
        "features": product.get("features") or [],
        "created_at": now or datetime.now(),
    }
    await database.execute(products.insert().values(**row))
    return row


async def list_products(seed_defaults: bool = True) -> List[Dict[str, Any]]:
    query = products.select().order_by(products.c.seq.asc())
    rows = _rows(await database.fetch_all(query))
    if rows or not seed_defaults:
        return rows

    logger.info("[Products] Catalog empty, seeding default products")
    for product in DEFAULT_PRODUCTS:
        await create_product(product)
    return _rows(await database.fetch_all(query))


async def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    row = await database.fetch_one(products.select().where(products.c.id == product_id))
    return dict(row) if row else None


async def adjust_stock(product_id: str, delta: int) -> bool:
    """Atomically add delta to a product's stock. Returns False for an unknown product."""
    if not await get_product(product_id):
        return False
    await database.execute(
        products.update().where(products.c.id == product_id).values(stock=products.c.stock + delta)
    )
    return True


# ------------------------- ORDERS -------------------------
async def create_order(order: Dict[str, Any]) -> Dict[str, Any]:
    row = {"id": new_id(), "status": "confirmed", "created_at": datetime.now(), **order}
    await database.execute(orders.insert().values(**row))
    return row


async def list_orders() -> List[Dict[str, Any]]:
    return _rows(await database.fetch_all(orders.select().order_by(orders.c.created_at.asc())))


async def count_orders_for_shop(shop_id: str) -> int:
    query = select(func.count()).select_from(orders).where(orders.c.shop_id == shop_id)
    return int(await database.fetch_val(query) or 0)


# ------------------------- PLANS -------------------------
async def save_plan(user_id: Optional[str], business_type: str, payload: Dict[str, Any],
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    row = {
        "id": new_id(),
        "user_id": user_id,
        "business_type": business_type,
        "payload": payload,
        "created_at": now or datetime.now(),
    }
    await database.execute(weekly_plans.insert().values(**row))
    return row


async def list_plans(business_type: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    query = weekly_plans.select()
    if business_type:
        query = query.where(weekly_plans.c.business_type == business_type)
    query = query.order_by(weekly_plans.c.created_at.desc())
    if limit:
        query = query.limit(limit)
    return _rows(await database.fetch_all(query))


# ------------------------- NOTIFICATIONS -------------------------
async def _has_dedup_key(vendor_id: str, dedup_key: str) -> bool:
    query = select(func.count()).select_from(notifications).where(
        notifications.c.vendor_id == vendor_id, notifications.c.dedup_key == dedup_key
    )
    return bool(await database.fetch_val(query))


async def append_notification(vendor_id: str, message: str, type: str = "info",
                              rule: Optional[str] = None, dedup_key: Optional[str] = None,
                              now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """Append one notification for a vendor.

    Returns the stored notification, or None when another writer already stored
    a notification with the same dedup key.
    """
    row = {
        "id": new_id(),
        "vendor_id": vendor_id,
        "message": message,
        "type": type,
        "rule": rule,
        "dedup_key": dedup_key,
        "read": False,
        "created_at": now or datetime.now(),
    }
    try:
        await database.execute(notifications.insert().values(**row))
    except Exception:
        if dedup_key is not None and await _has_dedup_key(vendor_id, dedup_key):
            logger.info(f"[Notifications] {dedup_key} already stored for vendor {vendor_id}")
            return None
        raise
    return row


async def list_notifications(vendor_id: str) -> List[Dict[str, Any]]:
    query = notifications.select().where(notifications.c.vendor_id == vendor_id).order_by(notifications.c.seq.asc())
    return _rows(await database.fetch_all(query))


async def mark_notification_read(vendor_id: str, notification_id: str) -> bool:
    existing = await database.fetch_one(
        notifications.select().where(
            notifications.c.vendor_id == vendor_id, notifications.c.id == notification_id
        )
    )
    if not existing:
        return False
    await database.execute(
        notifications.update().where(notifications.c.id == notification_id).values(read=True)
    )
    return True


# ------------------------- AUDIT LOGS -------------------------
async def write_notification_log(notification_id: str, vendor_id: str, vendor_phone: Optional[str],
                                 message: str, whatsapp_sent: bool, whatsapp_error: Optional[str],
                                 revenue: Optional[float] = None, threshold: Optional[float] = None,
                                 now: Optional[datetime] = None) -> Dict[str, Any]:
    row = {
        "id": new_id(),
        "notification_id": notification_id,
        "vendor_id": vendor_id,
        "vendor_phone": vendor_phone,
        "message": message,
        "whatsapp_sent": whatsapp_sent,
        "whatsapp_error": whatsapp_error,
        "revenue": revenue,
        "threshold": threshold,
        "created_at": now or datetime.now(),
    }
    await database.execute(notification_logs.insert().values(**row))
    return row


async def list_notification_logs(vendor_id: Optional[str] = None) -> List[Dict[str, Any]]:
    query = notification_logs.select()
    if vendor_id:
        query = query.where(notification_logs.c.vendor_id == vendor_id)
    return _rows(await database.fetch_all(query.order_by(notification_logs.c.created_at.asc())))


async def write_whatsapp_log(phone_number: str, message: str, status: str,
                             whatsapp_url: Optional[str] = None, error: Optional[str] = None) -> str:
    log_id = new_id()
    await database.execute(
        whatsapp_logs.insert().values(
            id=log_id,
            phone_number=phone_number,
            message=message,
            status=status,
            error=error,
            whatsapp_url=whatsapp_url,
            created_at=datetime.now(),
        )
    )
    return log_id
