# main.py
import asyncio
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Response, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from growth_service import config, revenue, scanner, store
from growth_service.auth import admin_required, hash_password
from growth_service.catalog import product_view
from growth_service.database import database, metadata, engine
from growth_service.events import publish_event
from growth_service.gateway import MessagingGateway, build_whatsapp_url, get_gateway
from growth_service.messages import admin_whatsapp
from growth_service.metrics import PIPELINE_RUNS
from growth_service.models import Role
from growth_service.notifier import notify_vendor
from growth_service.scheduler import run_periodic_checks
from growth_service.schemas import (
    SignupRequest, UserOut, ShopCreate, VendorNotificationCreate, NotificationRead,
    AdminNotification, ProductCreate, StockUpdate, BusinessCreate, CartUpdate, CheckoutRequest,
    PlanCreate, WhatsAppSendRequest,
)

# ------------------------- LOGGING -------------------------
logger = logging.getLogger("growth-service")
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    fmt = "[%(asctime)s] [%(levelname)s] %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)

app = FastAPI(title="Growth Assistant Service", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

_monitor_task: asyncio.Task | None = None


# ------------------------- HELPERS -------------------------
def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return UserOut(**user).model_dump()


def shop_view(shop: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in shop.items() if k != "seq"}


def normalize_business_type(value: str, default: str = "other") -> str:
    normalized = (value or "").lower()
    if "bakery" in normalized or "baker" in normalized:
        return "bakery"
    if "repair" in normalized or "mobile" in normalized or "laptop" in normalized:
        return "repair shop"
    if "cool" in normalized or "drink" in normalized or "beverage" in normalized:
        return "cool drinks"
    return default


async def get_vendor_or_400(vendor_id: str) -> Dict[str, Any]:
    vendor = await store.get_user(vendor_id)
    if not vendor or vendor["role"] != Role.vendor.value:
        raise HTTPException(status_code=400, detail="Invalid vendor")
    return vendor


# ------------------------- STARTUP / SHUTDOWN -------------------------
@app.on_event("startup")
async def startup():
    logger.info("Connecting database...")
    await database.connect()
    metadata.create_all(engine)

    global _monitor_task
    if config.MONITOR_INTERVAL_SECONDS > 0 and (_monitor_task is None or _monitor_task.done()):
        _monitor_task = asyncio.create_task(
            run_periodic_checks(get_gateway(), config.MONITOR_INTERVAL_SECONDS)
        )
        logger.info("Periodic vendor/revenue monitor started.")
    logger.info("Startup complete.")


@app.on_event("shutdown")
async def shutdown():
    if _monitor_task and not _monitor_task.done():
        _monitor_task.cancel()
        try:
            await _monitor_task
        except asyncio.CancelledError:
            logger.info("Periodic monitor cancelled.")
    logger.info("Disconnecting database...")
    await database.disconnect()


# ------------------------- MIDDLEWARE -------------------------
@app.middleware("http")
async def add_trace_to_request(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-Id") or store.new_id()
    request.state.trace_id = trace_id
    response = await call_next(request)
    response.headers["X-Trace-Id"] = trace_id
    return response


# ------------------------- HEALTH / METRICS -------------------------
@app.get("/health")
async def health():
    return {"status": "ok", "service": "growth-service"}


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# ------------------------- ACCOUNTS -------------------------
@app.post("/auth/signup")
async def signup(req: SignupRequest):
    if await store.get_user_by_email(req.email):
        raise HTTPException(status_code=400, detail="User already exists with this email")

    user = await store.create_user(
        email=req.email,
        password_hash=hash_password(req.password),
        role=req.role.value,
        name=req.name,
        business_type=req.business_type,
        phone=req.phone,
    )
    await publish_event("user.created", {"id": user["id"], "email": user["email"], "role": user["role"]})
    logger.info(f"[Auth] Created new {user['role']}: {user['email']}")
    return {"success": True, "message": "Account created successfully", "user": public_user(user)}


@app.get("/admin/users")
async def list_users(user=Depends(admin_required)):
    shops_by_vendor: Dict[str, list] = {}
    for shop in await store.list_all_shops():
        shops_by_vendor.setdefault(shop["vendor_id"], []).append(shop_view(shop))
    users = await store.list_users()
    return {"users": [{**public_user(u), "shops": shops_by_vendor.get(u["id"], [])} for u in users]}


# ------------------------- SHOPS -------------------------
@app.get("/vendor/shops")
async def get_shops(user_id: Optional[str] = None):
    if user_id:
        return {"shops": [shop_view(s) for s in await store.list_shops(user_id)]}

    vendors = {v["id"]: v for v in await store.list_users(role=Role.vendor.value)}
    all_shops = []
    for shop in await store.list_all_shops():
        vendor = vendors.get(shop["vendor_id"])
        if not vendor:
            continue
        all_shops.append({
            **shop_view(shop),
            "name": shop["name"] or shop["business_type"] or "Shop",
            "business_type": shop["business_type"] or "other",
            "vendor_name": vendor["name"] or vendor["email"] or "Unknown Vendor",
        })
    return {"shops": all_shops}


@app.post("/vendor/shops")
async def add_shop(body: ShopCreate):
    await get_vendor_or_400(body.user_id)
    shop = await store.add_shop(body.user_id, body.shop.model_dump())
    await publish_event("shop.created", {"id": shop["id"], "vendor_id": body.user_id, "name": shop["name"]})
    return {"success": True, "shops": [shop_view(s) for s in await store.list_shops(body.user_id)]}


# ------------------------- VENDOR NOTIFICATIONS -------------------------
@app.get("/vendor/notifications")
async def get_notifications(vendor_id: str = Query(...)):
    await get_vendor_or_400(vendor_id)
    return {"notifications": await store.list_notifications(vendor_id)}


@app.post("/vendor/notifications")
async def add_notification(body: VendorNotificationCreate):
    await get_vendor_or_400(body.vendor_id)
    await store.append_notification(body.vendor_id, body.notification.message, type=body.notification.type)
    return {"success": True, "notifications": await store.list_notifications(body.vendor_id)}


@app.put("/vendor/notifications")
async def read_notification(body: NotificationRead):
    await get_vendor_or_400(body.vendor_id)
    if not await store.mark_notification_read(body.vendor_id, body.notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}


@app.post("/admin/send-notification")
async def send_notification(body: AdminNotification, user=Depends(admin_required),
                            gateway: MessagingGateway = Depends(get_gateway)):
    vendor = await get_vendor_or_400(body.vendor_id)
    result = await notify_vendor(
        vendor,
        body.message,
        body.type,
        gateway,
        whatsapp_message=admin_whatsapp(body.message, body.type),
    )
    return {
        "success": True,
        "notificationId": result["notification"]["id"],
        "whatsappSent": result["whatsapp_sent"],
        "whatsappError": result["whatsapp_error"],
    }


@app.get("/admin/notification-logs")
async def notification_logs(vendor_id: Optional[str] = None, user=Depends(admin_required)):
    return {"logs": await store.list_notification_logs(vendor_id)}


# ------------------------- PRODUCTS -------------------------
@app.get("/products")
async def get_products():
    return [product_view(p) for p in await store.list_products()]


@app.post("/products")
async def create_product(body: ProductCreate):
    product = await store.create_product(body.model_dump())
    await publish_event("product.created", {"id": product["id"], "name": product["name"], "stock": product["stock"]})
    return {"success": True, "productId": product["id"]}


@app.post("/products/update-stock")
async def update_stock(body: StockUpdate):
    if not body.product_id or body.quantity is None:
        raise HTTPException(status_code=400, detail="Product ID and quantity are required")
    if not await store.adjust_stock(body.product_id, -body.quantity):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True}


# ------------------------- INVESTORS -------------------------
async def get_investor_or_400(user_id: Optional[str]) -> Dict[str, Any]:
    user = await store.get_user(user_id) if user_id else None
    if not user or user["role"] != Role.investor.value:
        raise HTTPException(status_code=400, detail="Invalid user")
    return user


@app.get("/investor/businesses")
async def get_businesses(user_id: Optional[str] = None):
    if not user_id:
        raise HTTPException(status_code=400, detail="User ID required")
    user = await get_investor_or_400(user_id)
    return {"businesses": user["businesses"] or []}


@app.post("/investor/businesses")
async def add_business(body: BusinessCreate):
    if not body.user_id or not body.business:
        raise HTTPException(status_code=400, detail="User ID and business are required")
    await get_investor_or_400(body.user_id)
    businesses = await store.add_business(body.user_id, body.business)
    return {"success": True, "businesses": businesses}


# ------------------------- CART / CHECKOUT / ORDERS -------------------------
@app.get("/cart")
async def get_cart(user_id: str = Query(...)):
    user = await store.get_user(user_id)
    if not user or user["role"] != Role.customer.value:
        raise HTTPException(status_code=400, detail="Invalid user")
    return {"cart": user["cart"] or []}


@app.post("/cart")
async def update_cart(body: CartUpdate):
    user = await store.get_user(body.user_id)
    if not user or user["role"] != Role.customer.value:
        raise HTTPException(status_code=400, detail="Invalid user")
    await store.update_cart(body.user_id, [item.model_dump() for item in body.cart])
    return {"success": True}


@app.post("/checkout")
async def checkout(body: CheckoutRequest, request: Request):
    if not body.cart:
        raise HTTPException(status_code=400, detail="User ID and cart items are required")

    user = await store.get_user(body.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    items = [item.model_dump() for item in body.cart]
    total = sum(item["price"] * item["quantity"] for item in items)
    order = await store.create_order({
        "order_code": body.order_code or f"ORD-{int(time.time() * 1000)}",
        "user_id": user["id"],
        "vendor_id": body.vendor_id,
        "shop_id": body.shop_id,
        "user_email": user["email"],
        "user_name": user["name"],
        "items": items,
        "total": total,
    })
    await store.update_cart(user["id"], [])
    for item in items:
        # lines for products outside the catalog carry no stock
        await store.adjust_stock(item["product_id"], -item["quantity"])

    await publish_event("order.created", {
        "id": order["id"],
        "order_code": order["order_code"],
        "user_id": user["id"],
        "total": total,
    }, trace_id=request.state.trace_id)
    logger.info(f"[TRACE {request.state.trace_id}] Order {order['order_code']} placed by {user['id']}")
    return {
        "success": True,
        "message": "Order placed successfully",
        "order": {"id": order["id"], "order_code": order["order_code"], "total": total, "items": items},
    }


@app.get("/orders")
async def list_orders():
    return [
        {
            "id": o["id"],
            "order_code": o["order_code"],
            "user_id": o["user_id"],
            "vendor_id": o["vendor_id"],
            "shop_id": o["shop_id"],
            "customer_name": o["user_name"],
            "items": o["items"] or [],
            "total": o["total"],
            "status": o["status"],
            "created_at": o["created_at"],
        }
        for o in await store.list_orders()
    ]


# ------------------------- WEEKLY PLANS -------------------------
@app.post("/plans")
async def save_plan(body: PlanCreate):
    now = datetime.now()
    business_type = normalize_business_type(body.business_type)
    plan = await store.save_plan(body.user_id, business_type, body.inputs, now=now)
    if body.user_id:
        await store.touch_last_plan(body.user_id, now)
    await publish_event("plan.saved", {"id": plan["id"], "user_id": body.user_id, "business_type": business_type})
    return {"success": True, "id": plan["id"], "business_type": business_type}


@app.get("/plans/latest")
async def latest_plan(role: str = "vendor", business_type: str = ""):
    if role == Role.investor.value:
        plans = await store.list_plans()
        return {
            "role": "investor",
            "plansByType": {
                kind: [p for p in plans if p["business_type"] == kind]
                for kind in ("bakery", "repair shop", "cool drinks")
            },
            "totalPlans": len(plans),
        }

    kind = normalize_business_type(business_type, default="") if role == Role.vendor.value else ""
    plans = await store.list_plans(business_type=kind or None, limit=1)
    return plans[0] if plans else None


# ------------------------- NOTIFICATION PIPELINE -------------------------
@app.get("/admin/vendors/check-performance")
async def check_performance(user=Depends(admin_required), gateway: MessagingGateway = Depends(get_gateway)):
    try:
        result = await scanner.scan(gateway)
    except Exception as e:
        PIPELINE_RUNS.labels(pipeline="scanner", status="error").inc()
        logger.exception(f"[Scanner] Check vendor performance error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {
        "success": True,
        **result,
        "message": f"Auto-sent {result['autoSent']} notifications to vendors based on their performance.",
    }


@app.get("/revenue/check-threshold")
async def check_threshold(gateway: MessagingGateway = Depends(get_gateway)):
    try:
        result = await revenue.check(gateway)
    except Exception as e:
        PIPELINE_RUNS.labels(pipeline="revenue", status="error").inc()
        logger.exception(f"[Revenue] Check revenue threshold error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"success": True, **result}


@app.get("/revenue/monitor")
async def revenue_monitor(gateway: MessagingGateway = Depends(get_gateway)):
    result = await check_threshold(gateway)
    return {**result, "message": "Revenue monitoring completed"}


@app.get("/revenue/monthly")
async def monthly(months: int = Query(12, gt=0, le=120), vendor_id: Optional[str] = None):
    result = revenue.monthly_revenue(await store.list_orders(), months, datetime.now(), vendor_id=vendor_id)
    return {"success": True, **result}


# ------------------------- MESSAGING GATEWAY -------------------------
@app.post("/whatsapp/send")
async def whatsapp_send(body: WhatsAppSendRequest):
    if not body.phone_number or not body.message:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Phone number and message are required"},
        )

    whatsapp_url = build_whatsapp_url(body.phone_number, body.message)
    try:
        log_id = await store.write_whatsapp_log(body.phone_number, body.message, "sent", whatsapp_url=whatsapp_url)
    except Exception as e:
        logger.error(f"[WhatsApp] Failed to record message for {body.phone_number}: {e}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to send WhatsApp message", "whatsappUrl": whatsapp_url},
        )
    return {
        "success": True,
        "message": "WhatsApp message sent successfully",
        "whatsappUrl": whatsapp_url,
        "logId": log_id,
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
