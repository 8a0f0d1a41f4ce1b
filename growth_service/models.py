# models.py
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Table, Column, String, Text, Float, Integer, Boolean, JSON, DateTime, UniqueConstraint,
)

from growth_service.database import metadata  # same metadata instance used for all tables


# -------------------------
# Role Enum
# -------------------------
class Role(str, Enum):
    admin = "admin"
    vendor = "vendor"
    customer = "customer"
    investor = "investor"


# ---------------------------------------------------------------------------
# Users Table (vendors, customers, investors, admins)
# ---------------------------------------------------------------------------
users = Table(
    "users",
    metadata,
    Column("id", String, primary_key=True),
    Column("email", String, nullable=False, unique=True, index=True),
    Column("password_hash", String, nullable=False),
    Column("role", String, nullable=False),
    Column("name", String, nullable=False, default=""),
    Column("business_type", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("cart", JSON, nullable=True),
    Column("businesses", JSON, nullable=True),
    Column("last_plan_submitted", DateTime, nullable=True),
    Column("created_at", DateTime, default=datetime.now),
)

# ---------------------------------------------------------------------------
# Shops Table (owned by vendor users)
# ---------------------------------------------------------------------------
shops = Table(
    "shops",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String, nullable=False, unique=True),
    Column("vendor_id", String, nullable=False, index=True),
    Column("name", String, nullable=False, default=""),
    Column("business_type", String, nullable=True),
    Column("address", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("created_at", DateTime, default=datetime.now),
)

# ---------------------------------------------------------------------------
# Products Table (storefront catalog)
# ---------------------------------------------------------------------------
products = Table(
    "products",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("description", Text, nullable=True),
    Column("price", Float, nullable=False, default=0),
    Column("category", String, nullable=True),
    Column("image", String, nullable=True),
    Column("stock", Integer, nullable=False, default=0),
    Column("rating", Float, nullable=False, default=0),
    Column("reviews", Integer, nullable=False, default=0),
    Column("features", JSON, nullable=True),
    Column("created_at", DateTime, default=datetime.now),
)

# ---------------------------------------------------------------------------
# Orders Table
# ---------------------------------------------------------------------------
orders = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("order_code", String, nullable=False),
    Column("user_id", String, nullable=True, index=True),
    Column("vendor_id", String, nullable=True, index=True),
    Column("shop_id", String, nullable=True, index=True),
    Column("user_email", String, nullable=True),
    Column("user_name", String, nullable=True),
    Column("items", JSON, nullable=False),
    Column("total", Float, nullable=False, default=0),
    Column("status", String, default="confirmed"),
    Column("created_at", DateTime, default=datetime.now),
)

# ---------------------------------------------------------------------------
# Weekly Plans Table
# ---------------------------------------------------------------------------
weekly_plans = Table(
    "weekly_plans",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=True, index=True),
    Column("business_type", String, nullable=False),
    Column("payload", JSON, nullable=False),
    Column("created_at", DateTime, default=datetime.now),
)

# ---------------------------------------------------------------------------
# Notifications Table (append-only per vendor, seq assigned by the database)
# ---------------------------------------------------------------------------
notifications = Table(
    "notifications",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String, nullable=False, unique=True),
    Column("vendor_id", String, nullable=False, index=True),
    Column("message", Text, nullable=False),
    Column("type", String, nullable=False, default="info"),
    Column("rule", String, nullable=True),
    Column("dedup_key", String, nullable=True),
    Column("read", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, default=datetime.now),
    UniqueConstraint("vendor_id", "dedup_key", name="uq_notifications_vendor_dedup"),
)

# ---------------------------------------------------------------------------
# Notification Logs Table (one row per delivery attempt)
# ---------------------------------------------------------------------------
notification_logs = Table(
    "notification_logs",
    metadata,
    Column("id", String, primary_key=True),
    Column("notification_id", String, nullable=False, index=True),
    Column("vendor_id", String, nullable=False, index=True),
    Column("vendor_phone", String, nullable=True),
    Column("message", Text, nullable=False),
    Column("whatsapp_sent", Boolean, nullable=False, default=False),
    Column("whatsapp_error", Text, nullable=True),
    Column("revenue", Float, nullable=True),
    Column("threshold", Float, nullable=True),
    Column("created_at", DateTime, default=datetime.now),
)

# ---------------------------------------------------------------------------
# WhatsApp Logs Table (written by the gateway endpoint)
# ---------------------------------------------------------------------------
whatsapp_logs = Table(
    "whatsapp_logs",
    metadata,
    Column("id", String, primary_key=True),
    Column("phone_number", String, nullable=False),
    Column("message", Text, nullable=False),
    Column("status", String, nullable=False, default="pending"),
    Column("error", Text, nullable=True),
    Column("whatsapp_url", Text, nullable=True),
    Column("created_at", DateTime, default=datetime.now),
)

# ---------------------------------------------------------------------------
# Events Table
# ---------------------------------------------------------------------------
event_logs = Table(
    "event_logs",
    metadata,
    Column("id", String, primary_key=True),
    Column("event_type", Text, nullable=False),
    Column("source_service", Text, nullable=False),
    Column("payload", JSON, nullable=False),
    Column("metadata", JSON, nullable=True),
    Column("occurred_at", DateTime, default=datetime.now),
)
