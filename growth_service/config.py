# config.py
import os
from dotenv import load_dotenv

load_dotenv()

# ------------------------- STORAGE -------------------------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./growth.db")

# ------------------------- PIPELINE -------------------------
MINIMUM_REVENUE_THRESHOLD = float(os.getenv("MINIMUM_REVENUE_THRESHOLD", "50000"))

# Orders without an explicit vendor_id are credited to the buyer's user_id.
REVENUE_BUYER_FALLBACK = os.getenv("REVENUE_BUYER_FALLBACK", "True").lower() in ("true", "1", "yes")

# "suppress" or "notify": what the scanner does when a shop activity lookup fails
ACTIVITY_UNKNOWN_POLICY = os.getenv("ACTIVITY_UNKNOWN_POLICY", "suppress").lower()

# 0 disables the periodic monitor
MONITOR_INTERVAL_SECONDS = int(os.getenv("MONITOR_INTERVAL_SECONDS", "0"))

# ------------------------- MESSAGING GATEWAY -------------------------
BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "10"))

# ------------------------- EVENTS -------------------------
USE_AWS = os.getenv("USE_AWS", "False").lower() in ("true", "1", "yes")
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
NOTIFICATION_QUEUE_URL = os.getenv("NOTIFICATION_QUEUE_URL")

# ------------------------- HTTP -------------------------
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
