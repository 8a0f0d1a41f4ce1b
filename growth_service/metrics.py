from prometheus_client import Counter

NOTIFICATIONS_APPENDED = Counter(
    "growth_notifications_appended_total",
    "Total vendor notifications appended",
    ["rule"]
)

GATEWAY_ATTEMPTS = Counter(
    "growth_gateway_attempts_total",
    "Messaging gateway delivery attempts",
    ["outcome"]
)

PIPELINE_RUNS = Counter(
    "growth_pipeline_runs_total",
    "Notification pipeline runs",
    ["pipeline", "status"]
)
