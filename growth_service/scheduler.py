# scheduler.py
import asyncio
import logging

from growth_service import revenue, scanner
from growth_service.gateway import MessagingGateway
from growth_service.metrics import PIPELINE_RUNS

logger = logging.getLogger("growth-service.scheduler")


async def run_checks_once(gateway: MessagingGateway) -> None:
    try:
        result = await scanner.scan(gateway)
        logger.info(f"[Monitor] Vendor performance scan: {result}")
    except Exception as e:
        PIPELINE_RUNS.labels(pipeline="scanner", status="error").inc()
        logger.exception(f"[Monitor] Vendor performance scan failed: {e}")

    try:
        result = await revenue.check(gateway)
        logger.info(f"[Monitor] Revenue threshold check: {result['notificationsSent']} sent")
    except Exception as e:
        PIPELINE_RUNS.labels(pipeline="revenue", status="error").inc()
        logger.exception(f"[Monitor] Revenue threshold check failed: {e}")


async def run_periodic_checks(gateway: MessagingGateway, interval: float) -> None:
    """Run both pipelines every `interval` seconds until cancelled."""
    logger.info(f"[Monitor] Periodic checks every {interval}s")
    while True:
        await run_checks_once(gateway)
        await asyncio.sleep(interval)
