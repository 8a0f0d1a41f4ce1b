# events.py
import json
import logging
import uuid
from datetime import datetime, timezone

import aioboto3

from growth_service import config
from growth_service.database import database
from growth_service.models import event_logs

logger = logging.getLogger("growth-service.events")

session = aioboto3.Session()


async def log_event_to_db(event_type: str, data: dict, source_service: str = "growth-service",
                          trace_id: str | None = None) -> bool:
    """Store event for the audit trail. Returns False when the insert failed."""
    trace_id = trace_id or str(uuid.uuid4())
    query = event_logs.insert().values(
        id=str(uuid.uuid4()),
        event_type=event_type,
        source_service=source_service,
        payload=data,
        metadata={"env": "aws" if config.USE_AWS else "local", "trace_id": trace_id},
        occurred_at=datetime.now(),
    )
    try:
        await database.execute(query)
        logger.info(f"[EVENTS] [{trace_id}] Logged event → {event_type}")
        return True
    except Exception as e:
        logger.error(f"[EVENTS] [{trace_id}] Failed to insert event {event_type}: {e}")
        return False


async def publish_event(event_type: str, data: dict, source_service: str = "growth-service",
                        trace_id: str | None = None) -> None:
    """Log the event and, in AWS mode, forward it to the notification queue. Never raises."""
    trace_id = trace_id or str(uuid.uuid4())
    await log_event_to_db(event_type, data, source_service=source_service, trace_id=trace_id)

    if not config.USE_AWS or not config.NOTIFICATION_QUEUE_URL:
        return

    event_payload = {
        "type": event_type,
        "data": {**data, "trace_id": trace_id},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    try:
        async with session.client("sqs", region_name=config.AWS_REGION) as sqs:
            await sqs.send_message(
                QueueUrl=config.NOTIFICATION_QUEUE_URL,
                MessageBody=json.dumps(event_payload),
                MessageAttributes={
                    "trace_id": {"DataType": "String", "StringValue": trace_id}
                }
            )
        logger.info(f"[EVENTS] [{trace_id}] Published event → {event_type}")
    except Exception as e:
        logger.error(f"[EVENTS] [{trace_id}] Failed to publish to AWS SQS: {e}")
