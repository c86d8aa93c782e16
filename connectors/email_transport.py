"""
Module: connectors.email_transport

Dummy email transport. Records every payload instead of delivering it.
"""

import logging
import uuid
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


class DummyEmailTransport:
    def __init__(self):
        self.sent: list[dict[str, Any]] = []

    async def send(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Accept a `{to, cc, bcc, subject, body, priority}` payload."""
        if not payload.get("to"):
            raise ValueError("Email payload has no recipient")
        message_id = f"msg_{uuid.uuid4().hex[:12]}"
        record = {**payload, "messageId": message_id, "sentAt": datetime.now().isoformat()}
        self.sent.append(record)
        logger.info(f"Email {message_id} queued to {payload['to']}: {payload.get('subject')}")
        return {"messageId": message_id, "to": payload["to"], "subject": payload.get("subject")}
