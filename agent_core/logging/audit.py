from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from agent_core.logging.logger import get_logger


def audit_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    logger = get_logger("audit")
    timestamp = datetime.now(tz=timezone.utc).isoformat()
    payload = {"event": event, "timestamp": timestamp, **fields}
    logger.log(level, "audit %s", payload)
