import json
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from src.core.time.clock import EPOCH, Clock


class LedgerLogger:
    """
    JSON-lines logger for ledger milestones (appends, freezes, resets, migration).
    Timestamps come from the injected Clock, never from the wall clock directly.
    """

    def __init__(self, clock: Clock, logger: Optional[logging.Logger] = None):
        self._clock = clock
        self._logger = logger or logging.getLogger("ledger")

    def emit(self, event_type: str, **fields: Any) -> None:
        moment = EPOCH + timedelta(milliseconds=self._clock.now())
        payload: Dict[str, Any] = {
            "timestamp": moment.isoformat(),
            "event_type": event_type,
        }
        payload.update(fields)
        self._logger.info(json.dumps(payload, default=str, ensure_ascii=True))
