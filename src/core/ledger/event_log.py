import json
import logging
from typing import List, Optional, Sequence

from src.core.ledger.ledger_event import EventDecodeError, LedgerEvent, decode_event, encode_event
from src.core.observability.ledger_logger import LedgerLogger
from src.core.persistence.storage_keys import StorageKeys
from src.core.persistence.store import Store

logger = logging.getLogger(__name__)


class EventLog:
    """
    Append-only, timestamp-ordered log of ledger events persisted under one Store key.

    Durability is best-effort: unreadable data loads as an empty log and failed
    writes are logged, never raised. Correct only under a single writer, since
    append is an unguarded read-modify-write of the whole sequence.
    """

    def __init__(
            self,
            store: Store,
            keys: Optional[StorageKeys] = None,
            ledger_logger: Optional[LedgerLogger] = None,
    ):
        self.store = store
        self.keys = keys or StorageKeys()
        self.ledger_logger = ledger_logger

    def load(self) -> List[LedgerEvent]:
        try:
            raw = self.store.get_item(self.keys.transactions)
        except Exception:
            logger.exception("Failed to read event log from store")
            return []

        if not raw:
            return []

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Event log is not valid JSON, treating as empty: {e}")
            return []

        if not isinstance(records, list):
            logger.warning("Event log is not a list, treating as empty")
            return []

        events: List[LedgerEvent] = []
        for record in records:
            try:
                events.append(decode_event(record))
            except EventDecodeError as e:
                # Skip-with-log: one bad record must not hide the rest of history
                logger.warning(f"Skipping undecodable event: {e}")
        return events

    def save(self, events: Sequence[LedgerEvent]) -> None:
        try:
            payload = json.dumps([encode_event(e) for e in events])
            self.store.set_item(self.keys.transactions, payload)
        except Exception:
            logger.exception(f"Failed to save {len(events)} events")

    def append(self, event: LedgerEvent) -> bool:
        """
        Insert `event` keeping the log sorted by timestamp (stable on ties).
        Returns False when an event with the same id already exists.
        """
        events = self.load()
        if any(e.id == event.id for e in events):
            return False

        events.append(event)
        events.sort(key=lambda e: e.timestamp)
        self.save(events)

        if self.ledger_logger:
            self.ledger_logger.emit("EVENT_APPENDED", event_id=event.id, kind=event.kind.value)
        return True

    def clear(self) -> None:
        try:
            self.store.remove_item(self.keys.transactions)
        except Exception:
            logger.exception("Failed to clear event log")
            return

        if self.ledger_logger:
            self.ledger_logger.emit("EVENT_LOG_CLEARED")
