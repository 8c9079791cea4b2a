from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Optional

from src.core.domain.budget_settings import DEFAULT_SETTINGS
from src.core.domain.challenge import Challenge
from src.core.domain.entry import Entry

# Ordering key reserved for the migration seed event. It sorts before any
# real event; factories refuse to stamp ordinary events with it.
EPOCH_ORDERING_KEY = 0


class EventKind(Enum):
    SETTINGS_UPDATED = "SETTINGS_UPDATED"
    ENTRY_ADDED = "ENTRY_ADDED"
    DAILY_BUDGET_CREATED = "DAILY_BUDGET_CREATED"
    CUSTOM_ROLLOVER_SET = "CUSTOM_ROLLOVER_SET"
    CHALLENGE_CREATED = "CHALLENGE_CREATED"
    CHALLENGE_ARCHIVED = "CHALLENGE_ARCHIVED"


class EventDecodeError(Exception):
    """Raised when a stored record cannot be turned into a ledger event."""
    pass


@dataclass(frozen=True)
class LedgerEvent:
    """
    Immutable, timestamped record of something that happened.
    One subclass per EventKind; the log is the single source of truth.
    """
    id: str
    timestamp: int  # epoch ms
    kind: ClassVar[EventKind]

    def payload(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class SettingsUpdated(LedgerEvent):
    settings_patch: Dict[str, Any] = field(default_factory=dict)
    kind: ClassVar[EventKind] = EventKind.SETTINGS_UPDATED

    def payload(self) -> Dict[str, Any]:
        return {"settingsPatch": dict(self.settings_patch)}


@dataclass(frozen=True)
class EntryAdded(LedgerEvent):
    entry: Optional[Entry] = None
    kind: ClassVar[EventKind] = EventKind.ENTRY_ADDED

    def payload(self) -> Dict[str, Any]:
        return {"entry": self.entry.to_dict()}


@dataclass(frozen=True)
class DailyBudgetCreated(LedgerEvent):
    date: str = ""
    base_budget: float = 0
    rollover: float = 0
    kind: ClassVar[EventKind] = EventKind.DAILY_BUDGET_CREATED

    def payload(self) -> Dict[str, Any]:
        return {"date": self.date, "baseBudget": self.base_budget, "rollover": self.rollover}


@dataclass(frozen=True)
class CustomRolloverSet(LedgerEvent):
    date: str = ""
    rollover: float = 0  # opening balance after the adjustment
    delta: float = 0  # positive = increase
    reason: Optional[str] = None
    kind: ClassVar[EventKind] = EventKind.CUSTOM_ROLLOVER_SET

    def payload(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"date": self.date, "rollover": self.rollover, "delta": self.delta}
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass(frozen=True)
class ChallengeCreated(LedgerEvent):
    challenge: Optional[Challenge] = None
    kind: ClassVar[EventKind] = EventKind.CHALLENGE_CREATED

    def payload(self) -> Dict[str, Any]:
        return {"challenge": self.challenge.to_dict()}


@dataclass(frozen=True)
class ChallengeArchived(LedgerEvent):
    challenge: Optional[Challenge] = None
    kind: ClassVar[EventKind] = EventKind.CHALLENGE_ARCHIVED

    def payload(self) -> Dict[str, Any]:
        return {"challenge": self.challenge.to_dict()}


def encode_event(event: LedgerEvent) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": event.id,
        "kind": event.kind.value,
        "timestamp": event.timestamp,
    }
    record.update(event.payload())
    return record


def _decode_settings_updated(record: Dict[str, Any]) -> LedgerEvent:
    patch = record.get("settingsPatch") or {}
    if not isinstance(patch, dict):
        raise EventDecodeError(f"settingsPatch must be an object in event {record['id']}")
    # patch must fold onto any settings state
    DEFAULT_SETTINGS.merge(patch)
    return SettingsUpdated(id=record["id"], timestamp=record["timestamp"], settings_patch=patch)


def _decode_entry_added(record: Dict[str, Any]) -> LedgerEvent:
    return EntryAdded(id=record["id"], timestamp=record["timestamp"], entry=Entry.from_dict(record["entry"]))


def _decode_daily_budget_created(record: Dict[str, Any]) -> LedgerEvent:
    return DailyBudgetCreated(
        id=record["id"],
        timestamp=record["timestamp"],
        date=record["date"],
        base_budget=record["baseBudget"],
        rollover=record["rollover"],
    )


def _decode_custom_rollover_set(record: Dict[str, Any]) -> LedgerEvent:
    return CustomRolloverSet(
        id=record["id"],
        timestamp=record["timestamp"],
        date=record["date"],
        rollover=record["rollover"],
        delta=record.get("delta", 0),
        reason=record.get("reason"),
    )


def _decode_challenge_created(record: Dict[str, Any]) -> LedgerEvent:
    return ChallengeCreated(
        id=record["id"], timestamp=record["timestamp"], challenge=Challenge.from_dict(record["challenge"])
    )


def _decode_challenge_archived(record: Dict[str, Any]) -> LedgerEvent:
    return ChallengeArchived(
        id=record["id"], timestamp=record["timestamp"], challenge=Challenge.from_dict(record["challenge"])
    )


_DECODERS: Dict[EventKind, Callable[[Dict[str, Any]], LedgerEvent]] = {
    EventKind.SETTINGS_UPDATED: _decode_settings_updated,
    EventKind.ENTRY_ADDED: _decode_entry_added,
    EventKind.DAILY_BUDGET_CREATED: _decode_daily_budget_created,
    EventKind.CUSTOM_ROLLOVER_SET: _decode_custom_rollover_set,
    EventKind.CHALLENGE_CREATED: _decode_challenge_created,
    EventKind.CHALLENGE_ARCHIVED: _decode_challenge_archived,
}


def decode_event(record: Any) -> LedgerEvent:
    if not isinstance(record, dict):
        raise EventDecodeError(f"Event record must be an object, got {type(record).__name__}")

    # Older logs tagged records with "type"
    raw_kind = record.get("kind", record.get("type"))
    try:
        kind = EventKind(raw_kind)
    except ValueError:
        raise EventDecodeError(f"Unknown event kind: {raw_kind!r}")

    timestamp = record.get("timestamp")
    if (
        not isinstance(record.get("id"), str)
        or isinstance(timestamp, bool)
        or not isinstance(timestamp, (int, float))
    ):
        raise EventDecodeError(f"Malformed {kind.value} event: missing id or timestamp")
    record = {**record, "timestamp": int(timestamp)}

    try:
        return _DECODERS[kind](record)
    except (KeyError, TypeError, ValueError) as e:
        raise EventDecodeError(f"Malformed {kind.value} event {record['id']}: {e}")
