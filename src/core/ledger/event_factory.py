from typing import Any, Dict, Optional
from uuid import uuid4

from src.core.domain.budget_settings import DEFAULT_SETTINGS
from src.core.domain.challenge import Challenge
from src.core.domain.entry import Entry
from src.core.ledger.ledger_event import (
    EPOCH_ORDERING_KEY,
    ChallengeArchived,
    ChallengeCreated,
    CustomRolloverSet,
    DailyBudgetCreated,
    EntryAdded,
    SettingsUpdated,
)
from src.core.time.clock import Clock

INITIAL_SETTINGS_EVENT_ID = "settings-initial"


def _checked_timestamp(timestamp: int) -> int:
    if timestamp <= EPOCH_ORDERING_KEY:
        raise ValueError(
            f"Timestamp {timestamp} collides with the epoch ordering key reserved for the migration seed"
        )
    return timestamp


def daily_budget_event_id(date: str) -> str:
    return f"daily-{date}"


def make_initial_settings(patch: Dict[str, Any]) -> SettingsUpdated:
    """
    Migration seed. The only event allowed to carry EPOCH_ORDERING_KEY,
    so it folds before everything else regardless of when migration ran.
    """
    return SettingsUpdated(
        id=INITIAL_SETTINGS_EVENT_ID,
        timestamp=EPOCH_ORDERING_KEY,
        settings_patch=dict(patch),
    )


def make_settings_updated(patch: Dict[str, Any], clock: Clock) -> SettingsUpdated:
    DEFAULT_SETTINGS.merge(patch)
    return SettingsUpdated(
        id=f"settings-{uuid4()}",
        timestamp=_checked_timestamp(clock.now()),
        settings_patch=dict(patch),
    )


def make_entry_added(entry: Entry) -> EntryAdded:
    return EntryAdded(
        id=f"entry-{entry.id}",
        timestamp=_checked_timestamp(entry.timestamp),
        entry=entry,
    )


def make_daily_budget_created(date: str, base_budget: float, rollover: float, clock: Clock) -> DailyBudgetCreated:
    # Deterministic id: freezing the same date twice is a no-op at append time
    return DailyBudgetCreated(
        id=daily_budget_event_id(date),
        timestamp=_checked_timestamp(clock.now()),
        date=date,
        base_budget=base_budget,
        rollover=rollover,
    )


def make_custom_rollover_set(
        date: str,
        rollover: float,
        clock: Clock,
        delta: float = 0,
        reason: Optional[str] = None,
) -> CustomRolloverSet:
    return CustomRolloverSet(
        id=f"rollover-{date}-{uuid4()}",
        timestamp=_checked_timestamp(clock.now()),
        date=date,
        rollover=rollover,
        delta=delta,
        reason=reason,
    )


def make_challenge_created(challenge: Challenge, clock: Clock) -> ChallengeCreated:
    return ChallengeCreated(
        id=f"challenge-created-{challenge.id}",
        timestamp=_checked_timestamp(clock.now()),
        challenge=challenge,
    )


def make_challenge_archived(challenge: Challenge, clock: Clock) -> ChallengeArchived:
    return ChallengeArchived(
        id=f"challenge-archived-{challenge.id}",
        timestamp=_checked_timestamp(clock.now()),
        challenge=challenge,
    )
