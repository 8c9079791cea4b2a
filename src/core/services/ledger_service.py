import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional
from uuid import uuid4

from src.core.domain.challenge import Challenge
from src.core.domain.entry import Entry
from src.core.ledger.event_factory import (
    make_challenge_archived,
    make_challenge_created,
    make_custom_rollover_set,
    make_entry_added,
    make_settings_updated,
)
from src.core.ledger.event_log import EventLog
from src.core.observability.ledger_logger import LedgerLogger
from src.core.replay.replay_engine import ReplayEngine, ReplayResult
from src.core.time.calendar_dates import add_days
from src.core.time.clock import Clock

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Entry point for user actions. Each action becomes exactly one appended
    event; reads always go through a fresh replay.
    """

    def __init__(
            self,
            event_log: EventLog,
            engine: ReplayEngine,
            clock: Clock,
            ledger_logger: Optional[LedgerLogger] = None,
    ):
        self.event_log = event_log
        self.engine = engine
        self.clock = clock
        self.ledger_logger = ledger_logger

    def current_state(self, through_date: Optional[str] = None) -> ReplayResult:
        return self.engine.replay(through_date=through_date)

    def update_settings(self, patch: Dict[str, Any]) -> None:
        self.event_log.append(make_settings_updated(patch, self.clock))

    def add_entry(self, date: str, amount: float, note: str = "", entry_id: Optional[str] = None) -> Entry:
        entry = Entry(
            id=entry_id or str(uuid4()),
            date=date,
            amount=amount,
            note=note,
            timestamp=self.clock.now(),
        )
        self.event_log.append(make_entry_added(entry))
        return entry

    def set_custom_rollover(self, date: str, rollover: float, reason: Optional[str] = None) -> None:
        current = self.engine.replay().daily_budgets.get(date)
        previous = current.rollover if current else 0
        event = make_custom_rollover_set(
            date,
            rollover,
            self.clock,
            delta=rollover - previous,
            reason=reason,
        )
        self.event_log.append(event)

    def create_challenge(self, challenge: Challenge) -> None:
        if challenge.status is None:
            challenge = replace(challenge, status="active")
        self.event_log.append(make_challenge_created(challenge, self.clock))
        self.update_settings({"activeChallenge": challenge.to_dict()})

    def archive_challenge(self, challenge: Challenge) -> None:
        settings = self.engine.replay().settings
        past = [c.to_dict() for c in settings.past_challenges if c.id != challenge.id]
        past.append(challenge.to_dict())

        self.event_log.append(make_challenge_archived(challenge, self.clock))
        patch: Dict[str, Any] = {"pastChallenges": past}
        if settings.active_challenge and settings.active_challenge.id == challenge.id:
            patch["activeChallenge"] = None
        self.update_settings(patch)

    def lock_history(self) -> List[str]:
        """Freeze every past date through yesterday."""
        yesterday = add_days(self.clock.today().isoformat(), -1)
        return self.engine.materialize_up_to(yesterday)

    def reset(self) -> None:
        """
        Destroy the whole log. Derived state goes with it, since it is only ever replayed.
        """
        self.event_log.clear()
        try:
            self.event_log.store.remove_item(self.event_log.keys.checkpoints)
        except Exception:
            logger.exception("Failed to clear checkpoints")

        if self.ledger_logger:
            self.ledger_logger.emit("LEDGER_RESET")
