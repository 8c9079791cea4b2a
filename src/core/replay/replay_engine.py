import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from src.core.domain.budget_settings import BudgetSettings
from src.core.domain.challenge import Challenge
from src.core.domain.daily_budget import DailyBudget
from src.core.domain.entry import Entry
from src.core.ledger.event_factory import make_daily_budget_created
from src.core.ledger.event_log import EventLog
from src.core.ledger.ledger_event import EPOCH_ORDERING_KEY, EventKind, LedgerEvent, encode_event
from src.core.observability.ledger_logger import LedgerLogger
from src.core.replay.ledger_reducer import CompositeLedgerReducer, FoldState
from src.core.stats.stats_calculator import DefaultStatsCalculator, StatsCalculator
from src.core.time.calendar_dates import iter_dates, parse_iso
from src.core.time.clock import Clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayResult:
    settings: BudgetSettings
    entries: Tuple[Entry, ...]
    daily_budgets: Dict[str, DailyBudget]
    challenge_history: Tuple[Tuple[EventKind, Challenge], ...]
    events: Tuple[LedgerEvent, ...]  # full input, sorted by timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": self.settings.to_dict(),
            "entries": [e.to_dict() for e in self.entries],
            "dailyBudgets": {d: b.to_dict() for d, b in sorted(self.daily_budgets.items())},
            "challengeHistory": [{"kind": k.value, "challenge": c.to_dict()} for k, c in self.challenge_history],
            "events": [encode_event(e) for e in self.events],
        }


class ReplayEngine:
    """
    Derives settings, entries and per-date budgets by folding the event log,
    and locks past dates by appending DAILY_BUDGET_CREATED events (materialization).

    replay() is a pure function of its input events and cutoff date. The only
    thing it takes from the Clock is the zone that defines local midnight.
    """

    def __init__(
            self,
            event_log: EventLog,
            clock: Clock,
            calculator: Optional[StatsCalculator] = None,
            ledger_logger: Optional[LedgerLogger] = None,
    ):
        self.event_log = event_log
        self.clock = clock
        self.calculator = calculator or DefaultStatsCalculator()
        self.ledger_logger = ledger_logger
        self.reducer = CompositeLedgerReducer()

    def replay(
            self,
            events: Optional[Sequence[LedgerEvent]] = None,
            through_date: Optional[str] = None,
    ) -> ReplayResult:
        """
        Fold events in timestamp order (stable on ties).

        With `through_date`, only events stamped within that local calendar day
        or earlier are folded: an event at local midnight starting `through_date`
        is included, one at local midnight starting the next day is not.
        """
        source = self.event_log.load() if events is None else list(events)
        ordered = sorted(source, key=lambda e: e.timestamp)

        cutoff = None
        if through_date:
            cutoff = self.clock.end_of_day_cutoff_ms(parse_iso(through_date))

        state = FoldState()
        for event in ordered:
            if cutoff is not None and event.timestamp >= cutoff:
                break
            self.reducer.reduce(state, event)

        return ReplayResult(
            settings=state.settings,
            entries=tuple(state.entries),
            daily_budgets=dict(state.daily_budgets),
            challenge_history=tuple(state.challenge_history),
            events=tuple(ordered),
        )

    def effective_start_date(self, settings: BudgetSettings, events: Sequence[LedgerEvent]) -> str:
        """
        Configured start date, else the local date of the earliest real event, else today.
        """
        if settings.start_date:
            return settings.start_date

        stamps = [e.timestamp for e in events if e.timestamp > EPOCH_ORDERING_KEY]
        if stamps:
            return self.clock.local_date_of(min(stamps)).isoformat()
        return self.clock.today().isoformat()

    def ensure_daily_budget_for_date(
            self,
            date: str,
            events: Optional[Sequence[LedgerEvent]] = None,
    ) -> DailyBudget:
        """
        Return the applied budget of `date`, freezing it first if it has none.
        Has no date restriction of its own; callers decide which dates may be frozen.
        """
        source = self.event_log.load() if events is None else list(events)
        # Freeze events carry the moment they were written, so existence is
        # checked on the uncut log rather than the replay through `date`.
        full = self.replay(source)
        existing = full.daily_budgets.get(date)
        if existing is not None:
            return existing

        budget, _ = self._freeze(date, source, full.daily_budgets)
        return budget

    def materialize_up_to(self, through_date: str) -> List[str]:
        """
        Freeze every date from the log's start date through `through_date`
        that is strictly before today and not yet frozen. Returns the dates
        frozen by this call. Safe to repeat: each call only fills gaps.
        """
        events = self.event_log.load()
        full = self.replay(events)
        known = dict(full.daily_budgets)

        start = self.effective_start_date(full.settings, events)
        today = self.clock.today().isoformat()

        materialized: List[str] = []
        for day in iter_dates(start, through_date):
            if day >= today:
                break
            if day in known:
                continue

            budget, event = self._freeze(day, events, known)
            known[day] = budget
            events = events + [event]
            materialized.append(day)

        return materialized

    def _freeze(
            self,
            date: str,
            events: Sequence[LedgerEvent],
            daily_budgets: Mapping[str, DailyBudget],
    ) -> Tuple[DailyBudget, LedgerEvent]:
        as_of = self.replay(events, through_date=date)

        settings = as_of.settings
        if not settings.start_date:
            settings = settings.merge({"startDate": self.effective_start_date(settings, events)})

        frozen = {d: b for d, b in daily_budgets.items() if d < date}
        figures = self.calculator.compute_daily_figures(settings, as_of.entries, date, frozen)

        event = make_daily_budget_created(date, figures.base_budget, figures.rollover, self.clock)
        if not self.event_log.append(event):
            # Already frozen in the stored log; the stored figures win
            stored_events = self.event_log.load()
            stored = self.replay(stored_events).daily_budgets.get(date)
            if stored is not None:
                logger.info(f"Daily budget for {date} already frozen, keeping stored figures")
                return stored, next(e for e in stored_events if e.id == event.id)

        if self.ledger_logger:
            self.ledger_logger.emit(
                "DAILY_BUDGET_FROZEN",
                date=date,
                base_budget=figures.base_budget,
                rollover=figures.rollover,
            )
        return figures.as_daily_budget(), event
