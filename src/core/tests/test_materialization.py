from datetime import datetime, timedelta, timezone

from src.core.domain.daily_budget import DailyBudget
from src.core.domain.entry import Entry
from src.core.ledger.event_factory import make_entry_added, make_settings_updated
from src.core.ledger.event_log import EventLog
from src.core.ledger.ledger_event import DailyBudgetCreated, EventKind, SettingsUpdated
from src.core.persistence.store import InMemoryStore
from src.core.replay.replay_engine import ReplayEngine
from src.core.time.frozen_clock import FrozenClock

MONDAY = datetime(2026, 2, 9, 9, 0, 0, tzinfo=timezone.utc)


class RecordingCalculator:
    """Wraps the default calculator and remembers which dates it was asked about."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    def compute_daily_figures(self, settings, entries, date, frozen=None):
        self.calls.append(date)
        return self.inner.compute_daily_figures(settings, entries, date, frozen)


def make_ledger(start=MONDAY):
    clock = FrozenClock(start)
    log = EventLog(InMemoryStore())
    engine = ReplayEngine(log, clock)
    return clock, log, engine


def daily_events(log: EventLog):
    return [e for e in log.load() if e.kind is EventKind.DAILY_BUDGET_CREATED]


def test_end_to_end_frozen_history():
    clock, log, engine = make_ledger()

    log.append(make_settings_updated({"weekdayBudget": 300}, clock))

    # Today is never frozen
    assert engine.materialize_up_to("2026-02-09") == []

    clock.advance(timedelta(days=1))
    assert engine.materialize_up_to("2026-02-09") == ["2026-02-09"]
    assert engine.replay().daily_budgets["2026-02-09"] == DailyBudget(base_budget=300, rollover=0)

    clock.advance(timedelta(hours=1))
    log.append(make_settings_updated({"weekdayBudget": 200}, clock))

    tuesday = engine.ensure_daily_budget_for_date("2026-02-10")
    assert tuesday == DailyBudget(base_budget=200, rollover=300)

    result = engine.replay()
    assert result.daily_budgets["2026-02-09"] == DailyBudget(base_budget=300, rollover=0)
    assert result.daily_budgets["2026-02-10"] == DailyBudget(base_budget=200, rollover=300)


def test_frozen_day_ignores_later_settings_changes():
    clock, log, engine = make_ledger()
    log.append(make_settings_updated({"weekdayBudget": 300, "startDate": "2026-02-09"}, clock))

    clock.advance(timedelta(days=1))
    engine.materialize_up_to("2026-02-09")

    clock.advance(timedelta(minutes=5))
    log.append(make_settings_updated({"weekdayBudget": 100, "customBudgets": {"2026-02-09": 999}}, clock))

    clock.advance(timedelta(days=3))
    assert "2026-02-09" not in engine.materialize_up_to("2026-02-12")

    for _ in range(3):
        assert engine.replay().daily_budgets["2026-02-09"] == DailyBudget(base_budget=300, rollover=0)
    assert engine.ensure_daily_budget_for_date("2026-02-09") == DailyBudget(base_budget=300, rollover=0)
    assert len([e for e in daily_events(log) if e.date == "2026-02-09"]) == 1


def test_materialize_fills_only_gaps_and_is_repeatable():
    clock, log, engine = make_ledger()
    log.append(make_settings_updated({"weekdayBudget": 100, "weekendBudget": 50, "startDate": "2026-02-09"}, clock))
    log.append(DailyBudgetCreated(
        id="daily-2026-02-11", timestamp=clock.now() + 1, date="2026-02-11", base_budget=77, rollover=0,
    ))
    clock.set(datetime(2026, 2, 14, 9, tzinfo=timezone.utc))

    first = engine.materialize_up_to("2026-02-20")
    assert first == ["2026-02-09", "2026-02-10", "2026-02-12", "2026-02-13"]
    assert engine.materialize_up_to("2026-02-20") == []

    budgets = engine.replay().daily_budgets
    assert budgets["2026-02-11"] == DailyBudget(base_budget=77, rollover=0)
    # carry-forward restarts from the pre-existing frozen day
    assert budgets["2026-02-12"] == DailyBudget(base_budget=100, rollover=77)
    assert budgets["2026-02-13"] == DailyBudget(base_budget=100, rollover=177)
    assert "2026-02-14" not in budgets


def test_materialize_with_empty_range_returns_empty():
    clock, log, engine = make_ledger()
    log.append(make_settings_updated({"startDate": "2026-02-05"}, clock))

    assert engine.materialize_up_to("2026-02-01") == []
    assert daily_events(log) == []


def test_materialize_spends_reduce_next_rollover():
    clock, log, engine = make_ledger()
    log.append(make_settings_updated({"weekdayBudget": 100, "startDate": "2026-02-09"}, clock))
    entry = Entry(id="e1", date="2026-02-09", amount=130, note="dinner", timestamp=clock.now() + 1)
    log.append(make_entry_added(entry))
    clock.set(datetime(2026, 2, 12, 9, tzinfo=timezone.utc))

    engine.materialize_up_to("2026-02-11")

    budgets = engine.replay().daily_budgets
    assert budgets["2026-02-09"] == DailyBudget(base_budget=100, rollover=0)
    assert budgets["2026-02-10"] == DailyBudget(base_budget=100, rollover=-30)
    assert budgets["2026-02-11"] == DailyBudget(base_budget=100, rollover=70)


def test_ensure_is_idempotent_and_does_not_recompute():
    clock, log, engine = make_ledger()
    calculator = RecordingCalculator(engine.calculator)
    engine.calculator = calculator
    log.append(make_settings_updated({"weekdayBudget": 300}, clock))

    first = engine.ensure_daily_budget_for_date("2026-01-15")
    second = engine.ensure_daily_budget_for_date("2026-01-15")

    assert first == second
    assert calculator.calls == ["2026-01-15"]
    assert len(daily_events(log)) == 1
    assert daily_events(log)[0].id == "daily-2026-01-15"


def test_ensure_respects_same_day_settings():
    clock, log, engine = make_ledger(datetime(2026, 1, 15, 12, tzinfo=timezone.utc))
    log.append(make_settings_updated({"startDate": "2026-01-15", "weekdayBudget": 1500, "weekendBudget": 1500}, clock))

    assert engine.ensure_daily_budget_for_date("2026-01-15").base_budget == 1500


def test_ensure_uses_passed_events_and_persists_result():
    clock, log, engine = make_ledger()
    early = int(datetime(2026, 2, 1, 8, tzinfo=timezone.utc).timestamp() * 1000)
    events = [SettingsUpdated(id="s-1", timestamp=early, settings_patch={"weekdayBudget": 40, "startDate": "2026-02-02"})]

    budget = engine.ensure_daily_budget_for_date("2026-02-03", events)

    assert budget == DailyBudget(base_budget=40, rollover=40)
    assert [e.id for e in log.load()] == ["daily-2026-02-03"]


def test_ensure_with_stale_events_returns_stored_figures():
    clock, log, engine = make_ledger()
    log.append(DailyBudgetCreated(
        id="daily-2026-02-03", timestamp=clock.now(), date="2026-02-03", base_budget=999, rollover=1,
    ))
    early = int(datetime(2026, 2, 1, 8, tzinfo=timezone.utc).timestamp() * 1000)
    stale = [SettingsUpdated(id="s-1", timestamp=early, settings_patch={"weekdayBudget": 40, "startDate": "2026-02-02"})]

    budget = engine.ensure_daily_budget_for_date("2026-02-03", stale)

    assert budget == DailyBudget(base_budget=999, rollover=1)
    assert [e.id for e in log.load()] == ["daily-2026-02-03"]
