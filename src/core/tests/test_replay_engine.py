import json
from datetime import datetime, timedelta, timezone

import pytest

from src.core.domain.budget_settings import DEFAULT_SETTINGS
from src.core.domain.challenge import Challenge
from src.core.domain.daily_budget import DailyBudget
from src.core.domain.entry import Entry
from src.core.ledger.event_log import EventLog
from src.core.ledger.ledger_event import (
    ChallengeArchived,
    ChallengeCreated,
    CustomRolloverSet,
    DailyBudgetCreated,
    EntryAdded,
    EventKind,
    LedgerEvent,
    SettingsUpdated,
)
from src.core.persistence.store import InMemoryStore
from src.core.replay.exceptions import ReplayIntegrityError
from src.core.replay.replay_engine import ReplayEngine
from src.core.time.frozen_clock import FrozenClock

# --- Helpers ---

FIXED_NOW = datetime(2026, 2, 9, 9, 0, 0, tzinfo=timezone.utc)


def ms(*args, tz=timezone.utc) -> int:
    return int(datetime(*args, tzinfo=tz).timestamp() * 1000)


def make_engine(clock=None):
    clock = clock or FrozenClock(FIXED_NOW)
    log = EventLog(InMemoryStore())
    return ReplayEngine(log, clock), log


def settings_event(event_id: str, ts: int, **patch) -> SettingsUpdated:
    return SettingsUpdated(id=event_id, timestamp=ts, settings_patch=patch)


def entry_event(entry_id: str, ts: int, date: str = "2026-01-15", amount: float = 100) -> EntryAdded:
    entry = Entry(id=entry_id, date=date, amount=amount, note="", timestamp=ts)
    return EntryAdded(id=f"entry-{entry_id}", timestamp=ts, entry=entry)


# --- Tests ---

def test_replay_returns_defaults_when_no_events():
    engine, _ = make_engine()
    result = engine.replay()

    assert result.settings == DEFAULT_SETTINGS
    assert result.entries == ()
    assert result.daily_budgets == {}
    assert result.events == ()


def test_replay_loads_from_log_when_events_omitted():
    engine, log = make_engine()
    log.append(settings_event("s-1", 1000, weekdayBudget=300))

    assert engine.replay().settings.weekday_budget == 300
    assert engine.replay([]).settings == DEFAULT_SETTINGS


def test_settings_patches_shallow_merge_in_timestamp_order():
    engine, _ = make_engine()
    events = [
        settings_event("later", 3000, weekdayBudget=200, customBudgets={"2026-02-10": 50}),
        settings_event("first", 1000, weekdayBudget=100, weekendBudget=150, customBudgets={"2026-02-09": 10}),
        settings_event("middle", 2000, currency="JPY"),
    ]

    settings = engine.replay(events).settings
    assert settings.weekday_budget == 200
    assert settings.weekend_budget == 150
    assert settings.currency == "JPY"
    # shallow merge: nested map is replaced, not merged
    assert settings.custom_budgets == {"2026-02-10": 50}


def test_replay_sorts_defensively_and_returns_sorted_input():
    engine, _ = make_engine()
    events = [entry_event("b", 2000), entry_event("a", 1000), entry_event("c", 3000)]

    result = engine.replay(events)
    assert [e.id for e in result.entries] == ["a", "b", "c"]
    assert [e.timestamp for e in result.events] == [1000, 2000, 3000]


def test_entries_are_not_deduplicated_by_content():
    engine, _ = make_engine()
    first = entry_event("a", 1000)
    twin = EntryAdded(id="entry-a-copy", timestamp=2000, entry=first.entry)

    assert len(engine.replay([first, twin]).entries) == 2


def test_daily_budget_last_writer_within_fold_wins():
    engine, _ = make_engine()
    events = [
        DailyBudgetCreated(id="d1", timestamp=1000, date="2026-02-09", base_budget=300, rollover=0),
        DailyBudgetCreated(id="d2", timestamp=2000, date="2026-02-09", base_budget=250, rollover=10),
    ]

    assert engine.replay(events).daily_budgets["2026-02-09"] == DailyBudget(250, 10)


def test_custom_rollover_updates_only_rollover():
    engine, _ = make_engine()
    events = [
        DailyBudgetCreated(id="d1", timestamp=1000, date="2026-02-09", base_budget=300, rollover=0),
        CustomRolloverSet(id="r1", timestamp=2000, date="2026-02-09", rollover=75, delta=75),
        CustomRolloverSet(id="r2", timestamp=3000, date="2026-02-12", rollover=-20, delta=-20, reason="overspent"),
    ]

    budgets = engine.replay(events).daily_budgets
    assert budgets["2026-02-09"] == DailyBudget(base_budget=300, rollover=75)
    assert budgets["2026-02-12"] == DailyBudget(base_budget=0, rollover=-20)


def test_challenge_events_are_history_only():
    engine, _ = make_engine()
    challenge = Challenge(id="c1", name="Save", purpose="Trip", start_date="2026-02-01", end_date="2026-02-28")
    events = [
        settings_event("s", 1000, weekdayBudget=300),
        ChallengeCreated(id="cc", timestamp=2000, challenge=challenge),
        ChallengeArchived(id="ca", timestamp=3000, challenge=challenge),
    ]

    result = engine.replay(events)
    assert result.daily_budgets == {}
    assert result.settings.weekday_budget == 300
    assert result.challenge_history == (
        (EventKind.CHALLENGE_CREATED, challenge),
        (EventKind.CHALLENGE_ARCHIVED, challenge),
    )


def test_replay_is_deterministic():
    engine, log = make_engine()
    log.append(settings_event("s-1", 1000, weekdayBudget=300, startDate="2026-02-01"))
    log.append(entry_event("a", 2000, date="2026-02-02", amount=42.5))
    log.append(DailyBudgetCreated(id="daily-2026-02-01", timestamp=3000, date="2026-02-01", base_budget=300, rollover=0))
    log.append(CustomRolloverSet(id="r", timestamp=4000, date="2026-02-02", rollover=10, delta=10))
    events = log.load()

    first = engine.replay(events)
    second = engine.replay(events)

    assert first == second
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


def test_same_day_events_are_included_by_through_date():
    engine, _ = make_engine()
    events = [
        settings_event("s-1", ms(2026, 1, 15, 12), startDate="2026-01-15", weekdayBudget=1500),
        settings_event("s-2", ms(2026, 1, 16, 12), weekdayBudget=2000),
    ]

    assert engine.replay(events, "2026-01-15").settings.weekday_budget == 1500
    assert engine.replay(events, "2026-01-16").settings.weekday_budget == 2000


def test_through_date_boundary_at_local_midnight():
    engine, _ = make_engine()
    events = [
        settings_event("start-of-day", ms(2026, 1, 15, 0, 0, 0), weekdayBudget=100),
        settings_event("last-ms", ms(2026, 1, 15, 23, 59, 59) + 999, weekendBudget=50),
        settings_event("next-midnight", ms(2026, 1, 16, 0, 0, 0), currency="EUR"),
    ]

    settings = engine.replay(events, "2026-01-15").settings
    assert settings.weekday_budget == 100
    assert settings.weekend_budget == 50
    assert settings.currency == "USD"

    assert engine.replay(events, "2026-01-14").settings == DEFAULT_SETTINGS
    assert engine.replay(events, "2026-01-16").settings.currency == "EUR"


def test_through_date_uses_clock_zone():
    tokyo = timezone(timedelta(hours=9))
    engine, _ = make_engine(FrozenClock(datetime(2026, 1, 20, 9, tzinfo=tokyo)))
    # 2026-01-15 23:30 UTC is already 2026-01-16 08:30 in Tokyo
    events = [settings_event("s", ms(2026, 1, 15, 23, 30), weekdayBudget=700)]

    assert engine.replay(events, "2026-01-15").settings == DEFAULT_SETTINGS
    assert engine.replay(events, "2026-01-16").settings.weekday_budget == 700
    assert engine.replay(events, "2026-01-15").events == tuple(events)


def test_unknown_event_type_is_rejected():
    engine, _ = make_engine()

    class RogueEvent(LedgerEvent):
        kind = EventKind.SETTINGS_UPDATED

    with pytest.raises(ReplayIntegrityError):
        engine.replay([RogueEvent(id="x", timestamp=1)])
