from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Dict, List, Tuple

from src.core.domain.budget_settings import DEFAULT_SETTINGS, BudgetSettings
from src.core.domain.challenge import Challenge
from src.core.domain.daily_budget import DailyBudget
from src.core.domain.entry import Entry
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
from src.core.replay.exceptions import ReplayIntegrityError


@dataclass
class FoldState:
    """
    Working accumulator of a single replay. Owned by one fold, never shared.
    """
    settings: BudgetSettings = DEFAULT_SETTINGS
    entries: List[Entry] = field(default_factory=list)
    daily_budgets: Dict[str, DailyBudget] = field(default_factory=dict)
    challenge_history: List[Tuple[EventKind, Challenge]] = field(default_factory=list)


class LedgerEventReducer(ABC):
    """
    Interface for applying one event to the fold accumulator.
    """

    @abstractmethod
    def reduce(self, state: FoldState, event: LedgerEvent) -> None:
        pass


class SettingsUpdatedReducer(LedgerEventReducer):
    def reduce(self, state: FoldState, event: SettingsUpdated) -> None:
        state.settings = state.settings.merge(event.settings_patch)


class EntryAddedReducer(LedgerEventReducer):
    def reduce(self, state: FoldState, event: EntryAdded) -> None:
        # No content dedup here; ids are deduplicated at append time
        state.entries.append(event.entry)


class DailyBudgetCreatedReducer(LedgerEventReducer):
    def reduce(self, state: FoldState, event: DailyBudgetCreated) -> None:
        state.daily_budgets[event.date] = DailyBudget(base_budget=event.base_budget, rollover=event.rollover)


class CustomRolloverSetReducer(LedgerEventReducer):
    def reduce(self, state: FoldState, event: CustomRolloverSet) -> None:
        existing = state.daily_budgets.get(event.date, DailyBudget(base_budget=0, rollover=0))
        state.daily_budgets[event.date] = replace(existing, rollover=event.rollover)


class ChallengeReducer(LedgerEventReducer):
    """
    Challenges are display history only; they never touch budget figures.
    """
    def reduce(self, state: FoldState, event: LedgerEvent) -> None:
        state.challenge_history.append((event.kind, event.challenge))


class CompositeLedgerReducer(LedgerEventReducer):
    """
    Registry and dispatcher keyed by event class. Every EventKind must have a reducer.
    """

    def __init__(self):
        challenge_reducer = ChallengeReducer()
        self._reducers: Dict[type, LedgerEventReducer] = {
            SettingsUpdated: SettingsUpdatedReducer(),
            EntryAdded: EntryAddedReducer(),
            DailyBudgetCreated: DailyBudgetCreatedReducer(),
            CustomRolloverSet: CustomRolloverSetReducer(),
            ChallengeCreated: challenge_reducer,
            ChallengeArchived: challenge_reducer,
        }

    def reduce(self, state: FoldState, event: LedgerEvent) -> None:
        reducer = self._reducers.get(type(event))
        if not reducer:
            raise ReplayIntegrityError(f"No reducer for event {event.id} of type {type(event).__name__}")

        reducer.reduce(state, event)
