from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Mapping, Optional, Sequence

from src.core.domain.budget_settings import BudgetSettings
from src.core.domain.daily_budget import DailyBudget, DailyFigures
from src.core.domain.entry import Entry
from src.core.time.calendar_dates import iter_dates, parse_iso


class StatsCalculator(ABC):
    """
    Pure interface: computes the applied figures of one date from settings and entries.
    `frozen` holds already-locked dates, which must be used as-is rather than recomputed.
    """

    @abstractmethod
    def compute_daily_figures(
            self,
            settings: BudgetSettings,
            entries: Sequence[Entry],
            date: str,
            frozen: Optional[Mapping[str, DailyBudget]] = None,
    ) -> DailyFigures:
        pass


class DefaultStatsCalculator(StatsCalculator):
    """
    Weekday/weekend rates with unspent balance carried forward day to day.
    Challenge adjustments are not applied.
    """

    def compute_daily_figures(
            self,
            settings: BudgetSettings,
            entries: Sequence[Entry],
            date: str,
            frozen: Optional[Mapping[str, DailyBudget]] = None,
    ) -> DailyFigures:
        frozen = frozen or {}

        spent_by_date: Dict[str, float] = defaultdict(int)
        for entry in entries:
            spent_by_date[entry.date] += entry.amount

        start = settings.start_date or (min(frozen) if frozen else date)
        if start > date:
            start = date

        carry = 0
        figures = None
        for day in iter_dates(start, date):
            locked = frozen.get(day)
            if locked is not None:
                base = locked.base_budget
                rollover = locked.rollover
            else:
                base = settings.custom_budgets.get(day)
                if base is None:
                    base = settings.budget_for_weekday(parse_iso(day).weekday())
                rollover = settings.custom_rollovers.get(day, carry)

            figures = DailyFigures(date=day, base_budget=base, rollover=rollover, spent=spent_by_date.get(day, 0))
            carry = figures.remaining

        return figures
