from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class DailyBudget:
    """
    Applied opening figures of a calendar day.
    Once frozen for a past date it is never recomputed.
    """
    base_budget: float
    rollover: float

    def to_dict(self) -> Dict[str, Any]:
        return {"baseBudget": self.base_budget, "rollover": self.rollover}


@dataclass(frozen=True)
class DailyFigures:
    date: str
    base_budget: float
    rollover: float
    spent: float = 0

    @property
    def total_available(self) -> float:
        return self.base_budget + self.rollover

    @property
    def remaining(self) -> float:
        return self.total_available - self.spent

    def as_daily_budget(self) -> DailyBudget:
        return DailyBudget(base_budget=self.base_budget, rollover=self.rollover)
