import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple

from src.core.domain.challenge import Challenge

logger = logging.getLogger(__name__)


def _check_number(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {value!r}")


# camelCase wire name -> attribute name
_FIELD_NAMES = {
    "weekdayBudget": "weekday_budget",
    "weekendBudget": "weekend_budget",
    "currency": "currency",
    "alarmThreshold": "alarm_threshold",
    "startDate": "start_date",
    "endDate": "end_date",
    "logo": "logo",
    "customBudgets": "custom_budgets",
    "customRollovers": "custom_rollovers",
    "userName": "user_name",
    "activeChallenge": "active_challenge",
    "pastChallenges": "past_challenges",
}


@dataclass(frozen=True)
class BudgetSettings:
    """
    Derived user configuration.
    Never stored on its own: it is the left fold of every SETTINGS_UPDATED
    patch onto DEFAULT_SETTINGS.
    """
    weekday_budget: float = 0
    weekend_budget: float = 0
    currency: str = "USD"
    alarm_threshold: float = 0.8  # 0.0 to 1.0
    start_date: Optional[str] = None  # YYYY-MM-DD
    end_date: Optional[str] = None
    logo: Optional[str] = None  # base64 image
    custom_budgets: Dict[str, float] = field(default_factory=dict)  # date -> base budget
    custom_rollovers: Dict[str, float] = field(default_factory=dict)  # date -> opening adjustment
    user_name: str = ""
    active_challenge: Optional[Challenge] = None
    past_challenges: Tuple[Challenge, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekdayBudget": self.weekday_budget,
            "weekendBudget": self.weekend_budget,
            "currency": self.currency,
            "alarmThreshold": self.alarm_threshold,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "logo": self.logo,
            "customBudgets": dict(self.custom_budgets),
            "customRollovers": dict(self.custom_rollovers),
            "userName": self.user_name,
            "activeChallenge": self.active_challenge.to_dict() if self.active_challenge else None,
            "pastChallenges": [c.to_dict() for c in self.past_challenges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BudgetSettings":
        """
        Raises TypeError/KeyError/ValueError for values that could not be folded
        into later settings or budget arithmetic.
        """
        values: Dict[str, Any] = {}
        for wire_name, value in data.items():
            attr = _FIELD_NAMES.get(wire_name)
            if attr is None:
                logger.warning(f"Ignoring unknown settings key: {wire_name}")
                continue
            values[attr] = value

        for attr in ("weekday_budget", "weekend_budget", "alarm_threshold"):
            if attr in values:
                _check_number(attr, values[attr])

        for attr in ("start_date", "end_date"):
            if values.get(attr) is not None:
                date.fromisoformat(values[attr])

        for attr in ("custom_budgets", "custom_rollovers"):
            overrides = values.get(attr)
            if overrides is None:
                values.pop(attr, None)
                continue
            if not isinstance(overrides, dict):
                raise TypeError(f"{attr} must be an object, got {type(overrides).__name__}")
            for day, amount in overrides.items():
                _check_number(f"{attr}[{day}]", amount)
            values[attr] = dict(overrides)

        active = values.get("active_challenge")
        if isinstance(active, dict):
            values["active_challenge"] = Challenge.from_dict(active)
        elif active is not None and not isinstance(active, Challenge):
            raise TypeError(f"active_challenge must be an object, got {type(active).__name__}")

        past = values.get("past_challenges")
        if past is None:
            values.pop("past_challenges", None)
        elif not isinstance(past, (list, tuple)):
            raise TypeError(f"past_challenges must be a list, got {type(past).__name__}")
        else:
            values["past_challenges"] = tuple(
                c if isinstance(c, Challenge) else Challenge.from_dict(c) for c in past
            )

        return cls(**values)

    def merge(self, patch: Dict[str, Any]) -> "BudgetSettings":
        """
        Shallow merge: every top-level key in `patch` replaces the current value.
        """
        merged = self.to_dict()
        merged.update(patch)
        return BudgetSettings.from_dict(merged)

    def budget_for_weekday(self, weekday: int) -> float:
        # Saturday = 5, Sunday = 6
        return self.weekend_budget if weekday >= 5 else self.weekday_budget


DEFAULT_SETTINGS = BudgetSettings()
