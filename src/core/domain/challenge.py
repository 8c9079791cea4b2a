from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Challenge:
    """
    Savings-goal snapshot. Carried through the ledger for display only;
    it never feeds the budget arithmetic.
    """
    id: str
    name: str
    purpose: str
    start_date: str  # YYYY-MM-DD
    end_date: str  # YYYY-MM-DD
    target_percentage: Optional[float] = None
    recurrence: Optional[str] = None  # "none", "daily", "weekly", "bi-weekly", "monthly"
    recurrence_end_date: Optional[str] = None
    status: Optional[str] = None  # "active", "completed", "cancelled", "failed"
    final_saved: Optional[float] = None
    final_total_budget: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "purpose": self.purpose,
            "startDate": self.start_date,
            "endDate": self.end_date,
        }
        optional = {
            "targetPercentage": self.target_percentage,
            "recurrence": self.recurrence,
            "recurrenceEndDate": self.recurrence_end_date,
            "status": self.status,
            "finalSaved": self.final_saved,
            "finalTotalBudget": self.final_total_budget,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Challenge":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            purpose=data.get("purpose", ""),
            start_date=data["startDate"],
            end_date=data["endDate"],
            target_percentage=data.get("targetPercentage"),
            recurrence=data.get("recurrence"),
            recurrence_end_date=data.get("recurrenceEndDate"),
            status=data.get("status"),
            final_saved=data.get("finalSaved"),
            final_total_budget=data.get("finalTotalBudget"),
        )
