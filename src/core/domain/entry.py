from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Entry:
    """
    A recorded spend. Immutable once created.
    """
    id: str
    date: str  # YYYY-MM-DD
    amount: float
    note: str
    timestamp: int  # epoch ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "amount": self.amount,
            "note": self.note,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        return cls(
            id=str(data["id"]),
            date=data["date"],
            amount=data["amount"],
            note=data.get("note", ""),
            timestamp=int(data["timestamp"]),
        )
