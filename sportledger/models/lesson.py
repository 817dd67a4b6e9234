import uuid
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from sportledger.utils.amounts import to_decimal
from sportledger.utils.dates import now_utc_iso, parse_iso_date

_TRUE_STRINGS = {"true", "1", "yes", "si", "sì", "x"}


def parse_bool(x) -> bool:
    if isinstance(x, bool):
        return x
    if isinstance(x, (int, float)):
        return x != 0
    return str(x or "").strip().lower() in _TRUE_STRINGS


# -----------------------------
# Data model
# -----------------------------
@dataclass(frozen=True)
class Lesson:
    id: str
    date: date
    sport_id: str
    lesson_type_id: str
    location_id: str
    price: Decimal
    cost: Decimal
    invoiced: bool = False
    created_at_utc: str = ""
    updated_at_utc: str = ""

    @property
    def profit(self) -> Decimal:
        return self.price - self.cost

    @staticmethod
    def create(
        *,
        lesson_date: date,
        sport_id: str,
        lesson_type_id: str,
        location_id: str,
        price: Decimal,
        cost: Decimal,
        invoiced: bool = False,
        lesson_id: Optional[str] = None,
    ) -> "Lesson":
        now_utc = now_utc_iso()
        return Lesson(
            id=lesson_id or str(uuid.uuid4()),
            date=lesson_date,
            sport_id=sport_id,
            lesson_type_id=lesson_type_id,
            location_id=location_id,
            price=Decimal(price),
            cost=Decimal(cost),
            invoiced=bool(invoiced),
            created_at_utc=now_utc,
            updated_at_utc=now_utc,
        )

    def with_invoiced(self, invoiced: bool) -> "Lesson":
        return replace(self, invoiced=invoiced, updated_at_utc=now_utc_iso())

    @staticmethod
    def from_record(record: dict) -> Optional["Lesson"]:
        """
        Build a Lesson from a stored row / document.
        Rows without an id or a readable date are skipped (None).
        """
        lesson_id = str(record.get("lesson_id") or record.get("id") or "").strip()
        d = parse_iso_date(record.get("date"))
        if not lesson_id or d is None:
            return None
        return Lesson(
            id=lesson_id,
            date=d,
            sport_id=str(record.get("sport_id", record.get("sportId", "")) or "").strip(),
            lesson_type_id=str(record.get("lesson_type_id", record.get("lessonTypeId", "")) or "").strip(),
            location_id=str(record.get("location_id", record.get("locationId", "")) or "").strip(),
            price=to_decimal(record.get("price")),
            cost=to_decimal(record.get("cost")),
            invoiced=parse_bool(record.get("invoiced")),
            created_at_utc=str(record.get("created_at_utc", "") or ""),
            updated_at_utc=str(record.get("updated_at_utc", "") or ""),
        )

    def to_record(self) -> dict:
        return {
            "lesson_id": self.id,
            "date": self.date.isoformat(),
            "sport_id": self.sport_id,
            "lesson_type_id": self.lesson_type_id,
            "location_id": self.location_id,
            "price": str(self.price),
            "cost": str(self.cost),
            "invoiced": "TRUE" if self.invoiced else "FALSE",
            "created_at_utc": self.created_at_utc,
            "updated_at_utc": self.updated_at_utc,
        }
