from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable

from sportledger.config import ALL
from sportledger.models.lesson import Lesson


class InvoiceStatus(Enum):
    ALL = "all"
    INVOICED = "invoiced"
    NOT_INVOICED = "not-invoiced"

    @classmethod
    def parse(cls, value) -> "InvoiceStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise ValueError(f"Unknown invoice status: {value!r}") from None

    def matches(self, invoiced: bool) -> bool:
        if self is InvoiceStatus.INVOICED:
            return invoiced
        if self is InvoiceStatus.NOT_INVOICED:
            return not invoiced
        return True


@dataclass(frozen=True)
class ReportFilter:
    start_date: date
    end_date: date
    invoice_status: InvoiceStatus = InvoiceStatus.ALL
    sport_id: str = ALL
    location_id: str = ALL

    def __post_init__(self):
        object.__setattr__(self, "invoice_status", InvoiceStatus.parse(self.invoice_status))

    def matches(self, lesson: Lesson) -> bool:
        # Lesson dates carry no time: start-of-day / end-of-day bounds reduce to date comparison
        if not (self.start_date <= lesson.date <= self.end_date):
            return False
        if not self.invoice_status.matches(lesson.invoiced):
            return False
        if self.sport_id != ALL and lesson.sport_id != self.sport_id:
            return False
        if self.location_id != ALL and lesson.location_id != self.location_id:
            return False
        return True


def filter_lessons(lessons: Iterable[Lesson], report_filter: ReportFilter) -> list[Lesson]:
    """Matching lessons, oldest first. sorted() is stable, so same-day lessons keep input order."""
    return sorted((l for l in lessons if report_filter.matches(l)), key=lambda l: l.date)


def lessons_in_month(lessons: Iterable[Lesson], reference_date: date) -> list[Lesson]:
    """Lessons in the calendar month of reference_date, newest first (on-screen order)."""
    return sorted(
        (l for l in lessons if l.date.year == reference_date.year and l.date.month == reference_date.month),
        key=lambda l: l.date,
        reverse=True,
    )
