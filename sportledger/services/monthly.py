from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from sportledger.models.lesson import Lesson
from sportledger.models.settings import Settings
from sportledger.services.aggregator import Breakdown, Totals, aggregate
from sportledger.services.lesson_filter import lessons_in_month


@dataclass(frozen=True)
class DashboardSummary:
    reference_date: date
    lessons: list[Lesson]      # newest first
    totals: Totals

    @property
    def total_lessons(self) -> int:
        return self.totals.total_count

    @property
    def total_income(self) -> Decimal:
        """Single-figure KPI, before tax."""
        return self.totals.total_overall_gross

    @property
    def total_income_net(self) -> Decimal:
        return self.totals.total_overall_net

    @property
    def total_invoiced_income(self) -> Decimal:
        return self.totals.total_invoiced_gross

    @property
    def total_invoiced_income_net(self) -> Decimal:
        return self.totals.total_invoiced_net

    @property
    def total_not_invoiced_income(self) -> Decimal:
        return self.totals.total_not_invoiced

    @property
    def lessons_by_sport(self) -> Breakdown:
        return self.totals.lessons_by_sport

    @property
    def lessons_by_lesson_type(self) -> Breakdown:
        return self.totals.lessons_by_lesson_type

    @property
    def lessons_by_location(self) -> Breakdown:
        return self.totals.lessons_by_location


def monthly_view(lessons: Iterable[Lesson], settings: Settings, reference_date: date) -> DashboardSummary:
    month = lessons_in_month(lessons, reference_date)
    return DashboardSummary(
        reference_date=reference_date,
        lessons=month,
        totals=aggregate(month, settings),
    )
