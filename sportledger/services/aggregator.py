"""
Financial totals and categorical breakdowns over a set of lessons.

Amounts are Decimal and accumulated unrounded; rounding to cents happens only
when a figure is formatted for display (``format_eur``).
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from sportledger.models.lesson import Lesson
from sportledger.models.settings import Settings
from sportledger.services.resolver import resolve_lesson_type, resolve_location, resolve_sport
from sportledger.utils.amounts import ZERO

HUNDRED = Decimal("100")


@dataclass
class Breakdown:
    """Metric grouped by display name, in first-encountered order."""

    values: dict = field(default_factory=dict)

    def add(self, key: str, amount) -> None:
        self.values[key] = self.values.get(key, 0) + amount

    def sorted_items(self) -> list[tuple]:
        # sorted() is stable: ties keep first-encountered order
        return sorted(self.values.items(), key=lambda kv: kv[1], reverse=True)

    def total(self):
        return sum(self.values.values(), 0)

    def __bool__(self) -> bool:
        return bool(self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class Totals:
    total_count: int
    total_invoiced_gross: Decimal
    total_not_invoiced: Decimal
    tax_rate: Decimal
    lessons_by_sport: Breakdown
    lessons_by_location: Breakdown
    lessons_by_lesson_type: Breakdown
    profit_by_sport: Breakdown
    profit_by_location: Breakdown
    profit_by_lesson_type: Breakdown

    @property
    def tax_amount(self) -> Decimal:
        return self.total_invoiced_gross * (self.tax_rate / HUNDRED)

    @property
    def total_invoiced_net(self) -> Decimal:
        return self.total_invoiced_gross * (1 - self.tax_rate / HUNDRED)

    @property
    def total_overall_net(self) -> Decimal:
        return self.total_invoiced_net + self.total_not_invoiced

    @property
    def total_overall_gross(self) -> Decimal:
        return self.total_invoiced_gross + self.total_not_invoiced

    def overall(self, include_net_details: bool) -> Decimal:
        return self.total_overall_net if include_net_details else self.total_overall_gross


def lesson_type_key(lesson_type_name: str, sport_name: str) -> str:
    # Same type name can exist under different sports
    return f"{lesson_type_name} ({sport_name})"


def aggregate(lessons: Iterable[Lesson], settings: Settings) -> Totals:
    count = 0
    invoiced_gross = ZERO
    not_invoiced = ZERO

    by_sport, by_location, by_type = Breakdown(), Breakdown(), Breakdown()
    profit_sport, profit_location, profit_type = Breakdown(), Breakdown(), Breakdown()

    for lesson in lessons:
        count += 1
        profit = lesson.profit
        if lesson.invoiced:
            invoiced_gross += profit
        else:
            not_invoiced += profit

        sport = resolve_sport(settings, lesson.sport_id)
        if sport is None:
            continue
        by_sport.add(sport.name, 1)
        profit_sport.add(sport.name, profit)

        location = resolve_location(sport, lesson.location_id)
        if location is not None:
            by_location.add(location.name, 1)
            profit_location.add(location.name, profit)

        lesson_type = resolve_lesson_type(sport, lesson.lesson_type_id)
        if lesson_type is not None:
            key = lesson_type_key(lesson_type.name, sport.name)
            by_type.add(key, 1)
            profit_type.add(key, profit)

    return Totals(
        total_count=count,
        total_invoiced_gross=invoiced_gross,
        total_not_invoiced=not_invoiced,
        tax_rate=settings.tax_rate,
        lessons_by_sport=by_sport,
        lessons_by_location=by_location,
        lessons_by_lesson_type=by_type,
        profit_by_sport=profit_sport,
        profit_by_location=profit_location,
        profit_by_lesson_type=profit_type,
    )
