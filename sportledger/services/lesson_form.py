from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional

from sportledger.models.lesson import Lesson
from sportledger.models.settings import Settings
from sportledger.services.resolver import lookup_cost, lookup_price, resolve_sport
from sportledger.utils.dates import now_utc_iso


def quote(settings: Settings, sport_id: str, lesson_type_id: str, location_id: str) -> tuple[Decimal, Decimal]:
    """Current (price, cost) for a sport / lesson type / location combination."""
    sport = resolve_sport(settings, sport_id)
    return lookup_price(sport, lesson_type_id), lookup_cost(sport, location_id, lesson_type_id)


def default_selection(settings: Settings, sport_id: Optional[str] = None) -> tuple[str, str, str]:
    """(sport, first lesson type, first location) for a new lesson; empty strings when missing."""
    sport = resolve_sport(settings, sport_id) if sport_id else None
    if sport is None:
        sport = settings.sports[0] if settings.sports else None
    if sport is None:
        return "", "", ""
    return (
        sport.id,
        sport.lesson_types[0].id if sport.lesson_types else "",
        sport.locations[0].id if sport.locations else "",
    )


def build_lesson(
    settings: Settings,
    *,
    lesson_date: date,
    sport_id: str,
    lesson_type_id: str,
    location_id: str,
    invoiced: bool,
    existing: Optional[Lesson] = None,
) -> Lesson:
    """
    New lesson, or the edited version of ``existing``.

    Price and cost are taken from the current settings, except when editing
    a lesson without touching sport, type or location: then the amounts
    stored on the lesson stay as they were.
    """
    if existing is None:
        price, cost = quote(settings, sport_id, lesson_type_id, location_id)
        return Lesson.create(
            lesson_date=lesson_date,
            sport_id=sport_id,
            lesson_type_id=lesson_type_id,
            location_id=location_id,
            price=price,
            cost=cost,
            invoiced=invoiced,
        )

    same_dimensions = (
        existing.sport_id == sport_id
        and existing.lesson_type_id == lesson_type_id
        and existing.location_id == location_id
    )
    if same_dimensions:
        price, cost = existing.price, existing.cost
    else:
        price, cost = quote(settings, sport_id, lesson_type_id, location_id)

    return replace(
        existing,
        date=lesson_date,
        sport_id=sport_id,
        lesson_type_id=lesson_type_id,
        location_id=location_id,
        price=price,
        cost=cost,
        invoiced=invoiced,
        updated_at_utc=now_utc_iso(),
    )
