"""
Id -> configuration lookups.

Lessons keep only ids; names, prices and costs live in Settings. A lesson may
point at something that has since been removed, so every lookup returns None
(or 0 for money) instead of raising, and display code falls back to "N/D".
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sportledger.config import ALL, NOT_AVAILABLE
from sportledger.models.lesson import Lesson
from sportledger.models.settings import LessonTypeConfig, LocationConfig, Settings, SportSetting
from sportledger.utils.amounts import ZERO


def resolve_sport(settings: Settings, sport_id: str) -> Optional[SportSetting]:
    for sport in settings.sports:
        if sport.id == sport_id:
            return sport
    return None


def resolve_lesson_type(sport: Optional[SportSetting], lesson_type_id: str) -> Optional[LessonTypeConfig]:
    if sport is None:
        return None
    for lt in sport.lesson_types:
        if lt.id == lesson_type_id:
            return lt
    return None


def resolve_location(sport: Optional[SportSetting], location_id: str) -> Optional[LocationConfig]:
    if sport is None:
        return None
    for loc in sport.locations:
        if loc.id == location_id:
            return loc
    return None


@dataclass(frozen=True)
class LessonLabels:
    sport: str
    lesson_type: str
    location: str


def lesson_labels(lesson: Lesson, settings: Settings) -> LessonLabels:
    sport = resolve_sport(settings, lesson.sport_id)
    lesson_type = resolve_lesson_type(sport, lesson.lesson_type_id)
    location = resolve_location(sport, lesson.location_id)
    return LessonLabels(
        sport=sport.name if sport else NOT_AVAILABLE,
        lesson_type=lesson_type.name if lesson_type else NOT_AVAILABLE,
        location=location.name if location else NOT_AVAILABLE,
    )


def lookup_price(sport: Optional[SportSetting], lesson_type_id: str) -> Decimal:
    if sport is None or not lesson_type_id:
        return ZERO
    return sport.prices.get(lesson_type_id, ZERO)


def lookup_cost(sport: Optional[SportSetting], location_id: str, lesson_type_id: str) -> Decimal:
    if sport is None or not location_id or not lesson_type_id:
        return ZERO
    return sport.costs.get(location_id, {}).get(lesson_type_id, ZERO)


def available_locations(settings: Settings, sport_id: str) -> list[LocationConfig]:
    if sport_id == ALL:
        by_id = {}
        for sport in settings.sports:
            for loc in sport.locations:
                # last one wins on name, first one keeps the position
                by_id[loc.id] = loc
        return list(by_id.values())
    sport = resolve_sport(settings, sport_id)
    return list(sport.locations) if sport else []
