"""
Settings edits as pure functions: each takes a Settings and returns a new one.

The editor UI accumulates a draft by applying these one at a time and saves
the final value; nothing shared is ever mutated in place. Removing a sport,
lesson type or location that a lesson still points at raises SettingInUseError.
"""
import logging
import time
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Iterable, Optional

from sportledger.errors import InvalidAmountError, SettingInUseError
from sportledger.models.lesson import Lesson
from sportledger.models.settings import LessonTypeConfig, LocationConfig, Settings, SportSetting
from sportledger.utils.amounts import parse_amount

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{time.time_ns()}"


# -----------------------------
# In-use checks
# -----------------------------
def is_sport_in_use(sport_id: str, lessons: Iterable[Lesson]) -> bool:
    return any(l.sport_id == sport_id for l in lessons)


def is_lesson_type_in_use(sport_id: str, lesson_type_id: str, lessons: Iterable[Lesson]) -> bool:
    return any(l.sport_id == sport_id and l.lesson_type_id == lesson_type_id for l in lessons)


def is_location_in_use(sport_id: str, location_id: str, lessons: Iterable[Lesson]) -> bool:
    return any(l.sport_id == sport_id and l.location_id == location_id for l in lessons)


# -----------------------------
# Helpers
# -----------------------------
def _get_sport(settings: Settings, sport_id: str) -> SportSetting:
    for sport in settings.sports:
        if sport.id == sport_id:
            return sport
    raise KeyError(f"Unknown sport: {sport_id}")


def _replace_sport(settings: Settings, sport_id: str, fn: Callable[[SportSetting], SportSetting]) -> Settings:
    sport = _get_sport(settings, sport_id)
    updated = fn(sport)
    return replace(settings, sports=tuple(updated if s.id == sport_id else s for s in settings.sports))


def _require(entries, entry_id: str, kind: str):
    if not any(e.id == entry_id for e in entries):
        raise KeyError(f"Unknown {kind}: {entry_id}")


def _non_negative(value, what: str) -> Decimal:
    amount = parse_amount(value)
    if amount < 0:
        raise InvalidAmountError(f"{what} cannot be negative")
    return amount


# -----------------------------
# Sports
# -----------------------------
def add_sport(settings: Settings, name: str = "Nuovo Sport", sport_id: Optional[str] = None) -> Settings:
    sport = SportSetting(id=sport_id or _new_id("sport"), name=name.strip())
    return replace(settings, sports=settings.sports + (sport,))


def rename_sport(settings: Settings, sport_id: str, name: str) -> Settings:
    return _replace_sport(settings, sport_id, lambda s: replace(s, name=name.strip()))


def remove_sport(settings: Settings, sport_id: str, lessons: Iterable[Lesson] = ()) -> Settings:
    _get_sport(settings, sport_id)
    used = sum(1 for l in lessons if l.sport_id == sport_id)
    if used:
        raise SettingInUseError("sport", sport_id, used)
    logger.info("Removing sport %s", sport_id)
    return replace(settings, sports=tuple(s for s in settings.sports if s.id != sport_id))


# -----------------------------
# Lesson types
# -----------------------------
def add_lesson_type(
    settings: Settings, sport_id: str, name: str = "Nuovo Tipo", lesson_type_id: Optional[str] = None
) -> Settings:
    lt = LessonTypeConfig(id=lesson_type_id or _new_id("lt"), name=name.strip())
    return _replace_sport(settings, sport_id, lambda s: replace(s, lesson_types=s.lesson_types + (lt,)))


def rename_lesson_type(settings: Settings, sport_id: str, lesson_type_id: str, name: str) -> Settings:
    def _rename(s: SportSetting) -> SportSetting:
        _require(s.lesson_types, lesson_type_id, "lesson type")
        return replace(
            s,
            lesson_types=tuple(
                replace(lt, name=name.strip()) if lt.id == lesson_type_id else lt for lt in s.lesson_types
            ),
        )

    return _replace_sport(settings, sport_id, _rename)


def remove_lesson_type(
    settings: Settings, sport_id: str, lesson_type_id: str, lessons: Iterable[Lesson] = ()
) -> Settings:
    used = sum(1 for l in lessons if l.sport_id == sport_id and l.lesson_type_id == lesson_type_id)
    if used:
        raise SettingInUseError("lesson type", lesson_type_id, used)

    def _remove(s: SportSetting) -> SportSetting:
        _require(s.lesson_types, lesson_type_id, "lesson type")
        # drop its price and its column of the cost matrix too
        return replace(
            s,
            lesson_types=tuple(lt for lt in s.lesson_types if lt.id != lesson_type_id),
            prices={k: v for k, v in s.prices.items() if k != lesson_type_id},
            costs={
                loc_id: {k: v for k, v in row.items() if k != lesson_type_id}
                for loc_id, row in s.costs.items()
            },
        )

    return _replace_sport(settings, sport_id, _remove)


# -----------------------------
# Locations
# -----------------------------
def add_location(
    settings: Settings, sport_id: str, name: str = "Nuova Sede", location_id: Optional[str] = None
) -> Settings:
    loc = LocationConfig(id=location_id or _new_id("loc"), name=name.strip())
    return _replace_sport(settings, sport_id, lambda s: replace(s, locations=s.locations + (loc,)))


def rename_location(settings: Settings, sport_id: str, location_id: str, name: str) -> Settings:
    def _rename(s: SportSetting) -> SportSetting:
        _require(s.locations, location_id, "location")
        return replace(
            s,
            locations=tuple(replace(loc, name=name.strip()) if loc.id == location_id else loc for loc in s.locations),
        )

    return _replace_sport(settings, sport_id, _rename)


def remove_location(
    settings: Settings, sport_id: str, location_id: str, lessons: Iterable[Lesson] = ()
) -> Settings:
    used = sum(1 for l in lessons if l.sport_id == sport_id and l.location_id == location_id)
    if used:
        raise SettingInUseError("location", location_id, used)

    def _remove(s: SportSetting) -> SportSetting:
        _require(s.locations, location_id, "location")
        return replace(
            s,
            locations=tuple(loc for loc in s.locations if loc.id != location_id),
            costs={k: v for k, v in s.costs.items() if k != location_id},
        )

    return _replace_sport(settings, sport_id, _remove)


# -----------------------------
# Prices, costs, tax
# -----------------------------
def set_price(settings: Settings, sport_id: str, lesson_type_id: str, price) -> Settings:
    amount = _non_negative(price, "Price")

    def _set(s: SportSetting) -> SportSetting:
        _require(s.lesson_types, lesson_type_id, "lesson type")
        return replace(s, prices={**s.prices, lesson_type_id: amount})

    return _replace_sport(settings, sport_id, _set)


def set_cost(settings: Settings, sport_id: str, location_id: str, lesson_type_id: str, cost) -> Settings:
    amount = _non_negative(cost, "Cost")

    def _set(s: SportSetting) -> SportSetting:
        _require(s.locations, location_id, "location")
        _require(s.lesson_types, lesson_type_id, "lesson type")
        row = {**s.costs.get(location_id, {}), lesson_type_id: amount}
        return replace(s, costs={**s.costs, location_id: row})

    return _replace_sport(settings, sport_id, _set)


def set_tax_rate(settings: Settings, tax_rate) -> Settings:
    rate = parse_amount(tax_rate)
    if not (0 <= rate <= 100):
        raise InvalidAmountError("Tax rate must be between 0 and 100")
    return replace(settings, tax_rate=rate)


def apply_edits(settings: Settings, edits: Iterable[tuple[Callable[..., Settings], dict]]) -> Settings:
    """Fold a sequence of (operation, kwargs) over settings."""
    for operation, kwargs in edits:
        settings = operation(settings, **kwargs)
    return settings
