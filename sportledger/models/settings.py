"""
Settings document: sports, their lesson types and locations, the price list
and the per-location cost matrix, plus the tax rate withheld on invoiced profit.

The persisted document may predate newer fields (tax rate, cost matrix), so
everything read from storage goes through ``normalize_settings`` first.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sportledger.utils.amounts import ZERO, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonTypeConfig:
    id: str
    name: str


@dataclass(frozen=True)
class LocationConfig:
    id: str
    name: str


@dataclass(frozen=True)
class SportSetting:
    id: str
    name: str
    lesson_types: tuple[LessonTypeConfig, ...] = ()
    locations: tuple[LocationConfig, ...] = ()
    prices: dict[str, Decimal] = field(default_factory=dict)             # {lesson_type_id: price}
    costs: dict[str, dict[str, Decimal]] = field(default_factory=dict)   # {location_id: {lesson_type_id: cost}}


@dataclass(frozen=True)
class Settings:
    sports: tuple[SportSetting, ...] = ()
    tax_rate: Decimal = ZERO


def _items(raw) -> list:
    return list(raw) if isinstance(raw, (list, tuple)) else []


def _mapping(raw) -> dict:
    return dict(raw) if isinstance(raw, dict) else {}


def _named_entries(raw, cls) -> tuple:
    out = []
    seen = set()
    for entry in _items(raw):
        if not isinstance(entry, dict):
            continue
        entry_id = str(entry.get("id") or "").strip()
        if not entry_id or entry_id in seen:
            continue
        seen.add(entry_id)
        out.append(cls(id=entry_id, name=str(entry.get("name") or "").strip()))
    return tuple(out)


def _normalize_sport(raw: dict) -> SportSetting:
    lesson_types = _named_entries(raw.get("lessonTypes", raw.get("lesson_types")), LessonTypeConfig)
    locations = _named_entries(raw.get("locations"), LocationConfig)

    prices = {str(k): to_decimal(v) for k, v in _mapping(raw.get("prices")).items()}

    costs = {}
    for loc_id, row in _mapping(raw.get("costs")).items():
        costs[str(loc_id)] = {str(k): to_decimal(v) for k, v in _mapping(row).items()}

    # Older documents carried a flat cost on each location
    for loc in _items(raw.get("locations")):
        if isinstance(loc, dict) and "cost" in loc and str(loc.get("id")) not in costs:
            flat = to_decimal(loc.get("cost"))
            costs[str(loc.get("id"))] = {lt.id: flat for lt in lesson_types}

    return SportSetting(
        id=str(raw.get("id") or "").strip(),
        name=str(raw.get("name") or "").strip(),
        lesson_types=lesson_types,
        locations=locations,
        prices=prices,
        costs=costs,
    )


def normalize_settings(raw) -> Settings:
    """Coerce whatever came back from storage into a Settings value. Never raises."""
    if isinstance(raw, Settings):
        return raw
    doc = _mapping(raw)

    sports = []
    seen = set()
    for entry in _items(doc.get("sports")):
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed sport entry: %r", entry)
            continue
        sport = _normalize_sport(entry)
        if not sport.id or sport.id in seen:
            logger.warning("Skipping sport without id or duplicated: %r", sport.id)
            continue
        seen.add(sport.id)
        sports.append(sport)

    tax_rate = to_decimal(doc.get("taxRate", doc.get("tax_rate")))
    return Settings(sports=tuple(sports), tax_rate=tax_rate)


def _num(x: Decimal):
    # JSON document keeps plain numbers
    return int(x) if x == x.to_integral_value() else float(x)


def settings_to_dict(settings: Settings) -> dict:
    return {
        "sports": [
            {
                "id": s.id,
                "name": s.name,
                "lessonTypes": [{"id": lt.id, "name": lt.name} for lt in s.lesson_types],
                "locations": [{"id": loc.id, "name": loc.name} for loc in s.locations],
                "prices": {k: _num(v) for k, v in s.prices.items()},
                "costs": {loc_id: {k: _num(v) for k, v in row.items()} for loc_id, row in s.costs.items()},
            }
            for s in settings.sports
        ],
        "taxRate": _num(settings.tax_rate),
    }
