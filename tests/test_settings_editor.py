"""
Unit tests for settings edits and the in-use guard.
"""

from decimal import Decimal

import pytest

from sportledger.errors import InvalidAmountError, SettingInUseError
from sportledger.models.defaults import (
    PADEL_CENTER_ID,
    PADEL_ID,
    SEDE_A_ID,
    SEDE_B_ID,
    TENNIS_DOUBLE_ID,
    TENNIS_ID,
    TENNIS_SINGLE_ID,
)
from sportledger.services import settings_editor as ed
from sportledger.services.resolver import resolve_sport


def _sport(settings, sport_id):
    return resolve_sport(settings, sport_id)


class TestImmutability:
    def test_original_untouched(self, settings):
        before = _sport(settings, TENNIS_ID)
        updated = ed.set_price(settings, TENNIS_ID, TENNIS_SINGLE_ID, "35")

        assert _sport(updated, TENNIS_ID).prices[TENNIS_SINGLE_ID] == Decimal("35")
        assert _sport(settings, TENNIS_ID) is before
        assert before.prices[TENNIS_SINGLE_ID] == Decimal("30")

    def test_apply_edits(self, settings):
        updated = ed.apply_edits(settings, [
            (ed.add_sport, {"name": " Squash ", "sport_id": "squash"}),
            (ed.add_lesson_type, {"sport_id": "squash", "name": "Base", "lesson_type_id": "sq-base"}),
            (ed.add_location, {"sport_id": "squash", "name": "Club", "location_id": "club"}),
            (ed.set_price, {"sport_id": "squash", "lesson_type_id": "sq-base", "price": "25,50"}),
            (ed.set_cost, {"sport_id": "squash", "location_id": "club", "lesson_type_id": "sq-base", "cost": 8}),
            (ed.set_tax_rate, {"tax_rate": "22"}),
        ])
        squash = _sport(updated, "squash")

        assert squash.name == "Squash"
        assert squash.prices == {"sq-base": Decimal("25.50")}
        assert squash.costs == {"club": {"sq-base": Decimal("8")}}
        assert updated.tax_rate == Decimal("22")
        assert len(settings.sports) == 2


class TestAddAndRename:
    def test_generated_ids(self, settings):
        updated = ed.add_location(ed.add_lesson_type(ed.add_sport(settings), TENNIS_ID), TENNIS_ID)

        assert updated.sports[-1].id.startswith("sport-")
        assert updated.sports[-1].name == "Nuovo Sport"
        assert _sport(updated, TENNIS_ID).lesson_types[-1].id.startswith("lt-")
        assert _sport(updated, TENNIS_ID).locations[-1].id.startswith("loc-")

    def test_renames(self, settings):
        updated = ed.rename_sport(settings, PADEL_ID, "Padel Pro")
        updated = ed.rename_lesson_type(updated, TENNIS_ID, TENNIS_DOUBLE_ID, "Coppia")
        updated = ed.rename_location(updated, TENNIS_ID, SEDE_B_ID, "Sede B")

        assert _sport(updated, PADEL_ID).name == "Padel Pro"
        assert _sport(updated, TENNIS_ID).lesson_types[1].name == "Coppia"
        assert _sport(updated, TENNIS_ID).locations[1].name == "Sede B"

    def test_unknown_ids(self, settings):
        with pytest.raises(KeyError):
            ed.rename_sport(settings, "nope", "x")
        with pytest.raises(KeyError):
            ed.rename_lesson_type(settings, TENNIS_ID, "nope", "x")
        with pytest.raises(KeyError):
            ed.set_cost(settings, TENNIS_ID, PADEL_CENTER_ID, TENNIS_SINGLE_ID, 5)


class TestRemove:
    def test_remove_lesson_type_cascades(self, settings):
        updated = ed.remove_lesson_type(settings, TENNIS_ID, TENNIS_DOUBLE_ID)
        tennis = _sport(updated, TENNIS_ID)

        assert TENNIS_DOUBLE_ID not in [lt.id for lt in tennis.lesson_types]
        assert TENNIS_DOUBLE_ID not in tennis.prices
        assert all(TENNIS_DOUBLE_ID not in row for row in tennis.costs.values())

    def test_remove_location_drops_cost_row(self, settings):
        tennis = _sport(ed.remove_location(settings, TENNIS_ID, SEDE_B_ID), TENNIS_ID)

        assert [loc.id for loc in tennis.locations] == [SEDE_A_ID]
        assert SEDE_B_ID not in tennis.costs

    def test_remove_sport(self, settings):
        assert [s.id for s in ed.remove_sport(settings, PADEL_ID).sports] == [TENNIS_ID]

    def test_in_use_guard(self, settings, make_lesson):
        lessons = [make_lesson(), make_lesson()]

        with pytest.raises(SettingInUseError) as exc:
            ed.remove_sport(settings, TENNIS_ID, lessons)
        assert exc.value.lesson_count == 2
        assert exc.value.kind == "sport"

        with pytest.raises(SettingInUseError):
            ed.remove_lesson_type(settings, TENNIS_ID, TENNIS_SINGLE_ID, lessons)
        with pytest.raises(SettingInUseError):
            ed.remove_location(settings, TENNIS_ID, SEDE_A_ID, lessons)

        # the same ids under another sport are not "in use"
        assert ed.remove_sport(settings, PADEL_ID, lessons)

    def test_predicates(self, make_lesson):
        lessons = [make_lesson()]

        assert ed.is_sport_in_use(TENNIS_ID, lessons)
        assert not ed.is_sport_in_use(PADEL_ID, lessons)
        assert ed.is_lesson_type_in_use(TENNIS_ID, TENNIS_SINGLE_ID, lessons)
        assert not ed.is_lesson_type_in_use(PADEL_ID, TENNIS_SINGLE_ID, lessons)
        assert ed.is_location_in_use(TENNIS_ID, SEDE_A_ID, lessons)
        assert not ed.is_location_in_use(TENNIS_ID, SEDE_B_ID, lessons)


class TestAmounts:
    def test_negative_rejected(self, settings):
        with pytest.raises(InvalidAmountError):
            ed.set_price(settings, TENNIS_ID, TENNIS_SINGLE_ID, "-1")
        with pytest.raises(InvalidAmountError):
            ed.set_cost(settings, TENNIS_ID, SEDE_A_ID, TENNIS_SINGLE_ID, -0.5)

    def test_unparseable_rejected(self, settings):
        with pytest.raises(InvalidAmountError):
            ed.set_price(settings, TENNIS_ID, TENNIS_SINGLE_ID, "trenta")

    @pytest.mark.parametrize("rate", ["-1", "100.01", "150"])
    def test_tax_rate_bounds(self, settings, rate):
        with pytest.raises(InvalidAmountError):
            ed.set_tax_rate(settings, rate)

    @pytest.mark.parametrize("rate,expected", [("0", Decimal("0")), ("100", Decimal("100")), ("20,5", Decimal("20.5"))])
    def test_tax_rate_accepted(self, settings, rate, expected):
        assert ed.set_tax_rate(settings, rate).tax_rate == expected

    def test_cost_for_new_location_creates_row(self, settings):
        updated = ed.add_location(settings, PADEL_ID, "Nuovo Campo", location_id="campo")
        updated = ed.set_cost(updated, PADEL_ID, "campo", "p-group", "12")

        assert _sport(updated, PADEL_ID).costs["campo"] == {"p-group": Decimal("12")}
