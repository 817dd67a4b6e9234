"""
Unit tests for pricing a lesson from the current settings.
"""

from datetime import date
from decimal import Decimal

from sportledger.models.defaults import (
    PADEL_CENTER_ID,
    PADEL_DOUBLE_ID,
    PADEL_ID,
    SEDE_A_ID,
    SEDE_B_ID,
    TENNIS_GROUP_ID,
    TENNIS_ID,
    TENNIS_SINGLE_ID,
)
from sportledger.models.settings import Settings
from sportledger.services import settings_editor as ed
from sportledger.services.lesson_form import build_lesson, default_selection, quote


class TestQuote:
    def test_price_and_matrix_cost(self, settings):
        assert quote(settings, TENNIS_ID, TENNIS_GROUP_ID, SEDE_B_ID) == (Decimal("60"), Decimal("20"))

    def test_unknown_is_zero(self, settings):
        assert quote(settings, "nope", TENNIS_GROUP_ID, SEDE_B_ID) == (0, 0)


class TestDefaultSelection:
    def test_first_sport(self, settings):
        assert default_selection(settings) == (TENNIS_ID, TENNIS_SINGLE_ID, SEDE_A_ID)

    def test_given_sport(self, settings):
        assert default_selection(settings, PADEL_ID) == (PADEL_ID, PADEL_DOUBLE_ID, PADEL_CENTER_ID)

    def test_no_sports(self):
        assert default_selection(Settings()) == ("", "", "")


class TestBuildLesson:
    def test_new_lesson_is_priced(self, settings):
        lesson = build_lesson(
            settings,
            lesson_date=date(2024, 5, 3),
            sport_id=PADEL_ID,
            lesson_type_id=PADEL_DOUBLE_ID,
            location_id=PADEL_CENTER_ID,
            invoiced=True,
        )

        assert (lesson.price, lesson.cost, lesson.invoiced) == (Decimal("35"), Decimal("20"), True)

    def test_edit_keeps_stored_amounts(self, settings, make_lesson):
        existing = make_lesson(price="28", cost="9")
        repriced = ed.set_price(settings, TENNIS_ID, TENNIS_SINGLE_ID, "50")
        edited = build_lesson(
            repriced,
            lesson_date=date(2024, 5, 20),
            sport_id=existing.sport_id,
            lesson_type_id=existing.lesson_type_id,
            location_id=existing.location_id,
            invoiced=True,
            existing=existing,
        )

        assert edited.id == existing.id
        assert edited.date == date(2024, 5, 20)
        assert (edited.price, edited.cost) == (Decimal("28"), Decimal("9"))

    def test_edit_with_new_location_requotes(self, settings, make_lesson):
        existing = make_lesson(price="28", cost="9")
        edited = build_lesson(
            settings,
            lesson_date=existing.date,
            sport_id=TENNIS_ID,
            lesson_type_id=TENNIS_SINGLE_ID,
            location_id=SEDE_B_ID,
            invoiced=False,
            existing=existing,
        )

        assert (edited.price, edited.cost) == (Decimal("30"), Decimal("15"))
