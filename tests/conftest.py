"""
Shared fixtures: the default Tennis / Padel configuration and a lesson factory.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from sportledger.models.defaults import (
    PADEL_CENTER_ID,
    PADEL_GROUP_ID,
    PADEL_ID,
    SEDE_A_ID,
    TENNIS_ID,
    TENNIS_SINGLE_ID,
    default_settings,
)
from sportledger.models.lesson import Lesson


@pytest.fixture
def settings():
    return default_settings()


@pytest.fixture
def taxed_settings(settings):
    return replace(settings, tax_rate=Decimal("20"))


@pytest.fixture
def make_lesson():
    counter = {"n": 0}

    def _make(
        lesson_date=date(2024, 5, 3),
        sport_id=TENNIS_ID,
        lesson_type_id=TENNIS_SINGLE_ID,
        location_id=SEDE_A_ID,
        price="30",
        cost="10",
        invoiced=False,
        lesson_id=None,
    ):
        counter["n"] += 1
        return Lesson(
            id=lesson_id or f"lesson-{counter['n']}",
            date=lesson_date,
            sport_id=sport_id,
            lesson_type_id=lesson_type_id,
            location_id=location_id,
            price=Decimal(price),
            cost=Decimal(cost),
            invoiced=invoiced,
        )

    return _make


@pytest.fixture
def may_lessons(make_lesson):
    """Tennis Singola invoiced (profit 20) and Padel Gruppo not invoiced (profit 30)."""
    return [
        make_lesson(lesson_date=date(2024, 5, 3), price="30", cost="10", invoiced=True),
        make_lesson(
            lesson_date=date(2024, 5, 10),
            sport_id=PADEL_ID,
            lesson_type_id=PADEL_GROUP_ID,
            location_id=PADEL_CENTER_ID,
            price="55",
            cost="25",
            invoiced=False,
        ),
    ]
