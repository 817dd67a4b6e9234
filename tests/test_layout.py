"""
Unit tests for report composition: page flow, section order and footers.
"""

import random
from datetime import date, timedelta

import pytest

from sportledger.reports.layout import (
    CONTENT_LIMIT,
    FOOTER,
    NOTICE,
    SECTION_TITLE,
    STRIPED,
    SUMMARY,
    TABLE_HEADER,
    TABLE_ROW,
    TITLE,
    TOP_MARGIN,
    PageFlow,
    ReportOptions,
    ReportPeriod,
    compose,
    report_filename,
    summary_lines,
)
from sportledger.services.aggregator import aggregate

MAY = ReportPeriod(date(2024, 5, 1), date(2024, 5, 31))


def _lesson_header_pages(document):
    return [
        p.number for p in document.pages
        for b in p.blocks if b.kind == TABLE_HEADER and b.data.style == STRIPED
    ]


class TestPageFlow:
    def test_random_blocks_never_cross_limit(self):
        rng = random.Random(1234)
        flow = PageFlow()
        for _ in range(500):
            flow.place("x", rng.uniform(1, 60), gap=rng.choice([0, 8, 15]), keep_with=rng.choice([0, 17]))

        for page in flow.pages:
            tops = [b.top for b in page.blocks]
            assert tops == sorted(tops)
            for block in page.blocks:
                assert block.top >= TOP_MARGIN
                assert block.bottom <= CONTENT_LIMIT

    def test_new_page_resets_cursor_and_drops_gap(self):
        flow = PageFlow(start=260)
        block = flow.place("x", 20, gap=15)

        assert len(flow.pages) == 2
        assert block.top == TOP_MARGIN

    def test_block_taller_than_page_raises(self):
        with pytest.raises(ValueError):
            PageFlow().place("x", CONTENT_LIMIT)

    def test_keep_with_moves_block_to_next_page(self):
        flow = PageFlow(start=250)
        flow.place("title", 8, keep_with=20)

        assert flow.pages[0].blocks == []
        assert flow.pages[1].blocks[0].kind == "title"


class TestCompose:
    @pytest.fixture
    def many_lessons(self, make_lesson):
        start = date(2024, 5, 1)
        return [make_lesson(lesson_date=start + timedelta(days=i % 31), invoiced=i % 3 == 0) for i in range(80)]

    def test_header_then_period(self, may_lessons, settings):
        doc = compose(may_lessons, settings, MAY)
        first = doc.pages[0].blocks

        assert first[0].kind == TITLE
        assert first[0].data == "Resoconto Lezioni"
        assert first[1].data == "Periodo: dal 01/05/2024 al 31/05/2024"

    def test_lesson_rows_in_input_order(self, may_lessons, taxed_settings):
        doc = compose(may_lessons, taxed_settings, MAY)
        rows = [b.data.cells for b in doc.blocks(TABLE_ROW) if b.data.style == STRIPED]

        assert rows == [
            ("03/05/2024", "Tennis", "Singola", "Sede Principale A", "Fatturata", "€ 20.00"),
            ("10/05/2024", "Padel", "Lezione Gruppo", "Padel Center", "Non Fatt.", "€ 30.00"),
        ]

    def test_no_block_crosses_limit(self, many_lessons, settings):
        doc = compose(many_lessons, settings, MAY)

        assert doc.page_count > 1
        for page in doc.pages:
            for block in page.content_blocks:
                assert block.bottom <= CONTENT_LIMIT

    def test_lesson_header_repeated_on_each_page(self, many_lessons, settings):
        doc = compose(many_lessons, settings, MAY)
        pages_with_rows = sorted({
            p.number for p in doc.pages
            for b in p.blocks if b.kind == TABLE_ROW and b.data.style == STRIPED
        })

        assert len(pages_with_rows) > 1
        assert _lesson_header_pages(doc) == pages_with_rows
        for page in doc.pages:
            if page.number in pages_with_rows:
                first = next(b for b in page.blocks if b.kind in (TABLE_HEADER, TABLE_ROW) and b.data.style == STRIPED)
                assert first.kind == TABLE_HEADER

    def test_footers_on_every_page(self, many_lessons, settings):
        doc = compose(many_lessons, settings, MAY)
        n = doc.page_count

        for page in doc.pages:
            footers = [b for b in page.blocks if b.kind == FOOTER]
            assert len(footers) == 1
            assert footers[0].data == f"Pagina {page.number} di {n}"

    def test_breakdown_order(self, may_lessons, settings):
        doc = compose(may_lessons, settings, MAY)
        titles = []
        for b in doc.blocks(TABLE_HEADER):
            if b.data.style != STRIPED and b.data.columns[0].title not in titles:
                titles.append(b.data.columns[0].title)

        assert titles == [
            "Lezioni per Sport",
            "Lezioni per Sede",
            "Lezioni per Tipo",
            "Utile per Sport",
            "Utile per Sede",
            "Utile per Tipo",
        ]

    def test_section_title_never_orphaned(self, many_lessons, settings):
        for n in range(len(many_lessons)):
            doc = compose(many_lessons[:n + 1], settings, MAY)
            section = doc.blocks(SECTION_TITLE)[0]
            page = next(p for p in doc.pages if section in p.blocks)
            after = page.blocks[page.blocks.index(section) + 1]

            assert after.kind == TABLE_HEADER

    def test_dangling_sport(self, make_lesson, settings):
        lessons = [make_lesson(), make_lesson(sport_id="gone", lesson_date=date(2024, 5, 4))]
        doc = compose(lessons, settings, MAY)
        rows = [b.data.cells for b in doc.blocks(TABLE_ROW) if b.data.style == STRIPED]
        breakdown_cells = [b.data.cells[0] for b in doc.blocks(TABLE_ROW) if b.data.style != STRIPED]

        assert rows[1][1:4] == ("N/D", "N/D", "N/D")
        assert "N/D" not in breakdown_cells


class TestEmptyReport:
    def test_notice_and_no_summary(self, settings):
        doc = compose([], settings, MAY)

        assert doc.page_count == 1
        assert [b.data for b in doc.blocks(NOTICE)] == ["Nessuna lezione trovata per i criteri selezionati."]
        assert doc.blocks(SUMMARY) == []
        assert doc.blocks(SECTION_TITLE) == []
        assert len(doc.blocks(TABLE_HEADER)) == 1
        assert doc.blocks(TABLE_ROW) == []
        assert doc.blocks(FOOTER)[0].data == "Pagina 1 di 1"


class TestSummary:
    def _labels(self, lines):
        return {l.label: l.value for l in lines}

    def test_with_net_details(self, may_lessons, taxed_settings):
        lines = self._labels(summary_lines(aggregate(may_lessons, taxed_settings), include_net_details=True))

        assert lines["Fatturato Lordo (Fatturato):"] == "€ 20.00"
        assert lines["Tasse / Ritenuta applicata (20%):"] == "- € 4.00"
        assert lines["Fatturato Netto:"] == "€ 16.00"
        assert lines["Utile Non Fatturato:"] == "€ 30.00"
        assert lines["Totale Netto Complessivo:"] == "€ 46.00"

    def test_gross_only(self, may_lessons, taxed_settings):
        lines = self._labels(summary_lines(aggregate(may_lessons, taxed_settings), include_net_details=False))

        assert "Fatturato Netto:" not in lines
        assert lines["Totale Complessivo (Lordo):"] == "€ 50.00"

    def test_option_reaches_document(self, may_lessons, taxed_settings):
        doc = compose(may_lessons, taxed_settings, MAY, ReportOptions(include_net_details=False))
        labels = [l.label for l in doc.blocks(SUMMARY)[0].data]

        assert "Totale Complessivo (Lordo):" in labels


class TestFilename:
    def test_iso_dates(self):
        assert report_filename(MAY) == "Resoconto_Lezioni_2024-05-01_2024-05-31.pdf"
