"""
Page layout for the lessons report ("Resoconto Lezioni").

Composition is split from drawing: ``compose`` walks the report sections with
a vertical cursor and produces a ``Document`` made of pages of positioned
blocks (millimetres, measured from the top edge of an A4 page). The PDF
renderer only draws what is laid out here.

Section order:

    header -> lesson table -> (empty notice | summary -> breakdown tables) -> footers

Before each block the flow checks that it fits above the printable limit;
if not, a new page starts and the cursor goes back to the top margin. Page
numbers ("Pagina i di N") are stamped in a second pass, once N is known.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Sequence

from sportledger.models.lesson import Lesson
from sportledger.models.settings import Settings
from sportledger.services.aggregator import Breakdown, Totals, aggregate
from sportledger.services.resolver import lesson_labels
from sportledger.utils.amounts import format_eur
from sportledger.utils.dates import format_it_date

PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
LEFT = 14.0
RIGHT = 196.0
CONTENT_WIDTH = RIGHT - LEFT
TOP_MARGIN = 20.0
CONTENT_LIMIT = 270.0
FOOTER_TOP = PAGE_HEIGHT - 14.0
TABLE_START = 40.0

TITLE_HEIGHT = 10.0
PERIOD_HEIGHT = 7.0
HEADER_ROW_HEIGHT = 9.0
ROW_HEIGHT = 8.0
SECTION_TITLE_HEIGHT = 8.0
NOTICE_HEIGHT = 7.0
SECTION_GAP = 15.0
TABLE_GAP = 8.0
FOOTER_HEIGHT = 6.0

REPORT_TITLE = "Resoconto Lezioni"
SUMMARY_TITLE = "Riepilogo Finanziario"
BREAKDOWN_SECTION_TITLE = "Riepiloghi Dettagliati"
EMPTY_NOTICE = "Nessuna lezione trovata per i criteri selezionati."

LESSON_COLUMNS = (
    # (title, width, align)
    ("Data", 24.0, "left"),
    ("Sport", 28.0, "left"),
    ("Tipo Lezione", 40.0, "left"),
    ("Sede", 42.0, "left"),
    ("Stato", 24.0, "left"),
    ("Utile", 24.0, "right"),
)
BREAKDOWN_WIDTHS = (130.0, 52.0)

# kinds of blocks a page can hold
TITLE = "title"
PERIOD = "period"
TABLE_HEADER = "table_header"
TABLE_ROW = "table_row"
NOTICE = "notice"
SUMMARY = "summary"
SECTION_TITLE = "section_title"
FOOTER = "footer"

# table styles
STRIPED = "striped"
COUNT_GRID = "count_grid"
PROFIT_GRID = "profit_grid"


@dataclass(frozen=True)
class ReportPeriod:
    start: date
    end: date


@dataclass(frozen=True)
class ReportOptions:
    include_net_details: bool = True


@dataclass(frozen=True)
class Block:
    kind: str
    top: float
    height: float
    data: Any = None

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass
class Page:
    number: int
    blocks: list[Block] = field(default_factory=list)

    @property
    def content_blocks(self) -> list[Block]:
        return [b for b in self.blocks if b.kind != FOOTER]


@dataclass
class Document:
    title: str
    period: ReportPeriod
    pages: list[Page]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def blocks(self, kind: Optional[str] = None) -> list[Block]:
        return [b for p in self.pages for b in p.blocks if kind is None or b.kind == kind]


@dataclass(frozen=True)
class Column:
    title: str
    width: float
    align: str = "left"


@dataclass(frozen=True)
class TableData:
    style: str
    columns: tuple[Column, ...]
    cells: tuple[str, ...] = ()
    row_index: int = -1


@dataclass(frozen=True)
class SummaryLine:
    label: str
    value: str = ""
    style: str = "normal"      # normal | muted | bold | total | heading | rule
    step: float = 7.0          # space taken below the line's top


# -----------------------------
# Page flow
# -----------------------------
class PageFlow:
    """
    Vertical cursor over a sequence of pages.

    ``place`` puts a block at the cursor, starting a new page first when the
    block (plus anything it must stay with) would cross ``limit``.
    """

    def __init__(self, top_margin: float = TOP_MARGIN, limit: float = CONTENT_LIMIT, start: Optional[float] = None):
        if limit <= top_margin:
            raise ValueError("limit must be below the top margin")
        self.top_margin = top_margin
        self.limit = limit
        self.pages = [Page(number=1)]
        self.cursor = top_margin if start is None else start

    @property
    def page(self) -> Page:
        return self.pages[-1]

    def new_page(self) -> None:
        self.pages.append(Page(number=len(self.pages) + 1))
        self.cursor = self.top_margin

    def fits(self, height: float) -> bool:
        return self.cursor + height <= self.limit

    def place(self, kind: str, height: float, data: Any = None, gap: float = 0.0, keep_with: float = 0.0) -> Block:
        if height > self.limit - self.top_margin:
            raise ValueError(f"Block of height {height} cannot fit on a page")
        if not self.fits(gap + height + keep_with):
            self.new_page()
            gap = 0.0
        self.cursor += gap
        block = Block(kind=kind, top=self.cursor, height=height, data=data)
        self.page.blocks.append(block)
        self.cursor += height
        return block

    def table(self, style: str, columns: Sequence[Column], rows: Sequence[Sequence[str]], gap: float = 0.0) -> None:
        """Header kept with the first row and repeated on every page the table spans."""
        columns = tuple(columns)
        header = TableData(style=style, columns=columns)
        self.place(TABLE_HEADER, HEADER_ROW_HEIGHT, header, gap=gap, keep_with=ROW_HEIGHT if rows else 0.0)
        for i, cells in enumerate(rows):
            if not self.fits(ROW_HEIGHT):
                self.new_page()
                self.place(TABLE_HEADER, HEADER_ROW_HEIGHT, header)
            self.place(TABLE_ROW, ROW_HEIGHT, TableData(style=style, columns=columns, cells=tuple(cells), row_index=i))


# -----------------------------
# Sections
# -----------------------------
def lesson_rows(lessons: Sequence[Lesson], settings: Settings) -> list[tuple[str, ...]]:
    rows = []
    for lesson in lessons:
        labels = lesson_labels(lesson, settings)
        rows.append((
            format_it_date(lesson.date),
            labels.sport,
            labels.lesson_type,
            labels.location,
            "Fatturata" if lesson.invoiced else "Non Fatt.",
            format_eur(lesson.profit),
        ))
    return rows


def summary_lines(totals: Totals, include_net_details: bool) -> list[SummaryLine]:
    lines = [
        SummaryLine(SUMMARY_TITLE, style="heading", step=8.0),
        SummaryLine("Fatturato Lordo (Fatturato):", format_eur(totals.total_invoiced_gross)),
    ]
    if include_net_details:
        rate = totals.tax_rate.normalize()
        lines.append(SummaryLine(f"Tasse / Ritenuta applicata ({rate:f}%):", f"- {format_eur(totals.tax_amount)}", style="muted"))
        lines.append(SummaryLine("Fatturato Netto:", format_eur(totals.total_invoiced_net), style="bold", step=10.0))
    else:
        lines[-1] = SummaryLine(lines[-1].label, lines[-1].value, step=10.0)
    lines.append(SummaryLine("Utile Non Fatturato:", format_eur(totals.total_not_invoiced), step=2.0))
    lines.append(SummaryLine("", style="rule", step=7.0))
    label = "Totale Netto Complessivo:" if include_net_details else "Totale Complessivo (Lordo):"
    lines.append(SummaryLine(label, format_eur(totals.overall(include_net_details)), style="total", step=6.0))
    return lines


def breakdown_tables(totals: Totals) -> list[tuple[str, str, str, Breakdown]]:
    """(title, value column, style, data) in print order; empty ones are dropped."""
    tables = [
        ("Lezioni per Sport", "Num. Lezioni", COUNT_GRID, totals.lessons_by_sport),
        ("Lezioni per Sede", "Num. Lezioni", COUNT_GRID, totals.lessons_by_location),
        ("Lezioni per Tipo", "Num. Lezioni", COUNT_GRID, totals.lessons_by_lesson_type),
        ("Utile per Sport", "Utile (Lordo)", PROFIT_GRID, totals.profit_by_sport),
        ("Utile per Sede", "Utile (Lordo)", PROFIT_GRID, totals.profit_by_location),
        ("Utile per Tipo", "Utile (Lordo)", PROFIT_GRID, totals.profit_by_lesson_type),
    ]
    return [t for t in tables if t[3]]


def _breakdown_rows(style: str, data: Breakdown) -> list[tuple[str, str]]:
    if style == PROFIT_GRID:
        return [(name, format_eur(value)) for name, value in data.sorted_items()]
    return [(name, str(value)) for name, value in data.sorted_items()]


def stamp_footers(pages: list[Page]) -> None:
    total = len(pages)
    for page in pages:
        page.blocks.append(Block(FOOTER, FOOTER_TOP, FOOTER_HEIGHT, f"Pagina {page.number} di {total}"))


def compose(
    lessons: Sequence[Lesson],
    settings: Settings,
    period: ReportPeriod,
    options: ReportOptions = ReportOptions(),
) -> Document:
    """Lay out the report for lessons already filtered and sorted oldest first."""
    flow = PageFlow(start=TOP_MARGIN - 6.0)

    flow.place(TITLE, TITLE_HEIGHT, REPORT_TITLE)
    flow.place(PERIOD, PERIOD_HEIGHT, f"Periodo: dal {format_it_date(period.start)} al {format_it_date(period.end)}")
    flow.cursor = max(flow.cursor, TABLE_START)

    columns = [Column(title, width, align) for title, width, align in LESSON_COLUMNS]
    flow.table(STRIPED, columns, lesson_rows(lessons, settings))

    if not lessons:
        flow.place(NOTICE, NOTICE_HEIGHT, EMPTY_NOTICE, gap=SECTION_GAP)
    else:
        totals = aggregate(lessons, settings)
        lines = summary_lines(totals, options.include_net_details)
        flow.place(SUMMARY, sum(l.step for l in lines), tuple(lines), gap=SECTION_GAP)

        tables = breakdown_tables(totals)
        first_table = TABLE_GAP + HEADER_ROW_HEIGHT + ROW_HEIGHT if tables else 0.0
        flow.place(SECTION_TITLE, SECTION_TITLE_HEIGHT, BREAKDOWN_SECTION_TITLE, gap=SECTION_GAP, keep_with=first_table)

        for title, value_title, style, data in tables:
            cols = [Column(title, BREAKDOWN_WIDTHS[0]), Column(value_title, BREAKDOWN_WIDTHS[1], "right")]
            flow.table(style, cols, _breakdown_rows(style, data), gap=TABLE_GAP)

    stamp_footers(flow.pages)
    return Document(title=REPORT_TITLE, period=period, pages=flow.pages)


def report_filename(period: ReportPeriod, extension: str = "pdf") -> str:
    return f"Resoconto_Lezioni_{period.start.isoformat()}_{period.end.isoformat()}.{extension}"
