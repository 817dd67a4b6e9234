from io import BytesIO

from reportlab.lib.colors import Color, HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from sportledger.reports.layout import (
    COUNT_GRID,
    FOOTER,
    LEFT,
    NOTICE,
    PAGE_WIDTH,
    PERIOD,
    PROFIT_GRID,
    RIGHT,
    SECTION_TITLE,
    STRIPED,
    SUMMARY,
    TABLE_HEADER,
    TABLE_ROW,
    TITLE,
    Block,
    Document,
    TableData,
)

W, H = A4

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

BLACK = HexColor("#000000")
TEXT = HexColor("#333333")
MUTED = HexColor("#646464")
LIGHT = HexColor("#969696")
WHITE = HexColor("#FFFFFF")
GRID_LINE = HexColor("#C8C8C8")
STRIPE = HexColor("#F5F5F5")

HEADER_FILLS = {
    STRIPED: Color(79 / 255, 70 / 255, 229 / 255),      # indigo
    COUNT_GRID: Color(75 / 255, 85 / 255, 99 / 255),    # slate
    PROFIT_GRID: Color(22 / 255, 163 / 255, 74 / 255),  # green
}


def _x(x_mm: float) -> float:
    return x_mm * mm


def _y(y_mm: float) -> float:
    # layout measures from the top edge, reportlab from the bottom
    return H - y_mm * mm


class ReportCanvas:
    def __init__(self, buffer, document: Document):
        self.c = canvas.Canvas(buffer, pagesize=A4)
        self.c.setTitle(document.title)
        self.c.setAuthor("sportledger")
        self.document = document

    def draw_text(self, text, x, y, font=FONT, size=10, color=TEXT, align="left", max_width=None):
        self.c.saveState()
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        if max_width:
            while stringWidth(text, font, size) > max_width and len(text) > 3:
                text = text[:-4] + "..."
        if align == "center":
            self.c.drawCentredString(x, y, text)
        elif align == "right":
            self.c.drawRightString(x, y, text)
        else:
            self.c.drawString(x, y, text)
        self.c.restoreState()

    def draw_rect(self, x, y, w, h, fill=None, stroke=None, stroke_w=0.3):
        self.c.saveState()
        if fill:
            self.c.setFillColor(fill)
        if stroke:
            self.c.setStrokeColor(stroke)
            self.c.setLineWidth(stroke_w)
        self.c.rect(x, y, w, h, fill=1 if fill else 0, stroke=1 if stroke else 0)
        self.c.restoreState()

    def draw_line(self, x1, y1, x2, y2, color=MUTED, width=0.5):
        self.c.saveState()
        self.c.setStrokeColor(color)
        self.c.setLineWidth(width)
        self.c.line(x1, y1, x2, y2)
        self.c.restoreState()

    # -----------------------------
    # Blocks
    # -----------------------------
    def _baseline(self, block: Block, offset: float = 0.0) -> float:
        return _y(block.top + block.height * 0.7 + offset)

    def draw_table_cells(self, block: Block, table: TableData, header: bool):
        top, bottom = _y(block.top), _y(block.bottom)
        row_h = top - bottom
        if header:
            self.draw_rect(_x(LEFT), bottom, _x(RIGHT - LEFT), row_h, fill=HEADER_FILLS[table.style])
        elif table.style == STRIPED and table.row_index % 2 == 1:
            self.draw_rect(_x(LEFT), bottom, _x(RIGHT - LEFT), row_h, fill=STRIPE)
        if table.style != STRIPED:
            self.draw_rect(_x(LEFT), bottom, _x(RIGHT - LEFT), row_h, stroke=GRID_LINE)

        x = LEFT
        values = [col.title for col in table.columns] if header else list(table.cells)
        for col, value in zip(table.columns, values):
            pad = 2.0
            text_x = _x(x + col.width - pad) if col.align == "right" else _x(x + pad)
            self.draw_text(
                str(value),
                text_x,
                self._baseline(block, -0.8),
                font=FONT_BOLD if header else FONT,
                size=9,
                color=WHITE if header else TEXT,
                align=col.align,
                max_width=_x(col.width - 2 * pad),
            )
            x += col.width

    def draw_summary(self, block: Block):
        y = block.top
        for line in block.data:
            baseline = _y(y + 5.0)
            if line.style == "rule":
                self.draw_line(_x(LEFT), _y(y), _x(RIGHT + 4), _y(y))
            elif line.style == "heading":
                self.draw_text(line.label, _x(LEFT), baseline, FONT_BOLD, 12, BLACK)
            else:
                font = FONT_BOLD if line.style in ("bold", "total") else FONT
                color = {"muted": LIGHT, "total": BLACK}.get(line.style, MUTED)
                self.draw_text(line.label, _x(LEFT), baseline, font, 11, color)
                self.draw_text(line.value, _x(RIGHT + 4), baseline, font, 11, color, align="right")
            y += line.step

    def draw_block(self, block: Block):
        if block.kind == TITLE:
            self.draw_text(block.data, _x(LEFT), self._baseline(block), FONT, 18, BLACK)
        elif block.kind == PERIOD:
            self.draw_text(block.data, _x(LEFT), self._baseline(block), FONT, 11, MUTED)
        elif block.kind == TABLE_HEADER:
            self.draw_table_cells(block, block.data, header=True)
        elif block.kind == TABLE_ROW:
            self.draw_table_cells(block, block.data, header=False)
        elif block.kind == NOTICE:
            self.draw_text(block.data, _x(LEFT), self._baseline(block), FONT, 11, MUTED)
        elif block.kind == SUMMARY:
            self.draw_summary(block)
        elif block.kind == SECTION_TITLE:
            self.draw_text(block.data, _x(LEFT), self._baseline(block), FONT_BOLD, 14, BLACK)
        elif block.kind == FOOTER:
            self.draw_text(block.data, _x(PAGE_WIDTH - 20), self._baseline(block), FONT, 9, LIGHT, align="right")
        else:
            raise ValueError(f"Unknown block kind: {block.kind}")

    def render(self):
        for page in self.document.pages:
            for block in page.blocks:
                self.draw_block(block)
            self.c.showPage()
        self.c.save()


def render_pdf(document: Document) -> bytes:
    buffer = BytesIO()
    ReportCanvas(buffer, document).render()
    return buffer.getvalue()
