"""
Report export: filter -> compose -> render, all or nothing.

The caller only gets bytes once the whole document has been produced; any
failure along the way is logged with its traceback and reported back as a
generic message, with no content attached.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sportledger.config import ALL
from sportledger.models.lesson import Lesson
from sportledger.models.settings import Settings
from sportledger.reports.layout import ReportOptions, ReportPeriod, compose, report_filename
from sportledger.reports.pdf_renderer import render_pdf
from sportledger.services.lesson_filter import InvoiceStatus, ReportFilter, filter_lessons
from sportledger.utils.dates import month_bounds

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Impossibile generare il PDF. Riprova."
INVALID_RANGE = "La data di fine deve essere uguale o successiva alla data di inizio."


@dataclass(frozen=True)
class ReportRequest:
    start_date: date
    end_date: date
    invoice_filter: InvoiceStatus = InvoiceStatus.ALL
    sport_id: str = ALL
    location_id: str = ALL
    include_net_details: bool = True

    def to_filter(self) -> ReportFilter:
        return ReportFilter(
            start_date=self.start_date,
            end_date=self.end_date,
            invoice_status=self.invoice_filter,
            sport_id=self.sport_id,
            location_id=self.location_id,
        )

    @property
    def period(self) -> ReportPeriod:
        return ReportPeriod(self.start_date, self.end_date)


@dataclass(frozen=True)
class ExportResult:
    ok: bool
    filename: Optional[str] = None
    content: Optional[bytes] = None
    page_count: int = 0
    lesson_count: int = 0
    error: Optional[str] = None


def default_request(reference_date: date) -> ReportRequest:
    first, last = month_bounds(reference_date)
    return ReportRequest(start_date=first, end_date=last)


def export_report(lessons: Iterable[Lesson], settings: Settings, request: ReportRequest) -> ExportResult:
    if request.end_date < request.start_date:
        return ExportResult(ok=False, error=INVALID_RANGE)

    try:
        selected = filter_lessons(lessons, request.to_filter())
        document = compose(
            selected,
            settings,
            request.period,
            ReportOptions(include_net_details=request.include_net_details),
        )
        content = render_pdf(document)
    except Exception:
        logger.exception("Failed to generate PDF for %s", request)
        return ExportResult(ok=False, error=GENERIC_FAILURE)

    filename = report_filename(request.period)
    logger.info("Generated %s: %d lessons, %d pages", filename, len(selected), document.page_count)
    return ExportResult(
        ok=True,
        filename=filename,
        content=content,
        page_count=document.page_count,
        lesson_count=len(selected),
    )
