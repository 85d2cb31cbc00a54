"""Branded A4 document template shared by every PDF export.

Each page carries the Paw Legal letterhead at the top and a
``Page N - <label>`` footer at the bottom. Content is appended in order
through the ``add_*`` helpers and rendered with :meth:`BrandedDocument.build`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    Flowable,
    HRFlowable,
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from pawlegal.config import Settings, get_settings
from pawlegal.utils.datetime_utils import format_date_fr

logger = logging.getLogger(__name__)

BRAND_ORANGE = colors.HexColor("#f97316")
TITLE_ORANGE = colors.HexColor("#FF6600")
TEXT_DARK = colors.HexColor("#1f2937")
TEXT_MUTED = colors.HexColor("#666666")
ERROR_RED = colors.HexColor("#dc2626")

LETTERHEAD_HEIGHT = 34 * mm
FOOTER_HEIGHT = 14 * mm
PAGE_MARGIN = 18 * mm

MAX_SERIALIZED_LENGTH = 2000
# Table rows cannot split across pages, so a cell must fit on one page
MAX_CELL_LENGTH = 300


def safe_stringify(value: Any, limit: int = MAX_SERIALIZED_LENGTH) -> str:
    """Serialise *value* for display, never raising.

    JSON first, then ``str()``, then a fixed marker. Output longer than
    *limit* characters is clipped and suffixed with an ellipsis.
    """
    if isinstance(value, str):
        text = value
    else:
        try:
            text = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            try:
                text = str(value)
            except Exception:
                text = "[unserializable]"
    if len(text) > limit:
        return text[:limit] + "…"
    return text


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return safe_stringify(str(value), limit=MAX_CELL_LENGTH)


def _build_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "BrandTitle", parent=base["Title"], fontSize=20, leading=24, textColor=TITLE_ORANGE, alignment=TA_CENTER
        ),
        "subtitle": ParagraphStyle(
            "BrandSubtitle", parent=base["Normal"], fontSize=12, leading=16, alignment=TA_CENTER, spaceAfter=4
        ),
        "heading": ParagraphStyle(
            "BrandHeading",
            parent=base["Heading2"],
            fontSize=14,
            leading=18,
            textColor=colors.HexColor("#333333"),
            spaceBefore=10,
            spaceAfter=6,
        ),
        "body": ParagraphStyle("BrandBody", parent=base["Normal"], fontSize=10, leading=14),
        "muted": ParagraphStyle("BrandMuted", parent=base["Normal"], fontSize=9, leading=12, textColor=TEXT_MUTED),
        "accent": ParagraphStyle("BrandAccent", parent=base["Normal"], fontSize=10, leading=14, textColor=TITLE_ORANGE),
        "error": ParagraphStyle("BrandError", parent=base["Normal"], fontSize=10, leading=14, textColor=ERROR_RED),
        "cell": ParagraphStyle("BrandCell", parent=base["Normal"], fontSize=9, leading=11),
        "cell_header": ParagraphStyle(
            "BrandCellHeader", parent=base["Normal"], fontSize=9, leading=11, textColor=colors.white,
            fontName="Helvetica-Bold",
        ),
    }


class BrandedDocument:
    """Accumulates flowables and renders them onto letterhead pages."""

    def __init__(
        self,
        title: str,
        footer_label: str,
        *,
        settings: Settings | None = None,
        compress: bool | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.title = title
        self.footer_label = footer_label
        self.compress = self.settings.PDF_COMPRESSION if compress is None else compress
        self.generated_on = format_date_fr()
        self.styles = _build_styles()
        self.story: list[Flowable] = []
        self.page_count = 0
        self.skipped_entries: list[int] = []

    # ------------------------------------------------------------------
    # Page decorations
    # ------------------------------------------------------------------

    def _draw_letterhead(self, canvas, doc) -> None:
        s = self.settings
        width, height = A4
        top = height - 12 * mm

        canvas.setFont("Helvetica-Bold", 22)
        canvas.setFillColor(BRAND_ORANGE)
        canvas.drawString(PAGE_MARGIN, top - 6 * mm, "PAW")
        paw_width = canvas.stringWidth("PAW ", "Helvetica-Bold", 22)
        canvas.setFillColor(TEXT_DARK)
        canvas.drawString(PAGE_MARGIN + paw_width, top - 6 * mm, "LEGAL")

        right = width - PAGE_MARGIN
        canvas.setFont("Helvetica-Bold", 11)
        canvas.drawRightString(right, top - 2 * mm, s.PLATFORM_NAME)
        canvas.setFont("Helvetica", 9)
        canvas.setFillColor(TEXT_MUTED)
        canvas.drawRightString(right, top - 7 * mm, s.PLATFORM_SUBTITLE)
        canvas.drawRightString(right, top - 11 * mm, s.PLATFORM_COUNTRY)

        canvas.setFont("Helvetica", 8)
        contact = f"{s.PLATFORM_EMAIL}  |  {s.PLATFORM_WEBSITE}  |  {s.PLATFORM_PHONE}"
        canvas.drawString(PAGE_MARGIN, top - 16 * mm, contact)
        canvas.drawRightString(right, top - 16 * mm, f"Document généré le : {self.generated_on}")

        canvas.setStrokeColor(BRAND_ORANGE)
        canvas.setLineWidth(1.2)
        canvas.line(PAGE_MARGIN, top - 19 * mm, right, top - 19 * mm)

    def _draw_footer(self, canvas, doc) -> None:
        width, _ = A4
        canvas.setStrokeColor(colors.lightgrey)
        canvas.setLineWidth(0.5)
        canvas.line(PAGE_MARGIN, 14 * mm, width - PAGE_MARGIN, 14 * mm)
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(TEXT_MUTED)
        canvas.drawCentredString(width / 2, 9 * mm, f"Page {doc.page} - {self.footer_label}")

    def _on_page(self, canvas, doc) -> None:
        canvas.saveState()
        try:
            self._draw_letterhead(canvas, doc)
            self._draw_footer(canvas, doc)
        finally:
            canvas.restoreState()
        self.page_count = doc.page

    # ------------------------------------------------------------------
    # Content helpers
    # ------------------------------------------------------------------

    def _para(self, text: Any, style: str = "body") -> Paragraph:
        return Paragraph(escape(str(text)), self.styles[style])

    def add_title(self, text: str) -> None:
        self.story.append(self._para(text, "title"))
        self.story.append(Spacer(1, 3 * mm))

    def add_subtitle(self, text: str) -> None:
        self.story.append(self._para(text, "subtitle"))

    def add_heading(self, text: str) -> None:
        self.story.append(self._para(text, "heading"))

    def add_paragraph(self, text: Any, style: str = "body", indent: float = 0) -> None:
        para = self._para(text, style)
        if indent:
            para.style = ParagraphStyle(f"{para.style.name}-indent", parent=para.style, leftIndent=indent * mm)
        self.story.append(para)

    def add_field(self, label: str, value: Any, *, indent: float = 0, style: str = "body") -> None:
        """``<b>label :</b> value`` with ``N/A`` for empty values."""
        shown = "N/A" if value is None or value == "" else value
        para_style = self.styles[style]
        if indent:
            para_style = ParagraphStyle(f"{para_style.name}-indent", parent=para_style, leftIndent=indent * mm)
        self.story.append(Paragraph(f"<b>{escape(label)} :</b> {escape(str(shown))}", para_style))

    def add_bullets(self, items: Iterable[Any], *, indent: float = 6) -> None:
        style = ParagraphStyle("BrandBullet", parent=self.styles["body"], leftIndent=indent * mm)
        for item in items:
            self.story.append(Paragraph(f"• {escape(str(item))}", style))

    def add_table(
        self,
        header: Sequence[str],
        rows: Sequence[Sequence[Any]],
        col_widths: Sequence[float] | None = None,
    ) -> None:
        """Grid table with a dark header row, repeated across pages."""
        available = A4[0] - 2 * PAGE_MARGIN
        widths = [available * w for w in col_widths] if col_widths else None
        data = [[Paragraph(escape(str(h)), self.styles["cell_header"]) for h in header]]
        for row in rows:
            data.append([self._para(_cell_text(cell), "cell") for cell in row])

        table = Table(data, colWidths=widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), TEXT_DARK),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                    ("BOX", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                    ("LEFTPADDING", (0, 0), (-1, -1), 4),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                    ("TOPPADDING", (0, 0), (-1, -1), 3),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        self.story.append(table)

    def add_separator(self) -> None:
        self.story.append(Spacer(1, 2 * mm))
        self.story.append(HRFlowable(width="100%", thickness=0.5, color=colors.lightgrey))
        self.story.append(Spacer(1, 2 * mm))

    def add_spacer(self, height_mm: float = 4) -> None:
        self.story.append(Spacer(1, height_mm * mm))

    def add_error_line(self, text: str) -> None:
        self.story.append(self._para(text, "error"))

    def add_entry(
        self,
        index: int,
        render: Callable[[BrandedDocument], None],
        *,
        error_text: str = "Erreur sur l'action #{index} (entrée ignorée)",
        keep_together: bool = True,
    ) -> bool:
        """Run *render* for one entry; on failure replace its output with a marker line.

        Returns ``True`` when the entry rendered.
        """
        start = len(self.story)
        try:
            render(self)
        except Exception:
            del self.story[start:]
            logger.warning("PDF entry #%s skipped in %r", index, self.title, exc_info=True)
            self.skipped_entries.append(index)
            self.add_error_line(error_text.format(index=index))
            return False

        if keep_together:
            block = self.story[start:]
            del self.story[start:]
            self.story.append(KeepTogether(block))
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build(self) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=LETTERHEAD_HEIGHT,
            bottomMargin=FOOTER_HEIGHT + 4 * mm,
            title=self.title,
            author=self.settings.PLATFORM_NAME,
            pageCompression=1 if self.compress else 0,
        )
        story = self.story or [Spacer(1, 1)]
        doc.build(story, onFirstPage=self._on_page, onLaterPages=self._on_page)
        logger.debug("Built PDF %r: %d page(s)", self.title, self.page_count)
        return buffer.getvalue()


def create_document_with_header(
    title: str,
    footer_label: str,
    *,
    settings: Settings | None = None,
    compress: bool | None = None,
) -> BrandedDocument:
    """Return an empty :class:`BrandedDocument` ready for content."""
    return BrandedDocument(title, footer_label, settings=settings, compress=compress)
