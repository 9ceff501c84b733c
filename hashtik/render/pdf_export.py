"""A4 card sheets as PDF (fpdf2).

Walks a ``CardLayout`` card by card, starting a new page whenever the
page index changes.  Per card: background (stretched to the card box,
or a grey placeholder if it cannot be drawn, or white when none is set),
a light-grey border, then the enabled fields at their absolute
millimetre positions.  ``FPDF.text`` puts the baseline at *y*, the same
anchor the preview uses.

The exporter checks an optional cancellation event between cards and
raises ``ExportCancelled`` if it is set.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from fpdf import FPDF

from hashtik.errors import ExportError
from hashtik.layout.engine import CardLayout
from hashtik.layout.models import CardDraw, FieldDraw
from hashtik.render.fonts import FontSpec

logger = logging.getLogger(__name__)

CARD_FILL = (255, 255, 255)
PLACEHOLDER_FILL = (240, 240, 240)
BORDER_COLOR = (200, 200, 200)
CORE_FONT = "helvetica"
TTF_FAMILY = "cardfont"

ProgressCallback = Callable[[int, int], None]


class ExportCancelled(ExportError):
    """Export stopped because the cancellation event was set."""

    pass


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


class PdfCardExporter:
    """Render a ``CardLayout`` to PDF bytes.

    Parameters
    ----------
    fonts : FontSpec | None
        Optional TrueType fonts; default is the Helvetica core font.
    """

    def __init__(self, fonts: FontSpec | None = None) -> None:
        self.fonts = fonts or FontSpec()
        self._background_failed = False

    def render(
        self,
        layout: CardLayout,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Produce the whole document.

        Parameters
        ----------
        layout : CardLayout
            Cards to draw.  ``layout.params.background_image`` is used as
            the card background when set.
        cancel_event : threading.Event | None
            Checked before each card.
        progress : callable | None
            Called as ``progress(done, total)`` after each card.

        Returns
        -------
        bytes
            The PDF file contents.

        Raises
        ------
        ExportCancelled
            If *cancel_event* was set before the last card.
        ExportError
            If the document cannot be assembled.
        """
        total = len(layout)
        if total == 0:
            raise ExportError("Nothing to export: no credentials")

        self._background_failed = False
        pdf = self._new_document()
        background = layout.params.background_image
        current_page = -1

        for card in layout:
            if cancel_event is not None and cancel_event.is_set():
                raise ExportCancelled(f"Export cancelled after {card.card_index} of {total} cards")
            if card.page_index != current_page:
                pdf.add_page()
                current_page = card.page_index
            self._draw_card(pdf, card, background)
            if progress is not None:
                progress(card.card_index + 1, total)

        try:
            data = bytes(pdf.output())
        except Exception as exc:  # noqa: BLE001
            raise ExportError(f"PDF assembly failed: {exc}") from exc

        logger.info("Exported %d cards on %d page(s), %d bytes", total, current_page + 1, len(data))
        return data

    # -----------------------------------------------------------------------
    # Drawing
    # -----------------------------------------------------------------------

    def _new_document(self) -> FPDF:
        pdf = FPDF(orientation="portrait", unit="mm", format="A4")
        pdf.set_auto_page_break(False)
        pdf.set_margins(0, 0, 0)
        if self.fonts.is_unicode:
            try:
                pdf.add_font(TTF_FAMILY, "", self.fonts.path)
                pdf.add_font(TTF_FAMILY, "B", self.fonts.file_for(bold=True))
            except (OSError, RuntimeError) as exc:
                raise ExportError(f"Cannot load font {self.fonts.path}: {exc}") from exc
        return pdf

    def _draw_card(self, pdf: FPDF, card: CardDraw, background: str | None) -> None:
        x, y = card.origin_x_mm, card.origin_y_mm
        w, h = card.width_mm, card.height_mm

        if background and not self._background_failed:
            try:
                pdf.image(str(Path(background)), x=x, y=y, w=w, h=h)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Background %s could not be drawn, using placeholder: %s", background, exc)
                self._background_failed = True
        if background and self._background_failed:
            pdf.set_fill_color(*PLACEHOLDER_FILL)
            pdf.rect(x, y, w, h, style="F")
        elif not background:
            pdf.set_fill_color(*CARD_FILL)
            pdf.rect(x, y, w, h, style="F")

        pdf.set_draw_color(*BORDER_COLOR)
        pdf.rect(x, y, w, h, style="D")

        for field in card.fields:
            self._draw_field(pdf, field)

    def _draw_field(self, pdf: FPDF, field: FieldDraw) -> None:
        family = TTF_FAMILY if self.fonts.is_unicode else CORE_FONT
        pdf.set_font(family, style="B" if field.bold else "", size=field.font_size_pt)
        pdf.set_text_color(*field.color)
        pdf.text(field.x_mm, field.y_mm, self.fonts.drawable(field.text))


def export_pdf(
    layout: CardLayout,
    *,
    fonts: FontSpec | None = None,
    cancel_event: Optional[threading.Event] = None,
    progress: Optional[ProgressCallback] = None,
) -> bytes:
    """Functional wrapper around ``PdfCardExporter.render``."""
    return PdfCardExporter(fonts).render(layout, cancel_event=cancel_event, progress=progress)
