"""Pillow preview of a single card.

The preview is a pixel rendition of card 0 using the same geometry and
field placement as the PDF: sizes come from ``compute_card_geometry``,
positions from ``place_field(..., Surface.PREVIEW)``.  Text is anchored at
its left baseline (``anchor="ls"``), which is where fpdf2 puts text too.

Backgrounds are stretched to the card box (no aspect preservation).  A
background that cannot be loaded or drawn is replaced by a flat
placeholder fill; it never aborts the preview.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from hashtik.credentials.models import Credential
from hashtik.layout.engine import CardLayout
from hashtik.layout.geometry import MM_PER_PT, PX_PER_MM, card_size, place_field
from hashtik.layout.models import LayoutParameters, Surface
from hashtik.render.fonts import FontSpec

logger = logging.getLogger(__name__)

CARD_FILL = (255, 255, 255)
PLACEHOLDER_FILL = (240, 240, 240)
BORDER_COLOR = (200, 200, 200)
EMPTY_BORDER_COLOR = (150, 150, 220)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def load_background(path: str | Path | None) -> Image.Image | None:
    """Open a background image as RGB; ``None`` (with a warning) on failure."""
    if not path:
        return None
    try:
        with Image.open(path) as img:
            return img.convert("RGB")
    except (OSError, ValueError) as exc:
        logger.warning("Background image %s could not be loaded: %s", path, exc)
        return None


@lru_cache(maxsize=64)
def _font(path: str | None, size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size_px = max(size_px, 1.0)
    if path:
        return ImageFont.truetype(path, size=size_px)
    return ImageFont.load_default(size=size_px)


def _stretch_background(
    canvas: Image.Image,
    background: Image.Image | None,
    failed: bool,
) -> None:
    if background is None:
        canvas.paste(PLACEHOLDER_FILL if failed else CARD_FILL, (0, 0, *canvas.size))
        return
    try:
        canvas.paste(background.resize(canvas.size), (0, 0))
    except (OSError, ValueError) as exc:
        logger.warning("Background draw failed, using placeholder: %s", exc)
        canvas.paste(PLACEHOLDER_FILL, (0, 0, *canvas.size))


def _dashed_border(draw: ImageDraw.ImageDraw, w: int, h: int, dash: int = 8) -> None:
    for x in range(0, w, dash * 2):
        draw.line([(x, 0), (min(x + dash, w - 1), 0)], fill=EMPTY_BORDER_COLOR, width=2)
        draw.line([(x, h - 1), (min(x + dash, w - 1), h - 1)], fill=EMPTY_BORDER_COLOR, width=2)
    for y in range(0, h, dash * 2):
        draw.line([(0, y), (0, min(y + dash, h - 1))], fill=EMPTY_BORDER_COLOR, width=2)
        draw.line([(w - 1, y), (w - 1, min(y + dash, h - 1))], fill=EMPTY_BORDER_COLOR, width=2)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_card_preview(
    credential: Credential | None,
    params: LayoutParameters,
    *,
    fonts: FontSpec | None = None,
    px_per_mm: float = PX_PER_MM,
    mm_per_pt: float = MM_PER_PT,
    today: date | None = None,
    date_locale: str = "ar-EG",
    background: Image.Image | None = None,
) -> Image.Image:
    """Render card 0 as an RGB image.

    Parameters
    ----------
    credential : Credential | None
        Credential shown on the card.  ``None`` returns an empty card with
        a dashed outline (nothing generated yet).
    params : LayoutParameters
        Layout to preview.
    fonts : FontSpec | None
        Optional TrueType fonts; default is Pillow's bundled font.
    px_per_mm, mm_per_pt : float
        Preview scale.
    today : date | None
        Date printed in the date field.
    date_locale : str
        Date format locale.
    background : PIL.Image.Image | None
        Pre-loaded background.  When omitted and ``params.background_image``
        is set, it is loaded from disk.

    Returns
    -------
    PIL.Image.Image
        ``round(card_width * px_per_mm)`` by ``round(card_height * px_per_mm)``.

    Raises
    ------
    ValidationError
        If the layout parameters are invalid.
    """
    fonts = fonts or FontSpec()
    layout = CardLayout([credential] if credential is not None else [], params, today, date_locale)
    w_px, h_px = card_size(layout.geometry, Surface.PREVIEW, px_per_mm)
    size = (max(1, round(w_px)), max(1, round(h_px)))

    canvas = Image.new("RGB", size, CARD_FILL)
    draw = ImageDraw.Draw(canvas)

    if credential is None:
        _dashed_border(draw, *size)
        return canvas

    bg_failed = False
    if background is None and params.background_image:
        background = load_background(params.background_image)
        bg_failed = background is None
    _stretch_background(canvas, background, bg_failed)
    draw.rectangle([0, 0, size[0] - 1, size[1] - 1], outline=BORDER_COLOR)

    for field in layout.card(0).fields:
        pos = place_field(field.placement, (0.0, 0.0), Surface.PREVIEW, px_per_mm, mm_per_pt)
        font = _font(fonts.file_for(field.bold), pos.font_size)
        # Without a dedicated bold face, embolden with a same-colour stroke.
        stroke = 1 if field.bold and not fonts.bold_path else 0
        draw.text(
            (pos.x, pos.y),
            fonts.drawable(field.text),
            fill=field.color,
            font=font,
            anchor="ls",
            stroke_width=stroke,
            stroke_fill=field.color,
        )

    return canvas


def preview_summary(credentials: list[Credential] | tuple[Credential, ...]) -> dict[str, object]:
    """Batch statistics shown next to the preview."""
    if not credentials:
        return {"count": 0}
    first = credentials[0]
    return {
        "count": len(credentials),
        "profile": first.profile,
        "username_length": len(first.username),
        "password_length": len(first.password),
    }
