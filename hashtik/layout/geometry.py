"""Card geometry and unit conversion shared by preview and export.

Every card dimension, slot origin and field position in the project is
computed here.  The preview renderer and the PDF exporter call the same
functions and differ only in the ``Surface`` they pass to
``place_field``:

    Preview: mm × px_per_mm → px;  pt × mm_per_pt × px_per_mm → px
    Export:  mm and pt unchanged (fpdf2 works in mm with pt font sizes)

Page slots fill rows left-to-right in *logical* order and are drawn
mirrored (right-to-left)::

    visual_column = columns - 1 - column_index
    origin_x = spacing + visual_column * (card_width + spacing)
    origin_y = spacing + row_index * (card_height + spacing)
"""

from __future__ import annotations

from dataclasses import dataclass

from hashtik.errors import ValidationError
from hashtik.layout.models import (
    AbsolutePosition,
    CardGeometry,
    CardSlot,
    FieldPlacement,
    LayoutParameters,
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
    Surface,
)

PX_PER_MM = 3.78
MM_PER_PT = 0.353


@dataclass(frozen=True)
class SurfaceScale:
    """Multipliers from layout units (mm, pt) to surface units."""

    length: float
    font: float
    unit: str


def surface_scale(
    surface: Surface,
    px_per_mm: float = PX_PER_MM,
    mm_per_pt: float = MM_PER_PT,
) -> SurfaceScale:
    """Scale factors for *surface*."""
    if Surface(surface) is Surface.PREVIEW:
        return SurfaceScale(length=px_per_mm, font=mm_per_pt * px_per_mm, unit="px")
    return SurfaceScale(length=1.0, font=1.0, unit="mm")


def mm_to_px(mm: float, px_per_mm: float = PX_PER_MM) -> float:
    return mm * px_per_mm


def px_to_mm(px: float, px_per_mm: float = PX_PER_MM) -> float:
    return px / px_per_mm


def pt_to_px(pt: float, px_per_mm: float = PX_PER_MM, mm_per_pt: float = MM_PER_PT) -> float:
    return pt * mm_per_pt * px_per_mm


def compute_card_geometry(
    params: LayoutParameters,
    page_width_mm: float = PAGE_WIDTH_MM,
    page_height_mm: float = PAGE_HEIGHT_MM,
) -> CardGeometry:
    """Derive card size from grid shape and spacing.

    Parameters
    ----------
    params : LayoutParameters
        Grid shape and spacing.
    page_width_mm, page_height_mm : float
        Page size; A4 portrait by default.

    Returns
    -------
    CardGeometry

    Raises
    ------
    ValidationError
        If columns/rows are not positive integers, spacing is negative, or
        spacing leaves no room for the cards.

    Examples
    --------
    >>> g = compute_card_geometry(LayoutParameters(columns=4, rows=18, box_spacing_mm=2))
    >>> g.card_width_mm
    50.0
    """
    columns, rows, spacing = params.columns, params.rows, params.box_spacing_mm
    for name, value in (("columns", columns), ("rows", rows)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(f"{name} must be an integer >= 1, got {value!r}")
    if spacing < 0:
        raise ValidationError(f"box_spacing_mm must be >= 0, got {spacing}")

    card_width = (page_width_mm - spacing * (columns + 1)) / columns
    card_height = (page_height_mm - spacing * (rows + 1)) / rows

    if card_width <= 0:
        raise ValidationError(
            f"Spacing {spacing} mm x {columns + 1} gaps leaves no card width "
            f"on a {page_width_mm} mm page"
        )
    if card_height <= 0:
        raise ValidationError(
            f"Spacing {spacing} mm x {rows + 1} gaps leaves no card height "
            f"on a {page_height_mm} mm page"
        )

    return CardGeometry(
        page_width_mm=page_width_mm,
        page_height_mm=page_height_mm,
        card_width_mm=card_width,
        card_height_mm=card_height,
        columns=columns,
        rows=rows,
        spacing_mm=spacing,
    )


def card_slot(card_index: int, geometry: CardGeometry) -> CardSlot:
    """Page, grid cell and top-left origin (mm) of card *card_index*."""
    per_page = geometry.cards_per_page
    page_index, within_page = divmod(card_index, per_page)
    row_index, column_index = divmod(within_page, geometry.columns)
    visual_column = geometry.columns - 1 - column_index

    spacing = geometry.spacing_mm
    origin_x = spacing + visual_column * (geometry.card_width_mm + spacing)
    origin_y = spacing + row_index * (geometry.card_height_mm + spacing)

    return CardSlot(
        card_index=card_index,
        page_index=page_index,
        column_index=column_index,
        row_index=row_index,
        visual_column=visual_column,
        origin_x_mm=origin_x,
        origin_y_mm=origin_y,
    )


def place_field(
    placement: FieldPlacement,
    card_origin: tuple[float, float],
    surface: Surface = Surface.EXPORT,
    px_per_mm: float = PX_PER_MM,
    mm_per_pt: float = MM_PER_PT,
) -> AbsolutePosition:
    """Convert a card-relative field offset into a surface position.

    Parameters
    ----------
    placement : FieldPlacement
        Offset (mm) and font size (pt).
    card_origin : tuple[float, float]
        Card top-left on the page, in mm.
    surface : Surface
        ``PREVIEW`` returns px, ``EXPORT`` returns mm / pt.

    Returns
    -------
    AbsolutePosition
    """
    scale = surface_scale(surface, px_per_mm, mm_per_pt)
    ox, oy = card_origin
    return AbsolutePosition(
        x=(ox + placement.x_mm) * scale.length,
        y=(oy + placement.y_mm) * scale.length,
        font_size=placement.font_size_pt * scale.font,
        unit=scale.unit,
    )


def card_size(
    geometry: CardGeometry,
    surface: Surface = Surface.EXPORT,
    px_per_mm: float = PX_PER_MM,
) -> tuple[float, float]:
    """Card width and height in surface units."""
    scale = surface_scale(surface, px_per_mm)
    return geometry.card_width_mm * scale.length, geometry.card_height_mm * scale.length
