"""
Card layout engine.

Pure geometry and draw instructions shared by the preview renderer and
the PDF exporter.  All positions in millimetres, font sizes in points.
"""

from hashtik.layout.engine import CardLayout, layout_page
from hashtik.layout.formatting import (
    NO_PASSWORD_TEXT,
    format_card_date,
    hex_to_rgb,
    latin1_text,
)
from hashtik.layout.geometry import (
    MM_PER_PT,
    PX_PER_MM,
    card_size,
    card_slot,
    compute_card_geometry,
    mm_to_px,
    place_field,
    pt_to_px,
    px_to_mm,
    surface_scale,
)
from hashtik.layout.models import (
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
    AbsolutePosition,
    CardDraw,
    CardGeometry,
    CardSlot,
    FieldDraw,
    FieldKind,
    FieldPlacement,
    LayoutParameters,
    Surface,
)

__all__ = [
    "AbsolutePosition",
    "CardDraw",
    "CardGeometry",
    "CardLayout",
    "CardSlot",
    "FieldDraw",
    "FieldKind",
    "FieldPlacement",
    "LayoutParameters",
    "MM_PER_PT",
    "NO_PASSWORD_TEXT",
    "PAGE_HEIGHT_MM",
    "PAGE_WIDTH_MM",
    "PX_PER_MM",
    "Surface",
    "card_size",
    "card_slot",
    "compute_card_geometry",
    "format_card_date",
    "hex_to_rgb",
    "latin1_text",
    "layout_page",
    "mm_to_px",
    "place_field",
    "pt_to_px",
    "px_to_mm",
    "surface_scale",
]
