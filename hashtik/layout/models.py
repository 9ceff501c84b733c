"""Card layout data model.

Pure data: no rendering imports.  All lengths are millimetres and all
font sizes are typographic points unless a field says otherwise; pixel
values only exist in ``AbsolutePosition`` for the preview surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# A4 portrait
PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0


class FieldKind(str, Enum):
    """Text fields that can be printed on a card."""

    USERNAME = "username"
    PASSWORD = "password"
    SERIAL = "serial"
    DATE = "date"


class Surface(str, Enum):
    """Rendering target.  Decides the unit conversion in ``place_field``."""

    PREVIEW = "preview"  # pixels
    EXPORT = "export"  # mm / pt (PDF native)


@dataclass(frozen=True)
class FieldPlacement:
    """Style and position of one text field, relative to the card's top-left."""

    enabled: bool = True
    font_size_pt: float = 8.0
    color: str = "#000000"
    bold: bool = False
    x_mm: float = 5.0
    y_mm: float = 5.0


@dataclass(frozen=True)
class LayoutParameters:
    """Grid, spacing, background and field placements for a card sheet.

    ``background_image`` is a path to a raster file.  It is never
    persisted by the settings store.
    """

    columns: int = 4
    rows: int = 18
    box_spacing_mm: float = 2.0
    background_image: str | None = None
    serial_start_number: int = 1
    username: FieldPlacement = field(
        default_factory=lambda: FieldPlacement(True, 8.0, "#000000", False, 5.0, 5.0)
    )
    password: FieldPlacement = field(
        default_factory=lambda: FieldPlacement(True, 8.0, "#000000", False, 5.0, 10.0)
    )
    serial: FieldPlacement = field(
        default_factory=lambda: FieldPlacement(False, 6.0, "#000000", False, 20.0, 5.0)
    )
    date: FieldPlacement = field(
        default_factory=lambda: FieldPlacement(False, 8.0, "#000000", False, 30.0, 12.0)
    )

    @property
    def cards_per_page(self) -> int:
        return self.columns * self.rows

    def placement(self, kind: FieldKind) -> FieldPlacement:
        return getattr(self, FieldKind(kind).value)

    def placements(self) -> dict[FieldKind, FieldPlacement]:
        """All four placements in drawing order."""
        return {kind: self.placement(kind) for kind in FieldKind}


@dataclass(frozen=True)
class CardGeometry:
    """Card size derived from page size, grid and spacing.

    Invariant::

        columns * card_width_mm + (columns + 1) * spacing_mm == page_width_mm
        rows * card_height_mm + (rows + 1) * spacing_mm == page_height_mm
    """

    page_width_mm: float
    page_height_mm: float
    card_width_mm: float
    card_height_mm: float
    columns: int
    rows: int
    spacing_mm: float

    @property
    def cards_per_page(self) -> int:
        return self.columns * self.rows


@dataclass(frozen=True)
class CardSlot:
    """Where card ``card_index`` lands on the sheet."""

    card_index: int
    page_index: int
    column_index: int  # logical, left-to-right fill order
    row_index: int
    visual_column: int  # mirrored for right-to-left
    origin_x_mm: float
    origin_y_mm: float


@dataclass(frozen=True)
class AbsolutePosition:
    """Field position and font size on a concrete surface.

    ``unit`` is ``"px"`` for the preview (``font_size`` also in px) and
    ``"mm"`` for export (``font_size`` in pt).
    """

    x: float
    y: float
    font_size: float
    unit: str


@dataclass(frozen=True)
class FieldDraw:
    """A resolved text field: content, style and card-absolute position (mm)."""

    kind: FieldKind
    text: str
    x_mm: float
    y_mm: float
    font_size_pt: float
    color: tuple[int, int, int]
    bold: bool
    placement: FieldPlacement


@dataclass(frozen=True)
class CardDraw:
    """Everything a renderer needs to draw one card."""

    card_index: int
    page_index: int
    column_index: int
    row_index: int
    visual_column: int
    origin_x_mm: float
    origin_y_mm: float
    width_mm: float
    height_mm: float
    fields: tuple[FieldDraw, ...]
