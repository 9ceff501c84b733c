"""Per-card draw instructions for a batch of credentials.

``layout_page`` returns a ``CardLayout``: a finite, restartable iterable
with one ``CardDraw`` per credential.  Nothing is computed until it is
iterated, and iterating again starts over from the first card, so the
export task can walk a 10 000-card batch without materialising it while
the preview simply takes the first element.

Page breaks happen every ``columns * rows`` cards.  Slot origins come
from ``geometry.card_slot`` (right-to-left mirrored).  Field text:

    username  credential.username
    password  credential.password or "(no password)"
    serial    serial_start_number + card_index (not the credential location)
    date      the print date in the configured locale
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterator, Sequence

from hashtik.credentials.models import Credential
from hashtik.layout.formatting import (
    format_card_date,
    hex_to_rgb,
    password_text,
    serial_text,
)
from hashtik.layout.geometry import card_slot, compute_card_geometry, place_field
from hashtik.layout.models import (
    CardDraw,
    CardGeometry,
    FieldDraw,
    FieldKind,
    LayoutParameters,
    Surface,
)

logger = logging.getLogger(__name__)


class CardLayout:
    """Lazy sequence of ``CardDraw`` for a credential batch.

    Parameters
    ----------
    credentials : Sequence[Credential]
        Cards to lay out, in order.  Copied into a tuple.
    params : LayoutParameters
        Grid and field settings.
    today : date | None
        Print date; ``None`` uses ``date.today()`` at construction.
    date_locale : str
        ``"ar-EG"`` or ``"iso"``.
    """

    def __init__(
        self,
        credentials: Sequence[Credential],
        params: LayoutParameters,
        today: date | None = None,
        date_locale: str = "ar-EG",
    ) -> None:
        self.credentials: tuple[Credential, ...] = tuple(credentials)
        self.params = params
        self.geometry: CardGeometry = compute_card_geometry(params)
        self.date_text = format_card_date(today or date.today(), date_locale)

    def __len__(self) -> int:
        return len(self.credentials)

    def __iter__(self) -> Iterator[CardDraw]:
        for index, credential in enumerate(self.credentials):
            yield self.card(index, credential)

    @property
    def page_count(self) -> int:
        per_page = self.geometry.cards_per_page
        return -(-len(self.credentials) // per_page)

    def card(self, index: int, credential: Credential | None = None) -> CardDraw:
        """Draw instructions for card *index*.

        *credential* defaults to ``credentials[index]``.
        """
        if credential is None:
            credential = self.credentials[index]
        slot = card_slot(index, self.geometry)
        origin = (slot.origin_x_mm, slot.origin_y_mm)
        return CardDraw(
            card_index=index,
            page_index=slot.page_index,
            column_index=slot.column_index,
            row_index=slot.row_index,
            visual_column=slot.visual_column,
            origin_x_mm=slot.origin_x_mm,
            origin_y_mm=slot.origin_y_mm,
            width_mm=self.geometry.card_width_mm,
            height_mm=self.geometry.card_height_mm,
            fields=self._fields(index, credential, origin),
        )

    def _fields(
        self,
        index: int,
        credential: Credential,
        origin: tuple[float, float],
    ) -> tuple[FieldDraw, ...]:
        texts = {
            FieldKind.USERNAME: credential.username,
            FieldKind.PASSWORD: password_text(credential.password),
            FieldKind.SERIAL: serial_text(self.params.serial_start_number, index),
            FieldKind.DATE: self.date_text,
        }
        fields = []
        for kind, placement in self.params.placements().items():
            if not placement.enabled:
                continue
            pos = place_field(placement, origin, Surface.EXPORT)
            fields.append(
                FieldDraw(
                    kind=kind,
                    text=texts[kind],
                    x_mm=pos.x,
                    y_mm=pos.y,
                    font_size_pt=pos.font_size,
                    color=hex_to_rgb(placement.color),
                    bold=placement.bold,
                    placement=placement,
                )
            )
        return tuple(fields)


def layout_page(
    credentials: Sequence[Credential],
    params: LayoutParameters,
    today: date | None = None,
    date_locale: str = "ar-EG",
) -> CardLayout:
    """Lay out *credentials* on A4 card sheets.

    Raises
    ------
    ValidationError
        If *params* describe an impossible grid.
    """
    layout = CardLayout(credentials, params, today=today, date_locale=date_locale)
    logger.debug(
        "Layout: %d cards, %dx%d per page, %d page(s), card %.2f x %.2f mm",
        len(layout), params.columns, params.rows, layout.page_count,
        layout.geometry.card_width_mm, layout.geometry.card_height_mm,
    )
    return layout
