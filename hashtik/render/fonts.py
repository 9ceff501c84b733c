"""Font selection shared by the preview and PDF surfaces.

Both surfaces must show the same characters.  With a TrueType font the
text is drawn as-is; without one the preview falls back to Pillow's
bundled font and the PDF to the Helvetica core font, and both draw the
Latin-1 rendition from ``layout.formatting.latin1_text``.
"""

from __future__ import annotations

from dataclasses import dataclass

from hashtik.layout.formatting import latin1_text


@dataclass(frozen=True)
class FontSpec:
    """Optional TrueType regular/bold pair."""

    path: str | None = None
    bold_path: str | None = None

    @property
    def is_unicode(self) -> bool:
        return self.path is not None

    def file_for(self, bold: bool) -> str | None:
        if bold and self.bold_path:
            return self.bold_path
        return self.path

    def drawable(self, text: str) -> str:
        """Text as it will actually be drawn with this font."""
        return text if self.is_unicode else latin1_text(text)

    @classmethod
    def from_config(cls, render_cfg) -> FontSpec:
        return cls(path=render_cfg.font_path, bold_path=render_cfg.bold_font_path)
