"""Background PDF export.

``ExportTask`` renders a ``CardLayout`` on a worker thread and writes the
document atomically when the last card is drawn.  The layout is a
snapshot (credential tuple plus frozen parameters), so later generations
or settings edits cannot change a running export.

Cancellation is cooperative: the flag is checked between cards, and a
cancelled export writes no file.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable

from hashtik.errors import ExportError
from hashtik.layout.engine import CardLayout
from hashtik.render import artifacts
from hashtik.render.fonts import FontSpec
from hashtik.render.pdf_export import ExportCancelled, PdfCardExporter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class ExportState(Enum):
    """Lifecycle of an export task."""

    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()
    CANCELLED = auto()


@dataclass(frozen=True)
class ExportResult:
    """Outcome of a completed export."""

    path: Path
    card_count: int
    page_count: int
    size_bytes: int


# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------


class ExportTask:
    """Cancellable export of one card batch.

    Parameters
    ----------
    layout : CardLayout
        Cards to export.
    out_dir : str | Path
        Directory receiving ``<prefix>-<ms>.pdf``.
    fonts : FontSpec | None
        Optional TrueType fonts.
    prefix : str
        File name prefix.
    on_done : callable | None
        Called with the task once it reaches a terminal state.
    """

    def __init__(
        self,
        layout: CardLayout,
        out_dir: str | Path,
        *,
        fonts: FontSpec | None = None,
        prefix: str = artifacts.PDF_PREFIX,
        on_done: Callable[[ExportTask], None] | None = None,
    ) -> None:
        self._layout = layout
        self._out_dir = Path(out_dir)
        self._exporter = PdfCardExporter(fonts)
        self._prefix = prefix
        self._on_done = on_done

        self._state = ExportState.PENDING
        self._cancel_flag = threading.Event()
        self._done = threading.Event()
        self._thread: threading.Thread | None = None
        self._result: ExportResult | None = None
        self._error: BaseException | None = None
        self._cards_done = 0

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def result(self) -> ExportResult | None:
        return self._result

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def progress(self) -> tuple[int, int]:
        """``(cards_drawn, total_cards)``."""
        return self._cards_done, len(self._layout)

    def start(self) -> ExportTask:
        """Launch the worker thread.  Returns ``self``.

        Raises
        ------
        RuntimeError
            If the task was already started.
        """
        if self._state is not ExportState.PENDING:
            raise RuntimeError(f"Export task already {self._state.name.lower()}")
        self._state = ExportState.RUNNING
        self._thread = threading.Thread(target=self._run, name="hashtik-export", daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next card."""
        self._cancel_flag.set()
        if self._state is ExportState.PENDING:
            self._error = ExportCancelled("Export cancelled before start")
            self._state = ExportState.CANCELLED
            self._done.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the task finishes.  Returns ``False`` on timeout."""
        return self._done.wait(timeout)

    def run(self) -> ExportResult:
        """Run in the calling thread and return the result.

        Raises
        ------
        ExportError
            On failure or cancellation.
        """
        if self._state is ExportState.PENDING:
            self._state = ExportState.RUNNING
            self._run()
        if self._error is not None:
            raise self._error
        if self._result is None:
            raise ExportError(f"Export is still {self._state.name.lower()}")
        return self._result

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _on_progress(self, done: int, total: int) -> None:
        self._cards_done = done

    def _run(self) -> None:
        try:
            data = self._exporter.render(
                self._layout,
                cancel_event=self._cancel_flag,
                progress=self._on_progress,
            )
            if self._cancel_flag.is_set():
                raise ExportCancelled("Export cancelled before writing")
            path = artifacts.write_pdf(data, self._out_dir, self._prefix)
        except ExportCancelled as exc:
            logger.info("%s", exc)
            self._error = exc
            self._state = ExportState.CANCELLED
        except Exception as exc:  # noqa: BLE001
            logger.error("Export failed: %s", exc)
            self._error = exc if isinstance(exc, ExportError) else ExportError(str(exc))
            self._state = ExportState.FAILED
        else:
            self._result = ExportResult(
                path=path,
                card_count=len(self._layout),
                page_count=self._layout.page_count,
                size_bytes=len(data),
            )
            self._state = ExportState.COMPLETED
        finally:
            self._fire_done()
            self._done.set()

    def _fire_done(self) -> None:
        if self._on_done is None:
            return
        try:
            self._on_done(self)
        except Exception as exc:  # noqa: BLE001
            logger.error("Export callback error: %s", exc)
