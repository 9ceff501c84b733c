"""Tests for the preview renderer, PDF exporter, export task and artifacts."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest
from PIL import Image

from hashtik.credentials.models import Credential
from hashtik.errors import ExportError
from hashtik.layout import LayoutParameters, layout_page
from hashtik.render import (
    ExportCancelled,
    ExportState,
    ExportTask,
    FontSpec,
    PdfCardExporter,
    artifact_name,
    credentials_text,
    export_pdf,
    preview_summary,
    render_card_preview,
    write_credentials_text,
    write_script,
)
from hashtik.render.preview import BORDER_COLOR, EMPTY_BORDER_COLOR, PLACEHOLDER_FILL

TODAY = date(2026, 10, 17)


def _creds(n: int) -> list[Credential]:
    return [Credential(f"u{i:04d}", f"p{i:04d}", "default", "", "") for i in range(n)]


def _page_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Type\s*/Page(?!s)", pdf))


@pytest.fixture()
def params() -> LayoutParameters:
    return LayoutParameters()


@pytest.fixture()
def red_png(tmp_path: Path) -> Path:
    path = tmp_path / "bg.png"
    Image.new("RGB", (40, 12), (255, 0, 0)).save(path)
    return path


@pytest.fixture()
def broken_png(tmp_path: Path) -> Path:
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")
    return path


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


class TestPreview:
    def test_size_follows_geometry(self, params: LayoutParameters) -> None:
        img = render_card_preview(_creds(1)[0], params, today=TODAY)
        assert img.size == (round(50 * 3.78), round(259 / 18 * 3.78))
        assert img.mode == "RGB"

    def test_border_and_white_fill(self, params: LayoutParameters) -> None:
        img = render_card_preview(_creds(1)[0], params, today=TODAY)
        w, h = img.size
        assert img.getpixel((0, 0)) == BORDER_COLOR
        assert img.getpixel((w - 5, h - 3)) == (255, 255, 255)

    def test_username_is_drawn(self, params: LayoutParameters) -> None:
        img = render_card_preview(_creds(1)[0], params, today=TODAY)
        # Username baseline sits at (5 mm, 5 mm) = (18.9 px, 18.9 px).
        region = img.crop((15, 5, 70, 25)).convert("L")
        assert min(region.getdata()) < 128

    def test_background_stretched(self, params: LayoutParameters, red_png: Path) -> None:
        p = replace(params, background_image=str(red_png))
        img = render_card_preview(_creds(1)[0], p, today=TODAY)
        w, h = img.size
        assert img.getpixel((w - 5, h - 3)) == (255, 0, 0)

    def test_broken_background_placeholder(
        self, params: LayoutParameters, broken_png: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        p = replace(params, background_image=str(broken_png))
        with caplog.at_level(logging.WARNING):
            img = render_card_preview(_creds(1)[0], p, today=TODAY)
        w, h = img.size
        assert img.getpixel((w - 5, h - 3)) == PLACEHOLDER_FILL
        assert "could not be loaded" in caplog.text

    def test_no_credential_placeholder(self, params: LayoutParameters) -> None:
        img = render_card_preview(None, params)
        colors = {c for _, c in img.getcolors(4096)}
        assert EMPTY_BORDER_COLOR in colors
        assert BORDER_COLOR not in colors

    def test_custom_scale(self, params: LayoutParameters) -> None:
        img = render_card_preview(_creds(1)[0], params, px_per_mm=2.0, today=TODAY)
        assert img.size[0] == 100

    def test_summary(self) -> None:
        assert preview_summary([]) == {"count": 0}
        summary = preview_summary(_creds(3))
        assert summary == {"count": 3, "profile": "default", "username_length": 5, "password_length": 5}


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------


class TestPdfExport:
    def test_pages_and_header(self, params: LayoutParameters) -> None:
        data = export_pdf(layout_page(_creds(150), params, today=TODAY))
        assert data.startswith(b"%PDF")
        assert _page_count(data) == 3

    def test_single_page_boundary(self, params: LayoutParameters) -> None:
        assert _page_count(export_pdf(layout_page(_creds(72), params, today=TODAY))) == 1
        assert _page_count(export_pdf(layout_page(_creds(73), params, today=TODAY))) == 2

    def test_all_fields_enabled(self, params: LayoutParameters) -> None:
        p = replace(
            params,
            serial=replace(params.serial, enabled=True, bold=True),
            date=replace(params.date, enabled=True),
        )
        data = export_pdf(layout_page(_creds(5), p, today=TODAY))
        assert data.startswith(b"%PDF")

    def test_background_embedded(self, params: LayoutParameters, red_png: Path) -> None:
        p = replace(params, background_image=str(red_png))
        data = export_pdf(layout_page(_creds(10), p, today=TODAY))
        assert b"/Subtype /Image" in data

    def test_broken_background_degrades(
        self, params: LayoutParameters, broken_png: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        p = replace(params, background_image=str(broken_png))
        with caplog.at_level(logging.WARNING):
            data = export_pdf(layout_page(_creds(10), p, today=TODAY))
        assert data.startswith(b"%PDF")
        assert b"/Subtype /Image" not in data
        assert "could not be drawn" in caplog.text

    def test_empty_layout_rejected(self, params: LayoutParameters) -> None:
        with pytest.raises(ExportError):
            export_pdf(layout_page([], params))

    def test_cancel_event(self, params: LayoutParameters) -> None:
        event = threading.Event()
        event.set()
        with pytest.raises(ExportCancelled):
            export_pdf(layout_page(_creds(3), params), cancel_event=event)

    def test_progress_reported(self, params: LayoutParameters) -> None:
        seen: list[tuple[int, int]] = []
        export_pdf(layout_page(_creds(4), params), progress=lambda d, t: seen.append((d, t)))
        assert seen == [(1, 4), (2, 4), (3, 4), (4, 4)]

    def test_missing_font_file(self, params: LayoutParameters, tmp_path: Path) -> None:
        fonts = FontSpec(path=str(tmp_path / "missing.ttf"))
        with pytest.raises(ExportError):
            PdfCardExporter(fonts).render(layout_page(_creds(1), params))


# ---------------------------------------------------------------------------
# Export task
# ---------------------------------------------------------------------------


class TestExportTask:
    def test_completes_and_writes(self, params: LayoutParameters, tmp_path: Path) -> None:
        done: list[ExportTask] = []
        task = ExportTask(layout_page(_creds(80), params), tmp_path, on_done=done.append)
        assert task.state is ExportState.PENDING
        task.start()
        assert task.wait(30)
        assert task.state is ExportState.COMPLETED
        assert done == [task]
        result = task.result
        assert result is not None
        assert result.path.parent == tmp_path
        assert result.path.name.startswith("hashtik-cards-")
        assert result.path.suffix == ".pdf"
        assert result.card_count == 80
        assert result.page_count == 2
        assert result.path.read_bytes().startswith(b"%PDF")
        assert task.progress == (80, 80)

    def test_cannot_start_twice(self, params: LayoutParameters, tmp_path: Path) -> None:
        task = ExportTask(layout_page(_creds(1), params), tmp_path).start()
        task.wait(30)
        with pytest.raises(RuntimeError):
            task.start()

    def test_cancel_before_start(self, params: LayoutParameters, tmp_path: Path) -> None:
        task = ExportTask(layout_page(_creds(5), params), tmp_path)
        task.cancel()
        assert task.state is ExportState.CANCELLED
        assert task.wait(0)
        with pytest.raises(ExportCancelled):
            task.run()
        assert list(tmp_path.iterdir()) == []

    def test_cancel_mid_export_writes_nothing(
        self, params: LayoutParameters, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        out = tmp_path / "out"
        task = ExportTask(layout_page(_creds(20), params), out)
        original = PdfCardExporter._draw_card

        def draw_then_cancel(self, pdf, card, background):  # type: ignore[no-untyped-def]
            original(self, pdf, card, background)
            task.cancel()

        monkeypatch.setattr(PdfCardExporter, "_draw_card", draw_then_cancel)
        task.start()
        assert task.wait(30)
        assert task.state is ExportState.CANCELLED
        assert isinstance(task.error, ExportCancelled)
        assert task.progress[0] == 1
        assert not out.exists() or list(out.iterdir()) == []

    def test_failure_reported(self, params: LayoutParameters, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        task = ExportTask(layout_page(_creds(2), params), blocker / "sub")
        task.start()
        assert task.wait(30)
        assert task.state is ExportState.FAILED
        assert isinstance(task.error, ExportError)
        assert task.result is None

    def test_run_synchronously(self, params: LayoutParameters, tmp_path: Path) -> None:
        result = ExportTask(layout_page(_creds(3), params), tmp_path).run()
        assert result.path.exists()

    def test_run_while_running_raises(
        self, params: LayoutParameters, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        entered, release = threading.Event(), threading.Event()
        original = PdfCardExporter._draw_card

        def blocking_draw(self, pdf, card, background):  # type: ignore[no-untyped-def]
            entered.set()
            release.wait(30)
            original(self, pdf, card, background)

        monkeypatch.setattr(PdfCardExporter, "_draw_card", blocking_draw)
        task = ExportTask(layout_page(_creds(2), params), tmp_path).start()
        assert entered.wait(30)
        with pytest.raises(ExportError, match="still running"):
            task.run()
        release.set()
        assert task.wait(30)
        assert task.state is ExportState.COMPLETED


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


class TestArtifacts:
    def test_credentials_text(self) -> None:
        assert credentials_text(_creds(2)) == "u0000\tp0000\nu0001\tp0001\n"
        assert credentials_text([]) == ""

    def test_artifact_name(self) -> None:
        assert artifact_name("credentials", ".txt", 1700000000000) == "credentials-1700000000000.txt"

    def test_write_files(self, tmp_path: Path) -> None:
        txt = write_credentials_text(_creds(1), tmp_path, timestamp_ms=5)
        rsc = write_script("/delay 1ms;\n", tmp_path, timestamp_ms=5)
        assert txt.name == "credentials-5.txt"
        assert txt.read_text(encoding="utf-8") == "u0000\tp0000\n"
        assert rsc.name == "mikrotik-script-5.rsc"
        assert rsc.read_text(encoding="utf-8") == "/delay 1ms;\n"
