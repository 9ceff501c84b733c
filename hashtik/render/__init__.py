"""
Card renderers: Pillow preview, fpdf2 PDF export, background export task
and the downloadable artifact writers.
"""

from hashtik.render.artifacts import (
    artifact_name,
    credentials_text,
    write_credentials_text,
    write_pdf,
    write_script,
)
from hashtik.render.export_task import ExportResult, ExportState, ExportTask
from hashtik.render.fonts import FontSpec
from hashtik.render.pdf_export import ExportCancelled, PdfCardExporter, export_pdf
from hashtik.render.preview import load_background, preview_summary, render_card_preview

__all__ = [
    "ExportCancelled",
    "ExportResult",
    "ExportState",
    "ExportTask",
    "FontSpec",
    "PdfCardExporter",
    "artifact_name",
    "credentials_text",
    "export_pdf",
    "load_background",
    "preview_summary",
    "render_card_preview",
    "write_credentials_text",
    "write_pdf",
    "write_script",
]
