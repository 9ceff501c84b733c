"""Downloadable artifacts: PDF sheets, credential list, RouterOS script.

File names follow ``<prefix>-<epoch-ms>.<ext>``.  All writes are atomic
(temp file + rename) via ``hashtik.utils.fs``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from hashtik.credentials.models import Credential
from hashtik.utils import fs

logger = logging.getLogger(__name__)

PDF_PREFIX = "hashtik-cards"
TEXT_PREFIX = "credentials"
SCRIPT_PREFIX = "mikrotik-script"

PathLike = Union[str, Path]


def artifact_name(prefix: str, extension: str, timestamp_ms: Optional[int] = None) -> str:
    ts = fs.timestamp_ms() if timestamp_ms is None else timestamp_ms
    return f"{prefix}-{ts}.{extension.lstrip('.')}"


def credentials_text(credentials: Iterable[Credential]) -> str:
    """One newline-terminated ``username<TAB>password`` line per credential."""
    return "".join(f"{c.username}\t{c.password}\n" for c in credentials)


def write_pdf(
    data: bytes,
    out_dir: PathLike,
    prefix: str = PDF_PREFIX,
    timestamp_ms: Optional[int] = None,
) -> Path:
    path = Path(out_dir) / artifact_name(prefix, "pdf", timestamp_ms)
    fs.atomic_write_bytes(path, data)
    logger.info("Wrote %s (%d bytes)", path, len(data))
    return path


def write_credentials_text(
    credentials: Iterable[Credential],
    out_dir: PathLike,
    prefix: str = TEXT_PREFIX,
    timestamp_ms: Optional[int] = None,
) -> Path:
    path = Path(out_dir) / artifact_name(prefix, "txt", timestamp_ms)
    fs.atomic_write_text(path, credentials_text(credentials))
    logger.info("Wrote %s", path)
    return path


def write_script(
    script: str,
    out_dir: PathLike,
    prefix: str = SCRIPT_PREFIX,
    timestamp_ms: Optional[int] = None,
) -> Path:
    path = Path(out_dir) / artifact_name(prefix, "rsc", timestamp_ms)
    fs.atomic_write_text(path, script)
    logger.info("Wrote %s (%d chars)", path, len(script))
    return path
