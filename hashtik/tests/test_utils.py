"""Test filesystem helpers and logging setup.

Tests for hashtik.utils:
    - Atomic writes leave no tmp file behind
    - YAML dump/load keeps key order and unicode
    - setup_logging is idempotent and writes JSON lines
    - Context fields are attached and removable

Run:
    pytest hashtik/tests/test_utils.py -v
"""

from __future__ import annotations

import contextlib
import io
import json
import logging
import logging.handlers

import pytest
import yaml

from hashtik.utils import fs, logging_config


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging_config.pop_context()


# ---------------------------------------------------------------------------
# fs
# ---------------------------------------------------------------------------


def test_atomic_write_bytes(tmp_path):
    target = tmp_path / "a" / "b" / "cards.pdf"
    fs.atomic_write_bytes(target, b"%PDF-1.3")
    assert target.read_bytes() == b"%PDF-1.3"
    assert [p.name for p in target.parent.iterdir()] == ["cards.pdf"]


def test_atomic_write_text_verbatim(tmp_path):
    target = tmp_path / "script.rsc"
    fs.atomic_write_text(target, "line1\nline2")
    assert target.read_bytes() == b"line1\nline2"


def test_yaml_roundtrip_keeps_order(tmp_path):
    data = {"zeta": {"b": 1, "a": 2}, "alpha": ["١", "x"]}
    path = tmp_path / "s.yaml"
    fs.atomic_yaml_dump(data, path)
    text = path.read_text(encoding="utf-8")
    assert text.index("zeta") < text.index("alpha")
    assert "١" in text
    assert fs.load_yaml(path) == data


def test_load_yaml_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        fs.load_yaml(tmp_path / "missing.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("a: [", encoding="utf-8")
    with pytest.raises(yaml.YAMLError):
        fs.load_yaml(bad)


def test_timestamp_ms_is_millis():
    ts = fs.timestamp_ms()
    assert ts > 1_600_000_000_000
    assert isinstance(ts, int)


# ---------------------------------------------------------------------------
# logging
# ---------------------------------------------------------------------------


def test_logging_idempotent_json(tmp_path, restore_root_logging):
    log_path = tmp_path / "logs" / "hashtik.log"
    errbuf = io.StringIO()
    with contextlib.redirect_stderr(errbuf):
        for _ in range(2):
            handlers = logging_config.setup_logging(
                log_level="INFO",
                log_file=str(log_path),
                json=True,
                to_stderr=False,
                context={"app": "test"},
            )
        assert len(handlers) == 1
        logging_config.get_logger("hashtik.test").info("Generated %d credentials", 50)

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1
    rec = json.loads(lines[0])
    assert rec["lvl"] == "INFO"
    assert rec["msg"] == "Generated 50 credentials"
    assert rec["app"] == "test"
    assert rec["name"] == "hashtik.test"


def test_logging_human_format_and_context(tmp_path, restore_root_logging):
    log_path = tmp_path / "hashtik.log"
    logging_config.setup_logging(log_file=str(log_path), to_stderr=False)
    logging_config.push_context(batch="b17", profile="lobby")
    logging_config.pop_context(keys=["profile"])
    logging.getLogger("hashtik.test").warning("Background image missing")

    line = log_path.read_text(encoding="utf-8").strip()
    assert "| WARNING  |" in line
    assert "batch=b17 |" in line
    assert "profile=" not in line
    assert line.endswith("Background image missing")


def test_quiet_libs(restore_root_logging):
    logging_config.setup_logging(to_stderr=False, quiet_libs=["httpx"])
    assert logging.getLogger("httpx").level == logging.WARNING


def test_bad_rotation_mode(tmp_path, restore_root_logging):
    with pytest.raises(ValueError):
        logging_config.setup_logging(
            log_file=str(tmp_path / "x.log"), to_stderr=False, rotate={"mode": "weekly"},
        )


def test_size_rotation(tmp_path, restore_root_logging):
    handlers = logging_config.setup_logging(
        log_file=str(tmp_path / "x.log"),
        to_stderr=False,
        rotate={"mode": "size", "max_bytes": 1000, "backup_count": 2},
    )
    assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)
