"""Smoke tests for the ``hashtik-cards`` command."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

import pytest
import yaml

from hashtik.scripts.generate_cards import apply_overrides, main
from hashtik.settings import SettingsTemplate


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "app.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "settings": {"store_path": str(tmp_path / "store.yaml")},
                "logging": {"level": "WARNING", "color": False},
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def _args(**overrides) -> argparse.Namespace:  # type: ignore[no-untyped-def]
    base = dict(
        vendor=None, count=None, length=None, type=None, match=None, prefix=None,
        suffix=None, pass_suffix=None, profile=None, comment=None, columns=None,
        rows=None, spacing=None, serial=False, date=False,
    )
    base.update(overrides)
    return argparse.Namespace(**base)


class TestOverrides:
    def test_no_overrides_is_identity(self) -> None:
        t = SettingsTemplate()
        assert apply_overrides(t, _args()) == t

    def test_fields_applied(self) -> None:
        t = apply_overrides(
            SettingsTemplate(),
            _args(vendor="um6", count=7, type="letters", match="empty", columns=3, serial=True),
        )
        assert t.mikrotik.mikrotik_version == "v6"
        assert t.credential.account_count == 7
        assert t.credential.credential_match == "empty"
        assert t.print_settings.columns == 3
        assert t.print_settings.use_serial_number is True
        assert t.print_settings.print_serial is True


class TestMain:
    def test_generate_files(self, tmp_path: Path, config_file: Path) -> None:
        out = tmp_path / "out"
        code = main(["-c", str(config_file), "-o", str(out), "--count", "12", "--length", "6"])
        assert code == 0
        names = sorted(p.name.split("-")[0] for p in out.iterdir())
        assert names == ["credentials", "hashtik", "mikrotik"]
        text = next(out.glob("credentials-*.txt")).read_text(encoding="utf-8")
        assert len(text.splitlines()) == 12
        assert text.endswith("\n")

    def test_batch_summary_printed(
        self, tmp_path: Path, config_file: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = main(["-c", str(config_file), "-o", str(tmp_path), "--no-pdf", "--count", "4", "--length", "7"])
        assert code == 0
        out = capsys.readouterr().out
        assert "count=4, profile=default, username_length=7, password_length=7" in out

    def test_relay_failure_keeps_local_files(self, tmp_path: Path) -> None:
        log_path = tmp_path / "cli.log"
        config = tmp_path / "app.yaml"
        config.write_text(
            yaml.safe_dump({"logging": {"level": "WARNING", "color": False, "json": True, "file": str(log_path)}}),
            encoding="utf-8",
        )
        out = tmp_path / "out"
        code = main(["-c", str(config), "--count", "3", "--no-pdf", "-o", str(out), "--host", "10.0.0.1", "--push"])
        assert code == 1
        assert len(list(out.glob("mikrotik-script-*.rsc"))) == 1
        text = next(out.glob("credentials-*.txt")).read_text(encoding="utf-8")
        assert len(text.splitlines()) == 3

        records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
        assert records[-1]["lvl"] == "ERROR"
        assert records[-1]["app"] == "cli"
        assert records[-1]["batch"] == 3

    def test_avoid_existing_failure_generates_nothing(self, tmp_path: Path, config_file: Path) -> None:
        out = tmp_path / "out"
        code = main(["-c", str(config_file), "-o", str(out), "--host", "10.0.0.1", "--avoid-existing"])
        assert code == 1
        assert not out.exists()

    def test_no_pdf_with_preview(self, tmp_path: Path, config_file: Path) -> None:
        out = tmp_path / "out"
        preview = tmp_path / "prev" / "card.png"
        code = main(["-c", str(config_file), "-o", str(out), "--no-pdf", "--preview", str(preview)])
        assert code == 0
        assert preview.exists()
        assert not list(out.glob("*.pdf"))

    def test_save_then_load(self, tmp_path: Path, config_file: Path) -> None:
        out = str(tmp_path / "out")
        assert main(["-c", str(config_file), "-o", out, "--no-pdf", "--count", "3", "--save", "site/small"]) == 0
        stored = yaml.safe_load((tmp_path / "store.yaml").read_text(encoding="utf-8"))
        assert stored["site"]["small"]["credential"]["accountCount"] == 3
        assert main(["-c", str(config_file), "-o", out, "--no-pdf", "--load", "site/small"]) == 0

    def test_invalid_override(self, tmp_path: Path, config_file: Path) -> None:
        assert main(["-c", str(config_file), "-o", str(tmp_path), "--length", "3"]) == 1

    def test_push_needs_host(self, tmp_path: Path, config_file: Path) -> None:
        assert main(["-c", str(config_file), "-o", str(tmp_path), "--push"]) == 2

    def test_bad_config(self, tmp_path: Path) -> None:
        assert main(["-c", str(tmp_path / "missing.yaml")]) == 1

    def test_unknown_template(self, tmp_path: Path, config_file: Path) -> None:
        assert main(["-c", str(config_file), "-o", str(tmp_path), "--load", "nope/none"]) == 1
