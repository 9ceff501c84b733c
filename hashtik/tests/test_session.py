"""Tests for the generate / preview / export / push session."""

from __future__ import annotations

import random
from pathlib import Path
from typing import List

import pytest

from hashtik.credentials.generator import CredentialGenerator
from hashtik.errors import RelayError, ValidationError
from hashtik.relay import DeviceCredentials, DeviceRelay
from hashtik.render import ExportState
from hashtik.session import Session
from hashtik.settings import InMemorySettingsStore, SettingsTemplate


class FakeRelay:
    """Records calls; fails the ones named in ``fail``."""

    def __init__(self, users: List[str] | None = None, fail: tuple[str, ...] = ()) -> None:
        self.users = users or []
        self.fail = fail
        self.calls: list[tuple] = []
        self.scripts: dict[str, str] = {}

    def _record(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise RelayError(f"{name} failed", action=name)

    def connect(self, credentials: DeviceCredentials) -> None:
        self._record("connect", credentials.host)

    def list_users(self, credentials: DeviceCredentials) -> List[str]:
        self._record("list_users")
        return list(self.users)

    def push_script(self, credentials: DeviceCredentials, script_name: str, script: str) -> None:
        self._record("push_script", script_name)
        self.scripts[script_name] = script

    def run_script(self, credentials: DeviceCredentials, script_name: str) -> None:
        self._record("run_script", script_name)


def _session(**kwargs) -> Session:  # type: ignore[no-untyped-def]
    kwargs.setdefault("generator", CredentialGenerator(rng=random.Random(3)))
    session = Session(**kwargs)
    session.template = SettingsTemplate(credential={"accountCount": 10, "codeLength": 5})
    return session


@pytest.fixture()
def relay() -> FakeRelay:
    return FakeRelay(users=["taken1", "taken2"])


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class TestGeneration:
    def test_fake_relay_satisfies_protocol(self, relay: FakeRelay) -> None:
        assert isinstance(relay, DeviceRelay)

    def test_generate_sets_result(self) -> None:
        session = _session()
        assert session.result is None
        result = session.generate()
        assert session.result is result
        assert len(result) == 10

    def test_regenerate_replaces(self) -> None:
        session = _session()
        first = session.generate()
        second = session.generate()
        assert session.result is second
        assert first.usernames != second.usernames

    def test_failed_generation_keeps_previous(self) -> None:
        session = _session()
        first = session.generate()
        session.template = SettingsTemplate.model_construct(
            mikrotik=session.template.mikrotik,
            credential=session.template.credential.model_copy(update={"code_length": 2}),
            print_settings=session.template.print_settings,
        )
        with pytest.raises(ValidationError):
            session.generate()
        assert session.result is first

    def test_nothing_generated_yet(self, tmp_path: Path) -> None:
        session = _session()
        with pytest.raises(RuntimeError, match="Nothing generated"):
            session.export_pdf(tmp_path)
        with pytest.raises(RuntimeError):
            session.save_script(tmp_path)

    def test_preview_before_and_after(self) -> None:
        session = _session()
        empty = session.preview()
        session.generate()
        card = session.preview()
        assert empty.size == card.size


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


class TestExport:
    def test_export_pdf(self, tmp_path: Path) -> None:
        session = _session()
        session.generate()
        result = session.export_pdf(tmp_path)
        assert result.card_count == 10
        assert result.page_count == 1
        assert result.path.read_bytes().startswith(b"%PDF")

    def test_background_export_uses_snapshot(self, tmp_path: Path) -> None:
        session = _session()
        first = session.generate()
        task = session.start_export(tmp_path)
        session.generate()
        assert task.wait(30)
        assert task.state is ExportState.COMPLETED
        assert task.result is not None
        assert task.result.card_count == len(first)

    def test_text_and_script_files(self, tmp_path: Path) -> None:
        session = _session()
        result = session.generate()
        script = session.save_script(tmp_path)
        text = session.save_credentials_text(tmp_path)
        assert script.name.startswith("mikrotik-script-")
        assert script.read_text(encoding="utf-8") == result.script
        lines = text.read_text(encoding="utf-8").split("\n")
        assert lines[0] == f"{result.credentials[0].username}\t{result.credentials[0].password}"


# ---------------------------------------------------------------------------
# Relay
# ---------------------------------------------------------------------------


class TestRelay:
    def test_connect_and_avoid_existing(self, relay: FakeRelay) -> None:
        session = _session(relay=relay)
        session.connect("router.example.net", 80, "admin", "pw")
        assert session.device is not None
        assert session.load_existing_users() == ("taken1", "taken2")
        assert session.generation_request().existing_usernames == ("taken1", "taken2")

    def test_invalid_login_not_sent(self, relay: FakeRelay) -> None:
        session = _session(relay=relay)
        with pytest.raises(RelayError, match="Host address not permitted"):
            session.connect("192.168.88.1", 80, "admin")
        assert relay.calls == []
        assert session.device is None

    def test_failed_connect_stays_disconnected(self) -> None:
        session = _session(relay=FakeRelay(fail=("connect",)))
        with pytest.raises(RelayError):
            session.connect("router.example.net", 80, "admin")
        assert session.device is None

    def test_push_and_run(self, relay: FakeRelay) -> None:
        session = _session(relay=relay)
        session.connect("router.example.net", 80, "admin")
        result = session.generate()
        session.push_script(run=True)
        assert relay.scripts["hashedAddCards"] == result.script
        assert [c[0] for c in relay.calls] == ["connect", "push_script", "run_script"]

    def test_failed_run_keeps_upload(self) -> None:
        relay = FakeRelay(fail=("run_script",))
        session = _session(relay=relay)
        session.connect("router.example.net", 80, "admin")
        session.generate()
        with pytest.raises(RelayError, match="run_script failed"):
            session.push_script(run=True, script_name="batch7")
        assert "batch7" in relay.scripts

    def test_relay_failure_leaves_local_work(self, tmp_path: Path) -> None:
        session = _session(relay=FakeRelay(fail=("push_script",)))
        session.connect("router.example.net", 80, "admin")
        session.generate()
        with pytest.raises(RelayError):
            session.push_script()
        assert session.export_pdf(tmp_path).card_count == 10

    def test_no_relay_or_device(self, relay: FakeRelay) -> None:
        with pytest.raises(RelayError, match="No device relay"):
            _session().connect("router.example.net", 80, "admin")
        with pytest.raises(RelayError, match="Not connected"):
            _session(relay=relay).load_existing_users()

    def test_disconnect_clears_existing(self, relay: FakeRelay) -> None:
        session = _session(relay=relay)
        session.connect("router.example.net", 80, "admin")
        session.load_existing_users()
        session.disconnect()
        assert session.device is None
        assert session.existing_usernames == ()


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TestTemplates:
    def test_save_and_load(self) -> None:
        store = InMemorySettingsStore()
        session = _session(store=store)
        session.background_image = "card.png"
        session.save_template("lobby", "ten")

        other = _session(store=store)
        other.template = SettingsTemplate()
        other.background_image = "other.png"
        loaded = other.load_template("lobby", "ten")
        assert loaded.credential.account_count == 10
        assert other.background_image is None

    def test_no_store(self) -> None:
        with pytest.raises(RuntimeError, match="No settings store"):
            _session().save_template("p", "t")
