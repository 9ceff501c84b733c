"""Single-operator session tying generator, layout, export and relay together.

The session owns the current settings template, the existing-username
list fetched from the router and the last ``GenerationResult``.  A new
generation replaces the stored result in one assignment; a failed one
leaves it untouched.  Exports run on their own snapshot, so generating
again while an export runs is safe.

Relay failures never affect local work: the session stays fully usable
with no relay configured at all.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from hashtik.configs.loader import AppConfig
from hashtik.credentials.generator import CredentialGenerator, merge_existing
from hashtik.credentials.models import GenerationRequest, GenerationResult
from hashtik.errors import RelayError
from hashtik.layout.engine import CardLayout, layout_page
from hashtik.layout.models import LayoutParameters
from hashtik.relay.base import DeviceRelay
from hashtik.relay.models import DeviceCredentials, device_credentials
from hashtik.render import artifacts
from hashtik.render.export_task import ExportResult, ExportTask
from hashtik.render.fonts import FontSpec
from hashtik.render.preview import render_card_preview
from hashtik.settings.schema import SettingsTemplate
from hashtik.settings.store import SettingsStore

logger = logging.getLogger(__name__)


class Session:
    """Generate, preview, export and push card batches.

    Parameters
    ----------
    config : AppConfig | None
        Application configuration; defaults apply when omitted.
    relay : DeviceRelay | None
        Device relay; relay operations raise ``RelayError`` without one.
    store : SettingsStore | None
        Template store for ``save_template`` / ``load_template``.
    generator : CredentialGenerator | None
        Injected generator (tests pass a seeded one).
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        relay: DeviceRelay | None = None,
        store: SettingsStore | None = None,
        generator: CredentialGenerator | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.relay = relay
        self.store = store
        self.generator = generator or CredentialGenerator(
            attempts_factor=self.config.generation.attempts_factor,
            escape_strings=self.config.generation.escape_strings,
        )
        self.fonts = FontSpec.from_config(self.config.render)

        self.template = SettingsTemplate()
        self.background_image: str | None = None
        self.existing_usernames: tuple[str, ...] = ()

        self._result: GenerationResult | None = None
        self._device: DeviceCredentials | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def result(self) -> GenerationResult | None:
        return self._result

    @property
    def device(self) -> DeviceCredentials | None:
        return self._device

    def generation_request(self) -> GenerationRequest:
        return self.template.to_generation_request(self.existing_usernames)

    def layout_parameters(self) -> LayoutParameters:
        return self.template.to_layout_parameters(self.background_image)

    def _require_result(self) -> GenerationResult:
        if self._result is None:
            raise RuntimeError("Nothing generated yet")
        return self._result

    def _layout(self, today: date | None = None) -> CardLayout:
        return layout_page(
            self._require_result().credentials,
            self.layout_parameters(),
            today=today,
            date_locale=self.config.render.date_locale,
        )

    # ------------------------------------------------------------------
    # Generation / preview
    # ------------------------------------------------------------------

    def generate(self) -> GenerationResult:
        """Generate a new batch and make it the current result.

        Raises
        ------
        ValidationError, RetryExhaustedError
            The previous result is kept.
        """
        result = self.generator.generate(self.generation_request())
        self._result = result
        return result

    def preview(self, today: date | None = None) -> Image.Image:
        """Preview of the first card (empty placeholder before generation)."""
        first = self._result.credentials[0] if self._result is not None else None
        return render_card_preview(
            first,
            self.layout_parameters(),
            fonts=self.fonts,
            px_per_mm=self.config.preview.px_per_mm,
            mm_per_pt=self.config.preview.mm_per_pt,
            today=today,
            date_locale=self.config.render.date_locale,
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _out_dir(self, out_dir: str | Path | None) -> Path:
        return Path(out_dir) if out_dir is not None else Path(self.config.output.directory)

    def start_export(
        self,
        out_dir: str | Path | None = None,
        on_done: Optional[Callable[[ExportTask], None]] = None,
        today: date | None = None,
    ) -> ExportTask:
        """Start a background PDF export of the current result."""
        task = ExportTask(
            self._layout(today),
            self._out_dir(out_dir),
            fonts=self.fonts,
            prefix=self.config.output.pdf_prefix,
            on_done=on_done,
        )
        return task.start()

    def export_pdf(self, out_dir: str | Path | None = None, today: date | None = None) -> ExportResult:
        """Export synchronously.

        Raises
        ------
        ExportError
        """
        task = ExportTask(
            self._layout(today),
            self._out_dir(out_dir),
            fonts=self.fonts,
            prefix=self.config.output.pdf_prefix,
        )
        return task.run()

    def save_credentials_text(self, out_dir: str | Path | None = None) -> Path:
        return artifacts.write_credentials_text(
            self._require_result().credentials,
            self._out_dir(out_dir),
            self.config.output.text_prefix,
        )

    def save_script(self, out_dir: str | Path | None = None) -> Path:
        return artifacts.write_script(
            self._require_result().script,
            self._out_dir(out_dir),
            self.config.output.script_prefix,
        )

    # ------------------------------------------------------------------
    # Relay
    # ------------------------------------------------------------------

    def _require_relay(self) -> DeviceRelay:
        if self.relay is None:
            raise RelayError("No device relay configured")
        return self.relay

    def _require_device(self) -> DeviceCredentials:
        if self._device is None:
            raise RelayError("Not connected to a device")
        return self._device

    def connect(self, host: str, port: int, username: str, password: str = "") -> None:
        """Validate the login and test it against the device.

        Raises
        ------
        RelayError
            On validation failure or when the device cannot be reached.
            The session stays disconnected.
        """
        creds = device_credentials(host, port, username, password)
        self._require_relay().connect(creds)
        self._device = creds

    def disconnect(self) -> None:
        self._device = None
        self.existing_usernames = ()

    def load_existing_users(self) -> tuple[str, ...]:
        """Fetch router usernames so new batches avoid them."""
        users = self._require_relay().list_users(self._require_device())
        self.existing_usernames = merge_existing(users)
        logger.info("%d existing usernames will be avoided", len(self.existing_usernames))
        return self.existing_usernames

    def push_script(self, run: bool = False, script_name: str | None = None) -> None:
        """Upload the current script and optionally run it.

        Upload and run are two independent calls; a failed run leaves the
        uploaded script in place.
        """
        relay = self._require_relay()
        device = self._require_device()
        name = script_name or self.config.relay.script_name
        relay.push_script(device, name, self._require_result().script)
        if run:
            relay.run_script(device, name)

    def run_script(self, script_name: str | None = None) -> None:
        self._require_relay().run_script(
            self._require_device(), script_name or self.config.relay.script_name,
        )

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def _require_store(self) -> SettingsStore:
        if self.store is None:
            raise RuntimeError("No settings store configured")
        return self.store

    def save_template(self, profile: str, name: str) -> None:
        self._require_store().save(profile, name, self.template)

    def load_template(self, profile: str, name: str) -> SettingsTemplate:
        """Replace the current template.  The background image is cleared."""
        self.template = self._require_store().load(profile, name)
        self.background_image = None
        return self.template
