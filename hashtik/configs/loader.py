"""Configuration loader for HashTik.

Loads and validates ``app.yaml`` into typed, frozen dataclasses.
Installation-wide values (relay endpoint, timeouts, preview scale, fonts,
output locations) come from the config -- nothing is hardcoded in the
modules that consume them.

Per-batch settings (prefixes, counts, card layout) are *not* part of this
file; they live in the settings store as named templates.

Usage::

    from hashtik.configs.loader import load_config
    cfg = load_config()                    # default path
    cfg = load_config("/custom/app.yaml")  # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hashtik.errors import ConfigError
from hashtik.utils.fs import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "app.yaml"

RELAY_MODES = ("http", "routeros")
DATE_LOCALES = ("ar-EG", "iso")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RelayConfig:
    """Device relay connection settings."""

    mode: str = "http"
    url: str = ""
    api_key: str = ""
    timeout_s: float = 30.0
    script_name: str = "hashedAddCards"
    resolve_hostnames: bool = True


@dataclass(frozen=True)
class GenerationConfig:
    """Credential generator tuning."""

    attempts_factor: int = 50
    escape_strings: bool = False


@dataclass(frozen=True)
class PreviewConfig:
    """Preview surface scale.

    ``px_per_mm`` is the approximate CSS pixel density (96 dpi / 25.4).
    ``mm_per_pt`` converts typographic points to millimetres.
    """

    px_per_mm: float = 3.78
    mm_per_pt: float = 0.353


@dataclass(frozen=True)
class RenderConfig:
    """Fonts and date formatting shared by preview and export."""

    font_path: str | None = None
    bold_font_path: str | None = None
    date_locale: str = "ar-EG"


@dataclass(frozen=True)
class OutputConfig:
    """Where exported artifacts go and how they are named."""

    directory: str = "output"
    pdf_prefix: str = "hashtik-cards"
    text_prefix: str = "credentials"
    script_prefix: str = "mikrotik-script"


@dataclass(frozen=True)
class SettingsConfig:
    """Saved-template store location."""

    store_path: str = "~/.hashtik/settings.yaml"

    @property
    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser()


@dataclass(frozen=True)
class LoggingConfig:
    """Arguments forwarded to ``setup_logging``."""

    level: str = "INFO"
    file: str | None = None
    json: bool = False
    color: bool = True
    quiet_libs: tuple[str, ...] = ()

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "log_level": self.level,
            "log_file": self.file,
            "json": self.json,
            "color": self.color,
            "quiet_libs": list(self.quiet_libs),
        }


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration loaded from ``app.yaml``."""

    relay: RelayConfig = field(default_factory=RelayConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: AppConfig) -> None:
    """Check cross-field invariants; raise ``ConfigError`` on the first failure."""
    r = cfg.relay
    if r.mode not in RELAY_MODES:
        raise ConfigError(f"relay.mode must be one of {RELAY_MODES}, got {r.mode!r}")
    if r.timeout_s <= 0:
        raise ConfigError(f"relay.timeout_s must be > 0, got {r.timeout_s}")
    if r.mode == "http" and r.url and not r.url.startswith(("http://", "https://")):
        raise ConfigError(f"relay.url must be an http(s) URL, got {r.url!r}")

    if cfg.generation.attempts_factor < 1:
        raise ConfigError(
            f"generation.attempts_factor must be >= 1, "
            f"got {cfg.generation.attempts_factor}"
        )

    if cfg.preview.px_per_mm <= 0:
        raise ConfigError(f"preview.px_per_mm must be > 0, got {cfg.preview.px_per_mm}")
    if cfg.preview.mm_per_pt <= 0:
        raise ConfigError(f"preview.mm_per_pt must be > 0, got {cfg.preview.mm_per_pt}")

    if cfg.render.date_locale not in DATE_LOCALES:
        raise ConfigError(
            f"render.date_locale must be one of {DATE_LOCALES}, "
            f"got {cfg.render.date_locale!r}"
        )
    if cfg.render.bold_font_path and not cfg.render.font_path:
        raise ConfigError("render.bold_font_path requires render.font_path")

    if cfg.logging.level.upper() not in LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {LOG_LEVELS}, got {cfg.logging.level!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``app.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    AppConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field has the wrong type or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        relay_data = data.get("relay", {})
        relay = RelayConfig(
            mode=str(relay_data.get("mode", "http")),
            url=str(relay_data.get("url") or ""),
            api_key=str(relay_data.get("api_key") or ""),
            timeout_s=float(relay_data.get("timeout_s", 30.0)),
            script_name=str(relay_data.get("script_name", "hashedAddCards")),
            resolve_hostnames=bool(relay_data.get("resolve_hostnames", True)),
        )

        gen_data = data.get("generation", {})
        generation = GenerationConfig(
            attempts_factor=int(gen_data.get("attempts_factor", 50)),
            escape_strings=bool(gen_data.get("escape_strings", False)),
        )

        pv = data.get("preview", {})
        preview = PreviewConfig(
            px_per_mm=float(pv.get("px_per_mm", 3.78)),
            mm_per_pt=float(pv.get("mm_per_pt", 0.353)),
        )

        rd = data.get("render", {})
        render = RenderConfig(
            font_path=rd.get("font_path") or None,
            bold_font_path=rd.get("bold_font_path") or None,
            date_locale=str(rd.get("date_locale", "ar-EG")),
        )

        out = data.get("output", {})
        output = OutputConfig(
            directory=str(out.get("directory", "output")),
            pdf_prefix=str(out.get("pdf_prefix", "hashtik-cards")),
            text_prefix=str(out.get("text_prefix", "credentials")),
            script_prefix=str(out.get("script_prefix", "mikrotik-script")),
        )

        st = data.get("settings", {})
        settings = SettingsConfig(
            store_path=str(st.get("store_path", "~/.hashtik/settings.yaml")),
        )

        lg = data.get("logging", {})
        logging_cfg = LoggingConfig(
            level=str(lg.get("level", "INFO")),
            file=lg.get("file") or None,
            json=bool(lg.get("json", False)),
            color=bool(lg.get("color", True)),
            quiet_libs=tuple(str(x) for x in lg.get("quiet_libs", []) or []),
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc

    cfg = AppConfig(
        relay=relay,
        generation=generation,
        preview=preview,
        render=render,
        output=output,
        settings=settings,
        logging=logging_cfg,
    )
    _validate_config(cfg)
    return cfg
