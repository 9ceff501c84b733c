"""
RouterOS script emission.

Converts generated credentials to ``.rsc`` command lines for User Manager
(v6 / v7) or Hotspot, with batch delay directives.
"""

from hashtik.script.emitter import (
    DELAY_EVERY,
    ScriptEmitter,
    escape_routeros,
    generate_script,
    hotspot_comment,
)

__all__ = [
    "DELAY_EVERY",
    "ScriptEmitter",
    "escape_routeros",
    "generate_script",
    "hotspot_comment",
]
