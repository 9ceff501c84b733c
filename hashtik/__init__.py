"""
HashTik card generator.

Generates RouterOS User Manager / Hotspot credentials, the configuration
script that creates them on the router, and printable A4 card sheets.

Subpackages:
    credentials: Credential generation (unique usernames, password policy)
    script: RouterOS script emission per vendor target
    layout: Card geometry and per-card draw instructions
    render: Pillow preview, fpdf2 export, background export task
    relay: Device relay client and direct RouterOS REST implementation
    settings: Saved templates (profile -> template -> settings)
    configs: Application configuration loading and validation
    utils: Logging and atomic filesystem helpers
    scripts: Command-line entry points (hashtik-cards)

Modules:
    session: Generate / preview / export / push workflow for one operator
    errors: Exception hierarchy
"""

__all__ = [
    "credentials",
    "script",
    "layout",
    "render",
    "relay",
    "settings",
    "configs",
    "utils",
    "scripts",
    "session",
    "errors",
]

__version__ = "1.0.0"
