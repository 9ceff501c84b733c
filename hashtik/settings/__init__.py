"""
Settings persistence: pydantic template schema and profile/template stores.
"""

from hashtik.settings.schema import (
    CredentialSection,
    MikrotikSection,
    PrintSection,
    SettingsTemplate,
)
from hashtik.settings.store import (
    InMemorySettingsStore,
    SettingsError,
    SettingsStore,
    YamlSettingsStore,
)

__all__ = [
    "CredentialSection",
    "InMemorySettingsStore",
    "MikrotikSection",
    "PrintSection",
    "SettingsError",
    "SettingsStore",
    "SettingsTemplate",
    "YamlSettingsStore",
]
