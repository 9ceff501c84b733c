"""Profile / template persistence.

Layout of the store (one mapping, YAML on disk)::

    <profile>:            # e.g. one per network / site
      <template>:         # a named SettingsTemplate in storage form
        mikrotik: {...}
        credential: {...}
        print: {...}

``InMemorySettingsStore`` keeps the mapping in a dict; ``YamlSettingsStore``
adds an atomic write of the whole file after every change.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol, Union, runtime_checkable

import yaml
from pydantic import ValidationError

from hashtik.errors import HashtikError
from hashtik.settings.schema import SettingsTemplate
from hashtik.utils import fs

logger = logging.getLogger(__name__)


class SettingsError(HashtikError):
    """Unknown or duplicate profile/template, or an unreadable store."""

    pass


@runtime_checkable
class SettingsStore(Protocol):
    def save(self, profile: str, template: str, data: SettingsTemplate) -> None: ...

    def load(self, profile: str, template: str) -> SettingsTemplate: ...

    def list(self, profile: str) -> List[str]: ...

    def profiles(self) -> List[str]: ...

    def add_profile(self, profile: str) -> None: ...

    def delete_profile(self, profile: str) -> None: ...

    def delete_template(self, profile: str, template: str) -> None: ...


def _clean_name(name: str, what: str) -> str:
    name = (name or "").strip()
    if not name:
        raise SettingsError(f"{what} name must not be empty")
    return name


class InMemorySettingsStore:
    """Dict-backed store.  Saving into a missing profile creates it."""

    def __init__(self, data: Dict[str, Dict[str, Any]] | None = None) -> None:
        self._data: Dict[str, Dict[str, Any]] = copy.deepcopy(data) if data else {}

    def _changed(self) -> None:
        """Hook for persistent subclasses."""

    def _profile(self, profile: str) -> Dict[str, Any]:
        try:
            return self._data[profile]
        except KeyError:
            raise SettingsError(f"Unknown profile: {profile!r}") from None

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def profiles(self) -> List[str]:
        return list(self._data)

    def add_profile(self, profile: str) -> None:
        profile = _clean_name(profile, "Profile")
        if profile in self._data:
            raise SettingsError(f"Profile already exists: {profile!r}")
        self._data[profile] = {}
        self._changed()
        logger.info("Added settings profile %r", profile)

    def delete_profile(self, profile: str) -> None:
        self._profile(profile)
        del self._data[profile]
        self._changed()
        logger.info("Deleted settings profile %r", profile)

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def list(self, profile: str) -> List[str]:
        return list(self._profile(profile))

    def save(self, profile: str, template: str, data: SettingsTemplate) -> None:
        profile = _clean_name(profile, "Profile")
        template = _clean_name(template, "Template")
        self._data.setdefault(profile, {})[template] = data.to_storage()
        self._changed()
        logger.info("Saved template %r in profile %r", template, profile)

    def load(self, profile: str, template: str) -> SettingsTemplate:
        templates = self._profile(profile)
        if template not in templates:
            raise SettingsError(f"Unknown template {template!r} in profile {profile!r}")
        try:
            return SettingsTemplate.from_storage(templates[template])
        except ValidationError as exc:
            raise SettingsError(f"Stored template {profile}/{template} is invalid: {exc}") from exc

    def delete_template(self, profile: str, template: str) -> None:
        templates = self._profile(profile)
        if template not in templates:
            raise SettingsError(f"Unknown template {template!r} in profile {profile!r}")
        del templates[template]
        self._changed()
        logger.info("Deleted template %r from profile %r", template, profile)

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._data)


class YamlSettingsStore(InMemorySettingsStore):
    """Store persisted to a single YAML file.

    Parameters
    ----------
    path : str | Path
        Store file; created on first change.  A missing file is an empty
        store.

    Raises
    ------
    SettingsError
        If the existing file cannot be parsed or is not a mapping.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()
        super().__init__(self._read())

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            raw = fs.load_yaml(self.path)
        except yaml.YAMLError as exc:
            raise SettingsError(f"Settings file {self.path} is not valid YAML: {exc}") from exc
        if raw is None:
            return {}
        if not isinstance(raw, dict) or not all(isinstance(v, dict) for v in raw.values()):
            raise SettingsError(f"Settings file {self.path} must map profiles to templates")
        logger.debug("Loaded %d settings profile(s) from %s", len(raw), self.path)
        return raw

    def _changed(self) -> None:
        fs.atomic_yaml_dump(self._data, self.path)
