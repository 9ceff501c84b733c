"""Credential generation vocabulary.

Every input and output of the generator is an immutable, slotted
dataclass.  Enum values are the wire / settings names, so a request can
be built directly from a saved template.

A ``GenerationRequest`` lives only for the duration of one ``generate``
call.  A ``GenerationResult`` (credentials + script) is produced as one
unit and is replaced, never patched, by the next run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class VendorTarget(str, Enum):
    """RouterOS subsystem the script is written for."""

    USER_MANAGER_V6 = "user-manager-v6"
    USER_MANAGER_V7 = "user-manager-v7"
    HOTSPOT = "hotspot"


class CharacterClass(str, Enum):
    """Alphabet for the random part of usernames and passwords."""

    NUMBERS = "numbers"
    LETTERS = "letters"
    MIXED = "mixed"


class PasswordPolicy(str, Enum):
    """How the password of each account is derived."""

    SAME_AS_USERNAME = "same-as-username"
    INDEPENDENT_RANDOM = "independent-random"
    EMPTY = "empty"


CHARACTER_SETS: dict[CharacterClass, str] = {
    CharacterClass.NUMBERS: "0123456789",
    CharacterClass.LETTERS: (
        "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    ),
    CharacterClass.MIXED: (
        "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    ),
}

MIN_CODE_LENGTH = 5


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Everything one generation run needs.

    Parameters
    ----------
    vendor : VendorTarget
        Script syntax to emit.
    character_class : CharacterClass
        Alphabet for random parts.
    password_policy : PasswordPolicy
        Password derivation rule.
    code_length : int
        Length of the random part (>= 5).
    account_count : int
        Number of accounts to create (>= 1).
    prefix, suffix : str
        Fixed text around the random username part.
    password_suffix : str
        Fixed text appended to every non-empty password.
    script_delay_ms : int
        Pause inserted after every 100 accounts (0 disables).
    customer, hotspot_server, profile, uptime_limit, data_limit : str
        Router-side fields copied into the script.
    comment, location : str
        Free text copied into every record and script line.
    use_serial_number : bool
        Replace ``location`` with a running serial number.
    serial_start_number : int
        First serial number.
    existing_usernames : tuple[str, ...]
        Usernames already present on the router.
    """

    vendor: VendorTarget = VendorTarget.USER_MANAGER_V7
    character_class: CharacterClass = CharacterClass.MIXED
    password_policy: PasswordPolicy = PasswordPolicy.INDEPENDENT_RANDOM
    code_length: int = 8
    account_count: int = 50
    prefix: str = ""
    suffix: str = ""
    password_suffix: str = ""
    script_delay_ms: int = 100
    customer: str = "admin"
    hotspot_server: str = "all"
    profile: str = "default"
    uptime_limit: str = ""
    data_limit: str = ""
    comment: str = ""
    location: str = ""
    use_serial_number: bool = False
    serial_start_number: int = 1
    existing_usernames: tuple[str, ...] = field(default_factory=tuple)

    @property
    def alphabet(self) -> str:
        return CHARACTER_SETS[CharacterClass(self.character_class)]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Credential:
    """One generated account.

    ``profile`` and ``comment`` are copies of the request values;
    ``location`` is either the request location or the serial number.
    """

    username: str
    password: str
    profile: str
    comment: str
    location: str


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Credentials and the script that creates them, produced together."""

    credentials: tuple[Credential, ...]
    script: str

    def __len__(self) -> int:
        return len(self.credentials)

    @property
    def usernames(self) -> list[str]:
        return [c.username for c in self.credentials]
