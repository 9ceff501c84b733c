"""Relay wire contract.

Request ``{action, credentials: {host, port, username, password}, script?,
scriptName?}`` and response ``{success, error?, users?}``, validated with
pydantic the same way the relay validates them.  Validation messages are
the relay's own ("Invalid host format", "Host address not permitted",
...), so a locally rejected request reads exactly like a relay rejection.

Host rules:
    - ``^[a-zA-Z0-9]([a-zA-Z0-9.-]*[a-zA-Z0-9])?$``, at most 255 chars
    - not ``localhost`` and friends
    - an IPv4 literal must not be private, loopback, link-local,
      multicast, broadcast, reserved or unspecified (``0.0.0.0/8``)
"""

from __future__ import annotations

import ipaddress
import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from hashtik.errors import RelayError

MAX_HOST_LENGTH = 255
MAX_USERNAME_LENGTH = 100
MAX_PASSWORD_LENGTH = 255
MAX_SCRIPT_NAME_LENGTH = 100
MAX_SCRIPT_BYTES = 1024 * 1024

BLOCKED_HOSTNAMES = frozenset({"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"})

_HOST_RE = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9.-]*[a-zA-Z0-9])?$")
_IPV4_RE = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
_USERNAME_RE = re.compile(r"^[a-zA-Z0-9._@-]+$")
_SCRIPT_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


class RelayAction(str, Enum):
    CONNECT = "connect"
    GET_USERS = "get-users"
    ADD_SCRIPT = "add-script"
    RUN_SCRIPT = "run-script"


# ============================================================================
# Address checks
# ============================================================================


def is_blocked_address(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """True for any address a device relay must never be pointed at."""
    if isinstance(address, ipaddress.IPv4Address):
        first = int(str(address).split(".")[0])
        if first in (0, 255):
            return True
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_reserved
        or address.is_unspecified
    )


def is_blocked_host(host: str) -> bool:
    """Check a host string (name or IPv4 literal) against the block list.

    Hostnames are only checked by name here; resolution-time checks are
    done by ``RouterOSRestRelay`` when enabled.
    """
    match = _IPV4_RE.match(host)
    if not match:
        return host.lower() in BLOCKED_HOSTNAMES
    if any(int(octet) > 255 for octet in match.groups()):
        return True
    return is_blocked_address(ipaddress.IPv4Address(host))


def is_valid_host(host: str) -> bool:
    return 0 < len(host) <= MAX_HOST_LENGTH and bool(_HOST_RE.match(host))


def is_valid_script_name(name: str) -> bool:
    return 0 < len(name) <= MAX_SCRIPT_NAME_LENGTH and bool(_SCRIPT_NAME_RE.match(name))


# ============================================================================
# Wire models
# ============================================================================


class DeviceCredentials(BaseModel):
    """Router management login."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(..., strict=True)
    username: str
    password: str = ""

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        if not is_valid_host(v):
            raise ValueError("Invalid host format")
        if is_blocked_host(v):
            raise ValueError("Host address not permitted")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("Invalid port number")
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v or len(v) > MAX_USERNAME_LENGTH or not _USERNAME_RE.match(v):
            raise ValueError("Invalid username format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) > MAX_PASSWORD_LENGTH:
            raise ValueError("Invalid password format")
        return v

    def __repr__(self) -> str:
        return f"DeviceCredentials(host={self.host!r}, port={self.port}, username={self.username!r})"


class RelayRequest(BaseModel):
    """One relay call.  ``scriptName`` on the wire, ``script_name`` here."""

    model_config = ConfigDict(populate_by_name=True)

    action: RelayAction
    credentials: DeviceCredentials
    script: Optional[str] = None
    script_name: Optional[str] = Field(None, alias="scriptName")

    @model_validator(mode="after")
    def validate_script_fields(self) -> "RelayRequest":
        if self.action in (RelayAction.ADD_SCRIPT, RelayAction.RUN_SCRIPT):
            if self.script_name is None or not is_valid_script_name(self.script_name):
                raise ValueError("Invalid script name")
        if self.action is RelayAction.ADD_SCRIPT:
            if not self.script or len(self.script) > MAX_SCRIPT_BYTES:
                raise ValueError("Invalid script content")
        return self

    def wire(self) -> dict:
        """JSON body as sent to the relay."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RelayResponse(BaseModel):
    success: bool
    error: Optional[str] = None
    users: Optional[List[str]] = None


# ============================================================================
# Helpers
# ============================================================================


def _first_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    msg = errors[0].get("msg", str(exc))
    return msg.removeprefix("Value error, ")


def build_request(
    action: RelayAction | str,
    credentials: DeviceCredentials | dict,
    script: str | None = None,
    script_name: str | None = None,
) -> RelayRequest:
    """Validate and assemble a relay request.

    Raises
    ------
    RelayError
        With the relay's own message when any field is rejected.
    """
    action_value = action.value if isinstance(action, RelayAction) else action
    creds = credentials.model_dump() if isinstance(credentials, DeviceCredentials) else credentials
    try:
        return RelayRequest(
            action=action_value,
            credentials=creds,
            script=script,
            script_name=script_name,
        )
    except ValidationError as exc:
        errors = exc.errors()
        loc = (errors[0].get("loc") if errors else None) or ("",)
        if loc[0] == "action":
            raise RelayError("Invalid action", action=str(action_value)) from exc
        raise RelayError(_first_message(exc), action=str(action_value)) from exc


def device_credentials(host: str, port: int, username: str, password: str = "") -> DeviceCredentials:
    """Build ``DeviceCredentials``, raising ``RelayError`` instead of pydantic's error."""
    try:
        return DeviceCredentials(host=host, port=port, username=username, password=password)
    except ValidationError as exc:
        raise RelayError(_first_message(exc)) from exc
