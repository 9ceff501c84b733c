"""RouterOS script emitter -- generated credentials to ``.rsc`` text.

One or two command lines per account, in the syntax of the selected
subsystem, plus a ``/delay`` directive after every ``DELAY_EVERY``
accounts so the router is not overloaded when a large batch is imported.

Syntax per vendor target::

    user-manager-v6:
        /tool user-manager user add customer="c" username="u" password="p" comment="m" location="l";
        /tool user-manager user create-and-activate-profile customer="c" profile=P numbers=[find username="u"];
    user-manager-v7:
        /user-manager user add name="u" password="p" comment="m";
        /user-manager user-profile add profile="P" user="u";
    hotspot:
        /ip hotspot user add name="u" password="p" server="s" profile="P" [limit-uptime=".."] [limit-bytes-total=".."] [comment=".."];

String escaping:
    Values are interpolated verbatim unless ``escape_strings`` is set.
    Verbatim output matches what the router has always been fed; escaping
    protects against quotes or ``$`` in free-text fields at the cost of
    different output bytes (and a quoted v6 profile).
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Callable, Sequence

from hashtik.credentials.models import Credential, GenerationRequest, VendorTarget

logger = logging.getLogger(__name__)

DELAY_EVERY = 100
"""Accounts between consecutive ``/delay`` directives."""

DEFAULT_CUSTOMER = "admin"
DEFAULT_HOTSPOT_SERVER = "all"

_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "$": "\\$",
    "?": "\\?",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def escape_routeros(value: str) -> str:
    """Escape *value* for use inside a RouterOS double-quoted string.

    Backslash, double quote, ``$`` and ``?`` get a backslash; common
    control characters use their letter escapes; any other character
    below 0x20 (or DEL) becomes ``\\XX`` with two hex digits.
    """
    out = []
    for ch in value:
        if ch in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\{ord(ch):02X}")
        else:
            out.append(ch)
    return "".join(out)


def _verbatim(value: str) -> str:
    return value


def hotspot_comment(comment: str, location: str) -> str:
    """Combine free-text comment and location/serial for hotspot users.

    ``"lobby"`` + ``"7"`` → ``"lobby | SN: 7"``; ``""`` + ``"7"`` →
    ``"SN: 7"``; without a location the comment is returned unchanged
    (possibly empty, in which case no ``comment=`` clause is written).
    """
    if not location:
        return comment
    if comment:
        return f"{comment} | SN: {location}"
    return f"SN: {location}"


# ---------------------------------------------------------------------------
# Emitter
# ---------------------------------------------------------------------------


class ScriptEmitter:
    """Write RouterOS commands for a batch of credentials.

    Parameters
    ----------
    request : GenerationRequest
        Supplies vendor target, router fields and the delay setting.
    escape_strings : bool
        Escape interpolated values (see module docstring).
    """

    def __init__(self, request: GenerationRequest, escape_strings: bool = False) -> None:
        self._req = request
        self._escape_strings = escape_strings
        self._q: Callable[[str], str] = escape_routeros if escape_strings else _verbatim
        self._vendor = VendorTarget(request.vendor)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, credentials: Sequence[Credential]) -> str:
        """Return the full script for *credentials*, newline-terminated.

        A delay directive follows record ``i`` when the delay is positive,
        ``(i + 1)`` is a multiple of ``DELAY_EVERY`` and ``i`` is not the
        last record.
        """
        buf = StringIO()
        total = len(credentials)
        delay = self._req.script_delay_ms

        for i, cred in enumerate(credentials):
            self.write_account(cred, buf)
            if delay > 0 and (i + 1) % DELAY_EVERY == 0 and i < total - 1:
                self.write_delay(buf)

        script = buf.getvalue()
        logger.debug(
            "Emitted %s script: %d accounts, %d bytes",
            self._vendor.value, total, len(script),
        )
        return script

    def write_account(self, cred: Credential, buf: StringIO) -> None:
        """Write the command line(s) that create one account."""
        if self._vendor is VendorTarget.USER_MANAGER_V6:
            self._write_um_v6(cred, buf)
        elif self._vendor is VendorTarget.USER_MANAGER_V7:
            self._write_um_v7(cred, buf)
        else:
            self._write_hotspot(cred, buf)

    def write_delay(self, buf: StringIO) -> None:
        buf.write(f"/delay {self._req.script_delay_ms}ms;\n")

    # ------------------------------------------------------------------
    # Per-vendor writers
    # ------------------------------------------------------------------

    def _write_um_v6(self, cred: Credential, buf: StringIO) -> None:
        q = self._q
        customer = q(self._req.customer or DEFAULT_CUSTOMER)
        username = q(cred.username)
        profile = f'"{q(cred.profile)}"' if self._escape_strings else cred.profile
        buf.write(
            f'/tool user-manager user add customer="{customer}" '
            f'username="{username}" password="{q(cred.password)}" '
            f'comment="{q(cred.comment)}" location="{q(cred.location)}";\n'
        )
        buf.write(
            f'/tool user-manager user create-and-activate-profile '
            f'customer="{customer}" profile={profile} '
            f'numbers=[find username="{username}"];\n'
        )

    def _write_um_v7(self, cred: Credential, buf: StringIO) -> None:
        q = self._q
        username = q(cred.username)
        buf.write(
            f'/user-manager user add name="{username}" '
            f'password="{q(cred.password)}" comment="{q(cred.comment)}";\n'
        )
        buf.write(
            f'/user-manager user-profile add profile="{q(cred.profile)}" '
            f'user="{username}";\n'
        )

    def _write_hotspot(self, cred: Credential, buf: StringIO) -> None:
        q = self._q
        server = self._req.hotspot_server or DEFAULT_HOTSPOT_SERVER
        buf.write(
            f'/ip hotspot user add name="{q(cred.username)}" '
            f'password="{q(cred.password)}" server="{q(server)}" '
            f'profile="{q(cred.profile)}"'
        )

        uptime = self._req.uptime_limit.strip()
        if uptime:
            buf.write(f' limit-uptime="{q(uptime)}"')

        data_limit = self._req.data_limit.strip()
        if data_limit:
            buf.write(f' limit-bytes-total="{q(data_limit)}"')

        comment = hotspot_comment(cred.comment, cred.location)
        if comment:
            buf.write(f' comment="{q(comment)}"')

        buf.write(";\n")


def generate_script(
    request: GenerationRequest,
    credentials: Sequence[Credential],
    escape_strings: bool = False,
) -> str:
    """Convenience wrapper around :class:`ScriptEmitter`."""
    return ScriptEmitter(request, escape_strings=escape_strings).generate(credentials)
