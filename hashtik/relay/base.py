"""Device relay capability.

Generation, layout and export never touch the network; everything that
talks to a router goes through an object implementing ``DeviceRelay``.
Implementations raise ``RelayError`` for every failure and never retry.
"""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from hashtik.relay.models import DeviceCredentials


@runtime_checkable
class DeviceRelay(Protocol):
    """Connect, list users, push a script and run it."""

    def connect(self, credentials: DeviceCredentials) -> None:
        ...

    def list_users(self, credentials: DeviceCredentials) -> List[str]:
        ...

    def push_script(self, credentials: DeviceCredentials, script_name: str, script: str) -> None:
        ...

    def run_script(self, credentials: DeviceCredentials, script_name: str) -> None:
        ...
