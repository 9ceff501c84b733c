"""Direct RouterOS REST access.

Does what the relay does, without the relay: HTTP basic auth against
``http://<host>:<port>/rest``.

    connect      GET  /system/identity
    list_users   GET  /user-manager/user, then /tool/user-manager/user
    push_script  GET  /system/script?name=<n>; PATCH /system/script/<id>
                 with {source}, or POST /system/script with {name, source}
    run_script   GET  /system/script?name=<n>; POST /system/script/<id>/run

With ``resolve_hostnames`` on, a hostname is resolved before each call and
rejected when any of its addresses is blocked.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Any, Callable, List, Optional

import httpx

from hashtik.errors import RelayError
from hashtik.relay.models import (
    DeviceCredentials,
    RelayAction,
    build_request,
    is_blocked_address,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
USER_ENDPOINTS = ("/user-manager/user", "/tool/user-manager/user")

Resolver = Callable[[str], List[str]]


def resolve_host(host: str) -> List[str]:
    """All addresses *host* resolves to."""
    infos = socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP)
    return sorted({info[4][0] for info in infos})


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


class RouterOSRestRelay:
    """``DeviceRelay`` talking straight to the router's REST API.

    Parameters
    ----------
    timeout_s : float
        Per-request timeout.
    resolve_hostnames : bool
        Resolve hostnames and reject blocked addresses.
    transport : httpx.BaseTransport | None
        Custom transport (tests).
    resolver : callable | None
        ``host -> [address, ...]``; defaults to ``socket.getaddrinfo``.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        resolve_hostnames: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
        resolver: Optional[Resolver] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.resolve_hostnames = resolve_hostnames
        self._transport = transport
        self._resolver = resolver or resolve_host

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _check_resolution(self, host: str, action: str) -> None:
        if not self.resolve_hostnames or _is_ip_literal(host):
            return
        try:
            addresses = self._resolver(host)
        except OSError as exc:
            raise RelayError(f"Host could not be resolved: {host}", action=action) from exc
        for addr in addresses:
            if is_blocked_address(ipaddress.ip_address(addr.split("%")[0])):
                raise RelayError("Host address not permitted", action=action)

    def _client(self, creds: DeviceCredentials) -> httpx.Client:
        return httpx.Client(
            base_url=f"http://{creds.host}:{creds.port}/rest",
            auth=(creds.username, creds.password),
            headers={"Content-Type": "application/json"},
            timeout=self.timeout_s,
            transport=self._transport,
        )

    def _request(
        self,
        client: httpx.Client,
        action: str,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> httpx.Response:
        logger.debug("RouterOS %s %s", method, endpoint)
        try:
            return client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as exc:
            raise RelayError(f"Device timed out after {self.timeout_s:g}s", action=action) from exc
        except httpx.HTTPError as exc:
            raise RelayError(f"Connection error: {exc}", action=action) from exc

    def _find_script_id(self, client: httpx.Client, action: str, name: str, *, missing_ok: bool) -> str | None:
        resp = self._request(client, action, "GET", "/system/script", params={"name": name})
        if resp.is_error:
            msg = "Failed to check existing scripts" if missing_ok else "Failed to find script"
            raise RelayError(msg, action=action)
        try:
            scripts = resp.json()
            script_id = scripts[0][".id"] if scripts else None
        except (ValueError, AttributeError, TypeError, KeyError, IndexError) as exc:
            raise RelayError("Malformed script list from device", action=action) from exc
        if script_id is None and not missing_ok:
            raise RelayError("Script not found", action=action)
        return script_id

    def _prepare(self, action: RelayAction, creds: DeviceCredentials, **kwargs: Any) -> None:
        build_request(action, creds, **kwargs)
        self._check_resolution(creds.host, action.value)

    # ------------------------------------------------------------------
    # DeviceRelay
    # ------------------------------------------------------------------

    def connect(self, credentials: DeviceCredentials) -> None:
        action = RelayAction.CONNECT
        self._prepare(action, credentials)
        with self._client(credentials) as client:
            resp = self._request(client, action.value, "GET", "/system/identity")
        if resp.is_error:
            raise RelayError(f"Connection failed (HTTP {resp.status_code})", action=action.value)
        logger.info("Connected to %s:%d", credentials.host, credentials.port)

    def list_users(self, credentials: DeviceCredentials) -> List[str]:
        action = RelayAction.GET_USERS
        self._prepare(action, credentials)
        with self._client(credentials) as client:
            resp = self._request(client, action.value, "GET", USER_ENDPOINTS[0])
            if resp.is_error:
                resp = self._request(client, action.value, "GET", USER_ENDPOINTS[1])
        if resp.is_error:
            logger.info("User manager not available on %s, assuming no users", credentials.host)
            return []
        try:
            users = [u.get("name") or u.get("username") for u in resp.json()]
        except (ValueError, AttributeError, TypeError) as exc:
            raise RelayError("Failed to fetch users", action=action.value) from exc
        users = [u for u in users if u]
        logger.info("Fetched %d existing users from %s", len(users), credentials.host)
        return users

    def push_script(self, credentials: DeviceCredentials, script_name: str, script: str) -> None:
        action = RelayAction.ADD_SCRIPT
        self._prepare(action, credentials, script=script, script_name=script_name)
        with self._client(credentials) as client:
            script_id = self._find_script_id(client, action.value, script_name, missing_ok=True)
            if script_id is not None:
                resp = self._request(
                    client, action.value, "PATCH", f"/system/script/{script_id}", json={"source": script},
                )
                if resp.is_error:
                    raise RelayError("Failed to update script", action=action.value)
                logger.info("Updated script %r on %s", script_name, credentials.host)
            else:
                resp = self._request(
                    client, action.value, "POST", "/system/script",
                    json={"name": script_name, "source": script},
                )
                if resp.is_error:
                    raise RelayError("Failed to create script", action=action.value)
                logger.info("Created script %r on %s", script_name, credentials.host)

    def run_script(self, credentials: DeviceCredentials, script_name: str) -> None:
        action = RelayAction.RUN_SCRIPT
        self._prepare(action, credentials, script_name=script_name)
        with self._client(credentials) as client:
            script_id = self._find_script_id(client, action.value, script_name, missing_ok=False)
            resp = self._request(client, action.value, "POST", f"/system/script/{script_id}/run")
        if resp.is_error:
            raise RelayError("Failed to run script", action=action.value)
        logger.info("Ran script %r on %s", script_name, credentials.host)
