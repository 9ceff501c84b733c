"""HTTP client for the device relay.

Each operation is one ``POST`` of a ``RelayRequest`` JSON body to the
relay URL.  Every failure (local validation, transport error, timeout,
non-JSON body, ``success: false``) is raised as ``RelayError`` carrying the
action name and a readable message.  Calls are never retried.

Usage::

    with HttpRelayClient(cfg.relay.url, api_key=cfg.relay.api_key) as relay:
        relay.connect(creds)
        existing = relay.list_users(creds)
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from hashtik.errors import RelayError
from hashtik.relay.models import (
    DeviceCredentials,
    RelayAction,
    RelayRequest,
    RelayResponse,
    build_request,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class HttpRelayClient:
    """``DeviceRelay`` over the relay's JSON endpoint.

    Parameters
    ----------
    url : str
        Relay endpoint.
    api_key : str
        Sent as ``apikey`` and bearer token when non-empty.
    timeout_s : float
        Per-call timeout.
    transport : httpx.BaseTransport | None
        Custom transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not url:
            raise RelayError("Relay URL is not configured")
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self.url = url
        self.timeout_s = timeout_s
        self._client = httpx.Client(headers=headers, timeout=timeout_s, transport=transport)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpRelayClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # DeviceRelay
    # ------------------------------------------------------------------

    def connect(self, credentials: DeviceCredentials) -> None:
        self._call(build_request(RelayAction.CONNECT, credentials))
        logger.info("Connected to %s:%d via relay", credentials.host, credentials.port)

    def list_users(self, credentials: DeviceCredentials) -> List[str]:
        response = self._call(build_request(RelayAction.GET_USERS, credentials))
        users = response.users or []
        logger.info("Fetched %d existing users from %s", len(users), credentials.host)
        return users

    def push_script(self, credentials: DeviceCredentials, script_name: str, script: str) -> None:
        self._call(build_request(RelayAction.ADD_SCRIPT, credentials, script=script, script_name=script_name))
        logger.info("Pushed script %r (%d chars) to %s", script_name, len(script), credentials.host)

    def run_script(self, credentials: DeviceCredentials, script_name: str) -> None:
        self._call(build_request(RelayAction.RUN_SCRIPT, credentials, script_name=script_name))
        logger.info("Ran script %r on %s", script_name, credentials.host)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _call(self, request: RelayRequest) -> RelayResponse:
        action = request.action.value
        try:
            resp = self._client.post(self.url, json=request.wire())
        except httpx.TimeoutException as exc:
            raise RelayError(f"Relay timed out after {self.timeout_s:g}s", action=action) from exc
        except httpx.HTTPError as exc:
            raise RelayError(f"Relay unreachable: {exc}", action=action) from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise RelayError(f"Relay returned a non-JSON response (HTTP {resp.status_code})", action=action) from exc

        try:
            parsed = RelayResponse.model_validate(body)
        except ValidationError as exc:
            raise RelayError(f"Malformed relay response (HTTP {resp.status_code})", action=action) from exc

        if not parsed.success:
            raise RelayError(parsed.error or f"Relay request failed (HTTP {resp.status_code})", action=action)
        if resp.is_error:
            raise RelayError(f"Relay request failed (HTTP {resp.status_code})", action=action)
        return parsed
