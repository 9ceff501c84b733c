"""
Device relay: wire contract, the ``DeviceRelay`` capability and its two
implementations (relay HTTP client, direct RouterOS REST).
"""

from __future__ import annotations

from typing import Optional

import httpx

from hashtik.relay.base import DeviceRelay
from hashtik.relay.client import HttpRelayClient
from hashtik.relay.models import (
    BLOCKED_HOSTNAMES,
    MAX_SCRIPT_BYTES,
    DeviceCredentials,
    RelayAction,
    RelayRequest,
    RelayResponse,
    build_request,
    device_credentials,
    is_blocked_address,
    is_blocked_host,
    is_valid_host,
    is_valid_script_name,
)
from hashtik.relay.routeros import RouterOSRestRelay


def make_relay(relay_cfg, transport: Optional[httpx.BaseTransport] = None) -> DeviceRelay:
    """Build the relay selected by ``relay.mode`` (``http`` or ``routeros``)."""
    if relay_cfg.mode == "routeros":
        return RouterOSRestRelay(
            timeout_s=relay_cfg.timeout_s,
            resolve_hostnames=relay_cfg.resolve_hostnames,
            transport=transport,
        )
    return HttpRelayClient(
        relay_cfg.url,
        api_key=relay_cfg.api_key,
        timeout_s=relay_cfg.timeout_s,
        transport=transport,
    )


__all__ = [
    "BLOCKED_HOSTNAMES",
    "MAX_SCRIPT_BYTES",
    "DeviceCredentials",
    "DeviceRelay",
    "HttpRelayClient",
    "RelayAction",
    "RelayRequest",
    "RelayResponse",
    "RouterOSRestRelay",
    "build_request",
    "device_credentials",
    "is_blocked_address",
    "is_blocked_host",
    "is_valid_host",
    "is_valid_script_name",
    "make_relay",
]
