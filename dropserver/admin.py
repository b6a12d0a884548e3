"""Same-host operator check.

This is a heuristic, not authentication: a request counts as the
operator's when its peer address is loopback or its Host header names
localhost. Anything able to spoof either (for example a reverse proxy
that connects from 127.0.0.1 on behalf of remote clients, which the
tunnel itself does) passes the check.
"""

import ipaddress
from typing import Optional

from fastapi import Request

from dropserver.exceptions import ForbiddenError


def _is_loopback(address: Optional[str]) -> bool:
    if not address:
        return False
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return ip.is_loopback


def _host_is_local(host_header: Optional[str]) -> bool:
    if not host_header:
        return False
    host = host_header.strip().lower()
    if host.startswith("127.0.0.1"):
        return True
    hostname = host.rsplit(":", 1)[0] if not host.startswith("[") else host
    return hostname == "localhost"


def is_admin(peer_address: Optional[str], host_header: Optional[str]) -> bool:
    """
    Classify a request origin as local operator or remote viewer.

    Args:
        peer_address: IP of the connection's peer
        host_header: Value of the Host header

    Returns:
        True for loopback peers (127.0.0.0/8, ::1) or a localhost/127.0.0.1 Host
    """
    return _is_loopback(peer_address) or _host_is_local(host_header)


def is_admin_request(request: Request) -> bool:
    peer = request.client.host if request.client else None
    return is_admin(peer, request.headers.get("host"))


async def require_admin(request: Request) -> None:
    """
    FastAPI dependency guarding operator-only endpoints.

    Raises:
        ForbiddenError: If the request does not come from this host
    """
    if not is_admin_request(request):
        raise ForbiddenError("Only localhost can perform this operation")
