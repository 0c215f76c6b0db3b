"""
Client IP resolution for requests passing through the Turnstile gate.

The resolved address is forwarded to siteverify as ``remoteip`` so the
provider can match it against the address that solved the challenge.
"""

from __future__ import annotations

from typing import Optional

from starlette.requests import HTTPConnection

# Checked in priority order before falling back to the socket peer
PROXY_IP_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
    "X-Client-IP",
)


def get_client_ip(conn: HTTPConnection) -> Optional[str]:
    """Extract the real client IP from a Starlette request.

    ``X-Forwarded-For`` may hold a chain; only its first entry is used.

    Returns:
        The resolved client IP string, or ``None`` if none can be found.
    """
    for header in PROXY_IP_HEADERS:
        ip_value: Optional[str] = conn.headers.get(header)
        if ip_value:
            client_ip = ip_value.split(",")[0].strip()
            if client_ip:
                return client_ip

    return conn.client.host if conn.client else None
