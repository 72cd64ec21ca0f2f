from __future__ import annotations

"""Connection policy and the shared HTTP client built from it.

The client never validates the peer: the point is to read whatever certificate
a host presents, including self-signed or expired ones.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from ..version import USER_AGENT

MAX_REDIRECTS = 10


@dataclass(frozen=True)
class ConnectionPolicy:
    """Immutable client settings shared read-only by every worker.

    `timeout` is in seconds; zero disables it.
    """

    timeout: float = 5.0
    follow_redirects: bool = False
    max_redirects: int = MAX_REDIRECTS

    def __post_init__(self) -> None:
        if self.timeout < 0:
            raise ValueError("timeout must be >= 0")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")

    @property
    def deadline(self) -> Optional[float]:
        """Overall per-request budget, or None when unbounded."""
        return float(self.timeout) if self.timeout > 0 else None


def build_client(policy: ConnectionPolicy, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """Create the client used by all workers for the whole run.

    Keep-alive is disabled so each request performs its own TLS handshake and
    the certificate read back belongs to that request.
    """
    timeout_cfg = httpx.Timeout(policy.deadline)
    limits_cfg = httpx.Limits(max_connections=None, max_keepalive_connections=0)
    return httpx.Client(
        verify=False,
        timeout=timeout_cfg,
        limits=limits_cfg,
        follow_redirects=policy.follow_redirects,
        max_redirects=policy.max_redirects,
        headers={"User-Agent": USER_AGENT, "Connection": "close"},
        transport=transport,
    )
