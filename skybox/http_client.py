"""
Shared httpx client construction.

One AsyncClient (and so one connection pool) is created per command and
shared by every description fetch and SOAP call, including the two
discovery pipelines that run concurrently.
"""

from typing import Optional

import httpx

from .config import SkyboxSettings


def build_async_client(
    settings: Optional[SkyboxSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create an httpx.AsyncClient with the headers a Sky+ box expects.

    Args:
        settings: Source of the user agent and request timeout
        transport: Optional transport override (tests pass an httpx.MockTransport)

    Returns:
        A client that must be closed by the caller (use `async with`)
    """
    settings = settings or SkyboxSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        headers={"user-agent": settings.user_agent},
        transport=transport,
    )
