"""
Discovery of Sky+ boxes as play/browse endpoint pairs.

A box advertises its SkyPlay and SkyBrowse services separately, each with
its own description document. discover_pairs() runs one discovery
pipeline per service concurrently (search, then resolve every location to
a control URL), then joins the two result sets on the host the control
URLs point at.

Example usage:
    from skybox.http_client import build_async_client
    from skybox.scanner import discover_pairs

    async with build_async_client(settings) as client:
        for device in await discover_pairs(client, settings):
            print(device.host, device.play_url, device.browse_url)
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Dict, List, Optional

import httpx

from . import ssdp
from .config import SkyboxSettings
from .device import fetch_control_url
from .errors import DescriptionFetchError, MalformedDocument, MissingElement
from .models import PairedDevice, host_of
from .urn import ServiceIdentity

log = logging.getLogger(__name__)

SearchFn = Callable[..., AsyncIterator[str]]


async def resolve_service(
    client: httpx.AsyncClient,
    identity: ServiceIdentity,
    settings: SkyboxSettings,
    timeout: float,
    search_fn: SearchFn = ssdp.search,
) -> Dict[str, str]:
    """Search for `identity` and resolve each location to a control URL.

    Locations are resolved one after another as the search yields them. A
    location whose description cannot be fetched or does not describe the
    service is skipped with a warning; it does not stop the search.

    Returns:
        Host to control URL; the first URL found for a host wins

    Raises:
        TransportError: If the search itself cannot run
    """
    urls: Dict[str, str] = {}
    search = search_fn(
        identity,
        timeout=timeout,
        max_responses=settings.discovery_max_responses,
        mx=settings.discovery_mx,
    )
    async for location in search:
        try:
            control_url = await fetch_control_url(client, identity, location)
        except (DescriptionFetchError, MalformedDocument, MissingElement) as exc:
            log.warning("Skipping %s: %s", location, exc)
            continue
        host = host_of(control_url)
        if host in urls:
            log.debug("Ignoring second %s endpoint on %s: %s", identity.name, host, control_url)
            continue
        urls[host] = control_url
    return urls


def join_by_host(play_urls: Dict[str, str], browse_urls: Dict[str, str]) -> List[PairedDevice]:
    """Pair play and browse control URLs that live on the same host.

    Hosts with only one of the two services are logged and dropped.
    """
    devices = []
    for host, browse_url in sorted(browse_urls.items()):
        play_url = play_urls.get(host)
        if play_url is None:
            log.warning("Skipping %s: it has a browse service but no play service", host)
            continue
        devices.append(PairedDevice(play_url=play_url, browse_url=browse_url))
    for host in sorted(play_urls.keys() - browse_urls.keys()):
        log.warning("Skipping %s: it has a play service but no browse service", host)
    return devices


async def discover_pairs(
    client: httpx.AsyncClient,
    settings: Optional[SkyboxSettings] = None,
    *,
    play_identity: Optional[ServiceIdentity] = None,
    browse_identity: Optional[ServiceIdentity] = None,
    timeout: Optional[float] = None,
    search_fn: SearchFn = ssdp.search,
) -> List[PairedDevice]:
    """Find every box on the network that offers both services.

    The play and browse pipelines run as two concurrent tasks; this call
    returns once both have finished. If either fails, the other is
    cancelled and waited for before the error propagates.

    Args:
        client: Shared HTTP client for description fetches
        settings: Discovery defaults (timeout, max responses, service URNs)
        play_identity: Playback service (default: settings.play_identity)
        browse_identity: Browse service (default: settings.browse_identity)
        timeout: Discovery window in seconds (default: settings value)
        search_fn: SSDP search implementation

    Returns:
        Paired devices ordered by host; empty when nothing was found

    Raises:
        TransportError: If discovery cannot open its socket
    """
    settings = settings or SkyboxSettings()
    play_identity = play_identity or settings.play_identity
    browse_identity = browse_identity or settings.browse_identity
    timeout = timeout if timeout is not None else settings.discovery_timeout_seconds

    tasks = [
        asyncio.ensure_future(resolve_service(client, play_identity, settings, timeout, search_fn)),
        asyncio.ensure_future(resolve_service(client, browse_identity, settings, timeout, search_fn)),
    ]
    try:
        play_urls, browse_urls = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    devices = join_by_host(play_urls, browse_urls)
    log.info("Found %d skybox(es)", len(devices))
    return devices
