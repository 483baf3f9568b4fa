"""
SSDP (Simple Service Discovery Protocol) search for Sky+ services.

This module sends a multicast M-SEARCH for one service identity and
streams back the LOCATION of each device description as responses arrive,
so callers can start fetching descriptions before the search window ends.

Key components:
- SSDPResponse: A parsed search response
- search(): Async generator of description locations for one service URN
- build_msearch(): The M-SEARCH request datagram

Example usage:
    import asyncio
    from skybox.ssdp import search
    from skybox.urn import SKY_BROWSE

    async def main():
        async for location in search(SKY_BROWSE, timeout=3.0):
            print(f"Found description: {location}")

    asyncio.run(main())
"""

import asyncio
import logging
import socket
import urllib.parse
from typing import AsyncIterator, Optional, Set, Tuple

from .errors import TransportError
from .urn import ServiceIdentity

log = logging.getLogger(__name__)

# SSDP multicast configuration
SSDP_MCAST_ADDR = "239.255.255.250"
SSDP_PORT = 1900


class SSDPResponse:
    """A response to an M-SEARCH request.

    Attributes:
        location (str): URL of the device description document
        st (str): Search Target echoed by the device
        usn (str): Unique Service Name
        server (str): Server header value, if present
    """

    def __init__(self, location: str, st: str, usn: str = "", server: str = ""):
        self.location = location
        self.st = st
        self.usn = usn
        self.server = server

    @classmethod
    def from_datagram(cls, data: bytes) -> Optional["SSDPResponse"]:
        """Build a response from raw UDP bytes, or None if it has no usable LOCATION."""
        headers = _parse_ssdp_response(data)
        location = headers.get("location", "")
        parsed = urllib.parse.urlparse(location)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            return None
        return cls(
            location=location,
            st=headers.get("st", ""),
            usn=headers.get("usn", ""),
            server=headers.get("server", ""),
        )

    def __repr__(self) -> str:
        return f"SSDPResponse(st={self.st!r}, usn={self.usn!r}, location={self.location!r})"


def _parse_ssdp_response(data: bytes) -> dict:
    """Parse raw UDP response bytes into a lowercase-header dictionary.

    The status line is skipped; lines without a colon are ignored.
    """
    text = data.decode("utf-8", errors="ignore")
    headers = {}
    for line in text.split("\r\n")[1:]:
        if ":" in line:
            k, v = line.split(":", 1)
            headers[k.strip().lower()] = v.strip()
    return headers


def build_msearch(identity: ServiceIdentity, mx: int = 2) -> bytes:
    """Return the M-SEARCH datagram for `identity`."""
    return (
        "M-SEARCH * HTTP/1.1\r\n"
        f"HOST: {SSDP_MCAST_ADDR}:{SSDP_PORT}\r\n"
        'MAN: "ssdp:discover"\r\n'
        f"MX: {mx}\r\n"
        f"ST: {identity}\r\n\r\n"
    ).encode("utf-8")


def _get_local_ip() -> str:
    """Return the primary local IPv4 address for outbound connections.

    Returns "0.0.0.0" when no route is available.
    """
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
    except OSError:
        ip = "0.0.0.0"
    finally:
        s.close()
    return ip


class _SearchProtocol(asyncio.DatagramProtocol):
    """Forward every received datagram (or socket error) to a queue."""

    def __init__(self, queue: asyncio.Queue):
        self.queue = queue

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        self.queue.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        self.queue.put_nowait(exc)


async def _open_endpoint(queue: asyncio.Queue) -> asyncio.DatagramTransport:
    """Open the UDP socket used for one search.

    Raises:
        OSError: If the socket cannot be created or bound
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("0.0.0.0", 0))
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise

    # Outbound interface and a small TTL; a failure here only narrows the search
    try:
        local_ip = _get_local_ip()
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(local_ip))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
    except OSError as exc:
        log.debug("Could not set multicast options: %s", exc)

    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(lambda: _SearchProtocol(queue), sock=sock)
    return transport


async def search(
    identity: ServiceIdentity,
    timeout: float = 5.0,
    max_responses: int = 2,
    mx: int = 2,
) -> AsyncIterator[str]:
    """Search the local network for devices offering `identity`.

    Sends one M-SEARCH scoped to the identity's URN and yields the LOCATION
    of each distinct response as soon as it arrives. The search ends when
    `max_responses` distinct responses have been yielded or `timeout`
    seconds have passed since the request was sent, whichever comes first.
    Responses that arrived within the window are still yielded if the
    consumer only asks for them after it has passed.

    Malformed responses and responses for another search target are
    skipped with a log message.

    Args:
        identity: Service to search for; its URN is the ST header
        timeout: Listen window in seconds
        max_responses: Stop after this many distinct responses
        mx: MX value advertised in the request

    Yields:
        URL of each responding device's description document

    Raises:
        TransportError: If the UDP socket cannot be opened or the request
            cannot be sent
    """
    queue: asyncio.Queue = asyncio.Queue()
    try:
        transport = await _open_endpoint(queue)
    except OSError as exc:
        raise TransportError(f"Cannot open SSDP socket: {exc}") from exc

    loop = asyncio.get_running_loop()
    target = str(identity)
    seen: Set[Tuple[str, str]] = set()
    closer = None
    try:
        transport.sendto(build_msearch(identity, mx), (SSDP_MCAST_ADDR, SSDP_PORT))
        log.debug("M-SEARCH sent for %s", target)

        deadline = loop.time() + timeout
        # stop accepting datagrams at the deadline; queued ones are still read
        closer = loop.call_at(deadline, transport.close)
        while len(seen) < max_responses:
            try:
                data = queue.get_nowait()
            except asyncio.QueueEmpty:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    data = await asyncio.wait_for(queue.get(), remaining)
                except asyncio.TimeoutError:
                    break

            if isinstance(data, Exception):
                raise TransportError(f"SSDP search for {target} failed: {data}") from data

            response = SSDPResponse.from_datagram(data)
            if response is None:
                log.warning("Ignoring malformed SSDP response: %r", data[:200])
                continue
            if response.st and response.st != target:
                log.debug("Ignoring response for %s while searching for %s", response.st, target)
                continue

            key = (response.location, response.usn)
            if key in seen:
                continue
            seen.add(key)
            log.debug("Found %r", response)
            yield response.location
    finally:
        if closer is not None:
            closer.cancel()
        transport.close()
    log.debug("Search for %s finished with %d response(s)", target, len(seen))
