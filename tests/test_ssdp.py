import asyncio
import logging

import pytest
from conftest import run

from skybox import ssdp
from skybox.errors import TransportError
from skybox.urn import SKY_BROWSE


def response(location: str, st: str = str(SKY_BROWSE), usn: str = "uuid:1") -> bytes:
    return (
        "HTTP/1.1 200 OK\r\n"
        "CACHE-CONTROL: max-age=1800\r\n"
        "EXT:\r\n"
        f"LOCATION: {location}\r\n"
        "SERVER: Linux/2.6.18.5 UPnP/1.0 SKY DLNADOC/1.50\r\n"
        f"ST: {st}\r\n"
        f"USN: {usn}::{st}\r\n\r\n"
    ).encode("utf-8")


class FakeTransport:
    def __init__(self):
        self.sent = []
        self.closed = False

    def sendto(self, data, addr):
        self.sent.append((data, addr))

    def close(self):
        self.closed = True


@pytest.fixture
def endpoint(monkeypatch):
    """Replace the UDP socket with a fake that delivers `endpoint.datagrams`."""

    class Endpoint:
        datagrams = []
        transport = FakeTransport()

    async def fake_open(queue):
        for data in Endpoint.datagrams:
            queue.put_nowait(data)
        return Endpoint.transport

    monkeypatch.setattr(ssdp, "_open_endpoint", fake_open)
    return Endpoint


async def collect(**kwargs):
    return [location async for location in ssdp.search(SKY_BROWSE, **kwargs)]


def test_parse_headers_are_lowercased():
    headers = ssdp._parse_ssdp_response(response("http://10.0.0.5:49154/d.xml"))
    assert headers["location"] == "http://10.0.0.5:49154/d.xml"
    assert headers["st"] == str(SKY_BROWSE)
    assert "http/1.1 200 ok" not in headers


def test_response_without_location_is_rejected():
    assert ssdp.SSDPResponse.from_datagram(b"HTTP/1.1 200 OK\r\nST: x\r\n\r\n") is None
    assert ssdp.SSDPResponse.from_datagram(response("not a url")) is None


def test_msearch_targets_identity():
    msg = ssdp.build_msearch(SKY_BROWSE, mx=3).decode()
    assert msg.startswith("M-SEARCH * HTTP/1.1\r\n")
    assert "HOST: 239.255.255.250:1900\r\n" in msg
    assert 'MAN: "ssdp:discover"\r\n' in msg
    assert "MX: 3\r\n" in msg
    assert msg.endswith(f"ST: {SKY_BROWSE}\r\n\r\n")


def test_search_yields_locations_and_stops_at_max_responses(endpoint):
    endpoint.datagrams = [
        response("http://10.0.0.5:49154/d.xml", usn="uuid:a"),
        response("http://10.0.0.6:49154/d.xml", usn="uuid:b"),
        response("http://10.0.0.7:49154/d.xml", usn="uuid:c"),
    ]
    locations = run(collect(timeout=1.0, max_responses=2))
    assert locations == ["http://10.0.0.5:49154/d.xml", "http://10.0.0.6:49154/d.xml"]
    assert endpoint.transport.sent[0][1] == ("239.255.255.250", 1900)
    assert endpoint.transport.closed


def test_search_skips_duplicates_and_malformed_responses(endpoint, caplog):
    endpoint.datagrams = [
        response("http://10.0.0.5:49154/d.xml"),
        b"garbage",
        response("http://10.0.0.5:49154/d.xml"),
        response("http://10.0.0.5:49153/d.xml", st="urn:schemas-nds-com:service:SkyPlay:2"),
    ]
    with caplog.at_level(logging.WARNING, logger="skybox.ssdp"):
        locations = run(collect(timeout=0.1, max_responses=5))
    assert locations == ["http://10.0.0.5:49154/d.xml"]
    assert "malformed" in caplog.text


def test_search_ends_at_timeout(endpoint):
    endpoint.datagrams = []
    assert run(asyncio.wait_for(collect(timeout=0.05), 2)) == []
    assert endpoint.transport.closed


def test_responses_received_in_time_survive_a_slow_consumer(endpoint):
    endpoint.datagrams = [
        response("http://10.0.0.5:49154/d.xml", usn="uuid:a"),
        response("http://10.0.0.6:49154/d.xml", usn="uuid:b"),
    ]

    async def slow_collect():
        locations = []
        async for location in ssdp.search(SKY_BROWSE, timeout=0.1, max_responses=2):
            locations.append(location)
            await asyncio.sleep(0.2)
        return locations

    assert run(slow_collect()) == ["http://10.0.0.5:49154/d.xml", "http://10.0.0.6:49154/d.xml"]
    assert endpoint.transport.closed


def test_socket_error_is_transport_error(endpoint):
    endpoint.datagrams = [OSError("Network is unreachable")]
    with pytest.raises(TransportError):
        run(collect(timeout=1.0))


def test_unopenable_socket_is_transport_error(monkeypatch):
    async def broken(queue):
        raise OSError("Address family not supported")

    monkeypatch.setattr(ssdp, "_open_endpoint", broken)
    with pytest.raises(TransportError):
        run(collect(timeout=0.1))
