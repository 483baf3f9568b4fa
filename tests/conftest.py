import asyncio
from typing import Callable, List
from xml.sax.saxutils import escape

import httpx
import pytest

from skybox.config import SkyboxSettings
from skybox.http_client import build_async_client

DESCRIPTION_TEMPLATE = """<?xml version="1.0"?>
<root xmlns="urn:schemas-upnp-org:device-1-0">
  <specVersion><major>1</major><minor>0</minor></specVersion>
  <device>
    <deviceType>urn:schemas-nds-com:device:SkyServe:2</deviceType>
    <friendlyName>SKY+HD</friendlyName>
    <serviceList>
      <service>
        <serviceType>{service_type}</serviceType>
        <serviceId>urn:nds-com:serviceId:{service_name}</serviceId>
        <SCPDURL>{service_name}.xml</SCPDURL>
        <controlURL>{control_url}</controlURL>
        <eventSubURL>/{service_name}Event</eventSubURL>
      </service>
    </serviceList>
  </device>
</root>
"""


def description(service_type: str, control_url: str) -> str:
    service_name = service_type.split(":")[3]
    return DESCRIPTION_TEMPLATE.format(
        service_type=service_type, service_name=service_name, control_url=control_url
    )


def item_xml(
    item_id: str = "BOOK:688476834",
    title: str = "Doctor Who",
    duration: str = "P0D01:03:57",
    genre: str = "3",
    viewed: str = "1",
    series_id: str = "SER:1234",
    omit: tuple = (),
) -> str:
    """A DIDL-Lite <item> as the box returns it; names in `omit` are left out."""
    fields = [
        ("dc:title", "title", title),
        ("dc:description", "description", "The Doctor returns."),
        ("upnp:channelName", "channelName", "BBC One HD"),
        ("vx:X_genre", "X_genre", genre),
        ("vx:X_isViewed", "X_isViewed", viewed),
        ("upnp:recordedStartDateTime", "recordedStartDateTime", "2020-02-16T20:58:00+00:00"),
        ("upnp:recordedDuration", "recordedDuration", duration),
        ("upnp:seriesID", "seriesID", series_id),
        ("res", "res", "file://pvr/290B3177"),
    ]
    children = "".join(f"<{tag}>{value}</{tag}>" for tag, name, value in fields if name not in omit)
    id_attr = "" if "id" in omit else f' id="{item_id}"'
    return f'<item{id_attr} parentID="3" restricted="0">{children}</item>'


def didl(items: List[str]) -> str:
    return (
        '<DIDL-Lite xmlns="urn:schemas-upnp-org:metadata-1-0/DIDL-Lite/" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/" '
        'xmlns:upnp="urn:schemas-upnp-org:metadata-1-0/upnp/" '
        'xmlns:vx="urn:schemas-nds-com:metadata-1-0/vx/">' + "".join(items) + "</DIDL-Lite>"
    )


def browse_response(items: List[str], total: int) -> str:
    """A SOAP Browse response with `items` double-encoded into <Result>."""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" '
        's:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/"><s:Body>'
        '<u:BrowseResponse xmlns:u="urn:schemas-nds-com:service:SkyBrowse:2">'
        f"<Result>{escape(didl(items))}</Result>"
        f"<NumberReturned>{len(items)}</NumberReturned>"
        f"<TotalMatches>{total}</TotalMatches>"
        "<UpdateID>1</UpdateID>"
        "</u:BrowseResponse></s:Body></s:Envelope>"
    )


@pytest.fixture
def settings(tmp_path) -> SkyboxSettings:
    return SkyboxSettings(
        discovery_timeout_seconds=0.2,
        preferences_path=tmp_path / "device.json",
    )


@pytest.fixture
def make_client(settings) -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by `handler`."""

    def factory(handler):
        return build_async_client(settings, transport=httpx.MockTransport(handler))

    return factory


def run(coro):
    return asyncio.run(coro)
