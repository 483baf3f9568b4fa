"""
UPnP device description parsing for Sky+ boxes.

This module fetches a device description document and extracts the
control URL of one named service from it.

Key components:
- fetch_control_url(): Fetch a description and return a service's control URL
- extract_control_url(): The parsing half, usable on an already fetched document

Example usage:
    from skybox.device import fetch_control_url
    from skybox.http_client import build_async_client
    from skybox.urn import SKY_BROWSE

    async with build_async_client() as client:
        url = await fetch_control_url(client, SKY_BROWSE, "http://192.168.1.20:49154/desc.xml")
        print(f"SkyBrowse control: {url}")
"""

import logging
import urllib.parse
import xml.etree.ElementTree as ET

import httpx

from .errors import DescriptionFetchError, MalformedDocument, ServiceNotFound
from .urn import ServiceIdentity

log = logging.getLogger(__name__)


def local_name(tag) -> str:
    """Strip any "{namespace}" prefix from an ElementTree tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def extract_control_url(document: str, identity: ServiceIdentity, location: str) -> str:
    """Find the control URL of `identity` in a device description.

    Looks for a <serviceType> element whose text is the identity's URN, then
    for the first <controlURL> under that element's parent. The result is
    `location` with its path replaced by the control URL, since Sky+ boxes
    publish control URLs as absolute paths.

    Args:
        document: Device description XML
        identity: Service whose control URL is wanted
        location: URL the description was fetched from

    Returns:
        Fully-qualified control URL

    Raises:
        MalformedDocument: If the document is not well-formed XML
        ServiceNotFound: If the service or its controlURL is absent
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise MalformedDocument(f"Device description at {location} is not valid XML: {exc}") from exc

    urn = str(identity)
    parents = {child: parent for parent in root.iter() for child in parent}
    service_type = next(
        (e for e in root.iter() if local_name(e.tag) == "serviceType" and (e.text or "").strip() == urn),
        None,
    )
    if service_type is None or service_type not in parents:
        raise ServiceNotFound(identity, location)

    # Up to the <service> element and down to its controlURL
    control = next((e for e in parents[service_type].iter() if local_name(e.tag) == "controlURL"), None)
    path = (control.text or "").strip() if control is not None else ""
    if not path:
        raise ServiceNotFound(identity, location)

    if path.startswith(("http://", "https://")):
        return path
    if not path.startswith("/"):
        path = "/" + path
    return urllib.parse.urlparse(location)._replace(path=path).geturl()


async def fetch_control_url(client: httpx.AsyncClient, identity: ServiceIdentity, location: str) -> str:
    """Fetch the description at `location` and return the control URL of `identity`.

    Raises:
        DescriptionFetchError: If the GET fails or returns a non-success status
        MalformedDocument: If the description is not well-formed XML
        ServiceNotFound: If the description does not list the service
    """
    try:
        resp = await client.get(location)
    except httpx.HTTPError as exc:
        raise DescriptionFetchError(location, str(exc)) from exc
    if not resp.is_success:
        raise DescriptionFetchError(location, f"HTTP {resp.status_code}")

    control_url = extract_control_url(resp.text, identity, location)
    log.debug("%s control URL: %s", identity.name, control_url)
    return control_url
