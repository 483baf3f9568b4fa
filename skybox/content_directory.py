"""
Paged listing and deletion of recordings through the SkyBrowse service.

The box returns Browse results a page at a time. Each response carries
the page's items as a DIDL-Lite document serialised into the <Result>
element, plus <TotalMatches>, the number of items in the whole listing.

Key components:
- PageCursor: Position of the next page to request
- BrowsePage: One decoded page
- RecordingListing: Async iterable over every recording, total known up front
- ContentDirectory: Browse and DestroyObject on one box

Example usage:
    from skybox.content_directory import ContentDirectory

    directory = ContentDirectory(client, device.browse_url)
    listing = await directory.browse_all()
    print(f"{listing.total} items")
    async for recording in listing:
        print(recording.title)
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional

import httpx

from .config import SkyboxSettings
from .device import local_name
from .errors import ItemDecodeError, MalformedDocument, MissingElement, NotYetRecorded
from .item import parse_item
from .models import Recording
from .soap import invoke
from .urn import SKY_BROWSE, ServiceIdentity

log = logging.getLogger(__name__)

ROOT_CONTAINER = "3"


@dataclass(frozen=True)
class PageCursor:
    """Where the next Browse call starts and how many items it asks for."""

    starting_index: int = 0
    requested_count: int = 25
    total_matches: Optional[int] = None

    def advance(self, returned_count: int, total_matches: int) -> "PageCursor":
        return PageCursor(self.starting_index + returned_count, self.requested_count, total_matches)

    def is_last_page(self, returned_count: int) -> bool:
        """A page shorter than requested ends the listing."""
        return returned_count < self.requested_count


@dataclass
class BrowsePage:
    """One page of Browse results.

    Attributes:
        recordings: Items on the page that decoded into Recordings
        raw_count: Number of <item> elements on the page, decoded or not
        total_matches: TotalMatches reported by the box
    """

    recordings: List[Recording] = field(default_factory=list)
    raw_count: int = 0
    total_matches: int = 0


def _find(root: ET.Element, name: str) -> Optional[ET.Element]:
    return next((e for e in root.iter() if local_name(e.tag) == name), None)


def parse_browse_response(body: str) -> BrowsePage:
    """Decode a Browse response body into a BrowsePage.

    The response is parsed twice: once as the SOAP envelope, then the text
    of <Result> as a document of its own. Items that fail to decode are
    dropped; everything else that is wrong with the response is an error.

    Raises:
        MalformedDocument: If either document is not well-formed, or
            TotalMatches is not an unsigned integer
        MissingElement: If Result or TotalMatches is absent
    """
    try:
        envelope = ET.fromstring(body)
    except ET.ParseError as exc:
        raise MalformedDocument(f"Browse response is not valid XML: {exc}") from exc

    result = _find(envelope, "Result")
    if result is None:
        raise MissingElement("Browse response has no Result")
    total = _find(envelope, "TotalMatches")
    if total is None:
        raise MissingElement("Browse response has no TotalMatches")
    total_text = (total.text or "").strip()
    if not total_text.isdigit():
        raise MalformedDocument(f"TotalMatches is not a count: {total_text!r}")

    page = BrowsePage(total_matches=int(total_text))
    inner = (result.text or "").strip()
    if not inner:
        return page

    try:
        didl = ET.fromstring(inner)
    except ET.ParseError as exc:
        raise MalformedDocument(f"Browse Result is not valid XML: {exc}") from exc

    for elem in didl.iter():
        if local_name(elem.tag) != "item":
            continue
        page.raw_count += 1
        try:
            page.recordings.append(parse_item(elem))
        except NotYetRecorded as exc:
            log.debug("Skipping future recording: %s", exc)
        except ItemDecodeError as exc:
            log.warning("Skipping item %s: %s", elem.get("id"), exc)
    return page


class RecordingListing:
    """Every recording on a box, fetched page by page.

    The first page is fetched before the listing is returned, so `total`
    is known immediately. Iterating yields the first page's recordings and
    then fetches the remaining pages one after another. The listing can be
    iterated again; later iterations start over from the first page.
    """

    def __init__(self, directory: "ContentDirectory", first_page: BrowsePage, page_size: int):
        self._directory = directory
        self._first_page: Optional[BrowsePage] = first_page
        self._page_size = page_size
        self.total = first_page.total_matches

    async def pages(self) -> AsyncIterator[BrowsePage]:
        """Yield each page in order, stopping after the first short page."""
        cursor = PageCursor(0, self._page_size)
        page = self._first_page
        self._first_page = None
        while True:
            if page is None:
                page = await self._directory.fetch_page(cursor)
            yield page
            if cursor.is_last_page(page.raw_count):
                return
            cursor = cursor.advance(page.raw_count, page.total_matches)
            page = None

    async def __aiter__(self) -> AsyncIterator[Recording]:
        async for page in self.pages():
            for recording in page.recordings:
                yield recording


class ContentDirectory:
    """Client for the SkyBrowse service of one box."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        browse_url: str,
        settings: Optional[SkyboxSettings] = None,
        identity: ServiceIdentity = SKY_BROWSE,
    ):
        self.client = client
        self.browse_url = browse_url
        self.settings = settings or SkyboxSettings()
        self.identity = identity

    async def fetch_page(self, cursor: PageCursor) -> BrowsePage:
        """Issue one Browse call for the children of the recordings container."""
        arguments = {
            "ObjectID": ROOT_CONTAINER,
            "BrowseFlag": "BrowseDirectChildren",
            "Filter": "*",
            "StartingIndex": str(cursor.starting_index),
            "RequestedCount": str(cursor.requested_count),
            "SortCriteria": "",
        }
        body = await invoke(self.client, self.browse_url, self.identity, "Browse", arguments)
        page = parse_browse_response(body)
        log.info(
            "Fetched %d/%d items.",
            cursor.starting_index + page.raw_count,
            page.total_matches,
        )
        return page

    async def browse_all(self) -> RecordingListing:
        """Fetch the first page and return a listing of all recordings.

        Raises:
            ActionFailure: If a Browse call is rejected
            MalformedDocument: If a response cannot be parsed
            MissingElement: If a response lacks Result or TotalMatches
        """
        page_size = self.settings.page_size
        first_page = await self.fetch_page(PageCursor(0, page_size))
        return RecordingListing(self, first_page, page_size)

    async def destroy_object(self, object_id: str) -> None:
        """Delete one recording.

        Raises:
            ActionFailure: "Delete failed" if the box rejects the request
        """
        log.info("Removing %s using %s", object_id, self.browse_url)
        await invoke(self.client, self.browse_url, self.identity, "DestroyObject", {"ObjectID": object_id})
