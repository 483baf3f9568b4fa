"""
Decoding of content directory <item> elements into Recordings.

Items are DIDL-Lite elements whose children carry the programme metadata.
Child elements are matched on their local tag name only, so the
dc:/upnp:/vx: prefixes the box uses make no difference.

An item without <recordedDuration> is a booking for a future programme;
parse_item() raises NotYetRecorded for it so the pager can drop it.
"""

import re
import xml.etree.ElementTree as ET
from typing import Optional

from pydantic import ValidationError

from .device import local_name
from .errors import DurationParseError, ItemDecodeError, MissingItemElement, NotYetRecorded
from .models import Category, Recording

DURATION_RE = re.compile(r"P0D(\d+):(\d+):(\d+)")


def parse_duration(duration: str) -> int:
    """Convert a "P0DHH:MM:SS" duration into seconds.

    Raises:
        DurationParseError: If `duration` does not match the pattern exactly
    """
    match = DURATION_RE.fullmatch(duration.strip())
    if not match:
        raise DurationParseError(duration)
    hours, mins, secs = (int(g) for g in match.groups())
    return secs + mins * 60 + hours * 3600


def child_text(elem: ET.Element, name: str) -> Optional[str]:
    """Text of the first child of `elem` named `name`.

    Returns None when there is no such child and "" when it is empty.
    """
    for child in elem:
        if local_name(child.tag) == name:
            return child.text or ""
    return None


def _required(elem: ET.Element, name: str) -> str:
    text = child_text(elem, name)
    if text is None:
        raise MissingItemElement(name)
    return text


def parse_item(elem: ET.Element) -> Recording:
    """Build a Recording from one <item> element.

    Raises:
        NotYetRecorded: If the item has no recordedDuration
        DurationParseError: If the duration is not in P0DHH:MM:SS form
        MissingItemElement: If another required element or the id is absent
        ItemDecodeError: If a value cannot be converted (genre, start time)
    """
    duration = child_text(elem, "recordedDuration")
    if duration is None:
        raise NotYetRecorded(f"Item {elem.get('id')} has not been recorded yet")
    recorded_duration = parse_duration(duration)

    recorded_starttime = _required(elem, "recordedStartDateTime")
    item_id = elem.get("id")
    if not item_id:
        raise MissingItemElement("id")

    genre = _required(elem, "X_genre")
    try:
        category = Category.from_genre(int(genre))
    except ValueError as exc:
        raise ItemDecodeError(f"Item {item_id} has a non-numeric genre {genre!r}") from exc

    try:
        return Recording(
            id=item_id,
            resource=_required(elem, "res").strip(),
            title=_required(elem, "title"),
            description=_required(elem, "description"),
            viewed=_required(elem, "X_isViewed").strip() == "1",
            recorded_starttime=recorded_starttime.strip(),
            recorded_duration=recorded_duration,
            channel_name=_required(elem, "channelName"),
            series_id=child_text(elem, "seriesID") or None,
            category=category,
        )
    except ValidationError as exc:
        raise ItemDecodeError(f"Item {item_id} is invalid: {exc}") from exc
