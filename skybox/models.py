"""
Domain model for Sky+ boxes and their recordings.

Key components:
- PairedDevice: The play and browse control URLs of one physical box
- Recording: One recorded programme listed by the content directory
- Category: Programme category decoded from the box's numeric genre code

Example usage:
    from skybox.models import PairedDevice

    device = PairedDevice(
        play_url="http://192.168.1.20:49153/444D5276-3247-4761-7270-00e0364e4545SkyPlay",
        browse_url="http://192.168.1.20:49154/444D5376-3247-4761-7270-00e0364e4545SkyBrowse",
    )
    print(device.host)  # 192.168.1.20
"""

import urllib.parse
from enum import Enum
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator


def host_of(url: str) -> str:
    """Return the host of `url` (no port), or "" when it has none."""
    return urllib.parse.urlparse(url).hostname or ""


class Category(str, Enum):
    SPECIALIST = "specialist"
    CHILDREN = "children"
    ENTERTAINMENT = "entertainment"
    MUSIC = "music"
    NEWS_AND_DOCUMENTARY = "news_and_documentary"
    MOVIES = "movies"
    SPORTS = "sports"
    LIFESTYLE_AND_CULTURE = "lifestyle_and_culture"
    UNKNOWN = "unknown"

    @classmethod
    def from_genre(cls, code: int) -> "Category":
        """Map an X_genre code to a category; unlisted codes are UNKNOWN."""
        return _GENRES.get(code, cls.UNKNOWN)


_GENRES = {
    1: Category.SPECIALIST,
    2: Category.CHILDREN,
    3: Category.ENTERTAINMENT,
    4: Category.MUSIC,
    5: Category.NEWS_AND_DOCUMENTARY,
    6: Category.MOVIES,
    7: Category.SPORTS,
    8: Category.LIFESTYLE_AND_CULTURE,
}


class Recording(BaseModel):
    """A recorded programme as listed by the SkyBrowse service.

    Only items that have actually been recorded become a Recording; items
    without a recorded duration are future bookings and are rejected by
    the decoder in skybox.item.

    Attributes:
        id (str): Object id, the handle for DestroyObject (e.g. "BOOK:688476834")
        resource (str): Playable resource locator (e.g. "file://pvr/290B3177")
        title (str): Programme title
        description (str): Programme synopsis
        viewed (bool): Whether the recording has been watched
        recorded_starttime (datetime): When recording started, with UTC offset
        recorded_duration (int): Length of the recording in seconds
        channel_name (str): Channel the programme was recorded from
        series_id (Optional[str]): Series link id, absent for one-off programmes
        category (Category): Programme category
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    resource: str = Field(..., min_length=1)
    title: str
    description: str
    viewed: bool
    recorded_starttime: AwareDatetime
    recorded_duration: int = Field(..., ge=0)
    channel_name: str
    series_id: Optional[str] = None
    category: Category = Category.UNKNOWN


class PairedDevice(BaseModel):
    """The two control endpoints of a single Sky+ box.

    Both URLs must point at the same host; the services normally listen on
    different ports, so the port is not part of the comparison.

    Attributes:
        play_url (str): Control URL of the SkyPlay service
        browse_url (str): Control URL of the SkyBrowse service
    """

    model_config = ConfigDict(frozen=True)

    play_url: str
    browse_url: str

    @model_validator(mode="after")
    def _same_host(self) -> "PairedDevice":
        play_host = host_of(self.play_url)
        if not play_host or play_host != host_of(self.browse_url):
            raise ValueError(f"play and browse endpoints are on different hosts: {self.play_url} {self.browse_url}")
        return self

    @property
    def host(self) -> str:
        return host_of(self.browse_url)
