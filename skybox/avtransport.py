import logging

import httpx

from .soap import invoke
from .urn import SKY_PLAY, ServiceIdentity

log = logging.getLogger(__name__)


def playback_uri(resource: str) -> str:
    """Return the CurrentURI for playing `resource` from the start at normal speed.

    The "&" is pre-escaped because SOAP argument values are sent verbatim.
    """
    return f"{resource}?position=0&amp;speed=1"


class SkyPlayController:
    """Minimal client for the SkyPlay (AVTransport-like) service of a box."""

    def __init__(self, client: httpx.AsyncClient, play_url: str, identity: ServiceIdentity = SKY_PLAY):
        self.client = client
        self.play_url = play_url
        self.identity = identity

    async def set_av_transport_uri(self, instance_id: int, current_uri: str, current_uri_metadata: str = "NOT_IMPLEMENTED"):
        """Point the box's player at `current_uri`; the box starts playing it immediately."""
        arguments = {
            "InstanceID": str(instance_id),
            "CurrentURI": current_uri,
            "CurrentURIMetaData": current_uri_metadata,
        }
        return await invoke(self.client, self.play_url, self.identity, "SetAVTransportURI", arguments)

    async def play(self, resource: str) -> None:
        """Play a recording, e.g. "file://pvr/290B3177"."""
        await self.set_av_transport_uri(0, playback_uri(resource))
        log.info("Playing: %s", resource)
