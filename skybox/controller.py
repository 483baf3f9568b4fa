"""
High-level control of one selected Sky+ box.

SkyBox bundles the paired endpoints of a box with the shared HTTP client
and exposes the three operations of the command-line tool: list, remove
and play.

Example usage:
    from skybox.controller import SkyBox

    async with build_async_client(settings) as client:
        box = SkyBox(device, client, settings)
        await box.remove(["BOOK:688476834", "BOOK:688555858"])
"""

import logging
from typing import Dict, Iterable, List, Optional

import httpx

from .avtransport import SkyPlayController
from .config import SkyboxSettings
from .content_directory import ContentDirectory, RecordingListing
from .errors import RemoveFailed, SkyboxError
from .models import PairedDevice

log = logging.getLogger(__name__)


class SkyBox:
    """A selected box and the clients for its two services."""

    def __init__(self, device: PairedDevice, client: httpx.AsyncClient, settings: Optional[SkyboxSettings] = None):
        self.device = device
        self.settings = settings or SkyboxSettings()
        self.directory = ContentDirectory(client, device.browse_url, self.settings, self.settings.browse_identity)
        self.player = SkyPlayController(client, device.play_url, self.settings.play_identity)

    async def list_recordings(self) -> RecordingListing:
        return await self.directory.browse_all()

    async def remove(self, object_ids: Iterable[str]) -> List[str]:
        """Delete recordings, attempting every id even after a failure.

        Returns:
            The ids that were removed

        Raises:
            RemoveFailed: After all ids were attempted, if any delete failed
        """
        removed: List[str] = []
        failures: Dict[str, SkyboxError] = {}
        for object_id in object_ids:
            try:
                await self.directory.destroy_object(object_id)
            except SkyboxError as exc:
                log.warning("Could not remove %s: %s", object_id, exc)
                failures[object_id] = exc
                continue
            removed.append(object_id)
        if failures:
            raise RemoveFailed(failures)
        return removed

    async def play(self, resource: str) -> None:
        await self.player.play(resource)
