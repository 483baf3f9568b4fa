"""
skybox - discover and control Sky+ PVRs over UPnP.

This package finds Sky+ boxes on the local network with SSDP, pairs each
box's SkyPlay and SkyBrowse control endpoints, and uses them to list,
delete and play recordings.

Key modules:
- ssdp: SSDP search for one service identity
- device: Device description parsing (control URL extraction)
- scanner: Concurrent discovery of both services, joined into paired devices
- soap: SOAP envelope construction and action invocation
- content_directory: Paged Browse listing and DestroyObject
- item: Decoding of listed items into Recordings
- avtransport: SetAVTransportURI playback
- controller: SkyBox, the list/remove/play facade used by the CLI
- cli: Typer command-line interface

Example usage:
    import asyncio
    from skybox import SkyboxSettings, build_async_client, discover_pairs

    async def main():
        settings = SkyboxSettings()
        async with build_async_client(settings) as client:
            devices = await discover_pairs(client, settings)
            for device in devices:
                print(f"Found: {device.host}")

    asyncio.run(main())
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config import SkyboxSettings
from .content_directory import ContentDirectory, RecordingListing
from .controller import SkyBox
from .errors import SkyboxError
from .http_client import build_async_client
from .models import Category, PairedDevice, Recording
from .scanner import discover_pairs
from .ssdp import search
from .urn import SKY_BROWSE, SKY_PLAY, ServiceIdentity

__all__ = [
    "search",
    "discover_pairs",
    "build_async_client",
    "SkyboxSettings",
    "SkyBox",
    "ContentDirectory",
    "RecordingListing",
    "PairedDevice",
    "Recording",
    "Category",
    "ServiceIdentity",
    "SKY_PLAY",
    "SKY_BROWSE",
    "SkyboxError",
]
