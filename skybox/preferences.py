"""
Persistence of the box chosen with `skybox scan`.

The selection is a small JSON document holding the two control URLs:

    {"play": "http://192.168.1.20:49153/...SkyPlay",
     "browse": "http://192.168.1.20:49154/...SkyBrowse"}
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .errors import NoDeviceSelected
from .models import PairedDevice

log = logging.getLogger(__name__)


def save_device(device: PairedDevice, path: Path) -> None:
    """Write `device` to `path`, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"play": device.play_url, "browse": device.browse_url}
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    log.debug("Saved %s to %s", device.host, path)


def load_device(path: Path) -> Optional[PairedDevice]:
    """Read the saved device, or None if nothing usable is stored at `path`."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return PairedDevice(play_url=data["play"], browse_url=data["browse"])
    except (OSError, ValueError, KeyError, TypeError, ValidationError) as exc:
        log.warning("Ignoring unreadable device file %s: %s", path, exc)
        return None


def require_device(path: Path) -> PairedDevice:
    """Like load_device(), but raise NoDeviceSelected when nothing is stored."""
    device = load_device(path)
    if device is None:
        raise NoDeviceSelected("Use `skybox scan` to find a skybox")
    return device
