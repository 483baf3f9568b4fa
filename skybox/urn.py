"""
Service identities (UPnP service URNs) used by Sky+ boxes.

A Sky+ box exposes playback and content browsing as two separate UPnP
services, each advertised under its own URN. The canonical string form of
a ServiceIdentity is used both as the SSDP search target and as the value
matched against <serviceType> in device description documents.

Example usage:
    from skybox.urn import SKY_BROWSE, ServiceIdentity

    print(SKY_BROWSE)  # urn:schemas-nds-com:service:SkyBrowse:2
    ident = ServiceIdentity.parse("urn:schemas-nds-com:service:SkyPlay:2")
"""

import re

from pydantic import BaseModel, ConfigDict

_URN_RE = re.compile(r"urn:([^:]+):service:([^:]+):(\d+)")


class ServiceIdentity(BaseModel):
    """Immutable (domain, service name, version) triple naming a UPnP service.

    Attributes:
        domain (str): Vendor domain, e.g. "schemas-nds-com"
        name (str): Service name, e.g. "SkyBrowse"
        version (int): Service version
    """

    model_config = ConfigDict(frozen=True)

    domain: str
    name: str
    version: int

    @classmethod
    def parse(cls, urn: str) -> "ServiceIdentity":
        """Parse the canonical `urn:<domain>:service:<name>:<version>` form.

        Raises:
            ValueError: If `urn` is not a service URN
        """
        match = _URN_RE.fullmatch(urn.strip())
        if not match:
            raise ValueError(f"Not a service URN: {urn!r}")
        domain, name, version = match.groups()
        return cls(domain=domain, name=name, version=int(version))

    def __str__(self) -> str:
        return f"urn:{self.domain}:service:{self.name}:{self.version}"


SKY_PLAY = ServiceIdentity(domain="schemas-nds-com", name="SkyPlay", version=2)
SKY_BROWSE = ServiceIdentity(domain="schemas-nds-com", name="SkyBrowse", version=2)
