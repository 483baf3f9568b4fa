"""
Exception hierarchy for the Sky+ discovery and control client.

Errors raised while discovering devices, resolving their description
documents or invoking SOAP actions all derive from SkyboxError, so a
caller can report any failure of an operation with a single except clause.

Item-level decode errors (ItemDecodeError and subclasses) are the one
family that is expected to be caught close to where it is raised: the
content directory pager drops the offending item and carries on.
"""

from typing import Dict, Optional


class SkyboxError(Exception):
    """Base class for all errors raised by this package."""


class TransportError(SkyboxError):
    """The network could not be reached or a socket could not be opened."""


class DescriptionFetchError(SkyboxError):
    """A device description document could not be fetched."""

    def __init__(self, location: str, reason: str):
        super().__init__(f"Cannot fetch device description {location}: {reason}")
        self.location = location
        self.reason = reason


class MalformedDocument(SkyboxError):
    """A description or response body is not well-formed."""


class MissingElement(SkyboxError):
    """A required element of a description or response is absent."""


class ServiceNotFound(MissingElement):
    """The requested service (or its controlURL) is not in a description."""

    def __init__(self, identity, location: str):
        super().__init__(f"Service {identity} not found in {location}")
        self.identity = identity
        self.location = location


class ActionFailure(SkyboxError):
    """A SOAP action returned a status other than 200."""

    def __init__(self, action: str, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"{action} failed")
        self.action = action
        self.status_code = status_code


class RemoveFailed(SkyboxError):
    """One or more recordings could not be removed.

    Attributes:
        failures (Dict[str, SkyboxError]): Object id to the error its delete raised
    """

    def __init__(self, failures: Dict[str, SkyboxError]):
        ids = ", ".join(failures)
        super().__init__(f"Failed to remove {len(failures)} recording(s): {ids}")
        self.failures = failures


class NoDeviceSelected(SkyboxError):
    """No device has been chosen with `skybox scan` yet."""


class ItemDecodeError(SkyboxError):
    """A single content directory item cannot be turned into a Recording."""


class NotYetRecorded(ItemDecodeError):
    """The item has no recordedDuration: it is scheduled, not recorded."""


class DurationParseError(ItemDecodeError):
    """A recordedDuration value does not follow the P0DHH:MM:SS pattern."""

    def __init__(self, value: str):
        super().__init__(f"Cannot parse duration {value!r}")
        self.value = value


class MissingItemElement(ItemDecodeError):
    """A required child element (or attribute) of an item is absent."""

    def __init__(self, tag: str):
        super().__init__(f"Item has no {tag}")
        self.tag = tag
