"""
SOAP action invocation for Sky+ UPnP services.

Every action the client performs (Browse, DestroyObject, SetAVTransportURI)
goes through invoke(): it wraps the arguments in a SOAP envelope, POSTs
it to a control URL and returns the response body on HTTP 200.

Argument values are inserted verbatim. Callers that need a literal "&"
or "<" in a value must escape it themselves.

Example usage:
    from skybox.soap import invoke
    from skybox.urn import SKY_BROWSE

    body = await invoke(client, browse_url, SKY_BROWSE, "DestroyObject", {"ObjectID": "BOOK:688476834"})
"""

import logging
from typing import Mapping, Optional

import httpx

from .errors import ActionFailure, TransportError
from .urn import ServiceIdentity

log = logging.getLogger(__name__)

SOAP_ENV = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_ENCODING = "http://schemas.xmlsoap.org/soap/encoding/"
CONTENT_TYPE = 'text/xml; charset="utf-8"'

# Messages for failed actions, as reported to the user
FAILURE_MESSAGES = {
    "Browse": "Browse failed",
    "DestroyObject": "Delete failed",
    "SetAVTransportURI": "Play request failed",
}


def as_elements(arguments: Mapping[str, str]) -> str:
    """Render arguments as concatenated `<Name>Value</Name>` elements, in order."""
    return "".join(f"<{name}>{value}</{name}>" for name, value in arguments.items())


def envelope(body: str) -> str:
    """Wrap `body` in a SOAP envelope."""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<s:Envelope s:encodingStyle="{SOAP_ENCODING}" xmlns:s="{SOAP_ENV}">'
        f"<s:Body>{body}</s:Body>"
        "</s:Envelope>"
    )


def build_request(identity: ServiceIdentity, action: str, arguments: Mapping[str, str]) -> str:
    """Return the full SOAP request body for `action` on the `identity` service."""
    return envelope(f'<u:{action} xmlns:u="{identity}">{as_elements(arguments)}</u:{action}>')


def soap_action_header(identity: ServiceIdentity, action: str) -> str:
    return f'"{identity}#{action}"'


async def invoke(
    client: httpx.AsyncClient,
    endpoint: str,
    identity: ServiceIdentity,
    action: str,
    arguments: Mapping[str, str],
    failure_message: Optional[str] = None,
) -> str:
    """Invoke a SOAP action and return the raw response body.

    The call is made exactly once; it is never retried.

    Args:
        client: Shared HTTP client
        endpoint: Control URL of the service
        identity: Service the action belongs to
        action: Action name, e.g. "Browse"
        arguments: Argument name to value, sent in iteration order
        failure_message: Message for the ActionFailure raised on a non-200
            status (defaults to an action-specific message)

    Returns:
        Response body text

    Raises:
        ActionFailure: If the response status is not 200
        TransportError: If the request could not be completed
    """
    headers = {
        "Content-Type": CONTENT_TYPE,
        "SOAPACTION": soap_action_header(identity, action),
    }
    body = build_request(identity, action, arguments)
    log.debug("POST %s %s", endpoint, headers["SOAPACTION"])
    try:
        resp = await client.post(endpoint, content=body.encode("utf-8"), headers=headers)
    except httpx.HTTPError as exc:
        raise TransportError(f"{action} request to {endpoint} failed: {exc}") from exc

    if resp.status_code != 200:
        log.debug("%s returned HTTP %d: %r", action, resp.status_code, resp.text[:200])
        message = failure_message or FAILURE_MESSAGES.get(action, f"{action} failed")
        raise ActionFailure(action, resp.status_code, message)
    return resp.text
