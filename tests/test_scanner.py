import asyncio
import logging

import httpx
import pytest
from conftest import description, run

from skybox.errors import TransportError
from skybox.scanner import discover_pairs, join_by_host
from skybox.urn import SKY_BROWSE, SKY_PLAY

PLAY_CONTROL = "/444D5276-3247-4761-7270-00e0364e4545SkyPlay"
BROWSE_CONTROL = "/444D5376-3247-4761-7270-00e0364e4545SkyBrowse"


def fake_search(locations_by_urn):
    """A search function yielding preset locations for each service URN."""

    async def search(identity, timeout, max_responses, mx):
        for location in locations_by_urn.get(str(identity), []):
            await asyncio.sleep(0)
            yield location

    return search


def description_server(documents):
    """Answer GETs with the description registered for the URL, else 404."""

    def handler(request):
        document = documents.get(str(request.url))
        if document is None:
            return httpx.Response(404)
        return httpx.Response(200, text=document)

    return handler


def test_join_pairs_only_hosts_with_both_services(caplog):
    browse = {"A": "http://A:49154/browse", "B": "http://B:49154/browse"}
    play = {"A": "http://A:49153/play", "C": "http://C:49153/play"}
    with caplog.at_level(logging.WARNING, logger="skybox.scanner"):
        devices = join_by_host(play, browse)

    assert [(d.host, d.play_url, d.browse_url) for d in devices] == [
        ("a", "http://A:49153/play", "http://A:49154/browse")
    ]
    skipped = [r.getMessage() for r in caplog.records]
    assert len(skipped) == 2
    assert any("B" in m and "no play service" in m for m in skipped)
    assert any("C" in m and "no browse service" in m for m in skipped)


def test_join_of_nothing_is_empty():
    assert join_by_host({}, {}) == []


def test_discover_pairs_end_to_end(settings, make_client):
    search = fake_search(
        {
            str(SKY_PLAY): ["http://10.0.0.5:49153/description0.xml"],
            str(SKY_BROWSE): ["http://10.0.0.5:49154/description2.xml"],
        }
    )
    handler = description_server(
        {
            "http://10.0.0.5:49153/description0.xml": description(str(SKY_PLAY), PLAY_CONTROL),
            "http://10.0.0.5:49154/description2.xml": description(str(SKY_BROWSE), BROWSE_CONTROL),
        }
    )

    async def go():
        async with make_client(handler) as client:
            return await discover_pairs(client, settings, search_fn=search)

    devices = run(go())
    assert len(devices) == 1
    device = devices[0]
    assert device.host == "10.0.0.5"
    assert device.play_url == "http://10.0.0.5:49153" + PLAY_CONTROL
    assert device.browse_url == "http://10.0.0.5:49154" + BROWSE_CONTROL


def test_bad_description_skips_only_that_location(settings, make_client, caplog):
    search = fake_search(
        {
            str(SKY_PLAY): ["http://10.0.0.5:49153/d.xml", "http://10.0.0.6:49153/d.xml"],
            str(SKY_BROWSE): ["http://10.0.0.5:49154/d.xml", "http://10.0.0.6:49154/d.xml"],
        }
    )
    handler = description_server(
        {
            "http://10.0.0.5:49153/d.xml": "<root><device>",
            "http://10.0.0.5:49154/d.xml": description(str(SKY_BROWSE), BROWSE_CONTROL),
            "http://10.0.0.6:49153/d.xml": description(str(SKY_PLAY), PLAY_CONTROL),
            "http://10.0.0.6:49154/d.xml": description(str(SKY_BROWSE), BROWSE_CONTROL),
        }
    )

    async def go():
        async with make_client(handler) as client:
            return await discover_pairs(client, settings, search_fn=search)

    with caplog.at_level(logging.WARNING, logger="skybox.scanner"):
        devices = run(go())
    assert [d.host for d in devices] == ["10.0.0.6"]
    assert "http://10.0.0.5:49153/d.xml" in caplog.text


def test_nothing_found_is_not_an_error(settings, make_client):
    async def go():
        async with make_client(description_server({})) as client:
            return await discover_pairs(client, settings, search_fn=fake_search({}))

    assert run(go()) == []


def test_transport_failure_aborts_discovery(settings, make_client):
    async def search(identity, timeout, max_responses, mx):
        if identity == SKY_PLAY:
            raise TransportError("Cannot open SSDP socket")
        await asyncio.sleep(10)
        yield "http://10.0.0.5:49154/d.xml"

    async def go():
        async with make_client(description_server({})) as client:
            await asyncio.wait_for(discover_pairs(client, settings, search_fn=search), 2)

    with pytest.raises(TransportError):
        run(go())


def test_failed_discovery_closes_the_other_search_first(settings, make_client):
    closed = []

    async def search(identity, timeout, max_responses, mx):
        if identity == SKY_PLAY:
            await asyncio.sleep(0.01)
            raise TransportError("Cannot open SSDP socket")
        try:
            await asyncio.sleep(10)
            yield "http://10.0.0.5:49154/d.xml"
        finally:
            closed.append(identity.name)

    async def go():
        async with make_client(description_server({})) as client:
            with pytest.raises(TransportError):
                await discover_pairs(client, settings, search_fn=search)
            return list(closed)

    assert run(go()) == ["SkyBrowse"]


def test_searches_run_concurrently(settings, make_client):
    order = []

    async def search(identity, timeout, max_responses, mx):
        for i in range(2):
            order.append((identity.name, i))
            await asyncio.sleep(0.01)
        return
        yield

    async def go():
        async with make_client(description_server({})) as client:
            return await discover_pairs(client, settings, search_fn=search)

    run(go())
    # both pipelines start before either finishes
    assert order.index(("SkyBrowse", 0)) < order.index(("SkyPlay", 1))
    assert order.index(("SkyPlay", 0)) < order.index(("SkyBrowse", 1))
