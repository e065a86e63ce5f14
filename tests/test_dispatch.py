import base64

import pytest

from poster_finder.host.memory import RectangleNode
from poster_finder.schemas.messages import (
    FetchForRandomMessage,
    InsertPosterMessage,
    LiveSearchMessage,
    dump_outbound,
    parse_inbound,
)


def test_parse_inbound_normalizes_media_type_and_query():
    msg = parse_inbound({"type": "live-search", "mediaType": "anime", "query": None})

    assert isinstance(msg, LiveSearchMessage)
    assert msg.media_type == "movie"
    assert msg.query == ""


def test_parse_insert_poster_accepts_byte_lists():
    msg = parse_inbound({"type": "insert-poster", "data": [137, 80, 78, 71], "title": "Up"})

    assert isinstance(msg, InsertPosterMessage)
    assert msg.image_source() == b"\x89PNG"


def test_insert_poster_source_prefers_data_over_poster_path():
    msg = InsertPosterMessage(data="data:image/png;base64,AAAA", posterPath="/p.jpg")
    assert msg.image_source() == "data:image/png;base64,AAAA"

    assert InsertPosterMessage(posterPath="/p.jpg").image_source() is None


def test_outbound_messages_use_camel_case_wire_names():
    assert dump_outbound(FetchForRandomMessage(poster_path="/x.jpg", title="X")) == {
        "type": "fetch-for-random",
        "posterPath": "/x.jpg",
        "title": "X",
    }


@pytest.mark.anyio
async def test_unknown_message_type_is_ignored(handler, channel, tmdb_server):
    await handler.dispatch({"type": "resize-ui", "width": 10})
    await handler.dispatch({"query": "no type"})

    assert channel.messages == []
    assert tmdb_server.requests == []


@pytest.mark.anyio
@pytest.mark.parametrize("msg_type", [["search"], {"kind": "search"}, 7, None])
async def test_non_string_message_type_is_ignored(handler, channel, tmdb_server, msg_type):
    await handler.dispatch({"type": msg_type, "query": "x"})

    assert channel.messages == []
    assert tmdb_server.requests == []


@pytest.mark.anyio
async def test_dispatch_routes_search(handler, channel, tmdb_server):
    tmdb_server.routes["/3/search/tv"] = {"results": [{"id": 1, "name": "Dark", "first_air_date": "2017-12-01"}]}

    await handler.dispatch({"type": "search", "mediaType": "tv", "query": "dark"})

    [msg] = channel.messages
    assert msg.query == "dark"
    assert msg.results[0].title == "Dark"


@pytest.mark.anyio
async def test_dispatch_routes_trending(handler, channel, tmdb_server):
    tmdb_server.routes["/3/trending/movie/day"] = {"results": []}

    await handler.dispatch({"type": "get-trending"})

    assert [m.type for m in channel.messages] == ["trending-results"]


@pytest.mark.anyio
async def test_insert_poster_with_bytes(handler, doc, channel, png_bytes):
    await handler.dispatch({"type": "insert-poster", "data": png_bytes, "title": "Alien"})

    [node] = doc.page.children
    assert doc.image_bytes(node.fills[0].image_hash) == png_bytes
    assert [m.model_dump() for m in channel.messages] == [
        {"type": "inserted", "message": "Added: Alien"}
    ]


@pytest.mark.anyio
async def test_insert_poster_with_data_uri(handler, doc, channel, png_bytes):
    target = RectangleNode()
    doc.append_to_page(target)
    doc.selection = [target]
    uri = "data:image/png;base64," + base64.b64encode(png_bytes).decode()

    await handler.dispatch({"type": "insert-poster", "data": uri, "title": "Up"})

    assert doc.image_bytes(target.fills[0].image_hash) == png_bytes
    assert channel.messages[-1].message == "Added: Up"


@pytest.mark.anyio
async def test_insert_poster_by_path_downloads_from_image_base(handler, doc, channel, tmdb_server, png_bytes):
    tmdb_server.routes["/t/p/w500/heat.jpg"] = png_bytes

    await handler.dispatch({"type": "insert-poster", "posterPath": "/heat.jpg", "title": "Heat"})

    assert tmdb_server.requests[0].url.host == "image.tmdb.org"
    assert channel.messages[-1].model_dump() == {"type": "inserted", "message": "Added: Heat"}


@pytest.mark.anyio
async def test_insert_poster_with_empty_bytes_reports_error_only(handler, doc, channel):
    target = RectangleNode()
    target.fills = [{"type": "SOLID"}]
    doc.append_to_page(target)
    doc.selection = [target]

    await handler.dispatch({"type": "insert-poster", "data": b"", "title": "Nothing"})

    assert target.fills == [{"type": "SOLID"}]
    assert [m.model_dump() for m in channel.messages] == [
        {"type": "snackbar", "message": "Error inserting poster"}
    ]


@pytest.mark.anyio
async def test_insert_poster_without_source(handler, doc, channel):
    await handler.dispatch({"type": "insert-poster", "title": "Ghost"})

    assert doc.page.children == []
    assert [m.model_dump() for m in channel.messages] == [
        {"type": "snackbar", "message": "Poster not available"}
    ]


@pytest.mark.anyio
async def test_close_asks_host_to_close(handler, doc):
    await handler.dispatch({"type": "close"})

    assert doc.closed is True


@pytest.mark.anyio
async def test_unexpected_failure_becomes_action_failed(handler, channel, monkeypatch):
    async def boom(media_type):
        raise RuntimeError("kaput")

    monkeypatch.setattr(handler, "fetch_trending", boom)

    await handler.dispatch({"type": "get-trending", "mediaType": "movie"})

    assert [m.model_dump() for m in channel.messages] == [
        {"type": "snackbar", "message": "Action failed"}
    ]


@pytest.mark.anyio
async def test_malformed_known_message_becomes_action_failed(handler, channel):
    await handler.dispatch({"type": "insert-poster", "posterPath": ["not", "a", "path"]})

    assert channel.messages[-1].message == "Action failed"
