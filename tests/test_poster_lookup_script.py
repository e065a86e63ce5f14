import pytest

from poster_finder.host.base import ImagePaint
from poster_finder.host.memory import MemoryDocument, RectangleNode
from scripts.poster_lookup import _build_message, _parse_args, _placed_image


def test_search_command_joins_query_words():
    args = _parse_args(["--tv", "search", "the", "wire"])

    assert _build_message(args) == {"type": "search", "mediaType": "tv", "query": "the wire"}


def test_trending_and_random_default_to_movies():
    assert _build_message(_parse_args(["trending"])) == {"type": "get-trending", "mediaType": "movie"}
    assert _build_message(_parse_args(["random"])) == {"type": "random-pick", "mediaType": "movie"}


def test_insert_command_uses_poster_path():
    args = _parse_args(["insert", "/heat.jpg", "--title", "Heat"])

    assert _build_message(args) == {"type": "insert-poster", "posterPath": "/heat.jpg", "title": "Heat"}


def test_save_is_rejected_for_search():
    with pytest.raises(SystemExit):
        _parse_args(["--save", "out.png", "search", "heat"])


def test_placed_image_finds_filled_node(png_bytes):
    doc = MemoryDocument()
    node = RectangleNode()
    doc.append_to_page(node)
    assert _placed_image(doc) is None

    image = doc.create_image(png_bytes)
    node.fills = [ImagePaint(image_hash=image.hash)]

    assert _placed_image(doc) == png_bytes
