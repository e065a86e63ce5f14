from __future__ import annotations

from poster_finder.core.errors import UnsupportedTargetError
from poster_finder.host.base import HostDocument, HostNode, can_hold_fills

PLACEHOLDER_NAME = "Movie Poster"
PLACEHOLDER_WIDTH = 200
PLACEHOLDER_HEIGHT = 300

CANNOT_HOLD_FILLS = "Selected item cannot have fills"
SELECT_ONE = "Select only one frame or nothing"


def create_placeholder(host: HostDocument) -> HostNode:
    node = host.create_rectangle()
    node.name = PLACEHOLDER_NAME
    node.resize(PLACEHOLDER_WIDTH, PLACEHOLDER_HEIGHT)
    center = host.viewport_center
    node.x = center.x - PLACEHOLDER_WIDTH / 2
    node.y = center.y - PLACEHOLDER_HEIGHT / 2
    host.append_to_page(node)
    host.selection = [node]
    return node


def resolve_target_node(host: HostDocument) -> HostNode:
    """Return the node a poster should land on.

    With nothing selected a placeholder rectangle is created in the middle of
    the viewport and selected. A single selected node is used when it can hold
    fills. Anything else raises UnsupportedTargetError with the message to show.
    """

    selection = list(host.selection)

    if not selection:
        return create_placeholder(host)

    if len(selection) == 1:
        node = selection[0]
        if can_hold_fills(node):
            return node
        raise UnsupportedTargetError(CANNOT_HOLD_FILLS)

    raise UnsupportedTargetError(SELECT_ONE)
