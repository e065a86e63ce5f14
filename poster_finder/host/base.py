"""Capabilities the poster handler needs from the host document.

The handler only ever talks to these protocols, so the real design-tool
bridge and the in-memory document used by the server and the tests are
interchangeable.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

FILLABLE_NODE_TYPES = frozenset({"RECTANGLE", "FRAME"})


@dataclass(frozen=True)
class Vector:
    x: float
    y: float


@dataclass(frozen=True)
class ImagePaint:
    image_hash: str
    type: str = "IMAGE"
    scale_mode: str = "FILL"


@runtime_checkable
class HostImage(Protocol):
    hash: str


@runtime_checkable
class HostNode(Protocol):
    """A scene node owned by the host.

    Nodes that can show a poster also expose a mutable ``fills`` sequence.
    """

    type: str
    name: str
    x: float
    y: float

    @property
    def width(self) -> float: ...

    @property
    def height(self) -> float: ...

    def resize(self, width: float, height: float) -> None: ...


@runtime_checkable
class HostDocument(Protocol):
    @property
    def viewport_center(self) -> Vector: ...

    @property
    def selection(self) -> Sequence[HostNode]: ...

    @selection.setter
    def selection(self, nodes: Sequence[HostNode]) -> None: ...

    def create_rectangle(self) -> HostNode: ...

    def append_to_page(self, node: HostNode) -> None: ...

    def create_image(self, data: bytes) -> HostImage: ...

    def close_plugin(self) -> None: ...


def can_hold_fills(node: Any) -> bool:
    return getattr(node, "type", None) in FILLABLE_NODE_TYPES or hasattr(node, "fills")


def accepts_children(node: Any) -> bool:
    return callable(getattr(node, "append_child", None))
