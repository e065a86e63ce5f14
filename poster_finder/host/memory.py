from __future__ import annotations

import hashlib
import itertools
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from poster_finder.host.base import Vector

logger = logging.getLogger(__name__)

_node_ids = itertools.count(1)


@dataclass(frozen=True)
class MemoryImage:
    hash: str
    size: int


class SceneNode:
    type = "NODE"

    def __init__(
        self,
        *,
        name: str = "",
        x: float = 0.0,
        y: float = 0.0,
        width: float = 100.0,
        height: float = 100.0,
    ) -> None:
        self.id = f"{next(_node_ids)}:0"
        self.name = name or self.type.title()
        self.x = x
        self.y = y
        self._width = width
        self._height = height
        self.parent: Any = None

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Node size must be positive")
        self._width = width
        self._height = height

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} name={self.name!r}>"


class _ChildrenMixin:
    def _init_children(self) -> None:
        self.children: list[SceneNode] = []

    def append_child(self, node: SceneNode) -> None:
        previous = node.parent
        if previous is not None and node in getattr(previous, "children", []):
            previous.children.remove(node)
        self.children.append(node)
        node.parent = self


class RectangleNode(SceneNode):
    type = "RECTANGLE"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.fills: list[Any] = []


class FrameNode(_ChildrenMixin, SceneNode):
    type = "FRAME"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._init_children()
        self.fills: list[Any] = []


class GroupNode(_ChildrenMixin, SceneNode):
    """Groups have children but no paint of their own."""

    type = "GROUP"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._init_children()


class PageNode(_ChildrenMixin):
    type = "PAGE"

    def __init__(self, name: str = "Page 1") -> None:
        self.name = name
        self._init_children()
        self.selection: list[SceneNode] = []


class MemoryDocument:
    """A single-page document that keeps everything in process memory."""

    def __init__(self, *, viewport_center: Vector | None = None) -> None:
        self.page = PageNode()
        self.images: dict[str, MemoryImage] = {}
        self._image_bytes: dict[str, bytes] = {}
        self._viewport_center = viewport_center or Vector(0.0, 0.0)
        self.closed = False

    @property
    def viewport_center(self) -> Vector:
        return self._viewport_center

    @property
    def selection(self) -> list[SceneNode]:
        return list(self.page.selection)

    @selection.setter
    def selection(self, nodes: Sequence[SceneNode]) -> None:
        self.page.selection = list(nodes)

    def create_rectangle(self) -> RectangleNode:
        return RectangleNode()

    def append_to_page(self, node: SceneNode) -> None:
        self.page.append_child(node)

    def create_image(self, data: bytes) -> MemoryImage:
        if not data:
            raise ValueError("Image data is empty")
        digest = hashlib.sha1(data).hexdigest()
        image = self.images.get(digest)
        if image is None:
            image = MemoryImage(hash=digest, size=len(data))
            self.images[digest] = image
            self._image_bytes[digest] = bytes(data)
        return image

    def image_bytes(self, image_hash: str) -> bytes | None:
        return self._image_bytes.get(image_hash)

    def close_plugin(self) -> None:
        if not self.closed:
            logger.info("plugin session closed")
        self.closed = True
