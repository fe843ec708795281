from __future__ import annotations

"""Shared data structures used across the Storymaker core.

This module is intentionally free of UI / I/O code so that the contained
objects can be reused in any context (unit-tests, CLI, GUI, etc.).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

__all__ = ["StoryNode", "StoryDocument"]


@dataclass(eq=False)
class StoryNode:
    """A single story beat with ordered children.

    Nodes compare by identity: two beats with the same title are still
    distinct nodes, and ``children.index(node)`` must find the exact object.

    Attributes
    ----------
    title
        Free text of the beat. Empty strings are allowed.
    children
        Owned child nodes; list order is sibling order.
    current
        Transient "resume point" marker, at most one per document.
    """

    title: str
    children: List["StoryNode"] = field(default_factory=list)
    current: bool = False

    def mark_current(self) -> None:
        self.current = True

    def remove_current(self) -> None:
        self.current = False

    def get_title(self) -> str:
        return self.title

    def add_child(self, child: "StoryNode") -> "StoryNode":
        """Append a child and return it for chaining."""
        self.children.append(child)
        return child

    def iter_depth_first(self) -> Iterator["StoryNode"]:
        """Traverse the subtree pre-order, yielding self then descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_record(self) -> Dict[str, Any]:
        """Serialize to a plain nested record.

        ``current`` is only emitted when true; absence is the canonical
        false state on the wire.
        """
        root: Dict[str, Any] = {}
        stack: List[Tuple["StoryNode", Dict[str, Any]]] = [(self, root)]
        while stack:
            node, record = stack.pop()
            record["title"] = node.title
            record["children"] = [{} for _ in node.children]
            if node.current:
                record["current"] = True
            stack.extend(zip(node.children, record["children"]))
        return root

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "StoryNode":
        """Build a node tree from a record produced by :meth:`to_record`.

        Absent ``current``/``children`` default to false/empty. Shape
        validation is the serializer's job.
        """
        root = cls(title=record["title"], current=bool(record.get("current", False)))
        stack: List[Tuple["StoryNode", Dict[str, Any]]] = [(root, record)]
        while stack:
            node, source = stack.pop()
            for child_record in source.get("children") or []:
                child = cls(title=child_record["title"], current=bool(child_record.get("current", False)))
                node.children.append(child)
                stack.append((child, child_record))
        return root

    def __repr__(self) -> str:
        return f"StoryNode(title={self.title!r}, children={len(self.children)}, current={self.current})"


@dataclass
class StoryDocument:
    """In-memory representation of an outline being edited.

    Attributes
    ----------
    title
        Document title, persisted alongside the chapters.
    chapters
        Chapter roots in display order.
    active_chapter_index
        Index of the selected chapter, or None when nothing is selected.
    cursor
        The "current parent": implicit target of add/delete/insert/dissolve.
    dirty
        True when the tree differs from the last saved/loaded snapshot.
    node_counter
        Nodes added during this session.
    nodes_since_last_save
        Nodes added since the last save or load.
    """

    title: str = "Untitled Story"
    chapters: List[StoryNode] = field(default_factory=list)
    active_chapter_index: Optional[int] = None
    cursor: Optional[StoryNode] = None
    dirty: bool = False
    node_counter: int = 0
    nodes_since_last_save: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.chapters

    @property
    def active_chapter(self) -> Optional[StoryNode]:
        idx = self.active_chapter_index
        if idx is None or not (0 <= idx < len(self.chapters)):
            return None
        return self.chapters[idx]

    def mark_dirty(self) -> None:
        self.dirty = True

    def record_node_added(self) -> None:
        self.node_counter += 1
        self.nodes_since_last_save += 1
        self.dirty = True
