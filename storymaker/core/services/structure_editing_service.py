from __future__ import annotations

"""Service layer for structural edits on the in-memory story tree.

This module provides a UI-agnostic, testable service that encapsulates the
business logic for manipulating beats under the cursor: adding, deleting,
splicing a node into the ancestry (insert), splicing one out (dissolve),
reordering, renaming and relinking nodes elsewhere in the tree.

Scope and guarantees:
- Operates purely in-memory on an EditorContext, no file I/O nor UI imports.
- Conservative behavior with boundary checks; invalid operations return
  OperationResult(success=False, ...) with clear messaging, never raise.
- Parent links are recomputed through tree_queries; nodes keep their
  identity when relinked.

Examples
--------
Basic usage:

    service = StructureEditingService()
    result = service.insert_node(ctx, "Bridge")
    if not result.success:
        print(result.message)

"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Literal, Optional, TYPE_CHECKING

from storymaker.core import tree_queries
from storymaker.core.exceptions import NotFoundError, PreconditionError, StoryError, UsageError
from storymaker.core.models import StoryNode

if TYPE_CHECKING:
    from storymaker.core.context import EditorContext

__all__ = ["OperationResult", "StructureEditingService"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Result of an editing, navigation or document operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic. Failed
        operations carry the error kind under ``"error"``.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_error(cls, exc: StoryError) -> "OperationResult":
        return cls(False, str(exc), exc.as_details())

    @property
    def error(self) -> Optional[str]:
        return (self.details or {}).get("error")

    @property
    def cancelled(self) -> bool:
        return bool((self.details or {}).get("cancelled"))


def _index_of(children: List[StoryNode], node: StoryNode) -> int:
    """Identity-based index lookup; -1 when absent."""
    for idx, child in enumerate(children):
        if child is node:
            return idx
    return -1


class StructureEditingService:
    """Encapsulates structural edit operations relative to the cursor.

    Design principles:
    - No UI dependencies, no disk I/O.
    - No exceptions for expected invalid actions; return OperationResult.
    - Every successful mutation marks the document dirty.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.StructureEditingService")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def add_node(self, context: EditorContext, text: str) -> OperationResult:
        """Append a new leaf beat titled ``text`` under the cursor."""
        logger.info("Edit: add_node title=%r", text)
        try:
            cursor = self._require_cursor(context)
        except StoryError as exc:
            return self._fail("add_node", exc)

        node = cursor.add_child(StoryNode(text))
        context.document.record_node_added()
        logger.info("Edit OK: add_node parent=%r children=%d", cursor.title, len(cursor.children))
        return OperationResult(True, "Node added.", {"index": len(cursor.children) - 1, "title": node.title})

    def delete_node(self, context: EditorContext, index: int) -> OperationResult:
        """Remove the cursor's child at 0-based ``index`` along with its subtree.

        The removed node itself is purged from navigation history; any of its
        descendants still in history are caught later by validation.
        """
        logger.info("Edit: delete_node index=%s", index)
        try:
            cursor = self._require_cursor(context)
            self._check_child_index(cursor, index)
        except StoryError as exc:
            return self._fail("delete_node", exc)

        removed = cursor.children.pop(index)
        context.history.remove(removed)
        context.document.mark_dirty()
        logger.info("Edit OK: delete_node index=%d title=%r", index, removed.title)
        return OperationResult(True, f"Node {index + 1} deleted!", {"index": index, "title": removed.title})

    def insert_node(self, context: EditorContext, text: str) -> OperationResult:
        """Splice a new node between the cursor and its parent.

        ``P -> C`` becomes ``P -> N -> C`` with N at C's former index; the
        cursor moves to N.
        """
        logger.info("Edit: insert_node title=%r", text)
        try:
            cursor = self._require_cursor(context)
            parent = self._require_parent(context, cursor, "Cannot insert above a chapter root.")
        except StoryError as exc:
            return self._fail("insert_node", exc)

        idx = _index_of(parent.children, cursor)
        inserted = StoryNode(text, children=[cursor])
        parent.children[idx] = inserted
        context.set_cursor(inserted)
        context.document.record_node_added()
        logger.info("Edit OK: insert_node parent=%r index=%d", parent.title, idx)
        return OperationResult(True, f"Inserted '{text}'.", {"index": idx, "title": text})

    def dissolve_node(self, context: EditorContext) -> OperationResult:
        """Splice the cursor out, promoting its only child into its place.

        ``P -> C -> D`` becomes ``P -> D`` at C's former index; the cursor
        moves to D.
        """
        logger.info("Edit: dissolve_node")
        try:
            cursor = self._require_cursor(context)
            if len(cursor.children) != 1:
                raise PreconditionError(
                    "Node must have exactly one child to dissolve.",
                    {"children": len(cursor.children)},
                )
            parent = self._require_parent(context, cursor, "Cannot dissolve a chapter root.")
        except StoryError as exc:
            return self._fail("dissolve_node", exc)

        idx = _index_of(parent.children, cursor)
        promoted = cursor.children[0]
        parent.children[idx] = promoted
        cursor.children = []
        context.set_cursor(promoted)
        context.history.remove(cursor)
        context.document.mark_dirty()
        logger.info("Edit OK: dissolve_node removed=%r promoted=%r", cursor.title, promoted.title)
        return OperationResult(True, f"Dissolved '{cursor.title}'.", {"index": idx, "title": cursor.title})

    def swap_story_nodes(self, context: EditorContext, first: int, second: int) -> OperationResult:
        """Swap two children of the cursor by 0-based index."""
        logger.info("Edit: swap_story_nodes first=%s second=%s", first, second)
        try:
            cursor = self._require_cursor(context)
            self._check_child_index(cursor, first)
            self._check_child_index(cursor, second)
        except StoryError as exc:
            return self._fail("swap_story_nodes", exc)

        if first == second:
            logger.info("Edit noop: swap_story_nodes same index=%d", first)
            return OperationResult(True, "Nothing to swap.", {"first": first, "second": second})
        children = cursor.children
        children[first], children[second] = children[second], children[first]
        context.document.mark_dirty()
        logger.info("Edit OK: swap_story_nodes first=%d second=%d", first, second)
        return OperationResult(True, f"Swapped nodes {first + 1} and {second + 1}.", {"first": first, "second": second})

    def move_node(
        self,
        context: EditorContext,
        index: int,
        direction: Literal["up", "down"],
    ) -> OperationResult:
        """Move the cursor's child at ``index`` one slot up or down."""
        logger.info("Edit: move_node direction=%s index=%s", direction, index)
        if direction not in ("up", "down"):
            return self._fail(
                "move_node",
                UsageError(f"Unsupported move direction '{direction}'.", {"allowed": ["up", "down"]}),
            )
        try:
            cursor = self._require_cursor(context)
            self._check_child_index(cursor, index)
        except StoryError as exc:
            return self._fail("move_node", exc)

        target = index - 1 if direction == "up" else index + 1
        if not (0 <= target < len(cursor.children)):
            logger.info("Edit noop: move_node direction=%s boundary index=%d", direction, index)
            return OperationResult(False, f"Cannot move {direction} (at boundary).", {"index": index})
        children = cursor.children
        children[index], children[target] = children[target], children[index]
        context.document.mark_dirty()
        logger.info("Edit OK: move_node direction=%s index=%d", direction, index)
        return OperationResult(True, f"Moved node {direction}.", {"index": target})

    def rename_node(self, context: EditorContext, index: Optional[int], new_title: str) -> OperationResult:
        """Rename the cursor's child at ``index``, or the cursor itself when None."""
        logger.info("Edit: rename_node index=%s", index)
        try:
            cursor = self._require_cursor(context)
            if index is None:
                node = cursor
            else:
                self._check_child_index(cursor, index)
                node = cursor.children[index]
        except StoryError as exc:
            return self._fail("rename_node", exc)

        old_title = node.title
        node.title = new_title
        context.document.mark_dirty()
        logger.info("Edit OK: rename_node old=%r new=%r", old_title, new_title)
        return OperationResult(True, "Node renamed.", {"old_title": old_title, "new_title": new_title})

    def move_node_to_target(
        self,
        context: EditorContext,
        node: StoryNode,
        target: StoryNode,
        index: Optional[int] = None,
    ) -> OperationResult:
        """Relink ``node`` (with its subtree) under ``target`` at ``index``.

        ``index`` defaults to appending. The node keeps its identity; the
        cursor stays where it is, and the active chapter follows it if the
        cursor was inside the moved subtree.
        """
        logger.info("Edit: move_node_to_target node=%r target=%r index=%s", node.title, target.title, index)
        roots = context.chapters
        try:
            if not tree_queries.is_reachable(roots, node):
                raise NotFoundError("Node to move is not part of this story.")
            if not tree_queries.is_reachable(roots, target):
                raise NotFoundError("Target node is not part of this story.")
            old_parent = tree_queries.find_parent(roots, node)
            if old_parent is None:
                raise PreconditionError("Chapter roots cannot be moved into other nodes.")
            if tree_queries.is_ancestor(node, target):
                raise PreconditionError("Cannot move a node into its own subtree.")
        except StoryError as exc:
            return self._fail("move_node_to_target", exc)

        old_index = _index_of(old_parent.children, node)
        old_parent.children.pop(old_index)
        if index is None:
            new_index = len(target.children)
        else:
            new_index = index
            if target is old_parent and old_index < new_index:
                new_index -= 1
            new_index = max(0, min(new_index, len(target.children)))
        target.children.insert(new_index, node)

        cursor = context.cursor
        if cursor is not None:
            chapter_idx = tree_queries.find_chapter_index(roots, cursor)
            if chapter_idx is not None:
                context.document.active_chapter_index = chapter_idx
        context.document.mark_dirty()
        logger.info("Edit OK: move_node_to_target node=%r index=%d", node.title, new_index)
        return OperationResult(True, f"Moved '{node.title}' under '{target.title}'.", {"index": new_index})

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_cursor(context: EditorContext) -> StoryNode:
        cursor = context.cursor
        if cursor is None:
            raise PreconditionError("No chapter selected.")
        return cursor

    @staticmethod
    def _require_parent(context: EditorContext, node: StoryNode, message: str) -> StoryNode:
        parent = tree_queries.find_parent(context.chapters, node)
        if parent is None:
            raise NotFoundError(message)
        return parent

    @staticmethod
    def _check_child_index(node: StoryNode, index: int) -> None:
        if not isinstance(index, int) or not (0 <= index < len(node.children)):
            raise NotFoundError(
                "Invalid index. Please enter a valid number.",
                {"index": index, "children": len(node.children)},
            )

    def _fail(self, operation: str, exc: StoryError) -> OperationResult:
        logger.warning("Edit FAIL: %s %s: %s", operation, exc.kind, exc)
        return OperationResult.from_error(exc)
