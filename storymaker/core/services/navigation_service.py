from __future__ import annotations

"""Cursor navigation and "back" history.

The history is a bounded stack of weak back-references to nodes the cursor
has left. It never owns nodes and is not scrubbed eagerly when the tree
changes: entries are revalidated against the live tree when popped.

Design principles
-----------------
- No UI imports and no I/O.
- Push evicts the oldest entry once capacity is exceeded (trim oldest).
- Pop is LIFO; stale entries are skipped and discarded.
"""

import logging
import weakref
from typing import TYPE_CHECKING, List, Optional

from storymaker.core import tree_queries
from storymaker.core.exceptions import NotFoundError, PreconditionError, StoryError
from storymaker.core.models import StoryNode
from storymaker.core.services.structure_editing_service import OperationResult

if TYPE_CHECKING:
    from storymaker.core.context import EditorContext

__all__ = ["NavigationHistory", "NavigationService"]

logger = logging.getLogger(__name__)


class NavigationHistory:
    """Bounded LIFO of weak references to previously visited nodes.

    Parameters
    ----------
    max_size : int, default=10
        Maximum number of entries to keep. Oldest entries are discarded when
        the capacity is exceeded. Values lower than 1 are coerced to 1.
    """

    def __init__(self, max_size: int = 10) -> None:
        self._max_size: int = max(1, int(max_size))
        self._stack: List[weakref.ref] = []

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        return len(self._stack)

    def push(self, node: StoryNode) -> None:
        self._stack.append(weakref.ref(node))
        overflow = len(self._stack) - self._max_size
        if overflow > 0:
            del self._stack[0:overflow]

    def pop(self) -> Optional[StoryNode]:
        """Pop the newest entry; None for a dead reference.

        Raises
        ------
        IndexError
            If the history is empty.
        """
        return self._stack.pop()()

    def remove(self, node: StoryNode) -> None:
        """Drop every entry that refers to exactly ``node``."""
        self._stack = [ref for ref in self._stack if ref() is not node]

    def clear(self) -> None:
        self._stack.clear()

    def entries(self) -> List[Optional[StoryNode]]:
        """Entries oldest first, newest last; dead references appear as None."""
        return [ref() for ref in self._stack]


class NavigationService:
    """Moves the cursor and maintains the navigation history."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.NavigationService")

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def push_to_history(self, context: EditorContext) -> None:
        """Remember the cursor (if any) as a "back" target."""
        if context.cursor is None:
            return
        context.history.push(context.cursor)
        logger.debug("History push title=%r size=%d", context.cursor.title, len(context.history))

    def move_to_node(self, context: EditorContext, index: int) -> OperationResult:
        """Numeric navigation: 0 = parent, 1..n = the cursor's n-th child."""
        logger.info("Nav: move_to_node index=%s", index)
        cursor = context.cursor
        try:
            if cursor is None:
                raise PreconditionError("No chapter selected.")
            if index == 0:
                parent = tree_queries.find_parent(context.chapters, cursor)
                if parent is None:
                    raise NotFoundError("This is the root node, cannot move to a parent.")
                self._navigate(context, parent)
                return OperationResult(True, "Moved to parent node.", {"title": parent.title})
            if not (1 <= index <= len(cursor.children)):
                raise NotFoundError("Invalid node number.", {"index": index, "children": len(cursor.children)})
        except StoryError as exc:
            return self._fail("move_to_node", exc)

        child = cursor.children[index - 1]
        self._navigate(context, child)
        return OperationResult(True, f"Moved to node {index}.", {"title": child.title})

    def move_to_node_by_reference(self, context: EditorContext, node: StoryNode) -> OperationResult:
        """Jump to any node reachable from any chapter."""
        logger.info("Nav: move_to_node_by_reference title=%r", getattr(node, "title", None))
        if node is None or not tree_queries.is_reachable(context.chapters, node):
            return self._fail("move_to_node_by_reference", NotFoundError("Node is not part of this story."))
        if node is context.cursor:
            logger.info("Nav noop: already at title=%r", node.title)
            return OperationResult(True, f"Already at '{node.title}'.", {"title": node.title})
        self._navigate(context, node)
        return OperationResult(True, f"Moved to '{node.title}'.", {"title": node.title})

    def move_to_chapter_root(self, context: EditorContext) -> OperationResult:
        """Jump to the root of the active chapter."""
        chapter = context.document.active_chapter
        if chapter is None:
            return self._fail("move_to_chapter_root", PreconditionError("No chapter selected."))
        return self.move_to_node_by_reference(context, chapter)

    def move_to_previous_node(self, context: EditorContext) -> OperationResult:
        """Return to the newest history entry that is still in the tree.

        Stale entries are discarded on the way. The move itself is not
        pushed back onto the history.
        """
        logger.info("Nav: move_to_previous_node size=%d", len(context.history))
        skipped = 0
        while len(context.history):
            candidate = context.history.pop()
            if candidate is not None and tree_queries.is_node_valid(context.chapters, candidate):
                context.set_cursor(candidate)
                logger.info("Nav OK: previous node title=%r skipped=%d", candidate.title, skipped)
                return OperationResult(
                    True, f"Moved back to '{candidate.title}'.", {"title": candidate.title, "skipped": skipped}
                )
            skipped += 1
        return self._fail(
            "move_to_previous_node",
            NotFoundError("No previous valid node.", {"skipped": skipped}),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _navigate(self, context: EditorContext, target: StoryNode) -> None:
        self.push_to_history(context)
        context.set_cursor(target)
        logger.info("Nav OK: cursor=%r", target.title)

    def _fail(self, operation: str, exc: StoryError) -> OperationResult:
        logger.warning("Nav FAIL: %s %s: %s", operation, exc.kind, exc)
        return OperationResult.from_error(exc)
