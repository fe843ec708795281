from __future__ import annotations

"""Read-and-format operations whose output goes to the clipboard.

Formatting is pure; the actual copy is delegated to the front end's
``write_clipboard_text``.
"""

import logging
from typing import TYPE_CHECKING, List

from storymaker.core.exceptions import PreconditionError, StoryError
from storymaker.core.models import StoryNode
from storymaker.core.services.structure_editing_service import OperationResult

if TYPE_CHECKING:
    from storymaker.core.context import EditorContext

__all__ = ["ClipboardService", "format_children"]

logger = logging.getLogger(__name__)


def format_children(node: StoryNode) -> str:
    """Numbered child list, one ``"n. title"`` per line."""
    return "\n".join(f"{idx}. {child.get_title()}" for idx, child in enumerate(node.children, start=1))


class ClipboardService:
    """Copies ancestry, children and brainstorm prompts."""

    def get_ancestry_and_copy_to_clipboard(self, context: EditorContext) -> OperationResult:
        try:
            self._require_cursor(context)
        except StoryError as exc:
            return self._fail("getparent", exc)
        return self._copy(context, context.ancestry_text(), "Ancestry copied to clipboard!")

    def copy_children_to_clipboard(self, context: EditorContext) -> OperationResult:
        try:
            cursor = self._require_cursor(context)
        except StoryError as exc:
            return self._fail("copy_children", exc)
        return self._copy(context, format_children(cursor), "Children copied to clipboard!")

    def build_brainstorm_prompt(self, context: EditorContext) -> str:
        """Describe the path to the cursor and its existing continuations."""
        cursor = self._require_cursor(context)
        lines: List[str] = [f"Story so far: {context.ancestry_text()}"]
        if cursor.children:
            lines.append("Existing continuations:")
            lines.append(format_children(cursor))
        else:
            lines.append("Existing continuations: none")
        lines.append("Suggest new possible continuations for the last beat.")
        return "\n".join(lines)

    def copy_brainstorm_prompt(self, context: EditorContext) -> OperationResult:
        try:
            prompt = self.build_brainstorm_prompt(context)
        except StoryError as exc:
            return self._fail("brainstorm", exc)
        return self._copy(context, prompt, "Brainstorm prompt copied to clipboard!")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_cursor(context: EditorContext) -> StoryNode:
        if context.cursor is None:
            raise PreconditionError("No chapter selected.")
        return context.cursor

    @staticmethod
    def _copy(context: EditorContext, text: str, message: str) -> OperationResult:
        if not context.frontend.write_clipboard_text(text):
            logger.warning("Clipboard FAIL: write refused length=%d", len(text))
            return OperationResult(False, "Clipboard not available", {"error": "clipboard"})
        logger.info("Clipboard OK: copied length=%d", len(text))
        return OperationResult(True, message, {"text": text})

    @staticmethod
    def _fail(operation: str, exc: StoryError) -> OperationResult:
        logger.warning("Clipboard FAIL: %s %s: %s", operation, exc.kind, exc)
        return OperationResult.from_error(exc)
