from __future__ import annotations

"""Document-level operations: new/load/save and chapter management.

Destructive operations (new story, load, delete chapter) ask the front end
for confirmation first; a negative answer returns a cancelled result and
leaves every piece of state untouched.
"""

import logging
from typing import TYPE_CHECKING, Optional

from storymaker.core import tree_queries
from storymaker.core.exceptions import NotFoundError, PreconditionError, StoryError
from storymaker.core.models import StoryDocument, StoryNode
from storymaker.core.serialization import document_from_json, document_to_json
from storymaker.core.services.structure_editing_service import OperationResult

if TYPE_CHECKING:
    from storymaker.core.context import EditorContext

__all__ = ["DocumentService"]

logger = logging.getLogger(__name__)


def _cancelled(message: str) -> OperationResult:
    return OperationResult(False, message, {"cancelled": True})


class DocumentService:
    """Owns the chapter list, the active chapter and persistence."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.DocumentService")

    # -------------------------------------------------------------------------
    # Story lifecycle
    # -------------------------------------------------------------------------

    def create_new_story(self, context: EditorContext) -> OperationResult:
        """Replace the document with a single empty default chapter."""
        logger.info("Doc: create_new_story dirty=%s", context.document.dirty)
        if context.document.dirty and not context.frontend.confirm_discard():
            logger.info("Doc noop: create_new_story declined")
            return _cancelled("New story cancelled.")

        root = StoryNode(context.chapter_title(1))
        document = StoryDocument(
            title=context.settings["default_story_title"],
            chapters=[root],
            active_chapter_index=0,
            node_counter=context.document.node_counter,
        )
        context.replace_document(document)
        context.set_cursor(root)
        logger.info("Doc OK: create_new_story")
        return OperationResult(True, "New story created!", {"chapters": 1})

    def load_story(self, context: EditorContext, text: Optional[str] = None) -> OperationResult:
        """Load a document from JSON ``text`` (asked from the front end when None).

        The new chapter list is fully parsed and validated before the current
        document is replaced.
        """
        logger.info("Doc: load_story dirty=%s", context.document.dirty)
        if context.document.dirty and not context.frontend.confirm_discard():
            logger.info("Doc noop: load_story declined")
            return _cancelled("Load cancelled.")
        if text is None:
            text = context.frontend.read_file()
            if text is None:
                return _cancelled("Load cancelled.")

        try:
            loaded = document_from_json(text, default_title=context.settings["default_story_title"])
        except StoryError as exc:
            return self._fail("load_story", exc)

        cursor = None
        for chapter in loaded.chapters:
            cursor = tree_queries.find_current_node(chapter)
            if cursor is not None:
                break
        if cursor is None and loaded.chapters:
            cursor = loaded.chapters[0]

        document = StoryDocument(
            title=loaded.title,
            chapters=loaded.chapters,
            active_chapter_index=0 if loaded.chapters else None,
            cursor=cursor,
            node_counter=context.document.node_counter,
        )
        context.replace_document(document)
        context.set_cursor(cursor)
        context.mark_resume_point()
        logger.info("Doc OK: load_story chapters=%d legacy=%s", len(loaded.chapters), loaded.legacy)
        return OperationResult(True, "Story loaded!", {"chapters": len(loaded.chapters), "legacy": loaded.legacy})

    def serialize_story(self, context: EditorContext) -> str:
        """Mark the cursor as the resume point and return the JSON text."""
        context.mark_resume_point()
        return document_to_json(context.document)

    def save_story(self, context: EditorContext) -> OperationResult:
        """Serialize the document and hand it to the front end for writing."""
        logger.info("Doc: save_story")
        if context.document.is_empty:
            return self._fail("save_story", PreconditionError("No story to save."))

        text = self.serialize_story(context)
        filename = context.settings["save_filename"]
        if not context.frontend.write_file(filename, text):
            logger.warning("Doc FAIL: save_story write refused filename=%s", filename)
            return OperationResult(False, "Story could not be saved.", {"error": "io", "filename": filename})

        context.document.dirty = False
        context.document.nodes_since_last_save = 0
        logger.info("Doc OK: save_story filename=%s bytes=%d", filename, len(text))
        return OperationResult(True, "Story saved!", {"filename": filename, "text": text})

    # -------------------------------------------------------------------------
    # Chapters
    # -------------------------------------------------------------------------

    def add_chapter(self, context: EditorContext, title: Optional[str] = None) -> OperationResult:
        """Append a chapter root; cursor and active chapter are unchanged."""
        chapters = context.chapters
        chapter_title = title if title else context.chapter_title(len(chapters) + 1)
        chapters.append(StoryNode(chapter_title))
        context.document.mark_dirty()
        logger.info("Doc OK: add_chapter title=%r count=%d", chapter_title, len(chapters))
        return OperationResult(True, f"Chapter '{chapter_title}' added.", {"index": len(chapters) - 1})

    def select_chapter(self, context: EditorContext, index: int) -> OperationResult:
        """Make chapter ``index`` active and move the cursor to its root.

        Out-of-range indices change nothing and report a not-found result.
        """
        try:
            self._check_chapter_index(context, index)
        except StoryError as exc:
            return self._fail("select_chapter", exc)

        chapter = context.chapters[index]
        context.document.active_chapter_index = index
        context.set_cursor(chapter)
        logger.info("Doc OK: select_chapter index=%d", index)
        return OperationResult(True, f"Selected '{chapter.title}'.", {"index": index})

    def delete_chapter(self, context: EditorContext, index: int) -> OperationResult:
        """Remove chapter ``index`` after confirmation.

        The active index keeps pointing at the same logical chapter when an
        earlier chapter is removed. Removing the active chapter selects the
        chapter now at that position (or the new last one), or nothing when
        no chapters remain.
        """
        try:
            self._check_chapter_index(context, index)
        except StoryError as exc:
            return self._fail("delete_chapter", exc)

        chapters = context.chapters
        chapter = chapters[index]
        if not context.frontend.confirm_delete_chapter(chapter.title):
            logger.info("Doc noop: delete_chapter declined index=%d", index)
            return _cancelled("Chapter deletion cancelled.")

        chapters.pop(index)
        document = context.document
        active = document.active_chapter_index
        if active is not None:
            if index < active:
                document.active_chapter_index = active - 1
            elif index == active:
                if chapters:
                    new_active = min(index, len(chapters) - 1)
                    document.active_chapter_index = new_active
                    context.set_cursor(chapters[new_active])
                else:
                    document.active_chapter_index = None
                    context.set_cursor(None)
        document.mark_dirty()
        logger.info("Doc OK: delete_chapter index=%d remaining=%d", index, len(chapters))
        return OperationResult(True, f"Chapter '{chapter.title}' deleted.", {"index": index})

    def rename_chapter(self, context: EditorContext, index: int, new_title: str) -> OperationResult:
        try:
            self._check_chapter_index(context, index)
        except StoryError as exc:
            return self._fail("rename_chapter", exc)

        chapter = context.chapters[index]
        old_title = chapter.title
        chapter.title = new_title
        context.document.mark_dirty()
        logger.info("Doc OK: rename_chapter index=%d old=%r new=%r", index, old_title, new_title)
        return OperationResult(True, "Chapter renamed.", {"old_title": old_title, "new_title": new_title})

    def swap_chapters(self, context: EditorContext, first: int, second: int) -> OperationResult:
        """Swap two chapters; the active index follows its chapter."""
        try:
            self._check_chapter_index(context, first)
            self._check_chapter_index(context, second)
        except StoryError as exc:
            return self._fail("swap_chapters", exc)

        if first == second:
            return OperationResult(True, "Nothing to swap.", {"first": first, "second": second})
        chapters = context.chapters
        chapters[first], chapters[second] = chapters[second], chapters[first]
        document = context.document
        if document.active_chapter_index == first:
            document.active_chapter_index = second
        elif document.active_chapter_index == second:
            document.active_chapter_index = first
        document.mark_dirty()
        logger.info("Doc OK: swap_chapters first=%d second=%d", first, second)
        return OperationResult(True, f"Swapped chapters {first + 1} and {second + 1}.", {"first": first, "second": second})

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_chapter_index(context: EditorContext, index: int) -> None:
        count = len(context.chapters)
        if not isinstance(index, int) or not (0 <= index < count):
            raise NotFoundError("Invalid chapter number.", {"index": index, "chapters": count})

    def _fail(self, operation: str, exc: StoryError) -> OperationResult:
        logger.warning("Doc FAIL: %s %s: %s", operation, exc.kind, exc)
        return OperationResult.from_error(exc)
