from __future__ import annotations

"""Editor context passed explicitly to services and command handlers.

There is no global editor instance: a front end creates one
:class:`EditorContext`, hands it to the services, and disposes of it when the
session ends. The context owns the document, the navigation history, the
front-end collaborator and the editor settings.
"""

import logging
from typing import Any, Dict, List, Optional

from storymaker.config import ConfigManager
from storymaker.core import tree_queries
from storymaker.core.interfaces import EditorFrontend, NullFrontend
from storymaker.core.models import StoryDocument, StoryNode
from storymaker.core.services.navigation_service import NavigationHistory

logger = logging.getLogger(__name__)

__all__ = ["EditorContext"]


class EditorContext:
    """Mutable session state shared by the editing services.

    Parameters
    ----------
    frontend
        Collaborator for confirmations, clipboard, files and notifications.
        Defaults to a :class:`NullFrontend`.
    document
        Initial document; defaults to the empty "no document" state.
    settings
        Editor settings; defaults to ``ConfigManager().get_editor_config()``.
    """

    def __init__(
        self,
        frontend: Optional[EditorFrontend] = None,
        document: Optional[StoryDocument] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.frontend: EditorFrontend = frontend if frontend is not None else NullFrontend()
        self.settings: Dict[str, Any] = dict(settings) if settings is not None else ConfigManager().get_editor_config()
        self.document: StoryDocument = document if document is not None else StoryDocument(
            title=self.settings["default_story_title"]
        )
        self.history = NavigationHistory(max_size=int(self.settings["history_size"]))

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def chapters(self) -> List[StoryNode]:
        return self.document.chapters

    @property
    def cursor(self) -> Optional[StoryNode]:
        return self.document.cursor

    def ancestry(self, node: Optional[StoryNode] = None) -> List[StoryNode]:
        """Ancestry chain of ``node`` (cursor by default); empty when unset."""
        target = node if node is not None else self.document.cursor
        if target is None:
            return []
        return tree_queries.ancestry_chain(self.document.chapters, target)

    def ancestry_text(self, node: Optional[StoryNode] = None) -> str:
        return tree_queries.format_ancestry(self.ancestry(node), self.settings["ancestry_separator"])

    def chapter_title(self, number: int) -> str:
        return str(self.settings["default_chapter_title"]).format(number=number)

    # ------------------------------------------------------------------
    # Cursor / current-flag bookkeeping
    # ------------------------------------------------------------------

    def set_cursor(self, node: Optional[StoryNode]) -> None:
        """Point the cursor at ``node`` and move the ``current`` marker.

        The active chapter follows the chapter that contains ``node``.
        History is not touched here; navigation pushes it explicitly.
        """
        previous = self.document.cursor
        if previous is not None:
            previous.remove_current()
        self.document.cursor = node
        if node is None:
            return
        node.mark_current()
        idx = tree_queries.find_chapter_index(self.document.chapters, node)
        if idx is not None:
            self.document.active_chapter_index = idx

    def mark_resume_point(self) -> None:
        """Make the cursor the only node flagged ``current``."""
        for chapter in self.document.chapters:
            for node in chapter.iter_depth_first():
                node.remove_current()
        if self.document.cursor is not None:
            self.document.cursor.mark_current()

    def replace_document(self, document: StoryDocument) -> None:
        """Swap in a new document and forget the navigation history."""
        self.document = document
        self.history.clear()
        logger.debug("Document replaced title=%r chapters=%d", document.title, len(document.chapters))
