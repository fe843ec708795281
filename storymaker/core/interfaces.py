from __future__ import annotations

"""Front-end collaborator interface.

The core never renders, prompts or touches the OS. Everything it needs from
the outside world goes through an :class:`EditorFrontend`: confirmations,
clipboard writes, file text in and out, and change/message notifications.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

__all__ = ["EditorFrontend", "NullFrontend"]


class EditorFrontend(ABC):
    """Contract between the editing core and a user interface."""

    @abstractmethod
    def confirm_discard(self) -> bool:
        """Ask whether unsaved changes may be discarded.

        Returns:
            True to proceed, False to abort the pending destructive action
        """

    def confirm_delete_chapter(self, title: str) -> bool:
        """Ask whether the chapter called ``title`` may be deleted."""
        return self.confirm_discard()

    @abstractmethod
    def write_clipboard_text(self, text: str) -> bool:
        """Copy ``text`` to the clipboard; return False if unavailable."""

    @abstractmethod
    def read_file(self) -> Optional[str]:
        """Return the raw text of a user-chosen story file, or None if cancelled."""

    @abstractmethod
    def write_file(self, filename: str, text: str) -> bool:
        """Persist serialized story text under ``filename``."""

    @abstractmethod
    def notify_state_changed(self) -> None:
        """Signal that the document changed and should be re-rendered."""

    @abstractmethod
    def notify_message(self, text: str, is_error: bool = False) -> None:
        """Show a short status message."""


class NullFrontend(EditorFrontend):
    """Headless front end: confirms everything and records what it was told.

    Useful for scripting and tests. ``file_text`` is returned from
    :meth:`read_file`; writes land in ``files`` and ``clipboard``.
    """

    def __init__(self, confirm: bool = True, file_text: Optional[str] = None) -> None:
        self.confirm = confirm
        self.file_text = file_text
        self.clipboard: Optional[str] = None
        self.files: dict[str, str] = {}
        self.messages: List[Tuple[str, bool]] = []
        self.render_count = 0

    def confirm_discard(self) -> bool:
        return self.confirm

    def write_clipboard_text(self, text: str) -> bool:
        self.clipboard = text
        return True

    def read_file(self) -> Optional[str]:
        return self.file_text

    def write_file(self, filename: str, text: str) -> bool:
        self.files[filename] = text
        return True

    def notify_state_changed(self) -> None:
        self.render_count += 1

    def notify_message(self, text: str, is_error: bool = False) -> None:
        self.messages.append((text, is_error))

    @property
    def last_message(self) -> Optional[Tuple[str, bool]]:
        return self.messages[-1] if self.messages else None
