from __future__ import annotations

"""Line-oriented console front end.

A minimal collaborator implementation so the editor can be used from a
terminal: it prints the ancestry line and the numbered children of the
cursor after every change, asks confirmations with ``input()``, copies with
pyperclip and reads/writes story files relative to a working directory.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, TextIO
import sys

import pyperclip

from storymaker.core.context import EditorContext
from storymaker.core.interfaces import EditorFrontend
from storymaker.core.services import CommandDispatcher
from storymaker.version import get_app_version

__all__ = ["ConsoleFrontend", "ConsoleApp", "render_state", "main"]

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]


def render_state(context: EditorContext) -> str:
    """Text view of the cursor: ancestry line plus numbered children."""
    cursor = context.cursor
    if cursor is None:
        return "No chapter selected. Type /new to start a story."
    lines: List[str] = [f"Ancestry: {context.ancestry_text()}"]
    for idx, child in enumerate(cursor.children, start=1):
        marker = "*" if child.current else " "
        lines.append(f"{marker}{idx}. {child.get_title()}")
    return "\n".join(lines)


class ConsoleFrontend(EditorFrontend):
    """Terminal implementation of the collaborator interface."""

    def __init__(
        self,
        work_dir: Optional[Path] = None,
        input_fn: InputFn = input,
        out: Optional[TextIO] = None,
    ) -> None:
        self.work_dir = Path(work_dir) if work_dir is not None else Path.cwd()
        self._input = input_fn
        self._out = out if out is not None else sys.stdout
        self.context: Optional[EditorContext] = None

    def prompt(self, text: str) -> str:
        return self._input(text)

    def _print(self, text: str) -> None:
        print(text, file=self._out)

    def _ask_yes_no(self, question: str) -> bool:
        try:
            answer = self._input(f"{question} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in {"y", "yes"}

    def confirm_discard(self) -> bool:
        return self._ask_yes_no("You have unsaved changes. Do you want to proceed without saving?")

    def confirm_delete_chapter(self, title: str) -> bool:
        return self._ask_yes_no(f"Delete chapter '{title}' and all of its nodes?")

    def write_clipboard_text(self, text: str) -> bool:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            logger.warning("Clipboard unavailable: %s", exc)
            return False
        return True

    def read_file(self) -> Optional[str]:
        try:
            name = self._input("Story file to load: ").strip()
        except EOFError:
            return None
        if not name:
            return None
        path = self.work_dir / name
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            self.notify_message(f"Could not read {path}.", is_error=True)
            return None

    def write_file(self, filename: str, text: str) -> bool:
        path = self.work_dir / filename
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.error("Could not write %s: %s", path, exc)
            return False
        logger.info("Story written to %s", path)
        return True

    def notify_state_changed(self) -> None:
        if self.context is not None:
            self._print(render_state(self.context))

    def notify_message(self, text: str, is_error: bool = False) -> None:
        self._print(f"! {text}" if is_error else text)


class ConsoleApp:
    """Read-eval loop around a :class:`CommandDispatcher`.

    A line ending in ``?`` lists autocomplete candidates instead of running.
    """

    def __init__(self, frontend: ConsoleFrontend, context: Optional[EditorContext] = None) -> None:
        self.frontend = frontend
        self.context = context if context is not None else EditorContext(frontend=frontend)
        frontend.context = self.context
        self.dispatcher = CommandDispatcher(self.context)

    def start(self) -> None:
        self.frontend.notify_message(f"Storymaker {get_app_version()}. Type text to add a beat, a number to move, / for commands.")
        self.dispatcher.document_service.create_new_story(self.context)
        self.frontend.notify_state_changed()

    def handle_line(self, line: str) -> None:
        stripped = line.strip()
        if stripped.startswith("/") and stripped.endswith("?"):
            completion = self.dispatcher.autocomplete(stripped[:-1])
            self.frontend.notify_message("\n".join(completion.matches) or "No matching command.")
            return
        self.dispatcher.handle_input(line)

    def run(self) -> None:
        self.start()
        while True:
            try:
                line = self.frontend.prompt("> ")
            except (EOFError, KeyboardInterrupt):
                break
            if line.strip() in {"/quit", "/exit"}:
                break
            self.handle_line(line)
        if self.context.document.dirty:
            self.frontend.notify_message("Exited with unsaved changes.", is_error=True)


def main() -> None:
    """Configure logging and run the console editor in the current directory."""
    from storymaker.logging_config import setup_logging

    setup_logging()
    ConsoleApp(ConsoleFrontend()).run()
    logging.getLogger("storymaker").info("===== Application terminated =====")
