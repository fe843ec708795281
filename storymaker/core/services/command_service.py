from __future__ import annotations

"""Slash-command parsing, dispatch and autocomplete.

One line of raw input is routed as follows:

- ``/verb args...``  -> command handler
- decimal digits     -> numeric navigation (0 = parent, n = n-th child)
- any other text     -> new child beat under the cursor

Every outcome is reported to the front end through ``notify_message``;
successful operations also trigger ``notify_state_changed``.
"""

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from storymaker.core.exceptions import UsageError
from storymaker.core.services.clipboard_service import ClipboardService
from storymaker.core.services.document_service import DocumentService
from storymaker.core.services.navigation_service import NavigationService
from storymaker.core.services.structure_editing_service import OperationResult, StructureEditingService

if TYPE_CHECKING:
    from storymaker.core.context import EditorContext

__all__ = ["COMMANDS", "Command", "Completion", "CommandDispatcher", "parse_command", "autocomplete"]

logger = logging.getLogger(__name__)

# Declaration order is the autocomplete tie-break.
COMMANDS: Tuple[Tuple[str, str], ...] = (
    ("/new", "Start a new story"),
    ("/load", "Load a story file"),
    ("/save", "Save the story"),
    ("/delete", "Delete child node: /delete [number]"),
    ("/getparent", "Copy the ancestry to the clipboard"),
    ("/chapteradd", "Add a chapter: /chapteradd [title]"),
    ("/brainstorm", "Copy a brainstorm prompt to the clipboard"),
    ("/previousnode", "Go back to the previous node"),
    ("/insert", "Insert a node above the current one: /insert [text]"),
    ("/dissolve", "Remove the current node, keeping its only child"),
)

DELETE_USAGE = "Invalid delete command. Usage: /delete [number]"


@dataclass(frozen=True)
class Command:
    """Parsed form of one command line."""

    verb: str
    args: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(self.args)


@dataclass(frozen=True)
class Completion:
    """Autocomplete candidates for a partial command line.

    ``single_hint`` is set only when exactly one command matches; a UI may
    accept it on Tab and the dispatcher runs it on Enter.
    """

    matches: List[str] = field(default_factory=list)
    single_hint: Optional[str] = None


def parse_command(line: str) -> Optional[Command]:
    """Split a slash line into verb and arguments; None for non-commands."""
    parts = line.strip().split()
    if not parts or not parts[0].startswith("/"):
        return None
    return Command(verb=parts[0], args=parts[1:])


def autocomplete(partial: str, limit: int = 5) -> Completion:
    """Commands whose name starts with the typed verb.

    Trailing arguments are kept, re-joined with single spaces.
    """
    line = partial.strip()
    if not line.startswith("/"):
        return Completion()
    tokens = line.split()
    head, rest = tokens[0], " ".join(tokens[1:])
    suffix = f" {rest}" if rest else ""
    matches = [name + suffix for name, _ in COMMANDS if name.startswith(head)][:limit]
    return Completion(matches=matches, single_hint=matches[0] if len(matches) == 1 else None)


class CommandDispatcher:
    """Routes raw input lines to the editing services.

    Parameters
    ----------
    context : EditorContext
        Session state the commands operate on.
    document_service, navigation_service, editing_service, clipboard_service
        Optional service instances; defaults are created when omitted.
    """

    def __init__(
        self,
        context: EditorContext,
        document_service: Optional[DocumentService] = None,
        navigation_service: Optional[NavigationService] = None,
        editing_service: Optional[StructureEditingService] = None,
        clipboard_service: Optional[ClipboardService] = None,
    ) -> None:
        self.context = context
        self.document_service = document_service or DocumentService()
        self.navigation_service = navigation_service or NavigationService()
        self.editing_service = editing_service or StructureEditingService()
        self.clipboard_service = clipboard_service or ClipboardService()
        self._handlers: Dict[str, Callable[[Command], OperationResult]] = {
            "/new": self._cmd_new,
            "/load": self._cmd_load,
            "/save": self._cmd_save,
            "/delete": self._cmd_delete,
            "/getparent": self._cmd_getparent,
            "/chapteradd": self._cmd_chapteradd,
            "/brainstorm": self._cmd_brainstorm,
            "/previousnode": self._cmd_previousnode,
            "/insert": self._cmd_insert,
            "/dissolve": self._cmd_dissolve,
        }

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def autocomplete(self, partial: str) -> Completion:
        return autocomplete(partial, limit=int(self.context.settings["hint_limit"]))

    def handle_input(self, raw: str) -> Optional[OperationResult]:
        """Process one line typed by the user; None for blank input."""
        line = raw.strip()
        if not line:
            return None

        if line.startswith("/"):
            hint = self.autocomplete(line).single_hint
            result = self.execute_command(hint or line)
        elif line.isdecimal():
            result = self.navigation_service.move_to_node(self.context, int(line))
        else:
            result = self.editing_service.add_node(self.context, line)
        self._report(result)
        return result

    def execute_command(self, line: str) -> OperationResult:
        """Run a slash command line without autocompletion or reporting."""
        command = parse_command(line)
        if command is None:
            return OperationResult.from_error(UsageError(f"Not a command: {line}"))
        handler = self._handlers.get(command.verb)
        if handler is None:
            logger.warning("Command FAIL: unknown verb=%s", command.verb)
            return OperationResult.from_error(UsageError(f"Unknown command: {line.strip()}", {"verb": command.verb}))
        logger.info("Command: %s args=%d", command.verb, len(command.args))
        return handler(command)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _cmd_new(self, command: Command) -> OperationResult:
        return self.document_service.create_new_story(self.context)

    def _cmd_load(self, command: Command) -> OperationResult:
        return self.document_service.load_story(self.context)

    def _cmd_save(self, command: Command) -> OperationResult:
        return self.document_service.save_story(self.context)

    def _cmd_delete(self, command: Command) -> OperationResult:
        if len(command.args) != 1:
            return OperationResult.from_error(UsageError(DELETE_USAGE))
        try:
            number = int(command.args[0])
        except ValueError:
            return OperationResult.from_error(UsageError(DELETE_USAGE, {"argument": command.args[0]}))
        return self.editing_service.delete_node(self.context, number - 1)

    def _cmd_getparent(self, command: Command) -> OperationResult:
        return self.clipboard_service.get_ancestry_and_copy_to_clipboard(self.context)

    def _cmd_chapteradd(self, command: Command) -> OperationResult:
        return self.document_service.add_chapter(self.context, command.text or None)

    def _cmd_brainstorm(self, command: Command) -> OperationResult:
        return self.clipboard_service.copy_brainstorm_prompt(self.context)

    def _cmd_previousnode(self, command: Command) -> OperationResult:
        return self.navigation_service.move_to_previous_node(self.context)

    def _cmd_insert(self, command: Command) -> OperationResult:
        text = command.text or self.context.settings["default_node_title"]
        return self.editing_service.insert_node(self.context, text)

    def _cmd_dissolve(self, command: Command) -> OperationResult:
        return self.editing_service.dissolve_node(self.context)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _report(self, result: OperationResult) -> None:
        frontend = self.context.frontend
        is_error = not result.success and not result.cancelled
        frontend.notify_message(result.message, is_error)
        if result.success:
            frontend.notify_state_changed()
