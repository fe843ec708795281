from __future__ import annotations

"""Editing services operating on an EditorContext.

Services are stateless; all session state lives on the context passed to
each call.
"""

from .structure_editing_service import OperationResult, StructureEditingService  # noqa: F401
from .navigation_service import NavigationHistory, NavigationService  # noqa: F401
from .document_service import DocumentService  # noqa: F401
from .clipboard_service import ClipboardService  # noqa: F401
from .command_service import CommandDispatcher, Completion, Command  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "StructureEditingService",
    "NavigationHistory",
    "NavigationService",
    "DocumentService",
    "ClipboardService",
    "CommandDispatcher",
    "Completion",
    "Command",
]
