"""Top-level package for the Storymaker branching outline editor.

This package hosts the GUI-agnostic document model and editing engine.
Front-ends (console, GUI) should only depend on the public API exposed here
rather than importing internal modules directly.
"""

from .core.models import StoryDocument, StoryNode  # re-export for convenience

__all__: list[str] = [
    "StoryDocument",
    "StoryNode",
]
