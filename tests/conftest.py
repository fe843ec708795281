"""Shared fixtures for Storymaker tests.

Every test gets an isolated user-config directory and a fresh ConfigManager,
plus helpers to build small story trees without going through commands.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from storymaker.config import ConfigManager
from storymaker.config.manager import EDITOR_DEFAULTS
from storymaker.core.context import EditorContext
from storymaker.core.interfaces import EditorFrontend
from storymaker.core.models import StoryDocument, StoryNode

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


class RecordingFrontend(EditorFrontend):
    """Scriptable collaborator that records every call made by the core."""

    def __init__(self, confirm: bool = True, file_text: Optional[str] = None, clipboard_ok: bool = True) -> None:
        self.confirm = confirm
        self.file_text = file_text
        self.clipboard_ok = clipboard_ok
        self.clipboard: Optional[str] = None
        self.files: dict = {}
        self.messages: List[Tuple[str, bool]] = []
        self.confirm_calls: List[str] = []
        self.render_count = 0

    def confirm_discard(self) -> bool:
        self.confirm_calls.append("discard")
        return self.confirm

    def confirm_delete_chapter(self, title: str) -> bool:
        self.confirm_calls.append(f"delete:{title}")
        return self.confirm

    def write_clipboard_text(self, text: str) -> bool:
        if not self.clipboard_ok:
            return False
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


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user overrides at an empty temp dir and reload config per test."""
    monkeypatch.setenv("STORYMAKER_CONFIG_DIR", str(tmp_path / "user_config"))
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def frontend():
    return RecordingFrontend()


@pytest.fixture
def settings():
    return dict(EDITOR_DEFAULTS)


@pytest.fixture
def ctx(frontend, settings):
    """Context in the "no document" state."""
    return EditorContext(frontend=frontend, settings=settings)


@pytest.fixture
def story_ctx(frontend, settings):
    """Context holding one chapter::

        Chapter 1
        ├── A
        │   ├── A1
        │   └── A2
        │       └── A2a
        └── B

    with the cursor on the chapter root.
    """
    a2 = StoryNode("A2", children=[StoryNode("A2a")])
    a = StoryNode("A", children=[StoryNode("A1"), a2])
    root = StoryNode("Chapter 1", children=[a, StoryNode("B")])
    document = StoryDocument(title="Test Story", chapters=[root], active_chapter_index=0)
    context = EditorContext(frontend=frontend, document=document, settings=settings)
    context.set_cursor(root)
    return context


def find_by_title(context: EditorContext, title: str) -> StoryNode:
    for chapter in context.chapters:
        for node in chapter.iter_depth_first():
            if node.title == title:
                return node
    raise LookupError(title)


@pytest.fixture
def node_named(story_ctx):
    """Lookup helper bound to ``story_ctx``."""
    def finder(title: str) -> StoryNode:
        return find_by_title(story_ctx, title)
    return finder
