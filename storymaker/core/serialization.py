from __future__ import annotations

"""JSON persistence format for story documents.

Two layouts are accepted on load:

- chaptered documents: ``{"title": str, "chapters": [NodeRecord, ...]}``
- legacy single-root documents: a bare ``NodeRecord``, loaded as one chapter

Loading is all-or-nothing: the whole payload is validated before any node
is built, and the caller only swaps in the result once it is complete.

Every beat adds two levels of JSON nesting, so a long linear story nests
far deeper than the interpreter's recursion limit. :func:`dumps` and
:func:`loads` produce and accept the same text as ``json.dumps(indent=...)``
and ``json.loads`` but keep open containers on an explicit stack.
"""

import json
import logging
import re
from dataclasses import dataclass
from json.decoder import JSONDecodeError, scanstring
from json.scanner import NUMBER_RE
from typing import Any, Dict, List, Tuple

from storymaker.core.exceptions import FormatError
from storymaker.core.models import StoryDocument, StoryNode

__all__ = [
    "LoadedStory",
    "validate_node_record",
    "document_to_record",
    "document_to_json",
    "document_from_json",
    "dumps",
    "loads",
]

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_LITERALS: Tuple[Tuple[str, Any], ...] = (("true", True), ("false", False), ("null", None))


@dataclass(frozen=True)
class LoadedStory:
    """Fully constructed result of parsing a document, not yet applied."""

    title: str
    chapters: List[StoryNode]
    legacy: bool = False


def validate_node_record(record: Any, path: str = "$") -> None:
    """Raise FormatError if ``record`` is not a well-formed NodeRecord."""
    stack = [(record, path)]
    while stack:
        item, where = stack.pop()
        if not isinstance(item, dict):
            raise FormatError(f"Expected an object at {where}.", {"path": where})
        if not isinstance(item.get("title"), str):
            raise FormatError(f"Missing or non-string 'title' at {where}.", {"path": where})
        children = item.get("children", [])
        if children is None:
            children = []
        if not isinstance(children, list):
            raise FormatError(f"'children' must be a list at {where}.", {"path": where})
        if "current" in item and not isinstance(item["current"], bool):
            raise FormatError(f"'current' must be a boolean at {where}.", {"path": where})
        for idx, child in enumerate(children):
            stack.append((child, f"{where}.children[{idx}]"))


def dumps(value: Any, indent: int = 2) -> str:
    """Encode ``value`` like ``json.dumps(value, indent=indent, ensure_ascii=False)``."""
    parts: List[str] = []
    # Open containers: [items iterator, closing bracket, depth, is_object, has_items]
    stack: List[List[Any]] = []

    def emit(item: Any, depth: int) -> None:
        if isinstance(item, dict) and item:
            parts.append("{")
            stack.append([iter(item.items()), "}", depth + 1, True, False])
        elif isinstance(item, list) and item:
            parts.append("[")
            stack.append([iter(item), "]", depth + 1, False, False])
        else:
            parts.append(json.dumps(item, ensure_ascii=False))

    emit(value, 0)
    while stack:
        frame = stack[-1]
        items, closer, depth, is_object, has_items = frame
        try:
            item = next(items)
        except StopIteration:
            stack.pop()
            parts.append("\n" + " " * (indent * (depth - 1)) + closer)
            continue
        parts.append(("," if has_items else "") + "\n" + " " * (indent * depth))
        frame[4] = True
        if is_object:
            key, item = item
            parts.append(json.dumps(key, ensure_ascii=False) + ": ")
        emit(item, depth)
    return "".join(parts)


def _skip_whitespace(text: str, pos: int) -> int:
    return _WHITESPACE.match(text, pos).end()


def _expect(text: str, pos: int, char: str, message: str) -> int:
    pos = _skip_whitespace(text, pos)
    if not text.startswith(char, pos):
        raise JSONDecodeError(message, text, pos)
    return _skip_whitespace(text, pos + 1)


def _object_key(text: str, pos: int) -> Tuple[str, int]:
    if not text.startswith('"', pos):
        raise JSONDecodeError("Expecting property name enclosed in double quotes", text, pos)
    key, pos = scanstring(text, pos + 1)
    return key, _expect(text, pos, ":", "Expecting ':' delimiter")


def loads(text: str) -> Any:
    """Decode a JSON document like ``json.loads`` without recursing per level.

    Raises
    ------
    json.JSONDecodeError
        If ``text`` is not valid JSON.
    """
    if not isinstance(text, str):
        raise TypeError(f"the JSON object must be str, not {type(text).__name__}")
    end = len(text)
    containers: List[Any] = []
    keys: List[Any] = []
    value: Any = None
    pos = _skip_whitespace(text, 0)

    while True:
        # Parse one value starting at ``pos``.
        if pos >= end:
            raise JSONDecodeError("Expecting value", text, pos)
        char = text[pos]
        if char == "{":
            pos = _skip_whitespace(text, pos + 1)
            if not text.startswith("}", pos):
                key, pos = _object_key(text, pos)
                containers.append({})
                keys.append(key)
                continue
            value = {}
            pos += 1
        elif char == "[":
            pos = _skip_whitespace(text, pos + 1)
            if not text.startswith("]", pos):
                containers.append([])
                keys.append(None)
                continue
            value = []
            pos += 1
        elif char == '"':
            value, pos = scanstring(text, pos + 1)
        else:
            match = NUMBER_RE.match(text, pos)
            if match is not None:
                integer, frac, exp = match.groups()
                value = float(integer + (frac or "") + (exp or "")) if frac or exp else int(integer)
                pos = match.end()
            else:
                for literal, literal_value in _LITERALS:
                    if text.startswith(literal, pos):
                        value = literal_value
                        pos += len(literal)
                        break
                else:
                    raise JSONDecodeError("Expecting value", text, pos)

        # Attach the value, closing every container that ends right after it.
        while True:
            if not containers:
                pos = _skip_whitespace(text, pos)
                if pos != end:
                    raise JSONDecodeError("Extra data", text, pos)
                return value
            container = containers[-1]
            is_object = isinstance(container, dict)
            if is_object:
                container[keys[-1]] = value
            else:
                container.append(value)
            pos = _skip_whitespace(text, pos)
            if text.startswith(",", pos):
                pos = _skip_whitespace(text, pos + 1)
                if is_object:
                    keys[-1], pos = _object_key(text, pos)
                break
            if text.startswith("}" if is_object else "]", pos):
                pos += 1
                value = containers.pop()
                keys.pop()
                continue
            raise JSONDecodeError("Expecting ',' delimiter", text, pos)


def document_to_record(document: StoryDocument) -> Dict[str, Any]:
    return {
        "title": document.title,
        "chapters": [chapter.to_record() for chapter in document.chapters],
    }


def document_to_json(document: StoryDocument, indent: int = 2) -> str:
    return dumps(document_to_record(document), indent=indent)


def document_from_json(text: str, default_title: str = "Untitled Story") -> LoadedStory:
    """Parse and validate ``text`` into a :class:`LoadedStory`.

    Raises
    ------
    FormatError
        If the text is not JSON or does not describe a story document.
    """
    try:
        payload = loads(text)
    except (TypeError, ValueError) as exc:
        raise FormatError("Failed to load story: Invalid JSON file.", {"reason": str(exc)}) from exc

    if not isinstance(payload, dict):
        raise FormatError("Failed to load story: document must be a JSON object.")

    if "chapters" in payload:
        chapters = payload["chapters"]
        if not isinstance(chapters, list):
            raise FormatError("Failed to load story: 'chapters' must be a list.")
        title = payload.get("title", default_title)
        if not isinstance(title, str):
            raise FormatError("Failed to load story: 'title' must be a string.")
        for idx, record in enumerate(chapters):
            validate_node_record(record, f"$.chapters[{idx}]")
        built = [StoryNode.from_record(record) for record in chapters]
        logger.debug("Parsed chaptered story title=%r chapters=%d", title, len(built))
        return LoadedStory(title=title, chapters=built)

    validate_node_record(payload)
    logger.debug("Parsed legacy single-root story root=%r", payload["title"])
    return LoadedStory(title=default_title, chapters=[StoryNode.from_record(payload)], legacy=True)
