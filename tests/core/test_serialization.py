import json

import pytest

from storymaker.core.exceptions import FormatError
from storymaker.core.models import StoryDocument, StoryNode
from storymaker.core.serialization import (
    document_from_json,
    document_to_json,
    dumps,
    loads,
    validate_node_record,
)


def test_document_round_trip():
    chapter = StoryNode("Chapter 1", children=[StoryNode("Scene", current=True), StoryNode("Other")])
    doc = StoryDocument(title="My Story", chapters=[chapter, StoryNode("Chapter 2")])
    text = document_to_json(doc)

    payload = json.loads(text)
    assert payload["title"] == "My Story"
    assert "current" not in payload["chapters"][0]
    assert payload["chapters"][0]["children"][0]["current"] is True

    loaded = document_from_json(text)
    assert loaded.title == "My Story"
    assert loaded.legacy is False
    assert [c.to_record() for c in loaded.chapters] == [c.to_record() for c in doc.chapters]


def test_legacy_single_root_becomes_one_chapter():
    text = json.dumps({"title": "Root", "children": [{"title": "Child", "children": [], "current": True}]})
    loaded = document_from_json(text, default_title="Fallback")
    assert loaded.legacy is True
    assert loaded.title == "Fallback"
    assert len(loaded.chapters) == 1
    assert loaded.chapters[0].title == "Root"
    assert loaded.chapters[0].children[0].current is True


@pytest.mark.parametrize("text", [
    "not json",
    "[]",
    json.dumps({"chapters": "nope"}),
    json.dumps({"title": 3, "chapters": []}),
    json.dumps({"chapters": [{"title": "ok", "children": [{"children": []}]}]}),
    json.dumps({"title": "Root", "children": {}}),
    json.dumps({"title": "Root", "current": "yes"}),
])
def test_invalid_documents_raise_format_error(text):
    with pytest.raises(FormatError):
        document_from_json(text)


def test_validate_reports_path_of_bad_record():
    record = {"title": "R", "children": [{"title": "ok"}, {"title": None}]}
    with pytest.raises(FormatError) as info:
        validate_node_record(record)
    assert info.value.details["path"] == "$.children[1]"
    assert info.value.kind == "format"


def _linear_story(depth):
    chapter = StoryNode("Chapter 1")
    node = chapter
    for i in range(depth):
        node = node.add_child(StoryNode(f"beat {i}"))
    node.mark_current()
    return StoryDocument(title="Long Story", chapters=[chapter], active_chapter_index=0)


def test_dumps_matches_stdlib_layout():
    doc = StoryDocument(
        title="Ünïcode",
        chapters=[StoryNode("Chapter 1", children=[StoryNode("Scene", current=True), StoryNode("")])],
    )
    expected = json.dumps(
        {"title": doc.title, "chapters": [c.to_record() for c in doc.chapters]},
        indent=2,
        ensure_ascii=False,
    )
    assert document_to_json(doc) == expected


def test_loads_matches_stdlib():
    text = '{"a": [1, -2.5e3, true, false, null, "x\\u00e9\\n", {}, []], "b": {"c": "d"}, "a": 0}'
    assert loads(text) == json.loads(text)
    assert dumps(json.loads(text)) == json.dumps(json.loads(text), indent=2, ensure_ascii=False)


@pytest.mark.parametrize("text", ["", "[1,]", '{"a" 1}', "[1] x", "{'a': 1}", "[1 2]", "nope"])
def test_loads_rejects_invalid_text(text):
    with pytest.raises(json.JSONDecodeError):
        loads(text)


def test_deep_linear_story_round_trip():
    doc = _linear_story(1000)

    loaded = document_from_json(document_to_json(doc))

    node, depth = loaded.chapters[0], 0
    while node.children:
        assert len(node.children) == 1
        node, depth = node.children[0], depth + 1
    assert depth == 1000
    assert node.title == "beat 999"
    assert node.current is True
