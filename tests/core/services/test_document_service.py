import json

import pytest

from storymaker.core.models import StoryNode
from storymaker.core.services.document_service import DocumentService
from storymaker.core.services.navigation_service import NavigationService
from storymaker.core.services.structure_editing_service import StructureEditingService


@pytest.fixture
def docs():
    return DocumentService()


def _chapter_titles(context):
    return [chapter.title for chapter in context.chapters]


class TestNewStory:
    def test_new_story_from_empty(self, docs, ctx):
        res = docs.create_new_story(ctx)
        assert res.success is True
        assert _chapter_titles(ctx) == ["Chapter 1"]
        assert ctx.document.active_chapter_index == 0
        assert ctx.cursor is ctx.chapters[0]
        assert ctx.cursor.current is True
        assert ctx.document.dirty is False

    def test_dirty_document_declined_is_untouched(self, docs, story_ctx, frontend):
        story_ctx.document.mark_dirty()
        frontend.confirm = False
        chapters = list(story_ctx.chapters)

        res = docs.create_new_story(story_ctx)

        assert res.success is False
        assert res.cancelled is True
        assert frontend.confirm_calls == ["discard"]
        assert story_ctx.chapters == chapters
        assert story_ctx.document.dirty is True

    def test_clean_document_skips_confirmation(self, docs, story_ctx, frontend):
        docs.create_new_story(story_ctx)
        assert frontend.confirm_calls == []
        assert len(story_ctx.history) == 0


class TestChapters:
    def test_add_chapter_keeps_cursor(self, docs, story_ctx):
        cursor = story_ctx.cursor
        res = docs.add_chapter(story_ctx)
        assert res.success is True
        assert _chapter_titles(story_ctx) == ["Chapter 1", "Chapter 2"]
        assert story_ctx.cursor is cursor
        assert story_ctx.document.active_chapter_index == 0
        assert story_ctx.document.dirty is True

    def test_add_chapter_with_title(self, docs, story_ctx):
        docs.add_chapter(story_ctx, "Epilogue")
        assert story_ctx.chapters[-1].title == "Epilogue"

    def test_select_chapter(self, docs, story_ctx):
        docs.add_chapter(story_ctx)
        res = docs.select_chapter(story_ctx, 1)
        assert res.success is True
        assert story_ctx.document.active_chapter_index == 1
        assert story_ctx.cursor is story_ctx.chapters[1]

    def test_select_chapter_out_of_range_changes_nothing(self, docs, story_ctx):
        cursor = story_ctx.cursor
        res = docs.select_chapter(story_ctx, 4)
        assert res.success is False
        assert res.error == "not_found"
        assert story_ctx.cursor is cursor
        assert story_ctx.document.active_chapter_index == 0

    def test_swap_chapters_follows_active_chapter(self, docs, story_ctx):
        docs.add_chapter(story_ctx)
        active = story_ctx.document.active_chapter
        res = docs.swap_chapters(story_ctx, 0, 1)
        assert res.success is True
        assert _chapter_titles(story_ctx) == ["Chapter 2", "Chapter 1"]
        assert story_ctx.document.active_chapter is active
        assert story_ctx.document.active_chapter_index == 1

    def test_rename_chapter(self, docs, story_ctx):
        assert docs.rename_chapter(story_ctx, 0, "Prologue").success is True
        assert _chapter_titles(story_ctx) == ["Prologue"]
        assert docs.rename_chapter(story_ctx, 3, "Nope").error == "not_found"

    def test_delete_earlier_chapter_remaps_active(self, docs, story_ctx):
        docs.add_chapter(story_ctx)
        docs.select_chapter(story_ctx, 1)
        active = story_ctx.document.active_chapter

        res = docs.delete_chapter(story_ctx, 0)

        assert res.success is True
        assert story_ctx.document.active_chapter_index == 0
        assert story_ctx.document.active_chapter is active
        assert story_ctx.cursor is active

    def test_delete_active_last_chapter_clamps(self, docs, story_ctx):
        docs.add_chapter(story_ctx)
        docs.select_chapter(story_ctx, 1)
        docs.delete_chapter(story_ctx, 1)
        assert story_ctx.document.active_chapter_index == 0
        assert story_ctx.cursor is story_ctx.chapters[0]

    def test_delete_only_chapter_clears_selection(self, docs, story_ctx):
        docs.delete_chapter(story_ctx, 0)
        assert story_ctx.chapters == []
        assert story_ctx.document.active_chapter_index is None
        assert story_ctx.cursor is None

    def test_delete_chapter_declined(self, docs, story_ctx, frontend):
        frontend.confirm = False
        res = docs.delete_chapter(story_ctx, 0)
        assert res.cancelled is True
        assert frontend.confirm_calls == ["delete:Chapter 1"]
        assert len(story_ctx.chapters) == 1


class TestSaveAndLoad:
    def test_save_marks_resume_point_and_clears_dirty(self, docs, story_ctx, frontend):
        nav = NavigationService()
        nav.move_to_node(story_ctx, 2)
        story_ctx.document.mark_dirty()

        res = docs.save_story(story_ctx)

        assert res.success is True
        assert story_ctx.document.dirty is False
        payload = json.loads(frontend.files["story.json"])
        assert payload["title"] == "Test Story"
        chapter = payload["chapters"][0]
        assert "current" not in chapter
        assert chapter["children"][1] == {"title": "B", "children": [], "current": True}

    def test_save_without_document(self, docs, ctx):
        assert docs.save_story(ctx).error == "precondition"

    def test_load_restores_cursor_from_current_flag(self, docs, story_ctx, ctx, node_named):
        NavigationService().move_to_node_by_reference(story_ctx, node_named("A2"))
        text = docs.serialize_story(story_ctx)

        res = docs.load_story(ctx, text)

        assert res.success is True
        assert ctx.cursor.title == "A2"
        assert ctx.ancestry_text() == "Chapter 1 → A → A2"
        assert ctx.document.title == "Test Story"
        assert ctx.document.dirty is False

    def test_load_reads_from_frontend(self, docs, ctx, frontend):
        frontend.file_text = json.dumps({"title": "Root", "children": [{"title": "Kid", "children": []}]})
        res = docs.load_story(ctx)
        assert res.success is True
        assert res.details["legacy"] is True
        assert ctx.cursor is ctx.chapters[0]
        assert ctx.chapters[0].current is True

    def test_load_cancelled_when_no_file(self, docs, ctx):
        res = docs.load_story(ctx)
        assert res.cancelled is True

    def test_invalid_json_leaves_document_untouched(self, docs, story_ctx):
        before = [c.to_record() for c in story_ctx.chapters]
        cursor = story_ctx.cursor

        res = docs.load_story(story_ctx, "{ broken")

        assert res.success is False
        assert res.error == "format"
        assert res.message == "Failed to load story: Invalid JSON file."
        assert [c.to_record() for c in story_ctx.chapters] == before
        assert story_ctx.cursor is cursor

    def test_load_resets_history(self, docs, story_ctx):
        story_ctx.history.push(StoryNode("old"))
        docs.load_story(story_ctx, docs.serialize_story(story_ctx))
        assert len(story_ctx.history) == 0


def test_insert_scenario(docs, ctx):
    """new -> add chapter -> select -> two scenes -> enter first -> insert."""
    nav, editor = NavigationService(), StructureEditingService()
    docs.create_new_story(ctx)
    docs.add_chapter(ctx)
    docs.select_chapter(ctx, 0)
    editor.add_node(ctx, "Scene 1")
    editor.add_node(ctx, "Scene 2")
    nav.move_to_node(ctx, 1)
    scene_1 = ctx.cursor

    res = editor.insert_node(ctx, "Bridge")

    assert res.success is True
    chapter = ctx.chapters[0]
    assert [n.title for n in ctx.ancestry(scene_1)] == ["Chapter 1", "Bridge", "Scene 1"]
    assert [c.title for c in chapter.children] == ["Bridge", "Scene 2"]
