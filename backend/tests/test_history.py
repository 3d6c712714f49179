# backend/tests/test_history.py
# 功能: 测试操作记录与撤回/重做（PageEditor + 内存存储）
# 主要函数: test_*

"""
撤回 / 重做测试
运行: python -m pytest tests/test_history.py -v
"""

import logging
from datetime import datetime

import pytest

from core.editor.actions import ActionType
from core.editor.errors import ErrorCode
from core.editor.locks import PageLocks
from core.editor.service import PageEditor
from core.editor.stores import InMemoryActionStore, InMemoryPageStore


def make_editor(clock=None):
    actions = InMemoryActionStore(clock=clock) if clock else InMemoryActionStore()
    return PageEditor(InMemoryPageStore(), actions, locks=PageLocks())


@pytest.fixture
def editor():
    return make_editor()


@pytest.fixture
def page_id(editor):
    """页面 [A(h1,"Title"), B(p,"Body")]"""
    result = editor.create_page("测试页面", [
        {"id": "a", "type": "text", "text_style": "h1", "content": "Title"},
        {"id": "b", "type": "text", "text_style": "p", "content": "Body"},
    ])
    assert result.success
    return result.page.id


def block_ids(editor, page_id):
    return [b.id for b in editor.get_page(page_id).page.blocks]


def snapshots(editor, page_id):
    return editor.get_page(page_id).page.block_snapshots()


class TestActionLog:
    """测试操作记录"""

    def test_each_mutation_records_one_action(self, editor, page_id):
        editor.add_block(page_id, {"id": "c", "type": "text"})
        editor.edit_block(page_id, "c", {"content": "x"})
        editor.move_block(page_id, "c", "up")
        editor.delete_block(page_id, "c")

        actions = editor.list_actions(page_id)
        assert [a.type for a in actions] == [
            ActionType.DELETE, ActionType.MOVE, ActionType.EDIT, ActionType.ADD,
        ]
        assert all(a.id and a.timestamp and not a.undone for a in actions)
        assert len({a.id for a in actions}) == 4

    def test_failed_mutation_records_nothing(self, editor, page_id):
        result = editor.move_block(page_id, "a", "up")
        assert not result.success
        assert result.error == ErrorCode.INVALID_MOVE
        assert editor.list_actions(page_id) == []
        assert block_ids(editor, page_id) == ["a", "b"]

    def test_missing_page(self, editor):
        result = editor.add_block("missing", {"type": "text"})
        assert result.error == ErrorCode.NOT_FOUND

    def test_actions_filtered_by_page(self, editor, page_id):
        other = editor.create_page("另一页").page.id
        editor.add_block(page_id, {"type": "text"})
        editor.add_block(other, {"type": "image"})
        assert len(editor.list_actions(page_id)) == 1
        assert len(editor.list_actions()) == 2


class TestUndoRedo:
    """测试撤回 / 重做"""

    def test_move_scenario(self, editor, page_id):
        moved = editor.move_block(page_id, "b", "up")
        assert block_ids(editor, page_id) == ["b", "a"]
        assert moved.action.type == ActionType.MOVE
        assert moved.action.metadata.from_index == 1
        assert moved.action.metadata.to_index == 0

        undone = editor.undo(page_id)
        assert undone.success
        assert [b.id for b in undone.page.blocks] == ["a", "b"]
        assert undone.action.undone is True
        assert editor.list_actions(page_id)[0].undone is True

        redone = editor.redo(page_id)
        assert [b.id for b in redone.page.blocks] == ["b", "a"]
        assert redone.action.undone is False
        assert editor.list_actions(page_id)[0].undone is False

    def test_history_log_uses_action_label(self, editor, page_id, caplog):
        editor.move_block(page_id, "b", "up")
        # main 导入后 history 日志不向上传播，直接挂 caplog 的 handler
        history_logger = logging.getLogger("history")
        history_logger.addHandler(caplog.handler)
        try:
            with caplog.at_level(logging.INFO, logger="history"):
                editor.undo(page_id)
                editor.redo(page_id)
        finally:
            history_logger.removeHandler(caplog.handler)

        messages = [r.getMessage() for r in caplog.records if r.name == "history"]
        assert any(m.startswith("[撤回]") and "移动" in m for m in messages)
        assert any(m.startswith("[重做]") and "移动" in m for m in messages)

    def test_nothing_to_undo(self, editor, page_id):
        before = editor.get_page(page_id).page
        result = editor.undo(page_id)
        assert not result.success
        assert result.error == ErrorCode.NOTHING_TO_UNDO
        assert editor.get_page(page_id).page == before

    def test_nothing_to_redo(self, editor, page_id):
        editor.add_block(page_id, {"type": "text"})
        result = editor.redo(page_id)
        assert result.error == ErrorCode.NOTHING_TO_REDO

    def test_undo_missing_page(self, editor):
        assert editor.undo("missing").error == ErrorCode.NOTHING_TO_UNDO
        assert editor.redo("missing").error == ErrorCode.NOTHING_TO_REDO

    def test_edit_undo_redo(self, editor, page_id):
        editor.edit_block(page_id, "b", {"content": "Changed", "text_style": "h2"})
        editor.undo(page_id)
        block = editor.get_page(page_id).page.blocks[1]
        assert (block.text_style, block.content) == ("p", "Body")

        editor.redo(page_id)
        block = editor.get_page(page_id).page.blocks[1]
        assert (block.text_style, block.content) == ("h2", "Changed")

    def test_add_undo_redo_uses_anchor(self, editor, page_id):
        editor.add_block(page_id, {"id": "img", "type": "image", "url": "x.png"}, after_block_id="a")
        assert block_ids(editor, page_id) == ["a", "img", "b"]

        editor.undo(page_id)
        assert block_ids(editor, page_id) == ["a", "b"]

        editor.redo(page_id)
        assert block_ids(editor, page_id) == ["a", "img", "b"]

    def test_delete_undo_appends_at_end(self, editor, page_id):
        editor.delete_block(page_id, "a")
        editor.undo(page_id)
        # 撤回删除不恢复原位置
        assert block_ids(editor, page_id) == ["b", "a"]
        assert editor.get_page(page_id).page.blocks[1].content == "Title"

        editor.redo(page_id)
        assert block_ids(editor, page_id) == ["b"]

    @pytest.mark.parametrize("apply", [
        lambda e, p: e.add_block(p, {"id": "c", "type": "text", "content": "c"}, "a"),
        lambda e, p: e.edit_block(p, "a", {"content": "edited"}),
        lambda e, p: e.delete_block(p, "b"),
        lambda e, p: e.move_block(p, "a", "down"),
    ], ids=["add", "edit", "delete", "move"])
    def test_undo_then_redo_restores_applied_state(self, editor, page_id, apply):
        assert apply(editor, page_id).success
        applied = snapshots(editor, page_id)

        assert editor.undo(page_id).success
        assert editor.redo(page_id).success
        assert snapshots(editor, page_id) == applied

    def test_undo_is_lifo(self, editor, page_id):
        editor.add_block(page_id, {"id": "c", "type": "text"})
        editor.edit_block(page_id, "b", {"content": "Changed"})

        first = editor.undo(page_id)
        assert first.action.type == ActionType.EDIT
        assert editor.get_page(page_id).page.blocks[1].content == "Body"

        second = editor.undo(page_id)
        assert second.action.type == ActionType.ADD
        assert block_ids(editor, page_id) == ["a", "b"]

        assert editor.undo(page_id).error == ErrorCode.NOTHING_TO_UNDO

    def test_undo_stamps_updated_at(self, editor, page_id):
        mutated = editor.edit_block(page_id, "a", {"content": "x"}).page
        undone = editor.undo(page_id).page
        assert undone.updated_at >= mutated.updated_at

    def test_equal_timestamps_pick_latest_appended(self):
        fixed = datetime(2024, 1, 1)
        editor = make_editor(clock=lambda: fixed)
        page_id = editor.create_page("同一时刻").page.id
        editor.add_block(page_id, {"id": "x", "type": "text"})
        editor.add_block(page_id, {"id": "y", "type": "text"})

        result = editor.undo(page_id)
        assert result.action.block_id == "y"
        assert block_ids(editor, page_id) == ["x"]

        result = editor.redo(page_id)
        assert result.action.block_id == "y"

    def test_redo_survives_new_mutation(self, editor, page_id):
        editor.add_block(page_id, {"id": "c", "type": "text"})
        editor.undo(page_id)
        editor.edit_block(page_id, "a", {"content": "new"})

        result = editor.redo(page_id)
        assert result.action.type == ActionType.ADD
        assert block_ids(editor, page_id) == ["a", "b", "c"]

    def test_redo_add_skips_existing_id(self, editor, page_id):
        editor.add_block(page_id, {"id": "c", "type": "text", "content": "old"})
        editor.undo(page_id)
        editor.add_block(page_id, {"id": "c", "type": "text", "content": "new"})

        result = editor.redo(page_id)
        assert result.success
        assert result.action.undone is False
        page = editor.get_page(page_id).page
        assert [b.id for b in page.blocks] == ["a", "b", "c"]
        assert page.blocks[2].content == "new"


class TestPages:
    """测试页面操作"""

    def test_create_requires_title(self, editor):
        assert editor.create_page("  ").error == ErrorCode.VALIDATION_ERROR

    def test_create_rejects_duplicate_ids(self, editor):
        result = editor.create_page("重复", [{"id": "a", "type": "text"}, {"id": "a", "type": "image"}])
        assert result.error == ErrorCode.VALIDATION_ERROR

    def test_create_rejects_invalid_block(self, editor):
        result = editor.create_page("无类型", [{"content": "x"}])
        assert result.error == ErrorCode.VALIDATION_ERROR

    def test_rename(self, editor, page_id):
        result = editor.rename_page(page_id, "新标题")
        assert result.page.title == "新标题"
        assert editor.get_page(page_id).page.title == "新标题"

    def test_delete_keeps_actions(self, editor, page_id):
        editor.add_block(page_id, {"type": "text"})
        assert editor.delete_page(page_id).success
        assert editor.get_page(page_id).error == ErrorCode.NOT_FOUND
        assert editor.delete_page(page_id).error == ErrorCode.NOT_FOUND
        assert len(editor.list_actions(page_id)) == 1
        assert editor.undo(page_id).error == ErrorCode.NOTHING_TO_UNDO

    def test_delete_releases_page_lock(self):
        locks = PageLocks()
        editor = PageEditor(InMemoryPageStore(), InMemoryActionStore(), locks=locks)
        page_id = editor.create_page("页面").page.id
        editor.add_block(page_id, {"type": "text"})
        assert page_id in locks

        assert editor.delete_page(page_id).success
        assert page_id not in locks

        assert editor.delete_page("missing").error == ErrorCode.NOT_FOUND
        assert "missing" not in locks
