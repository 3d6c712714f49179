# backend/tests/test_block_model.py
# 功能: 测试内容块 / 页面 / 操作记录模型的校验
# 主要函数: test_*

"""
模型校验测试
运行: python -m pytest tests/test_block_model.py -v
"""

import pytest
from pydantic import ValidationError

from core.editor.actions import Action, ActionType, AddMetadata, MoveMetadata, MoveDirection
from core.editor.blocks import (
    ImageBlock,
    TextBlock,
    block_snapshot,
    merge_block,
    parse_block,
)
from core.editor.errors import BlockValidationError, ErrorCode
from core.editor.page import Page


class TestParseBlock:
    """测试块解析"""

    def test_text_block(self):
        block = parse_block({"id": "a", "type": "text", "text_style": "h1", "content": "标题"})
        assert isinstance(block, TextBlock)
        assert block.text_style == "h1"
        assert block.content == "标题"

    def test_image_block(self):
        block = parse_block({"type": "image", "url": "x.png", "image_width": 640, "image_height": 480})
        assert isinstance(block, ImageBlock)
        assert block.url == "x.png"
        assert block.id.startswith("block-")

    def test_irrelevant_fields_ignored(self):
        block = parse_block({"id": "img", "type": "image", "url": "x.png", "content": "忽略"})
        assert "content" not in block_snapshot(block)

    def test_missing_type(self):
        with pytest.raises(BlockValidationError) as exc:
            parse_block({"content": "没有类型"})
        assert exc.value.code == ErrorCode.VALIDATION_ERROR

    def test_unknown_type(self):
        with pytest.raises(BlockValidationError):
            parse_block({"type": "video"})

    def test_invalid_text_style(self):
        with pytest.raises(BlockValidationError):
            parse_block({"type": "text", "text_style": "h4"})

    def test_non_positive_dimension(self):
        with pytest.raises(BlockValidationError):
            parse_block({"type": "image", "image_width": 0})

    def test_snapshot_omits_empty_fields(self):
        snapshot = block_snapshot(TextBlock(id="a", content="正文"))
        assert snapshot == {"id": "a", "type": "text", "content": "正文"}


class TestMergeBlock:
    """测试浅合并"""

    def test_preserves_unlisted_fields(self):
        block = TextBlock(id="a", text_style="p", content="旧")
        merged = merge_block(block, {"content": "新"})
        assert merged.text_style == "p"
        assert merged.content == "新"

    def test_id_cannot_change(self):
        merged = merge_block(TextBlock(id="a"), {"id": "b", "content": "x"})
        assert merged.id == "a"

    def test_invalid_result(self):
        with pytest.raises(BlockValidationError):
            merge_block(ImageBlock(id="i"), {"image_height": -3})


class TestPage:
    """测试页面模型"""

    def test_duplicate_block_ids_rejected(self):
        with pytest.raises(ValidationError):
            Page(title="重复", blocks=[TextBlock(id="a"), TextBlock(id="a")])

    def test_index_of(self):
        page = Page(title="T", blocks=[TextBlock(id="a"), ImageBlock(id="b")])
        assert page.index_of("b") == 1
        assert page.index_of("missing") == -1


class TestActionMetadata:
    """测试按类型区分的 metadata"""

    def test_add_metadata(self):
        action = Action(type="add", page_id="p", block_id="a", metadata={"after_block_id": "x"})
        assert isinstance(action.metadata, AddMetadata)
        assert action.metadata.after_block_id == "x"

    def test_add_without_anchor(self):
        action = Action(type="add", page_id="p", block_id="a")
        assert action.metadata.after_block_id is None

    def test_move_metadata(self):
        action = Action(
            type=ActionType.MOVE,
            page_id="p",
            block_id="a",
            metadata={"direction": "up", "from_index": 1, "to_index": 0},
        )
        assert isinstance(action.metadata, MoveMetadata)
        assert action.metadata.direction == MoveDirection.UP
        assert action.metadata_dict() == {"direction": "up", "from_index": 1, "to_index": 0}

    def test_move_requires_indices(self):
        with pytest.raises(ValidationError):
            Action(type="move", page_id="p", block_id="a")

    def test_edit_has_no_metadata(self):
        action = Action(type="edit", page_id="p", block_id="a", metadata={"after_block_id": "x"})
        assert action.metadata is None
        assert action.undone is False
