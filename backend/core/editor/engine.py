# backend/core/editor/engine.py
# 功能: 页面块序列的变更引擎（add / edit / delete / move）
# 主要函数: add_block(), edit_block(), delete_block(), move_block(), replace_block(), swap_blocks()
# 数据结构: Mutation（新页面 + 操作前后快照 + 附加信息）
#
# 设计原则: 只有这里改动块的顺序；不读写操作日志，不修改传入的 Page

"""
变更引擎

所有函数接收一个 Page，返回新的 Page（或 Mutation），失败时抛出
EditorError 子类，传入的页面保持不变。成功的操作都会刷新 updated_at。
记录 Action 由调用方（PageEditor / HistoryCoordinator）负责。
"""

from dataclasses import dataclass
from typing import Optional, Union, Dict, Any, List

from core.editor.actions import (
    Action,
    ActionType,
    AddMetadata,
    MoveDirection,
    MoveMetadata,
)
from core.editor.blocks import Block, block_snapshot, merge_block, parse_block
from core.editor.errors import BlockValidationError, InvalidMoveError, NotFoundError
from core.editor.page import Page


@dataclass
class Mutation:
    """一次成功变更的结果"""
    page: Page
    action_type: ActionType
    block_id: str
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    metadata: Union[AddMetadata, MoveMetadata, None] = None

    def to_action(self) -> Action:
        """生成待追加的操作记录（id / timestamp 由操作日志分配）"""
        return Action(
            type=self.action_type,
            page_id=self.page.id,
            block_id=self.block_id,
            before_state=self.before_state,
            after_state=self.after_state,
            metadata=self.metadata,
        )


def _require_index(page: Page, block_id: str) -> int:
    idx = page.index_of(block_id)
    if idx == -1:
        raise NotFoundError(f"内容块不存在: {block_id}")
    return idx


def _insert_after(blocks: List[Block], block: Block, after_block_id: Optional[str]) -> None:
    """插到锚点之后；锚点为空或不存在时追加到末尾"""
    if after_block_id:
        for idx, existing in enumerate(blocks):
            if existing.id == after_block_id:
                blocks.insert(idx + 1, block)
                return
    blocks.append(block)


def add_block(
    page: Page,
    block: Union[Block, Dict[str, Any]],
    after_block_id: Optional[str] = None,
) -> Mutation:
    """
    添加内容块

    Args:
        page: 目标页面
        block: 新块（dict 时先校验；未给 id 时自动分配）
        after_block_id: 插入锚点；为空或找不到时追加到末尾

    Raises:
        BlockValidationError: 块数据不合法，或 id 与页面已有块重复
    """
    new_block = parse_block(block)
    if page.index_of(new_block.id) != -1:
        raise BlockValidationError(f"内容块 ID 已存在: {new_block.id}")

    blocks = list(page.blocks)
    _insert_after(blocks, new_block, after_block_id)

    return Mutation(
        page=page.with_blocks(blocks),
        action_type=ActionType.ADD,
        block_id=new_block.id,
        after_state=block_snapshot(new_block),
        metadata=AddMetadata(after_block_id=after_block_id),
    )


def edit_block(page: Page, block_id: str, updates: Dict[str, Any]) -> Mutation:
    """
    编辑内容块（浅合并，未提供的字段保留）

    Raises:
        NotFoundError: 块不存在
        BlockValidationError: 没有可更新的字段，或合并后的块不合法
    """
    if not updates:
        raise BlockValidationError("没有提供需要更新的字段")
    idx = _require_index(page, block_id)

    before = page.blocks[idx]
    after = merge_block(before, updates)

    blocks = list(page.blocks)
    blocks[idx] = after

    return Mutation(
        page=page.with_blocks(blocks),
        action_type=ActionType.EDIT,
        block_id=block_id,
        before_state=block_snapshot(before),
        after_state=block_snapshot(after),
    )


def delete_block(page: Page, block_id: str) -> Mutation:
    """
    删除内容块

    Raises:
        NotFoundError: 块不存在
    """
    idx = _require_index(page, block_id)

    blocks = list(page.blocks)
    removed = blocks.pop(idx)

    return Mutation(
        page=page.with_blocks(blocks),
        action_type=ActionType.DELETE,
        block_id=block_id,
        before_state=block_snapshot(removed),
    )


def move_block(page: Page, block_id: str, direction: Union[MoveDirection, str]) -> Mutation:
    """
    上移 / 下移一格（与相邻块交换位置）

    Raises:
        BlockValidationError: direction 不是 up / down
        NotFoundError: 块不存在
        InvalidMoveError: 首块上移或末块下移
    """
    try:
        direction = MoveDirection(direction)
    except ValueError:
        raise BlockValidationError('direction 必须是 "up" 或 "down"')

    from_index = _require_index(page, block_id)
    to_index = from_index - 1 if direction is MoveDirection.UP else from_index + 1
    if to_index < 0 or to_index >= len(page.blocks):
        raise InvalidMoveError(f"无法{'上移' if direction is MoveDirection.UP else '下移'}: 已在边界")

    snapshot = block_snapshot(page.blocks[from_index])
    return Mutation(
        page=swap_blocks(page, from_index, to_index),
        action_type=ActionType.MOVE,
        block_id=block_id,
        before_state=snapshot,
        after_state=snapshot,
        metadata=MoveMetadata(direction=direction, from_index=from_index, to_index=to_index),
    )


def replace_block(page: Page, block_id: str, snapshot: Dict[str, Any]) -> Page:
    """
    用快照原位覆盖指定块（撤回/重做 edit 时使用）

    Raises:
        NotFoundError: 块不存在
        BlockValidationError: 快照不合法
    """
    idx = _require_index(page, block_id)
    blocks = list(page.blocks)
    blocks[idx] = parse_block(snapshot)
    return page.with_blocks(blocks)


def swap_blocks(page: Page, first: int, second: int) -> Page:
    """
    交换两个下标上的块

    Raises:
        InvalidMoveError: 任一下标越界
    """
    size = len(page.blocks)
    if not (0 <= first < size and 0 <= second < size):
        raise InvalidMoveError(f"下标越界: {first} <-> {second} (共 {size} 块)")
    blocks = list(page.blocks)
    blocks[first], blocks[second] = blocks[second], blocks[first]
    return page.with_blocks(blocks)
