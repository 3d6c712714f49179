# backend/core/editor/history.py
# 功能: 撤回 / 重做协调器
# 主要类: HistoryCoordinator
# 主要函数: latest_action()
#
# 选择规则: 同一页面内按 (timestamp, seq) 取最新；undo 取 undone=False，redo 取 undone=True

"""
撤回 / 重做

按页面选出最近一条符合条件的操作，根据快照构造逆操作（或重放），
交给变更引擎执行，再翻转该操作的 undone 标记。

撤回规则：
- add    → 删除 block_id 对应的块（已不存在则忽略）
- delete → 把 before_state 追加到末尾（不恢复原位置）
- edit   → 用 before_state 原位覆盖
- move   → 交换 to_index / from_index

重做规则：
- add    → 以 metadata.after_block_id 为锚点重新插入 after_state
- delete → 再次删除 block_id
- edit   → 用 after_state 原位覆盖
- move   → 交换 from_index / to_index
"""

import logging
from typing import Iterable, Optional, Tuple, Dict, Any

from core.editor import engine
from core.editor.actions import Action, ActionType
from core.editor.blocks import parse_block
from core.editor.errors import (
    BlockValidationError,
    InvalidMoveError,
    NotFoundError,
    NothingToRedoError,
    NothingToUndoError,
)
from core.editor.page import Page
from core.editor.stores import ActionStore, PageStore
from core.models import ACTION_TYPES

logger = logging.getLogger("history")


def latest_action(actions: Iterable[Action], undone: bool) -> Optional[Action]:
    """
    取最新的一条操作（时间戳相同按 seq，即追加顺序，后者为新）
    """
    candidates = [a for a in actions if a.undone == undone]
    if not candidates:
        return None
    return max(candidates, key=lambda a: (a.timestamp, a.seq))


class HistoryCoordinator:
    """撤回 / 重做协调器（调用方负责持有页面锁）"""

    def __init__(self, pages: PageStore, actions: ActionStore):
        self.pages = pages
        self.actions = actions

    def undo(self, page_id: str) -> Tuple[Page, Action]:
        """
        撤回页面上最近一次未撤回的操作

        Raises:
            NothingToUndoError: 没有可撤回的操作或页面不存在
        """
        page = self.pages.get(page_id)
        action = latest_action(self.actions.list_by_page(page_id), undone=False) if page is not None else None
        if action is None:
            raise NothingToUndoError("没有可撤回的操作或页面不存在")

        page = self._reverse(page, action).touched()
        self.pages.put(page)
        self.actions.mark_undone(action.id, True)
        logger.info(f"[撤回] page={page_id} {ACTION_TYPES[action.type.value]} block={action.block_id} seq={action.seq}")
        return page, action.model_copy(update={"undone": True})

    def redo(self, page_id: str) -> Tuple[Page, Action]:
        """
        重做页面上最近一次已撤回的操作

        Raises:
            NothingToRedoError: 没有可重做的操作或页面不存在
        """
        page = self.pages.get(page_id)
        action = latest_action(self.actions.list_by_page(page_id), undone=True) if page is not None else None
        if action is None:
            raise NothingToRedoError("没有可重做的操作或页面不存在")

        page = self._reapply(page, action).touched()
        self.pages.put(page)
        self.actions.mark_undone(action.id, False)
        logger.info(f"[重做] page={page_id} {ACTION_TYPES[action.type.value]} block={action.block_id} seq={action.seq}")
        return page, action.model_copy(update={"undone": False})

    # ---------- 逆操作 / 重放 ----------

    def _reverse(self, page: Page, action: Action) -> Page:
        if action.type is ActionType.ADD:
            return self._remove(page, action.block_id)
        if action.type is ActionType.DELETE:
            return self._restore(page, action.before_state, after_block_id=None)
        if action.type is ActionType.EDIT:
            return self._overwrite(page, action.block_id, action.before_state)
        if action.type is ActionType.MOVE:
            return self._swap(page, action.metadata.to_index, action.metadata.from_index)
        raise ValueError(f"未知操作类型: {action.type}")

    def _reapply(self, page: Page, action: Action) -> Page:
        if action.type is ActionType.ADD:
            return self._restore(page, action.after_state, action.metadata.after_block_id)
        if action.type is ActionType.DELETE:
            return self._remove(page, action.block_id)
        if action.type is ActionType.EDIT:
            return self._overwrite(page, action.block_id, action.after_state)
        if action.type is ActionType.MOVE:
            return self._swap(page, action.metadata.from_index, action.metadata.to_index)
        raise ValueError(f"未知操作类型: {action.type}")

    def _remove(self, page: Page, block_id: Optional[str]) -> Page:
        try:
            return engine.delete_block(page, block_id).page
        except NotFoundError:
            logger.warning(f"[历史] 块 {block_id} 已不在页面 {page.id} 中，跳过删除")
            return page

    def _restore(self, page: Page, snapshot: Optional[Dict[str, Any]],
                 after_block_id: Optional[str]) -> Page:
        if not snapshot:
            logger.warning(f"[历史] 页面 {page.id} 的操作缺少块快照，跳过恢复")
            return page
        try:
            return engine.add_block(page, parse_block(snapshot), after_block_id).page
        except BlockValidationError as e:
            # 同 id 的块已在页面中（唯一性约束优先）
            logger.warning(f"[历史] 页面 {page.id} 恢复块失败，跳过: {e.message}")
            return page

    def _overwrite(self, page: Page, block_id: Optional[str],
                   snapshot: Optional[Dict[str, Any]]) -> Page:
        if not snapshot:
            logger.warning(f"[历史] 页面 {page.id} 的 edit 操作缺少快照，跳过覆盖")
            return page
        try:
            return engine.replace_block(page, block_id, snapshot)
        except NotFoundError:
            logger.warning(f"[历史] 块 {block_id} 已不在页面 {page.id} 中，跳过覆盖")
            return page

    def _swap(self, page: Page, first: int, second: int) -> Page:
        try:
            return engine.swap_blocks(page, first, second)
        except InvalidMoveError as e:
            logger.warning(f"[历史] 页面 {page.id} 交换跳过: {e.message}")
            return page
