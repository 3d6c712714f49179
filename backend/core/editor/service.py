# backend/core/editor/service.py
# 功能: 页面编辑服务（对外唯一入口）
# 主要类: PageEditor
# 数据结构: 所有方法返回 EditResult，不向调用方抛出编辑错误
#
# 设计原则: 变更 / 撤回 / 重做全程持有页面锁；页面与日志在同一事务内提交，失败则一起回滚

"""
页面编辑服务

组合页面存储、操作日志、变更引擎和撤回协调器：
- 页面增删改查
- 块操作 add / edit / delete / move，成功后各记录一条 Action
- undo / redo
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from core.editor import engine
from core.editor.actions import Action, MoveDirection
from core.editor.blocks import Block, parse_block
from core.editor.errors import (
    BlockValidationError,
    EditorError,
    EditResult,
    NotFoundError,
)
from core.editor.history import HistoryCoordinator
from core.editor.locks import PageLocks, page_locks
from core.editor.page import Page
from core.editor.stores import ActionStore, NullTransaction, PageStore, Transaction
from core.models.base import generate_uuid, utc_now

logger = logging.getLogger("page_editor")


class PageEditor:
    """页面编辑服务"""

    def __init__(
        self,
        pages: PageStore,
        actions: ActionStore,
        locks: Optional[PageLocks] = None,
        transaction: Optional[Transaction] = None,
    ):
        self.pages = pages
        self.actions = actions
        self.locks = locks or page_locks
        self.transaction = transaction or NullTransaction()
        self.history = HistoryCoordinator(pages, actions)

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """块内写入一起提交；抛出任何异常则回滚后继续抛出"""
        try:
            yield
        except BaseException:
            self.transaction.rollback()
            raise
        self.transaction.commit()

    # ============== 页面 ==============

    def list_pages(self) -> List[Page]:
        return self.pages.list_all()

    def get_page(self, page_id: str) -> EditResult:
        page = self.pages.get(page_id)
        if page is None:
            return EditResult.failure(NotFoundError("页面不存在"))
        return EditResult.ok(page)

    def create_page(
        self,
        title: str,
        blocks: Optional[List[Union[Block, Dict[str, Any]]]] = None,
    ) -> EditResult:
        """创建页面（未带 id 的块自动分配；重复 id 视为校验失败）"""
        if not title or not title.strip():
            return EditResult.failure(BlockValidationError("标题不能为空"))
        try:
            parsed = [parse_block(b) for b in blocks or []]
            now = utc_now()
            page = Page(id=generate_uuid(), title=title, blocks=parsed,
                        created_at=now, updated_at=now)
        except BlockValidationError as e:
            return EditResult.failure(e)
        except ValueError as e:
            # 页面级校验（块 id 重复）
            return EditResult.failure(BlockValidationError(f"无效的页面 - {e}"))

        with self._atomic():
            self.pages.put(page)
        logger.info(f"[页面] 创建 {page.id} 「{title}」 blocks={len(parsed)}")
        return EditResult.ok(page)

    def rename_page(self, page_id: str, title: str) -> EditResult:
        if not title or not title.strip():
            return EditResult.failure(BlockValidationError("标题不能为空"))
        with self.locks.hold(page_id):
            page = self.pages.get(page_id)
            if page is None:
                return EditResult.failure(NotFoundError("页面不存在"))
            page = page.model_copy(update={"title": title, "updated_at": utc_now()})
            with self._atomic():
                self.pages.put(page)
        return EditResult.ok(page)

    def delete_page(self, page_id: str) -> EditResult:
        """删除页面（块随页面丢弃，操作记录保留）"""
        with self.locks.hold(page_id):
            with self._atomic():
                deleted = self.pages.delete(page_id)
        self.locks.discard(page_id)
        if not deleted:
            return EditResult.failure(NotFoundError("页面不存在"))
        logger.info(f"[页面] 删除 {page_id}")
        return EditResult.ok(message="页面已删除")

    # ============== 块操作 ==============

    def add_block(
        self,
        page_id: str,
        block: Union[Block, Dict[str, Any]],
        after_block_id: Optional[str] = None,
    ) -> EditResult:
        return self._mutate(page_id, lambda page: engine.add_block(page, block, after_block_id))

    def edit_block(self, page_id: str, block_id: str, updates: Dict[str, Any]) -> EditResult:
        return self._mutate(page_id, lambda page: engine.edit_block(page, block_id, updates))

    def delete_block(self, page_id: str, block_id: str) -> EditResult:
        return self._mutate(page_id, lambda page: engine.delete_block(page, block_id))

    def move_block(
        self,
        page_id: str,
        block_id: str,
        direction: Union[MoveDirection, str],
    ) -> EditResult:
        return self._mutate(page_id, lambda page: engine.move_block(page, block_id, direction))

    def _mutate(self, page_id: str, operation: Callable[[Page], engine.Mutation]) -> EditResult:
        with self.locks.hold(page_id):
            page = self.pages.get(page_id)
            if page is None:
                return EditResult.failure(NotFoundError("页面不存在"))
            try:
                mutation = operation(page)
            except EditorError as e:
                logger.info(f"[块操作] page={page_id} 失败({e.code.value}): {e.message}")
                return EditResult.failure(e)

            with self._atomic():
                self.pages.put(mutation.page)
                action = self.actions.append(mutation.to_action())

        logger.info(
            f"[块操作] page={page_id} {action.type.value} block={action.block_id} seq={action.seq}"
        )
        return EditResult.ok(mutation.page, action)

    # ============== 撤回 / 重做 ==============

    def undo(self, page_id: str) -> EditResult:
        with self.locks.hold(page_id):
            try:
                with self._atomic():
                    page, action = self.history.undo(page_id)
            except EditorError as e:
                return EditResult.failure(e)
        return EditResult.ok(page, action, message="撤回成功")

    def redo(self, page_id: str) -> EditResult:
        with self.locks.hold(page_id):
            try:
                with self._atomic():
                    page, action = self.history.redo(page_id)
            except EditorError as e:
                return EditResult.failure(e)
        return EditResult.ok(page, action, message="重做成功")

    def list_actions(self, page_id: Optional[str] = None) -> List[Action]:
        """操作记录，最新的在前"""
        actions = self.actions.list_by_page(page_id) if page_id else self.actions.list_all()
        return sorted(actions, key=lambda a: (a.timestamp, a.seq), reverse=True)
