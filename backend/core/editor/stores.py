# backend/core/editor/stores.py
# 功能: 页面存储 / 操作日志存储的抽象与实现
# 主要类: Transaction, PageStore, ActionStore, SqlPageStore, SqlActionStore, InMemoryPageStore, InMemoryActionStore
# 数据结构: 领域对象 Page / Action <-> ORM PageRecord / ActionRecord

"""
存储层

编辑核心只依赖 PageStore / ActionStore 两个接口：
- Sql*：基于 SQLAlchemy Session，写入只 flush，由 Transaction 统一 commit / rollback
- InMemory*：进程内实现，用于测试或无库运行

操作日志只追加；除 undone 标记外不修改、不删除。
list_all / list_by_page 按追加顺序返回，需要按时间倒序的调用方自行排序。
"""

import abc
import threading
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.editor.actions import Action
from core.editor.errors import NotFoundError
from core.editor.page import Page
from core.models import ActionRecord, PageRecord, generate_uuid, utc_now

# seq 分配需要跨请求串行
_SEQ_LOCK = threading.Lock()


class Transaction(abc.ABC):
    """一次编辑的提交边界：页面写入与日志写入一起提交或一起回滚"""

    @abc.abstractmethod
    def commit(self) -> None:
        ...

    @abc.abstractmethod
    def rollback(self) -> None:
        ...


class SqlTransaction(Transaction):
    """基于 Session 的事务"""

    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


class NullTransaction(Transaction):
    """内存存储直接生效，无需提交"""

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class PageStore(abc.ABC):
    """页面存储接口"""

    @abc.abstractmethod
    def get(self, page_id: str) -> Optional[Page]:
        ...

    @abc.abstractmethod
    def put(self, page: Page) -> None:
        ...

    @abc.abstractmethod
    def delete(self, page_id: str) -> bool:
        ...

    @abc.abstractmethod
    def list_all(self) -> List[Page]:
        ...


class ActionStore(abc.ABC):
    """操作日志接口"""

    @abc.abstractmethod
    def append(self, action: Action) -> Action:
        """分配 id / timestamp / seq，undone 置为 False 后保存"""

    @abc.abstractmethod
    def list_all(self) -> List[Action]:
        ...

    @abc.abstractmethod
    def list_by_page(self, page_id: str) -> List[Action]:
        ...

    @abc.abstractmethod
    def mark_undone(self, action_id: str, undone: bool) -> None:
        ...


# ============== SQLAlchemy 实现 ==============

def _record_to_page(record: PageRecord) -> Page:
    return Page.model_validate({
        "id": record.id,
        "title": record.title,
        "blocks": record.blocks or [],
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    })


def _record_to_action(record: ActionRecord) -> Action:
    return Action.model_validate({
        "id": record.id,
        "type": record.action_type,
        "page_id": record.page_id,
        "block_id": record.block_id,
        "before_state": record.before_state,
        "after_state": record.after_state,
        "metadata": record.action_metadata,
        "timestamp": record.timestamp,
        "seq": record.seq,
        "undone": bool(record.undone),
    })


class SqlPageStore(PageStore):
    """页面存储（pages 表）"""

    def __init__(self, db: Session):
        self.db = db

    def _find(self, page_id: str) -> Optional[PageRecord]:
        return self.db.query(PageRecord).filter(PageRecord.id == page_id).first()

    def get(self, page_id: str) -> Optional[Page]:
        record = self._find(page_id)
        return _record_to_page(record) if record else None

    def put(self, page: Page) -> None:
        record = self._find(page.id)
        if record is None:
            record = PageRecord(id=page.id, created_at=page.created_at)
            self.db.add(record)
        record.title = page.title
        # 整体赋新列表，JSON 列才能感知变更
        record.blocks = page.block_snapshots()
        record.updated_at = page.updated_at
        self.db.flush()

    def delete(self, page_id: str) -> bool:
        record = self._find(page_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True

    def list_all(self) -> List[Page]:
        records = self.db.query(PageRecord).order_by(PageRecord.created_at).all()
        return [_record_to_page(r) for r in records]


class SqlActionStore(ActionStore):
    """操作日志（page_actions 表）"""

    def __init__(self, db: Session):
        self.db = db

    def append(self, action: Action) -> Action:
        with _SEQ_LOCK:
            max_seq = self.db.query(func.max(ActionRecord.seq)).scalar() or 0
            record = ActionRecord(
                id=generate_uuid(),
                page_id=action.page_id,
                action_type=action.type.value,
                block_id=action.block_id,
                before_state=action.before_state,
                after_state=action.after_state,
                action_metadata=action.metadata_dict(),
                seq=max_seq + 1,
                timestamp=utc_now(),
                undone=False,
            )
            self.db.add(record)
            self.db.flush()
        self.db.refresh(record)
        return _record_to_action(record)

    def list_all(self) -> List[Action]:
        records = self.db.query(ActionRecord).order_by(ActionRecord.seq).all()
        return [_record_to_action(r) for r in records]

    def list_by_page(self, page_id: str) -> List[Action]:
        records = self.db.query(ActionRecord).filter(
            ActionRecord.page_id == page_id,
        ).order_by(ActionRecord.seq).all()
        return [_record_to_action(r) for r in records]

    def mark_undone(self, action_id: str, undone: bool) -> None:
        record = self.db.query(ActionRecord).filter(ActionRecord.id == action_id).first()
        if record is None:
            raise NotFoundError(f"操作记录不存在: {action_id}")
        record.undone = undone
        self.db.flush()


# ============== 内存实现 ==============

class InMemoryPageStore(PageStore):
    """进程内页面存储（读写都复制，调用方拿到的对象与存储互不影响）"""

    def __init__(self, pages: Optional[List[Page]] = None):
        self._pages: Dict[str, Page] = {}
        for page in pages or []:
            self.put(page)

    def get(self, page_id: str) -> Optional[Page]:
        page = self._pages.get(page_id)
        return page.model_copy(deep=True) if page else None

    def put(self, page: Page) -> None:
        self._pages[page.id] = page.model_copy(deep=True)

    def delete(self, page_id: str) -> bool:
        return self._pages.pop(page_id, None) is not None

    def list_all(self) -> List[Page]:
        return [p.model_copy(deep=True) for p in self._pages.values()]


class InMemoryActionStore(ActionStore):
    """进程内操作日志"""

    def __init__(self, clock=utc_now):
        self._actions: List[Action] = []
        self._seq = 0
        self._clock = clock
        self._lock = threading.Lock()

    def append(self, action: Action) -> Action:
        with self._lock:
            self._seq += 1
            stored = action.model_copy(update={
                "id": generate_uuid(),
                "timestamp": self._clock(),
                "seq": self._seq,
                "undone": False,
            })
            self._actions.append(stored)
        return stored.model_copy()

    def list_all(self) -> List[Action]:
        return [a.model_copy() for a in self._actions]

    def list_by_page(self, page_id: str) -> List[Action]:
        return [a.model_copy() for a in self._actions if a.page_id == page_id]

    def mark_undone(self, action_id: str, undone: bool) -> None:
        for idx, action in enumerate(self._actions):
            if action.id == action_id:
                self._actions[idx] = action.model_copy(update={"undone": undone})
                return
        raise NotFoundError(f"操作记录不存在: {action_id}")
