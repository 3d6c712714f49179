# backend/core/editor/locks.py
# 功能: 按页面串行化读-改-写
# 主要类: PageLocks
# 数据结构: {page_id: RLock}

"""
页面锁

一次变更 / 撤回 / 重做需要独占页面：读页面 → 计算 → 写页面 → 写日志
不是原子的，同一页面上的并发请求必须排队。
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class PageLocks:
    """页面锁注册表（进程内）"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def for_page(self, page_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(page_id)
            if lock is None:
                lock = self._locks[page_id] = threading.RLock()
            return lock

    def discard(self, page_id: str) -> None:
        """页面删除后移除其锁"""
        with self._guard:
            self._locks.pop(page_id, None)

    def __contains__(self, page_id: str) -> bool:
        with self._guard:
            return page_id in self._locks

    @contextmanager
    def hold(self, page_id: str) -> Iterator[None]:
        lock = self.for_page(page_id)
        with lock:
            yield


# 进程级默认实例（API 每个请求新建 PageEditor，锁必须共享）
page_locks = PageLocks()
