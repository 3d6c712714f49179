# backend/core/editor/__init__.py
# 功能: 页面编辑核心包入口
# 包含: 块/页面/操作模型、变更引擎、存储接口、撤回协调器、PageEditor

"""
页面编辑核心
"""

from core.editor.blocks import (
    Block,
    TextBlock,
    ImageBlock,
    BLOCK_TYPES,
    parse_block,
    block_snapshot,
)
from core.editor.page import Page
from core.editor.actions import Action, ActionType, MoveDirection, AddMetadata, MoveMetadata
from core.editor.errors import ErrorCode, EditorError, EditResult
from core.editor.stores import (
    PageStore,
    ActionStore,
    SqlPageStore,
    SqlActionStore,
    InMemoryPageStore,
    InMemoryActionStore,
    Transaction,
    SqlTransaction,
    NullTransaction,
)
from core.editor.history import HistoryCoordinator
from core.editor.service import PageEditor

__all__ = [
    # 模型
    "Block",
    "TextBlock",
    "ImageBlock",
    "BLOCK_TYPES",
    "parse_block",
    "block_snapshot",
    "Page",
    "Action",
    "ActionType",
    "MoveDirection",
    "AddMetadata",
    "MoveMetadata",

    # 错误
    "ErrorCode",
    "EditorError",
    "EditResult",

    # 存储
    "PageStore",
    "ActionStore",
    "SqlPageStore",
    "SqlActionStore",
    "InMemoryPageStore",
    "InMemoryActionStore",
    "Transaction",
    "SqlTransaction",
    "NullTransaction",

    # 服务
    "HistoryCoordinator",
    "PageEditor",
]
