# backend/core/editor/errors.py
# 功能: 页面编辑的错误分类与统一返回结果
# 主要类: ErrorCode, EditorError 及其子类, EditResult
# 数据结构: EditResult(success, page, action, error, message)

"""
编辑错误与操作结果

引擎内部以 EditorError 子类表示失败；PageEditor 在边界处把它们
转换为 EditResult 返回，调用方（API 层）只看 success / error。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from core.editor.page import Page
    from core.editor.actions import Action


class ErrorCode(str, Enum):
    """错误类型"""
    NOT_FOUND = "not_found"
    INVALID_MOVE = "invalid_move"
    NOTHING_TO_UNDO = "nothing_to_undo"
    NOTHING_TO_REDO = "nothing_to_redo"
    VALIDATION_ERROR = "validation_error"


class EditorError(Exception):
    """编辑错误基类"""
    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(EditorError):
    """页面或内容块不存在"""
    code = ErrorCode.NOT_FOUND


class InvalidMoveError(EditorError):
    """移动目标越界（首块上移 / 末块下移）"""
    code = ErrorCode.INVALID_MOVE


class NothingToUndoError(EditorError):
    code = ErrorCode.NOTHING_TO_UNDO


class NothingToRedoError(EditorError):
    code = ErrorCode.NOTHING_TO_REDO


class BlockValidationError(EditorError):
    """内容块 / 请求数据不合法"""
    code = ErrorCode.VALIDATION_ERROR


@dataclass
class EditResult:
    """操作结果"""
    success: bool
    page: Optional["Page"] = None
    action: Optional["Action"] = None
    error: Optional[ErrorCode] = None
    message: str = ""

    @classmethod
    def ok(cls, page: Optional["Page"] = None, action: Optional["Action"] = None,
           message: str = "") -> "EditResult":
        return cls(success=True, page=page, action=action, message=message)

    @classmethod
    def failure(cls, exc: EditorError) -> "EditResult":
        return cls(success=False, error=exc.code, message=exc.message)
