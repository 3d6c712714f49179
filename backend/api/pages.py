# backend/api/pages.py
# 功能: 页面与内容块 API，支持块的增删改移及撤回/重做
# 主要路由: /api/pages, /api/pages/{page_id}/blocks, /api/pages/{page_id}/undo|redo, /api/actions
# 数据结构: Page / Action（core.editor）

"""
页面 API
把 PageEditor 的 EditResult 映射为 HTTP 响应：
- not_found / nothing_to_undo / nothing_to_redo → 404
- invalid_move / validation_error → 400
"""

import logging
from typing import Optional, List, Dict, Any, Literal

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from core.database import get_db
from core.editor import (
    Action,
    EditResult,
    ErrorCode,
    Page,
    PageEditor,
    SqlActionStore,
    SqlPageStore,
    SqlTransaction,
)

logger = logging.getLogger("pages")

router = APIRouter(prefix="/api", tags=["pages"])


# ========== Pydantic 模型 ==========

class PageCreate(BaseModel):
    """创建页面请求"""
    title: str
    blocks: List[Dict[str, Any]] = Field(default_factory=list)


class PageUpdate(BaseModel):
    """更新页面请求（目前只支持改标题）"""
    title: Optional[str] = None


class BlockAdd(BaseModel):
    """添加内容块请求"""
    block: Dict[str, Any]
    after_block_id: Optional[str] = None  # None = 追加到末尾


class BlockMove(BaseModel):
    """移动内容块请求"""
    direction: Literal["up", "down"]


class HistoryResponse(BaseModel):
    """撤回 / 重做响应"""
    page: Page
    action: Action
    message: str = ""


# ========== 辅助函数 ==========

_HTTP_STATUS = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.NOTHING_TO_UNDO: 404,
    ErrorCode.NOTHING_TO_REDO: 404,
    ErrorCode.INVALID_MOVE: 400,
    ErrorCode.VALIDATION_ERROR: 400,
}


def get_editor(db: Session = Depends(get_db)) -> PageEditor:
    """FastAPI依赖: 基于当前 Session 的 PageEditor"""
    return PageEditor(SqlPageStore(db), SqlActionStore(db), transaction=SqlTransaction(db))


def _unwrap(result: EditResult) -> EditResult:
    """失败结果转为 HTTPException"""
    if not result.success:
        logger.debug(f"[API] {result.error.value}: {result.message}")
        raise HTTPException(status_code=_HTTP_STATUS.get(result.error, 400), detail=result.message)
    return result


# ========== 页面 ==========

@router.get("/pages", response_model=List[Page])
def list_pages(editor: PageEditor = Depends(get_editor)):
    """获取所有页面"""
    return editor.list_pages()


@router.get("/pages/{page_id}", response_model=Page)
def get_page(page_id: str, editor: PageEditor = Depends(get_editor)):
    """获取单个页面"""
    return _unwrap(editor.get_page(page_id)).page


@router.post("/pages", response_model=Page, status_code=201)
def create_page(data: PageCreate, editor: PageEditor = Depends(get_editor)):
    """创建页面"""
    return _unwrap(editor.create_page(data.title, data.blocks)).page


@router.put("/pages/{page_id}", response_model=Page)
def update_page(page_id: str, data: PageUpdate, editor: PageEditor = Depends(get_editor)):
    """更新页面标题"""
    if data.title is None:
        raise HTTPException(status_code=400, detail="没有提供需要更新的字段")
    return _unwrap(editor.rename_page(page_id, data.title)).page


@router.delete("/pages/{page_id}")
def delete_page(page_id: str, editor: PageEditor = Depends(get_editor)):
    """删除页面（操作记录保留）"""
    result = _unwrap(editor.delete_page(page_id))
    return {"message": result.message, "page_id": page_id}


# ========== 内容块 ==========

@router.post("/pages/{page_id}/blocks", response_model=Page)
def add_block(page_id: str, data: BlockAdd, editor: PageEditor = Depends(get_editor)):
    """添加内容块（插到 after_block_id 之后，找不到则追加）"""
    return _unwrap(editor.add_block(page_id, data.block, data.after_block_id)).page


@router.put("/pages/{page_id}/blocks/{block_id}", response_model=Page)
def update_block(
    page_id: str,
    block_id: str,
    updates: Dict[str, Any] = Body(...),
    editor: PageEditor = Depends(get_editor),
):
    """更新内容块（浅合并）"""
    return _unwrap(editor.edit_block(page_id, block_id, updates)).page


@router.delete("/pages/{page_id}/blocks/{block_id}", response_model=Page)
def delete_block(page_id: str, block_id: str, editor: PageEditor = Depends(get_editor)):
    """删除内容块"""
    return _unwrap(editor.delete_block(page_id, block_id)).page


@router.post("/pages/{page_id}/blocks/{block_id}/move", response_model=Page)
def move_block(
    page_id: str,
    block_id: str,
    data: BlockMove,
    editor: PageEditor = Depends(get_editor),
):
    """上移 / 下移内容块"""
    return _unwrap(editor.move_block(page_id, block_id, data.direction)).page


# ========== 撤回 / 重做 ==========

@router.post("/pages/{page_id}/undo", response_model=HistoryResponse)
def undo_action(page_id: str, editor: PageEditor = Depends(get_editor)):
    """撤回页面上最近一次操作"""
    result = _unwrap(editor.undo(page_id))
    return HistoryResponse(page=result.page, action=result.action, message=result.message)


@router.post("/pages/{page_id}/redo", response_model=HistoryResponse)
def redo_action(page_id: str, editor: PageEditor = Depends(get_editor)):
    """重做页面上最近一次撤回的操作"""
    result = _unwrap(editor.redo(page_id))
    return HistoryResponse(page=result.page, action=result.action, message=result.message)


@router.get("/actions", response_model=List[Action])
def list_actions(editor: PageEditor = Depends(get_editor)):
    """所有操作记录（最新的在前）"""
    return editor.list_actions()


@router.get("/actions/{page_id}", response_model=List[Action])
def list_page_actions(page_id: str, editor: PageEditor = Depends(get_editor)):
    """页面的操作记录（最新的在前）"""
    return editor.list_actions(page_id)
