# backend/core/editor/actions.py
# 功能: 操作记录模型（撤回/重做的依据）
# 主要类: ActionType, MoveDirection, AddMetadata, MoveMetadata, Action
# 数据结构: Action.metadata 按 type 区分（add→AddMetadata, move→MoveMetadata, 其余为空）

"""
操作记录

每次块操作生成一条 Action，保存操作前后的块快照；
除 undone 标记外不可修改，也不会被删除。
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union, Dict, Any

from pydantic import BaseModel, model_validator


class ActionType(str, Enum):
    """操作类型"""
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    MOVE = "move"


class MoveDirection(str, Enum):
    """移动方向"""
    UP = "up"
    DOWN = "down"


class AddMetadata(BaseModel):
    """add：插入锚点（None = 追加到末尾）"""
    after_block_id: Optional[str] = None


class MoveMetadata(BaseModel):
    """move：方向及交换的两个下标"""
    direction: MoveDirection
    from_index: int
    to_index: int


class Action(BaseModel):
    """
    操作记录

    id / timestamp / seq 在追加到操作日志时分配。
    """
    id: Optional[str] = None
    type: ActionType
    page_id: str
    block_id: Optional[str] = None
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    metadata: Union[AddMetadata, MoveMetadata, None] = None
    timestamp: Optional[datetime] = None
    seq: Optional[int] = None
    undone: bool = False

    @model_validator(mode="before")
    @classmethod
    def _payload_by_type(cls, data: Any) -> Any:
        """按操作类型确定 metadata 的结构"""
        if not isinstance(data, dict):
            return data
        action_type = ActionType(data.get("type"))
        payload = data.get("metadata")
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()

        if action_type is ActionType.ADD:
            payload = AddMetadata(**(payload or {}))
        elif action_type is ActionType.MOVE:
            if not payload:
                raise ValueError("move 操作缺少 from_index / to_index")
            payload = MoveMetadata(**payload)
        else:
            payload = None
        return {**data, "metadata": payload}

    def metadata_dict(self) -> Optional[Dict[str, Any]]:
        """metadata 的 JSON 形式（用于落库）"""
        if self.metadata is None:
            return None
        return self.metadata.model_dump(mode="json")
