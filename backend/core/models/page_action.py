# backend/core/models/page_action.py
# 功能: 页面操作记录模型，用于撤回/重做
# 主要类: ActionRecord
# 数据结构: 操作前/后的块快照 + 按类型区分的附加信息

"""
ActionRecord 模型
记录页面上每一次块操作（add/edit/delete/move），只追加、不删除
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, JSON, Boolean, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import BaseModel, utc_now


# 操作类型
ACTION_TYPES = {
    "add": "添加",
    "edit": "编辑",
    "delete": "删除",
    "move": "移动",
}


class ActionRecord(BaseModel):
    """
    页面操作记录

    用于撤回/重做：
    - add：保存新块快照（after_state）和插入锚点
    - edit：保存编辑前后快照
    - delete：保存被删除块的完整快照（before_state）
    - move：保存方向和交换的两个下标

    Attributes:
        page_id: 所属页面 ID（仅引用，页面删除后记录保留）
        action_type: 操作类型（add/edit/delete/move）
        block_id: 操作的内容块 ID
        before_state: 操作前的块快照（add 为空）
        after_state: 操作后的块快照（delete 为空）
        action_metadata: 附加信息（add 的锚点 / move 的下标）
        seq: 追加顺序号（时间戳相同时用于判定先后）
        timestamp: 操作时间
        undone: 是否已撤回
    """
    __tablename__ = "page_actions"

    page_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    action_type: Mapped[str] = mapped_column(String(20), nullable=False)

    block_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    before_state: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    after_state: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # "metadata" 是 Declarative 保留名，列名保持 metadata
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSON, nullable=True
    )

    seq: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )

    undone: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self):
        return f"<ActionRecord #{self.seq} {self.action_type} block={self.block_id}>"
