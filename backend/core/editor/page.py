# backend/core/editor/page.py
# 功能: 页面模型（有序内容块 + 元数据）
# 主要类: Page
# 数据结构: Page(id, title, blocks, created_at, updated_at)

"""
页面模型
blocks 的顺序即版面顺序；同一页面内块 ID 唯一
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from core.editor.blocks import Block, block_snapshot
from core.models.base import generate_uuid, utc_now


class Page(BaseModel):
    """页面"""
    id: str = Field(default_factory=generate_uuid)
    title: str
    blocks: List[Block] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _unique_block_ids(self) -> "Page":
        seen = set()
        for block in self.blocks:
            if block.id in seen:
                raise ValueError(f"重复的块 ID: {block.id}")
            seen.add(block.id)
        return self

    def index_of(self, block_id: Optional[str]) -> int:
        """块下标，不存在返回 -1"""
        for idx, block in enumerate(self.blocks):
            if block.id == block_id:
                return idx
        return -1

    def with_blocks(self, blocks: List[Block]) -> "Page":
        """替换块序列并刷新 updated_at（返回新对象，不修改自身）"""
        return self.model_copy(update={"blocks": blocks, "updated_at": utc_now()})

    def touched(self) -> "Page":
        """仅刷新 updated_at"""
        return self.model_copy(update={"updated_at": utc_now()})

    def block_snapshots(self) -> List[dict]:
        return [block_snapshot(b) for b in self.blocks]
