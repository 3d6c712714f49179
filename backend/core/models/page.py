# backend/core/models/page.py
# 功能: 页面持久化模型
# 主要类: PageRecord
# 数据结构: title + blocks(JSON 数组，顺序即版面顺序)

"""
PageRecord 模型
一行保存一个页面；内容块作为 JSON 数组整体读写
"""

from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import BaseModel


class PageRecord(BaseModel):
    """
    页面

    Attributes:
        title: 页面标题
        blocks: 内容块快照列表（顺序有意义）
    """
    __tablename__ = "pages"

    title: Mapped[str] = mapped_column(String(500), nullable=False)

    # 内容块（整块读写，不做行级拆分）
    blocks: Mapped[list] = mapped_column(JSON, default=list)

    def __repr__(self):
        return f"<PageRecord {self.title!r} blocks={len(self.blocks or [])}>"
