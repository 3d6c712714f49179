# backend/core/models/__init__.py
# 功能: 模型包入口，导出所有SQLAlchemy模型
# 包含: 所有数据模型类

"""
数据模型包
导出所有SQLAlchemy模型供其他模块使用
"""

from core.models.base import BaseModel, generate_uuid, utc_now
from core.models.page import PageRecord
from core.models.page_action import ActionRecord, ACTION_TYPES

__all__ = [
    # 基础
    "BaseModel",
    "generate_uuid",
    "utc_now",

    # 页面
    "PageRecord",

    # 页面操作记录（撤回/重做）
    "ActionRecord",
    "ACTION_TYPES",
]
