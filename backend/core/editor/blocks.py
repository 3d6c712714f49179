# backend/core/editor/blocks.py
# 功能: 内容块模型（文本 / 图片两种变体）与校验
# 主要函数: parse_block(), block_snapshot(), merge_block(), new_block_id()
# 数据结构: TextBlock | ImageBlock，按 type 字段区分

"""
内容块模型

块是一个封闭的标签联合：
- text：可选 text_style（h1/h2/h3/p）和 content
- image：可选 url、image_width、image_height（正整数）
与本类型无关的字段在解析时被忽略。
"""

import uuid
from typing import Annotated, Optional, Union, Literal, Dict, Any

from pydantic import BaseModel, Field, PositiveInt, TypeAdapter, ValidationError

from core.editor.errors import BlockValidationError


# 内容块类型
BLOCK_TYPES = {
    "text": "文本",
    "image": "图片",
}


def new_block_id() -> str:
    """生成内容块 ID"""
    return f"block-{uuid.uuid4().hex[:12]}"


class TextBlock(BaseModel):
    """文本块"""
    id: str = Field(default_factory=new_block_id, min_length=1)
    type: Literal["text"] = "text"
    text_style: Optional[Literal["h1", "h2", "h3", "p"]] = None
    content: Optional[str] = None


class ImageBlock(BaseModel):
    """图片块"""
    id: str = Field(default_factory=new_block_id, min_length=1)
    type: Literal["image"] = "image"
    url: Optional[str] = None
    image_width: Optional[PositiveInt] = None
    image_height: Optional[PositiveInt] = None


Block = Annotated[Union[TextBlock, ImageBlock], Field(discriminator="type")]

_block_adapter = TypeAdapter(Block)


def _describe(exc: ValidationError) -> str:
    """把 pydantic 校验错误压成一行中文提示"""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in BLOCK_TYPES)
        parts.append(f"{loc or 'block'}: {err.get('msg')}")
    return "无效的内容块 - " + "; ".join(parts)


def parse_block(data: Union[Dict[str, Any], TextBlock, ImageBlock]) -> Block:
    """
    校验并构造内容块

    Args:
        data: 块数据（dict）或已构造的块

    Raises:
        BlockValidationError: 缺少 type、未知 type、字段取值非法
    """
    if isinstance(data, (TextBlock, ImageBlock)):
        return data
    if not isinstance(data, dict) or not data.get("type"):
        raise BlockValidationError("无效的内容块 - 缺少 type")
    if not data.get("id"):
        # id 为 null / 空串视同未提供，由模型分配
        data = {k: v for k, v in data.items() if k != "id"}
    try:
        return _block_adapter.validate_python(data)
    except ValidationError as e:
        raise BlockValidationError(_describe(e)) from e


def block_snapshot(block: Block) -> Dict[str, Any]:
    """块快照（JSON 可序列化，省略空字段）"""
    return block.model_dump(mode="json", exclude_none=True)


def merge_block(block: Block, updates: Dict[str, Any]) -> Block:
    """
    浅合并：updates 中出现的字段覆盖原值，未出现的保留；id 不可修改
    """
    data = block_snapshot(block)
    data.update({k: v for k, v in updates.items() if k != "id"})
    data["id"] = block.id
    return parse_block(data)
