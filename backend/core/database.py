# backend/core/database.py
# 功能: 数据库连接管理
# 主要函数: get_engine(), get_session_maker(), init_db(), get_db()
# 数据结构: Base (SQLAlchemy declarative base)

"""
数据库连接管理模块
使用 SQLAlchemy 2.0 同步模式，页面与操作记录都存放在同一个库中
"""

import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from core.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类"""
    pass


_engine = None


def get_engine():
    """
    获取数据库引擎（进程内复用）
    SQLite使用StaticPool确保单连接（适合本地单用户）
    """
    global _engine
    if _engine is None:
        if settings.database_url.startswith("sqlite:///./"):
            # 相对路径的 SQLite 文件，确保目录存在
            db_path = settings.database_url[len("sqlite:///"):]
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)

        _engine = create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,  # 调试 SQL 时改为 True
        )
    return _engine


def get_session_maker():
    """获取Session工厂"""
    engine = get_engine()
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """初始化数据库（创建所有表）"""
    engine = get_engine()
    # 导入所有模型以确保它们被注册
    from core import models  # noqa
    Base.metadata.create_all(bind=engine)


# 依赖注入用的Session生成器
def get_db():
    """FastAPI依赖: 获取数据库Session"""
    SessionLocal = get_session_maker()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
