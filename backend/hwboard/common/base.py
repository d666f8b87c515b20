"""
ORM 基础定义: 声明基类、主键 Mixin、按数据库方言处理 schema
"""

import uuid
from typing import Any, Optional, Tuple

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def schemas_supported() -> bool:
    """
    SQLite 没有 schema 概念，只有 PostgreSQL 按领域分 schema

    在模型模块导入时按全局 ``settings.database_url`` 求值一次，表结构跟随
    settings 而不是实际使用的 ``DatabaseManager`` 的 URL。显式构造
    ``DatabaseManager(url)`` 时，url 的方言须与 settings 一致。
    """
    from hwboard.common.config import settings

    return not settings.database_url.startswith("sqlite")


def get_table_args(*args, schema: Optional[str] = None) -> Tuple[Any, ...]:
    """
    组装 ``__table_args__``

    Args:
        *args: 索引、约束
        schema: 所属领域 schema，SQLite 下丢弃
    """
    if schema and schemas_supported():
        return (*args, {"schema": schema})
    return tuple(args)


def get_table_ref(table_name: str, schema: Optional[str] = None, column: str = "id") -> str:
    """ForeignKey 目标，例如 ``homework.assignments.id``（SQLite 下为 ``assignments.id``）"""
    if schema and schemas_supported():
        return f"{schema}.{table_name}.{column}"
    return f"{table_name}.{column}"


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """所有模型共享同一个 metadata，create_tables 一次建全"""


class UUIDMixin:
    """字符串 UUID 主键；调用方给定 id 时沿用，撤销/重做需要稳定的 id"""

    id: Mapped[str] = mapped_column(primary_key=True, default=new_id)
