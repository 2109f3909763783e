"""
基础模型定义 - 主键、时间戳与字典转换
"""
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic.alias_generators import to_camel
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base, declared_attr


# 创建Base类
Base = declarative_base()


def utc_now() -> datetime:
    """当前UTC时间（不带时区，数据库统一按此保存）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """带时区的时间换算为不带时区的UTC时间，不带时区的视为UTC原样返回"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """时间戳混入类"""

    @declared_attr
    def created_at(self):
        return Column(DateTime, default=utc_now, nullable=False, comment="创建时间")

    @declared_attr
    def updated_at(self):
        return Column(
            DateTime,
            default=utc_now,
            onupdate=utc_now,
            nullable=False,
            comment="更新时间"
        )


class BaseModel(Base, TimestampMixin):
    """基础模型类"""
    __abstract__ = True

    # 所有模型都有id主键
    id = Column(Integer, primary_key=True, autoincrement=True, comment="主键ID")

    def to_dict(self, exclude: list = None, camel_case: bool = False) -> Dict[str, Any]:
        """
        将模型转换为字典

        Args:
            exclude: 要排除的字段列表
            camel_case: 是否将字段名转换为驼峰形式（API响应使用）

        Returns:
            字典格式的模型数据
        """
        exclude = exclude or []
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            # 处理datetime类型
            if isinstance(value, datetime):
                value = value.isoformat()
            key = to_camel(column.name) if camel_case else column.name
            result[key] = value

        return result

    def update_from_dict(self, data: Dict[str, Any], exclude: list = None):
        """
        从字典整体替换列值（只处理表列，忽略关系和未知键）

        Args:
            data: 以列名为键的数据字典
            exclude: 要排除的字段列表，默认排除主键和时间戳
        """
        exclude = exclude or ['id', 'created_at', 'updated_at']
        columns = set(self.__table__.columns.keys())

        for key, value in data.items():
            if key in columns and key not in exclude:
                setattr(self, key, value)

    def __repr__(self):
        """字符串表示"""
        return f"<{self.__class__.__name__}(id={self.id})>"
