"""
数据库模型包初始化
"""
from database.models.base import Base, BaseModel, TimestampMixin

# 决策
from database.models.decision import Decision, DecisionCategory

# 评价与行为记录
from database.models.feedback import Feedback
from database.models.engagement import UserEngagement

__all__ = [
    # 基础类
    "Base",
    "BaseModel",
    "TimestampMixin",

    # 决策
    "Decision",
    "DecisionCategory",

    # 评价与行为记录
    "Feedback",
    "UserEngagement",
]
