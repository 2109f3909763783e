"""
决策模型定义
"""
import enum

from sqlalchemy import Column, String, Integer, JSON, Enum, Index
from sqlalchemy.orm import relationship

from database.models.base import BaseModel


class DecisionCategory(enum.Enum):
    """决策类别枚举"""
    BUSINESS = "business"
    PERSONAL = "personal"
    EDUCATION = "education"
    HEALTH = "health"
    TECHNOLOGY = "technology"
    FINANCE = "finance"
    OTHER = "other"


class Decision(BaseModel):
    """AHP决策主表 - 判断矩阵以JSON保存，由计算引擎生成"""
    __tablename__ = "decisions"

    # 基本信息
    name = Column(String(255), nullable=False, comment="决策名称")
    user_id = Column(Integer, nullable=True, comment="创建者ID")
    category = Column(
        Enum(DecisionCategory),
        default=DecisionCategory.OTHER,
        nullable=False,
        comment="决策类别"
    )
    completion_time = Column(Integer, nullable=True, comment="完成用时（秒）")

    # AHP结构
    criteria = Column(JSON, nullable=False, default=list, comment="准则列表")
    alternatives = Column(JSON, nullable=False, default=list, comment="方案列表")
    criteria_comparisons = Column(JSON, nullable=False, default=dict, comment="准则判断矩阵")
    alternative_comparisons = Column(JSON, nullable=False, default=dict, comment="各准则下的方案判断矩阵")
    overall_ranking = Column(JSON, nullable=True, comment="方案总排名")

    # 关系定义
    feedbacks = relationship("Feedback", back_populates="decision", cascade="all, delete-orphan")
    engagements = relationship("UserEngagement", back_populates="decision")

    # 索引
    __table_args__ = (
        Index('idx_decision_user', 'user_id'),
        Index('idx_decision_category', 'category'),
        {'comment': 'AHP决策表'},
    )

    def __repr__(self):
        return f"<Decision(id={self.id}, name='{self.name}')>"
