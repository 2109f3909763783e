"""
用户行为记录模型
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from database.models.base import BaseModel


class UserEngagement(BaseModel):
    """决策流程各步骤的用户行为记录表"""
    __tablename__ = "user_engagements"

    # 外键
    decision_id = Column(
        Integer,
        ForeignKey("decisions.id", ondelete="SET NULL"),
        nullable=True,
        comment="关联决策ID"
    )
    user_id = Column(Integer, nullable=True, comment="用户ID")

    # 行为信息
    action_type = Column(String(50), nullable=False, comment="行为类型（如 define, criteria, alternatives, results）")
    duration = Column(Integer, nullable=True, comment="停留时长（秒）")
    step_index = Column(Integer, nullable=True, comment="步骤序号")

    # 关系定义
    decision = relationship("Decision", back_populates="engagements")

    # 索引
    __table_args__ = (
        Index('idx_engagement_decision', 'decision_id'),
        Index('idx_engagement_action', 'action_type'),
        {'comment': '用户行为记录表'},
    )

    def __repr__(self):
        return f"<UserEngagement(id={self.id}, action='{self.action_type}')>"
