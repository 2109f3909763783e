"""
用户评价模型
"""
from sqlalchemy import Column, Integer, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship

from database.models.base import BaseModel


class Feedback(BaseModel):
    """决策结果评价表"""
    __tablename__ = "feedbacks"

    # 外键
    decision_id = Column(
        Integer,
        ForeignKey("decisions.id", ondelete="CASCADE"),
        nullable=False,
        comment="所属决策ID"
    )
    user_id = Column(Integer, nullable=True, comment="评价者ID")

    # 评价内容
    utility_rating = Column(Integer, nullable=False, comment="实用性评分（1-10）")
    testimonial = Column(Text, comment="评价内容")
    allow_public_display = Column(Boolean, default=False, nullable=False, comment="是否允许公开展示")

    # 关系定义
    decision = relationship("Decision", back_populates="feedbacks")

    # 索引
    __table_args__ = (
        Index('idx_feedback_decision', 'decision_id'),
        {'comment': '用户评价表'},
    )

    def __repr__(self):
        return f"<Feedback(id={self.id}, rating={self.utility_rating})>"
