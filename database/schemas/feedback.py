"""
评价与行为记录 Pydantic Schema
"""
from datetime import datetime
from typing import Optional

from pydantic import Field

from database.schemas.decision import CamelModel


class FeedbackBase(CamelModel):
    """评价基础 Schema"""
    decision_id: int = Field(..., description="所属决策ID")
    user_id: Optional[int] = Field(None, description="评价者ID")
    utility_rating: int = Field(..., ge=1, le=10, description="实用性评分（1-10）")
    testimonial: Optional[str] = Field(None, max_length=2000, description="评价内容")
    allow_public_display: bool = Field(False, description="是否允许公开展示")


class FeedbackCreate(FeedbackBase):
    """创建评价 Schema"""
    pass


class FeedbackResponse(FeedbackBase):
    """评价响应 Schema"""
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class EngagementCreate(CamelModel):
    """用户行为记录 Schema"""
    user_id: Optional[int] = Field(None, description="用户ID")
    decision_id: Optional[int] = Field(None, description="关联决策ID")
    action_type: str = Field(..., min_length=1, max_length=50, description="行为类型")
    duration: Optional[int] = Field(None, ge=0, description="停留时长（秒）")
    step_index: Optional[int] = Field(None, ge=0, description="步骤序号")
