"""
Pydantic Schemas - Data Validation Layer
"""

from database.schemas.decision import (
    DECISION_CATEGORIES,
    ItemSchema,
    ComparisonMatrixSchema,
    DecisionDraft,
    DecisionCreate,
    DecisionUpdate,
    ComparisonRequest
)

from database.schemas.feedback import (
    FeedbackBase,
    FeedbackCreate,
    FeedbackResponse,
    EngagementCreate
)

__all__ = [
    # Decision schemas
    "DECISION_CATEGORIES",
    "ItemSchema",
    "ComparisonMatrixSchema",
    "DecisionDraft",
    "DecisionCreate",
    "DecisionUpdate",
    "ComparisonRequest",

    # Feedback schemas
    "FeedbackBase",
    "FeedbackCreate",
    "FeedbackResponse",
    "EngagementCreate",
]
