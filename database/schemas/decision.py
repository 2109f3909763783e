"""
决策 Pydantic Schema
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from database.models.decision import DecisionCategory
from utils.ahp_engine import Decision, MAX_MATRIX_SIZE

DECISION_CATEGORIES = [category.value for category in DecisionCategory]


class CamelModel(BaseModel):
    """驼峰字段名 Schema 基类（与前端JSON一致）"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ItemSchema(CamelModel):
    """准则/方案 Schema"""
    id: str = Field(..., min_length=1, max_length=64, description="ID")
    name: str = Field(..., min_length=1, max_length=200, description="名称")


class ComparisonMatrixSchema(CamelModel):
    """判断矩阵 Schema"""
    matrix: List[List[float]] = Field(default_factory=list, description="n x n 判断矩阵")
    priorities: List[float] = Field(default_factory=list, description="优先级向量")
    consistency_ratio: float = Field(0.0, description="一致性比率")

    @model_validator(mode='after')
    def validate_shape(self):
        """验证矩阵为方阵且优先级长度一致"""
        n = len(self.matrix)
        if any(len(row) != n for row in self.matrix):
            raise ValueError(f"判断矩阵必须是 {n} x {n} 方阵")
        if len(self.priorities) != n:
            raise ValueError(f"优先级向量长度 {len(self.priorities)} 与矩阵阶数 {n} 不符")
        return self


def _unique_ids(items: List[ItemSchema], kind: str) -> List[ItemSchema]:
    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise ValueError(f"{kind}ID不能重复")
    return items


class DecisionDraft(CamelModel):
    """决策草稿 Schema - 编辑中的决策，不要求最少准则/方案数"""
    name: str = Field("", max_length=255, description="决策名称")
    criteria: List[ItemSchema] = Field(default_factory=list, max_length=MAX_MATRIX_SIZE, description="准则")
    alternatives: List[ItemSchema] = Field(default_factory=list, max_length=MAX_MATRIX_SIZE, description="方案")
    criteria_comparisons: ComparisonMatrixSchema = Field(default_factory=ComparisonMatrixSchema)
    alternative_comparisons: Dict[str, ComparisonMatrixSchema] = Field(default_factory=dict)
    overall_ranking: Optional[Dict[str, float]] = Field(None, description="方案总排名")
    category: str = Field("other", description="决策类别")
    completion_time: Optional[int] = Field(None, ge=0, description="完成用时（秒）")
    user_id: Optional[int] = Field(None, description="创建者ID")
    created_at: Optional[str] = Field(None, description="创建时间（ISO-8601）")

    @field_validator('criteria')
    @classmethod
    def validate_criteria_ids(cls, v):
        """验证准则ID唯一"""
        return _unique_ids(v, "准则")

    @field_validator('alternatives')
    @classmethod
    def validate_alternative_ids(cls, v):
        """验证方案ID唯一"""
        return _unique_ids(v, "方案")

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        """验证决策类别"""
        if v not in DECISION_CATEGORIES:
            raise ValueError(f"决策类别必须是 {DECISION_CATEGORIES} 之一，当前值: {v}")
        return v

    @field_validator('created_at')
    @classmethod
    def validate_created_at(cls, v):
        """验证创建时间格式"""
        if v is not None:
            try:
                datetime.fromisoformat(v.replace('Z', '+00:00'))
            except ValueError:
                raise ValueError(f"创建时间必须是ISO-8601格式，当前值: {v}")
        return v

    def to_domain(self) -> Decision:
        """转换为计算引擎使用的 Decision"""
        return Decision.from_dict(self.model_dump(by_alias=True, exclude_none=True))


class DecisionCreate(DecisionDraft):
    """创建决策 Schema"""
    name: str = Field(..., min_length=1, max_length=255, description="决策名称")
    criteria: List[ItemSchema] = Field(..., min_length=2, max_length=MAX_MATRIX_SIZE, description="准则（至少2个）")
    alternatives: List[ItemSchema] = Field(..., min_length=2, max_length=MAX_MATRIX_SIZE, description="方案（至少2个）")


class DecisionUpdate(DecisionCreate):
    """更新决策 Schema - 整体替换"""
    pass


class ComparisonRequest(CamelModel):
    """判断矩阵计算请求 Schema"""
    n: int = Field(..., ge=0, le=MAX_MATRIX_SIZE, description="矩阵阶数")
    comparisons: List[Tuple[int, int, float]] = Field(default_factory=list, description="(row, col, value) 上三角判断")

    @field_validator('comparisons')
    @classmethod
    def validate_values(cls, v):
        """验证判断值为正数"""
        for row, col, value in v:
            if value <= 0:
                raise ValueError(f"({row}, {col}) 的判断值必须是正数，当前值: {value}")
        return v
