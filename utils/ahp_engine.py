"""
AHP计算引擎 - 层次分析法核心数学模块

- 由上三角成对比较构建互反判断矩阵
- 幂迭代法估计主特征向量（优先级向量）
- 一致性比率 (CR) 计算
- 按准则权重合成方案总排名

所有函数均为纯函数，无I/O，无共享状态。
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# 随机一致性指标 RI，按矩阵阶数 n 索引
RANDOM_INDEX = (0.0, 0.0, 0.0, 0.58, 0.90, 1.12, 1.24, 1.32, 1.41, 1.45, 1.49)

# 幂迭代参数（可调）
MAX_ITERATIONS = 20
CONVERGENCE_TOLERANCE = 1e-10

# CR <= 0.1 视为判断一致
CONSISTENCY_THRESHOLD = 0.1

MAX_MATRIX_SIZE = len(RANDOM_INDEX) - 1

Comparison = Tuple[int, int, float]


def utc_now_iso() -> str:
    """当前UTC时间的ISO-8601文本（带 +00:00 偏移）"""
    return datetime.now(timezone.utc).isoformat()


class AHPEngineError(ValueError):
    """AHP引擎错误基类"""


class InvalidComparisonIndexError(AHPEngineError):
    """比较索引越界或不在上三角"""


class InvalidComparisonValueError(AHPEngineError):
    """比较值非正或非有限数"""


class DegenerateMatrixError(AHPEngineError):
    """退化矩阵 - 无法计算优先级或一致性"""


class MatrixSizeError(AHPEngineError):
    """矩阵阶数不合法（非方阵、与ID列表不符或超出RI表）"""


class IncompleteDecisionError(AHPEngineError):
    """决策不完整，不能计算总排名"""


@dataclass(frozen=True)
class Item:
    """准则或方案：id + 显示名称"""
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Item':
        return cls(id=str(data['id']), name=data['name'])


Criterion = Item
Alternative = Item


@dataclass(frozen=True)
class ComparisonMatrix:
    """判断矩阵及其优先级向量和一致性比率

    构造时矩阵转为嵌套元组、优先级转为元组，实例可哈希且不可修改。
    """
    matrix: Tuple[Tuple[float, ...], ...] = ()
    priorities: Tuple[float, ...] = ()
    consistency_ratio: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'matrix', tuple(tuple(float(v) for v in row) for row in self.matrix))
        object.__setattr__(self, 'priorities', tuple(float(v) for v in self.priorities))
        object.__setattr__(self, 'consistency_ratio', float(self.consistency_ratio))

    @property
    def size(self) -> int:
        return len(self.matrix)

    @property
    def is_consistent(self) -> bool:
        return self.consistency_ratio <= CONSISTENCY_THRESHOLD

    def to_dict(self) -> Dict:
        return {
            'matrix': [list(row) for row in self.matrix],
            'priorities': list(self.priorities),
            'consistencyRatio': self.consistency_ratio,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'ComparisonMatrix':
        if not data:
            return cls()
        return cls(
            matrix=[[float(v) for v in row] for row in data.get('matrix') or []],
            priorities=[float(v) for v in data.get('priorities') or []],
            consistency_ratio=float(data.get('consistencyRatio', 0.0)),
        )


@dataclass(frozen=True)
class Decision:
    """
    决策聚合根，每次编辑都生成新的实例

    准则和方案保存为元组，alternative_comparisons 与 overall_ranking
    包装为只读映射，构造后不能原地修改。只读映射不可哈希，
    因此 Decision 只支持相等比较，不能作为字典键或集合元素。
    """
    __hash__ = None

    name: str = ""
    criteria: Tuple[Item, ...] = ()
    alternatives: Tuple[Item, ...] = ()
    criteria_comparisons: ComparisonMatrix = field(default_factory=ComparisonMatrix)
    alternative_comparisons: Mapping[str, ComparisonMatrix] = field(default_factory=dict)
    overall_ranking: Optional[Mapping[str, float]] = None
    created_at: str = field(default_factory=utc_now_iso)
    category: str = "other"
    completion_time: Optional[int] = None
    user_id: Optional[int] = None
    id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'criteria', tuple(self.criteria))
        object.__setattr__(self, 'alternatives', tuple(self.alternatives))
        object.__setattr__(
            self, 'alternative_comparisons', MappingProxyType(dict(self.alternative_comparisons))
        )
        if self.overall_ranking is not None:
            object.__setattr__(
                self, 'overall_ranking', MappingProxyType(dict(self.overall_ranking))
            )

    @property
    def criteria_ids(self) -> List[str]:
        return [c.id for c in self.criteria]

    @property
    def alternative_ids(self) -> List[str]:
        return [a.id for a in self.alternatives]

    def to_dict(self) -> Dict:
        data = {
            'name': self.name,
            'criteria': [c.to_dict() for c in self.criteria],
            'alternatives': [a.to_dict() for a in self.alternatives],
            'criteriaComparisons': self.criteria_comparisons.to_dict(),
            'alternativeComparisons': {
                cid: comp.to_dict() for cid, comp in self.alternative_comparisons.items()
            },
            'createdAt': self.created_at,
            'category': self.category,
        }
        if self.overall_ranking is not None:
            data['overallRanking'] = dict(self.overall_ranking)
        if self.completion_time is not None:
            data['completionTime'] = self.completion_time
        if self.user_id is not None:
            data['userId'] = self.user_id
        if self.id is not None:
            data['id'] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Decision':
        ranking = data.get('overallRanking')
        return cls(
            name=data.get('name', ""),
            criteria=tuple(Item.from_dict(c) for c in data.get('criteria') or []),
            alternatives=tuple(Item.from_dict(a) for a in data.get('alternatives') or []),
            criteria_comparisons=ComparisonMatrix.from_dict(data.get('criteriaComparisons')),
            alternative_comparisons={
                cid: ComparisonMatrix.from_dict(comp)
                for cid, comp in (data.get('alternativeComparisons') or {}).items()
            },
            overall_ranking={k: float(v) for k, v in ranking.items()} if ranking else None,
            created_at=data.get('createdAt') or utc_now_iso(),
            category=data.get('category') or "other",
            completion_time=data.get('completionTime'),
            user_id=data.get('userId'),
            id=data.get('id'),
        )


def equal_importance_matrix(n: int) -> np.ndarray:
    """n阶全1矩阵：所有成对比较均为同等重要"""
    if n < 0:
        raise MatrixSizeError(f"矩阵阶数不能为负: {n}")
    return np.ones((n, n), dtype=float)


def _as_square(matrix) -> np.ndarray:
    arr = np.asarray(matrix, dtype=float)
    if arr.size == 0:
        return np.zeros((0, 0), dtype=float)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise MatrixSizeError(f"判断矩阵必须是方阵，当前形状: {arr.shape}")
    return arr


def build_comparison_matrix(n: int, comparisons: Iterable[Comparison]) -> np.ndarray:
    """
    由稀疏的上三角成对比较构建互反判断矩阵

    未给出的成对比较保持"同等重要"(1)。

    Args:
        n: 矩阵阶数
        comparisons: (row, col, value) 三元组，要求 0 <= row < col < n，
            value 表示 row 比 col 重要 value 倍

    Returns:
        n x n 互反矩阵

    Raises:
        InvalidComparisonIndexError: 索引越界或 row >= col
        InvalidComparisonValueError: value 非正或非有限数
    """
    matrix = equal_importance_matrix(n)

    for row, col, value in comparisons:
        if not (0 <= row < col < n):
            raise InvalidComparisonIndexError(
                f"无效的比较索引 ({row}, {col})，要求 0 <= row < col < {n}"
            )
        value = float(value)
        if not math.isfinite(value) or value <= 0:
            raise InvalidComparisonValueError(f"比较值必须是正数，当前值: {value}")
        matrix[row, col] = value
        matrix[col, row] = 1.0 / value

    return matrix


def matrix_to_comparisons(matrix) -> List[Comparison]:
    """提取方阵上三角的成对比较三元组"""
    arr = _as_square(matrix)
    n = arr.shape[0]
    return [(i, j, float(arr[i, j])) for i in range(n) for j in range(i + 1, n)]


def estimate_priorities(matrix) -> np.ndarray:
    """
    幂迭代法估计主特征向量

    从均匀向量出发，每次 v' = normalize(M · v)，最多 MAX_ITERATIONS 次，
    最大分量变化小于 CONVERGENCE_TOLERANCE 时提前结束。

    Returns:
        和为1的非负优先级向量

    Raises:
        DegenerateMatrixError: 归一化和为0或非有限数
    """
    arr = _as_square(matrix)
    n = arr.shape[0]
    if n == 0:
        return np.zeros(0, dtype=float)

    vector = np.full(n, 1.0 / n)
    for _ in range(MAX_ITERATIONS):
        product = arr @ vector
        total = product.sum()
        if not np.isfinite(total) or total <= 0:
            raise DegenerateMatrixError("退化矩阵：无法归一化优先级向量")
        product = product / total

        change = np.max(np.abs(product - vector))
        vector = product
        if change < CONVERGENCE_TOLERANCE:
            break
    else:
        logger.debug(f"幂迭代在 {MAX_ITERATIONS} 次内未收敛到 {CONVERGENCE_TOLERANCE}")

    return vector


def consistency_ratio(matrix, priorities) -> float:
    """
    计算一致性比率 CR = CI / RI

    λmax = (1/n) Σ (M·w)_i / w_i，CI = (λmax - n) / (n - 1)。
    n <= 2 时恒为0。

    Raises:
        MatrixSizeError: n 超出RI表或优先级长度不符
        DegenerateMatrixError: 存在为0的优先级分量
    """
    arr = _as_square(matrix)
    weights = np.asarray(priorities, dtype=float)
    n = arr.shape[0]

    if weights.shape != (n,):
        raise MatrixSizeError(f"优先级向量长度 {weights.shape} 与矩阵阶数 {n} 不符")
    if n <= 2:
        return 0.0
    if n > MAX_MATRIX_SIZE:
        raise MatrixSizeError(f"矩阵阶数 {n} 超出RI表范围 (最大 {MAX_MATRIX_SIZE})")
    if np.any(weights == 0):
        raise DegenerateMatrixError("退化矩阵：优先级分量为0，无法计算一致性")

    lambda_max = float(np.mean((arr @ weights) / weights))
    if not math.isfinite(lambda_max):
        raise DegenerateMatrixError("退化矩阵：λmax 不是有限数")

    ci = (lambda_max - n) / (n - 1)
    cr = ci / RANDOM_INDEX[n]
    # 完全一致矩阵的浮点误差可能略小于0
    return max(cr, 0.0)


def evaluate_matrix(matrix) -> ComparisonMatrix:
    """由稠密矩阵计算优先级和一致性比率"""
    arr = _as_square(matrix)
    if arr.shape[0] > MAX_MATRIX_SIZE:
        raise MatrixSizeError(f"矩阵阶数 {arr.shape[0]} 超出RI表范围 (最大 {MAX_MATRIX_SIZE})")
    priorities = estimate_priorities(arr)
    cr = consistency_ratio(arr, priorities)
    return ComparisonMatrix(
        matrix=arr.tolist(),
        priorities=priorities.tolist(),
        consistency_ratio=cr,
    )


def process_comparisons(n: int, comparisons: Iterable[Comparison]) -> ComparisonMatrix:
    """构建矩阵 → 估计优先级 → 计算CR，编辑层每次修改判断后调用"""
    return evaluate_matrix(build_comparison_matrix(n, comparisons))


def _index_of(ids: Sequence[str]) -> Dict[str, int]:
    index = {item_id: i for i, item_id in enumerate(ids)}
    if len(index) != len(ids):
        raise ValueError(f"ID列表存在重复: {list(ids)}")
    return index


def reproject_matrix(
    old: Optional[ComparisonMatrix],
    old_ids: Sequence[str],
    new_ids: Sequence[str]
) -> ComparisonMatrix:
    """
    准则/方案集合变化后按ID重新投影判断矩阵

    两个列表中都存在的ID之间的判断按新位置保留；
    涉及新增ID的判断为"同等重要"，已删除ID的判断被丢弃。

    Args:
        old: 原判断矩阵（可为None或空）
        old_ids: 原矩阵行/列对应的ID
        new_ids: 新的ID顺序

    Returns:
        重新计算后的判断矩阵
    """
    new_index = _index_of(new_ids)
    matrix = equal_importance_matrix(len(new_ids))

    if old is not None and old.matrix and old_ids:
        old_matrix = _as_square(old.matrix)
        if old_matrix.shape[0] != len(old_ids):
            raise MatrixSizeError(
                f"原矩阵阶数 {old_matrix.shape[0]} 与ID数量 {len(old_ids)} 不符"
            )
        surviving = [
            (old_i, new_index[item_id])
            for old_i, item_id in enumerate(old_ids)
            if item_id in new_index
        ]
        for old_i, new_i in surviving:
            for old_j, new_j in surviving:
                if old_i != old_j:
                    matrix[new_i, new_j] = old_matrix[old_i, old_j]

    return evaluate_matrix(matrix)


def is_decision_complete(decision: Decision) -> bool:
    """准则矩阵与准则数一致，且每个准则都有与方案数一致的方案矩阵"""
    if decision.criteria_comparisons.size != len(decision.criteria):
        return False
    for criterion in decision.criteria:
        comparison = decision.alternative_comparisons.get(criterion.id)
        if comparison is None or comparison.size != len(decision.alternatives):
            return False
    return True


def synthesize_overall_ranking(decision: Decision) -> Dict[str, float]:
    """
    合成方案总得分

    score(a) = Σ_c  w(c) · p(a | c)

    Raises:
        IncompleteDecisionError: 决策不完整
    """
    if not is_decision_complete(decision):
        raise IncompleteDecisionError(f"决策 '{decision.name}' 不完整，无法计算总排名")

    n_alternatives = len(decision.alternatives)
    criteria_weights = np.asarray(decision.criteria_comparisons.priorities, dtype=float)
    if criteria_weights.shape != (len(decision.criteria),):
        raise IncompleteDecisionError("准则优先级向量长度与准则数量不符")

    local = np.zeros((n_alternatives, len(decision.criteria)), dtype=float)
    for j, criterion in enumerate(decision.criteria):
        priorities = decision.alternative_comparisons[criterion.id].priorities
        if len(priorities) != n_alternatives:
            raise IncompleteDecisionError(f"准则 '{criterion.name}' 下的方案优先级不完整")
        local[:, j] = priorities

    scores = local @ criteria_weights if len(decision.criteria) else np.zeros(n_alternatives)
    return {alt.id: float(score) for alt, score in zip(decision.alternatives, scores)}


def with_overall_ranking(decision: Decision) -> Decision:
    """返回附带总排名的新决策"""
    return replace(decision, overall_ranking=synthesize_overall_ranking(decision))
