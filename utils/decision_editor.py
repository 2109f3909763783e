"""
决策编辑器 - 准则/方案的增删改与判断录入

每个操作都返回新的 Decision：
- 准则或方案集合变化时，按ID重新投影已有判断矩阵
- 录入单个判断后重新计算对应矩阵的优先级和一致性比率
"""

import logging
import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from utils.ahp_engine import (
    ComparisonMatrix,
    Decision,
    IncompleteDecisionError,
    Item,
    is_decision_complete,
    matrix_to_comparisons,
    process_comparisons,
    reproject_matrix,
    synthesize_overall_ranking,
    with_overall_ranking,
)

logger = logging.getLogger(__name__)


class UnknownItemError(KeyError):
    """准则或方案ID不存在"""


def new_item_id() -> str:
    """生成准则/方案ID"""
    return uuid.uuid4().hex[:8]


def create_empty_decision(name: str = "", category: str = "other") -> Decision:
    """创建空决策：无准则、无方案、零阶矩阵"""
    return Decision(name=name, category=category)


def _position(items: Tuple[Item, ...], item_id: str, kind: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    raise UnknownItemError(f"{kind} '{item_id}' 不存在")


# ============ 准则 ============

def set_criteria(decision: Decision, criteria: Iterable[Item]) -> Decision:
    """
    替换准则列表

    - 准则判断矩阵按ID重新投影
    - 保留的准则沿用原方案矩阵，新准则的方案矩阵初始化为同等重要
    - 已删除准则的方案矩阵被丢弃
    """
    criteria = tuple(criteria)
    new_ids = [c.id for c in criteria]

    criteria_comparisons = reproject_matrix(
        decision.criteria_comparisons, decision.criteria_ids, new_ids
    )

    alternative_ids = decision.alternative_ids
    alternative_comparisons: Dict[str, ComparisonMatrix] = {}
    for criterion_id in new_ids:
        existing = decision.alternative_comparisons.get(criterion_id)
        if existing is not None and existing.size == len(alternative_ids):
            alternative_comparisons[criterion_id] = existing
        else:
            alternative_comparisons[criterion_id] = reproject_matrix(None, [], alternative_ids)

    logger.debug(f"准则更新: {decision.criteria_ids} -> {new_ids}")
    return replace(
        decision,
        criteria=criteria,
        criteria_comparisons=criteria_comparisons,
        alternative_comparisons=alternative_comparisons,
        overall_ranking=None,
    )


def add_criterion(decision: Decision, name: str, criterion_id: Optional[str] = None) -> Decision:
    """添加准则"""
    if not name or not name.strip():
        raise ValueError("准则名称不能为空")
    item = Item(id=criterion_id or new_item_id(), name=name.strip())
    return set_criteria(decision, decision.criteria + (item,))


def rename_criterion(decision: Decision, criterion_id: str, name: str) -> Decision:
    """重命名准则，判断数据不变"""
    if not name or not name.strip():
        raise ValueError("准则名称不能为空")
    index = _position(decision.criteria, criterion_id, "准则")
    criteria = list(decision.criteria)
    criteria[index] = Item(id=criterion_id, name=name.strip())
    return replace(decision, criteria=tuple(criteria))


def remove_criterion(decision: Decision, criterion_id: str) -> Decision:
    """删除准则"""
    _position(decision.criteria, criterion_id, "准则")
    return set_criteria(decision, [c for c in decision.criteria if c.id != criterion_id])


# ============ 方案 ============

def set_alternatives(decision: Decision, alternatives: Iterable[Item]) -> Decision:
    """替换方案列表，并按ID重新投影每个准则下的方案矩阵"""
    alternatives = tuple(alternatives)
    old_ids = decision.alternative_ids
    new_ids = [a.id for a in alternatives]

    alternative_comparisons = {
        criterion_id: reproject_matrix(
            decision.alternative_comparisons.get(criterion_id), old_ids, new_ids
        )
        for criterion_id in decision.criteria_ids
    }

    logger.debug(f"方案更新: {old_ids} -> {new_ids}")
    return replace(
        decision,
        alternatives=alternatives,
        alternative_comparisons=alternative_comparisons,
        overall_ranking=None,
    )


def add_alternative(decision: Decision, name: str, alternative_id: Optional[str] = None) -> Decision:
    """添加方案"""
    if not name or not name.strip():
        raise ValueError("方案名称不能为空")
    item = Item(id=alternative_id or new_item_id(), name=name.strip())
    return set_alternatives(decision, decision.alternatives + (item,))


def rename_alternative(decision: Decision, alternative_id: str, name: str) -> Decision:
    """重命名方案，判断数据不变"""
    if not name or not name.strip():
        raise ValueError("方案名称不能为空")
    index = _position(decision.alternatives, alternative_id, "方案")
    alternatives = list(decision.alternatives)
    alternatives[index] = Item(id=alternative_id, name=name.strip())
    return replace(decision, alternatives=tuple(alternatives))


def remove_alternative(decision: Decision, alternative_id: str) -> Decision:
    """删除方案"""
    _position(decision.alternatives, alternative_id, "方案")
    return set_alternatives(decision, [a for a in decision.alternatives if a.id != alternative_id])


# ============ 判断录入 ============

def _apply_judgment(
    comparison: ComparisonMatrix,
    n: int,
    left: int,
    right: int,
    value: float
) -> ComparisonMatrix:
    if left == right:
        raise ValueError("不能比较元素与其自身")

    # 统一为上三角方向
    if left > right:
        left, right, value = right, left, 1.0 / value

    judgments = {
        (row, col): v for row, col, v in matrix_to_comparisons(comparison.matrix)
    } if comparison.size == n else {}
    judgments[(left, right)] = value

    return process_comparisons(n, [(row, col, v) for (row, col), v in judgments.items()])


def set_criteria_judgment(decision: Decision, left_id: str, right_id: str, value: float) -> Decision:
    """
    录入准则间的判断

    Args:
        left_id: 左边准则ID
        right_id: 右边准则ID
        value: 左边比右边重要的倍数
    """
    if value <= 0:
        raise ValueError(f"判断值必须是正数，当前值: {value}")
    left = _position(decision.criteria, left_id, "准则")
    right = _position(decision.criteria, right_id, "准则")

    criteria_comparisons = _apply_judgment(
        decision.criteria_comparisons, len(decision.criteria), left, right, value
    )
    return replace(decision, criteria_comparisons=criteria_comparisons, overall_ranking=None)


def set_alternative_judgment(
    decision: Decision,
    criterion_id: str,
    left_id: str,
    right_id: str,
    value: float
) -> Decision:
    """录入某一准则下方案间的判断"""
    if value <= 0:
        raise ValueError(f"判断值必须是正数，当前值: {value}")
    _position(decision.criteria, criterion_id, "准则")
    left = _position(decision.alternatives, left_id, "方案")
    right = _position(decision.alternatives, right_id, "方案")

    current = decision.alternative_comparisons.get(criterion_id, ComparisonMatrix())
    alternative_comparisons = dict(decision.alternative_comparisons)
    alternative_comparisons[criterion_id] = _apply_judgment(
        current, len(decision.alternatives), left, right, value
    )
    return replace(decision, alternative_comparisons=alternative_comparisons, overall_ranking=None)


# ============ 结果 ============

def finalize_decision(decision: Decision) -> Decision:
    """计算并附加总排名"""
    return with_overall_ranking(decision)


def ranked_alternatives(decision: Decision) -> List[Tuple[Item, float]]:
    """按总得分降序排列的方案"""
    ranking = decision.overall_ranking
    if ranking is None:
        ranking = synthesize_overall_ranking(decision)
    return sorted(
        ((alt, ranking.get(alt.id, 0.0)) for alt in decision.alternatives),
        key=lambda pair: pair[1],
        reverse=True
    )


def consistency_summary(decision: Decision) -> Dict:
    """
    汇总各判断矩阵的一致性

    Returns:
        {'criteria': CR, 'alternatives': {准则ID: CR}, 'inconsistent': [...], 'acceptable': bool}
    """
    inconsistent = []
    if decision.criteria_comparisons.size and not decision.criteria_comparisons.is_consistent:
        inconsistent.append('criteria')

    alternatives = {}
    for criterion in decision.criteria:
        comparison = decision.alternative_comparisons.get(criterion.id)
        if comparison is None:
            continue
        alternatives[criterion.id] = comparison.consistency_ratio
        if not comparison.is_consistent:
            inconsistent.append(criterion.id)

    return {
        'criteria': decision.criteria_comparisons.consistency_ratio,
        'alternatives': alternatives,
        'inconsistent': inconsistent,
        'acceptable': not inconsistent,
        'complete': is_decision_complete(decision),
    }


def prepare_for_save(decision: Decision) -> Decision:
    """保存前处理：完整的决策附带总排名，不完整的清除旧排名"""
    try:
        return finalize_decision(decision)
    except IncompleteDecisionError:
        logger.info(f"决策 '{decision.name}' 不完整，保存时不计算总排名")
        return replace(decision, overall_ranking=None)
