"""
结果导出模块 - 排名表、优先级分解和计算过程导出
"""

from typing import Any, Dict, List, Sequence

import pandas as pd

from utils.ahp_engine import ComparisonMatrix, Decision, Item, is_decision_complete, utc_now_iso
from utils.ahp_scale import describe_comparison, generate_pairs
from utils.decision_editor import consistency_summary, ranked_alternatives


def build_ranking_table(decision: Decision) -> pd.DataFrame:
    """
    构建方案排名表

    Returns:
        列为 rank, alternative_id, alternative, score 的DataFrame，按得分降序
    """
    rows = [
        {
            'rank': rank,
            'alternative_id': alt.id,
            'alternative': alt.name,
            'score': score,
        }
        for rank, (alt, score) in enumerate(ranked_alternatives(decision), start=1)
    ]
    return pd.DataFrame(rows, columns=['rank', 'alternative_id', 'alternative', 'score'])


def build_priority_breakdown(decision: Decision) -> pd.DataFrame:
    """
    构建优先级分解表

    行为方案，列为各准则下的局部优先级乘以准则权重后的贡献，
    最后一列 total 为总得分。
    """
    criteria_weights = decision.criteria_comparisons.priorities
    data = {}
    for j, criterion in enumerate(decision.criteria):
        comparison = decision.alternative_comparisons.get(criterion.id)
        local = comparison.priorities if comparison is not None else []
        weight = criteria_weights[j] if j < len(criteria_weights) else 0.0
        data[criterion.name] = [
            weight * (local[i] if i < len(local) else 0.0)
            for i in range(len(decision.alternatives))
        ]

    df = pd.DataFrame(data, index=[alt.name for alt in decision.alternatives])
    df.index.name = 'alternative'
    df['total'] = df.sum(axis=1)
    return df


def describe_judgments(items: Sequence[Item], comparison: ComparisonMatrix) -> List[str]:
    """矩阵上三角各判断的文字描述；矩阵阶数与元素数不符时返回空列表"""
    if comparison.size != len(items):
        return []
    return [
        describe_comparison(comparison.matrix[i][j], left.name, right.name)
        for (i, left), (j, right) in generate_pairs(list(enumerate(items)))
    ]


def export_calculations(decision: Decision) -> Dict[str, Any]:
    """
    导出完整的计算过程（准则矩阵、各准则下的方案矩阵、总排名）

    决策不完整时仍导出已有的矩阵和判断，overallRanking 为空列表。
    """
    names = {c.id: c.name for c in decision.criteria}
    ranking = build_ranking_table(decision) if is_decision_complete(decision) else None

    return {
        'name': decision.name,
        'timestamp': utc_now_iso(),
        'criteria': {
            'items': [c.name for c in decision.criteria],
            **decision.criteria_comparisons.to_dict(),
            'judgments': describe_judgments(decision.criteria, decision.criteria_comparisons),
        },
        'alternatives': {
            'items': [a.name for a in decision.alternatives],
            'matricesByCriteria': [
                {
                    'criterion': names[cid],
                    **comparison.to_dict(),
                    'judgments': describe_judgments(decision.alternatives, comparison),
                }
                for cid, comparison in decision.alternative_comparisons.items()
                if cid in names
            ],
        },
        'consistency': consistency_summary(decision),
        'overallRanking': [
            {'alternative': row['alternative'], 'score': float(row['score'])}
            for row in ranking.to_dict('records')
        ] if ranking is not None else [],
    }


def ranking_to_csv(decision: Decision) -> str:
    """排名表导出为CSV文本"""
    return build_ranking_table(decision).to_csv(index=False)


def export_filename(decision: Decision, extension: str = "json") -> str:
    """导出文件名：ahp-<决策名>.<扩展名>"""
    slug = "-".join(decision.name.split()) or "decision"
    return f"ahp-{slug}.{extension}"
