"""
结果导出测试
"""
from dataclasses import replace

import pytest

from utils.ahp_engine import IncompleteDecisionError
from utils.decision_editor import add_alternative, finalize_decision
from utils.results_exporter import (
    build_priority_breakdown,
    build_ranking_table,
    describe_judgments,
    export_calculations,
    export_filename,
    ranking_to_csv,
)


def test_ranking_table_sorted_by_score(car_decision):
    table = build_ranking_table(finalize_decision(car_decision))

    assert list(table.columns) == ['rank', 'alternative_id', 'alternative', 'score']
    assert table['alternative_id'].tolist() == ['a', 'b']
    assert table['rank'].tolist() == [1, 2]
    assert table['score'].tolist() == pytest.approx([0.525, 0.475])


def test_ranking_table_computes_missing_ranking(car_decision):
    assert car_decision.overall_ranking is None
    table = build_ranking_table(car_decision)
    assert table.iloc[0]['alternative'] == 'A'


def test_ranking_table_incomplete_decision(car_decision):
    decision = replace(car_decision, alternative_comparisons={})
    with pytest.raises(IncompleteDecisionError):
        build_ranking_table(decision)


def test_priority_breakdown(car_decision):
    df = build_priority_breakdown(car_decision)

    assert list(df.columns) == ['Cost', 'Quality', 'total']
    assert df.index.tolist() == ['A', 'B']
    assert df.loc['A', 'Cost'] == pytest.approx(0.45)
    assert df.loc['B', 'Quality'] == pytest.approx(0.175)
    assert df['total'].tolist() == pytest.approx([0.525, 0.475])


def test_export_calculations(car_decision):
    exported = export_calculations(finalize_decision(car_decision))

    assert exported['name'] == 'Buy a car'
    assert exported['criteria']['items'] == ['Cost', 'Quality']
    assert exported['criteria']['priorities'] == pytest.approx([0.75, 0.25])
    assert 'consistencyRatio' in exported['criteria']

    matrices = exported['alternatives']['matricesByCriteria']
    assert [m['criterion'] for m in matrices] == ['Cost', 'Quality']
    assert matrices[1]['priorities'] == pytest.approx([0.3, 0.7])

    assert exported['overallRanking'][0]['alternative'] == 'A'
    assert exported['overallRanking'][0]['score'] == pytest.approx(0.525)
    assert exported['consistency']['acceptable'] is True
    assert exported['criteria']['judgments'] == ['Cost 比 Quality 重要 3 倍（稍微重要）']
    assert len(matrices[0]['judgments']) == 1


def test_export_calculations_incomplete_decision(car_decision):
    """不完整的决策仍可导出已有矩阵，总排名为空"""
    decision = replace(car_decision, alternative_comparisons={})
    exported = export_calculations(decision)

    assert exported['overallRanking'] == []
    assert exported['criteria']['items'] == ['Cost', 'Quality']
    assert exported['criteria']['judgments'] == ['Cost 比 Quality 重要 3 倍（稍微重要）']
    assert exported['alternatives']['matricesByCriteria'] == []
    assert exported['consistency']['complete'] is False
    assert exported['timestamp'].endswith('+00:00')


def test_describe_judgments_size_mismatch(car_decision):
    assert describe_judgments(car_decision.criteria[:1], car_decision.criteria_comparisons) == []


def test_ranking_to_csv(car_decision):
    lines = ranking_to_csv(car_decision).strip().splitlines()
    assert lines[0] == 'rank,alternative_id,alternative,score'
    assert lines[1].startswith('1,a,A,0.52')
    assert len(lines) == 3


def test_ranking_with_new_alternative_ties(car_decision):
    decision = add_alternative(car_decision, "C", alternative_id="c")
    table = build_ranking_table(decision)
    assert table['score'].sum() == pytest.approx(1.0)
    assert len(table) == 3


@pytest.mark.parametrize("name, extension, expected", [
    ("Buy a car", "json", "ahp-Buy-a-car.json"),
    ("  Hire   someone ", "csv", "ahp-Hire-someone.csv"),
    ("", "json", "ahp-decision.json"),
])
def test_export_filename(car_decision, name, extension, expected):
    assert export_filename(replace(car_decision, name=name), extension) == expected
