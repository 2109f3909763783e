"""
决策编辑器测试
"""
from dataclasses import replace

import pytest

from utils.ahp_engine import IncompleteDecisionError, Item
from utils.decision_editor import (
    UnknownItemError,
    add_alternative,
    add_criterion,
    consistency_summary,
    create_empty_decision,
    finalize_decision,
    prepare_for_save,
    ranked_alternatives,
    remove_alternative,
    remove_criterion,
    rename_alternative,
    rename_criterion,
    set_alternative_judgment,
    set_alternatives,
    set_criteria,
    set_criteria_judgment,
)


def test_empty_decision():
    decision = create_empty_decision("Pick a vendor", category="business")
    assert decision.name == "Pick a vendor"
    assert decision.category == "business"
    assert decision.criteria == ()
    assert decision.criteria_comparisons.size == 0
    assert decision.overall_ranking is None


class TestCriteriaEditing:

    def test_add_criterion_grows_matrices(self):
        decision = add_alternative(create_empty_decision(), "A", alternative_id="a")
        decision = add_alternative(decision, "B", alternative_id="b")
        decision = add_criterion(decision, "Cost", criterion_id="cost")
        decision = add_criterion(decision, "Speed", criterion_id="speed")

        assert decision.criteria_ids == ["cost", "speed"]
        assert decision.criteria_comparisons.matrix == ((1.0, 1.0), (1.0, 1.0))
        assert set(decision.alternative_comparisons) == {"cost", "speed"}
        assert decision.alternative_comparisons["speed"].size == 2

    def test_generated_ids_are_unique(self):
        decision = add_criterion(create_empty_decision(), "Cost")
        decision = add_criterion(decision, "Cost")
        first, second = decision.criteria
        assert first.id != second.id

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            add_criterion(create_empty_decision(), "   ")

    def test_remove_keeps_remaining_judgments(self, car_decision):
        decision = add_criterion(car_decision, "Safety", criterion_id="safety")
        assert decision.criteria_comparisons.matrix[0][1] == 3.0

        decision = remove_criterion(decision, "quality")
        assert decision.criteria_ids == ["cost", "safety"]
        assert decision.criteria_comparisons.matrix == ((1.0, 1.0), (1.0, 1.0))
        assert "quality" not in decision.alternative_comparisons
        assert decision.alternative_comparisons["cost"].matrix[0][1] == 1.5

    def test_reorder_follows_ids(self, car_decision):
        decision = set_criteria(car_decision, reversed(car_decision.criteria))
        assert decision.criteria_ids == ["quality", "cost"]
        assert decision.criteria_comparisons.matrix[1][0] == 3.0
        assert decision.criteria_comparisons.priorities == pytest.approx([0.25, 0.75])

    def test_rename_keeps_judgments(self, car_decision):
        decision = rename_criterion(car_decision, "cost", "Price")
        assert decision.criteria[0] == Item("cost", "Price")
        assert decision.criteria_comparisons == car_decision.criteria_comparisons

    def test_unknown_criterion(self, car_decision):
        with pytest.raises(UnknownItemError):
            remove_criterion(car_decision, "missing")


class TestAlternativeEditing:

    def test_add_alternative_extends_every_criterion(self, car_decision):
        decision = add_alternative(car_decision, "C", alternative_id="c")
        for criterion_id in ("cost", "quality"):
            comparison = decision.alternative_comparisons[criterion_id]
            assert comparison.size == 3
            assert comparison.matrix[2] == (1.0, 1.0, 1.0)
        assert decision.alternative_comparisons["cost"].matrix[0][1] == 1.5

    def test_remove_alternative(self, car_decision):
        decision = remove_alternative(car_decision, "a")
        assert decision.alternative_ids == ["b"]
        assert decision.alternative_comparisons["cost"].matrix == ((1.0,),)

    def test_set_alternatives_replaces_list(self, car_decision):
        decision = set_alternatives(car_decision, [Item("b", "B"), Item("d", "D")])
        assert decision.alternative_comparisons["quality"].matrix[0][1] == 1.0
        assert decision.overall_ranking is None

    def test_rename_alternative(self, car_decision):
        decision = rename_alternative(car_decision, "b", "Model B")
        assert decision.alternatives[1].name == "Model B"

    def test_unknown_alternative(self, car_decision):
        with pytest.raises(UnknownItemError):
            rename_alternative(car_decision, "zzz", "Z")


class TestJudgments:

    def test_criteria_judgment_recomputes_priorities(self, car_decision):
        assert car_decision.criteria_comparisons.priorities == pytest.approx([0.75, 0.25])
        assert car_decision.criteria_comparisons.consistency_ratio == 0

    def test_reversed_pair_stores_reciprocal(self, car_decision):
        decision = set_criteria_judgment(car_decision, "quality", "cost", 5)
        assert decision.criteria_comparisons.matrix[0][1] == pytest.approx(0.2)
        assert decision.criteria_comparisons.matrix[1][0] == 5.0

    def test_other_judgments_survive(self):
        decision = create_empty_decision()
        for name in ("x", "y", "z"):
            decision = add_criterion(decision, name.upper(), criterion_id=name)
        decision = set_criteria_judgment(decision, "x", "y", 3)
        decision = set_criteria_judgment(decision, "y", "z", 2)
        matrix = decision.criteria_comparisons.matrix
        assert matrix[0][1] == 3.0
        assert matrix[1][2] == 2.0
        assert matrix[0][2] == 1.0

    def test_alternative_judgment_per_criterion(self, car_decision):
        assert car_decision.alternative_comparisons["cost"].priorities == pytest.approx([0.6, 0.4])
        assert car_decision.alternative_comparisons["quality"].priorities == pytest.approx([0.3, 0.7])

    def test_self_comparison_rejected(self, car_decision):
        with pytest.raises(ValueError):
            set_criteria_judgment(car_decision, "cost", "cost", 3)

    def test_non_positive_value_rejected(self, car_decision):
        with pytest.raises(ValueError):
            set_alternative_judgment(car_decision, "cost", "a", "b", 0)

    def test_edit_clears_ranking(self, car_decision):
        decision = finalize_decision(car_decision)
        assert decision.overall_ranking is not None
        decision = set_criteria_judgment(decision, "cost", "quality", 1)
        assert decision.overall_ranking is None


class TestResults:

    def test_finalize_and_rank(self, car_decision):
        decision = finalize_decision(car_decision)
        assert decision.overall_ranking == pytest.approx({"a": 0.525, "b": 0.475})

        ranked = ranked_alternatives(decision)
        assert [alt.id for alt, _ in ranked] == ["a", "b"]

    def test_finalize_incomplete_decision(self):
        decision = add_criterion(create_empty_decision(), "Cost", criterion_id="cost")
        decision = replace(decision, alternatives=(Item("a", "A"),))
        with pytest.raises(IncompleteDecisionError):
            finalize_decision(decision)
        assert prepare_for_save(decision).overall_ranking is None

    def test_prepare_for_save_complete(self, car_decision):
        assert prepare_for_save(car_decision).overall_ranking["a"] == pytest.approx(0.525)

    def test_consistency_summary(self, car_decision):
        summary = consistency_summary(car_decision)
        assert summary["criteria"] == 0
        assert set(summary["alternatives"]) == {"cost", "quality"}
        assert summary["inconsistent"] == []
        assert summary["acceptable"] is True
        assert summary["complete"] is True

    def test_consistency_summary_flags_inconsistent_matrix(self):
        decision = create_empty_decision()
        for name in ("x", "y", "z"):
            decision = add_criterion(decision, name.upper(), criterion_id=name)
        decision = set_criteria_judgment(decision, "x", "y", 9)
        decision = set_criteria_judgment(decision, "y", "z", 9)
        decision = set_criteria_judgment(decision, "x", "z", 1 / 9)

        summary = consistency_summary(decision)
        assert summary["inconsistent"] == ["criteria"]
        assert summary["acceptable"] is False
