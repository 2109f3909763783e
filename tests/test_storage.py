"""
决策存储测试
"""
from dataclasses import replace
from datetime import datetime

import pytest

from database.schemas import EngagementCreate, FeedbackCreate
from database.storage import DecisionStorage
from utils.decision_editor import prepare_for_save, rename_alternative


@pytest.fixture
def storage(clean_database):
    return DecisionStorage()


@pytest.fixture
def saved_decision(storage, car_decision):
    return storage.create_decision(prepare_for_save(car_decision))


class TestDecisionCrud:

    def test_create_assigns_id(self, saved_decision):
        assert saved_decision.id is not None
        assert saved_decision.overall_ranking == pytest.approx({"a": 0.525, "b": 0.475})

    def test_round_trip_keeps_matrices(self, storage, saved_decision, car_decision):
        loaded = storage.get_decision(saved_decision.id)

        assert loaded.name == "Buy a car"
        assert loaded.category == "personal"
        assert loaded.criteria == car_decision.criteria
        assert loaded.alternatives == car_decision.alternatives
        assert loaded.criteria_comparisons.matrix == car_decision.criteria_comparisons.matrix
        assert loaded.alternative_comparisons["quality"].priorities == pytest.approx([0.3, 0.7])

    def test_get_missing(self, storage):
        assert storage.get_decision(999) is None

    def test_list_filtered_by_user(self, storage, car_decision):
        storage.create_decision(replace(car_decision, user_id=1))
        storage.create_decision(replace(car_decision, user_id=2, name="Other"))

        assert len(storage.get_decisions()) == 2
        assert [d.name for d in storage.get_decisions(user_id=2)] == ["Other"]

    def test_update_replaces_wholesale(self, storage, saved_decision):
        edited = prepare_for_save(rename_alternative(saved_decision, "b", "Model B"))
        updated = storage.update_decision(saved_decision.id, edited)

        assert updated.id == saved_decision.id
        assert updated.alternatives[1].name == "Model B"
        assert storage.get_decision(saved_decision.id).alternatives[1].name == "Model B"

    def test_update_missing(self, storage, car_decision):
        assert storage.update_decision(42, car_decision) is None

    def test_incomplete_decision_saved_without_ranking(self, storage, car_decision):
        incomplete = prepare_for_save(replace(car_decision, alternative_comparisons={}))
        saved = storage.create_decision(incomplete)
        assert saved.overall_ranking is None

    def test_delete_cascades_feedback(self, storage, saved_decision):
        storage.create_feedback(FeedbackCreate(decision_id=saved_decision.id, utility_rating=9))

        assert storage.delete_decision(saved_decision.id) is True
        assert storage.get_decision(saved_decision.id) is None
        assert storage.get_feedbacks_by_decision(saved_decision.id) == []
        assert storage.delete_decision(saved_decision.id) is False


class TestFeedback:

    def test_create_feedback(self, storage, saved_decision):
        feedback = storage.create_feedback(FeedbackCreate(
            decision_id=saved_decision.id,
            utility_rating=8,
            testimonial="结果很直观",
            allow_public_display=True,
        ))

        assert feedback["decisionId"] == saved_decision.id
        assert feedback["utilityRating"] == 8
        assert feedback["allowPublicDisplay"] is True
        assert "createdAt" in feedback

    def test_feedback_for_missing_decision(self, storage):
        assert storage.create_feedback(FeedbackCreate(decision_id=7, utility_rating=5)) is None

    def test_public_feedbacks_only(self, storage, saved_decision):
        storage.create_feedback(FeedbackCreate(decision_id=saved_decision.id, utility_rating=8,
                                               allow_public_display=True, testimonial="公开"))
        storage.create_feedback(FeedbackCreate(decision_id=saved_decision.id, utility_rating=3,
                                               testimonial="私下"))

        public = storage.get_public_feedbacks()
        assert [f["testimonial"] for f in public] == ["公开"]
        assert len(storage.get_feedbacks_by_decision(saved_decision.id)) == 2

    def test_public_feedback_limit(self, storage, saved_decision):
        for rating in range(1, 6):
            storage.create_feedback(FeedbackCreate(decision_id=saved_decision.id, utility_rating=rating,
                                                   allow_public_display=True))
        assert len(storage.get_public_feedbacks(limit=3)) == 3


class TestEngagement:

    def test_track_engagement(self, storage, saved_decision):
        record = storage.track_engagement(EngagementCreate(
            decision_id=saved_decision.id, action_type="criteria", duration=12, step_index=1
        ))
        assert record["actionType"] == "criteria"
        assert record["stepIndex"] == 1
        assert "updatedAt" not in record

        events = storage.get_engagements_by_decision(saved_decision.id)
        assert [e["duration"] for e in events] == [12]

    def test_engagement_survives_decision_delete(self, storage, saved_decision):
        storage.track_engagement(EngagementCreate(decision_id=saved_decision.id, action_type="results", duration=4))
        storage.delete_decision(saved_decision.id)

        assert storage.get_engagements_by_decision(saved_decision.id) == []
        assert storage.get_step_engagement_stats() == [
            {"step": "results", "averageDuration": 4.0, "count": 1},
        ]


class TestAnalytics:

    def test_empty_database(self, storage):
        assert storage.get_decisions_by_category() == []
        assert storage.get_average_rating() == 0.0
        assert storage.get_average_completion_time() == 0.0
        assert storage.get_decisions_over_time(datetime(2024, 1, 1), datetime(2024, 12, 31)) == []

    def test_decisions_by_category(self, storage, car_decision):
        storage.create_decision(car_decision)
        storage.create_decision(replace(car_decision, category="business"))
        storage.create_decision(replace(car_decision, category="business"))

        counts = {row["category"]: row["count"] for row in storage.get_decisions_by_category()}
        assert counts == {"personal": 1, "business": 2}

    def test_averages(self, storage, car_decision):
        first = storage.create_decision(replace(car_decision, completion_time=60))
        storage.create_decision(replace(car_decision, completion_time=120))
        storage.create_decision(car_decision)
        storage.create_feedback(FeedbackCreate(decision_id=first.id, utility_rating=8))
        storage.create_feedback(FeedbackCreate(decision_id=first.id, utility_rating=6))

        assert storage.get_average_completion_time() == pytest.approx(90.0)
        assert storage.get_average_rating() == pytest.approx(7.0)

    def test_decisions_over_time(self, storage, car_decision):
        for created_at in ("2024-03-01T10:00:00Z", "2024-03-01T15:30:00", "2024-03-03T09:00:00",
                           "2024-04-20T09:00:00"):
            storage.create_decision(replace(car_decision, created_at=created_at))

        series = storage.get_decisions_over_time(datetime(2024, 3, 1), datetime(2024, 3, 31))
        assert series == [
            {"date": "2024-03-01", "count": 2},
            {"date": "2024-03-03", "count": 1},
        ]

    def test_step_engagement_stats(self, storage):
        for action, duration in (("criteria", 10), ("criteria", 20), ("results", 5), ("results", None)):
            storage.track_engagement(EngagementCreate(action_type=action, duration=duration))

        assert storage.get_step_engagement_stats() == [
            {"step": "criteria", "averageDuration": 15.0, "count": 2},
            {"step": "results", "averageDuration": 5.0, "count": 1},
        ]
