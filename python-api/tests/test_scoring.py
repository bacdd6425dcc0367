"""
Tests for submission scoring and version history (models.submission).
"""

import pytest
from models import submission as scoring
from models.common import DomainError


def _vector(*values):
    return dict(zip(scoring.CRITERIA, values))


class TestCalculateScores:
    """Test calculate_scores()"""

    def test_average_of_averages(self):
        """Should average each criterion across judges, then across criteria"""
        # Arrange
        judges = [
            {"scores": _vector(8, 7, 9, 6, 8)},
            {"scores": _vector(6, 9, 7, 8, 7)},
        ]

        # Act
        result = scoring.calculate_scores(judges)

        # Assert
        assert result["scores"] == _vector(7.0, 8.0, 8.0, 7.0, 7.5)
        assert result["total_score"] == pytest.approx(37.5)
        assert result["average_score"] == pytest.approx(7.5)

    def test_no_judges(self):
        result = scoring.calculate_scores([])

        assert result["average_score"] == 0.0
        assert result["total_score"] == 0.0
        assert set(result["scores"]) == set(scoring.CRITERIA)


class TestValidateScoreVector:
    """Test validate_score_vector()"""

    def test_accepts_bounds(self):
        assert scoring.validate_score_vector(_vector(0, 10, 5, 5, 5)) == _vector(0, 10, 5, 5, 5)

    @pytest.mark.parametrize("bad", [11, -1, 7.5, True, "8"])
    def test_rejects_bad_values(self, bad):
        with pytest.raises(DomainError):
            scoring.validate_score_vector(_vector(bad, 5, 5, 5, 5))

    def test_rejects_missing_criterion(self):
        scores = _vector(5, 5, 5, 5)

        with pytest.raises(DomainError, match="completeness"):
            scoring.validate_score_vector(scores)


class TestRecordEvaluation:
    """Test record_evaluation()"""

    def test_first_evaluation_moves_to_under_review(self):
        submission = {"status": "submitted", "judges": []}

        scoring.record_evaluation(submission, "j1", _vector(8, 7, 9, 6, 8), comments="Nice")

        assert submission["status"] == "under_review"
        assert submission["reviewed_at"] is not None
        assert submission["average_score"] == pytest.approx(7.6)
        assert submission["judges"][0]["comments"] == "Nice"

    def test_recomputes_on_each_judge(self):
        submission = {"status": "submitted", "judges": []}

        scoring.record_evaluation(submission, "j1", _vector(8, 7, 9, 6, 8))
        scoring.record_evaluation(submission, "j2", _vector(6, 9, 7, 8, 7))

        assert submission["status"] == "under_review"
        assert submission["average_score"] == pytest.approx(7.5)
        assert len(submission["judges"]) == 2

    def test_one_evaluation_per_judge(self):
        submission = {"status": "submitted", "judges": []}
        scoring.record_evaluation(submission, "j1", _vector(5, 5, 5, 5, 5))

        with pytest.raises(DomainError, match="already evaluated"):
            scoring.record_evaluation(submission, "j1", _vector(9, 9, 9, 9, 9))
        assert submission["average_score"] == 5.0


class TestVersionsAndStatus:
    """Test snapshot_version(), set_status() and leaderboard_key()"""

    def test_snapshot_keeps_previous_content(self):
        submission = {"title": "v1 title", "summary": "first", "version": 1}

        scoring.snapshot_version(submission)
        submission["title"] = "v2 title"

        assert submission["version"] == 2
        assert submission["previous_versions"][0]["version"] == 1
        assert submission["previous_versions"][0]["data"]["title"] == "v1 title"

    def test_submitted_at_is_set_once(self):
        submission = {"status": "draft"}

        scoring.set_status(submission, "submitted")
        first = submission["submitted_at"]
        scoring.set_status(submission, "draft")
        scoring.set_status(submission, "submitted")

        assert submission["submitted_at"] == first

    def test_invalid_status(self):
        with pytest.raises(DomainError):
            scoring.set_status({}, "shortlisted")

    def test_leaderboard_order(self):
        """Should rank by total score, earlier submission first on ties"""
        rows = [
            {"id": "late", "total_score": 40, "submitted_at": "2024-01-02T00:00:00"},
            {"id": "low", "total_score": 30, "submitted_at": "2024-01-01T00:00:00"},
            {"id": "early", "total_score": 40, "submitted_at": "2024-01-01T00:00:00"},
        ]

        ranked = sorted(rows, key=scoring.leaderboard_key)

        assert [r["id"] for r in ranked] == ["early", "late", "low"]
