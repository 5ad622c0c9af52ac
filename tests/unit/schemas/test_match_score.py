"""Tests for the MatchScore schema."""

from matchfolio.schemas.match import MatchScore


class TestMatchScore:
    def test_camel_case_payload(self):
        score = MatchScore.model_validate(
            {"matchId": 5, "isMatchComplete": True, "homeScore": 2, "extra": "ignored"}
        )
        assert score.match_id == "5"
        assert score.is_match_complete is True
        assert score.home_score == "2"

    def test_defaults_incomplete(self):
        score = MatchScore(match_id="M1")
        assert score.is_match_complete is False
        assert score.updated_at.tzinfo is not None

    def test_json_round_trip_preserves_completion(self):
        score = MatchScore(match_id="M1", is_match_complete=True, status="FT")
        restored = MatchScore.model_validate_json(score.model_dump_json())
        assert restored.is_match_complete is True
        assert restored.status == "FT"
