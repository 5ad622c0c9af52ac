"""Tests for build_system wiring."""

import tempfile
from pathlib import Path

from matchfolio.config.settings import MatchfolioSettings
from matchfolio.factory import build_system
from matchfolio.infra.score_client import ScoreClient


class TestBuildSystem:
    def test_in_memory_when_persistence_disabled(self):
        settings = MatchfolioSettings(persist_storage=False, poll_interval_seconds=3.0, refresh_every=7)

        system = build_system(settings)

        assert system.user_store._persist_path is None
        assert system.match_store._persist_path is None
        assert system.tracker.poll_interval == 3.0
        assert system.runner._refresh_every == 7
        assert system.tracker.registry.size() == 0

    def test_persistent_paths_under_data_dir(self):
        with tempfile.TemporaryDirectory() as tmp:
            data_dir = Path(tmp) / "nested" / "data"
            system = build_system(MatchfolioSettings(data_dir=data_dir))

            assert data_dir.is_dir()
            assert system.user_store._persist_path == data_dir / "users.jsonl"
            assert system.match_store._persist_path == data_dir / "match_scores.jsonl"

    def test_custom_score_client(self):
        client = ScoreClient(base_url="https://scores.test")
        system = build_system(MatchfolioSettings(persist_storage=False), score_client=client)
        assert system.score_source._client is client

    def test_services_share_user_store(self):
        system = build_system(MatchfolioSettings(persist_storage=False))
        system.user_store.create_user("u1")
        system.portfolio.buy("u1", "M1", "p1", team="Home", price=1.0, quantity=2)

        assert system.tracker.has_active_holdings("M1")
