"""
Unit tests for TrainingService.

The service records trials in the activity log and applies them to the
module's skills in the same call.
"""

import random
from datetime import timedelta

import pytest

from cognitive_os.core.errors import NoOpenSessionError
from cognitive_os.core.trial import Trial
from cognitive_os.db.state_store import MemoryStateStore
from cognitive_os.study.session_composer import SessionPlan
from cognitive_os.study.training_service import TrainingService, build_service
from config import Settings


@pytest.fixture
def service(skill_store, activity_log, composer):
    return TrainingService(skill_store, activity_log, composer)


class TestRecording:
    def test_trial_updates_module_skills(self, service, skill_store):
        handle = service.start_session("symbol_memory")

        updates = service.record_trial(handle, Trial(correct=True))

        assert [u.skill_id for u in updates] == ["wm.visual", "wm.binding", "attn.selective"]
        assert skill_store.get_skill("wm.binding").rating == pytest.approx(1516)

    def test_end_session_report(self, service, clock):
        handle = service.start_session("music_theory")
        service.record_trial(handle, Trial(correct=True, reaction_time_ms=500))
        service.record_trial(handle, Trial(correct=False, reaction_time_ms=700, error_type="miss"))
        clock.advance(minutes=3)

        report = service.end_session(handle)

        assert report.session.module_id == "music_theory"
        assert report.summary.total_trials == 2
        assert report.summary.avg_reaction_time_ms == 600
        assert report.summary.error_breakdown == {"miss": 1}
        assert report.summary.skill_updates == 6
        assert len(report.rating_updates) == 6

    def test_unknown_module_records_without_updates(self, service, activity_log):
        handle = service.start_session("homebrew_drill")

        assert service.record_trial(handle, Trial(correct=True)) == []

        report = service.end_session(handle)
        assert report.rating_updates == ()
        assert activity_log.get_session_history()[0].module_id == "homebrew_drill"

    def test_record_rejected_before_skills_change(self, service, skill_store):
        handle = service.start_session("symbol_memory")
        service.end_session(handle)

        with pytest.raises(NoOpenSessionError):
            service.record_trial(handle, Trial(correct=True))
        assert skill_store.get_skill("wm.visual").trial_count == 0

    def test_abandon_keeps_applied_ratings(self, service, skill_store, activity_log):
        handle = service.start_session("symbol_memory")
        service.record_trial(handle, Trial(correct=True))

        service.abandon_session(handle)

        assert activity_log.get_session_history() == []
        assert skill_store.get_skill("wm.visual").rating == pytest.approx(1516)

    def test_backdated_session(self, service, clock):
        handle = service.start_session("symbol_memory", started_at=clock() - timedelta(minutes=8))
        service.record_trial(handle, Trial(correct=True))
        report = service.end_session(handle)

        assert report.session.duration == timedelta(minutes=8)


class TestPlanning:
    def test_plan_reflects_recorded_training(self, service, clock):
        handle = service.start_session("symbol_memory")
        for _ in range(5):
            service.record_trial(handle, Trial(correct=False))
        service.end_session(handle)

        plan = service.compose_session(20)

        assert isinstance(plan, SessionPlan)
        assert {s.id for s in plan.focus_skills} <= {"wm.visual", "wm.binding", "attn.selective"}
        assert "symbol_memory" not in [m.module_id for m in plan.recommended_modules]

    def test_explain(self, service):
        assert "Training Plan" in service.explain(service.compose_session())


class TestBuildService:
    def test_uses_settings(self, clock):
        settings = Settings(k_factor_base=16, history_limit=5, focus_ratio=0.5, _env_file=None)
        service = build_service(settings, storage=MemoryStateStore(), rng=random.Random(1), clock=clock)

        handle = service.start_session("symbol_memory")
        updates = service.record_trial(handle, Trial(correct=True))

        assert updates[0].k_factor == pytest.approx(16)
        assert service.activity_log.history_limit == 5
        assert service.composer.config.focus_ratio == 0.5
        assert service.composer.clock is clock

    def test_sql_storage_from_url(self, tmp_path, clock):
        settings = Settings(database_url=f"sqlite:///{tmp_path / 'state.db'}", _env_file=None)

        service = build_service(settings, clock=clock)
        handle = service.start_session("morph_matrix")
        service.record_trial(handle, Trial(correct=True))
        service.end_session(handle)

        reloaded = build_service(settings, clock=clock)
        assert len(reloaded.activity_log.get_session_history()) == 1

    def test_unusable_storage_falls_back_to_memory_only(self, tmp_path, clock):
        """A state path under a regular file still gives a working service."""
        blocker = tmp_path / "file"
        blocker.write_text("x")
        settings = Settings(database_url=f"sqlite:///{blocker}/sub/state.db", _env_file=None)

        service = build_service(settings, rng=random.Random(1), clock=clock)
        handle = service.start_session("symbol_memory")
        service.record_trial(handle, Trial(correct=True))
        report = service.end_session(handle)

        assert service.activity_log.storage is None
        assert report.summary.total_trials == 1
        assert isinstance(service.compose_session(20), SessionPlan)

    def test_invalid_url_falls_back_to_memory_only(self, clock):
        settings = Settings(database_url="not a database url", _env_file=None)

        service = build_service(settings, clock=clock)

        assert service.skill_store.storage is None
