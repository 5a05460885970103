"""
Training service: wires the stores and the composer together.

Every trial recorded through the service lands in the activity log and is
then applied to the skills its module trains.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from loguru import logger

from cognitive_os.core.catalog import Catalog, default_catalog
from cognitive_os.core.clock import Clock
from cognitive_os.core.errors import PersistenceError
from cognitive_os.core.trial import Trial
from cognitive_os.db.state_store import SqlStateStore, StateStorage
from cognitive_os.learning.performance_tracker import (
    ActivityLog,
    Session,
    SessionHandle,
    SessionSummary,
    summarize_session,
)
from cognitive_os.learning.skill_graph import RatingUpdate, SkillStore
from cognitive_os.study.session_composer import (
    PlanUnavailable,
    SessionComposer,
    SessionPlan,
)

if TYPE_CHECKING:
    from config import Settings


@dataclass(frozen=True)
class SessionReport:
    """What a finished session produced."""

    session: Session
    summary: SessionSummary
    rating_updates: tuple[RatingUpdate, ...] = field(default_factory=tuple)


class TrainingService:
    """Front door for recording training and planning the next session."""

    def __init__(
        self,
        skill_store: SkillStore,
        activity_log: ActivityLog,
        composer: Optional[SessionComposer] = None,
    ):
        self.skill_store = skill_store
        self.activity_log = activity_log
        self.composer = composer or SessionComposer(skill_store, activity_log)
        self._updates: dict[str, list[RatingUpdate]] = {}

    def start_session(self, module_id: str, started_at: datetime | None = None) -> SessionHandle:
        if module_id not in self.skill_store.module_map:
            logger.warning(f"Module {module_id} is not in the catalog - trials will not update skills")
        handle = self.activity_log.start_session(module_id, started_at=started_at)
        self._updates[handle.session_id] = []
        return handle

    def record_trial(self, handle: SessionHandle, trial: Trial) -> list[RatingUpdate]:
        """
        Record a trial and update the module's skills.

        Returns:
            One RatingUpdate per skill the module trains
        """
        self.activity_log.record_trial(handle, trial)
        updates = self.skill_store.update_module_skills(handle.module_id, trial)
        self._updates.setdefault(handle.session_id, []).extend(updates)
        return updates

    def end_session(self, handle: SessionHandle) -> SessionReport:
        session = self.activity_log.end_session(handle)
        updates = tuple(self._updates.pop(handle.session_id, ()))
        return SessionReport(
            session=session,
            summary=summarize_session(session, skill_updates=len(updates)),
            rating_updates=updates,
        )

    def abandon_session(self, handle: SessionHandle) -> None:
        """Drop the open session. Rating updates already applied are kept."""
        self.activity_log.abandon_session(handle)
        self._updates.pop(handle.session_id, None)

    def compose_session(self, duration: float | None = None) -> SessionPlan | PlanUnavailable:
        if duration is None:
            return self.composer.compose_session()
        return self.composer.compose_session(duration)

    def explain(self, plan: SessionPlan | PlanUnavailable | None) -> str:
        return self.composer.explain_session(plan)


def build_service(
    settings: "Settings",
    storage: Optional[StateStorage] = None,
    rng: Optional[random.Random] = None,
    clock: Optional[Clock] = None,
    catalog: Optional[Catalog] = None,
) -> TrainingService:
    """
    Build a TrainingService from settings.

    Args:
        settings: Application settings
        storage: Persistence backend; defaults to SQL storage at settings.database_url.
            If that storage cannot be opened the service runs without persistence.
        rng: Random source for variety picks; seeded from settings.random_seed if omitted
        clock: Current-time source
        catalog: Skill/module catalog; defaults to the built-in catalog
    """
    if storage is None:
        try:
            storage = SqlStateStore(settings.database_url)
        except PersistenceError as e:
            logger.warning(f"State storage unavailable, changes will not be saved: {e}")
    if rng is None:
        rng = random.Random(settings.random_seed)

    skill_store = SkillStore(
        catalog or default_catalog(),
        storage=storage,
        rating_config=settings.get_rating_config(),
    )
    activity_log = ActivityLog(
        storage=storage,
        clock=clock,
        history_limit=settings.history_limit,
    )
    composer = SessionComposer(
        skill_store,
        activity_log,
        rng=rng,
        clock=clock,
        config=settings.get_composer_config(),
    )
    return TrainingService(skill_store, activity_log, composer)
