"""
Session Composer for Personalized Training.

Recommends training modules from skill weaknesses, recent activity and
fatigue. Time is split between:
- 60% focus: modules that train the two weakest skills, skipping modules
  trained in the last 7 days
- 40% variety: one random module outside the recent and focus picks

When today's fatigue level exceeds 0.5 the plan is cut to its first two
modules.

Fatigue model (0 = fresh, 1 = exhausted):
    fatigue = min(1, max(sessions_today / 3, trials_today / 100))
"""
from __future__ import annotations

import math
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from loguru import logger

from cognitive_os.core.clock import Clock, as_aware, start_of_day, system_clock
from cognitive_os.learning.performance_tracker import ActivityLog, Session
from cognitive_os.learning.skill_graph import Skill, SkillStore

DEFAULT_SESSION_MINUTES = 20.0
FATIGUE_WARNING = "High fatigue detected - reduced session length"
VARIETY_REASONING = "Added variety module for balanced training"


class RecommendationPriority(str, Enum):
    """Why a module is in the plan."""

    FOCUS = "focus"
    VARIETY = "variety"


@dataclass(frozen=True)
class ModuleRecommendation:
    """One module in a session plan."""

    module_id: str
    module_name: str
    allocated_duration: float  # minutes
    reason: str
    priority: RecommendationPriority
    target_skill: str | None = None


@dataclass(frozen=True)
class SessionPlan:
    """Composer output. Built fresh on every call; never persisted."""

    recommended_modules: tuple[ModuleRecommendation, ...]
    focus_skills: tuple[Skill, ...]
    fatigue_level: float
    reasoning: tuple[str, ...]
    duration: float
    generated_at: datetime
    variety: bool = True

    @property
    def total_minutes(self) -> float:
        return sum(m.allocated_duration for m in self.recommended_modules)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for JSON output."""
        return {
            "duration": self.duration,
            "total_minutes": self.total_minutes,
            "fatigue_level": self.fatigue_level,
            "variety": self.variety,
            "generated_at": self.generated_at.isoformat(),
            "focus_skills": [
                {"id": s.id, "name": s.name, "rating": s.rating, "level": s.level.label}
                for s in self.focus_skills
            ],
            "recommended_modules": [
                {
                    "module_id": m.module_id,
                    "module_name": m.module_name,
                    "duration": m.allocated_duration,
                    "reason": m.reason,
                    "priority": m.priority.value,
                    "target_skill": m.target_skill,
                }
                for m in self.recommended_modules
            ],
            "reasoning": list(self.reasoning),
        }


@dataclass(frozen=True)
class PlanUnavailable:
    """Returned instead of a plan when a required store is missing."""

    reason: str
    missing: tuple[str, ...] = ()


@dataclass
class ComposerConfig:
    """Configuration for session composition."""
    focus_ratio: float = 0.60
    weak_skill_pool: int = 5
    focus_skill_count: int = 2
    recent_window_days: float = 7
    fatigue_threshold: float = 0.5
    fatigue_note_threshold: float = 0.3
    fatigue_session_limit: int = 3
    fatigue_trial_limit: int = 100
    max_modules_when_fatigued: int = 2

    def __post_init__(self) -> None:
        if not 0.0 <= self.focus_ratio <= 1.0:
            raise ValueError(f"focus_ratio must be within [0, 1], got {self.focus_ratio}")
        if self.fatigue_session_limit <= 0 or self.fatigue_trial_limit <= 0:
            raise ValueError("fatigue limits must be positive")
        if self.weak_skill_pool < self.focus_skill_count:
            raise ValueError("weak_skill_pool must be at least focus_skill_count")


def estimate_fatigue(
    sessions: Iterable[Session],
    now: datetime,
    session_limit: int = 3,
    trial_limit: int = 100,
) -> float:
    """
    Estimate fatigue from today's training volume.

    Args:
        sessions: Completed sessions
        now: Current time; "today" starts at its midnight
        session_limit: Sessions per day that count as exhausted
        trial_limit: Trials per day that count as exhausted

    Returns:
        Fatigue level in [0, 1]
    """
    day_start = start_of_day(as_aware(now))
    today = [s for s in sessions if as_aware(s.timestamp) >= day_start]
    today_trials = sum(s.trial_count for s in today)
    return min(1.0, max(len(today) / session_limit, today_trials / trial_limit, 0.0))


def _fmt_minutes(minutes: float) -> str:
    return f"{round(minutes, 1):g}"


def explain_session(
    plan: SessionPlan | PlanUnavailable | None,
    fatigue_note_threshold: float = 0.3,
) -> str:
    """
    Render a plan as human-readable text.

    Pure formatting: focus areas, module order with durations, an optional
    fatigue note and the reasoning list.
    """
    if plan is None or isinstance(plan, PlanUnavailable):
        return "No session plan available"

    lines = [f"**Recommended {_fmt_minutes(plan.duration)}-Minute Training Session**", ""]

    lines.append("**Focus Areas:**")
    for skill in plan.focus_skills:
        lines.append(f"• {skill.name} ({skill.level.label} - Rating: {round(skill.rating)})")

    lines += ["", "**Training Plan:**"]
    for idx, rec in enumerate(plan.recommended_modules, 1):
        lines.append(f"{idx}. {rec.module_name} ({_fmt_minutes(rec.allocated_duration)} min)")
        lines.append(f"   → {rec.reason}")

    if plan.fatigue_level > fatigue_note_threshold:
        lines += ["", f"**Note:** Fatigue level: {round(plan.fatigue_level * 100)}%"]

    lines += ["", "**Why this plan?**"]
    lines += [f"• {reason}" for reason in plan.reasoning]
    return "\n".join(lines) + "\n"


class SessionComposer:
    """
    Plans a training session from the skill store and the activity log.

    Holds no state of its own beyond its collaborators. Both stores are
    optional references; without either one, compose_session returns
    PlanUnavailable.
    """

    def __init__(
        self,
        skill_store: Optional[SkillStore] = None,
        activity_log: Optional[ActivityLog] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        config: Optional[ComposerConfig] = None,
    ):
        """
        Initialize composer.

        Args:
            skill_store: Source of skill ratings and the module map
            activity_log: Source of session history
            rng: Random source for variety picks (seed it for reproducible plans)
            clock: Current-time source; defaults to the activity log's clock
            config: ComposerConfig or None for defaults
        """
        self.skill_store = skill_store
        self.activity_log = activity_log
        self.rng = rng or random.Random()
        if clock is None:
            clock = activity_log.clock if activity_log is not None else system_clock
        self.clock = clock
        self.config = config or ComposerConfig()

    @property
    def module_ids(self) -> tuple[str, ...]:
        if self.skill_store is None:
            return ()
        return self.skill_store.module_map.module_ids

    def compose_session(self, duration: float = DEFAULT_SESSION_MINUTES) -> SessionPlan | PlanUnavailable:
        """
        Compose a training session.

        Args:
            duration: Target length in minutes

        Returns:
            SessionPlan, or PlanUnavailable when a store is missing
        """
        missing = tuple(
            name
            for name, dependency in (("skill_store", self.skill_store), ("activity_log", self.activity_log))
            if dependency is None
        )
        if missing:
            logger.warning(f"Cannot compose session - {', '.join(missing)} not available")
            return PlanUnavailable(reason=f"Missing {', '.join(missing)}", missing=missing)

        if isinstance(duration, bool) or not math.isfinite(duration) or duration <= 0:
            raise ValueError(f"Session duration must be a positive number of minutes, got {duration}")

        cfg = self.config
        module_map = self.skill_store.module_map

        # 1-3. Weak skills, recent modules, fatigue
        weak_skills = self.skill_store.get_weakest_skills(cfg.weak_skill_pool)
        recent_modules = self.get_recent_modules(cfg.recent_window_days)
        fatigue_level = self.estimate_fatigue()

        # 4. Time budget
        focus_time = duration * cfg.focus_ratio
        variety_time = duration - focus_time

        # 5. Focus modules: one per weak skill, best overlap first
        focus_skills = weak_skills[: cfg.focus_skill_count]
        ranked = self.select_modules_for_skills([s.id for s in focus_skills], recent_modules)
        picks: list[tuple[str, Skill]] = []
        for skill in focus_skills:
            chosen = {module_id for module_id, _ in picks}
            for module_id in ranked:
                if module_id not in chosen and skill.id in module_map.skills_for(module_id):
                    picks.append((module_id, skill))
                    break

        recommendations: list[ModuleRecommendation] = []
        reasoning: list[str] = []
        share = focus_time / len(picks) if picks else 0.0
        for idx, (module_id, skill) in enumerate(picks):
            recommendations.append(
                ModuleRecommendation(
                    module_id=module_id,
                    module_name=module_map.module_name(module_id),
                    allocated_duration=share,
                    reason=f"Targets weak skill: {skill.name}",
                    priority=RecommendationPriority.FOCUS,
                    target_skill=skill.id,
                )
            )
            verb = "Focus on" if idx == 0 else "Also train"
            reasoning.append(f"{verb} {skill.name} (Rating: {round(skill.rating)})")

        # 6. Variety module
        avoid = [*recent_modules, *(module_id for module_id, _ in picks)]
        variety_module = self.select_variety_module(avoid)
        if variety_module is not None:
            recommendations.append(
                ModuleRecommendation(
                    module_id=variety_module,
                    module_name=module_map.module_name(variety_module),
                    allocated_duration=variety_time,
                    reason="Provides training variety",
                    priority=RecommendationPriority.VARIETY,
                )
            )
            reasoning.append(VARIETY_REASONING)

        # 7. Fatigue adjustment
        if fatigue_level > cfg.fatigue_threshold:
            recommendations = recommendations[: cfg.max_modules_when_fatigued]
            reasoning.append(FATIGUE_WARNING)

        plan = SessionPlan(
            recommended_modules=tuple(recommendations),
            focus_skills=tuple(focus_skills),
            fatigue_level=fatigue_level,
            reasoning=tuple(reasoning),
            duration=float(duration),
            generated_at=as_aware(self.clock()),
        )

        logger.info(
            f"Composed {_fmt_minutes(duration)}-minute session: "
            f"{len(picks)} focus, {1 if variety_module else 0} variety, "
            f"{len(plan.recommended_modules)} kept (fatigue: {fatigue_level:.0%})"
        )
        return plan

    def select_modules_for_skills(
        self,
        skill_ids: Sequence[str],
        avoid_modules: Iterable[str] = (),
    ) -> list[str]:
        """
        Rank modules by how many of ``skill_ids`` they train.

        Modules with no overlap, and modules in ``avoid_modules``, are left
        out. Equal scores keep catalog order.
        """
        if self.skill_store is None:
            return []

        module_map = self.skill_store.module_map
        avoid = set(avoid_modules)
        wanted = set(skill_ids)

        scores: list[tuple[str, int]] = []
        for module_id in module_map:
            if module_id in avoid:
                continue
            overlap = len(wanted.intersection(module_map.skills_for(module_id)))
            if overlap > 0:
                scores.append((module_id, overlap))

        return [module_id for module_id, _ in sorted(scores, key=lambda item: -item[1])]

    def select_variety_module(self, avoid_modules: Iterable[str] = ()) -> str | None:
        """
        Pick a module uniformly at random outside ``avoid_modules``.

        Falls back to the whole catalog when everything is excluded.
        """
        all_modules = list(self.module_ids)
        if not all_modules:
            return None
        avoid = set(avoid_modules)
        available = [m for m in all_modules if m not in avoid]
        return self.rng.choice(available or all_modules)

    def get_recent_modules(self, days: float = 7) -> list[str]:
        """Distinct modules with a session in the trailing ``days`` window."""
        if self.activity_log is None:
            return []

        cutoff = as_aware(self.clock()) - timedelta(days=days)
        recent: list[str] = []
        for session in self.activity_log.get_session_history():
            if session.timestamp > cutoff and session.module_id not in recent:
                recent.append(session.module_id)
        return recent

    def estimate_fatigue(self) -> float:
        """Fatigue level in [0, 1] from today's sessions; 0 without an activity log."""
        if self.activity_log is None:
            return 0.0
        return estimate_fatigue(
            self.activity_log.get_session_history(),
            as_aware(self.clock()),
            session_limit=self.config.fatigue_session_limit,
            trial_limit=self.config.fatigue_trial_limit,
        )

    def explain_session(self, plan: SessionPlan | PlanUnavailable | None) -> str:
        return explain_session(plan, fatigue_note_threshold=self.config.fatigue_note_threshold)
