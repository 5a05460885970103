"""
Study: Planning and running training sessions.

- session_composer: focus/variety session plans with fatigue control
- training_service: records trials and keeps skill ratings in step
"""

from cognitive_os.study.session_composer import (
    ComposerConfig,
    ModuleRecommendation,
    PlanUnavailable,
    RecommendationPriority,
    SessionComposer,
    SessionPlan,
    estimate_fatigue,
    explain_session,
)
from cognitive_os.study.training_service import SessionReport, TrainingService, build_service

__all__ = [
    # Composer
    "SessionComposer",
    "ComposerConfig",
    "SessionPlan",
    "PlanUnavailable",
    "ModuleRecommendation",
    "RecommendationPriority",
    "estimate_fatigue",
    "explain_session",
    # Service
    "TrainingService",
    "SessionReport",
    "build_service",
]
