"""
Learning: Skill ratings and training activity.

This package contains the two stateful stores:
- skill_graph: Elo-style skill ratings, ranked queries, cognitive profile
- performance_tracker: Session lifecycle and append-only session history
"""

from cognitive_os.learning.performance_tracker import (
    ActivityLog,
    ModuleStats,
    Session,
    SessionHandle,
    SessionSummary,
    TrialRecord,
    summarize_session,
)
from cognitive_os.learning.skill_graph import (
    CognitiveProfile,
    RatingConfig,
    RatingUpdate,
    Skill,
    SkillLevel,
    SkillStore,
    estimate_difficulty_rating,
    get_skill_level,
)

__all__ = [
    # Skill graph
    "SkillStore",
    "Skill",
    "SkillLevel",
    "RatingConfig",
    "RatingUpdate",
    "CognitiveProfile",
    "estimate_difficulty_rating",
    "get_skill_level",
    # Activity
    "ActivityLog",
    "Session",
    "SessionHandle",
    "SessionSummary",
    "ModuleStats",
    "TrialRecord",
    "summarize_session",
]
