"""
Persisted document schemas.

Skill ratings and session history are stored as versioned, self-describing
JSON documents. Unknown fields are ignored so that newer writers stay
readable by older readers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DOCUMENT_VERSION = 1


class _Document(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SkillRatingEntry(_Document):
    """Persisted state of one skill."""

    rating: float = Field(..., allow_inf_nan=False)
    trials: int = Field(0, ge=0)


class SkillGraphDocument(_Document):
    """All skill ratings, keyed by skill id."""

    kind: Literal["skill_graph"] = "skill_graph"
    version: int = Field(DOCUMENT_VERSION, ge=1)
    skills: dict[str, SkillRatingEntry] = Field(default_factory=dict)


class TrialEntry(_Document):
    """One recorded trial inside a persisted session."""

    correct: bool
    difficulty: float
    reaction_time_ms: float | None = None
    error_type: str | None = None
    trial_number: int = Field(..., ge=1)
    recorded_at: datetime
    fatigue_index: float = Field(0.0, ge=0.0, le=1.0)


class SessionEntry(_Document):
    """One completed training session."""

    session_id: str
    module_id: str
    timestamp: datetime
    ended_at: datetime
    trials: list[TrialEntry] = Field(default_factory=list)


class SessionHistoryDocument(_Document):
    """Ordered list of completed sessions, oldest first."""

    kind: Literal["session_history"] = "session_history"
    version: int = Field(DOCUMENT_VERSION, ge=1)
    sessions: list[SessionEntry] = Field(default_factory=list)
