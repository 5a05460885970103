"""
Trial input model.

A trial is one attempt inside a training module. It is validated at the
boundary so the rating update never sees malformed data.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from cognitive_os.core.catalog import DEFAULT_RATING, MAX_RATING, MIN_RATING


class Trial(BaseModel):
    """Outcome of a single attempt."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    correct: StrictBool = Field(..., description="Whether the response was correct")
    difficulty: float = Field(
        DEFAULT_RATING,
        ge=MIN_RATING,
        le=MAX_RATING,
        allow_inf_nan=False,
        description="Trial difficulty on the rating scale",
    )
    reaction_time_ms: float | None = Field(
        None, ge=0, allow_inf_nan=False, description="Stimulus-to-response time"
    )
    error_type: str | None = Field(
        None,
        min_length=1,
        description="Error tag for incorrect responses: miss, false_alarm, swap, intrusion, wrong_position",
    )
