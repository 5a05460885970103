"""
Core Module - Shared catalog, input models, errors and persistence schemas.

Components:
- catalog: Skill taxonomy and the ordered module-to-skills map
- trial: Validated trial input model
- documents: Versioned documents for persisted state
- clock: Current-time source
- errors: Exception taxonomy
"""

from cognitive_os.core.catalog import (
    DEFAULT_RATING,
    MAX_RATING,
    MIN_RATING,
    Catalog,
    ModuleDefinition,
    ModuleSkillMap,
    SkillDefinition,
    build_catalog,
    default_catalog,
)
from cognitive_os.core.clock import Clock, as_aware, system_clock
from cognitive_os.core.errors import (
    CatalogError,
    CognitiveOSError,
    InvalidSessionStateError,
    NoOpenSessionError,
    PersistenceError,
    SessionAlreadyOpenError,
    StaleSessionHandleError,
)
from cognitive_os.core.trial import Trial

__all__ = [
    # Catalog
    "Catalog",
    "ModuleDefinition",
    "ModuleSkillMap",
    "SkillDefinition",
    "build_catalog",
    "default_catalog",
    "DEFAULT_RATING",
    "MIN_RATING",
    "MAX_RATING",
    # Input
    "Trial",
    # Time
    "Clock",
    "system_clock",
    "as_aware",
    # Errors
    "CognitiveOSError",
    "CatalogError",
    "InvalidSessionStateError",
    "NoOpenSessionError",
    "SessionAlreadyOpenError",
    "StaleSessionHandleError",
    "PersistenceError",
]
