"""
Unified Skill Graph with Elo-style Rating Updates.

Every module trains specific cognitive skills. Each skill carries a rating on
an Elo-like scale [800, 2400], updated after every trial:

- expected = 1 / (1 + 10^((difficulty - rating) / 400))
- delta    = k * (actual - expected)
- rating   = clamp(rating + delta, 800, 2400)

The learning rate k shrinks as evidence accumulates for a skill:

    k(n) = max(k_min, k_base * h / (h + n))

with n the number of trials already recorded for the skill. Defaults
(k_base=32, h=100, k_min=8) give k=32 for a fresh skill, k=16 after 100
trials and the floor of 8 from 300 trials onwards.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import ValidationError

from cognitive_os.core.catalog import (
    DEFAULT_RATING,
    MAX_RATING,
    MIN_RATING,
    Catalog,
    ModuleSkillMap,
)
from cognitive_os.core.documents import DOCUMENT_VERSION, SkillGraphDocument, SkillRatingEntry
from cognitive_os.core.errors import PersistenceError
from cognitive_os.core.trial import Trial
from cognitive_os.db.state_store import StateStorage

SKILL_GRAPH_KEY = "skill_graph"


def clamp_rating(rating: float) -> float:
    return max(MIN_RATING, min(MAX_RATING, rating))


class SkillLevel(str, Enum):
    """
    Proficiency band for a rating.

    Bands are inclusive-lower / exclusive-upper except Expert, which is
    closed at the top of the scale.
    """

    NOVICE = "Novice"  # [800, 1200)
    INTERMEDIATE = "Intermediate"  # [1200, 1400)
    PROFICIENT = "Proficient"  # [1400, 1600)
    ADVANCED = "Advanced"  # [1600, 1800)
    EXPERT = "Expert"  # [1800, 2400]

    @classmethod
    def from_rating(cls, rating: float) -> SkillLevel:
        """
        Classify a rating into its band.

        Args:
            rating: Rating within [800, 2400]

        Returns:
            Corresponding SkillLevel
        """
        if math.isnan(rating) or rating < MIN_RATING or rating > MAX_RATING:
            raise ValueError(f"Rating {rating} is outside [{MIN_RATING:g}, {MAX_RATING:g}]")
        if rating < 1200:
            return cls.NOVICE
        elif rating < 1400:
            return cls.INTERMEDIATE
        elif rating < 1600:
            return cls.PROFICIENT
        elif rating < 1800:
            return cls.ADVANCED
        else:
            return cls.EXPERT

    @property
    def label(self) -> str:
        return self.value

    @property
    def color(self) -> str:
        """Hex color for display."""
        return {
            SkillLevel.NOVICE: "#888",
            SkillLevel.INTERMEDIATE: "#4CAF50",
            SkillLevel.PROFICIENT: "#2196F3",
            SkillLevel.ADVANCED: "#FF9800",
            SkillLevel.EXPERT: "#F44336",
        }[self]


def get_skill_level(rating: float) -> SkillLevel:
    """Return the proficiency band (label + color) for a rating."""
    return SkillLevel.from_rating(rating)


@dataclass(frozen=True)
class Skill:
    """Snapshot of one skill's current rating."""

    id: str
    name: str
    rating: float = DEFAULT_RATING
    category: str | None = None
    description: str = ""
    trial_count: int = 0

    @property
    def level(self) -> SkillLevel:
        return SkillLevel.from_rating(self.rating)


@dataclass(frozen=True)
class RatingUpdate:
    """Result of applying one trial to one skill."""

    skill_id: str
    old_rating: float
    new_rating: float
    delta: float
    expected: float
    actual: float
    k_factor: float


@dataclass(frozen=True)
class RatingConfig:
    """Learning-rate schedule for rating updates."""

    k_base: float = 32.0
    k_min: float = 8.0
    half_life_trials: float = 100.0

    def __post_init__(self) -> None:
        if self.k_min <= 0:
            raise ValueError("k_min must be positive")
        if self.k_base < self.k_min:
            raise ValueError("k_base must be at least k_min")
        if self.half_life_trials <= 0:
            raise ValueError("half_life_trials must be positive")

    def k_factor(self, trial_count: int) -> float:
        """Learning rate after ``trial_count`` recorded trials."""
        decayed = self.k_base * self.half_life_trials / (self.half_life_trials + max(0, trial_count))
        return max(self.k_min, decayed)


def expected_score(rating: float, difficulty: float) -> float:
    """Probability of success for a skill at ``rating`` on a trial at ``difficulty``."""
    return 1.0 / (1.0 + 10.0 ** ((difficulty - rating) / 400.0))


def estimate_difficulty_rating(parameters: Mapping[str, Any]) -> float:
    """
    Map module-specific difficulty parameters onto the rating scale.

    Numeric parameters are assumed to be on a 0-10 scale; their mean is mapped
    linearly onto [800, 2400]. With no numeric parameters the default rating
    is returned.
    """
    values = [
        float(v)
        for v in parameters.values()
        if isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
    ]
    if not values:
        return DEFAULT_RATING
    avg = sum(values) / len(values)
    return clamp_rating(MIN_RATING + (avg / 10) * (MAX_RATING - MIN_RATING))


@dataclass
class DomainSummary:
    """Average rating for one skill category."""

    name: str
    skills: list[Skill] = field(default_factory=list)
    avg_rating: float = 0.0


@dataclass
class CognitiveProfile:
    """Overall picture of the learner's skills."""

    domains: dict[str, DomainSummary]
    overall_rating: float
    weakest: list[Skill]
    strongest: list[Skill]


class SkillStore:
    """
    Owns skill ratings and applies the Elo update rule.

    Ratings are persisted through an optional StateStorage after each
    mutation. Storage problems are logged and never interrupt an update.
    """

    def __init__(
        self,
        catalog: Catalog,
        storage: StateStorage | None = None,
        rating_config: RatingConfig | None = None,
        storage_key: str = SKILL_GRAPH_KEY,
    ):
        """
        Initialize the store with every catalog skill at the default rating.

        Args:
            catalog: Skill definitions and module map
            storage: Optional persistence backend
            rating_config: Learning-rate schedule
            storage_key: Document key used in storage
        """
        self.catalog = catalog
        self.storage = storage
        self.rating_config = rating_config or RatingConfig()
        self.storage_key = storage_key
        self._lock = threading.RLock()
        self._skills: dict[str, Skill] = {
            d.id: Skill(id=d.id, name=d.name, category=d.category, description=d.description)
            for d in catalog.skills
        }
        self.load()

    @property
    def module_map(self) -> ModuleSkillMap:
        return self.catalog.modules

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update_rating(self, skill_id: str, trial: Trial) -> RatingUpdate:
        """
        Apply one trial outcome to a skill.

        Unknown skills are created at the default rating first.

        Args:
            skill_id: Skill identifier
            trial: Validated trial outcome

        Returns:
            RatingUpdate; ``new_rating`` is the persisted rating
        """
        with self._lock:
            update = self._apply(skill_id, trial)
        self.save()
        return update

    def update_module_skills(self, module_id: str, trial: Trial) -> list[RatingUpdate]:
        """
        Update every skill trained by a module.

        Returns an empty list for modules absent from the module map.
        """
        skill_ids = self.module_map.skills_for(module_id)
        if not skill_ids:
            logger.debug(f"Module {module_id} is not in the module map - no skills updated")
            return []

        with self._lock:
            updates = [self._apply(skill_id, trial) for skill_id in skill_ids]
        self.save()
        return updates

    def _apply(self, skill_id: str, trial: Trial) -> RatingUpdate:
        skill = self._skills.get(skill_id)
        if skill is None:
            logger.debug(f"Unknown skill {skill_id} - creating at default rating")
            skill = Skill(id=skill_id, name=skill_id)

        k = self.rating_config.k_factor(skill.trial_count)
        expected = expected_score(skill.rating, trial.difficulty)
        actual = 1.0 if trial.correct else 0.0
        new_rating = clamp_rating(skill.rating + k * (actual - expected))

        self._skills[skill_id] = replace(skill, rating=new_rating, trial_count=skill.trial_count + 1)

        logger.debug(
            f"Skill {skill_id}: {skill.rating:.1f} -> {new_rating:.1f} "
            f"(k={k:.2f}, expected={expected:.3f}, actual={actual:g})"
        )
        return RatingUpdate(
            skill_id=skill_id,
            old_rating=skill.rating,
            new_rating=new_rating,
            delta=new_rating - skill.rating,
            expected=expected,
            actual=actual,
            k_factor=k,
        )

    def reset_skills(self) -> None:
        """Restore every skill to the default rating with no recorded trials."""
        with self._lock:
            for skill_id, skill in self._skills.items():
                self._skills[skill_id] = replace(skill, rating=DEFAULT_RATING, trial_count=0)
        self.save()
        logger.info("All skills reset to default rating")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_skill(self, skill_id: str) -> Skill | None:
        with self._lock:
            return self._skills.get(skill_id)

    def get_all_skills(self) -> list[Skill]:
        """All skills in catalog order."""
        with self._lock:
            return list(self._skills.values())

    def get_skills_by_category(self, category: str) -> list[Skill]:
        return [s for s in self.get_all_skills() if s.category == category]

    def get_weakest_skills(self, n: int = 5) -> list[Skill]:
        """Lowest-rated skills first; ties keep catalog order."""
        return self._ranked(n, descending=False)

    def get_strongest_skills(self, n: int = 5) -> list[Skill]:
        """Highest-rated skills first; ties keep catalog order."""
        return self._ranked(n, descending=True)

    def _ranked(self, n: int, descending: bool) -> list[Skill]:
        if n < 0:
            raise ValueError(f"Skill count must be non-negative, got {n}")
        skills = self.get_all_skills()
        # sorted() is stable, so equal ratings stay in catalog order
        ranked = sorted(skills, key=lambda s: -s.rating if descending else s.rating)
        return ranked[: min(n, len(ranked))]

    def get_skill_level(self, rating: float) -> SkillLevel:
        return SkillLevel.from_rating(rating)

    def get_module_skills(self, module_id: str) -> list[Skill]:
        with self._lock:
            return [
                self._skills[s]
                for s in self.module_map.skills_for(module_id)
                if s in self._skills
            ]

    def get_modules_for_skill(self, skill_id: str) -> list[str]:
        return self.module_map.modules_for_skill(skill_id)

    def get_cognitive_profile(self) -> CognitiveProfile:
        """Per-domain average ratings plus the three weakest and strongest skills."""
        skills = self.get_all_skills()
        domains: dict[str, DomainSummary] = {}
        for skill in skills:
            name = skill.category or "uncategorized"
            domains.setdefault(name, DomainSummary(name=name)).skills.append(skill)

        for domain in domains.values():
            domain.avg_rating = sum(s.rating for s in domain.skills) / len(domain.skills)

        overall = sum(s.rating for s in skills) / len(skills) if skills else DEFAULT_RATING
        return CognitiveProfile(
            domains=domains,
            overall_rating=overall,
            weakest=self.get_weakest_skills(3),
            strongest=self.get_strongest_skills(3),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """
        Merge persisted ratings into the store.

        Returns:
            True if a document was loaded
        """
        if self.storage is None:
            return False

        try:
            raw = self.storage.load(self.storage_key)
        except PersistenceError as e:
            logger.warning(f"Failed to load skill ratings: {e}")
            return False
        if raw is None:
            return False

        try:
            document = SkillGraphDocument.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed skill graph document: {e}")
            return False

        if document.version > DOCUMENT_VERSION:
            logger.warning(
                f"Skill graph document version {document.version} is newer than "
                f"supported {DOCUMENT_VERSION}; loading known fields only"
            )

        with self._lock:
            for skill_id, entry in document.skills.items():
                skill = self._skills.get(skill_id) or Skill(id=skill_id, name=skill_id)
                self._skills[skill_id] = replace(
                    skill, rating=clamp_rating(entry.rating), trial_count=entry.trials
                )
        logger.debug(f"Loaded {len(document.skills)} skill ratings from storage")
        return True

    def save(self) -> bool:
        """
        Persist current ratings (best-effort).

        Returns:
            True if the write succeeded
        """
        if self.storage is None:
            return False

        # Held across the write so concurrent saves land in mutation order
        with self._lock:
            document = SkillGraphDocument(
                skills={
                    s.id: SkillRatingEntry(rating=s.rating, trials=s.trial_count)
                    for s in self._skills.values()
                }
            )
            try:
                self.storage.save(self.storage_key, document.model_dump_json())
            except PersistenceError as e:
                logger.warning(f"Failed to save skill ratings: {e}")
                return False
        return True

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Plain-data view of all ratings."""
        return {
            s.id: {"name": s.name, "rating": s.rating, "category": s.category, "trials": s.trial_count}
            for s in self.get_all_skills()
        }

    def __repr__(self) -> str:
        return f"SkillStore({len(self._skills)} skills)"
