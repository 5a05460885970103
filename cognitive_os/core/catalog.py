"""
Skill Catalog and Module-to-Skills Map.

Every training module trains a fixed, ordered set of cognitive skills.
The catalog is supplied once at start-up and never mutated afterwards;
iteration order is the declaration order, which is what the session
composer relies on for reproducible tie-breaks.

Taxonomy (19 skills, 6 domains):
- memory:      visual, spatial, sequence, binding
- attention:   selective, divided, sustained, breadth
- control:     inhibition, switching, conflict
- perception:  discrimination, noise robustness, temporal
- integration: audiovisual, multimodal sequences
- auditory:    pitch, rhythm, scene parsing
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from cognitive_os.core.errors import CatalogError

MIN_RATING = 800.0
MAX_RATING = 2400.0
DEFAULT_RATING = 1500.0


@dataclass(frozen=True)
class SkillDefinition:
    """Static description of one trainable skill."""

    id: str
    name: str
    category: str | None = None
    description: str = ""


@dataclass(frozen=True)
class ModuleDefinition:
    """A training module and the skills it exercises."""

    id: str
    name: str
    skill_ids: tuple[str, ...]


class ModuleSkillMap:
    """
    Read-only, ordered mapping from module id to the skill ids it trains.

    Unknown module ids are not errors: lookups return an empty tuple.
    """

    def __init__(self, modules: Iterable[ModuleDefinition]):
        self._modules: dict[str, ModuleDefinition] = {}
        for module in modules:
            if module.id in self._modules:
                raise CatalogError(f"Duplicate module id in module map: {module.id}")
            if len(set(module.skill_ids)) != len(module.skill_ids):
                raise CatalogError(f"Module {module.id} lists a skill more than once")
            self._modules[module.id] = module
        self._order = tuple(self._modules)

    @property
    def module_ids(self) -> tuple[str, ...]:
        """Module ids in catalog order."""
        return self._order

    def skills_for(self, module_id: str) -> tuple[str, ...]:
        module = self._modules.get(module_id)
        return module.skill_ids if module else ()

    def modules_for_skill(self, skill_id: str) -> list[str]:
        return [m for m in self._order if skill_id in self._modules[m].skill_ids]

    def module_name(self, module_id: str) -> str:
        """Friendly display name, falling back to the raw id."""
        module = self._modules.get(module_id)
        return module.name if module else module_id

    def get(self, module_id: str) -> ModuleDefinition | None:
        return self._modules.get(module_id)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"ModuleSkillMap({list(self._order)!r})"


@dataclass(frozen=True)
class Catalog:
    """Ordered skill definitions plus the module map that references them."""

    skills: tuple[SkillDefinition, ...]
    modules: ModuleSkillMap = field(default_factory=lambda: ModuleSkillMap(()))

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for skill in self.skills:
            if skill.id in seen:
                raise CatalogError(f"Duplicate skill id in catalog: {skill.id}")
            seen.add(skill.id)

        for module_id in self.modules:
            unknown = [s for s in self.modules.skills_for(module_id) if s not in seen]
            if unknown:
                raise CatalogError(
                    f"Module {module_id} references unknown skills: {', '.join(unknown)}"
                )

    @property
    def skill_ids(self) -> tuple[str, ...]:
        return tuple(skill.id for skill in self.skills)

    def get_skill(self, skill_id: str) -> SkillDefinition | None:
        for skill in self.skills:
            if skill.id == skill_id:
                return skill
        return None


def build_catalog(
    skills: Sequence[SkillDefinition],
    modules: Sequence[tuple[str, str, Sequence[str]]],
) -> Catalog:
    """
    Build a catalog from plain definitions.

    Args:
        skills: Skill definitions in catalog order
        modules: (module_id, display_name, skill_ids) triples in catalog order

    Returns:
        Validated Catalog
    """
    module_map = ModuleSkillMap(
        ModuleDefinition(id=module_id, name=name, skill_ids=tuple(skill_ids))
        for module_id, name, skill_ids in modules
    )
    return Catalog(skills=tuple(skills), modules=module_map)


# =============================================================================
# Built-in taxonomy
# =============================================================================

DEFAULT_SKILLS: tuple[SkillDefinition, ...] = (
    # Working memory
    SkillDefinition("wm.visual", "Visual Working Memory", "memory", "Hold visual patterns in mind"),
    SkillDefinition("wm.spatial", "Spatial Working Memory", "memory", "Remember locations and spatial relationships"),
    SkillDefinition("wm.sequence", "Sequence Working Memory", "memory", "Remember ordered sequences"),
    SkillDefinition("wm.binding", "Feature Binding", "memory", "Link features (color, shape, position)"),
    # Attention
    SkillDefinition("attn.selective", "Selective Attention", "attention", "Focus on relevant stimuli"),
    SkillDefinition("attn.divided", "Divided Attention", "attention", "Monitor multiple streams simultaneously"),
    SkillDefinition("attn.sustained", "Sustained Attention", "attention", "Maintain focus over time"),
    SkillDefinition("attn.breadth", "Attentional Breadth", "attention", "Expand peripheral awareness"),
    # Cognitive control
    SkillDefinition("control.inhibition", "Inhibitory Control", "control", "Suppress automatic responses"),
    SkillDefinition("control.switching", "Task Switching", "control", "Switch between task rules"),
    SkillDefinition("control.conflict", "Conflict Monitoring", "control", "Detect and resolve conflicts"),
    # Perception
    SkillDefinition("percept.discrimination", "Fine Discrimination", "perception", "Distinguish similar stimuli"),
    SkillDefinition("percept.noise_robust", "Noise Robustness", "perception", "Perceive under interference"),
    SkillDefinition("percept.temporal", "Temporal Resolution", "perception", "Detect rapid changes"),
    # Cross-modal integration
    SkillDefinition("xmodal.audiovisual", "Audiovisual Binding", "integration", "Integrate sight and sound"),
    SkillDefinition("xmodal.sequence", "Multimodal Sequences", "integration", "Track cross-modal patterns"),
    # Auditory
    SkillDefinition("audio.pitch", "Pitch Discrimination", "auditory", "Distinguish pitch differences"),
    SkillDefinition("audio.rhythm", "Rhythm Timing", "auditory", "Perceive temporal patterns"),
    SkillDefinition("audio.parsing", "Auditory Scene Parsing", "auditory", "Separate sound sources"),
)

DEFAULT_MODULES: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("symbol_memory", "Symbol Memory", ("wm.visual", "wm.binding", "attn.selective")),
    ("morph_matrix", "Morph Matrix", ("wm.spatial", "percept.discrimination", "control.conflict")),
    ("expand_vision", "Expand Vision", ("attn.breadth", "attn.divided", "percept.temporal")),
    ("neural_flow", "Neural Flow", ("control.switching", "control.conflict", "percept.temporal")),
    ("neural_synthesis", "Neural Synthesis", ("xmodal.audiovisual", "xmodal.sequence", "wm.sequence")),
    ("music_theory", "Music Theory", ("audio.pitch", "audio.parsing", "percept.discrimination")),
    ("psychoacoustic_wizard", "Psychoacoustic Wizard", ("audio.rhythm", "percept.temporal", "control.conflict")),
)


def default_catalog() -> Catalog:
    """Return the built-in skill taxonomy and module map."""
    return build_catalog(DEFAULT_SKILLS, DEFAULT_MODULES)
