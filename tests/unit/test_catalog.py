"""
Unit tests for the skill catalog and module map.

Tests:
- Built-in taxonomy shape
- Ordered lookups and unknown-id behavior
- Validation of malformed definitions
- Trial input validation
"""

import pytest
from pydantic import ValidationError

from cognitive_os.core.catalog import (
    DEFAULT_MODULES,
    DEFAULT_SKILLS,
    Catalog,
    ModuleDefinition,
    ModuleSkillMap,
    SkillDefinition,
    build_catalog,
)
from cognitive_os.core.errors import CatalogError
from cognitive_os.core.trial import Trial


class TestDefaultCatalog:
    """Tests for the built-in taxonomy."""

    def test_has_nineteen_skills_in_six_domains(self, catalog):
        assert len(catalog.skills) == 19
        assert {s.category for s in catalog.skills} == {
            "memory", "attention", "control", "perception", "integration", "auditory",
        }

    def test_has_seven_modules_of_three_skills(self, catalog):
        assert len(catalog.modules) == 7
        for module_id in catalog.modules:
            assert len(catalog.modules.skills_for(module_id)) == 3

    def test_module_order_is_declaration_order(self, catalog):
        assert catalog.modules.module_ids == tuple(m[0] for m in DEFAULT_MODULES)
        assert catalog.skill_ids == tuple(s.id for s in DEFAULT_SKILLS)

    def test_modules_for_skill_in_catalog_order(self, catalog):
        assert catalog.modules.modules_for_skill("percept.temporal") == [
            "expand_vision",
            "neural_flow",
            "psychoacoustic_wizard",
        ]

    def test_module_name(self, catalog):
        assert catalog.modules.module_name("symbol_memory") == "Symbol Memory"


class TestUnknownIdentifiers:
    """Unknown modules and skills are lookups that find nothing."""

    def test_unknown_module_has_no_skills(self, catalog):
        assert catalog.modules.skills_for("nonexistent") == ()
        assert "nonexistent" not in catalog.modules
        assert catalog.modules.get("nonexistent") is None

    def test_unknown_module_name_falls_back_to_id(self, catalog):
        assert catalog.modules.module_name("nonexistent") == "nonexistent"

    def test_unknown_skill_trained_by_no_module(self, catalog):
        assert catalog.modules.modules_for_skill("nonexistent") == []
        assert catalog.get_skill("nonexistent") is None


class TestCatalogValidation:
    """Malformed definitions are rejected at construction."""

    def test_duplicate_skill_rejected(self):
        with pytest.raises(CatalogError, match="Duplicate skill"):
            build_catalog([SkillDefinition("a", "A"), SkillDefinition("a", "A again")], [])

    def test_duplicate_module_rejected(self):
        with pytest.raises(CatalogError, match="Duplicate module"):
            ModuleSkillMap([ModuleDefinition("m", "M", ("a",)), ModuleDefinition("m", "M", ("a",))])

    def test_repeated_skill_in_module_rejected(self):
        with pytest.raises(CatalogError):
            ModuleSkillMap([ModuleDefinition("m", "M", ("a", "a"))])

    def test_module_referencing_unknown_skill_rejected(self):
        with pytest.raises(CatalogError, match="unknown skills"):
            build_catalog([SkillDefinition("a", "A")], [("m", "M", ("a", "b"))])

    def test_catalog_error_is_value_error(self):
        with pytest.raises(ValueError):
            Catalog(skills=(SkillDefinition("a", "A"), SkillDefinition("a", "A")))


class TestTrial:
    """Trial inputs are validated at the boundary."""

    def test_defaults(self):
        trial = Trial(correct=True)
        assert trial.difficulty == 1500
        assert trial.reaction_time_ms is None
        assert trial.error_type is None

    def test_correct_must_be_boolean(self):
        with pytest.raises(ValidationError):
            Trial(correct="yes")
        with pytest.raises(ValidationError):
            Trial(correct=1)

    @pytest.mark.parametrize("difficulty", [799.9, 2400.1, float("nan"), float("inf")])
    def test_difficulty_out_of_range(self, difficulty):
        with pytest.raises(ValidationError):
            Trial(correct=True, difficulty=difficulty)

    def test_negative_reaction_time_rejected(self):
        with pytest.raises(ValidationError):
            Trial(correct=True, reaction_time_ms=-1)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            Trial(correct=True, confidence=3)

    def test_frozen(self):
        trial = Trial(correct=True)
        with pytest.raises(ValidationError):
            trial.correct = False
