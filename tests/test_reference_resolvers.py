"""
Reference resolver tests: ability trees, advancement gating, tree
requirements, chassis ability hydration and trait references.
"""

import copy

import pytest

import reference_resolvers as rr
from conftest import build_catalog, record

HACKING_IDS = [
    "ability-access",
    "ability-backdoor",
    "ability-data-spike",
    "ability-encrypt",
    "ability-override",
    "ability-firewall",
    "ability-system-crash",
    "ability-signal-ghost",
]


@pytest.fixture()
def hacker(reference_catalog):
    return reference_catalog.get("classes.core", "class-hacker")


@pytest.fixture()
def ghost(reference_catalog):
    return reference_catalog.get("classes.advanced", "class-ghost")


# ── Tree resolution ────────────────────────────────────────────────────────

class TestTreeResolution:
    def test_hacking_tree_in_level_order(self, reference_catalog):
        abilities = rr.abilities_for_tree(reference_catalog, "Hacking")
        assert [a["id"] for a in abilities] == HACKING_IDS
        assert [a["level"] for a in abilities] == [1, 1, 2, 2, 3, 3, 4, 4]

    def test_legendary_ties_break_by_name(self, reference_catalog):
        abilities = rr.abilities_for_tree(reference_catalog, "Legendary Hacker", legendary=True)
        assert [a["name"] for a in abilities] == ["Master Key", "Omnipresence", "Zero Day"]

    def test_non_legendary_ties_keep_file_order(self):
        catalog = build_catalog(abilities=[
            record("b", "Bravo", tree="T", level=1),
            record("a", "Alpha", tree="T", level=1),
        ])
        assert [a["id"] for a in rr.abilities_for_tree(catalog, "T")] == ["b", "a"]

    def test_resolve_class_trees(self, reference_catalog, hacker):
        trees = rr.resolve_class_trees(reference_catalog, hacker)
        assert list(trees) == ["Hacking", "Electronic Warfare", "Advanced Hacker", "Legendary Hacker"]
        assert [a["id"] for a in trees["Hacking"]] == HACKING_IDS
        assert [a["name"] for a in trees["Legendary Hacker"]] == ["Master Key", "Omnipresence", "Zero Day"]

    def test_resolve_class_trees_with_hybrid(self, reference_catalog, hacker, ghost):
        trees = rr.resolve_class_trees(reference_catalog, hacker, ghost)
        assert list(trees) == ["Hacking", "Electronic Warfare", "Ghost", "Legendary Ghost"]

    def test_resolve_class_trees_without_advanced_tree(self, reference_catalog):
        salvager = reference_catalog.get("classes.core", "class-salvager")
        assert list(rr.resolve_class_trees(reference_catalog, salvager)) == ["Salvaging"]


# ── Advanced tree gating ───────────────────────────────────────────────────

class TestAdvancedTreeGating:
    def test_five_abilities_not_eligible(self, reference_catalog, hacker):
        held = HACKING_IDS[:5]
        assert rr.count_core_tree_abilities(reference_catalog, hacker, held) == 5
        assert rr.is_advanced_tree_eligible(reference_catalog, hacker, held) is False
        assert "Advanced Hacker" not in rr.visible_trees(reference_catalog, hacker, held)

    def test_sixth_ability_makes_eligible(self, reference_catalog, hacker):
        held = HACKING_IDS[:6]
        assert rr.is_advanced_tree_eligible(reference_catalog, hacker, held) is True
        assert rr.visible_trees(reference_catalog, hacker, held) == [
            "Hacking", "Electronic Warfare", "Advanced Hacker", "Legendary Hacker",
        ]

    def test_hybrid_suppresses_regardless_of_count(self, reference_catalog, hacker, ghost):
        assert rr.is_advanced_tree_eligible(reference_catalog, hacker, HACKING_IDS, ghost) is False
        trees = rr.visible_trees(reference_catalog, hacker, HACKING_IDS, ghost)
        assert "Advanced Hacker" not in trees
        assert "Ghost" in trees

    def test_own_advanced_class_still_gated(self, reference_catalog, hacker):
        advanced_hacker = reference_catalog.get("classes.advanced", "class-advanced-hacker")
        assert rr.visible_trees(reference_catalog, hacker, [], advanced_hacker) == ["Hacking", "Electronic Warfare"]
        trees = rr.visible_trees(reference_catalog, hacker, HACKING_IDS[:6], advanced_hacker)
        assert trees[-2:] == ["Advanced Hacker", "Legendary Hacker"]

    def test_non_core_abilities_do_not_count(self, reference_catalog, hacker):
        held = HACKING_IDS[:5] + ["ability-scrounge", "ability-unknown"]
        assert rr.count_core_tree_abilities(reference_catalog, hacker, held) == 5
        assert rr.is_advanced_tree_eligible(reference_catalog, hacker, held) is False

    def test_duplicate_ids_count_once(self, reference_catalog, hacker):
        held = HACKING_IDS[:5] + [HACKING_IDS[0]]
        assert rr.count_core_tree_abilities(reference_catalog, hacker, held) == 5

    def test_non_advanceable_class(self, reference_catalog):
        salvager = reference_catalog.get("classes.core", "class-salvager")
        held = ["ability-scrounge", "ability-strip-down", "ability-jury-rig"] * 2
        assert rr.is_advanced_tree_eligible(reference_catalog, salvager, held) is False

    def test_recomputed_from_held_state(self, reference_catalog, hacker):
        held = list(HACKING_IDS[:6])
        assert rr.is_advanced_tree_eligible(reference_catalog, hacker, held)
        held.pop()
        assert not rr.is_advanced_tree_eligible(reference_catalog, hacker, held)


# ── Advanced class options ─────────────────────────────────────────────────

class TestAvailableAdvancedClasses:
    def test_below_threshold(self, reference_catalog, hacker):
        assert rr.available_advanced_classes(reference_catalog, hacker, HACKING_IDS[:5]) == []

    def test_hybrid_and_own_advanced_version(self, reference_catalog, hacker):
        options = rr.available_advanced_classes(reference_catalog, hacker, HACKING_IDS[:6])
        assert [c["id"] for c in options] == ["class-ghost", "class-advanced-hacker"]

    @pytest.mark.parametrize("started", ["ability-deep-dive", "ability-zero-day"])
    def test_started_own_advanced_tree_closes_hybrids(self, reference_catalog, hacker, started):
        options = rr.available_advanced_classes(reference_catalog, hacker, HACKING_IDS[:6] + [started])
        assert [c["id"] for c in options] == ["class-advanced-hacker"]

    def test_salvager_cannot_advance(self, reference_catalog):
        salvager = reference_catalog.get("classes.core", "class-salvager")
        held = HACKING_IDS[:3] + ["ability-scrounge", "ability-strip-down", "ability-jury-rig"]
        assert rr.available_advanced_classes(reference_catalog, salvager, held) == []

    def test_no_complete_tree(self, reference_catalog, hacker):
        held = HACKING_IDS[:2] + ["ability-jamming", "ability-signal-boost", "ability-scrounge", "ability-strip-down"]
        assert rr.available_advanced_classes(reference_catalog, hacker, held) == []


# ── Levels and costs ───────────────────────────────────────────────────────

class TestLevelsAndCosts:
    def test_only_first_level_available_initially(self, reference_catalog):
        assert rr.available_levels(reference_catalog, "Hacking", []) == [1]

    def test_levels_open_in_order(self, reference_catalog):
        held = ["ability-access", "ability-data-spike"]
        assert rr.available_levels(reference_catalog, "Hacking", held) == [1, 2, 3]

    def test_gap_blocks_higher_levels(self, reference_catalog):
        assert rr.available_levels(reference_catalog, "Hacking", ["ability-data-spike"]) == [1]

    def test_ability_costs(self, reference_catalog, hacker, ghost):
        get = reference_catalog.get
        assert rr.get_ability_cost(get("abilities", "ability-access"), hacker) == 1
        assert rr.get_ability_cost(get("abilities", "ability-deep-dive"), hacker) == 2
        assert rr.get_ability_cost(get("abilities", "ability-zero-day"), hacker) == 3
        assert rr.get_ability_cost(get("abilities", "ability-phase-step"), hacker, ghost) == 2
        assert rr.get_ability_cost(get("abilities", "ability-vanish"), hacker, ghost) == 3
        assert rr.get_ability_cost(get("abilities", "ability-scrounge"), hacker) == 1
        assert rr.get_ability_cost({}, hacker) == 1


# ── Tree requirements ──────────────────────────────────────────────────────

class TestTreeRequirements:
    def test_chain(self, reference_catalog):
        chain = rr.resolve_tree_requirements(reference_catalog, "Legendary Hacker")
        assert [r["tree"] for r in chain] == ["Legendary Hacker", "Advanced Hacker"]

    def test_core_tree_has_no_requirements(self, reference_catalog):
        assert rr.resolve_tree_requirements(reference_catalog, "Hacking") == []

    def test_ability_requirements(self, reference_catalog):
        vanish = reference_catalog.get("abilities", "ability-vanish")
        assert [r["tree"] for r in rr.resolve_ability_requirements(reference_catalog, vanish)] == [
            "Legendary Ghost", "Ghost",
        ]

    def test_cycles_terminate(self):
        catalog = build_catalog(ability_tree_requirements=[
            record("r1", "A", tree="A", requirement=["B"]),
            record("r2", "B", tree="B", requirement=["A"]),
        ])
        assert [r["id"] for r in rr.resolve_tree_requirements(catalog, "A")] == ["r1", "r2"]


# ── Chassis abilities ──────────────────────────────────────────────────────

class TestChassisAbilities:
    def test_placeholder_substitution(self):
        assert rr.substitute_chassis_placeholder("[(CHASSIS)] deals +1 damage.", "Ronin") == "The Ronin deals +1 damage."

    def test_non_text_passes_through(self):
        assert rr.substitute_chassis_placeholder(None, "Ronin") is None

    def test_ronin_hydration(self, reference_catalog):
        ronin = reference_catalog.get("chassis", "chassis-ronin")
        before = copy.deepcopy(reference_catalog.get("chassis-abilities", "chassis-ability-ronin-strike"))

        [ability] = rr.resolve_chassis_abilities(reference_catalog, ronin)
        assert ability["chassisName"] == "Ronin"
        assert ability["description"] == "The Ronin deals +1 damage."
        assert ability["effect"] == "Once per turn The Ronin may make a free melee attack."
        assert ability["content"][0]["value"] == "While its blade is drawn The Ronin cannot be pinned."

        assert reference_catalog.get("chassis-abilities", "chassis-ability-ronin-strike") == before

    def test_chassis_without_abilities(self, reference_catalog):
        blade = reference_catalog.get("systems", "system-energy-blade")
        assert rr.resolve_chassis_abilities(reference_catalog, blade) == []


# ── Traits ─────────────────────────────────────────────────────────────────

class TestTraits:
    def test_simple_and_parameterized(self):
        refs = rr.parse_trait_references("A [[[Hot] (2)]] torch. [[Consumable]] and [[Pilot Equipment]].")
        assert [r["traitName"] for r in refs] == ["Hot", "Consumable", "Pilot Equipment"]
        assert refs[0]["parameter"] == "2"
        assert "parameter" not in refs[1]
        assert refs[0]["fullMatch"] == "[[[Hot] (2)]]"
        assert refs[0]["startIndex"] == 2

    def test_lowercase_names_ignored(self):
        assert rr.parse_trait_references("[[hot]]") == []

    def test_non_text(self):
        assert rr.parse_trait_references(None) == []

    def test_format_traits(self, reference_catalog):
        blade = reference_catalog.get("systems", "system-energy-blade")
        assert rr.format_traits(blade) == ["Hot(3)", "Melee"]
        assert rr.format_traits(reference_catalog.get("traits", "trait-hot")) == []

    def test_format_traits_from_same_name_action(self):
        catalog = build_catalog(actions=[record("a-zap", "Zap", traits=[{"type": "Hot", "amount": 2}])])
        entity = record("s-zap", "Zap", actions=["Zap"])
        assert rr.format_traits(entity) == []
        assert rr.format_traits(entity, catalog) == ["Hot(2)"]
