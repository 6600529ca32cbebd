from __future__ import annotations

import unittest

from estimate_models import BrickWall, QuoteBuilder, Room, Staircase
from inclusion_resolver import (
    CATEGORIES,
    NOTHING_INCLUDED,
    compute_resolved_inclusions,
    resolve_inclusion,
    validate_resolved_inclusions,
)


class TestResolveInclusion(unittest.TestCase):
    def test_combined_and_truth_table(self) -> None:
        cases = [
            (None, True, True),
            (None, False, False),
            (True, True, True),
            (True, False, False),
            (False, True, False),
            (False, False, False),
        ]
        for entity_toggle, quote_toggle, expected in cases:
            with self.subTest(entity=entity_toggle, quote=quote_toggle):
                self.assertIs(resolve_inclusion(entity_toggle, quote_toggle), expected)


class TestComputeResolvedInclusions(unittest.TestCase):
    def test_unset_room_toggles_follow_the_quote_builder(self) -> None:
        resolved = compute_resolved_inclusions(Room(id="r1", name="Den"), QuoteBuilder())
        for category in CATEGORIES:
            if category == "crown_moulding":
                continue
            self.assertTrue(resolved.is_included(category), category)

    def test_crown_needs_the_room_to_have_crown(self) -> None:
        self.assertFalse(compute_resolved_inclusions(Room(id="r1", name="Den"), QuoteBuilder()).crown_moulding)
        with_crown = Room(id="r1", name="Den", has_crown_moulding=True)
        self.assertTrue(compute_resolved_inclusions(with_crown, QuoteBuilder()).crown_moulding)
        self.assertFalse(compute_resolved_inclusions(with_crown, QuoteBuilder(include_trim=False)).crown_moulding)

    def test_room_toggle_off_vetoes_quote_builder_on(self) -> None:
        room = Room(id="r1", name="Den", paint_windows=False, paint_ceilings=False)
        resolved = compute_resolved_inclusions(room, QuoteBuilder())
        self.assertFalse(resolved.windows)
        self.assertFalse(resolved.ceilings)
        self.assertTrue(resolved.walls)

    def test_quote_builder_off_vetoes_room_on(self) -> None:
        room = Room(id="r1", name="Den", paint_walls=True)
        resolved = compute_resolved_inclusions(room, QuoteBuilder(include_walls=False))
        self.assertFalse(resolved.walls)

    def test_jambs_share_the_doors_toggle(self) -> None:
        resolved = compute_resolved_inclusions(Room(id="r1", name="Den"), QuoteBuilder(include_doors=False))
        self.assertFalse(resolved.doors)
        self.assertFalse(resolved.jambs)

    def test_excluded_entity_resolves_to_nothing(self) -> None:
        room = Room(id="r1", name="Den", included=False, paint_walls=True)
        self.assertEqual(compute_resolved_inclusions(room, QuoteBuilder()), NOTHING_INCLUDED)
        stairs = Staircase(id="s1", included=False)
        self.assertEqual(compute_resolved_inclusions(stairs, QuoteBuilder()), NOTHING_INCLUDED)

    def test_structural_entities_only_carry_the_entity_veto(self) -> None:
        resolved = compute_resolved_inclusions(BrickWall(id="b1"), QuoteBuilder(include_walls=False))
        self.assertTrue(resolved.walls)

    def test_closet_interior_three_level_fallback(self) -> None:
        qb = QuoteBuilder()
        room = Room(id="r1", name="Den", single_door_closets=1)
        self.assertTrue(compute_resolved_inclusions(room, qb).closet_interiors)
        self.assertFalse(compute_resolved_inclusions(room, qb, project_include_closet_interior=False).closet_interiors)

        explicit_on = Room(id="r1", name="Den", include_closet_interior_in_quote=True)
        self.assertTrue(
            compute_resolved_inclusions(explicit_on, qb, project_include_closet_interior=False).closet_interiors
        )

        explicit_off = Room(id="r1", name="Den", include_closet_interior_in_quote=False)
        self.assertFalse(
            compute_resolved_inclusions(explicit_off, qb, project_include_closet_interior=True).closet_interiors
        )

    def test_closet_interiors_are_anded_with_include_closets(self) -> None:
        room = Room(id="r1", name="Den", include_closet_interior_in_quote=True)
        resolved = compute_resolved_inclusions(room, QuoteBuilder(include_closets=False))
        self.assertFalse(resolved.closets)
        self.assertFalse(resolved.closet_interiors)

    def test_is_included_rejects_unknown_category(self) -> None:
        with self.assertRaises(KeyError):
            NOTHING_INCLUDED.is_included("gutters")


class TestValidateResolvedInclusions(unittest.TestCase):
    def test_reports_excluded_category_with_quantity(self) -> None:
        resolved = compute_resolved_inclusions(Room(id="r1", name="Den", paint_walls=False), QuoteBuilder())
        warnings = validate_resolved_inclusions(resolved, {"walls": 120.0, "ceilings": 100.0})
        self.assertEqual(len(warnings), 1)
        self.assertIn("walls", warnings[0])

    def test_agreement_yields_no_warnings(self) -> None:
        resolved = compute_resolved_inclusions(Room(id="r1", name="Den", paint_walls=False), QuoteBuilder())
        self.assertEqual(validate_resolved_inclusions(resolved, {"walls": 0.0, "ceilings": 100.0}), [])

    def test_unknown_categories_are_ignored(self) -> None:
        self.assertEqual(validate_resolved_inclusions(NOTHING_INCLUDED, {"risers": 10.0}), [])


if __name__ == "__main__":
    unittest.main()
