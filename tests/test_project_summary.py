from __future__ import annotations

import unittest
from dataclasses import replace

from estimate_models import (
    BrickWall,
    PaintOption,
    Project,
    Quote,
    QuoteBuilder,
    Room,
    Staircase,
)
from estimate_settings import CalculationSettings, MissingRateError, PricingSettings, default_pricing_settings
from project_summary import (
    calculate_paint_option_results,
    calculate_project_closet_stats,
    calculate_project_summary,
    format_currency,
    format_gallons,
    paint_purchase_breakdown,
    room_in_scope,
)
from sample_project import load_sample_project

_PLAIN = CalculationSettings(door_height=8.0, door_width=2.5, door_trim_width=0.0, window_trim_width=0.0)

_WALLS_ONLY = QuoteBuilder(
    include_ceilings=False,
    include_trim=False,
    include_doors=False,
    include_windows=False,
    include_baseboards=False,
    include_closets=False,
    include_primer=False,
    paint_options=(),
)

_WALL_PRICING = PricingSettings(
    wall_labor_per_sqft=1.5,
    wall_paint_per_gallon=40.0,
    wall_coverage_sqft_per_gallon=350.0,
    second_coat_labor_multiplier=2.0,
    furniture_moving_fee=100.0,
)


def _box(room_id: str, **overrides) -> Room:
    base = dict(id=room_id, name=room_id.title(), length=10, width=10, height=8, door_count=1, window_count=1)
    base.update(overrides)
    return Room(**base)


def _project(*rooms: Room, qb: QuoteBuilder = _WALLS_ONLY, **overrides) -> Project:
    return Project(
        id="p1",
        rooms=tuple(rooms),
        project_coats=2,
        quotes=(Quote(id="q1", title="Estimate", quote_builder=qb),),
        active_quote_id="q1",
        **overrides,
    )


class TestRoomScope(unittest.TestCase):
    def test_room_allow_list(self) -> None:
        qb = QuoteBuilder(include_all_rooms=False, included_room_ids=("a",))
        self.assertTrue(room_in_scope(_box("a"), qb))
        self.assertFalse(room_in_scope(_box("b"), qb))

    def test_room_veto_and_floor_toggle(self) -> None:
        self.assertFalse(room_in_scope(_box("a", included=False), QuoteBuilder()))
        self.assertFalse(room_in_scope(_box("a", floor=2), QuoteBuilder(include_floor_2=False)))
        self.assertTrue(room_in_scope(_box("a", floor=7), QuoteBuilder(include_floor_2=False)))


class TestProjectSummary(unittest.TestCase):
    def test_grand_total_sums_displayed_room_totals(self) -> None:
        summary = calculate_project_summary(_project(_box("a"), _box("b")), _WALL_PRICING, _PLAIN)
        self.assertEqual([i.price for i in summary.itemized_prices], [935, 935])
        self.assertEqual(summary.grand_total, 1870)
        self.assertEqual(summary.labor_total, 1710.0)
        self.assertEqual(summary.materials_total, 160.0)
        self.assertEqual(summary.total_doors, 2)
        self.assertEqual(summary.total_windows, 2)
        self.assertAlmostEqual(summary.total_wall_sqft, 570.0)

    def test_out_of_scope_rooms_contribute_nothing(self) -> None:
        qb = replace(_WALLS_ONLY, include_all_rooms=False, included_room_ids=("a",))
        project = _project(_box("a"), _box("b"), _box("c", included=False), qb=qb)
        summary = calculate_project_summary(project, _WALL_PRICING, _PLAIN)
        self.assertEqual([s.entity_id for s in summary.entity_summaries], ["a"])
        self.assertEqual(summary.grand_total, 935)

    def test_floor_toggle_filters_rooms(self) -> None:
        qb = replace(_WALLS_ONLY, include_floor_2=False)
        project = _project(_box("a"), _box("up", floor=2), qb=qb)
        summary = calculate_project_summary(project, _WALL_PRICING, _PLAIN)
        self.assertEqual(summary.grand_total, 935)

    def test_explicit_quote_builder_overrides_active_quote(self) -> None:
        project = _project(_box("a"), _box("b"))
        qb = replace(_WALLS_ONLY, include_all_rooms=False, included_room_ids=("b",))
        summary = calculate_project_summary(project, _WALL_PRICING, _PLAIN, qb)
        self.assertEqual([s.entity_id for s in summary.entity_summaries], ["b"])

    def test_fees_are_itemized_and_added(self) -> None:
        project = _project(_box("a"), include_furniture_moving=True)
        summary = calculate_project_summary(project, _WALL_PRICING, _PLAIN)
        self.assertEqual(summary.grand_total, 935 + 100)
        fee = summary.itemized_prices[-1]
        self.assertEqual((fee.kind, fee.price), ("fee", 100))
        self.assertEqual(summary.labor_total, 855.0 + 100.0)

    def test_garbage_counts_and_floor_parse_to_defaults(self) -> None:
        project = _project(
            _box("a", door_count="abc", window_count="2.5"),  # type: ignore[arg-type]
            _box("b", door_count=-3, floor="upstairs"),  # type: ignore[arg-type]
        )
        summary = calculate_project_summary(project, _WALL_PRICING, _PLAIN)
        self.assertEqual(len(summary.entity_summaries), 2)
        self.assertEqual(summary.total_doors, 0)
        self.assertEqual(summary.total_windows, 3)
        self.assertEqual(summary.entity_summaries[1].floor, 1)

    def test_unparseable_floor_follows_ground_floor_toggle(self) -> None:
        room = _box("a", floor="upstairs")  # type: ignore[arg-type]
        self.assertTrue(room_in_scope(room, QuoteBuilder()))
        self.assertFalse(room_in_scope(room, QuoteBuilder(include_floor_1=False)))

    def test_enabled_fee_without_rate_raises(self) -> None:
        project = _project(_box("a"), include_nails_removal=True)
        with self.assertRaises(MissingRateError):
            calculate_project_summary(project, _WALL_PRICING, _PLAIN)

    def test_structural_toggles(self) -> None:
        pricing = default_pricing_settings()
        project = _project(
            qb=QuoteBuilder(include_staircases=False, paint_options=()),
            staircases=(Staircase(id="s", riser_count=10),),
            brick_walls=(BrickWall(id="bw", width=10, height=8),),
        )
        summary = calculate_project_summary(project, pricing, CalculationSettings())
        kinds = [s.entity_kind for s in summary.entity_summaries]
        self.assertEqual(kinds, ["brick_wall"])

    def test_unnamed_structural_entities_get_numbered_names(self) -> None:
        pricing = default_pricing_settings()
        project = _project(staircases=(Staircase(id="s1", riser_count=3), Staircase(id="s2", riser_count=3)))
        summary = calculate_project_summary(project, pricing, CalculationSettings())
        self.assertEqual([i.name for i in summary.itemized_prices], ["Staircase 1", "Staircase 2"])

    def test_primer_only_when_requested(self) -> None:
        pricing = replace(_WALL_PRICING, primer_per_gallon=30.0)
        without = calculate_project_summary(_project(_box("a")), pricing, _PLAIN)
        self.assertEqual(without.primer_gallons, 0.0)
        with_primer = calculate_project_summary(
            _project(_box("a"), qb=replace(_WALLS_ONLY, include_primer=True)), pricing, _PLAIN
        )
        self.assertAlmostEqual(with_primer.primer_gallons, 0.2 * 285.0 / 350.0 * 2)
        # Primer is reported, not added to the grand total.
        self.assertEqual(with_primer.grand_total, without.grand_total)

    def test_sample_project_totals_are_consistent(self) -> None:
        project = load_sample_project()
        summary = calculate_project_summary(project, default_pricing_settings(), CalculationSettings())
        self.assertEqual(summary.grand_total, sum(i.price for i in summary.itemized_prices))
        self.assertGreater(summary.grand_total, 0)
        ids = [s.entity_id for s in summary.entity_summaries]
        self.assertIn("main-stairs", ids)
        self.assertIn("basement-brick", ids)


class TestPaintOptions(unittest.TestCase):
    def test_option_prices_wall_paint_only(self) -> None:
        option = PaintOption(
            id="opt1",
            name="Standard",
            price_per_gallon=40.0,
            coverage_sqft=350.0,
            material_markup=1.1,
            labor_multiplier=1.0,
        )
        qb = replace(_WALLS_ONLY, paint_options=(option, replace(option, id="off", enabled=False)))
        summary = calculate_project_summary(_project(_box("a"), qb=qb), _WALL_PRICING, _PLAIN)
        self.assertEqual(len(summary.paint_option_results), 1)
        result = summary.paint_option_results[0]
        # 570 coat-sqft / 350 = 1.63 -> 1.7 gallons to the tenth.
        self.assertAlmostEqual(result.wall_gallons, 1.7)
        self.assertAlmostEqual(result.wall_paint_cost, 74.8)
        self.assertAlmostEqual(result.labor_cost, 855.0)
        self.assertEqual(result.non_wall_materials_cost, 0.0)
        self.assertEqual(result.total_displayed, 930)

    def test_no_enabled_options(self) -> None:
        self.assertEqual(
            calculate_paint_option_results(
                QuoteBuilder(paint_options=()),
                summaries=(),
                base_labor_cost=0.0,
                gallons_by_paint={},
                pricing=PricingSettings(),
            ),
            (),
        )


class TestPurchaseAndClosets(unittest.TestCase):
    def test_purchase_breakdown_uses_bucket_price(self) -> None:
        pricing = replace(_WALL_PRICING, wall_paint_per_5_gallon=180.0)
        rooms = [_box(f"r{i}", length=20, width=20) for i in range(3)]
        summary = calculate_project_summary(_project(*rooms), pricing, _PLAIN)
        wall = next(line for line in paint_purchase_breakdown(summary, pricing) if line.paint == "wall")
        self.assertGreater(wall.gallons, 5)
        self.assertEqual(
            wall.cost,
            wall.five_gallon_buckets * 180.0 + wall.single_gallons * 40.0,
        )

    def test_closet_stats_follow_project_preference(self) -> None:
        project = _project(
            _box("a", single_door_closets=1),
            _box("b", single_door_closets=1, include_closet_interior_in_quote=True),
            qb=QuoteBuilder(paint_options=()),
            project_include_closet_interior_in_quote=False,
        )
        stats = calculate_project_closet_stats(project, CalculationSettings())
        self.assertEqual((stats.included_single_closets, stats.excluded_single_closets), (1, 1))

        no_closets = calculate_project_closet_stats(
            project, CalculationSettings(), QuoteBuilder(include_closets=False, paint_options=())
        )
        self.assertEqual((no_closets.included_single_closets, no_closets.excluded_single_closets), (0, 2))

    def test_closet_stats_split_by_preference(self) -> None:
        project = _project(
            _box("a", single_door_closets=1),
            _box("b", double_door_closets=1, include_closet_interior_in_quote=False),
            qb=QuoteBuilder(paint_options=()),
        )
        stats = calculate_project_closet_stats(project, CalculationSettings())
        self.assertEqual(stats.included_single_closets, 1)
        self.assertEqual(stats.excluded_double_closets, 1)
        self.assertGreater(stats.included_closet_wall_area, 0)
        self.assertGreater(stats.excluded_closet_wall_area, 0)


class TestFormatting(unittest.TestCase):
    def test_format_currency(self) -> None:
        self.assertEqual(format_currency(1970), "$1,970")
        self.assertEqual(format_currency(855.5), "$855.50")
        self.assertEqual(format_gallons(2.1), "3 gal")


if __name__ == "__main__":
    unittest.main()
