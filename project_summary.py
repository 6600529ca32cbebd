from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from estimate_models import PaintOption, Project, QuoteBuilder, Room, active_quote_builder, floor_height_for
from estimate_settings import CalculationSettings, PricingSettings
from event_log import log_event
from inclusion_resolver import compute_resolved_inclusions
from paint_geometry import closet_interior_metrics, dimension, room_floor
from pricing_summary import (
    PAINT_LINES,
    PRIMER_SHARE_OF_PAINT,
    PricingSummary,
    billed_gallons,
    compute_brick_wall_pricing_summary,
    compute_built_in_pricing_summary,
    compute_fireplace_pricing_summary,
    compute_room_pricing_summary,
    compute_staircase_pricing_summary,
    paint_line_prices,
    paint_purchase,
    paint_purchase_cost,
    round_dollars,
    round_money,
)


@dataclass(frozen=True)
class ItemizedPrice:
    id: str
    name: str
    kind: str
    price: int
    labor_cost: float
    materials_cost: float


@dataclass(frozen=True)
class PaintOptionResult:
    option_id: str
    option_name: str
    notes: str
    wall_gallons: float
    wall_paint_cost: float
    labor_cost: float
    non_wall_materials_cost: float
    total: float
    total_displayed: int


@dataclass(frozen=True)
class PaintPurchaseLine:
    paint: str
    gallons: float
    five_gallon_buckets: int
    single_gallons: int
    cost: float


@dataclass(frozen=True)
class ClosetStats:
    included_single_closets: int = 0
    included_double_closets: int = 0
    excluded_single_closets: int = 0
    excluded_double_closets: int = 0
    included_closet_wall_area: float = 0.0
    included_closet_ceiling_area: float = 0.0
    included_closet_baseboard_lf: float = 0.0
    excluded_closet_wall_area: float = 0.0
    excluded_closet_ceiling_area: float = 0.0
    excluded_closet_baseboard_lf: float = 0.0


@dataclass(frozen=True)
class ProjectSummary:
    project_id: str
    entity_summaries: Tuple[PricingSummary, ...]
    itemized_prices: Tuple[ItemizedPrice, ...]
    gallons_by_paint: Mapping[str, float]
    primer_gallons: float
    labor_total: float
    materials_total: float
    grand_total: int
    total_doors: int
    total_windows: int
    total_wall_sqft: float
    total_ceiling_sqft: float
    total_trim_sqft: float
    total_door_sqft: float
    paint_option_results: Tuple[PaintOptionResult, ...]


_TRIM_CATEGORIES = ("baseboards", "crown_moulding", "trim", "windows")
_DOOR_CATEGORIES = ("doors", "jambs")


def room_in_scope(room: Room, quote_builder: QuoteBuilder) -> bool:
    """
    Quote Builder room filter: room selection, then the room's own veto, then its floor.
    """
    if not quote_builder.include_all_rooms and room.id not in quote_builder.included_room_ids:
        return False
    if room.included is False:
        return False
    return quote_builder.includes_floor(room_floor(room))


def scoped_rooms(project: Project, quote_builder: QuoteBuilder) -> List[Room]:
    return [r for r in project.rooms if room_in_scope(r, quote_builder)]


def _fee_item(*, item_id: str, name: str, rate: str, pricing: PricingSettings) -> ItemizedPrice:
    fee = pricing.require(rate)
    return ItemizedPrice(
        id=item_id,
        name=name,
        kind="fee",
        price=round_dollars(fee),
        labor_cost=round_money(fee),
        materials_cost=0.0,
    )


def _itemize(summary: PricingSummary) -> ItemizedPrice:
    return ItemizedPrice(
        id=summary.entity_id,
        name=summary.name,
        kind=summary.entity_kind,
        price=summary.total_displayed,
        labor_cost=summary.labor_displayed,
        materials_cost=summary.materials_displayed,
    )


def _numbered(entity_name: str, fallback: str, index: int) -> str:
    name = (entity_name or "").strip()
    return name or f"{fallback} {index}"


def _renamed(summary: PricingSummary, name: str) -> PricingSummary:
    return summary if summary.name == name else replace(summary, name=name)


def _sum_category(summaries: Sequence[PricingSummary], categories: Sequence[str], attr: str) -> float:
    total = 0.0
    for s in summaries:
        for line in s.categories:
            if line.category in categories:
                total += float(getattr(line, attr))
    return total


def calculate_project_summary(
    project: Project,
    pricing: PricingSettings,
    calc: CalculationSettings,
    quote_builder: Optional[QuoteBuilder] = None,
) -> ProjectSummary:
    """
    Price every entity in Quote Builder scope and total their displayed values.

    Out-of-scope entities are never priced; they contribute by omission. The grand total
    is built from `total_displayed` only, so it always equals the sum of the itemized prices.
    """
    qb = quote_builder if quote_builder is not None else active_quote_builder(project)
    coats = project.project_coats
    closet_default = project.project_include_closet_interior_in_quote

    summaries: List[PricingSummary] = []
    for room in scoped_rooms(project, qb):
        summaries.append(
            compute_room_pricing_summary(
                room,
                qb,
                pricing,
                calc,
                coats,
                closet_default,
                default_height=floor_height_for(project, room_floor(room)),
            )
        )

    structural: List[PricingSummary] = []
    if qb.include_staircases:
        for i, staircase in enumerate(project.staircases, start=1):
            if staircase.included is False:
                continue
            s = compute_staircase_pricing_summary(staircase, pricing, calc, coats)
            structural.append(_renamed(s, _numbered(staircase.name, "Staircase", i)))
    if qb.include_fireplaces:
        for i, fireplace in enumerate(project.fireplaces, start=1):
            if fireplace.included is False:
                continue
            s = compute_fireplace_pricing_summary(fireplace, pricing, calc, coats)
            structural.append(_renamed(s, _numbered(fireplace.name, "Fireplace", i)))
    if qb.include_built_ins:
        for i, built_in in enumerate(project.built_ins, start=1):
            if built_in.included is False:
                continue
            s = compute_built_in_pricing_summary(built_in, pricing, calc, coats)
            structural.append(_renamed(s, _numbered(built_in.name, "Built-In", i)))
    # Brick walls have no Quote Builder toggle.
    for i, brick_wall in enumerate(project.brick_walls, start=1):
        if brick_wall.included is False:
            continue
        s = compute_brick_wall_pricing_summary(brick_wall, pricing, calc, coats)
        structural.append(_renamed(s, _numbered(brick_wall.name, "Brick Wall", i)))
    summaries.extend(structural)

    itemized = [_itemize(s) for s in summaries]
    if project.include_furniture_moving:
        itemized.append(
            _fee_item(item_id="furniture-moving", name="Furniture Moving", rate="furniture_moving_fee", pricing=pricing)
        )
    if project.include_nails_removal:
        itemized.append(
            _fee_item(item_id="nails-removal", name="Nails/Screws Removal", rate="nails_removal_fee", pricing=pricing)
        )

    gallons: Dict[str, float] = {p: 0.0 for p in PAINT_LINES}
    for s in summaries:
        for paint, g in s.gallons_by_paint().items():
            gallons[paint] += g

    # Brick-wall primer is a real purchase; the estimated primer only applies when requested.
    primer = gallons["primer"]
    if qb.include_primer:
        primer += PRIMER_SHARE_OF_PAINT * (gallons["wall"] + gallons["ceiling"] + gallons["trim"])
    gallons["primer"] = primer

    labor_total = round_money(sum(i.labor_cost for i in itemized))
    materials_total = round_money(sum(i.materials_cost for i in itemized))
    grand_total = sum(i.price for i in itemized)

    room_list = scoped_rooms(project, qb)
    total_doors = sum(
        int(dimension(r.door_count)) + int(dimension(r.single_door_closets)) + int(dimension(r.double_door_closets))
        for r in room_list
    )
    total_windows = sum(int(dimension(r.window_count)) for r in room_list)

    wall_sqft = _sum_category(summaries, ("walls",), "quantity")
    paint_options = calculate_paint_option_results(
        qb,
        summaries=summaries,
        base_labor_cost=labor_total,
        gallons_by_paint=gallons,
        pricing=pricing,
    )

    result = ProjectSummary(
        project_id=project.id,
        entity_summaries=tuple(summaries),
        itemized_prices=tuple(itemized),
        gallons_by_paint=gallons,
        primer_gallons=primer,
        labor_total=labor_total,
        materials_total=materials_total,
        grand_total=grand_total,
        total_doors=total_doors,
        total_windows=total_windows,
        total_wall_sqft=wall_sqft,
        total_ceiling_sqft=_sum_category(summaries, ("ceilings",), "quantity"),
        total_trim_sqft=_sum_category(summaries, _TRIM_CATEGORIES, "paint_area"),
        total_door_sqft=_sum_category(summaries, _DOOR_CATEGORIES, "paint_area"),
        paint_option_results=paint_options,
    )

    # region event log
    log_event(
        hypothesis_id="PROJECT",
        location="project_summary.py:calculate_project_summary",
        message="Project totals",
        data={
            "project_id": project.id,
            "priced_entities": [s.entity_id for s in summaries],
            "grand_total": grand_total,
            "gallons_by_paint": gallons,
        },
    )
    # endregion event log
    return result


def _wall_coat_sqft(summaries: Sequence[PricingSummary]) -> float:
    total = 0.0
    for s in summaries:
        for line in s.categories:
            if line.paint == "wall":
                total += line.paint_area * line.coats
    return total


def calculate_paint_option_results(
    quote_builder: QuoteBuilder,
    *,
    summaries: Sequence[PricingSummary],
    base_labor_cost: float,
    gallons_by_paint: Mapping[str, float],
    pricing: PricingSettings,
) -> Tuple[PaintOptionResult, ...]:
    """
    Good/Better/Best pricing: only wall paint changes per option; every other paint line
    keeps the standard price.
    """
    enabled: List[PaintOption] = [o for o in quote_builder.paint_options if o.enabled]
    if not enabled:
        return ()

    non_wall = 0.0
    for paint in ("ceiling", "trim", "door"):
        g = gallons_by_paint.get(paint, 0.0)
        if g > 0:
            non_wall += billed_gallons(g) * pricing.require(f"{paint}_paint_per_gallon")
    primer = gallons_by_paint.get("primer", 0.0)
    if quote_builder.include_primer and primer > 0:
        non_wall += billed_gallons(primer) * pricing.require("primer_per_gallon")

    wall_coat_sqft = _wall_coat_sqft(summaries)
    out: List[PaintOptionResult] = []
    for opt in enabled:
        coverage = max(1.0, float(opt.coverage_sqft))
        # Option quotes show wall paint to a tenth of a gallon.
        wall_gallons = math.ceil(round(wall_coat_sqft / coverage * 10, 9)) / 10
        wall_cost = wall_gallons * float(opt.price_per_gallon) * float(opt.material_markup)
        labor = base_labor_cost * float(opt.labor_multiplier)
        total = labor + wall_cost + non_wall
        out.append(
            PaintOptionResult(
                option_id=opt.id,
                option_name=opt.name,
                notes=opt.notes,
                wall_gallons=wall_gallons,
                wall_paint_cost=round_money(wall_cost),
                labor_cost=round_money(labor),
                non_wall_materials_cost=round_money(non_wall),
                total=round_money(total),
                total_displayed=round_dollars(total),
            )
        )
    return tuple(out)


def paint_purchase_breakdown(summary: ProjectSummary, pricing: PricingSettings) -> Tuple[PaintPurchaseLine, ...]:
    """
    Materials view: per paint line, 5-gallon buckets first, then singles.
    """
    out: List[PaintPurchaseLine] = []
    for paint in PAINT_LINES:
        g = summary.gallons_by_paint.get(paint, 0.0)
        purchase = paint_purchase(g)
        cost = 0.0
        if g > 0:
            per_gallon, per_5 = paint_line_prices(paint, pricing)
            cost = paint_purchase_cost(g, per_gallon, per_5)
        out.append(
            PaintPurchaseLine(
                paint=paint,
                gallons=g,
                five_gallon_buckets=purchase.five_gallon_buckets,
                single_gallons=purchase.single_gallons,
                cost=round_money(cost),
            )
        )
    return tuple(out)


def calculate_project_closet_stats(
    project: Project,
    calc: CalculationSettings,
    quote_builder: Optional[QuoteBuilder] = None,
) -> ClosetStats:
    qb = quote_builder if quote_builder is not None else active_quote_builder(project)
    inc = [0, 0, 0.0, 0.0, 0.0]
    exc = [0, 0, 0.0, 0.0, 0.0]
    for room in scoped_rooms(project, qb):
        m = closet_interior_metrics(room, calc, default_height=floor_height_for(project, room_floor(room)))
        wanted = compute_resolved_inclusions(room, qb, project.project_include_closet_interior_in_quote).closet_interiors
        bucket = inc if wanted else exc
        bucket[0] += m.single_count
        bucket[1] += m.double_count
        bucket[2] += m.wall_area
        bucket[3] += m.ceiling_area
        bucket[4] += m.baseboard_lf
    return ClosetStats(
        included_single_closets=int(inc[0]),
        included_double_closets=int(inc[1]),
        excluded_single_closets=int(exc[0]),
        excluded_double_closets=int(exc[1]),
        included_closet_wall_area=float(inc[2]),
        included_closet_ceiling_area=float(inc[3]),
        included_closet_baseboard_lf=float(inc[4]),
        excluded_closet_wall_area=float(exc[2]),
        excluded_closet_ceiling_area=float(exc[3]),
        excluded_closet_baseboard_lf=float(exc[4]),
    )


def format_currency(amount: float) -> str:
    """
    Display-only formatting; amounts arrive already rounded by the composer.
    """
    value = float(amount)
    if value == int(value):
        return f"${int(value):,}"
    return f"${value:,.2f}"


def format_gallons(gallons: float) -> str:
    return f"{billed_gallons(gallons)} gal"
