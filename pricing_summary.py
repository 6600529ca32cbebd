from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict, dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple, Union

from estimate_models import BrickWall, BuiltIn, CachedTotals, Fireplace, QuoteBuilder, Room, Staircase
from estimate_settings import CalculationSettings, PricingSettings
from event_log import log_event
from inclusion_resolver import (
    NOTHING_INCLUDED,
    InclusionMismatchError,
    ResolvedInclusions,
    compute_resolved_inclusions,
    validate_resolved_inclusions,
)
from paint_geometry import (
    brick_wall_area,
    built_in_geometry,
    fireplace_geometry,
    room_floor,
    room_geometry,
    safe_number,
    staircase_geometry,
)

Entity = Union[Room, Staircase, Fireplace, BuiltIn, BrickWall]

DEFAULT_COATS = 2
PRIMER_SHARE_OF_PAINT = 0.2

PAINT_LINES = ("wall", "ceiling", "trim", "door", "primer")

_COVERAGE_SETTING = {
    "wall": "wall_coverage_sqft_per_gallon",
    "ceiling": "ceiling_coverage_sqft_per_gallon",
    "trim": "trim_coverage_sqft_per_gallon",
    "door": "trim_coverage_sqft_per_gallon",
    "primer": "wall_coverage_sqft_per_gallon",
}

_PRICE_SETTING = {
    "wall": "wall_paint_per_gallon",
    "ceiling": "ceiling_paint_per_gallon",
    "trim": "trim_paint_per_gallon",
    "door": "door_paint_per_gallon",
    "primer": "primer_per_gallon",
}

_PRICE_5_GALLON_SETTING = {
    "wall": "wall_paint_per_5_gallon",
    "ceiling": "ceiling_paint_per_5_gallon",
    "trim": "trim_paint_per_5_gallon",
    "door": "door_paint_per_5_gallon",
    "primer": "primer_per_5_gallon",
}


@dataclass(frozen=True)
class CategoryLine:
    category: str
    included: bool
    # Area (sqft), linear feet or unit count depending on `unit`.
    quantity: float
    unit: str
    paint: Optional[str]
    paint_area: float
    coats: int
    gallons: float
    labor_cost: float


@dataclass(frozen=True)
class PaintLine:
    paint: str
    gallons: float
    billed_gallons: int
    price_per_gallon: float
    materials_cost: float


@dataclass(frozen=True)
class PricingSummary:
    entity_id: str
    entity_kind: str
    name: str
    floor: Optional[int]
    resolved: ResolvedInclusions
    categories: Tuple[CategoryLine, ...]
    paint_lines: Tuple[PaintLine, ...]
    primer_gallons: float
    closet_wall_area: float
    closet_ceiling_area: float
    closet_baseboard_lf: float
    # Raw values; only the *_displayed fields are persisted or exported.
    labor_cost: float
    materials_cost: float
    total_cost: float
    labor_displayed: float
    materials_displayed: float
    total_displayed: int

    def category(self, name: str) -> CategoryLine:
        for line in self.categories:
            if line.category == name:
                return line
        raise KeyError(f"No category '{name}' in {self.entity_kind} summary")

    def paint_line(self, paint: str) -> PaintLine:
        for line in self.paint_lines:
            if line.paint == paint:
                return line
        raise KeyError(f"No paint line '{paint}'")

    def gallons_by_paint(self) -> Dict[str, float]:
        return {line.paint: line.gallons for line in self.paint_lines}


# Display rounding


def round_money(value: float) -> float:
    """
    Round half-up to cents, the precision labor and materials are shown with.
    """
    return float(Decimal(repr(float(value))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def round_dollars(value: float) -> int:
    return int(Decimal(repr(float(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# Whole-gallon purchasing


def billed_gallons(gallons: float) -> int:
    """
    Paint is bought in whole gallons: any fraction rounds up.
    """
    g = max(0.0, safe_number(gallons))
    # Guard against float noise such as 2.0000000000000004 turning into 3.
    return int(math.ceil(round(g, 9)))


def material_cost(gallons: float, price_per_gallon: float) -> float:
    return billed_gallons(gallons) * max(0.0, float(price_per_gallon))


@dataclass(frozen=True)
class PaintPurchase:
    five_gallon_buckets: int
    single_gallons: int

    @property
    def total_gallons(self) -> int:
        return self.five_gallon_buckets * 5 + self.single_gallons


def paint_purchase(gallons: float) -> PaintPurchase:
    """
    Buckets first, then single gallons for the remainder.
    """
    g = max(0.0, safe_number(gallons))
    if g <= 0:
        return PaintPurchase(0, 0)
    buckets = int(g // 5)
    remainder = round(g - buckets * 5, 9)
    return PaintPurchase(five_gallon_buckets=buckets, single_gallons=int(math.ceil(remainder)))


def paint_purchase_cost(gallons: float, per_gallon: float, per_5_gallon: Optional[float] = None) -> float:
    if not per_5_gallon:
        return material_cost(gallons, per_gallon)
    purchase = paint_purchase(gallons)
    return purchase.five_gallon_buckets * max(0.0, float(per_5_gallon)) + purchase.single_gallons * max(
        0.0, float(per_gallon)
    )


def paint_line_prices(paint: str, pricing: PricingSettings) -> Tuple[float, Optional[float]]:
    """
    (per-gallon price, optional 5-gallon bucket price) for one paint line.
    """
    return pricing.require(_PRICE_SETTING[paint]), getattr(pricing, _PRICE_5_GALLON_SETTING[paint])


# Composer helpers


def effective_coats(entity_coats: Optional[int], project_coats: Optional[int]) -> int:
    """
    Entity override wins, then the project default, then two coats.
    """
    raw = entity_coats if entity_coats is not None else project_coats
    if raw is None:
        return DEFAULT_COATS
    coats = int(safe_number(raw, DEFAULT_COATS))
    return coats if coats >= 1 else DEFAULT_COATS


def _coat_labor_multiplier(coats: int, pricing: PricingSettings) -> float:
    if coats <= 1:
        return 1.0
    return pricing.require("second_coat_labor_multiplier")


def _category_line(
    *,
    category: str,
    included: bool,
    quantity: float,
    unit: str,
    pricing: PricingSettings,
    paint: Optional[str] = None,
    paint_area: float = 0.0,
    coats: int = 1,
    labor_rate: Optional[str] = None,
    labor_basis: float = 0.0,
    coat_labor: bool = True,
    extra_labor_multiplier: Optional[str] = None,
) -> CategoryLine:
    if not included or quantity <= 0:
        return CategoryLine(
            category=category,
            included=included,
            quantity=0.0,
            unit=unit,
            paint=paint,
            paint_area=0.0,
            coats=coats,
            gallons=0.0,
            labor_cost=0.0,
        )

    gallons = 0.0
    if paint is not None and paint_area > 0:
        coverage = max(1.0, pricing.require(_COVERAGE_SETTING[paint]))
        gallons = paint_area / coverage * coats

    labor = 0.0
    if labor_rate is not None and labor_basis > 0:
        labor = labor_basis * pricing.require(labor_rate)
        if coat_labor:
            labor *= _coat_labor_multiplier(coats, pricing)
        if extra_labor_multiplier is not None:
            labor *= pricing.require(extra_labor_multiplier)

    return CategoryLine(
        category=category,
        included=True,
        quantity=quantity,
        unit=unit,
        paint=paint,
        paint_area=paint_area,
        coats=coats,
        gallons=gallons,
        labor_cost=labor,
    )


def _paint_lines(categories: Sequence[CategoryLine], pricing: PricingSettings) -> Tuple[PaintLine, ...]:
    pooled: Dict[str, float] = {p: 0.0 for p in PAINT_LINES}
    for line in categories:
        if line.paint is not None:
            pooled[line.paint] += line.gallons
    out: List[PaintLine] = []
    for paint in PAINT_LINES:
        gallons = pooled[paint]
        if gallons > 0:
            price = pricing.require(_PRICE_SETTING[paint])
            out.append(
                PaintLine(
                    paint=paint,
                    gallons=gallons,
                    billed_gallons=billed_gallons(gallons),
                    price_per_gallon=price,
                    materials_cost=material_cost(gallons, price),
                )
            )
        else:
            out.append(PaintLine(paint=paint, gallons=0.0, billed_gallons=0, price_per_gallon=0.0, materials_cost=0.0))
    return tuple(out)


def _finish_summary(
    *,
    entity_id: str,
    entity_kind: str,
    name: str,
    floor: Optional[int],
    resolved: ResolvedInclusions,
    categories: Sequence[CategoryLine],
    pricing: PricingSettings,
    primer_gallons: Optional[float] = None,
    closet_wall_area: float = 0.0,
    closet_ceiling_area: float = 0.0,
    closet_baseboard_lf: float = 0.0,
) -> PricingSummary:
    paint_lines = _paint_lines(categories, pricing)
    labor = max(0.0, sum(line.labor_cost for line in categories))
    materials = max(0.0, sum(line.materials_cost for line in paint_lines))
    total = labor + materials
    if primer_gallons is None:
        primer_gallons = PRIMER_SHARE_OF_PAINT * sum(
            line.gallons for line in paint_lines if line.paint != "primer"
        )

    summary = PricingSummary(
        entity_id=entity_id,
        entity_kind=entity_kind,
        name=name,
        floor=floor,
        resolved=resolved,
        categories=tuple(categories),
        paint_lines=paint_lines,
        primer_gallons=max(0.0, primer_gallons),
        closet_wall_area=closet_wall_area,
        closet_ceiling_area=closet_ceiling_area,
        closet_baseboard_lf=closet_baseboard_lf,
        labor_cost=labor,
        materials_cost=materials,
        total_cost=total,
        labor_displayed=round_money(labor),
        materials_displayed=round_money(materials),
        total_displayed=round_dollars(total),
    )
    _ensure_inclusions_consistent(summary)
    return summary


def _ensure_inclusions_consistent(summary: PricingSummary) -> None:
    amounts: Dict[str, float] = {}
    for line in summary.categories:
        amounts[line.category] = amounts.get(line.category, 0.0) + line.quantity + line.gallons + line.labor_cost
    amounts["closet_interiors"] = (
        amounts.get("closet_interiors", 0.0)
        + summary.closet_wall_area
        + summary.closet_ceiling_area
        + summary.closet_baseboard_lf
    )
    warnings = validate_resolved_inclusions(summary.resolved, amounts)
    if not warnings:
        return
    # region event log
    log_event(
        hypothesis_id="INCLUSION",
        location="pricing_summary.py:_ensure_inclusions_consistent",
        message="Resolved inclusions disagree with computed quantities",
        data={"entity_id": summary.entity_id, "entity_kind": summary.entity_kind, "warnings": warnings},
    )
    # endregion event log
    raise InclusionMismatchError(f"{summary.entity_kind} {summary.entity_id}: " + "; ".join(warnings))


# Composers


def compute_room_pricing_summary(
    room: Room,
    quote_builder: QuoteBuilder,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
    project_include_closet_interior: Optional[bool] = None,
    *,
    default_height: float = 8.0,
) -> PricingSummary:
    """
    Price one room: geometry, then resolved inclusions, then per-category gallons and labor.

    Live previews and the save path must both call this so the displayed values match.
    """
    resolved = compute_resolved_inclusions(room, quote_builder, project_include_closet_interior)
    geo = room_geometry(room, calc, default_height=default_height)
    casing_trim_area = geo.casing_trim_area if resolved.doors else geo.casing_trim_area - geo.door_trim_area

    coats_walls = effective_coats(room.coats_walls, project_coats)
    coats_ceiling = effective_coats(room.coats_ceiling, project_coats)
    coats_trim = effective_coats(room.coats_trim, project_coats)
    coats_doors = effective_coats(room.coats_doors, project_coats)

    interior = geo.closet_interior
    with_interiors = resolved.closet_interiors
    wall_area = geo.wall_area + (interior.wall_area if with_interiors else 0.0)
    ceiling_area = geo.ceiling_area + (interior.ceiling_area if with_interiors else 0.0)
    baseboard_lf = geo.baseboard_lf + (interior.baseboard_lf if with_interiors else 0.0)
    closet_count = interior.total_count

    categories = [
        _category_line(
            category="walls",
            included=resolved.walls,
            quantity=wall_area,
            unit="sqft",
            pricing=pricing,
            paint="wall",
            paint_area=wall_area,
            coats=coats_walls,
            labor_rate="wall_labor_per_sqft",
            labor_basis=wall_area,
            extra_labor_multiplier="accent_wall_labor_multiplier" if room.has_accent_wall else None,
        ),
        _category_line(
            category="ceilings",
            included=resolved.ceilings,
            quantity=ceiling_area,
            unit="sqft",
            pricing=pricing,
            paint="ceiling",
            paint_area=ceiling_area,
            coats=coats_ceiling,
            labor_rate="ceiling_labor_per_sqft",
            labor_basis=ceiling_area,
        ),
        _category_line(
            category="baseboards",
            included=resolved.baseboards,
            quantity=baseboard_lf,
            unit="lf",
            pricing=pricing,
            paint="trim",
            paint_area=baseboard_lf * calc.baseboard_width / 12.0,
            coats=coats_trim,
            labor_rate="baseboard_labor_per_lf",
            labor_basis=baseboard_lf,
        ),
        _category_line(
            category="crown_moulding",
            included=resolved.crown_moulding,
            quantity=geo.crown_moulding_lf,
            unit="lf",
            pricing=pricing,
            paint="trim",
            paint_area=geo.crown_moulding_trim_area,
            coats=coats_trim,
            labor_rate="crown_moulding_labor_per_lf",
            labor_basis=geo.crown_moulding_lf,
        ),
        # Door, closet and pass-through casings; labor for casings is carried by the door/window rates.
        # Door casings are painted only when doors are painted too.
        _category_line(
            category="trim",
            included=resolved.trim,
            quantity=casing_trim_area,
            unit="sqft",
            pricing=pricing,
            paint="trim",
            paint_area=casing_trim_area,
            coats=coats_trim,
        ),
        _category_line(
            category="windows",
            included=resolved.windows,
            quantity=float(geo.window_count),
            unit="count",
            pricing=pricing,
            paint="trim",
            paint_area=geo.window_trim_area,
            coats=coats_trim,
            labor_rate="window_labor",
            labor_basis=float(geo.window_count),
        ),
        _category_line(
            category="doors",
            included=resolved.doors,
            quantity=float(geo.door_count),
            unit="count",
            pricing=pricing,
            paint="door",
            paint_area=geo.door_face_area,
            coats=coats_doors,
            labor_rate="door_labor",
            labor_basis=float(geo.door_count),
        ),
        _category_line(
            category="jambs",
            included=resolved.jambs,
            quantity=geo.jamb_area,
            unit="sqft",
            pricing=pricing,
            paint="door",
            paint_area=geo.jamb_area,
            coats=coats_doors,
        ),
        _category_line(
            category="closets",
            included=resolved.closets,
            quantity=float(closet_count),
            unit="count",
            pricing=pricing,
            # Closet interiors are walls, so closet labor follows the wall coats.
            coats=coats_walls,
            labor_rate="closet_labor",
            labor_basis=float(closet_count),
        ),
        _category_line(
            category="closet_interiors",
            included=with_interiors,
            quantity=interior.wall_area + interior.ceiling_area,
            unit="sqft",
            pricing=pricing,
        ),
    ]

    summary = _finish_summary(
        entity_id=room.id,
        entity_kind="room",
        name=room.name or "Unnamed Room",
        floor=room_floor(room),
        resolved=resolved,
        categories=categories,
        pricing=pricing,
        closet_wall_area=interior.wall_area if with_interiors else 0.0,
        closet_ceiling_area=interior.ceiling_area if with_interiors else 0.0,
        closet_baseboard_lf=interior.baseboard_lf if with_interiors else 0.0,
    )

    # region event log
    log_event(
        hypothesis_id="ROOM",
        location="pricing_summary.py:compute_room_pricing_summary",
        message="Room priced",
        data={
            "room_id": room.id,
            "resolved": resolved.as_dict(),
            "wall_area": wall_area,
            "labor_displayed": summary.labor_displayed,
            "materials_displayed": summary.materials_displayed,
            "total_displayed": summary.total_displayed,
        },
    )
    # endregion event log
    return summary


def _entity_inclusions(entity: Entity) -> ResolvedInclusions:
    # Structural entities only carry the entity-level veto; the QB scope toggles are
    # applied by the aggregator before these composers are reached.
    return compute_resolved_inclusions(entity, _ALL_ON)


_ALL_ON = QuoteBuilder(paint_options=())


def compute_staircase_pricing_summary(
    staircase: Staircase,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
) -> PricingSummary:
    resolved = _entity_inclusions(staircase)
    included = resolved != NOTHING_INCLUDED
    geo = staircase_geometry(staircase, calc)
    coats = effective_coats(staircase.coats, project_coats)

    categories = [
        _category_line(
            category="risers",
            included=included,
            quantity=float(geo.riser_count),
            unit="count",
            pricing=pricing,
            paint="trim",
            paint_area=geo.riser_area,
            coats=coats,
            labor_rate="riser_labor",
            labor_basis=float(geo.riser_count),
        ),
        _category_line(
            category="spindles",
            included=included,
            quantity=float(geo.spindle_count),
            unit="count",
            pricing=pricing,
            paint="trim",
            paint_area=geo.spindle_area,
            coats=coats,
            labor_rate="spindle_labor",
            labor_basis=float(geo.spindle_count),
        ),
        _category_line(
            category="handrail",
            included=included,
            quantity=geo.handrail_length,
            unit="lf",
            pricing=pricing,
            paint="trim",
            paint_area=geo.handrail_area,
            coats=coats,
            labor_rate="handrail_labor_per_lf",
            labor_basis=geo.handrail_length,
        ),
        _category_line(
            category="walls",
            included=included,
            quantity=geo.wall_area,
            unit="sqft",
            pricing=pricing,
            paint="wall",
            paint_area=geo.wall_area,
            coats=coats,
            labor_rate="wall_labor_per_sqft",
            labor_basis=geo.wall_area,
        ),
        _category_line(
            category="ceilings",
            included=included,
            quantity=geo.ceiling_area,
            unit="sqft",
            pricing=pricing,
            paint="ceiling",
            paint_area=geo.ceiling_area,
            coats=coats,
            labor_rate="ceiling_labor_per_sqft",
            labor_basis=geo.ceiling_area,
        ),
    ]
    return _finish_summary(
        entity_id=staircase.id,
        entity_kind="staircase",
        name=staircase.name or "Staircase",
        floor=None,
        resolved=resolved,
        categories=categories,
        pricing=pricing,
    )


def compute_fireplace_pricing_summary(
    fireplace: Fireplace,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
) -> PricingSummary:
    """
    Six-face box at a flat fireplace labor rate, plus optional trim run, mantel, legs
    and over-mantel panel.
    """
    resolved = _entity_inclusions(fireplace)
    included = resolved != NOTHING_INCLUDED
    geo = fireplace_geometry(fireplace, calc)
    coats = effective_coats(fireplace.coats, project_coats)

    categories = [
        _category_line(
            category="fireplace",
            included=included,
            quantity=geo.box_area,
            unit="sqft",
            pricing=pricing,
            paint="wall",
            paint_area=geo.box_area,
            coats=coats,
            labor_rate="fireplace_labor",
            labor_basis=1.0,
            coat_labor=False,
        ),
        _category_line(
            category="trim",
            included=included,
            quantity=geo.trim_linear_feet,
            unit="lf",
            pricing=pricing,
            paint="trim",
            paint_area=geo.trim_area,
            coats=coats,
            labor_rate="baseboard_labor_per_lf",
            labor_basis=geo.trim_linear_feet,
            coat_labor=False,
        ),
        _category_line(
            category="mantel",
            included=included,
            quantity=geo.mantel_area,
            unit="sqft",
            pricing=pricing,
            paint="trim",
            paint_area=geo.mantel_area,
            coats=coats,
            labor_rate="mantel_labor",
            labor_basis=1.0,
            coat_labor=False,
        ),
        _category_line(
            category="legs",
            included=included,
            quantity=geo.legs_area,
            unit="sqft",
            pricing=pricing,
            paint="trim",
            paint_area=geo.legs_area,
            coats=coats,
            labor_rate="legs_labor",
            labor_basis=1.0,
            coat_labor=False,
        ),
        _category_line(
            category="over_mantel",
            included=included,
            quantity=geo.over_mantel_area,
            unit="sqft",
            pricing=pricing,
            paint="wall",
            paint_area=geo.over_mantel_area,
            coats=coats,
            labor_rate="wall_labor_per_sqft",
            labor_basis=geo.over_mantel_area,
        ),
    ]
    return _finish_summary(
        entity_id=fireplace.id,
        entity_kind="fireplace",
        name=fireplace.name or "Fireplace",
        floor=None,
        resolved=resolved,
        categories=categories,
        pricing=pricing,
    )


def compute_built_in_pricing_summary(
    built_in: BuiltIn,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
) -> PricingSummary:
    resolved = _entity_inclusions(built_in)
    geo = built_in_geometry(built_in)
    coats = effective_coats(built_in.coats, project_coats)
    area = geo.paintable_area
    categories = [
        _category_line(
            category="built_in",
            included=resolved != NOTHING_INCLUDED,
            quantity=area,
            unit="sqft",
            pricing=pricing,
            # Cabinetry takes the trim enamel.
            paint="trim",
            paint_area=area,
            coats=coats,
            labor_rate="built_in_labor_per_sqft",
            labor_basis=area,
        ),
    ]
    return _finish_summary(
        entity_id=built_in.id,
        entity_kind="built_in",
        name=built_in.name or "Built-In",
        floor=None,
        resolved=resolved,
        categories=categories,
        pricing=pricing,
    )


def compute_brick_wall_pricing_summary(
    brick_wall: BrickWall,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
) -> PricingSummary:
    """
    Optional single primer coat plus wall paint, both at the wall labor rate.
    """
    resolved = _entity_inclusions(brick_wall)
    included = resolved != NOTHING_INCLUDED
    area = brick_wall_area(brick_wall)
    coats = effective_coats(brick_wall.coats, project_coats)
    categories = [
        _category_line(
            category="primer",
            included=included and bool(brick_wall.include_primer),
            quantity=area,
            unit="sqft",
            pricing=pricing,
            paint="primer",
            paint_area=area,
            coats=1,
            labor_rate="wall_labor_per_sqft",
            labor_basis=area,
        ),
        _category_line(
            category="walls",
            included=included,
            quantity=area,
            unit="sqft",
            pricing=pricing,
            paint="wall",
            paint_area=area,
            coats=coats,
            labor_rate="wall_labor_per_sqft",
            labor_basis=area,
        ),
    ]
    primer = sum(line.gallons for line in categories if line.paint == "primer")
    return _finish_summary(
        entity_id=brick_wall.id,
        entity_kind="brick_wall",
        name=brick_wall.name or "Brick Wall",
        floor=None,
        resolved=resolved,
        categories=categories,
        pricing=pricing,
        primer_gallons=primer,
    )


def compute_pricing_summary(
    entity: Entity,
    quote_builder: QuoteBuilder,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
    project_include_closet_interior: Optional[bool] = None,
    *,
    default_height: float = 8.0,
) -> PricingSummary:
    if isinstance(entity, Room):
        return compute_room_pricing_summary(
            entity,
            quote_builder,
            pricing,
            calc,
            project_coats,
            project_include_closet_interior,
            default_height=default_height,
        )
    if isinstance(entity, Staircase):
        return compute_staircase_pricing_summary(entity, pricing, calc, project_coats)
    if isinstance(entity, Fireplace):
        return compute_fireplace_pricing_summary(entity, pricing, calc, project_coats)
    if isinstance(entity, BuiltIn):
        return compute_built_in_pricing_summary(entity, pricing, calc, project_coats)
    if isinstance(entity, BrickWall):
        return compute_brick_wall_pricing_summary(entity, pricing, calc, project_coats)
    raise TypeError(f"Unsupported entity type: {type(entity).__name__}")


# Cached totals


def summary_signature(
    entity: Entity,
    quote_builder: QuoteBuilder,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
    project_include_closet_interior: Optional[bool] = None,
    *,
    default_height: float = 8.0,
) -> str:
    """
    Deterministic fingerprint of every input the composer reads.
    """
    payload = {
        "kind": type(entity).__name__,
        "entity": asdict(replace(entity, cached_totals=None)),
        "quote_builder": asdict(quote_builder),
        "pricing": asdict(pricing),
        "calc": asdict(calc),
        "project_coats": project_coats,
        "project_include_closet_interior": project_include_closet_interior,
        "default_height": default_height,
    }
    base = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


def cached_totals_from_summary(summary: PricingSummary, signature: str) -> CachedTotals:
    return CachedTotals(
        gallon_usage=summary.gallons_by_paint(),
        labor_total=summary.labor_displayed,
        materials_total=summary.materials_displayed,
        grand_total=summary.total_displayed,
        signature=signature,
    )


def store_cached_totals(
    entity: Entity,
    quote_builder: QuoteBuilder,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
    project_include_closet_interior: Optional[bool] = None,
    *,
    default_height: float = 8.0,
) -> Tuple[Entity, PricingSummary]:
    """
    Recompute and return (entity with a fresh cached block, summary).

    This is the save path; it goes through the same composer as live previews.
    """
    summary = compute_pricing_summary(
        entity,
        quote_builder,
        pricing,
        calc,
        project_coats,
        project_include_closet_interior,
        default_height=default_height,
    )
    signature = summary_signature(
        entity,
        quote_builder,
        pricing,
        calc,
        project_coats,
        project_include_closet_interior,
        default_height=default_height,
    )
    return replace(entity, cached_totals=cached_totals_from_summary(summary, signature)), summary


def cached_totals_current(
    entity: Entity,
    quote_builder: QuoteBuilder,
    pricing: PricingSettings,
    calc: CalculationSettings,
    project_coats: Optional[int] = None,
    project_include_closet_interior: Optional[bool] = None,
    *,
    default_height: float = 8.0,
) -> bool:
    cached = entity.cached_totals
    if cached is None:
        return False
    return cached.signature == summary_signature(
        entity,
        quote_builder,
        pricing,
        calc,
        project_coats,
        project_include_closet_interior,
        default_height=default_height,
    )
