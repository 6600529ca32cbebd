from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Optional, Tuple, TypeVar


class CeilingType(str, Enum):
    FLAT = "flat"
    CATHEDRAL = "cathedral"


@dataclass(frozen=True)
class CachedTotals:
    """
    Materialised copy of a pricing summary's displayed totals.

    `signature` ties the block to the inputs that produced it; a block whose signature
    no longer matches the current inputs is stale and must be recomputed.
    """

    gallon_usage: Mapping[str, float]
    labor_total: float
    materials_total: float
    grand_total: int
    signature: str


@dataclass(frozen=True)
class Opening:
    id: str
    # inches
    width: float
    height: float
    has_interior_trim: bool = True
    has_exterior_trim: bool = False


@dataclass(frozen=True)
class Room:
    id: str
    name: str
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    manual_area: float = 0.0
    ceiling_type: CeilingType = CeilingType.FLAT
    cathedral_peak_height: Optional[float] = None
    floor: int = 1
    window_count: int = 0
    door_count: int = 0
    single_door_closets: int = 0
    double_door_closets: int = 0
    openings: Tuple[Opening, ...] = ()
    # Paint toggles: None means "not set" and resolves as on.
    paint_walls: Optional[bool] = None
    paint_ceilings: Optional[bool] = None
    paint_trim: Optional[bool] = None
    paint_windows: Optional[bool] = None
    paint_doors: Optional[bool] = None
    paint_jambs: Optional[bool] = None
    paint_baseboard: Optional[bool] = None
    has_crown_moulding: Optional[bool] = None
    has_accent_wall: bool = False
    include_closet_interior_in_quote: Optional[bool] = None
    coats_walls: Optional[int] = None
    coats_ceiling: Optional[int] = None
    coats_trim: Optional[int] = None
    coats_doors: Optional[int] = None
    included: Optional[bool] = None
    notes: str = ""
    cached_totals: Optional[CachedTotals] = None


@dataclass(frozen=True)
class StaircaseWall:
    id: str
    tall_height: float
    short_height: float


@dataclass(frozen=True)
class Staircase:
    id: str
    name: str = ""
    riser_count: int = 0
    # inches
    riser_height: float = 7.5
    spindle_count: int = 0
    handrail_length: float = 0.0
    coats: Optional[int] = None
    has_secondary_stairwell: bool = False
    tall_wall_height: float = 0.0
    short_wall_height: float = 0.0
    double_sided_walls: bool = False
    walls: Tuple[StaircaseWall, ...] = ()
    included: Optional[bool] = None
    notes: str = ""
    cached_totals: Optional[CachedTotals] = None


@dataclass(frozen=True)
class Fireplace:
    id: str
    name: str = ""
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0
    has_trim: bool = False
    trim_linear_feet: float = 0.0
    coats: Optional[int] = None
    has_mantel: bool = False
    has_legs: bool = False
    has_over_mantel: bool = False
    over_mantel_width: float = 0.0
    over_mantel_height: float = 0.0
    included: Optional[bool] = None
    notes: str = ""
    cached_totals: Optional[CachedTotals] = None


@dataclass(frozen=True)
class BuiltIn:
    id: str
    name: str = ""
    # inches
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0
    shelf_count: int = 0
    coats: Optional[int] = None
    included: Optional[bool] = None
    notes: str = ""
    cached_totals: Optional[CachedTotals] = None


@dataclass(frozen=True)
class BrickWall:
    id: str
    name: str = ""
    # feet
    width: float = 0.0
    height: float = 0.0
    include_primer: bool = True
    coats: Optional[int] = None
    included: Optional[bool] = None
    notes: str = ""
    cached_totals: Optional[CachedTotals] = None


@dataclass(frozen=True)
class PaintOption:
    id: str
    name: str
    price_per_gallon: float
    coverage_sqft: float
    material_markup: float = 1.0
    labor_multiplier: float = 1.0
    enabled: bool = True
    notes: str = ""


def default_paint_options() -> Tuple[PaintOption, ...]:
    return (
        PaintOption(
            id="opt1",
            name="Standard Paint",
            price_per_gallon=40.0,
            coverage_sqft=350.0,
            material_markup=1.10,
            labor_multiplier=1.0,
            enabled=True,
            notes="Budget-friendly eggshell acrylic.",
        ),
        PaintOption(
            id="opt2",
            name="Premium Paint",
            price_per_gallon=60.0,
            coverage_sqft=350.0,
            material_markup=1.12,
            labor_multiplier=1.0,
            enabled=False,
            notes="Washable, scrubbable, better hide.",
        ),
        PaintOption(
            id="opt3",
            name="Designer Paint",
            price_per_gallon=80.0,
            coverage_sqft=325.0,
            material_markup=1.15,
            labor_multiplier=1.05,
            enabled=False,
            notes="Zero-VOC, luxury finish, best leveling.",
        ),
    )


@dataclass(frozen=True)
class QuoteBuilder:
    include_all_rooms: bool = True
    # Only consulted when include_all_rooms is False.
    included_room_ids: Tuple[str, ...] = ()
    include_walls: bool = True
    include_ceilings: bool = True
    include_trim: bool = True
    include_doors: bool = True
    include_windows: bool = True
    include_baseboards: bool = True
    include_closets: bool = True
    include_staircases: bool = True
    include_fireplaces: bool = True
    include_built_ins: bool = True
    include_primer: bool = True
    include_floor_1: bool = True
    include_floor_2: bool = True
    include_floor_3: bool = True
    include_floor_4: bool = True
    include_floor_5: bool = True
    paint_options: Tuple[PaintOption, ...] = field(default_factory=default_paint_options)
    show_paint_options_in_proposal: bool = True

    def includes_floor(self, floor: int) -> bool:
        """
        Floors without a dedicated toggle (0, 6+) stay in scope.
        """
        toggle = getattr(self, f"include_floor_{int(floor)}", None)
        return toggle is not False


@dataclass(frozen=True)
class Quote:
    id: str
    title: str
    quote_builder: QuoteBuilder = field(default_factory=QuoteBuilder)


@dataclass(frozen=True)
class Project:
    id: str
    client_name: str = ""
    client_email: str = ""
    client_address: str = ""
    rooms: Tuple[Room, ...] = ()
    staircases: Tuple[Staircase, ...] = ()
    fireplaces: Tuple[Fireplace, ...] = ()
    built_ins: Tuple[BuiltIn, ...] = ()
    brick_walls: Tuple[BrickWall, ...] = ()
    floor_heights: Tuple[float, ...] = ()
    project_coats: Optional[int] = None
    project_include_closet_interior_in_quote: Optional[bool] = None
    include_furniture_moving: bool = False
    include_nails_removal: bool = False
    quotes: Tuple[Quote, ...] = ()
    active_quote_id: Optional[str] = None


def active_quote(project: Project) -> Optional[Quote]:
    for q in project.quotes:
        if q.id == project.active_quote_id:
            return q
    return project.quotes[0] if project.quotes else None


def active_quote_builder(project: Project) -> QuoteBuilder:
    quote = active_quote(project)
    return quote.quote_builder if quote is not None else QuoteBuilder()


def floor_height_for(project: Project, floor: int) -> float:
    idx = int(floor) - 1
    if 0 <= idx < len(project.floor_heights) and project.floor_heights[idx] > 0:
        return float(project.floor_heights[idx])
    return 8.0


EntityT = TypeVar("EntityT", Room, Staircase, Fireplace, BuiltIn, BrickWall)


def update_entity(entity: EntityT, **changes: object) -> EntityT:
    """
    Apply field edits to an entity.

    Any edit invalidates the cached totals block; callers re-store totals after recomputing.
    """
    if "cached_totals" in changes:
        raise ValueError("cached_totals cannot be edited directly; use pricing_summary.store_cached_totals")
    return replace(entity, cached_totals=None, **changes)
