from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import List, Mapping, Optional, Union

from estimate_models import BrickWall, BuiltIn, Fireplace, QuoteBuilder, Room, Staircase


class InclusionMismatchError(AssertionError):
    pass


CATEGORIES = (
    "walls",
    "ceilings",
    "trim",
    "baseboards",
    "windows",
    "doors",
    "jambs",
    "crown_moulding",
    "closets",
    "closet_interiors",
)


@dataclass(frozen=True)
class ResolvedInclusions:
    walls: bool
    ceilings: bool
    trim: bool
    baseboards: bool
    windows: bool
    doors: bool
    jambs: bool
    crown_moulding: bool
    closets: bool
    closet_interiors: bool

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)

    def is_included(self, category: str) -> bool:
        if category not in CATEGORIES:
            raise KeyError(f"Unknown paint category: {category}")
        return bool(getattr(self, category))


NOTHING_INCLUDED = ResolvedInclusions(**{c: False for c in CATEGORIES})


def resolve_inclusion(entity_toggle: Optional[bool], quote_toggle: bool) -> bool:
    """
    Combined-AND rule: an unset entity toggle counts as on, and both sides must agree.

    This is the only place the "unset means on" default lives.
    """
    return entity_toggle is not False and bool(quote_toggle)


def compute_resolved_inclusions(
    entity: Union[Room, Staircase, Fireplace, BuiltIn, BrickWall],
    quote_builder: QuoteBuilder,
    project_include_closet_interior: Optional[bool] = None,
) -> ResolvedInclusions:
    if entity.included is False:
        return NOTHING_INCLUDED

    if not isinstance(entity, Room):
        # Non-room entities have no per-category toggles of their own; they only carry
        # the entity-level veto above. Their structural QB toggles are applied as scope
        # filters by the aggregator.
        return ResolvedInclusions(**{c: True for c in CATEGORIES})

    qb = quote_builder
    closet_interior_pref = entity.include_closet_interior_in_quote
    if closet_interior_pref is None:
        closet_interior_pref = project_include_closet_interior
    if closet_interior_pref is None:
        closet_interior_pref = True

    return ResolvedInclusions(
        walls=resolve_inclusion(entity.paint_walls, qb.include_walls),
        ceilings=resolve_inclusion(entity.paint_ceilings, qb.include_ceilings),
        trim=resolve_inclusion(entity.paint_trim, qb.include_trim),
        baseboards=resolve_inclusion(entity.paint_baseboard, qb.include_baseboards),
        windows=resolve_inclusion(entity.paint_windows, qb.include_windows),
        doors=resolve_inclusion(entity.paint_doors, qb.include_doors),
        # Jambs and crown moulding share the doors / trim Quote Builder toggles.
        jambs=resolve_inclusion(entity.paint_jambs, qb.include_doors),
        crown_moulding=resolve_inclusion(entity.has_crown_moulding, qb.include_trim),
        closets=resolve_inclusion(None, qb.include_closets),
        closet_interiors=resolve_inclusion(closet_interior_pref, qb.include_closets),
    )


def validate_resolved_inclusions(
    resolved: ResolvedInclusions,
    category_quantities: Mapping[str, float],
) -> List[str]:
    """
    Report categories that resolved as excluded yet still carry a positive quantity.

    `category_quantities` maps category name -> any computed amount for that category
    (area, linear feet, gallons or labor). An empty list means the two agree.
    """
    warnings: List[str] = []
    for category, amount in category_quantities.items():
        if category not in CATEGORIES:
            continue
        if not resolved.is_included(category) and float(amount) > 0:
            warnings.append(f"{category} is excluded but has computed quantity {float(amount):.4f}")
    return warnings
