from __future__ import annotations

import json
import re
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from estimate_models import (
    BrickWall,
    BuiltIn,
    CachedTotals,
    CeilingType,
    Fireplace,
    Opening,
    PaintOption,
    Project,
    Quote,
    QuoteBuilder,
    Room,
    Staircase,
    StaircaseWall,
    default_paint_options,
)
from paint_geometry import dimension, safe_number


class ProjectRecordError(ValueError):
    pass


_CAMEL_RE = re.compile(r"_([a-z0-9])")


def _camel(name: str) -> str:
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def _get(data: Mapping[str, object], key: str) -> object:
    """
    Records written by the web app use camelCase keys; accept both spellings.
    """
    if key in data:
        return data[key]
    return data.get(_camel(key))


def _text(data: Mapping[str, object], key: str, default: str = "") -> str:
    v = _get(data, key)
    return v.strip() if isinstance(v, str) else default


def _dim(data: Mapping[str, object], key: str, default: float = 0.0) -> float:
    v = _get(data, key)
    if v is None:
        return default
    return dimension(v)


def _count(data: Mapping[str, object], key: str) -> int:
    return int(dimension(_get(data, key)))


def _flag(data: Mapping[str, object], key: str, default: bool = False) -> bool:
    v = _get(data, key)
    return v if isinstance(v, bool) else default


def _toggle(data: Mapping[str, object], key: str) -> Optional[bool]:
    # Unset stays None so the resolver can tell "never touched" from "off".
    v = _get(data, key)
    return v if isinstance(v, bool) else None


def _coats(data: Mapping[str, object], key: str) -> Optional[int]:
    v = _get(data, key)
    if v is None or v == "":
        return None
    n = int(safe_number(v))
    return n if n >= 1 else None


def _entity_id(data: Mapping[str, object], kind: str, index: int) -> str:
    v = _get(data, "id")
    if isinstance(v, (str, int)) and not isinstance(v, bool) and str(v).strip():
        return str(v).strip()
    raise ProjectRecordError(f"{kind} #{index} is missing an id")


def _objects(data: Mapping[str, object], key: str) -> List[Mapping[str, object]]:
    raw = _get(data, key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ProjectRecordError(f"Expected a list for {key!r}")
    return [item for item in raw if isinstance(item, dict)]


def _cached_totals(data: Mapping[str, object]) -> Optional[CachedTotals]:
    raw = _get(data, "cached_totals")
    if not isinstance(raw, dict):
        return None
    signature = _text(raw, "signature")
    if not signature:
        return None
    usage_raw = _get(raw, "gallon_usage")
    usage: Dict[str, float] = {}
    if isinstance(usage_raw, dict):
        for k, v in usage_raw.items():
            if isinstance(k, str):
                usage[k] = dimension(v)
    return CachedTotals(
        gallon_usage=usage,
        labor_total=dimension(_get(raw, "labor_total")),
        materials_total=dimension(_get(raw, "materials_total")),
        grand_total=int(dimension(_get(raw, "grand_total"))),
        signature=signature,
    )


def opening_from_mapping(data: Mapping[str, object], index: int = 1) -> Opening:
    return Opening(
        id=_entity_id(data, "Opening", index),
        width=_dim(data, "width"),
        height=_dim(data, "height"),
        has_interior_trim=_flag(data, "has_interior_trim", True),
        has_exterior_trim=_flag(data, "has_exterior_trim", False),
    )


def room_from_mapping(data: Mapping[str, object], index: int = 1) -> Room:
    ceiling_raw = _text(data, "ceiling_type").lower()
    ceiling_type = CeilingType.CATHEDRAL if ceiling_raw == CeilingType.CATHEDRAL.value else CeilingType.FLAT
    peak = _get(data, "cathedral_peak_height")
    floor = int(dimension(_get(data, "floor"))) or 1
    return Room(
        id=_entity_id(data, "Room", index),
        name=_text(data, "name"),
        length=_dim(data, "length"),
        width=_dim(data, "width"),
        height=_dim(data, "height"),
        manual_area=_dim(data, "manual_area"),
        ceiling_type=ceiling_type,
        cathedral_peak_height=dimension(peak) if peak is not None else None,
        floor=floor,
        window_count=_count(data, "window_count"),
        door_count=_count(data, "door_count"),
        single_door_closets=_count(data, "single_door_closets"),
        double_door_closets=_count(data, "double_door_closets"),
        openings=tuple(opening_from_mapping(o, i) for i, o in enumerate(_objects(data, "openings"), start=1)),
        paint_walls=_toggle(data, "paint_walls"),
        paint_ceilings=_toggle(data, "paint_ceilings"),
        paint_trim=_toggle(data, "paint_trim"),
        paint_windows=_toggle(data, "paint_windows"),
        paint_doors=_toggle(data, "paint_doors"),
        paint_jambs=_toggle(data, "paint_jambs"),
        paint_baseboard=_toggle(data, "paint_baseboard"),
        has_crown_moulding=_toggle(data, "has_crown_moulding"),
        has_accent_wall=_flag(data, "has_accent_wall"),
        include_closet_interior_in_quote=_toggle(data, "include_closet_interior_in_quote"),
        coats_walls=_coats(data, "coats_walls"),
        coats_ceiling=_coats(data, "coats_ceiling"),
        coats_trim=_coats(data, "coats_trim"),
        coats_doors=_coats(data, "coats_doors"),
        included=_toggle(data, "included"),
        notes=_text(data, "notes"),
        cached_totals=_cached_totals(data),
    )


def staircase_from_mapping(data: Mapping[str, object], index: int = 1) -> Staircase:
    walls: List[StaircaseWall] = []
    for i, w in enumerate(_objects(data, "walls"), start=1):
        walls.append(
            StaircaseWall(
                id=_entity_id(w, "Staircase wall", i),
                tall_height=_dim(w, "tall_height"),
                short_height=_dim(w, "short_height"),
            )
        )
    return Staircase(
        id=_entity_id(data, "Staircase", index),
        name=_text(data, "name"),
        riser_count=_count(data, "riser_count"),
        riser_height=_dim(data, "riser_height", 7.5),
        spindle_count=_count(data, "spindle_count"),
        handrail_length=_dim(data, "handrail_length"),
        coats=_coats(data, "coats"),
        has_secondary_stairwell=_flag(data, "has_secondary_stairwell"),
        tall_wall_height=_dim(data, "tall_wall_height"),
        short_wall_height=_dim(data, "short_wall_height"),
        double_sided_walls=_flag(data, "double_sided_walls"),
        walls=tuple(walls),
        included=_toggle(data, "included"),
        notes=_text(data, "notes"),
        cached_totals=_cached_totals(data),
    )


def fireplace_from_mapping(data: Mapping[str, object], index: int = 1) -> Fireplace:
    return Fireplace(
        id=_entity_id(data, "Fireplace", index),
        name=_text(data, "name"),
        width=_dim(data, "width"),
        height=_dim(data, "height"),
        depth=_dim(data, "depth"),
        has_trim=_flag(data, "has_trim"),
        trim_linear_feet=_dim(data, "trim_linear_feet"),
        coats=_coats(data, "coats"),
        has_mantel=_flag(data, "has_mantel"),
        has_legs=_flag(data, "has_legs"),
        has_over_mantel=_flag(data, "has_over_mantel"),
        over_mantel_width=_dim(data, "over_mantel_width"),
        over_mantel_height=_dim(data, "over_mantel_height"),
        included=_toggle(data, "included"),
        notes=_text(data, "notes"),
        cached_totals=_cached_totals(data),
    )


def built_in_from_mapping(data: Mapping[str, object], index: int = 1) -> BuiltIn:
    return BuiltIn(
        id=_entity_id(data, "Built-in", index),
        name=_text(data, "name"),
        width=_dim(data, "width"),
        height=_dim(data, "height"),
        depth=_dim(data, "depth"),
        shelf_count=_count(data, "shelf_count"),
        coats=_coats(data, "coats"),
        included=_toggle(data, "included"),
        notes=_text(data, "notes"),
        cached_totals=_cached_totals(data),
    )


def brick_wall_from_mapping(data: Mapping[str, object], index: int = 1) -> BrickWall:
    return BrickWall(
        id=_entity_id(data, "Brick wall", index),
        name=_text(data, "name"),
        width=_dim(data, "width"),
        height=_dim(data, "height"),
        include_primer=_flag(data, "include_primer", True),
        coats=_coats(data, "coats"),
        included=_toggle(data, "included"),
        notes=_text(data, "notes"),
        cached_totals=_cached_totals(data),
    )


def paint_option_from_mapping(data: Mapping[str, object], index: int = 1) -> PaintOption:
    return PaintOption(
        id=_entity_id(data, "Paint option", index),
        name=_text(data, "name") or f"Option {index}",
        price_per_gallon=_dim(data, "price_per_gallon"),
        coverage_sqft=_dim(data, "coverage_sqft", 350.0) or 350.0,
        material_markup=_dim(data, "material_markup", 1.0),
        labor_multiplier=_dim(data, "labor_multiplier", 1.0),
        enabled=_flag(data, "enabled", False),
        notes=_text(data, "notes"),
    )


_QB_FLAGS = (
    "include_all_rooms",
    "include_walls",
    "include_ceilings",
    "include_trim",
    "include_doors",
    "include_windows",
    "include_baseboards",
    "include_closets",
    "include_staircases",
    "include_fireplaces",
    "include_built_ins",
    "include_primer",
    "include_floor_1",
    "include_floor_2",
    "include_floor_3",
    "include_floor_4",
    "include_floor_5",
    "show_paint_options_in_proposal",
)


def quote_builder_from_mapping(data: Mapping[str, object]) -> QuoteBuilder:
    """
    Missing flags keep the Quote Builder default (everything on).
    """
    defaults = QuoteBuilder()
    flags = {name: _flag(data, name, getattr(defaults, name)) for name in _QB_FLAGS}
    room_ids_raw = _get(data, "included_room_ids")
    room_ids: Tuple[str, ...] = ()
    if isinstance(room_ids_raw, list):
        room_ids = tuple(str(r).strip() for r in room_ids_raw if isinstance(r, (str, int)) and str(r).strip())
    options_raw = _get(data, "paint_options")
    if isinstance(options_raw, list):
        options = tuple(
            paint_option_from_mapping(o, i)
            for i, o in enumerate((o for o in options_raw if isinstance(o, dict)), start=1)
        )
    else:
        options = default_paint_options()
    return QuoteBuilder(included_room_ids=room_ids, paint_options=options, **flags)


def quote_from_mapping(data: Mapping[str, object], index: int = 1) -> Quote:
    qb_raw = _get(data, "quote_builder")
    return Quote(
        id=_entity_id(data, "Quote", index),
        title=_text(data, "title") or f"Quote {index}",
        quote_builder=quote_builder_from_mapping(qb_raw if isinstance(qb_raw, dict) else {}),
    )


def project_from_mapping(data: Mapping[str, object]) -> Project:
    if not isinstance(data, dict):
        raise ProjectRecordError("Expected a JSON object for the project")

    heights_raw = _get(data, "floor_heights")
    floor_heights: Tuple[float, ...] = ()
    if isinstance(heights_raw, list):
        floor_heights = tuple(dimension(h) for h in heights_raw)

    active_raw = _get(data, "active_quote_id")
    return Project(
        id=_entity_id(data, "Project", 1),
        client_name=_text(data, "client_name"),
        client_email=_text(data, "client_email"),
        client_address=_text(data, "client_address"),
        rooms=tuple(room_from_mapping(r, i) for i, r in enumerate(_objects(data, "rooms"), start=1)),
        staircases=tuple(staircase_from_mapping(s, i) for i, s in enumerate(_objects(data, "staircases"), start=1)),
        fireplaces=tuple(fireplace_from_mapping(f, i) for i, f in enumerate(_objects(data, "fireplaces"), start=1)),
        built_ins=tuple(built_in_from_mapping(b, i) for i, b in enumerate(_objects(data, "built_ins"), start=1)),
        brick_walls=tuple(brick_wall_from_mapping(b, i) for i, b in enumerate(_objects(data, "brick_walls"), start=1)),
        floor_heights=floor_heights,
        project_coats=_coats(data, "project_coats"),
        project_include_closet_interior_in_quote=_toggle(data, "project_include_closet_interior_in_quote"),
        include_furniture_moving=_flag(data, "include_furniture_moving"),
        include_nails_removal=_flag(data, "include_nails_removal"),
        quotes=tuple(quote_from_mapping(q, i) for i, q in enumerate(_objects(data, "quotes"), start=1)),
        active_quote_id=str(active_raw).strip() if isinstance(active_raw, str) and active_raw.strip() else None,
    )


def load_project(path: Path) -> Project:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ProjectRecordError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ProjectRecordError(f"Expected JSON object in {path}")
    return project_from_mapping(data)


def project_to_mapping(project: Project) -> Dict[str, object]:
    """
    snake_case JSON form of a project; `project_from_mapping` reads it back.
    """
    data = asdict(project)
    for room in data["rooms"]:
        ceiling = room["ceiling_type"]
        room["ceiling_type"] = ceiling.value if isinstance(ceiling, CeilingType) else str(ceiling)
    return data


def save_project(project: Project, path: Path) -> None:
    path.write_text(json.dumps(project_to_mapping(project), indent=2, sort_keys=True) + "\n", encoding="utf-8")
