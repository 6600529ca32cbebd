from __future__ import annotations

import math
from dataclasses import dataclass

from estimate_models import BrickWall, BuiltIn, CeilingType, Fireplace, Room, Staircase
from estimate_settings import CalculationSettings

_MAX_CATHEDRAL_CEILING_MULTIPLIER = 1.4


def safe_number(value: object, fallback: float = 0.0) -> float:
    """
    Parse a user-entered numeric field.

    Garbage (empty strings, text, None, NaN, infinities) becomes `fallback` instead of raising.
    """
    if isinstance(value, bool) or value is None:
        return float(fallback)
    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str):
        try:
            out = float(value.strip())
        except ValueError:
            return float(fallback)
    else:
        return float(fallback)
    if math.isnan(out) or math.isinf(out):
        return float(fallback)
    return out


def dimension(value: object) -> float:
    """
    Parse a dimension/count field and clamp it to >= 0.
    """
    return max(0.0, safe_number(value))


@dataclass(frozen=True)
class ClosetInteriorMetrics:
    single_count: int
    double_count: int
    wall_area: float
    ceiling_area: float
    baseboard_lf: float

    @property
    def total_count(self) -> int:
        return self.single_count + self.double_count


@dataclass(frozen=True)
class RoomGeometry:
    height: float
    effective_wall_height: float
    perimeter: float
    gross_wall_area: float
    window_deduction: float
    door_deduction: float
    closet_deduction: float
    opening_deduction: float
    # Net wall/ceiling/baseboard of the room itself, closet interiors excluded.
    wall_area: float
    ceiling_area: float
    baseboard_lf: float
    crown_moulding_lf: float
    window_count: int
    door_count: int
    window_trim_area: float
    door_trim_area: float
    closet_trim_area: float
    opening_trim_area: float
    baseboard_trim_area: float
    crown_moulding_trim_area: float
    door_face_area: float
    jamb_area: float
    closet_interior: ClosetInteriorMetrics

    @property
    def casing_trim_area(self) -> float:
        return self.door_trim_area + self.closet_trim_area + self.opening_trim_area


def cathedral_multiplier(wall_height: float, peak_height: float) -> float:
    """
    Ceiling-area multiplier for a cathedral ceiling, clamped to [1, 1.4].
    """
    if wall_height <= 0 or peak_height <= wall_height:
        return 1.0
    raw = 1.0 + (peak_height - wall_height) / wall_height
    return min(max(raw, 1.0), _MAX_CATHEDRAL_CEILING_MULTIPLIER)


def room_height(room: Room, default_height: float = 8.0) -> float:
    h = dimension(room.height)
    return h if h > 0 else max(0.0, float(default_height))


def room_floor(room: Room) -> int:
    # Missing or unparseable floors count as the ground floor.
    return int(dimension(room.floor)) or 1


def closet_interior_metrics(
    room: Room,
    calc: CalculationSettings,
    *,
    default_height: float = 8.0,
) -> ClosetInteriorMetrics:
    """
    Closet cavities modelled as fixed-depth boxes: back wall + two side walls, a ceiling
    panel and a floor-perimeter baseboard run.
    """
    h = room_height(room, default_height)
    single = int(dimension(room.single_door_closets))
    double = int(dimension(room.double_door_closets))
    if single <= 0 and double <= 0:
        return ClosetInteriorMetrics(0, 0, 0.0, 0.0, 0.0)

    depth = max(0.0, calc.closet_depth)
    single_open = max(0.0, calc.single_closet_interior_opening)
    double_open = max(0.0, calc.double_closet_interior_opening)

    wall_area = single * (single_open + 2 * depth) * h + double * (double_open + 2 * depth) * h
    ceiling_area = single * single_open * depth + double * double_open * depth
    baseboard_lf = single * 2 * (single_open + depth) + double * 2 * (double_open + depth)
    return ClosetInteriorMetrics(
        single_count=single,
        double_count=double,
        wall_area=wall_area,
        ceiling_area=ceiling_area,
        baseboard_lf=baseboard_lf,
    )


def room_geometry(room: Room, calc: CalculationSettings, *, default_height: float = 8.0) -> RoomGeometry:
    length = dimension(room.length)
    width = dimension(room.width)
    height = room_height(room, default_height)
    manual_area = dimension(room.manual_area)

    use_manual_area = manual_area > 0
    if use_manual_area:
        perimeter = 4.0 * math.sqrt(manual_area)
        floor_area = manual_area
    elif length > 0 and width > 0:
        perimeter = 2.0 * (length + width)
        floor_area = length * width
    else:
        perimeter = 0.0
        floor_area = 0.0

    effective_height = height
    peak = dimension(room.cathedral_peak_height) if room.cathedral_peak_height is not None else height
    is_cathedral = room.ceiling_type == CeilingType.CATHEDRAL
    if is_cathedral and peak > height:
        effective_height = (height + peak) / 2.0

    gross_wall_area = perimeter * effective_height

    window_count = int(dimension(room.window_count))
    door_count = int(dimension(room.door_count))
    single = int(dimension(room.single_door_closets))
    double = int(dimension(room.double_door_closets))

    # Trim bands cover the wall around each opening, so they are deducted with the opening.
    window_trim_each = 2 * (calc.window_width + calc.window_height) * (calc.window_trim_width / 12.0)
    window_deduction = window_count * (calc.window_width * calc.window_height + window_trim_each)

    door_trim_each = (2 * calc.door_height + calc.door_width) * (calc.door_trim_width / 12.0)
    door_deduction = door_count * (calc.door_height * calc.door_width + door_trim_each)

    single_w = calc.single_closet_width / 12.0
    double_w = calc.double_closet_width / 12.0
    single_trim_each = (2 * height + single_w) * (calc.single_closet_trim_width / 12.0)
    double_trim_each = (2 * height + double_w) * (calc.double_closet_trim_width / 12.0)
    closet_deduction = single * (single_w * height + single_trim_each) + double * (double_w * height + double_trim_each)

    opening_deduction = 0.0
    opening_trim_area = 0.0
    opening_baseboard_lf = 0.0
    opening_trim_w = calc.opening_trim_width / 12.0
    for opening in room.openings:
        ow = dimension(opening.width) / 12.0
        oh = dimension(opening.height) / 12.0
        opening_deduction += ow * oh
        opening_baseboard_lf += ow
        sides = int(bool(opening.has_interior_trim)) + int(bool(opening.has_exterior_trim))
        opening_trim_area += sides * (2 * oh + ow) * opening_trim_w

    wall_area = max(0.0, gross_wall_area - window_deduction - door_deduction - closet_deduction - opening_deduction)

    ceiling_area = floor_area
    if is_cathedral:
        ceiling_area *= cathedral_multiplier(height, peak)

    door_base_w = calc.door_width + 2 * calc.door_trim_width / 12.0
    single_base_w = single_w + 2 * calc.single_closet_trim_width / 12.0
    double_base_w = double_w + 2 * calc.double_closet_trim_width / 12.0
    baseboard_lf = 0.0
    if perimeter > 0:
        baseboard_lf = max(
            0.0,
            perimeter
            - door_count * door_base_w
            - single * single_base_w
            - double * double_base_w
            - opening_baseboard_lf,
        )

    # Crown sits above the openings, so it runs the full perimeter when the room has it.
    crown_lf = perimeter if room.has_crown_moulding is True else 0.0

    jamb_w = calc.door_jamb_width / 12.0
    return RoomGeometry(
        height=height,
        effective_wall_height=effective_height,
        perimeter=perimeter,
        gross_wall_area=gross_wall_area,
        window_deduction=window_deduction,
        door_deduction=door_deduction,
        closet_deduction=closet_deduction,
        opening_deduction=opening_deduction,
        wall_area=wall_area,
        ceiling_area=max(0.0, ceiling_area),
        baseboard_lf=baseboard_lf,
        crown_moulding_lf=crown_lf,
        window_count=window_count,
        door_count=door_count,
        window_trim_area=window_count * window_trim_each,
        door_trim_area=door_count * door_trim_each,
        closet_trim_area=single * single_trim_each + double * double_trim_each,
        opening_trim_area=opening_trim_area,
        baseboard_trim_area=baseboard_lf * calc.baseboard_width / 12.0,
        crown_moulding_trim_area=crown_lf * calc.crown_moulding_width / 12.0,
        door_face_area=door_count * calc.door_height * calc.door_width * 2,
        jamb_area=door_count * (jamb_w * calc.door_height * 2 + jamb_w * calc.door_width),
        closet_interior=closet_interior_metrics(room, calc, default_height=default_height),
    )


@dataclass(frozen=True)
class StaircaseGeometry:
    riser_area: float
    spindle_area: float
    handrail_area: float
    wall_area: float
    ceiling_area: float
    riser_count: int
    spindle_count: int
    handrail_length: float

    @property
    def trim_area(self) -> float:
        return self.riser_area + self.spindle_area + self.handrail_area

    @property
    def paintable_area(self) -> float:
        return self.trim_area + self.wall_area + self.ceiling_area


def staircase_geometry(staircase: Staircase, calc: CalculationSettings) -> StaircaseGeometry:
    riser_count = int(dimension(staircase.riser_count))
    spindle_count = int(dimension(staircase.spindle_count))
    handrail_length = dimension(staircase.handrail_length)
    riser_height_in = safe_number(staircase.riser_height, 7.5)
    riser_height_ft = max(0.0, riser_height_in) / 12.0

    wall_area = 0.0
    ceiling_area = 0.0
    if staircase.has_secondary_stairwell:
        tall = dimension(staircase.tall_wall_height)
        short = dimension(staircase.short_wall_height)
        if tall > 0 and short > 0:
            side = (tall + short) / 2.0 * calc.stairwell_run
            wall_area += side * 2 if staircase.double_sided_walls else side
            ceiling_area = calc.stairwell_ceiling_length * calc.stairwell_ceiling_width
    for wall in staircase.walls:
        wall_area += (dimension(wall.tall_height) + dimension(wall.short_height)) / 2.0 * calc.stairwell_run

    return StaircaseGeometry(
        riser_area=riser_count * riser_height_ft * calc.stair_width,
        spindle_area=spindle_count * calc.spindle_area_sqft,
        handrail_area=handrail_length * calc.handrail_girth,
        wall_area=wall_area,
        ceiling_area=ceiling_area,
        riser_count=riser_count,
        spindle_count=spindle_count,
        handrail_length=handrail_length,
    )


@dataclass(frozen=True)
class FireplaceGeometry:
    box_area: float
    trim_linear_feet: float
    trim_area: float
    mantel_area: float
    legs_area: float
    over_mantel_area: float

    @property
    def paintable_area(self) -> float:
        return self.box_area + self.trim_area + self.mantel_area + self.legs_area + self.over_mantel_area


def fireplace_geometry(fireplace: Fireplace, calc: CalculationSettings) -> FireplaceGeometry:
    w = dimension(fireplace.width)
    h = dimension(fireplace.height)
    d = dimension(fireplace.depth)
    # front+back, left+right, top+bottom
    box_area = 2 * (w * h) + 2 * (d * h) + 2 * (w * d)
    trim_lf = dimension(fireplace.trim_linear_feet) if fireplace.has_trim else 0.0
    over_mantel = 0.0
    if fireplace.has_over_mantel:
        over_mantel = dimension(fireplace.over_mantel_width) * dimension(fireplace.over_mantel_height)
    return FireplaceGeometry(
        box_area=box_area,
        trim_linear_feet=trim_lf,
        trim_area=trim_lf * calc.opening_trim_width / 12.0,
        mantel_area=calc.mantel_area_sqft if fireplace.has_mantel else 0.0,
        legs_area=calc.legs_area_sqft if fireplace.has_legs else 0.0,
        over_mantel_area=over_mantel,
    )


@dataclass(frozen=True)
class BuiltInGeometry:
    box_area: float
    shelf_area: float

    @property
    def paintable_area(self) -> float:
        return self.box_area + self.shelf_area


def built_in_geometry(built_in: BuiltIn) -> BuiltInGeometry:
    # Built-in dimensions are entered in inches.
    w = dimension(built_in.width) / 12.0
    h = dimension(built_in.height) / 12.0
    d = dimension(built_in.depth) / 12.0
    shelves = int(dimension(built_in.shelf_count))
    return BuiltInGeometry(
        box_area=2 * w * h + 2 * h * d + 2 * w * d,
        shelf_area=shelves * w,
    )


def brick_wall_area(brick_wall: BrickWall) -> float:
    return dimension(brick_wall.width) * dimension(brick_wall.height)
