from __future__ import annotations

from estimate_models import (
    BrickWall,
    BuiltIn,
    CeilingType,
    Fireplace,
    Opening,
    Project,
    Quote,
    QuoteBuilder,
    Room,
    Staircase,
    StaircaseWall,
)


def load_sample_project() -> Project:
    """
    Hardcoded two-storey demo house.

    Intent:
    - Exercises every entity kind and the main room toggles in one estimate.
    - Small enough to eyeball the numbers in the app and the CLI.
    """
    rooms = (
        Room(
            id="living",
            name="Living Room",
            length=18,
            width=14,
            height=9,
            window_count=3,
            door_count=1,
            has_crown_moulding=True,
            openings=(Opening(id="arch", width=48, height=84),),
        ),
        Room(
            id="kitchen",
            name="Kitchen",
            length=12,
            width=12,
            window_count=1,
            door_count=1,
            paint_ceilings=False,
            notes="Cabinets by others.",
        ),
        Room(
            id="primary",
            name="Primary Bedroom",
            floor=2,
            length=16,
            width=13,
            ceiling_type=CeilingType.CATHEDRAL,
            cathedral_peak_height=12,
            window_count=2,
            door_count=1,
            double_door_closets=1,
            has_accent_wall=True,
        ),
        Room(
            id="guest",
            name="Guest Bedroom",
            floor=2,
            length=11,
            width=11,
            window_count=1,
            door_count=1,
            single_door_closets=1,
            include_closet_interior_in_quote=False,
        ),
        Room(
            id="hall-bath",
            name="Hall Bath",
            floor=2,
            manual_area=48,
            door_count=1,
            paint_trim=False,
            coats_walls=1,
        ),
    )
    quote_builder = QuoteBuilder()
    return Project(
        id="demo-1001",
        client_name="Jordan Avery",
        client_email="jordan.avery@example.com",
        client_address="42 Maple Court",
        rooms=rooms,
        staircases=(
            Staircase(
                id="main-stairs",
                name="Main Stairs",
                riser_count=14,
                spindle_count=28,
                handrail_length=14,
                walls=(StaircaseWall(id="stair-wall-1", tall_height=18, short_height=9),),
            ),
        ),
        fireplaces=(
            Fireplace(
                id="living-fireplace",
                name="Living Room Fireplace",
                width=5,
                height=4,
                depth=1.5,
                has_trim=True,
                trim_linear_feet=14,
                has_mantel=True,
            ),
        ),
        built_ins=(BuiltIn(id="den-shelves", name="Den Bookcase", width=72, height=84, depth=14, shelf_count=5),),
        brick_walls=(BrickWall(id="basement-brick", name="Basement Brick Wall", width=20, height=8),),
        floor_heights=(9.0, 8.0),
        project_coats=2,
        include_furniture_moving=True,
        quotes=(Quote(id="q1", title="Interior Repaint", quote_builder=quote_builder),),
        active_quote_id="q1",
    )
