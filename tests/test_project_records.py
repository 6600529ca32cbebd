from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from estimate_models import CeilingType
from estimate_settings import CalculationSettings, default_pricing_settings
from project_records import (
    ProjectRecordError,
    load_project,
    project_from_mapping,
    project_to_mapping,
    room_from_mapping,
    save_project,
)
from project_summary import calculate_project_summary
from sample_project import load_sample_project


class TestRoomRecords(unittest.TestCase):
    def test_garbage_dimensions_parse_to_zero(self) -> None:
        room = room_from_mapping({"id": "r1", "name": "Den", "length": "abc", "width": "", "height": None})
        self.assertEqual((room.length, room.width, room.height), (0.0, 0.0, 0.0))

    def test_camel_case_keys_are_accepted(self) -> None:
        room = room_from_mapping(
            {
                "id": "r1",
                "name": "Den",
                "length": "12",
                "paintWalls": False,
                "ceilingType": "cathedral",
                "cathedralPeakHeight": 12,
                "singleDoorClosets": 2,
            }
        )
        self.assertEqual(room.length, 12.0)
        self.assertIs(room.paint_walls, False)
        self.assertEqual(room.ceiling_type, CeilingType.CATHEDRAL)
        self.assertEqual(room.single_door_closets, 2)

    def test_unset_toggles_stay_unset(self) -> None:
        room = room_from_mapping({"id": "r1", "paint_walls": "yes"})
        self.assertIsNone(room.paint_walls)
        self.assertIsNone(room.included)

    def test_missing_id_is_an_error(self) -> None:
        with self.assertRaises(ProjectRecordError):
            room_from_mapping({"name": "Den"})


class TestProjectRecords(unittest.TestCase):
    def test_non_object_document_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "project.json"
            path.write_text("[]", encoding="utf-8")
            with self.assertRaises(ProjectRecordError):
                load_project(path)

    def test_quote_builder_defaults_and_floor_toggles(self) -> None:
        project = project_from_mapping(
            {
                "id": "p1",
                "rooms": [{"id": "r1", "floor": 2}, "not-a-room"],
                "quotes": [{"id": "q1", "quoteBuilder": {"includeFloor2": False, "includedRoomIds": ["r1"]}}],
                "activeQuoteId": "q1",
            }
        )
        self.assertEqual(len(project.rooms), 1)
        qb = project.quotes[0].quote_builder
        self.assertFalse(qb.include_floor_2)
        self.assertTrue(qb.include_walls)
        self.assertEqual(qb.included_room_ids, ("r1",))
        self.assertEqual(project.active_quote_id, "q1")

    def test_saved_project_prices_the_same(self) -> None:
        project = load_sample_project()
        pricing = default_pricing_settings()
        calc = CalculationSettings()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "project.json"
            save_project(project, path)
            self.assertIsInstance(json.loads(path.read_text(encoding="utf-8")), dict)
            loaded = load_project(path)
        self.assertEqual(
            calculate_project_summary(loaded, pricing, calc).grand_total,
            calculate_project_summary(project, pricing, calc).grand_total,
        )

    def test_mapping_uses_plain_ceiling_type(self) -> None:
        data = project_to_mapping(load_sample_project())
        self.assertIn("cathedral", {r["ceiling_type"] for r in data["rooms"]})


if __name__ == "__main__":
    unittest.main()
