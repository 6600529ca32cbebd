from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from estimate_settings import (
    MissingRateError,
    PricingSettings,
    PricingSettingsError,
    calculation_settings_from_mapping,
    default_pricing_settings,
    load_pricing_settings,
    pricing_settings_from_mapping,
    settings_from_env,
)


class TestPricingSettings(unittest.TestCase):
    def test_require_unconfigured_rate_raises(self) -> None:
        with self.assertRaises(MissingRateError):
            PricingSettings().require("wall_labor_per_sqft")

    def test_require_unknown_rate_raises(self) -> None:
        with self.assertRaises(PricingSettingsError):
            default_pricing_settings().require("gutter_labor")

    def test_mapping_overlay_parses_numbers_and_ignores_unknown_keys(self) -> None:
        settings = pricing_settings_from_mapping(
            {"wall_labor_per_sqft": "2.5", "door_labor": 60, "legacy_key": 1},
            base=default_pricing_settings(),
        )
        self.assertEqual(settings.wall_labor_per_sqft, 2.5)
        self.assertEqual(settings.door_labor, 60.0)
        self.assertEqual(settings.window_labor, default_pricing_settings().window_labor)

    def test_null_unconfigures_a_rate(self) -> None:
        settings = pricing_settings_from_mapping({"door_labor": None}, base=default_pricing_settings())
        with self.assertRaises(MissingRateError):
            settings.require("door_labor")

    def test_invalid_values_are_rejected(self) -> None:
        for bad in (-1, "abc", True, "", [1]):
            with self.subTest(value=bad):
                with self.assertRaises(PricingSettingsError):
                    pricing_settings_from_mapping({"wall_labor_per_sqft": bad})

    def test_calculation_null_keeps_base_value(self) -> None:
        calc = calculation_settings_from_mapping({"door_height": None, "door_width": 2.5})
        self.assertEqual(calc.door_height, 7.0)
        self.assertEqual(calc.door_width, 2.5)


class TestSettingsFiles(unittest.TestCase):
    def test_load_pricing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "pricing.json"
            path.write_text(json.dumps({"wall_paint_per_gallon": 52}), encoding="utf-8")
            settings = load_pricing_settings(path, base=default_pricing_settings())
        self.assertEqual(settings.wall_paint_per_gallon, 52.0)

    def test_non_object_file_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "pricing.json"
            path.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaises(PricingSettingsError):
                load_pricing_settings(path)

    def test_env_paths_overlay_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            p = Path(tmp) / "pricing.json"
            c = Path(tmp) / "calc.json"
            p.write_text(json.dumps({"ceiling_labor_per_sqft": 2}), encoding="utf-8")
            c.write_text(json.dumps({"closet_depth": 3}), encoding="utf-8")
            env = {"PAINT_ESTIMATE_PRICING_PATH": str(p), "PAINT_ESTIMATE_CALCULATION_PATH": str(c)}
            with mock.patch.dict(os.environ, env):
                pricing, calc = settings_from_env()
        self.assertEqual(pricing.ceiling_labor_per_sqft, 2.0)
        self.assertEqual(pricing.wall_labor_per_sqft, default_pricing_settings().wall_labor_per_sqft)
        self.assertEqual(calc.closet_depth, 3.0)

    def test_defaults_without_env(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            pricing, _ = settings_from_env()
        self.assertEqual(pricing, default_pricing_settings())


if __name__ == "__main__":
    unittest.main()
