from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Union


class PricingSettingsError(ValueError):
    pass


class MissingRateError(PricingSettingsError):
    pass


@dataclass(frozen=True)
class PricingSettings:
    """
    Read-only snapshot of rates, prices and coverage for one calculation.

    `None` means the value was never configured. Composers raise `MissingRateError`
    instead of pricing such a value as zero.
    """

    # Labor
    wall_labor_per_sqft: Optional[float] = None
    ceiling_labor_per_sqft: Optional[float] = None
    baseboard_labor_per_lf: Optional[float] = None
    door_labor: Optional[float] = None
    window_labor: Optional[float] = None
    closet_labor: Optional[float] = None
    riser_labor: Optional[float] = None
    spindle_labor: Optional[float] = None
    handrail_labor_per_lf: Optional[float] = None
    fireplace_labor: Optional[float] = None
    mantel_labor: Optional[float] = None
    legs_labor: Optional[float] = None
    crown_moulding_labor_per_lf: Optional[float] = None
    built_in_labor_per_sqft: Optional[float] = None

    # Multipliers
    second_coat_labor_multiplier: Optional[float] = None
    accent_wall_labor_multiplier: Optional[float] = None

    # Project fees
    furniture_moving_fee: Optional[float] = None
    nails_removal_fee: Optional[float] = None

    # Materials (per gallon)
    wall_paint_per_gallon: Optional[float] = None
    ceiling_paint_per_gallon: Optional[float] = None
    trim_paint_per_gallon: Optional[float] = None
    door_paint_per_gallon: Optional[float] = None
    primer_per_gallon: Optional[float] = None

    # Materials (per 5-gallon bucket); optional, used by the purchase breakdown only
    wall_paint_per_5_gallon: Optional[float] = None
    ceiling_paint_per_5_gallon: Optional[float] = None
    trim_paint_per_5_gallon: Optional[float] = None
    door_paint_per_5_gallon: Optional[float] = None
    primer_per_5_gallon: Optional[float] = None

    # Coverage (sq ft per gallon)
    wall_coverage_sqft_per_gallon: Optional[float] = None
    ceiling_coverage_sqft_per_gallon: Optional[float] = None
    trim_coverage_sqft_per_gallon: Optional[float] = None

    def require(self, name: str) -> float:
        """
        Return a configured rate or raise `MissingRateError`.
        """
        if not hasattr(self, name):
            raise PricingSettingsError(f"Unknown pricing setting: {name}")
        value = getattr(self, name)
        if value is None:
            raise MissingRateError(f"Pricing setting '{name}' is not configured")
        return float(value)


@dataclass(frozen=True)
class CalculationSettings:
    # Doors (feet, trim/jamb in inches)
    door_height: float = 7.0
    door_width: float = 3.0
    door_trim_width: float = 3.5
    door_jamb_width: float = 4.5
    # Windows (feet, trim in inches)
    window_width: float = 3.0
    window_height: float = 5.0
    window_trim_width: float = 3.5
    # Closets (inches)
    single_closet_width: float = 24.0
    single_closet_height: float = 80.0
    single_closet_trim_width: float = 3.5
    double_closet_width: float = 48.0
    double_closet_height: float = 80.0
    double_closet_trim_width: float = 3.5
    # Closet interior cavity (feet)
    closet_depth: float = 2.0
    single_closet_interior_opening: float = 2.5
    double_closet_interior_opening: float = 5.0
    # Trim (inches)
    baseboard_width: float = 5.5
    crown_moulding_width: float = 5.5
    opening_trim_width: float = 3.5
    # Staircases (feet unless noted)
    stair_width: float = 3.0
    stairwell_run: float = 12.0
    stairwell_ceiling_length: float = 15.0
    stairwell_ceiling_width: float = 3.5
    spindle_area_sqft: float = 0.5
    handrail_girth: float = 0.5
    # Fireplace add-ons (sq ft)
    mantel_area_sqft: float = 6.0
    legs_area_sqft: float = 8.0


def default_pricing_settings() -> PricingSettings:
    return PricingSettings(
        wall_labor_per_sqft=1.5,
        ceiling_labor_per_sqft=1.75,
        baseboard_labor_per_lf=1.25,
        door_labor=50.0,
        window_labor=35.0,
        closet_labor=75.0,
        riser_labor=15.0,
        spindle_labor=8.0,
        handrail_labor_per_lf=10.0,
        fireplace_labor=150.0,
        mantel_labor=100.0,
        legs_labor=100.0,
        crown_moulding_labor_per_lf=1.5,
        built_in_labor_per_sqft=1.5,
        second_coat_labor_multiplier=2.0,
        accent_wall_labor_multiplier=1.25,
        furniture_moving_fee=100.0,
        nails_removal_fee=50.0,
        wall_paint_per_gallon=45.0,
        ceiling_paint_per_gallon=40.0,
        trim_paint_per_gallon=50.0,
        door_paint_per_gallon=50.0,
        primer_per_gallon=35.0,
        wall_paint_per_5_gallon=200.0,
        ceiling_paint_per_5_gallon=175.0,
        trim_paint_per_5_gallon=225.0,
        door_paint_per_5_gallon=225.0,
        primer_per_5_gallon=150.0,
        wall_coverage_sqft_per_gallon=350.0,
        ceiling_coverage_sqft_per_gallon=350.0,
        trim_coverage_sqft_per_gallon=350.0,
    )


def default_calculation_settings() -> CalculationSettings:
    return CalculationSettings()


def _parse_setting_number(key: str, value: object, *, source: str) -> float:
    # bool is an int subclass; a JSON true/false in a rate slot is a config mistake.
    if isinstance(value, bool):
        raise PricingSettingsError(f"Invalid value for '{key}' in {source}: {value!r}")
    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            out = float(value.strip())
        except ValueError:
            raise PricingSettingsError(f"Invalid value for '{key}' in {source}: {value!r}") from None
    else:
        raise PricingSettingsError(f"Invalid value for '{key}' in {source}: {value!r}")
    if out != out or out < 0:
        raise PricingSettingsError(f"'{key}' must be a non-negative number in {source} (got {value!r})")
    return out


def _settings_overrides(
    data: Mapping[str, object],
    *,
    known: Mapping[str, object],
    source: str,
) -> Dict[str, Optional[float]]:
    overrides: Dict[str, Optional[float]] = {}
    for key, value in data.items():
        if not isinstance(key, str) or key not in known:
            # Unknown keys are tolerated so older/newer settings files still load.
            continue
        if value is None:
            overrides[key] = None
            continue
        overrides[key] = _parse_setting_number(key, value, source=source)
    return overrides


def pricing_settings_from_mapping(
    data: Mapping[str, object],
    *,
    base: Optional[PricingSettings] = None,
    source: str = "pricing settings",
) -> PricingSettings:
    """
    Overlay a JSON-style mapping onto `base` (defaults to an unconfigured snapshot).

    An explicit `null` un-configures a rate; non-numeric or negative values are rejected.
    """
    if not isinstance(data, Mapping):
        raise PricingSettingsError(f"Expected JSON object for {source}")
    base = base if base is not None else PricingSettings()
    known = {f.name: f for f in fields(PricingSettings)}
    return replace(base, **_settings_overrides(data, known=known, source=source))


def calculation_settings_from_mapping(
    data: Mapping[str, object],
    *,
    base: Optional[CalculationSettings] = None,
    source: str = "calculation settings",
) -> CalculationSettings:
    if not isinstance(data, Mapping):
        raise PricingSettingsError(f"Expected JSON object for {source}")
    base = base if base is not None else default_calculation_settings()
    known = {f.name: f for f in fields(CalculationSettings)}
    overrides = _settings_overrides(data, known=known, source=source)
    # Standard dimensions always have a value; null keeps the base value.
    clean = {k: v for k, v in overrides.items() if v is not None}
    return replace(base, **clean)


def _read_json_object(path: Path) -> Mapping[str, object]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PricingSettingsError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise PricingSettingsError(f"Expected JSON object in {path}")
    return data


def load_pricing_settings(path: Path, *, base: Optional[PricingSettings] = None) -> PricingSettings:
    return pricing_settings_from_mapping(_read_json_object(path), base=base, source=str(path))


def load_calculation_settings(path: Path, *, base: Optional[CalculationSettings] = None) -> CalculationSettings:
    return calculation_settings_from_mapping(_read_json_object(path), base=base, source=str(path))


def _env_path(name: str) -> Optional[Path]:
    raw = str(os.environ.get(name, "")).strip()
    return Path(raw) if raw else None


def settings_from_env(
    *,
    pricing_path: Union[Path, str, None] = None,
    calculation_path: Union[Path, str, None] = None,
) -> tuple[PricingSettings, CalculationSettings]:
    """
    Resolve the settings snapshots for one session.

    Explicit paths win; otherwise PAINT_ESTIMATE_PRICING_PATH / PAINT_ESTIMATE_CALCULATION_PATH
    are consulted. Files overlay the built-in defaults.
    """
    p_path = Path(pricing_path) if pricing_path else _env_path("PAINT_ESTIMATE_PRICING_PATH")
    c_path = Path(calculation_path) if calculation_path else _env_path("PAINT_ESTIMATE_CALCULATION_PATH")
    pricing = default_pricing_settings()
    calc = default_calculation_settings()
    if p_path is not None:
        pricing = load_pricing_settings(p_path, base=pricing)
    if c_path is not None:
        calc = load_calculation_settings(c_path, base=calc)
    return pricing, calc
