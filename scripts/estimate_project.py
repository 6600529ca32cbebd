from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from dotenv import load_dotenv

from estimate_models import Project, active_quote_builder, floor_height_for
from estimate_settings import PricingSettingsError, settings_from_env
from paint_geometry import room_floor
from pricing_summary import store_cached_totals
from project_records import ProjectRecordError, load_project, save_project
from project_summary import (
    calculate_project_closet_stats,
    calculate_project_summary,
    format_currency,
    paint_purchase_breakdown,
)
from proposal_pdf import make_proposal_pdf_bytes, proposal_artifact_from_summary
from sample_project import load_sample_project
from share_export import share_payload


def _store_all_cached_totals(project: Project, pricing, calc) -> Project:
    """
    Re-materialise cached totals on every room and structural entity under the active quote.
    """
    qb = active_quote_builder(project)

    def _stored(entity, default_height: float = 8.0):
        fresh, _ = store_cached_totals(
            entity,
            qb,
            pricing,
            calc,
            project.project_coats,
            project.project_include_closet_interior_in_quote,
            default_height=default_height,
        )
        return fresh

    return replace(
        project,
        rooms=tuple(_stored(r, floor_height_for(project, room_floor(r))) for r in project.rooms),
        staircases=tuple(_stored(s) for s in project.staircases),
        fireplaces=tuple(_stored(f) for f in project.fireplaces),
        built_ins=tuple(_stored(b) for b in project.built_ins),
        brick_walls=tuple(_stored(b) for b in project.brick_walls),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Price a painting project and write the share JSON / proposal PDF.")
    parser.add_argument("--project", help="Project JSON file. Defaults to the built-in demo project.")
    parser.add_argument("--pricing", help="Pricing settings JSON (overrides PAINT_ESTIMATE_PRICING_PATH).")
    parser.add_argument("--calculation", help="Calculation settings JSON (overrides PAINT_ESTIMATE_CALCULATION_PATH).")
    parser.add_argument("--share-json", help="Write the share payload to this path.")
    parser.add_argument("--pdf", help="Write the proposal PDF to this path.")
    parser.add_argument(
        "--store-totals",
        help="Write the project back to this path with fresh cached totals on every entity.",
    )
    args = parser.parse_args(argv)

    # Explicit path: dotenv's auto discovery can fail under `python -c` / stdin.
    load_dotenv(dotenv_path=Path.cwd() / ".env")

    try:
        pricing, calc = settings_from_env(pricing_path=args.pricing, calculation_path=args.calculation)
        project = load_project(Path(args.project)) if args.project else load_sample_project()
    except (OSError, PricingSettingsError, ProjectRecordError) as exc:
        print(f"ERROR: {exc}")
        return 2

    qb = active_quote_builder(project)
    try:
        summary = calculate_project_summary(project, pricing, calc, qb)
    except PricingSettingsError as exc:
        print(f"ERROR: {exc}")
        return 2

    print(f"Project: {project.id}  Client: {project.client_name or '-'}")
    for item in summary.itemized_prices:
        print(f"- {item.name}: {format_currency(item.price)} (labor {format_currency(item.labor_cost)}, materials {format_currency(item.materials_cost)})")
    print(f"Labor: {format_currency(summary.labor_total)}")
    print(f"Materials: {format_currency(summary.materials_total)}")
    print(f"Grand total: {format_currency(summary.grand_total)}")

    print("Paint:")
    for line in paint_purchase_breakdown(summary, pricing):
        if line.gallons <= 0:
            continue
        print(
            f"- {line.paint}: {line.gallons:.2f} gal -> {line.five_gallon_buckets} x 5 gal + "
            f"{line.single_gallons} x 1 gal ({format_currency(line.cost)})"
        )

    stats = calculate_project_closet_stats(project, calc, qb)
    print(
        f"Closets: {stats.included_single_closets + stats.included_double_closets} included, "
        f"{stats.excluded_single_closets + stats.excluded_double_closets} excluded"
    )

    for r in summary.paint_option_results:
        print(f"Option {r.option_name}: {format_currency(r.total_displayed)} ({r.wall_gallons:.1f} gal wall paint)")

    if args.share_json:
        out = Path(args.share_json)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(share_payload(project, summary, qb), indent=2) + "\n", encoding="utf-8")
        print(f"Wrote {out}")

    if args.pdf:
        out = Path(args.pdf)
        out.parent.mkdir(parents=True, exist_ok=True)
        artifact = proposal_artifact_from_summary(project, summary, qb, proposal_date=date.today())
        out.write_bytes(make_proposal_pdf_bytes(artifact))
        print(f"Wrote {out}")

    if args.store_totals:
        out = Path(args.store_totals)
        out.parent.mkdir(parents=True, exist_ok=True)
        save_project(_store_all_cached_totals(project, pricing, calc), out)
        print(f"Wrote {out}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
