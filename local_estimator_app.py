from __future__ import annotations

import os
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Mapping, Optional

import streamlit as st

from estimate_models import Project, Quote, QuoteBuilder, Room, active_quote, active_quote_builder, update_entity
from estimate_settings import CalculationSettings, PricingSettings, PricingSettingsError, settings_from_env
from event_log import log_event
from pricing_summary import PricingSummary
from project_records import ProjectRecordError, load_project
from project_summary import (
    ProjectSummary,
    calculate_project_closet_stats,
    calculate_project_summary,
    format_currency,
    format_gallons,
    paint_purchase_breakdown,
)
from proposal_pdf import logo_png_bytes_from_svg, make_proposal_pdf_bytes, proposal_artifact_from_summary
from sample_project import load_sample_project
from share_export import post_share_payload, share_payload


def _read_secret_or_env_str(key: str) -> str:
    """
    Read a configuration value from Streamlit Secrets (preferred) or environment variables.

    Returns a stripped string; returns "" when missing.
    """
    val: object = ""
    try:
        val = st.secrets.get(key, "")  # type: ignore[attr-defined]
    except Exception:
        val = ""
    if not val:
        val = os.environ.get(key, "")
    if isinstance(val, str):
        return val.strip()
    return str(val).strip() if val is not None else ""


def _load_settings() -> tuple[PricingSettings, CalculationSettings]:
    pricing_path = _read_secret_or_env_str("PAINT_ESTIMATE_PRICING_PATH")
    calc_path = _read_secret_or_env_str("PAINT_ESTIMATE_CALCULATION_PATH")
    return settings_from_env(
        pricing_path=Path(pricing_path) if pricing_path else None,
        calculation_path=Path(calc_path) if calc_path else None,
    )


def _load_initial_project() -> Project:
    path = _read_secret_or_env_str("PAINT_ESTIMATE_PROJECT_PATH")
    if path:
        try:
            return load_project(Path(path))
        except (OSError, ProjectRecordError) as exc:
            st.warning(f"Could not load {path}: {exc}. Using the demo project.")
    return load_sample_project()


# Quote Builder toggles shown in the sidebar, keyed by session_state key.
_QB_TOGGLES: tuple[tuple[str, str], ...] = (
    ("include_walls", "Walls"),
    ("include_ceilings", "Ceilings"),
    ("include_trim", "Trim"),
    ("include_baseboards", "Baseboards"),
    ("include_doors", "Doors"),
    ("include_windows", "Windows"),
    ("include_closets", "Closets"),
    ("include_staircases", "Staircases"),
    ("include_fireplaces", "Fireplaces"),
    ("include_built_ins", "Built-ins"),
    ("include_primer", "Primer"),
    ("include_floor_1", "Floor 1"),
    ("include_floor_2", "Floor 2"),
    ("include_floor_3", "Floor 3"),
    ("show_paint_options_in_proposal", "Show paint options in proposal"),
)


def _qb_state_key(attr: str) -> str:
    return f"qb_{attr}"


def _default_state(project: Project) -> dict[str, object]:
    qb = active_quote_builder(project)
    state: dict[str, object] = {_qb_state_key(attr): bool(getattr(qb, attr)) for attr, _ in _QB_TOGGLES}
    state["qb_included_room_ids"] = list(qb.included_room_ids) if not qb.include_all_rooms else []
    state["selected_room_id"] = project.rooms[0].id if project.rooms else ""
    return state


def _init_state() -> None:
    if "project" not in st.session_state:
        st.session_state["project"] = _load_initial_project()
    project: Project = st.session_state["project"]
    created: list[str] = []
    for key, value in _default_state(project).items():
        if key not in st.session_state:
            st.session_state[key] = value
            created.append(key)

    # region event log
    log_event(
        hypothesis_id="APP",
        location="local_estimator_app.py:_init_state",
        message="State init pass",
        data={"created_keys": created, "project_id": project.id},
    )
    # endregion event log


def _quote_builder_from_state(base: QuoteBuilder, state: Mapping[str, object]) -> QuoteBuilder:
    """
    Overlay the sidebar toggles onto the active quote's builder.
    """
    changes: dict[str, object] = {}
    for attr, _ in _QB_TOGGLES:
        key = _qb_state_key(attr)
        if key in state:
            changes[attr] = bool(state[key])
    room_ids = [str(r) for r in (state.get("qb_included_room_ids") or []) if str(r).strip()]
    changes["include_all_rooms"] = not room_ids
    changes["included_room_ids"] = tuple(room_ids)
    return replace(base, **changes)


def _project_with_quote_builder(project: Project, qb: QuoteBuilder) -> Project:
    quote = active_quote(project)
    if quote is None:
        return replace(project, quotes=(Quote(id="q1", title="Estimate", quote_builder=qb),), active_quote_id="q1")
    quotes = tuple(replace(q, quote_builder=qb) if q.id == quote.id else q for q in project.quotes)
    return replace(project, quotes=quotes)


def _apply_room_edit(project: Project, room_id: str, **changes: object) -> Project:
    """
    Edit one room; the edited room loses its cached totals.
    """
    rooms = tuple(update_entity(r, **changes) if r.id == room_id else r for r in project.rooms)
    return replace(project, rooms=rooms)


def _entity_rows(summary: ProjectSummary) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for s in summary.entity_summaries:
        rows.append(
            {
                "Item": s.name,
                "Kind": s.entity_kind.replace("_", " ").title(),
                "Labor": format_currency(s.labor_displayed),
                "Materials": format_currency(s.materials_displayed),
                "Total": format_currency(s.total_displayed),
            }
        )
    for item in summary.itemized_prices:
        if item.kind == "fee":
            rows.append(
                {
                    "Item": item.name,
                    "Kind": "Fee",
                    "Labor": format_currency(item.labor_cost),
                    "Materials": format_currency(0),
                    "Total": format_currency(item.price),
                }
            )
    return rows


def _category_rows(summary: PricingSummary) -> list[dict[str, object]]:
    return [
        {
            "Category": line.category.replace("_", " ").title(),
            "Included": "Yes" if line.included else "No",
            "Quantity": f"{line.quantity:,.1f} {line.unit}",
            "Gallons": f"{line.gallons:.2f}",
            "Labor": format_currency(round(line.labor_cost, 2)),
        }
        for line in summary.categories
    ]


def _find_room(project: Project, room_id: str) -> Optional[Room]:
    return next((r for r in project.rooms if r.id == room_id), None)


def _render_sidebar(project: Project) -> None:
    st.sidebar.markdown("## Quote Builder")
    for attr, label in _QB_TOGGLES:
        st.sidebar.checkbox(label, key=_qb_state_key(attr))
    st.sidebar.multiselect(
        "Limit to rooms (empty = all rooms)",
        options=[r.id for r in project.rooms],
        format_func=lambda rid: next((r.name for r in project.rooms if r.id == rid), rid),
        key="qb_included_room_ids",
    )


def _render_room_editor(project: Project) -> Project:
    room_ids = [r.id for r in project.rooms]
    if not room_ids:
        return project
    selected = st.selectbox(
        "Room",
        options=room_ids,
        format_func=lambda rid: next((r.name for r in project.rooms if r.id == rid), rid),
        key="selected_room_id",
    )
    room = _find_room(project, str(selected))
    if room is None:
        return project

    c1, c2, c3 = st.columns(3)
    length = c1.number_input("Length (ft)", min_value=0.0, value=float(room.length), key=f"len_{room.id}")
    width = c2.number_input("Width (ft)", min_value=0.0, value=float(room.width), key=f"wid_{room.id}")
    height = c3.number_input("Height (ft, 0 = floor default)", min_value=0.0, value=float(room.height), key=f"hgt_{room.id}")
    c4, c5, c6 = st.columns(3)
    windows = c4.number_input("Windows", min_value=0, value=int(room.window_count), step=1, key=f"win_{room.id}")
    doors = c5.number_input("Doors", min_value=0, value=int(room.door_count), step=1, key=f"door_{room.id}")
    paint_walls = c6.checkbox("Paint walls", value=room.paint_walls is not False, key=f"pw_{room.id}")

    changes: dict[str, object] = {}
    if float(length) != room.length:
        changes["length"] = float(length)
    if float(width) != room.width:
        changes["width"] = float(width)
    if float(height) != room.height:
        changes["height"] = float(height)
    if int(windows) != room.window_count:
        changes["window_count"] = int(windows)
    if int(doors) != room.door_count:
        changes["door_count"] = int(doors)
    if paint_walls != (room.paint_walls is not False):
        changes["paint_walls"] = bool(paint_walls)
    if not changes:
        return project
    return _apply_room_edit(project, room.id, **changes)


def main() -> None:
    st.set_page_config(page_title="Paint Estimate (Local)", layout="wide")
    st.title("Paint Estimate (Local)")

    _init_state()
    try:
        pricing, calc = _load_settings()
    except (OSError, PricingSettingsError) as exc:
        st.error(f"Pricing settings are invalid: {exc}")
        st.stop()

    project: Project = st.session_state["project"]
    _render_sidebar(project)
    qb = _quote_builder_from_state(active_quote_builder(project), st.session_state)
    project = _project_with_quote_builder(project, qb)

    left, right = st.columns([2, 3])
    with left:
        st.markdown("### Room")
        project = _render_room_editor(project)
        st.session_state["project"] = project

    try:
        summary = calculate_project_summary(project, pricing, calc, qb)
    except PricingSettingsError as exc:
        st.error(f"Cannot price this estimate: {exc}")
        st.stop()

    with left:
        selected = str(st.session_state.get("selected_room_id") or "")
        room_summary = next((s for s in summary.entity_summaries if s.entity_id == selected), None)
        if room_summary is not None:
            st.dataframe(_category_rows(room_summary), use_container_width=True, hide_index=True)
        else:
            st.caption("This room is outside the current Quote Builder scope.")

    with right:
        st.markdown("### Estimate")
        st.metric("Grand total", format_currency(summary.grand_total))
        m1, m2 = st.columns(2)
        m1.metric("Labor", format_currency(summary.labor_total))
        m2.metric("Materials", format_currency(summary.materials_total))
        st.dataframe(_entity_rows(summary), use_container_width=True, hide_index=True)

        st.markdown("#### Paint")
        purchase_rows = [
            {
                "Paint": line.paint.title(),
                "Gallons": format_gallons(line.gallons),
                "5-gal buckets": line.five_gallon_buckets,
                "Single gallons": line.single_gallons,
                "Cost": format_currency(line.cost),
            }
            for line in paint_purchase_breakdown(summary, pricing)
            if line.gallons > 0
        ]
        st.dataframe(purchase_rows, use_container_width=True, hide_index=True)

        stats = calculate_project_closet_stats(project, calc, qb)
        st.caption(
            f"Closets in quote: {stats.included_single_closets} single, {stats.included_double_closets} double; "
            f"excluded: {stats.excluded_single_closets + stats.excluded_double_closets}"
        )

        if summary.paint_option_results:
            st.markdown("#### Paint options")
            st.dataframe(
                [
                    {"Option": r.option_name, "Wall gal": r.wall_gallons, "Total": format_currency(r.total_displayed)}
                    for r in summary.paint_option_results
                ],
                use_container_width=True,
                hide_index=True,
            )

        logo_path = _read_secret_or_env_str("PAINT_ESTIMATE_LOGO_SVG")
        artifact = proposal_artifact_from_summary(
            project,
            summary,
            qb,
            proposal_date=date.today(),
            logo_png_bytes=logo_png_bytes_from_svg(Path(logo_path)) if logo_path else None,
        )
        st.download_button(
            "Download proposal PDF",
            data=make_proposal_pdf_bytes(artifact),
            file_name=f"proposal-{project.id}.pdf",
            mime="application/pdf",
            use_container_width=True,
        )

        export_url = _read_secret_or_env_str("PAINT_ESTIMATE_EXPORT_URL")
        if st.button("Export share JSON", key="export_share", use_container_width=True):
            payload = share_payload(project, summary, qb)
            st.session_state["export_payload"] = payload
            if export_url:
                status, resp_text = post_share_payload(url=export_url, payload=payload)
                st.session_state["export_post_status"] = int(status)
                st.session_state["export_post_response"] = str(resp_text or "")
            else:
                st.session_state["export_post_status"] = 0
                st.session_state["export_post_response"] = "PAINT_ESTIMATE_EXPORT_URL not set; skipped POST."

        if "export_payload" in st.session_state:
            status = int(st.session_state.get("export_post_status") or 0)
            if 200 <= status < 300:
                st.success(f"Exported (HTTP {status}).")
            else:
                st.info(str(st.session_state.get("export_post_response") or ""))
            with st.expander("Share payload"):
                st.json(st.session_state["export_payload"])


if __name__ == "__main__":
    main()
