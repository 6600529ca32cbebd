from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx

from estimate_models import Project, QuoteBuilder, active_quote
from event_log import log_event
from pricing_summary import billed_gallons
from project_summary import ProjectSummary

DISPLAY_PRECEDENCE_NOTE = (
    "All amounts are the values displayed in the estimating UI. Displayed values take precedence "
    "over any raw calculation values; consumers must not re-derive totals from geometry."
)

_QB_FLAGS = (
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
)


def _quote_builder_payload(qb: QuoteBuilder) -> Dict[str, object]:
    out: Dict[str, object] = {name: bool(getattr(qb, name)) for name in _QB_FLAGS}
    out["include_all_rooms"] = bool(qb.include_all_rooms)
    out["included_room_ids"] = list(qb.included_room_ids)
    out["included_floors"] = [n for n in range(1, 6) if qb.includes_floor(n)]
    return out


def share_payload(
    project: Project,
    summary: ProjectSummary,
    quote_builder: QuoteBuilder,
    *,
    generated_at: Optional[str] = None,
) -> Dict[str, object]:
    """
    Share-JSON for a client link or CRM hand-off.

    Only displayed values are exported. Raw composer values never leave the engine.
    """
    quote = active_quote(project)

    entities: List[Dict[str, object]] = []
    for s in summary.entity_summaries:
        entities.append(
            {
                "id": s.entity_id,
                "kind": s.entity_kind,
                "name": s.name,
                "floor": s.floor,
                "labor": s.labor_displayed,
                "materials": s.materials_displayed,
                "total": s.total_displayed,
                "included_categories": [c for c, on in s.resolved.as_dict().items() if on],
            }
        )

    payload: Dict[str, object] = {
        "generated_at": generated_at or datetime.now(timezone.utc).isoformat(),
        "project_id": project.id,
        "client": {
            "name": project.client_name,
            "email": project.client_email,
            "address": project.client_address,
        },
        "quote": {
            "id": quote.id if quote is not None else None,
            "title": quote.title if quote is not None else None,
            "quote_builder": _quote_builder_payload(quote_builder),
        },
        "line_items_overview": [f"{i.name}: ${i.price:,}" for i in summary.itemized_prices],
        "itemized_prices": [
            {
                "id": i.id,
                "name": i.name,
                "kind": i.kind,
                "price": i.price,
                "labor": i.labor_cost,
                "materials": i.materials_cost,
            }
            for i in summary.itemized_prices
        ],
        "entities": entities,
        "gallons": {paint: billed_gallons(g) for paint, g in summary.gallons_by_paint.items()},
        "totals": {
            "labor": summary.labor_total,
            "materials": summary.materials_total,
            "grand_total": summary.grand_total,
        },
        "metadata": {
            "value_source": "displayed",
            "note": DISPLAY_PRECEDENCE_NOTE,
        },
    }
    if quote_builder.show_paint_options_in_proposal and summary.paint_option_results:
        payload["paint_options"] = [
            {
                "id": r.option_id,
                "name": r.option_name,
                "notes": r.notes,
                "wall_gallons": r.wall_gallons,
                "total": r.total_displayed,
            }
            for r in summary.paint_option_results
        ]
    return payload


def post_share_payload(*, url: str, payload: Dict[str, object], timeout_s: float = 3.0) -> tuple[int, str]:
    """
    Best-effort POST of a share payload.

    Returns (status_code, response_text_snippet). On failure, returns (0, error_message).
    """
    try:
        with httpx.Client(timeout=timeout_s) as client:
            resp = client.post(url, json=payload)
        status, text = int(resp.status_code), resp.text[:1200]
    except Exception as exc:
        status, text = 0, str(exc)

    # region event log
    log_event(
        hypothesis_id="EXPORT",
        location="share_export.py:post_share_payload",
        message="Share payload posted",
        data={"url": url, "status": status, "project_id": payload.get("project_id")},
    )
    # endregion event log
    return status, text
