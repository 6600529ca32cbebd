from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from estimate_models import Project, QuoteBuilder, active_quote
from project_summary import ProjectSummary


@dataclass(frozen=True)
class ProposalLineItem:
    description: str
    labor_cents: int
    materials_cents: int
    amount_cents: int


@dataclass(frozen=True)
class ProposalTotals:
    labor_cents: int
    materials_cents: int
    fees_cents: int
    grand_total_cents: int


@dataclass(frozen=True)
class ProposalPaintOption:
    name: str
    notes: str
    wall_gallons: float
    total_cents: int


@dataclass(frozen=True)
class ProposalPdfArtifact:
    project_id: str
    proposal_date: date
    client_name: str
    client_email: str
    client_address: str
    quote_title: str
    scope_summary: str
    line_items: Tuple[ProposalLineItem, ...]
    totals: ProposalTotals
    paint_options: Tuple[ProposalPaintOption, ...] = ()
    notes: Tuple[str, ...] = ()
    logo_png_bytes: Optional[bytes] = None


def format_usd(amount: int) -> str:
    """
    Format a USD currency amount from integer cents.
    """
    if not isinstance(amount, int):
        raise TypeError(f"amount must be int cents (got {type(amount).__name__})")
    sign = "-" if amount < 0 else ""
    cents = abs(amount)
    dollars = cents / 100.0
    return f"{sign}${dollars:,.2f}"


def _cents(amount: float) -> int:
    # Displayed values are already rounded to cents or dollars.
    return int(round(float(amount) * 100))


_SCOPE_LABELS = (
    ("include_walls", "Walls"),
    ("include_ceilings", "Ceilings"),
    ("include_trim", "Trim"),
    ("include_baseboards", "Baseboards"),
    ("include_doors", "Doors"),
    ("include_windows", "Windows"),
    ("include_closets", "Closets"),
)


def scope_summary(quote_builder: QuoteBuilder) -> str:
    parts = [label for attr, label in _SCOPE_LABELS if getattr(quote_builder, attr)]
    return ", ".join(parts) if parts else "No paint categories selected"


def proposal_artifact_from_summary(
    project: Project,
    summary: ProjectSummary,
    quote_builder: QuoteBuilder,
    *,
    proposal_date: date,
    notes: Tuple[str, ...] = (),
    logo_png_bytes: Optional[bytes] = None,
) -> ProposalPdfArtifact:
    """
    Build the PDF artifact from displayed values only, so the proposal always matches the UI.
    """
    line_items = tuple(
        ProposalLineItem(
            description=i.name,
            labor_cents=_cents(i.labor_cost),
            materials_cents=_cents(i.materials_cost),
            amount_cents=i.price * 100,
        )
        for i in summary.itemized_prices
    )
    fees_cents = sum(i.price * 100 for i in summary.itemized_prices if i.kind == "fee")
    labor_cents = sum(li.labor_cents for li, i in zip(line_items, summary.itemized_prices) if i.kind != "fee")
    materials_cents = sum(li.materials_cents for li in line_items)

    options: Tuple[ProposalPaintOption, ...] = ()
    if quote_builder.show_paint_options_in_proposal:
        options = tuple(
            ProposalPaintOption(
                name=r.option_name,
                notes=r.notes,
                wall_gallons=r.wall_gallons,
                total_cents=r.total_displayed * 100,
            )
            for r in summary.paint_option_results
        )

    quote = active_quote(project)
    return ProposalPdfArtifact(
        project_id=project.id,
        proposal_date=proposal_date,
        client_name=project.client_name,
        client_email=project.client_email,
        client_address=project.client_address,
        quote_title=quote.title if quote is not None else "Painting Proposal",
        scope_summary=scope_summary(quote_builder),
        line_items=line_items,
        totals=ProposalTotals(
            labor_cents=labor_cents,
            materials_cents=materials_cents,
            fees_cents=fees_cents,
            grand_total_cents=summary.grand_total * 100,
        ),
        paint_options=options,
        notes=notes,
        logo_png_bytes=logo_png_bytes,
    )


_ROW_H = 0.27 * inch
_FIRST_ROW_OFFSET = 0.55 * inch
_TOTALS_BOX_W = 2.35 * inch
_TOTALS_BOX_H = 1.35 * inch
_TOTALS_BOTTOM_PAD = 0.15 * inch


def make_proposal_pdf_bytes(artifact: ProposalPdfArtifact) -> bytes:
    """
    Render the client proposal.

    Page 1: header, client/scope blocks, line items and totals. Line items spill onto
    continuation pages; the totals box always sits under the last item. A paint-options
    page follows when the artifact carries options.
    """
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    # Uncompressed so tests can find text markers in the bytes.
    c.setPageCompression(0)
    w, h = letter

    margin = 0.6 * inch
    x0 = margin
    y_top = h - margin
    pad = 0.15 * inch

    header_h = 1.35 * inch
    _rect(c, x0, y_top - header_h, w - 2 * margin, header_h, stroke=1, fill=0)

    if artifact.logo_png_bytes:
        try:
            img = ImageReader(BytesIO(artifact.logo_png_bytes))
            c.drawImage(
                img,
                x0 + pad,
                y_top - header_h + pad,
                width=1.35 * inch,
                height=0.95 * inch,
                mask="auto",
                preserveAspectRatio=True,
            )
        except Exception:
            pass

    c.setFont("Helvetica-Bold", 11)
    c.drawString(x0 + 1.65 * inch, y_top - 0.40 * inch, "Painting Proposal")
    c.setFont("Helvetica", 9)
    _draw_truncated(c, x0 + 1.65 * inch, y_top - 0.62 * inch, artifact.quote_title, max_width=2.6 * inch)

    box_w = 2.2 * inch
    box_x = w - margin - box_w
    box_y = y_top - header_h + pad
    box_h = header_h - 2 * pad
    _rect(c, box_x, box_y, box_w, box_h, stroke=1, fill=0)
    line_h = 0.22 * inch
    t_y = box_y + box_h - 0.28 * inch
    c.setFont("Helvetica-Bold", 10)
    c.drawString(box_x + pad, t_y, "Estimate")
    t_y -= line_h
    _draw_truncated(c, box_x + pad, t_y, f"EST-{artifact.project_id}", max_width=box_w - 2 * pad)
    c.setFont("Helvetica", 9)
    t_y -= line_h
    c.drawString(box_x + pad, t_y, f"Date: {artifact.proposal_date.isoformat()}")
    c.setFont("Helvetica-Bold", 11)
    t_y -= (line_h + 0.03 * inch)
    c.drawString(box_x + pad, t_y, f"Total: {format_usd(artifact.totals.grand_total_cents)}")

    y = y_top - header_h - 0.25 * inch

    left_w = 3.2 * inch
    right_w = (w - 2 * margin) - left_w - 0.15 * inch
    block_h = 1.15 * inch
    _rect(c, x0, y - block_h, left_w, block_h, stroke=1, fill=0)
    _rect(c, x0 + left_w + 0.15 * inch, y - block_h, right_w, block_h, stroke=1, fill=0)

    c.setFont("Helvetica-Bold", 9)
    c.drawString(x0 + pad, y - 0.25 * inch, "CLIENT")
    # Built-in Type1 fonts render ASCII placeholders reliably.
    client_max_w = left_w - 2 * pad
    c.setFont("Helvetica-Bold", 9)
    _draw_truncated(c, x0 + pad, y - 0.50 * inch, artifact.client_name.strip() or "-", max_width=client_max_w)
    c.setFont("Helvetica", 8)
    _draw_truncated(c, x0 + pad, y - 0.70 * inch, artifact.client_email.strip() or "-", max_width=client_max_w)
    _draw_truncated(c, x0 + pad, y - 0.88 * inch, artifact.client_address.strip() or "-", max_width=client_max_w)

    right_x = x0 + left_w + 0.15 * inch
    c.setFont("Helvetica-Bold", 9)
    c.drawString(right_x + pad, y - 0.25 * inch, "SCOPE")
    c.setFont("Helvetica", 8)
    _draw_truncated(c, right_x + pad, y - 0.50 * inch, artifact.scope_summary, max_width=right_w - 2 * pad)

    y = y - block_h - 0.25 * inch

    footer_base_y = margin + 0.35 * inch
    reserved_bottom_y = footer_base_y
    if artifact.notes:
        reserved_bottom_y = footer_base_y + 0.15 * inch + (min(3, len(artifact.notes)) * 0.12 * inch)

    remaining = list(artifact.line_items)
    first_page = True
    while True:
        if first_page:
            table_top_y = y
        else:
            table_top_y = (h - margin) - 0.55 * inch
            c.setFont("Helvetica-Bold", 10)
            c.drawString(x0, (h - margin) - 0.25 * inch, "LINE ITEMS (CONTINUED)")

        max_table_h = max(1.0 * inch, _max_table_height(table_top_y, reserved_bottom_y))
        needed = _needed_table_height_with_totals(len(remaining))
        table_top_limit = table_top_y - max_table_h
        finish_here = needed <= max_table_h and _rows_capacity(
            table_top_y, table_top_y - max(3.0 * inch, needed), with_totals=True
        ) >= len(remaining)
        if finish_here:
            _render_line_items_page(
                c,
                artifact=artifact,
                x0=x0,
                margin=margin,
                pad=pad,
                page_w=w,
                table_top_y=table_top_y,
                table_h=max(3.0 * inch, needed),
                include_totals=True,
                line_items=tuple(remaining),
            )
            break

        rendered = _render_line_items_page(
            c,
            artifact=artifact,
            x0=x0,
            margin=margin,
            pad=pad,
            page_w=w,
            table_top_y=table_top_y,
            table_h=table_top_y - table_top_limit,
            include_totals=False,
            line_items=tuple(remaining),
        )
        remaining = remaining[rendered:]
        c.showPage()
        first_page = False

    c.setFont("Helvetica", 8)
    c.setFillColor(colors.grey)
    c.drawString(x0, footer_base_y, "Prices reflect the values displayed at the time of estimate.")
    c.setFillColor(colors.black)

    if artifact.notes:
        note_y = footer_base_y + 0.15 * inch
        c.setFont("Helvetica", 8)
        for n in artifact.notes[:3]:
            _draw_truncated(c, x0, note_y, f"Note: {n}", max_width=w - 2 * margin)
            note_y += 0.12 * inch

    c.showPage()

    if artifact.paint_options:
        _render_paint_options_page(c, artifact.paint_options)
        c.showPage()

    c.save()
    return buf.getvalue()


def logo_png_bytes_from_svg(svg_path: Path) -> Optional[bytes]:
    """
    Extract embedded PNG bytes from an SVG logo that wraps a data:image/png;base64 payload.
    """
    try:
        svg = svg_path.read_text(encoding="utf-8")
    except OSError:
        return None
    m = re.search(r"data:image/png;base64,([A-Za-z0-9+/=]+)", svg)
    if not m:
        return None
    try:
        return base64.b64decode(m.group(1))
    except ValueError:
        return None


def _rect(c: canvas.Canvas, x: float, y: float, w: float, h: float, *, stroke: int, fill: int) -> None:
    c.rect(x, y, w, h, stroke=stroke, fill=fill)


def _hline(c: canvas.Canvas, x1: float, x2: float, y: float) -> None:
    c.line(x1, y, x2, y)


def _totals_row(c: canvas.Canvas, x: float, y: float, label: str, amount_cents: int, box_w: float) -> None:
    """
    One label/value row; the label is truncated so it never runs into the amount.
    """
    left_pad = 0.12 * inch
    right_pad = 0.12 * inch
    gap = 0.10 * inch
    amount_txt = format_usd(amount_cents)
    amount_w = c.stringWidth(amount_txt)
    label_max = box_w - left_pad - right_pad - amount_w - gap
    _draw_truncated(c, x + left_pad, y, (label or "").strip(), max_width=max(0.0, label_max))
    c.drawRightString(x + box_w - right_pad, y, amount_txt)


def _draw_truncated(c: canvas.Canvas, x: float, y: float, text: str, *, max_width: float) -> None:
    t = (text or "").strip()
    if not t or max_width <= 0:
        return
    if c.stringWidth(t) <= max_width:
        c.drawString(x, y, t)
        return
    ell = "..."
    lo = 0
    hi = len(t)
    best = ""
    while lo <= hi:
        mid = (lo + hi) // 2
        cand = (t[:mid].rstrip() + ell) if mid < len(t) else t
        if c.stringWidth(cand) <= max_width:
            best = cand
            lo = mid + 1
        else:
            hi = mid - 1
    if best:
        c.drawString(x, y, best)


def _max_table_height(table_top_y: float, reserved_bottom_y: float) -> float:
    if table_top_y <= reserved_bottom_y:
        return 0.0
    gap = 0.25 * inch
    return max(0.0, float(table_top_y - reserved_bottom_y - gap))


def _needed_table_height_with_totals(item_count: int) -> float:
    """
    Table height for `item_count` rows plus the bottom-right totals box and two rows of clearance.
    """
    if item_count < 0:
        raise ValueError("item_count must be >= 0")
    rows = max(0, item_count - 1)
    return _FIRST_ROW_OFFSET + rows * _ROW_H + _TOTALS_BOX_H + _TOTALS_BOTTOM_PAD + 2 * _ROW_H


def _rows_capacity(table_top_y: float, table_bottom_y: float, *, with_totals: bool) -> int:
    row_start_y = table_top_y - _FIRST_ROW_OFFSET
    min_row_y = table_bottom_y + max(0.45 * inch, 2.0 * _ROW_H)
    if with_totals:
        totals_top_y = table_bottom_y + _TOTALS_BOTTOM_PAD + _TOTALS_BOX_H
        min_row_y = max(min_row_y, totals_top_y + 2.0 * _ROW_H)
    if row_start_y <= min_row_y:
        return 0
    return int((row_start_y - min_row_y) // _ROW_H) + 1


def _render_line_items_page(
    c: canvas.Canvas,
    *,
    artifact: ProposalPdfArtifact,
    x0: float,
    margin: float,
    pad: float,
    page_w: float,
    table_top_y: float,
    table_h: float,
    include_totals: bool,
    line_items: Tuple[ProposalLineItem, ...],
) -> int:
    """
    Render one page of the line-items table and return how many items were drawn.
    """
    table_w = page_w - 2 * margin
    table_bottom_y = table_top_y - table_h
    _rect(c, x0, table_bottom_y, table_w, table_h, stroke=1, fill=0)

    amount_x = page_w - margin - 0.15 * inch
    materials_x = amount_x - 1.15 * inch
    labor_x = materials_x - 1.15 * inch

    c.setFont("Helvetica-Bold", 9)
    c.drawString(x0 + pad, table_top_y - 0.25 * inch, "DESCRIPTION")
    c.drawRightString(labor_x, table_top_y - 0.25 * inch, "LABOR")
    c.drawRightString(materials_x, table_top_y - 0.25 * inch, "MATERIALS")
    c.drawRightString(amount_x, table_top_y - 0.25 * inch, "AMOUNT")
    _hline(c, x0, page_w - margin, table_top_y - 0.35 * inch)

    capacity = _rows_capacity(table_top_y, table_bottom_y, with_totals=include_totals)
    desc_max_w = labor_x - 1.0 * inch - (x0 + pad)

    c.setFont("Helvetica", 9)
    row_y = table_top_y - _FIRST_ROW_OFFSET
    rendered = 0
    for li in line_items[:capacity]:
        _draw_truncated(c, x0 + pad, row_y, li.description, max_width=desc_max_w)
        c.drawRightString(labor_x, row_y, format_usd(li.labor_cents))
        c.drawRightString(materials_x, row_y, format_usd(li.materials_cents))
        c.drawRightString(amount_x, row_y, format_usd(li.amount_cents))
        row_y -= _ROW_H
        rendered += 1

    if include_totals:
        tx = page_w - margin - _TOTALS_BOX_W
        box_bottom_y = table_bottom_y + _TOTALS_BOTTOM_PAD
        _rect(c, tx, box_bottom_y, _TOTALS_BOX_W, _TOTALS_BOX_H, stroke=1, fill=0)
        row_step = 0.19 * inch
        y_cursor = box_bottom_y + _TOTALS_BOX_H - 0.30 * inch

        c.setFont("Helvetica", 9)
        _totals_row(c, tx, y_cursor, "Labor", artifact.totals.labor_cents, _TOTALS_BOX_W)
        y_cursor -= row_step
        _totals_row(c, tx, y_cursor, "Materials", artifact.totals.materials_cents, _TOTALS_BOX_W)
        y_cursor -= row_step
        if artifact.totals.fees_cents:
            _totals_row(c, tx, y_cursor, "Fees", artifact.totals.fees_cents, _TOTALS_BOX_W)
        y_cursor -= (row_step + 0.08 * inch)

        band_h = 0.24 * inch
        c.setFillColor(colors.black)
        c.rect(tx, y_cursor - 0.07 * inch, _TOTALS_BOX_W, band_h, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 10)
        _totals_row(c, tx, y_cursor, "Grand Total", artifact.totals.grand_total_cents, _TOTALS_BOX_W)
        c.setFillColor(colors.black)

    return rendered


def _render_paint_options_page(c: canvas.Canvas, options: Tuple[ProposalPaintOption, ...]) -> None:
    w, h = letter
    margin = 0.6 * inch
    pad = 0.15 * inch

    c.setFont("Helvetica-Bold", 11)
    c.drawString(margin, h - margin, "PAINT OPTIONS")

    card_h = 0.85 * inch
    y = h - margin - 0.35 * inch
    for option in options:
        if y - card_h < margin:
            c.showPage()
            y = h - margin
        _rect(c, margin, y - card_h, w - 2 * margin, card_h, stroke=1, fill=0)
        c.setFont("Helvetica-Bold", 10)
        _draw_truncated(c, margin + pad, y - 0.28 * inch, option.name, max_width=3.5 * inch)
        c.drawRightString(w - margin - pad, y - 0.28 * inch, format_usd(option.total_cents))
        c.setFont("Helvetica", 8)
        c.drawString(margin + pad, y - 0.50 * inch, f"{option.wall_gallons:.1f} gal wall paint")
        _draw_truncated(c, margin + pad, y - 0.68 * inch, option.notes, max_width=w - 2 * margin - 2 * pad)
        y -= card_h + 0.15 * inch
