from __future__ import annotations

import base64
import tempfile
import unittest
from dataclasses import replace
from datetime import date
from pathlib import Path

from estimate_models import active_quote_builder
from estimate_settings import CalculationSettings, default_pricing_settings
from project_summary import calculate_project_summary
from proposal_pdf import (
    ProposalLineItem,
    ProposalPaintOption,
    ProposalPdfArtifact,
    ProposalTotals,
    format_usd,
    logo_png_bytes_from_svg,
    make_proposal_pdf_bytes,
    proposal_artifact_from_summary,
)
from sample_project import load_sample_project


_PNG_1X1 = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde"
    b"\x00\x00\x00\nIDAT\x08\xd7c\xf8\x0f\x00\x01\x01\x01\x00\x18\xdd\x8d\x9b"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)


def _count_pdf_pages(pdf: bytes) -> int:
    # Page objects carry "/Type /Page"; the page tree carries "/Type /Pages".
    return max(0, pdf.count(b"/Type /Page") - pdf.count(b"/Type /Pages"))


def _artifact(item_count: int, **overrides) -> ProposalPdfArtifact:
    items = tuple(
        ProposalLineItem(
            description=f"Room {i}",
            labor_cents=50000,
            materials_cents=8000,
            amount_cents=58000,
        )
        for i in range(1, item_count + 1)
    )
    base = dict(
        project_id="TEST123",
        proposal_date=date(2026, 1, 15),
        client_name="Demo Client",
        client_email="demo@example.com",
        client_address="12 Elm St",
        quote_title="Interior Repaint",
        scope_summary="Walls, Ceilings",
        line_items=items,
        totals=ProposalTotals(
            labor_cents=50000 * item_count,
            materials_cents=8000 * item_count,
            fees_cents=0,
            grand_total_cents=58000 * item_count,
        ),
    )
    base.update(overrides)
    return ProposalPdfArtifact(**base)


class TestProposalPdf(unittest.TestCase):
    def test_make_proposal_pdf_bytes_returns_pdf(self) -> None:
        pdf = make_proposal_pdf_bytes(_artifact(2))
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(len(pdf), 1000)
        self.assertIn(b"Painting Proposal", pdf)
        self.assertIn(b"Grand Total", pdf)
        self.assertEqual(_count_pdf_pages(pdf), 1)

    def test_long_item_list_paginates(self) -> None:
        pdf = make_proposal_pdf_bytes(_artifact(60))
        self.assertGreater(_count_pdf_pages(pdf), 1)
        self.assertIn(b"LINE ITEMS (CONTINUED)", pdf)

    def test_paint_options_get_their_own_page(self) -> None:
        option = ProposalPaintOption(name="Premium", notes="Low VOC", wall_gallons=4.2, total_cents=123400)
        pdf = make_proposal_pdf_bytes(_artifact(2, paint_options=(option,)))
        self.assertIn(b"PAINT OPTIONS", pdf)
        self.assertEqual(_count_pdf_pages(pdf), 2)

    def test_artifact_from_summary_matches_displayed_totals(self) -> None:
        project = load_sample_project()
        qb = active_quote_builder(project)
        summary = calculate_project_summary(project, default_pricing_settings(), CalculationSettings(), qb)
        artifact = proposal_artifact_from_summary(project, summary, qb, proposal_date=date(2026, 1, 15))
        self.assertEqual(artifact.totals.grand_total_cents, summary.grand_total * 100)
        self.assertEqual(sum(li.amount_cents for li in artifact.line_items), summary.grand_total * 100)
        self.assertGreater(artifact.totals.fees_cents, 0)

        hidden = proposal_artifact_from_summary(
            project,
            summary,
            replace(qb, show_paint_options_in_proposal=False),
            proposal_date=date(2026, 1, 15),
        )
        self.assertEqual(hidden.paint_options, ())


class TestLogo(unittest.TestCase):
    def test_logo_extracted_from_svg_and_embedded(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            svg = Path(tmp) / "logo.svg"
            encoded = base64.b64encode(_PNG_1X1).decode("ascii")
            svg.write_text(f'<svg><image href="data:image/png;base64,{encoded}"/></svg>', encoding="utf-8")
            logo = logo_png_bytes_from_svg(svg)
            self.assertEqual(logo, _PNG_1X1)
            self.assertIsNone(logo_png_bytes_from_svg(Path(tmp) / "missing.svg"))
        pdf = make_proposal_pdf_bytes(_artifact(1, logo_png_bytes=logo))
        self.assertTrue(pdf.startswith(b"%PDF"))


class TestFormatUsd(unittest.TestCase):
    def test_format_usd(self) -> None:
        self.assertEqual(format_usd(123456), "$1,234.56")
        self.assertEqual(format_usd(-500), "-$5.00")
        with self.assertRaises(TypeError):
            format_usd(12.5)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
