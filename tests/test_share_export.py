from __future__ import annotations

import json
import unittest
from dataclasses import replace

from estimate_models import QuoteBuilder, active_quote_builder
from estimate_settings import CalculationSettings, default_pricing_settings
from project_summary import calculate_project_summary
from sample_project import load_sample_project
from share_export import DISPLAY_PRECEDENCE_NOTE, post_share_payload, share_payload


class TestSharePayload(unittest.TestCase):
    def setUp(self) -> None:
        self.project = load_sample_project()
        self.pricing = default_pricing_settings()
        self.calc = CalculationSettings()

    def _payload(self, qb: QuoteBuilder):
        summary = calculate_project_summary(self.project, self.pricing, self.calc, qb)
        return summary, share_payload(self.project, summary, qb, generated_at="2026-01-15T00:00:00+00:00")

    def test_payload_carries_displayed_values_only(self) -> None:
        qb = active_quote_builder(self.project)
        summary, payload = self._payload(qb)
        self.assertEqual(payload["project_id"], self.project.id)
        self.assertEqual(payload["totals"]["grand_total"], summary.grand_total)
        self.assertEqual(payload["metadata"]["value_source"], "displayed")
        self.assertEqual(payload["metadata"]["note"], DISPLAY_PRECEDENCE_NOTE)
        for entity, s in zip(payload["entities"], summary.entity_summaries):
            self.assertEqual(entity["total"], s.total_displayed)
            self.assertIsInstance(entity["total"], int)
        self.assertEqual(
            sum(i["price"] for i in payload["itemized_prices"]),
            payload["totals"]["grand_total"],
        )
        # Must be serializable as-is for the POST body.
        json.dumps(payload)

    def test_gallons_are_whole(self) -> None:
        _, payload = self._payload(active_quote_builder(self.project))
        for gallons in payload["gallons"].values():
            self.assertIsInstance(gallons, int)

    def test_paint_options_follow_proposal_flag(self) -> None:
        qb = active_quote_builder(self.project)
        _, hidden = self._payload(replace(qb, show_paint_options_in_proposal=False))
        self.assertNotIn("paint_options", hidden)
        _, shown = self._payload(replace(qb, show_paint_options_in_proposal=True))
        self.assertIn("paint_options", shown)
        self.assertTrue(shown["paint_options"])


class TestPostSharePayload(unittest.TestCase):
    def test_unreachable_endpoint_returns_zero_status(self) -> None:
        status, text = post_share_payload(url="http://127.0.0.1:9/", payload={"project_id": "x"}, timeout_s=0.5)
        self.assertEqual(status, 0)
        self.assertTrue(text)


if __name__ == "__main__":
    unittest.main()
