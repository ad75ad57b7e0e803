from datetime import datetime
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from emissions.exceptions import InvalidContextError
from emissions.models import EmissionClassChoices
from emissions.services import (
    OrgContext,
    ReportingPeriod,
    category_breakdown,
    category_monthly_series,
    hierarchical_summary,
    monthly_summary,
    scope3_combined,
)
from organizations.services import register_headquarters, register_partner

from .test_aggregation import record

S1 = EmissionClassChoices.SCOPE1
S2 = EmissionClassChoices.SCOPE2
S3 = EmissionClassChoices.SCOPE3


class ReportTestBase(TestCase):

    def setUp(self):
        self.hq = register_headquarters("Holding")
        self.partner_a = register_partner(self.hq, "Supplier A")
        self.partner_b = register_partner(self.hq, "Supplier B")
        self.sub_partner = register_partner(self.partner_a, "Supplier A-1")
        self.period = ReportingPeriod(2024, 6)
        self.hq_context = OrgContext.for_headquarters(self.hq.pk)
        self.partner_context = OrgContext.for_partner(self.hq.pk, self.partner_a.pk, self.partner_a.tree_path)


class CategoryBreakdownTest(ReportTestBase):

    def test_rows_for_own_records_only(self):
        record(self.hq, S3, 6, "12")
        record(self.hq, S3, 6, "8")
        record(self.hq, S3, 1, "5")
        record(self.partner_a, S3, 7, "100")

        breakdown = category_breakdown(self.hq_context, self.period, S3)

        self.assertEqual([row.category_number for row in breakdown.rows], [1, 6])
        self.assertEqual(breakdown.rows[1].category_name, "Business travel")
        self.assertEqual(breakdown.rows[1].total_emission, Decimal("20"))
        self.assertEqual(breakdown.rows[1].record_count, 2)
        self.assertEqual(breakdown.total_emission, Decimal("25"))
        self.assertEqual(breakdown.record_count, 3)

    def test_unknown_class_is_rejected(self):
        with self.assertRaises(InvalidContextError):
            category_breakdown(self.hq_context, self.period, "SCOPE4")


class Scope3CombinedTest(ReportTestBase):

    def test_special_plus_regular(self):
        record(self.hq, S1, 4, "30")            # category 4 via mobile combustion
        record(self.hq, S3, 5, "10")            # special category, not regular
        record(self.hq, S3, 6, "7")             # regular
        record(self.hq, S3, 12, "3")            # regular
        record(self.partner_a, S3, 6, "1000")   # rolls into special only through categories 1/2/4/5

        result = scope3_combined(self.hq_context, self.period)

        self.assertEqual(result.special_total, Decimal("40"))
        self.assertEqual(result.regular_total, Decimal("10"))
        self.assertEqual(result.combined_total, Decimal("50"))
        self.assertEqual([row.category_number for row in result.regular_categories], [6, 12])
        self.assertEqual(result.record_count, 4)


class MonthlySummaryTest(ReportTestBase):

    def test_twelve_months_for_past_year(self):
        record(self.hq, S1, 1, "10", year=2023, month=1)
        record(self.hq, S2, 1, "5", year=2023, month=1)
        record(self.hq, S3, 6, "2", year=2023, month=12)
        record(self.partner_a, S1, 1, "99", year=2023, month=1)

        rows = monthly_summary(self.hq_context, 2023)

        self.assertEqual([row.month for row in rows], list(range(1, 13)))
        self.assertEqual(rows[0].summary.total, Decimal("15"))
        self.assertEqual(rows[0].record_count, 2)
        self.assertEqual(rows[11].summary.scope3, Decimal("2"))
        self.assertEqual(rows[5].summary.total, Decimal("0"))

    def test_current_year_stops_at_current_month(self):
        frozen = datetime(2025, 4, 15)
        with mock.patch("emissions.services.aggregation.timezone.now", return_value=frozen):
            rows = monthly_summary(self.hq_context, 2025)
        self.assertEqual([row.month for row in rows], [1, 2, 3, 4])

    def test_target_partner(self):
        record(self.sub_partner, S1, 1, "6", year=2023, month=2)

        rows = monthly_summary(self.partner_context, 2023, target_partner_id=self.sub_partner.pk)
        self.assertEqual(rows[1].summary.scope1, Decimal("6"))

        rows = monthly_summary(self.hq_context, 2023, target_partner_id=self.sub_partner.pk)
        self.assertEqual(rows[1].summary.scope1, Decimal("6"))

    def test_partner_defaults_to_its_own_records(self):
        record(self.hq, S1, 1, "999", year=2023, month=1)
        record(self.partner_a, S1, 1, "4", year=2023, month=1)
        record(self.sub_partner, S1, 1, "70", year=2023, month=1)

        rows = monthly_summary(self.partner_context, 2023)

        self.assertEqual(rows[0].summary.scope1, Decimal("4"))
        self.assertEqual(rows[0].record_count, 1)

    def test_partner_cannot_target_outside_its_subtree(self):
        with self.assertRaises(InvalidContextError):
            monthly_summary(self.partner_context, 2023, target_partner_id=self.partner_b.pk)


class CategoryMonthlySeriesTest(ReportTestBase):

    def test_categories_per_month(self):
        record(self.hq, S3, 6, "12", year=2023, month=1)
        record(self.hq, S3, 6, "3", year=2023, month=1)
        record(self.hq, S3, 7, "5", year=2023, month=1)
        record(self.hq, S3, 6, "2", year=2023, month=3)
        record(self.hq, S1, 1, "40", year=2023, month=1)
        record(self.partner_a, S3, 6, "500", year=2023, month=1)

        rows = category_monthly_series(self.hq_context, 2023, S3)

        self.assertEqual([row.month for row in rows], list(range(1, 13)))
        january = rows[0].breakdown
        self.assertEqual(january.emission_class, S3)
        self.assertEqual([row.category_number for row in january.rows], [6, 7])
        self.assertEqual(january.rows[0].total_emission, Decimal("15"))
        self.assertEqual(january.rows[0].record_count, 2)
        self.assertEqual(january.total_emission, Decimal("20"))
        self.assertEqual(rows[1].breakdown.rows, [])
        self.assertEqual(rows[2].breakdown.total_emission, Decimal("2"))

    def test_partner_series_uses_own_records_or_target(self):
        record(self.hq, S3, 6, "999", year=2023, month=2)
        record(self.partner_a, S3, 6, "8", year=2023, month=2)
        record(self.sub_partner, S3, 6, "1", year=2023, month=2)

        rows = category_monthly_series(self.partner_context, 2023, S3)
        self.assertEqual(rows[1].breakdown.total_emission, Decimal("8"))

        rows = category_monthly_series(self.partner_context, 2023, S3, target_partner_id=self.sub_partner.pk)
        self.assertEqual(rows[1].breakdown.total_emission, Decimal("1"))

        with self.assertRaises(InvalidContextError):
            category_monthly_series(self.partner_context, 2023, S3, target_partner_id=self.partner_b.pk)

    def test_unknown_class_is_rejected(self):
        with self.assertRaises(InvalidContextError):
            category_monthly_series(self.hq_context, 2023, "SCOPE4")


class HierarchicalSummaryTest(ReportTestBase):

    def setUp(self):
        super().setUp()
        record(self.hq, S1, 1, "100")
        record(self.partner_a, S2, 1, "20")
        record(self.sub_partner, S3, 6, "3")
        record(self.partner_b, S1, 4, "50")

    def test_headquarters_sees_everyone(self):
        rows = hierarchical_summary(self.hq_context, self.period)

        self.assertEqual(
            [row.organization_id for row in rows],
            [self.hq.pk, self.partner_a.pk, self.sub_partner.pk, self.partner_b.pk],
        )
        hq_row, a_row, sub_row, b_row = rows
        self.assertEqual(hq_row.summary.total, Decimal("173"))
        self.assertEqual(hq_row.child_count, 2)
        self.assertEqual(hq_row.level, 0)
        self.assertEqual(a_row.name, "Supplier A")
        self.assertEqual(a_row.summary.total, Decimal("23"))
        self.assertEqual(a_row.child_count, 1)
        self.assertEqual(sub_row.level, 2)
        self.assertEqual(sub_row.child_count, 0)
        self.assertEqual(b_row.summary.scope1, Decimal("50"))

    def test_partner_sees_its_subtree(self):
        rows = hierarchical_summary(self.partner_context, self.period)

        self.assertEqual([row.organization_id for row in rows], [self.partner_a.pk, self.sub_partner.pk])
        self.assertEqual(rows[0].tree_path, self.partner_a.tree_path)
        self.assertEqual(rows[0].summary.total, Decimal("23"))
