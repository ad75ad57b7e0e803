import threading
from decimal import Decimal

from django.test import SimpleTestCase

from emissions.exceptions import SourceUnavailableError
from emissions.models import EmissionClassChoices
from emissions.services.aggregation import compute_aggregation
from emissions.services.dto import EmissionComponents, OrgContext, ReportingPeriod
from emissions.services.recomposition import recompose
from emissions.services.rollup import resolve_rollup_descendants, roll_up, roll_up_categories

from .fakes import InMemoryEmissionAggregateSource

S1 = EmissionClassChoices.SCOPE1
S2 = EmissionClassChoices.SCOPE2
S3 = EmissionClassChoices.SCOPE3


class RollUpTest(SimpleTestCase):

    def setUp(self):
        self.detail = recompose(EmissionComponents(scope3_category2=Decimal("10"))).category2

    def test_root_includes_own_total(self):
        rolled = roll_up(self.detail, Decimal("100"), include_self=True)
        self.assertEqual(rolled.final_total, Decimal("110"))
        self.assertEqual(rolled.children_total, Decimal("100"))
        self.assertEqual(rolled.own_total, Decimal("10"))

    def test_non_root_reports_children_only(self):
        rolled = roll_up(self.detail, Decimal("100"), include_self=False)
        self.assertEqual(rolled.final_total, Decimal("100"))
        self.assertEqual(rolled.own_total, Decimal("10"))

    def test_input_detail_is_unchanged(self):
        roll_up(self.detail, Decimal("100"), include_self=True)
        self.assertEqual(self.detail.final_total, Decimal("10"))

    def test_roll_up_categories_sums_children_per_category(self):
        own = recompose(EmissionComponents(scope1_mobile=Decimal("5")))
        children = [
            recompose(EmissionComponents(scope1_mobile=Decimal("7"), scope3_category5=Decimal("1"))),
            recompose(EmissionComponents(scope1_mobile=Decimal("3"))),
        ]
        rolled = roll_up_categories(own, children, include_self=True)
        self.assertEqual(rolled.category4.children_total, Decimal("10"))
        self.assertEqual(rolled.category4.final_total, Decimal("15"))
        self.assertEqual(rolled.category5.final_total, Decimal("1"))


class RootInclusionNonRootExclusionRegressionTest(SimpleTestCase):
    """
    Headquarters totals include their own records; partner totals do not.

    Two descendants with Category 2 totals 30 and 70: the headquarters reports
    its own total plus 100, the partner reports exactly 100.
    """

    def setUp(self):
        self.period = ReportingPeriod(2024, 3)
        self.source = InMemoryEmissionAggregateSource()
        # Headquarters own capital goods
        self.source.add(headquarters_id=1, partner_id=None, tree_path="/1/", emission_class=S3,
                        category_number=2, total_emission=Decimal("5"), reporting_month=3)
        # Partner 10 with two sub-partners
        self.source.add(headquarters_id=1, partner_id=10, tree_path="/1/L1-001/", emission_class=S3,
                        category_number=2, total_emission=Decimal("40"), reporting_month=3)
        self.source.add(headquarters_id=1, partner_id=11, tree_path="/1/L1-001/L2-001/", emission_class=S3,
                        category_number=2, total_emission=Decimal("30"), reporting_month=3)
        self.source.add(headquarters_id=1, partner_id=12, tree_path="/1/L1-001/L2-002/", emission_class=S1,
                        category_number=1, factory_enabled=True, total_emission=Decimal("70"), reporting_month=3)

    def test_partner_excludes_its_own_records(self):
        context = OrgContext.for_partner(1, 10, "/1/L1-001/")
        result = compute_aggregation(context, self.period, source=self.source)

        self.assertEqual(result.category2.own_total, Decimal("40"))
        self.assertEqual(result.category2.children_total, Decimal("100"))
        self.assertEqual(result.category2.final_total, Decimal("100"))
        self.assertEqual(result.descendant_count, 2)

    def test_headquarters_includes_its_own_records(self):
        result = compute_aggregation(OrgContext.for_headquarters(1), self.period, source=self.source)

        self.assertEqual(result.category2.own_total, Decimal("5"))
        self.assertEqual(result.category2.children_total, Decimal("140"))
        self.assertEqual(result.category2.final_total, Decimal("145"))
        self.assertEqual(result.descendant_count, 3)

    def test_requester_is_not_its_own_descendant(self):
        context = OrgContext.for_partner(1, 10, "/1/L1-001/")
        self.assertEqual(resolve_rollup_descendants(self.source, context), {11, 12})


class FanOutTest(SimpleTestCase):
    """The default source evaluates descendants on a worker pool"""

    def setUp(self):
        self.period = ReportingPeriod(2024, 1)
        self.source = InMemoryEmissionAggregateSource()
        for index in range(1, 9):
            self.source.add(headquarters_id=1, partner_id=100 + index, tree_path=f"/1/L1-{index:03d}/",
                            emission_class=S1, category_number=4, total_emission=Decimal("2"))

    def test_components_fetched_for_every_partner(self):
        components = self.source.components_by_organization(1, range(101, 109), self.period, max_workers=3)
        self.assertEqual(sorted(components), list(range(101, 109)))
        for value in components.values():
            self.assertEqual(value.scope1_mobile, Decimal("2"))
            self.assertEqual(value.scope1_total, Decimal("2"))
        self.assertTrue(self.source.worker_threads - {threading.get_ident()})

    def test_matches_sequential_evaluation(self):
        concurrent = self.source.components_by_organization(1, range(101, 109), self.period, max_workers=4)
        sequential = self.source.components_by_organization(1, range(101, 109), self.period, max_workers=1)
        self.assertEqual(concurrent, sequential)

    def test_worker_failure_fails_the_whole_call(self):
        self.source.fail_for_partner = 105
        with self.assertRaises(SourceUnavailableError) as ctx:
            with self.assertLogs("emissions.services.sources", level="ERROR"):
                compute_aggregation(OrgContext.for_headquarters(1), self.period, source=self.source)
        self.assertIsInstance(ctx.exception.cause, ConnectionError)

    def test_headquarters_total_over_fan_out(self):
        result = compute_aggregation(OrgContext.for_headquarters(1), self.period, source=self.source)
        self.assertEqual(result.category4.final_total, Decimal("16"))
        self.assertEqual(result.descendant_count, 8)


class NegativeCategory1RollUpTest(SimpleTestCase):
    """A partner's negative Category 1 lowers its parent's total"""

    def test_headquarters_total_includes_negative_child(self):
        period = ReportingPeriod(2024, 1)
        source = InMemoryEmissionAggregateSource()
        source.add(headquarters_id=1, partner_id=None, tree_path="/1/", emission_class=S2,
                   category_number=1, total_emission=Decimal("100"))
        # Facility-tagged vehicle: subtracted as mobile and as facility
        source.add(headquarters_id=1, partner_id=10, tree_path="/1/L1-001/", emission_class=S1,
                   category_number=4, factory_enabled=True, total_emission=Decimal("10"))

        with self.assertLogs("emissions.services.recomposition", level="WARNING"):
            result = compute_aggregation(OrgContext.for_headquarters(1), period, source=source)

        self.assertEqual(result.category1.own_total, Decimal("100"))
        self.assertEqual(result.category1.children_total, Decimal("-10"))
        self.assertEqual(result.category1.final_total, Decimal("90"))
