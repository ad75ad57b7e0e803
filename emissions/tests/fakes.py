"""
In-memory aggregate source for service tests that do not need the database.
"""

import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from emissions.models import EmissionClassChoices, get_scope1_group
from emissions.services.dto import OrganizationLabel
from emissions.services.sources import EmissionAggregateSource


@dataclass
class FakeRecord:
    headquarters_id: int
    partner_id: Optional[int]
    tree_path: str
    emission_class: str
    category_number: int
    total_emission: Decimal
    factory_enabled: bool = False
    reporting_year: int = 2024
    reporting_month: int = 1

    @property
    def category_group(self):
        if self.emission_class == EmissionClassChoices.SCOPE1:
            return get_scope1_group(self.category_number)
        return ""


class InMemoryEmissionAggregateSource(EmissionAggregateSource):
    """Answers scoped sums from a list of ``FakeRecord``; tracks worker threads."""

    def __init__(self, records=None, labels=None, fail_for_partner=None):
        self.records = list(records or [])
        self.labels = dict(labels or {})
        self.fail_for_partner = fail_for_partner
        self.worker_threads = set()
        self._lock = threading.Lock()

    def add(self, **kwargs):
        self.records.append(FakeRecord(**kwargs))

    def _matches(self, record, scope):
        if record.headquarters_id != scope.headquarters_id:
            return False
        if record.reporting_year != scope.period.year:
            return False
        if scope.period.month is not None and record.reporting_month != scope.period.month:
            return False
        if scope.partner_id is not None:
            return record.partner_id == scope.partner_id
        if scope.direct_only:
            return record.partner_id is None
        if scope.tree_path_prefix:
            return record.partner_id is not None and record.tree_path.startswith(scope.tree_path_prefix)
        return True

    def _sum(self, scope, predicate):
        if scope.partner_id is not None and scope.partner_id == self.fail_for_partner:
            raise ConnectionError(f"lost connection while reading partner {scope.partner_id}")
        with self._lock:
            self.worker_threads.add(threading.get_ident())
        return sum(
            (r.total_emission for r in self.records if self._matches(r, scope) and predicate(r)),
            Decimal("0"),
        )

    def sum_by_class(self, scope, emission_class):
        return self._sum(scope, lambda r: r.emission_class == emission_class)

    def sum_by_class_and_group(self, scope, emission_class, group):
        return self._sum(scope, lambda r: r.emission_class == emission_class and r.category_group == group)

    def sum_by_class_and_category(self, scope, emission_class, category_number):
        return self._sum(scope, lambda r: r.emission_class == emission_class and r.category_number == category_number)

    def sum_by_class_and_facility_flag(self, scope, emission_class, factory_enabled):
        return self._sum(scope, lambda r: r.emission_class == emission_class and r.factory_enabled == factory_enabled)

    def category_totals(self, scope, emission_class):
        totals = {}
        for record in self.records:
            if self._matches(record, scope) and record.emission_class == emission_class:
                total, count = totals.get(record.category_number, (Decimal("0"), 0))
                totals[record.category_number] = (total + record.total_emission, count + 1)
        return totals

    def record_count(self, scope):
        return sum(1 for record in self.records if self._matches(record, scope))

    def list_organization_paths(self, headquarters_id):
        return sorted({
            (r.partner_id, r.tree_path)
            for r in self.records
            if r.headquarters_id == headquarters_id and r.partner_id is not None
        })

    def organization_labels(self, headquarters_id):
        return {
            organization_id: OrganizationLabel(name=name, level=level, tree_path=tree_path)
            for organization_id, (name, level, tree_path) in self.labels.items()
        }
