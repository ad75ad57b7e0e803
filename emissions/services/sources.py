"""
Raw aggregate sources: scoped decimal sums over emission records.

``EmissionAggregateSource`` defines what the aggregation services need from
storage. ``OrmEmissionAggregateSource`` answers it with the Django ORM.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple

from django.db.models import Count, Q, Sum

from organizations.models import Organization
from organizations.services.hierarchy import resolve_descendants
from organizations.services.registry import get_partner_paths

from ..conf import aggregation_setting
from ..exceptions import ScopeAggregationError, SourceUnavailableError
from ..models import (
    EmissionClassChoices,
    EmissionRecord,
    Scope1GroupChoices,
    WASTEWATER_TREATMENT_CATEGORY,
)
from .dto import ZERO, EmissionComponents, OrganizationLabel, ReportingPeriod, SumScope

logger = logging.getLogger(__name__)

# category_number -> (total_emission, record_count)
CategoryTotals = Dict[int, Tuple[Decimal, int]]


@contextmanager
def source_errors(operation: str):
    """Re-raise any storage failure inside the block as ``SourceUnavailableError``."""
    try:
        yield
    except ScopeAggregationError:
        raise
    except Exception as e:
        logger.error(f"Emission data source failed during {operation}: {e}", exc_info=True)
        raise SourceUnavailableError(f"Emission data is unavailable ({operation})", cause=e) from e


class EmissionAggregateSource(ABC):
    """
    Read-only access to emission sums.

    Every sum is scoped by a ``SumScope`` (tenant, organization and period) and
    returns ``Decimal('0')`` when nothing matches.
    """

    @abstractmethod
    def sum_by_class(self, scope: SumScope, emission_class: str) -> Decimal:
        ...

    @abstractmethod
    def sum_by_class_and_group(self, scope: SumScope, emission_class: str, group: str) -> Decimal:
        ...

    @abstractmethod
    def sum_by_class_and_category(self, scope: SumScope, emission_class: str, category_number: int) -> Decimal:
        ...

    @abstractmethod
    def sum_by_class_and_facility_flag(self, scope: SumScope, emission_class: str, factory_enabled: bool) -> Decimal:
        ...

    @abstractmethod
    def list_organization_paths(self, headquarters_id: int) -> List[Tuple[int, str]]:
        """Distinct ``(partner_id, tree_path)`` pairs known for a headquarters."""

    @abstractmethod
    def category_totals(self, scope: SumScope, emission_class: str) -> CategoryTotals:
        ...

    @abstractmethod
    def record_count(self, scope: SumScope) -> int:
        ...

    @abstractmethod
    def organization_labels(self, headquarters_id: int) -> Dict[int, OrganizationLabel]:
        """Display data for the headquarters and its partners, keyed by id."""

    def sum_by_other_indirect_category(self, scope: SumScope, category_number: int) -> Decimal:
        return self.sum_by_class_and_category(scope, EmissionClassChoices.SCOPE3, category_number)

    def list_descendant_organization_ids(self, headquarters_id: int, path_prefix: str) -> Set[int]:
        return resolve_descendants(self, headquarters_id, path_prefix)

    def components_for(self, scope: SumScope) -> EmissionComponents:
        """Read every raw bucket the category formulas use."""
        scope1 = EmissionClassChoices.SCOPE1
        scope2 = EmissionClassChoices.SCOPE2
        return EmissionComponents(
            scope1_total=self.sum_by_class(scope, scope1),
            scope1_mobile=self.sum_by_class_and_group(scope, scope1, Scope1GroupChoices.MOBILE_COMBUSTION),
            scope1_factory=self.sum_by_class_and_facility_flag(scope, scope1, True),
            scope1_wastewater=self.sum_by_class_and_category(scope, scope1, WASTEWATER_TREATMENT_CATEGORY),
            scope2_total=self.sum_by_class(scope, scope2),
            scope2_factory=self.sum_by_class_and_facility_flag(scope, scope2, True),
            scope3_category1=self.sum_by_other_indirect_category(scope, 1),
            scope3_category2=self.sum_by_other_indirect_category(scope, 2),
            scope3_category4=self.sum_by_other_indirect_category(scope, 4),
            scope3_category5=self.sum_by_other_indirect_category(scope, 5),
        )

    def components_by_organization(
        self,
        headquarters_id: int,
        partner_ids: Iterable[int],
        period: ReportingPeriod,
        max_workers: Optional[int] = None,
    ) -> Dict[int, EmissionComponents]:
        """
        Components of each partner's own records.

        The default implementation evaluates partners independently on a bounded
        thread pool. Any failure in a worker fails the whole call.
        """
        partner_ids = sorted(set(partner_ids))
        if not partner_ids:
            return {}

        workers = max(1, min(max_workers or aggregation_setting('MAX_WORKERS'), len(partner_ids)))
        logger.debug(f"Fetching components for {len(partner_ids)} partners with {workers} workers")

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                partner_id: executor.submit(
                    self.components_for,
                    SumScope.for_partner(headquarters_id, partner_id, period),
                )
                for partner_id in partner_ids
            }
            results = {}
            for partner_id, future in futures.items():
                try:
                    results[partner_id] = future.result()
                except Exception as e:
                    for pending in futures.values():
                        pending.cancel()
                    logger.error(f"Component query failed for partner {partner_id}: {e}", exc_info=True)
                    raise SourceUnavailableError(
                        f"Emission data is unavailable for partner {partner_id}", cause=e
                    ) from e
        return results


def _component_aggregates():
    scope1 = Q(emission_class=EmissionClassChoices.SCOPE1)
    scope2 = Q(emission_class=EmissionClassChoices.SCOPE2)
    scope3 = Q(emission_class=EmissionClassChoices.SCOPE3)
    return {
        'scope1_total': Sum('total_emission', filter=scope1),
        'scope1_mobile': Sum('total_emission', filter=scope1 & Q(category_group=Scope1GroupChoices.MOBILE_COMBUSTION)),
        'scope1_factory': Sum('total_emission', filter=scope1 & Q(factory_enabled=True)),
        'scope1_wastewater': Sum('total_emission', filter=scope1 & Q(category_number=WASTEWATER_TREATMENT_CATEGORY)),
        'scope2_total': Sum('total_emission', filter=scope2),
        'scope2_factory': Sum('total_emission', filter=scope2 & Q(factory_enabled=True)),
        'scope3_category1': Sum('total_emission', filter=scope3 & Q(category_number=1)),
        'scope3_category2': Sum('total_emission', filter=scope3 & Q(category_number=2)),
        'scope3_category4': Sum('total_emission', filter=scope3 & Q(category_number=4)),
        'scope3_category5': Sum('total_emission', filter=scope3 & Q(category_number=5)),
    }


def _to_components(row) -> EmissionComponents:
    return EmissionComponents(**{
        name: row.get(name) or ZERO
        for name in _component_aggregates()
    })


class OrmEmissionAggregateSource(EmissionAggregateSource):
    """Emission sums straight from ``EmissionRecord`` using conditional aggregation."""

    def _period_queryset(self, headquarters_id: int, period: ReportingPeriod):
        queryset = EmissionRecord.objects.filter(
            headquarters_id=headquarters_id,
            reporting_year=period.year,
        )
        if not period.is_full_year:
            queryset = queryset.filter(reporting_month=period.month)
        return queryset

    def _queryset(self, scope: SumScope):
        queryset = self._period_queryset(scope.headquarters_id, scope.period)
        if scope.partner_id is not None:
            queryset = queryset.filter(partner_id=scope.partner_id)
        elif scope.direct_only:
            queryset = queryset.filter(partner__isnull=True)
        elif scope.tree_path_prefix:
            queryset = queryset.filter(partner__isnull=False, tree_path__startswith=scope.tree_path_prefix)
        return queryset

    def _sum(self, queryset) -> Decimal:
        return queryset.aggregate(total=Sum('total_emission'))['total'] or ZERO

    def sum_by_class(self, scope, emission_class):
        return self._sum(self._queryset(scope).filter(emission_class=emission_class))

    def sum_by_class_and_group(self, scope, emission_class, group):
        return self._sum(self._queryset(scope).filter(emission_class=emission_class, category_group=group))

    def sum_by_class_and_category(self, scope, emission_class, category_number):
        return self._sum(self._queryset(scope).filter(emission_class=emission_class, category_number=category_number))

    def sum_by_class_and_facility_flag(self, scope, emission_class, factory_enabled):
        return self._sum(self._queryset(scope).filter(emission_class=emission_class, factory_enabled=factory_enabled))

    def category_totals(self, scope, emission_class):
        rows = (
            self._queryset(scope)
            .filter(emission_class=emission_class)
            .values('category_number')
            .annotate(total=Sum('total_emission'), count=Count('id'))
            .order_by('category_number')
        )
        return {row['category_number']: (row['total'] or ZERO, row['count']) for row in rows}

    def record_count(self, scope):
        return self._queryset(scope).count()

    def list_organization_paths(self, headquarters_id):
        pairs = set(
            EmissionRecord.objects.filter(headquarters_id=headquarters_id, partner__isnull=False)
            .order_by()
            .values_list('partner_id', 'tree_path')
            .distinct()
        )
        pairs.update(get_partner_paths(headquarters_id))
        return sorted(pairs)

    def organization_labels(self, headquarters_id):
        organizations = Organization.objects.filter(
            Q(pk=headquarters_id) | Q(headquarters_id=headquarters_id)
        ).values('id', 'name', 'level', 'tree_path')
        return {
            row['id']: OrganizationLabel(name=row['name'], level=row['level'], tree_path=row['tree_path'])
            for row in organizations
        }

    def components_for(self, scope):
        return _to_components(self._queryset(scope).aggregate(**_component_aggregates()))

    def components_by_organization(self, headquarters_id, partner_ids, period, max_workers=None):
        """One grouped query for every partner instead of a per-partner fan-out."""
        partner_ids = sorted(set(partner_ids))
        if not partner_ids:
            return {}
        rows = (
            self._period_queryset(headquarters_id, period)
            .filter(partner_id__in=partner_ids)
            .order_by()
            .values('partner_id')
            .annotate(**_component_aggregates())
        )
        results = {partner_id: EmissionComponents() for partner_id in partner_ids}
        for row in rows:
            results[row['partner_id']] = _to_components(row)
        logger.debug(f"Grouped component query returned {len(rows)} of {len(partner_ids)} partners")
        return results
