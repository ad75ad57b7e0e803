"""
Hierarchical emission aggregation.

``compute_aggregation`` is the entry point: it resolves the organizations in
scope, recomposes the special Scope 3 categories for each of them, rolls the
results up and attaches the plain per-class summary. It only reads from the
source and returns a fresh result on every call.

The remaining functions are reporting views built on the same source:
category breakdowns and their monthly series, the combined Scope 3 total,
monthly summaries and the per-organization hierarchical summary.
"""

import logging
from typing import List, Optional

from django.utils import timezone

from organizations.services.hierarchy import ROOT_PATH, OrganizationTree

from ..exceptions import InvalidContextError, InvalidPeriodError
from ..models import SPECIAL_SCOPE3_CATEGORIES, EmissionClassChoices, get_category_name
from .dto import (
    ZERO,
    AggregationResult,
    CategoryBreakdown,
    CategoryBreakdownRow,
    CategoryMonthRow,
    HierarchicalSummaryRow,
    MonthlySummaryRow,
    OrgContext,
    ReportingPeriod,
    Scope3CombinedResult,
    SumScope,
)
from .recomposition import recompose
from .rollup import resolve_rollup_descendants, roll_up_categories
from .sources import OrmEmissionAggregateSource, source_errors
from .summary import build_context_summary, build_scope_summary

logger = logging.getLogger(__name__)


def get_default_source():
    return OrmEmissionAggregateSource()


def _check_request(context, period):
    if not isinstance(context, OrgContext):
        raise InvalidContextError(f"Expected an OrgContext, got {type(context).__name__}")
    if not isinstance(period, ReportingPeriod):
        raise InvalidPeriodError(f"Expected a ReportingPeriod, got {type(period).__name__}")


def compute_aggregation(context: OrgContext, period: ReportingPeriod, source=None) -> AggregationResult:
    """
    Aggregate the special Scope 3 categories for an organization and period.

    Args:
        context: The requesting organization (headquarters or partner)
        period: Reporting year with an optional month
        source: Raw aggregate source; defaults to the ORM source

    Returns:
        AggregationResult with the four rolled-up categories and the scope summary

    Raises:
        InvalidContextError / InvalidPeriodError: malformed request
        SourceUnavailableError: the source failed; no partial result is returned
    """
    _check_request(context, period)
    source = source or get_default_source()
    logger.info(
        f"Computing aggregation for {context.organization_type} {context.organization_id} "
        f"(headquarters {context.headquarters_id}) in {period}"
    )

    with source_errors("aggregation"):
        descendants = resolve_rollup_descendants(source, context)
        own_components = source.components_for(context.self_scope(period))
        child_components = source.components_by_organization(context.headquarters_id, descendants, period)
        summary = build_context_summary(source, context, period)

    own = recompose(own_components)
    children = [recompose(components) for components in child_components.values()]
    rolled = roll_up_categories(own, children, include_self=context.is_root)

    result = AggregationResult(
        period=period,
        context=context,
        summary=summary,
        category1=rolled.category1,
        category2=rolled.category2,
        category4=rolled.category4,
        category5=rolled.category5,
        descendant_count=len(descendants),
    )
    logger.info(
        f"Aggregation for organization {context.organization_id} in {period}: "
        f"special total {result.special_total} over {len(descendants)} descendants"
    )
    return result


def _breakdown_rows(emission_class: str, totals) -> List[CategoryBreakdownRow]:
    return [
        CategoryBreakdownRow(
            category_number=number,
            category_name=get_category_name(emission_class, number),
            total_emission=total,
            record_count=count,
        )
        for number, (total, count) in sorted(totals.items())
    ]


def category_breakdown(context: OrgContext, period: ReportingPeriod, emission_class: str, source=None) -> CategoryBreakdown:
    """
    Totals per category number for the organization's own records.

    Only categories with at least one record appear.
    """
    _check_request(context, period)
    if emission_class not in EmissionClassChoices.values:
        raise InvalidContextError(f"Unknown emission class: {emission_class!r}")
    source = source or get_default_source()

    with source_errors("category breakdown"):
        totals = source.category_totals(context.self_scope(period), emission_class)

    return CategoryBreakdown(emission_class=emission_class, rows=_breakdown_rows(emission_class, totals))


def scope3_combined(context: OrgContext, period: ReportingPeriod, source=None) -> Scope3CombinedResult:
    """
    Scope 3 total made of the recomposed special categories plus the regular ones.

    Regular categories are the organization's own Scope 3 records outside
    categories 1, 2, 4 and 5.
    """
    source = source or get_default_source()
    special = compute_aggregation(context, period, source=source)
    breakdown = category_breakdown(context, period, EmissionClassChoices.SCOPE3, source=source)

    regular_rows = [row for row in breakdown.rows if row.category_number not in SPECIAL_SCOPE3_CATEGORIES]
    regular_total = sum((row.total_emission for row in regular_rows), ZERO)

    with source_errors("scope 3 record count"):
        record_count = source.record_count(context.self_scope(period))

    result = Scope3CombinedResult(
        special_total=special.special_total,
        regular_total=regular_total,
        regular_categories=regular_rows,
        record_count=record_count,
    )
    logger.info(
        f"Scope 3 combined for organization {context.organization_id} in {period}: "
        f"special {result.special_total} + regular {regular_total} = {result.combined_total}"
    )
    return result


def _reporting_months(year: int) -> List[int]:
    today = timezone.now()
    if year == today.year:
        return list(range(1, today.month + 1))
    return list(range(1, 13))


def _resolve_monthly_target(source, context: OrgContext, target_partner_id: Optional[int]) -> Optional[int]:
    """
    Partner whose own records a monthly view reads, or None for the headquarters.

    A partner requester defaults to itself and may only target itself or an
    organization below it.
    """
    if target_partner_id is None:
        return None if context.is_root else context.partner_id
    if target_partner_id == context.partner_id:
        return target_partner_id

    with source_errors("monthly target lookup"):
        visible = source.list_descendant_organization_ids(context.headquarters_id, context.descendant_prefix)
    if target_partner_id not in visible:
        logger.warning(
            f"Organization {context.organization_id} requested monthly data for "
            f"partner {target_partner_id} outside its subtree"
        )
        raise InvalidContextError(
            f"Partner {target_partner_id} is not within the subtree of organization {context.organization_id}"
        )
    return target_partner_id


def _monthly_scope(context: OrgContext, target_partner_id: Optional[int], period: ReportingPeriod) -> SumScope:
    if target_partner_id is None:
        return SumScope.headquarters_direct(context.headquarters_id, period)
    return SumScope.for_partner(context.headquarters_id, target_partner_id, period)


def monthly_summary(
    context: OrgContext,
    year,
    target_partner_id: Optional[int] = None,
    source=None,
) -> List[MonthlySummaryRow]:
    """
    Month-by-month scope totals for one organization's own records.

    The target is the requester's own records (the headquarters' direct records
    for a headquarters) unless ``target_partner_id`` is given. A partner may
    only target itself or an organization below it. Months run to the current
    month when ``year`` is the current year.
    """
    first = ReportingPeriod.from_values(year)
    _check_request(context, first)
    source = source or get_default_source()
    target_partner_id = _resolve_monthly_target(source, context, target_partner_id)

    rows = []
    with source_errors("monthly summary"):
        for month in _reporting_months(first.year):
            scope = _monthly_scope(context, target_partner_id, ReportingPeriod(year=first.year, month=month))
            rows.append(MonthlySummaryRow(
                year=first.year,
                month=month,
                summary=build_scope_summary(source, scope),
                record_count=source.record_count(scope),
            ))

    logger.info(f"Monthly summary for {len(rows)} months of {first.year} (target {target_partner_id or 'headquarters'})")
    return rows


def category_monthly_series(
    context: OrgContext,
    year,
    emission_class: str,
    target_partner_id: Optional[int] = None,
    source=None,
) -> List[CategoryMonthRow]:
    """
    Per-category totals for each month of a year.

    Targeting follows ``monthly_summary``. Months without records still get a
    row with no categories.
    """
    first = ReportingPeriod.from_values(year)
    _check_request(context, first)
    if emission_class not in EmissionClassChoices.values:
        raise InvalidContextError(f"Unknown emission class: {emission_class!r}")
    source = source or get_default_source()
    target_partner_id = _resolve_monthly_target(source, context, target_partner_id)

    rows = []
    with source_errors("category monthly series"):
        for month in _reporting_months(first.year):
            scope = _monthly_scope(context, target_partner_id, ReportingPeriod(year=first.year, month=month))
            totals = source.category_totals(scope, emission_class)
            rows.append(CategoryMonthRow(
                year=first.year,
                month=month,
                breakdown=CategoryBreakdown(
                    emission_class=emission_class,
                    rows=_breakdown_rows(emission_class, totals),
                ),
            ))

    logger.info(f"{emission_class} category series for {len(rows)} months of {first.year} (target {target_partner_id or 'headquarters'})")
    return rows


def hierarchical_summary(context: OrgContext, period: ReportingPeriod, source=None) -> List[HierarchicalSummaryRow]:
    """
    Subtree scope totals for every organization visible to the requester.

    The requester is included. Each row sums the organization's subtree (for the
    headquarters, the whole tenant). Rows are ordered by tree path.
    """
    _check_request(context, period)
    source = source or get_default_source()

    with source_errors("hierarchical summary"):
        paths = source.list_organization_paths(context.headquarters_id)
        labels = source.organization_labels(context.headquarters_id)
        tree = OrganizationTree.from_paths(paths)

        visible = tree.descendants(context.descendant_prefix)
        if context.is_root:
            visible.add(context.headquarters_id)
        else:
            visible.add(context.partner_id)

        path_by_id = dict(paths)
        rows = []
        for organization_id in visible:
            label = labels.get(organization_id)
            if organization_id == context.headquarters_id:
                tree_path = label.tree_path if label else f"/{organization_id}/"
                scope = SumScope.tenant(context.headquarters_id, period)
                child_count = tree.child_count(ROOT_PATH)
            else:
                tree_path = path_by_id.get(organization_id) or (label.tree_path if label else context.tree_path)
                scope = SumScope.subtree(context.headquarters_id, tree_path, period)
                child_count = tree.child_count(tree_path)
            rows.append(HierarchicalSummaryRow(
                organization_id=organization_id,
                tree_path=tree_path,
                name=label.name if label else f"Organization {organization_id}",
                level=label.level if label else max(len(tree_path.strip("/").split("/")) - 1, 0),
                summary=build_scope_summary(source, scope),
                child_count=child_count,
            ))

    rows.sort(key=lambda row: (row.tree_path, row.organization_id))
    logger.info(f"Hierarchical summary for organization {context.organization_id} in {period}: {len(rows)} organizations")
    return rows
