import logging

from ..models import EmissionClassChoices
from .dto import OrgContext, ReportingPeriod, ScopeSummary, SumScope

logger = logging.getLogger(__name__)


def build_scope_summary(source, scope: SumScope) -> ScopeSummary:
    """Plain per-class totals for a scope; no recomposition."""
    return ScopeSummary(
        scope1=source.sum_by_class(scope, EmissionClassChoices.SCOPE1),
        scope2=source.sum_by_class(scope, EmissionClassChoices.SCOPE2),
        scope3=source.sum_by_class(scope, EmissionClassChoices.SCOPE3),
    )


def build_context_summary(source, context: OrgContext, period: ReportingPeriod) -> ScopeSummary:
    """
    Per-class totals for everything the context can see.

    Headquarters: every record of the tenant. Partner: its own subtree,
    itself included.
    """
    summary = build_scope_summary(source, context.subtree_scope(period))
    logger.debug(f"Scope summary for organization {context.organization_id} in {period}: {summary.total}")
    return summary
