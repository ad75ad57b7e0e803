from .aggregation import (
    category_breakdown,
    category_monthly_series,
    compute_aggregation,
    hierarchical_summary,
    monthly_summary,
    scope3_combined,
)
from .cache import AggregationCache, CachedAggregationService
from .dto import (
    AggregationResult,
    EmissionComponents,
    OrgContext,
    ReportingPeriod,
    ScopeSummary,
    SumScope,
)
from .sources import EmissionAggregateSource, OrmEmissionAggregateSource

__all__ = [
    'compute_aggregation',
    'category_breakdown',
    'category_monthly_series',
    'scope3_combined',
    'monthly_summary',
    'hierarchical_summary',
    'AggregationCache',
    'CachedAggregationService',
    'AggregationResult',
    'EmissionComponents',
    'OrgContext',
    'ReportingPeriod',
    'ScopeSummary',
    'SumScope',
    'EmissionAggregateSource',
    'OrmEmissionAggregateSource',
]
