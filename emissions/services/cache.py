"""
Result cache around ``compute_aggregation``.

The cache lives on a configurable Django cache alias and is keyed by the
organization and period. Callers that write emission records are expected
to invalidate the affected keys.
"""

import logging
from typing import Optional

from django.core.cache import caches

from ..conf import aggregation_setting
from .aggregation import compute_aggregation
from .dto import AggregationResult, OrgContext, ReportingPeriod

logger = logging.getLogger(__name__)

KEY_PREFIX = "scope_aggregation"


class AggregationCache:
    def __init__(self, alias: Optional[str] = None, timeout: Optional[int] = None):
        self.alias = alias or aggregation_setting('CACHE_ALIAS')
        self.timeout = timeout if timeout is not None else aggregation_setting('CACHE_TIMEOUT')

    @property
    def backend(self):
        return caches[self.alias]

    def key(self, context: OrgContext, period: ReportingPeriod) -> str:
        owner = "hq" if context.is_root else f"p{context.partner_id}"
        month = "all" if period.is_full_year else period.month
        return f"{KEY_PREFIX}_{context.headquarters_id}_{owner}_{period.year}_{month}"

    def get(self, context: OrgContext, period: ReportingPeriod) -> Optional[AggregationResult]:
        return self.backend.get(self.key(context, period))

    def put(self, context: OrgContext, period: ReportingPeriod, result: AggregationResult):
        self.backend.set(self.key(context, period), result, timeout=self.timeout)

    def invalidate(self, context: OrgContext, period: ReportingPeriod):
        self.backend.delete(self.key(context, period))


class CachedAggregationService:
    """``compute_aggregation`` with a read-through cache."""

    def __init__(self, cache: Optional[AggregationCache] = None, source=None):
        self.cache = cache or AggregationCache()
        self.source = source

    def compute(self, context: OrgContext, period: ReportingPeriod, force_refresh: bool = False) -> AggregationResult:
        cache_key = self.cache.key(context, period)
        if not force_refresh:
            cached_result = self.cache.get(context, period)
            if cached_result is not None:
                logger.debug(f"Aggregation cache hit for {cache_key}")
                return cached_result

        logger.debug(f"Aggregation cache miss for {cache_key}")
        result = compute_aggregation(context, period, source=self.source)
        self.cache.put(context, period, result)
        return result

    def invalidate(self, context: OrgContext, period: ReportingPeriod):
        logger.info(f"Invalidating cached aggregation {self.cache.key(context, period)}")
        self.cache.invalidate(context, period)
