"""
API views for hierarchical scope aggregation.

Each view turns query parameters into an ``OrgContext`` and a
``ReportingPeriod``, calls the matching service and serializes the result.

Query parameters:
- headquarters_id: Tenant (required)
- partner_id: Requesting partner; omit for the headquarters itself
- tree_path: Requesting partner's tree path (required with partner_id)
- year: Reporting year (required)
- month: Reporting month; omit for the full year
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .exceptions import InvalidPeriodError, ScopeValidationError, SourceUnavailableError
from .models import EmissionClassChoices
from .serializers import (
    AggregationResultSerializer,
    CategoryBreakdownSerializer,
    CategoryMonthRowSerializer,
    HierarchicalSummaryRowSerializer,
    MonthlySummaryRowSerializer,
    Scope3CombinedSerializer,
)
from .services import (
    CachedAggregationService,
    OrgContext,
    ReportingPeriod,
    category_breakdown,
    category_monthly_series,
    hierarchical_summary,
    monthly_summary,
    scope3_combined,
)

logger = logging.getLogger(__name__)


def _context_from_request(request):
    params = request.query_params
    return OrgContext.from_values(
        headquarters_id=params.get('headquarters_id'),
        partner_id=params.get('partner_id'),
        tree_path=params.get('tree_path'),
    )


def _period_from_request(request):
    params = request.query_params
    return ReportingPeriod.from_values(params.get('year'), params.get('month'))


def _target_partner_from_request(request):
    target_partner_id = request.query_params.get('target_partner_id')
    if not target_partner_id:
        return None
    try:
        return int(target_partner_id)
    except ValueError:
        raise InvalidPeriodError(f"target_partner_id must be an integer, got {target_partner_id!r}")


def _emission_class_from_request(request):
    return request.query_params.get('emission_class', EmissionClassChoices.SCOPE3).upper()


def _error_response(error):
    """Map aggregation errors onto HTTP responses."""
    if isinstance(error, ScopeValidationError):
        return Response(
            {"error": str(error), "code": error.code},
            status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(error, SourceUnavailableError):
        return Response(
            {"error": str(error), "code": error.code},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    logger.error(f"Unexpected aggregation error: {error}", exc_info=True)
    return Response(
        {"error": f"An unexpected error occurred: {str(error)}", "code": "internal_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def special_aggregation_api(request):
    """
    Recomposed Scope 3 categories 1, 2, 4 and 5 rolled up over the hierarchy.

    Additional query parameters:
    - refresh: "true" to bypass the result cache
    """
    try:
        context = _context_from_request(request)
        period = _period_from_request(request)
        force_refresh = request.query_params.get('refresh', '').lower() == 'true'

        result = CachedAggregationService().compute(context, period, force_refresh=force_refresh)
        return Response(AggregationResultSerializer(result).data)

    except Exception as e:
        return _error_response(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def scope3_combined_api(request):
    """Special Scope 3 total plus the regular Scope 3 categories."""
    try:
        context = _context_from_request(request)
        period = _period_from_request(request)

        result = scope3_combined(context, period)
        return Response(Scope3CombinedSerializer(result).data)

    except Exception as e:
        return _error_response(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def monthly_summary_api(request):
    """
    Per-month scope totals for a year.

    Additional query parameters:
    - target_partner_id: Partner whose records to summarize; omit for the requester's own records
    """
    try:
        context = _context_from_request(request)
        year = request.query_params.get('year')
        target_partner_id = _target_partner_from_request(request)

        rows = monthly_summary(context, year, target_partner_id=target_partner_id)
        return Response({
            "year": int(year),
            "target_partner_id": target_partner_id,
            "months": MonthlySummaryRowSerializer(rows, many=True).data,
        })

    except Exception as e:
        return _error_response(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hierarchical_summary_api(request):
    """Subtree scope totals for every organization visible to the requester."""
    try:
        context = _context_from_request(request)
        period = _period_from_request(request)

        rows = hierarchical_summary(context, period)
        return Response({
            "period": str(period),
            "organizations": HierarchicalSummaryRowSerializer(rows, many=True).data,
        })

    except Exception as e:
        return _error_response(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_breakdown_api(request):
    """
    Totals per category number for the requester's own records.

    Additional query parameters:
    - emission_class: SCOPE1, SCOPE2 or SCOPE3 (default SCOPE3)
    """
    try:
        context = _context_from_request(request)
        period = _period_from_request(request)
        emission_class = _emission_class_from_request(request)

        breakdown = category_breakdown(context, period, emission_class)
        return Response({
            "period": str(period),
            **CategoryBreakdownSerializer(breakdown).data,
        })

    except Exception as e:
        return _error_response(e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_monthly_series_api(request):
    """
    Per-category totals for each month of a year.

    Additional query parameters:
    - emission_class: SCOPE1, SCOPE2 or SCOPE3 (default SCOPE3)
    - target_partner_id: Partner whose records to read; omit for the requester's own records
    """
    try:
        context = _context_from_request(request)
        year = request.query_params.get('year')
        emission_class = _emission_class_from_request(request)
        target_partner_id = _target_partner_from_request(request)

        rows = category_monthly_series(context, year, emission_class, target_partner_id=target_partner_id)
        return Response({
            "year": int(year),
            "emission_class": emission_class,
            "target_partner_id": target_partner_id,
            "months": CategoryMonthRowSerializer(rows, many=True).data,
        })

    except Exception as e:
        return _error_response(e)
