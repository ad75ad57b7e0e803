from django.urls import path

from .views import (
    category_breakdown_api,
    category_monthly_series_api,
    hierarchical_summary_api,
    monthly_summary_api,
    scope3_combined_api,
    special_aggregation_api,
)

urlpatterns = [
    path('aggregation/special/', special_aggregation_api, name='aggregation-special'),
    path('aggregation/scope3-combined/', scope3_combined_api, name='aggregation-scope3-combined'),
    path('aggregation/categories/', category_breakdown_api, name='aggregation-categories'),
    path('aggregation/categories/monthly/', category_monthly_series_api, name='aggregation-categories-monthly'),
    path('aggregation/monthly-summary/', monthly_summary_api, name='aggregation-monthly-summary'),
    path('aggregation/hierarchical/', hierarchical_summary_api, name='aggregation-hierarchical'),
]
