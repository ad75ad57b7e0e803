from django.contrib import admin

from .models import EmissionRecord


@admin.register(EmissionRecord)
class EmissionRecordAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'headquarters', 'partner', 'tree_path', 'emission_class', 'category_number',
        'category_group', 'factory_enabled', 'reporting_year', 'reporting_month', 'total_emission',
    )
    list_filter = ('emission_class', 'category_group', 'factory_enabled', 'reporting_year')
    search_fields = ('tree_path', 'category_name', 'headquarters__name', 'partner__name')
    raw_id_fields = ('headquarters', 'partner')
    readonly_fields = ('created_at', 'updated_at')
