from django.contrib import admin
from django.db.models import Count

from .models import Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ('name', 'organization_type', 'tree_path', 'level', 'headquarters', 'get_children_count', 'created_at')
    list_filter = ('organization_type', 'level')
    search_fields = ('name', 'tree_path')
    ordering = ('tree_path',)
    readonly_fields = ('created_at',)

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(children_count=Count('children'))

    def get_children_count(self, obj):
        return obj.children_count
    get_children_count.short_description = 'Direct Partners'
    get_children_count.admin_order_field = 'children_count'
