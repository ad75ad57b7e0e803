from rest_framework import serializers


def amount_field(**kwargs):
    return serializers.DecimalField(max_digits=20, decimal_places=6, read_only=True, **kwargs)


class OrgContextSerializer(serializers.Serializer):
    organization_type = serializers.CharField()
    headquarters_id = serializers.IntegerField()
    partner_id = serializers.IntegerField(allow_null=True)
    tree_path = serializers.CharField(allow_null=True)


class ReportingPeriodSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.IntegerField(allow_null=True)


class ScopeSummarySerializer(serializers.Serializer):
    scope1 = amount_field()
    scope2 = amount_field()
    scope3 = amount_field()
    total = amount_field()


class CategoryDetailSerializer(serializers.Serializer):
    category_number = serializers.IntegerField(read_only=True)
    own_total = amount_field()
    children_total = amount_field()
    final_total = amount_field()


class Category1DetailSerializer(CategoryDetailSerializer):
    scope1_total = amount_field()
    scope1_mobile = amount_field()
    scope1_factory = amount_field()
    scope1_wastewater = amount_field()
    scope1_remaining = amount_field()
    scope2_total = amount_field()
    scope2_factory = amount_field()
    scope2_remaining = amount_field()
    scope3_category1 = amount_field()


class Category2DetailSerializer(CategoryDetailSerializer):
    scope1_factory = amount_field()
    scope2_factory = amount_field()
    scope3_category2 = amount_field()


class Category4DetailSerializer(CategoryDetailSerializer):
    scope1_mobile = amount_field()
    scope3_category4 = amount_field()


class Category5DetailSerializer(CategoryDetailSerializer):
    scope1_wastewater = amount_field()
    scope3_category5 = amount_field()


class AggregationResultSerializer(serializers.Serializer):
    period = ReportingPeriodSerializer()
    context = OrgContextSerializer()
    summary = ScopeSummarySerializer()
    category1 = Category1DetailSerializer()
    category2 = Category2DetailSerializer()
    category4 = Category4DetailSerializer()
    category5 = Category5DetailSerializer()
    special_total = amount_field()
    grand_total = amount_field()
    descendant_count = serializers.IntegerField()


class CategoryBreakdownRowSerializer(serializers.Serializer):
    category_number = serializers.IntegerField()
    category_name = serializers.CharField()
    total_emission = amount_field()
    record_count = serializers.IntegerField()


class CategoryBreakdownSerializer(serializers.Serializer):
    emission_class = serializers.CharField()
    rows = CategoryBreakdownRowSerializer(many=True)
    total_emission = amount_field()
    record_count = serializers.IntegerField()


class CategoryMonthRowSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.IntegerField()
    breakdown = CategoryBreakdownSerializer()


class Scope3CombinedSerializer(serializers.Serializer):
    special_total = amount_field()
    regular_total = amount_field()
    combined_total = amount_field()
    regular_categories = CategoryBreakdownRowSerializer(many=True)
    record_count = serializers.IntegerField()


class MonthlySummaryRowSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.IntegerField()
    summary = ScopeSummarySerializer()
    record_count = serializers.IntegerField()


class HierarchicalSummaryRowSerializer(serializers.Serializer):
    organization_id = serializers.IntegerField()
    tree_path = serializers.CharField()
    name = serializers.CharField()
    level = serializers.IntegerField()
    summary = ScopeSummarySerializer()
    child_count = serializers.IntegerField()
