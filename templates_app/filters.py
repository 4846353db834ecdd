# templates_app/filters.py
import django_filters as df

from .models import Template


class TemplateFilter(df.FilterSet):
    name_icontains = df.CharFilter(field_name="name", lookup_expr="icontains")
    action_slug = df.CharFilter(field_name="action_slug", lookup_expr="exact")
    active = df.BooleanFilter(field_name="active")

    updated_at_from = df.DateTimeFilter(field_name="updated_at", lookup_expr="gte")
    updated_at_to = df.DateTimeFilter(field_name="updated_at", lookup_expr="lte")

    class Meta:
        model = Template
        fields = ["action_slug", "active"]
