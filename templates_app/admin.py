from django.contrib import admin
from .models import Template


@admin.register(Template)
class TemplateAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "action_slug", "active", "created_at", "updated_at")
    search_fields = ("name", "action_slug")
    list_filter = ("active", "action_slug", "created_at")
