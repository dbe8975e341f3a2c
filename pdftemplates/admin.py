from django.contrib import admin

from .models import PdfTemplate


@admin.register(PdfTemplate)
class PdfTemplateAdmin(admin.ModelAdmin):
    list_display = ('key', 'name', 'data_source_type', 'source_table', 'doctype', 'use_as_background', 'updated_at')
    list_filter = ('data_source_type', 'use_as_background')
    search_fields = ('key', 'name', 'source_table', 'doctype')
