from django.contrib import admin

from .models import DataImport


@admin.register(DataImport)
class DataImportAdmin(admin.ModelAdmin):
    list_display = ('filename', 'template', 'total_rows', 'created_at')
    search_fields = ('filename', 'template__key')
