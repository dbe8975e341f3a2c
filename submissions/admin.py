from django.contrib import admin
from import_export import resources
from import_export.admin import ImportExportModelAdmin

from .models import Submission


class SubmissionResource(resources.ModelResource):
    class Meta:
        model = Submission
        fields = ('id', 'name', 'email', 'age', 'created_at')
        export_order = ('id', 'name', 'email', 'age', 'created_at')


@admin.register(Submission)
class SubmissionAdmin(ImportExportModelAdmin):
    resource_classes = [SubmissionResource]
    list_display = ('id', 'name', 'email', 'age', 'created_at')
    search_fields = ('name', 'email')
