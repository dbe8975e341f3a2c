from django.db import models

from pdftemplates.models import PdfTemplate


class DataImport(models.Model):
    """Spreadsheet of records attached to a template; one per template."""
    template = models.OneToOneField(PdfTemplate, on_delete=models.CASCADE, related_name='data_import')
    filename = models.CharField(max_length=255)
    file_path = models.CharField(max_length=500)
    columns = models.JSONField(default=list, blank=True)
    total_rows = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.filename} ({self.total_rows} rows)"

    def to_dict(self):
        return {
            'id': self.id,
            'pdf_template_id': self.template_id,
            'filename': self.filename,
            'file_path': self.file_path,
            'columns': self.columns,
            'total_rows': self.total_rows,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
