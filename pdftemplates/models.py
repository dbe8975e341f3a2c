import json

from django.db import models

from utils.storage import resolve_media_path


class PdfTemplate(models.Model):
    SOURCE_DATABASE = 'database'
    SOURCE_CSV = 'csv'
    SOURCE_ERP = 'erp'
    DATA_SOURCE_CHOICES = [
        (SOURCE_DATABASE, 'Database table'),
        (SOURCE_CSV, 'CSV / Excel import'),
        (SOURCE_ERP, 'ERP'),
    ]

    key = models.SlugField(max_length=191, unique=True)
    name = models.CharField(max_length=255, blank=True, default='')
    data_source_type = models.CharField(max_length=20, choices=DATA_SOURCE_CHOICES, default=SOURCE_DATABASE)
    source_table = models.CharField(max_length=128, blank=True, null=True)
    doctype = models.CharField(max_length=191, blank=True, null=True)
    file_path = models.CharField(max_length=500, blank=True, null=True)
    # field name -> {x, y, page, size, width, wrap_text, align, csv_index, ...}
    fields_config = models.JSONField(default=dict, blank=True)
    # [{x, y, width, height, page, data, record_from, record_to}, ...]
    images_config = models.JSONField(default=list, blank=True)
    use_as_background = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']

    def __str__(self):
        return self.name or self.key

    @property
    def fields(self):
        """fields_config as a dict, tolerating rows saved as a JSON string."""
        config = self.fields_config or {}
        if isinstance(config, str):
            try:
                config = json.loads(config) or {}
            except ValueError:
                config = {}
        return config if isinstance(config, dict) else {}

    @property
    def images(self):
        config = self.images_config or []
        if isinstance(config, str):
            try:
                config = json.loads(config) or []
            except ValueError:
                config = []
        return config if isinstance(config, list) else []

    def pdf_abspath(self):
        """Absolute path of the uploaded PDF, or None when missing on disk."""
        if not self.file_path:
            return None
        try:
            path = resolve_media_path(self.file_path)
        except ValueError:
            return None
        return path if path.is_file() else None

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'name': self.name,
            'data_source_type': self.data_source_type,
            'source_table': self.source_table,
            'doctype': self.doctype,
            'file_path': self.file_path,
            'fields_config': self.fields,
            'images_config': self.images,
            'use_as_background': self.use_as_background,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
