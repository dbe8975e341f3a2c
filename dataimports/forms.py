import os

from django import forms
from django.conf import settings

from .services.reader import ALLOWED_EXTENSIONS


class DataImportForm(forms.Form):
    file = forms.FileField(label="CSV / Excel file", help_text="csv, xlsx or xls, up to 10 MB.")

    def clean_file(self):
        upload = self.cleaned_data['file']
        extension = os.path.splitext(upload.name)[1].lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise forms.ValidationError("The file must be a csv, xlsx or xls file.")
        if upload.size > settings.DATA_IMPORT_MAX_BYTES:
            raise forms.ValidationError(
                f"The file may not be larger than {settings.DATA_IMPORT_MAX_BYTES // 1024} kilobytes."
            )
        return upload
