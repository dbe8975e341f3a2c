import os

from django import forms


class PdfUploadForm(forms.Form):
    pdf = forms.FileField(label="Upload PDF", help_text="Only PDF files are supported.")

    def clean_pdf(self):
        upload = self.cleaned_data['pdf']
        if os.path.splitext(upload.name)[1].lower() != '.pdf':
            raise forms.ValidationError("The pdf must be a file of type: pdf.")
        upload.seek(0)
        if not upload.read(5).startswith(b'%PDF'):
            raise forms.ValidationError("The uploaded file is not a PDF document.")
        upload.seek(0)
        return upload
