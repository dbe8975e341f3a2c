from django import forms
from django.core.validators import RegexValidator

from .services import COLUMN_TYPES, IDENTIFIER_RE

identifier_validator = RegexValidator(IDENTIFIER_RE, "Use lowercase letters and underscores only.")


class ColumnForm(forms.Form):
    name = forms.CharField(max_length=63, validators=[identifier_validator])
    type = forms.ChoiceField(choices=[(t, t) for t in COLUMN_TYPES])
    nullable = forms.BooleanField(required=False)
    default = forms.CharField(required=False, empty_value=None)


class CreateTableForm(forms.Form):
    table_name = forms.CharField(max_length=63, validators=[identifier_validator])

    def __init__(self, data=None, *args, **kwargs):
        super().__init__(data, *args, **kwargs)
        self.column_forms = [ColumnForm(c if isinstance(c, dict) else {}) for c in (data or {}).get('columns') or []]

    def is_valid(self):
        valid = super().is_valid()
        if not self.column_forms:
            self.add_error(None, "At least one column is required.")
            return False
        columns_valid = all(form.is_valid() for form in self.column_forms)
        return valid and columns_valid

    @property
    def columns(self):
        return [form.cleaned_data for form in self.column_forms]

    def error_data(self):
        errors = self.errors.get_json_data()
        for index, form in enumerate(self.column_forms):
            if form.errors:
                errors[f'columns.{index}'] = form.errors.get_json_data()
        return errors
