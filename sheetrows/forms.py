from django.contrib.auth.models import User
from django.contrib.auth.forms import AuthenticationForm, UserCreationForm
from django import forms

from .models import EditorSettings

class SignUP(UserCreationForm):
    password2 = forms.CharField(label='Confirm Password (again)',widget=forms.PasswordInput)
    email = forms.EmailField(label="Email", required=True)
    class Meta:
        model = User
        fields = ['email']
        labels = {'email':'Email'}

    def clean_email(self):
        email = self.cleaned_data.get('email', '').strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            raise forms.ValidationError("This email is already taken. Please use a different email.")
        return email


class EmailLoginForm(AuthenticationForm):
    username = forms.CharField(label="Email", widget=forms.EmailInput(attrs={'autofocus': True}))

    def clean_username(self):
        return self.cleaned_data.get('username', '').strip().lower()


class EditorSettingsForm(forms.ModelForm):
    class Meta:
        model = EditorSettings
        fields = ['script_url']
        labels = {'script_url': 'Apps Script URL'}
        widgets = {
            'script_url': forms.URLInput(attrs={'placeholder': 'https://script.google.com/macros/s/xxx/exec'}),
        }


class RowEditForm(forms.Form):
    """
    One text field per sheet column, built from the headers at load time.

    Column A holds the owner's email and is rendered read-only; Django keeps
    a disabled field at its initial value whatever the POST says.
    """

    def __init__(self, headers, row, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.headers = list(headers)
        for pos, header in enumerate(self.headers):
            self.fields[self.field_name(pos)] = forms.CharField(
                label=header or f"Column {pos + 1}",
                required=False,
                strip=False,
                initial=self._cell(row, pos),
                disabled=(pos == 0),
                help_text="Email address cannot be changed" if pos == 0 else "",
            )

    @staticmethod
    def field_name(pos):
        return f"col_{pos}"

    @staticmethod
    def _cell(row, pos):
        return row.data[pos] if pos < len(row.data) else ""

    def row_data(self):
        return [self.cleaned_data.get(self.field_name(pos), "") for pos in range(len(self.headers))]
