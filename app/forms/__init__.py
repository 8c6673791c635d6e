"""Form helpers shared by the JSON blueprints."""
from flask import request
from flask_wtf import FlaskForm
from wtforms.validators import ValidationError as FieldValidationError

from app.exceptions import ValidationError


class ApiForm(FlaskForm):
    """
    Base form for the JSON endpoints.

    CSRF is checked app-wide by CSRFProtect (X-CSRFToken header), so the
    per-form hidden token is disabled.
    """

    class Meta:
        csrf = False


class BrazilianField:
    """Adapt a `app.utils.validation` function (returns message or None) to WTForms."""

    def __init__(self, check):
        self.check = check

    def __call__(self, form, field):
        message = self.check(field.data)
        if message:
            raise FieldValidationError(message)


def validate_or_raise(form):
    """Validate a submitted form, raising ValidationError with field errors."""
    if not form.validate():
        raise ValidationError(form.errors)
    return form


def submitted_fields(form):
    """
    Data for the fields the client actually sent.

    Lets PATCH-style endpoints update only what was submitted.
    """
    payload = request.get_json(silent=True)
    sent = set(payload.keys()) if isinstance(payload, dict) else set(request.form.keys())
    return {name: value for name, value in form.data.items() if name in sent}
