"""
Account forms: registration, login and company profile.
"""

from wtforms import BooleanField, EmailField, PasswordField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional, Regexp, ValidationError

from app.forms import ApiForm, BrazilianField
from app.models import CompanyType
from app.utils.validation import validate_document, validate_email, validate_phone


class RegisterForm(ApiForm):
    """Owner sign-up."""

    email = EmailField('Email', validators=[
        DataRequired(message='O email é obrigatório'),
        BrazilianField(validate_email),
    ])
    password = PasswordField('Senha', validators=[
        DataRequired(message='A senha é obrigatória'),
        Length(min=6, message='A senha deve ter pelo menos 6 caracteres'),
    ])
    full_name = StringField('Nome', validators=[Optional(), Length(max=200)])


class LoginForm(ApiForm):
    email = EmailField('Email', validators=[DataRequired(message='O email é obrigatório')])
    password = PasswordField('Senha', validators=[DataRequired(message='A senha é obrigatória')])


class CompanyForm(ApiForm):
    """Company profile, used by onboarding and settings."""

    razao_social = StringField('Razão social', validators=[
        DataRequired(message='A razão social é obrigatória'), Length(max=200)
    ])
    nome_fantasia = StringField('Nome fantasia', validators=[
        DataRequired(message='O nome fantasia é obrigatório'), Length(max=200)
    ])
    company_type = SelectField(
        'Tipo de empresa',
        choices=[
            (CompanyType.PESSOA_JURIDICA.value, 'Pessoa jurídica'),
            (CompanyType.PESSOA_FISICA.value, 'Pessoa física'),
        ],
        default=CompanyType.PESSOA_JURIDICA.value
    )
    document = StringField('CPF/CNPJ', validators=[DataRequired(message='O documento é obrigatório')])
    email = EmailField('Email', validators=[
        DataRequired(message='O email é obrigatório'),
        BrazilianField(validate_email),
    ])
    phone = StringField('Telefone', validators=[
        DataRequired(message='O telefone é obrigatório'),
        BrazilianField(validate_phone),
    ])
    address = TextAreaField('Endereço', validators=[Optional()])
    brand_color = StringField('Cor da marca', validators=[
        Optional(),
        Regexp(r'^#[0-9a-fA-F]{6}$', message='Cor inválida. Use o formato #RRGGBB'),
    ])
    logo_url = StringField('Logo', validators=[Optional(), Length(max=500)])
    show_signature = BooleanField('Exibir assinatura', false_values=(False, 'false', '', '0', 0))

    def validate_document(self, field):
        message = validate_document(field.data, self.company_type.data)
        if message:
            raise ValidationError(message)
