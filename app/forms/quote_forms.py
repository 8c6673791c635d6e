"""
Forms for clients, catalog items and quote editing.

All of them accept either a regular form post or a JSON body.
"""

from wtforms import DateField, DecimalField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional, ValidationError

from app.forms import ApiForm, BrazilianField
from app.models import ItemKind, PersonType, UNITS_OF_MEASURE, DEFAULT_UNIT
from app.utils.validation import validate_document, validate_email, validate_phone

PERSON_TYPE_CHOICES = [(PersonType.PJ.value, 'Pessoa jurídica'), (PersonType.PF.value, 'Pessoa física')]
KIND_CHOICES = [(ItemKind.SERVICE.value, 'Serviço'), (ItemKind.PRODUCT.value, 'Produto')]
UNIT_CHOICES = [(unit, unit) for unit in UNITS_OF_MEASURE]


class ClientForm(ApiForm):
    """Address book entry."""

    name = StringField('Nome', validators=[DataRequired(message='O nome do cliente é obrigatório'), Length(max=200)])
    person_type = SelectField('Tipo', choices=PERSON_TYPE_CHOICES, default=PersonType.PJ.value)
    document = StringField('CPF/CNPJ', validators=[Optional(), Length(max=20)])
    email = StringField('Email', validators=[Optional(), BrazilianField(validate_email)])
    phone = StringField('Telefone', validators=[Optional(), BrazilianField(validate_phone)])
    address = TextAreaField('Endereço', validators=[Optional()])
    notes = TextAreaField('Observações', validators=[Optional()])

    def validate_document(self, field):
        message = validate_document(field.data, self.person_type.data)
        if message:
            raise ValidationError(message)


class CatalogItemForm(ApiForm):
    """Saved service or product."""

    kind = SelectField('Tipo', choices=KIND_CHOICES, default=ItemKind.SERVICE.value)
    description = StringField('Descrição', validators=[
        DataRequired(message='A descrição é obrigatória'), Length(max=255)
    ])
    default_price = DecimalField('Preço', places=2, validators=[
        Optional(), NumberRange(min=0, message='O preço não pode ser negativo')
    ])
    default_cost = DecimalField('Custo', places=2, validators=[
        Optional(), NumberRange(min=0, message='O custo não pode ser negativo')
    ])
    unit = SelectField('Unidade', choices=UNIT_CHOICES, default=DEFAULT_UNIT)


class QuoteDetailsForm(ApiForm):
    """Quote header: client snapshot, dates and notes. Every field is optional."""

    client_id = IntegerField('Cliente', validators=[Optional()])
    client_name = StringField('Nome do cliente', validators=[Optional(), Length(max=200)])
    client_person_type = SelectField('Tipo', choices=PERSON_TYPE_CHOICES, default=PersonType.PJ.value)
    client_document = StringField('CPF/CNPJ', validators=[Optional(), Length(max=20)])
    client_email = StringField('Email', validators=[Optional(), BrazilianField(validate_email)])
    client_phone = StringField('Telefone', validators=[Optional(), BrazilianField(validate_phone)])
    client_address = TextAreaField('Endereço', validators=[Optional()])
    notes = TextAreaField('Observações', validators=[Optional()])
    issued_on = DateField('Data', format='%Y-%m-%d', validators=[Optional()])
    due_date = DateField('Validade', format='%Y-%m-%d', validators=[Optional()])

    def validate_due_date(self, field):
        if field.data and self.issued_on.data and field.data < self.issued_on.data:
            raise ValidationError('A validade não pode ser anterior à data do orçamento.')


class LineItemForm(ApiForm):
    """One quote line (manual entry or edit)."""

    description = StringField('Descrição', validators=[
        DataRequired(message='A descrição do item é obrigatória'), Length(max=255)
    ])
    quantity = DecimalField('Quantidade', places=3, validators=[
        Optional(), NumberRange(min=0, message='A quantidade não pode ser negativa')
    ])
    unit_price = DecimalField('Preço unitário', places=2, validators=[
        Optional(), NumberRange(min=0, message='O preço não pode ser negativo')
    ])
    cost = DecimalField('Custo', places=2, validators=[
        Optional(), NumberRange(min=0, message='O custo não pode ser negativo')
    ])
    unit = SelectField('Unidade', choices=UNIT_CHOICES, default=DEFAULT_UNIT)
    kind = SelectField('Tipo', choices=KIND_CHOICES, default=ItemKind.SERVICE.value)


class LineItemUpdateForm(LineItemForm):
    """Partial edit of a line; description may be omitted."""

    description = StringField('Descrição', validators=[Optional(), Length(max=255)])


class CatalogLineForm(ApiForm):
    catalog_item_id = IntegerField('Item do catálogo', validators=[DataRequired(message='Selecione um item do catálogo')])
    quantity = DecimalField('Quantidade', places=3, validators=[Optional(), NumberRange(min=0)])


class DiscountForm(ApiForm):
    """
    Discount edit. Exactly one of `value` / `percent` drives the other.

    Out-of-range numbers are accepted and clamped by the service while the
    user is still typing.
    """

    value = DecimalField('Desconto (R$)', places=2, validators=[Optional()])
    percent = DecimalField('Desconto (%)', places=2, validators=[Optional()])

    def validate(self, extra_validators=None):
        if not super().validate(extra_validators):
            return False
        if (self.value.data is None) == (self.percent.data is None):
            self.value.errors.append('Informe o valor ou o percentual do desconto.')
            return False
        return True


class FeedbackForm(ApiForm):
    """Client approval / rejection from the public page; feedback optional."""

    feedback = TextAreaField('Comentário', validators=[Optional(), Length(max=2000)])
    client_name = StringField('Seu nome', validators=[Optional(), Length(max=200)])


class AdjustmentRequestForm(FeedbackForm):
    """Client asks for changes; the reason is mandatory."""

    feedback = TextAreaField('Ajuste solicitado', validators=[
        DataRequired(message='Descreva o ajuste solicitado.'), Length(max=2000)
    ])


class SignatureForm(ApiForm):
    signature = TextAreaField('Assinatura', validators=[DataRequired(message='A assinatura é obrigatória')])


class StatusActionForm(ApiForm):
    """Owner status actions (approve, reject, resend)."""

    feedback = TextAreaField('Motivo', validators=[Optional(), Length(max=2000)])
