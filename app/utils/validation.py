"""
Field validators for Brazilian registration data.

Each validator returns None when the value is acceptable (empty counts as
acceptable, required-ness is the form's job) or an error message otherwise.
"""
import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NON_DIGITS = re.compile(r"\D")
REPEATED_DIGIT = re.compile(r"^(\d)\1+$")


def only_digits(value: Optional[str]) -> str:
    return NON_DIGITS.sub('', value or '')


def validate_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return None if EMAIL_PATTERN.match(email) else 'Email inválido.'


def validate_cnpj(cnpj: Optional[str]) -> Optional[str]:
    clean = only_digits(cnpj)
    if not clean:
        return None
    if len(clean) != 14:
        return 'CNPJ deve ter 14 dígitos.'
    # Format/length check only; check digits are not verified
    if REPEATED_DIGIT.match(clean):
        return 'CNPJ inválido.'
    return None


def validate_cpf(cpf: Optional[str]) -> Optional[str]:
    clean = only_digits(cpf)
    if not clean:
        return None
    if len(clean) != 11:
        return 'CPF deve ter 11 dígitos.'
    if REPEATED_DIGIT.match(clean):
        return 'CPF inválido.'
    return None


def validate_document(document: Optional[str], person_type: str = 'PJ') -> Optional[str]:
    """CPF for individuals (PF / pessoa_fisica), CNPJ otherwise."""
    if person_type in ('PF', 'pessoa_fisica'):
        return validate_cpf(document)
    return validate_cnpj(document)


def validate_phone(phone: Optional[str]) -> Optional[str]:
    clean = only_digits(phone)
    if not clean:
        return None
    if len(clean) < 10:
        return 'Telefone incompleto.'
    return None


def format_document(value: Optional[str]) -> str:
    """
    Mask a CPF (000.000.000-00) or CNPJ (00.000.000/0000-00).

    Values that do not have exactly 11 or 14 digits are returned as digits only.
    """
    digits = only_digits(value)
    if len(digits) == 11:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    if len(digits) == 14:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"
    return digits
