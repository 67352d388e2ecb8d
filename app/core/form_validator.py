"""
Validação do formulário de cadastro.

Combina os validadores de formato (telefone, CPF, CNPJ, CRECI) com as
tabelas de regras por perfil e devolve um mapa campo -> mensagem.
Mapa vazio significa formulário válido. Entrada inválida nunca gera
exceção; cada chamada recalcula o mapa inteiro.
"""
import logging
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Union

from . import constants as c
from .cnpj import is_valid_cnpj, is_valid_cnpj_shape
from .cpf import is_valid_cpf, is_valid_cpf_shape
from .creci import is_valid_creci_shape
from .phone import is_valid_phone
from .profile_rules import DEFAULT_RULES, ProfileRules
from .registration_state import (
    ATTRIBUTE_NAMES,
    DocumentType,
    RegistrationFormData,
    UserType,
    coerce_field_value,
    is_experience_level,
    is_user_type,
)
from .errors import UnknownFieldError

logger = logging.getLogger(__name__)

FormInput = Union[RegistrationFormData, Mapping[str, Any]]

# Validação de formato e mensagem de cada documento
DOCUMENT_SHAPE_CHECKS = {
    "creci": (is_valid_creci_shape, c.INVALID_CRECI),
    "cnpj": (is_valid_cnpj_shape, c.INVALID_CNPJ),
    "cpf": (is_valid_cpf_shape, c.INVALID_CPF),
}

DOCUMENT_CHECKSUMS = {
    "cnpj": (is_valid_cnpj, c.CNPJ_CHECKSUM_MISMATCH),
    "cpf": (is_valid_cpf, c.CPF_CHECKSUM_MISMATCH),
}


def _is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def _as_form(data: FormInput) -> RegistrationFormData:
    if isinstance(data, RegistrationFormData):
        return data
    return RegistrationFormData.from_dict(dict(data))


def _check_name(name: str) -> Optional[str]:
    if _is_blank(name):
        return c.required_message("Nome")
    if len(name) < c.NAME_MIN:
        return c.min_length_message("Nome", c.NAME_MIN)
    if len(name) > c.NAME_MAX:
        return c.max_length_message("Nome", c.NAME_MAX)
    if not c.NAME_PATTERN.fullmatch(name):
        return c.INVALID_NAME
    return None


def _check_email(email: str) -> Optional[str]:
    if not email:
        return c.required_message("Email")
    if not c.EMAIL_PATTERN.fullmatch(email):
        return c.INVALID_EMAIL
    if len(email) > c.EMAIL_MAX:
        return c.max_length_message("Email", c.EMAIL_MAX)
    return None


def _check_password(password: str) -> Optional[str]:
    if not password:
        return c.required_message("Senha")
    if len(password) < c.PASSWORD_MIN:
        return c.SHORT_PASSWORD
    if len(password) > c.PASSWORD_MAX:
        return c.max_length_message("Senha", c.PASSWORD_MAX)
    return None


def _check_confirmation(password: str, confirmation: str) -> Optional[str]:
    if not confirmation:
        return c.CONFIRM_PASSWORD_REQUIRED
    if password != confirmation:
        return c.PASSWORDS_DO_NOT_MATCH
    return None


def validate_registration_form(
    data: FormInput,
    rules: Optional[ProfileRules] = None,
    check_digits: bool = False,
) -> Dict[str, str]:
    """
    Valida o formulário completo de cadastro.

    Todas as falhas são coletadas (sem parar na primeira). Quando o mesmo
    campo falha em mais de uma etapa, vale a mensagem da última.

    Args:
        data: RegistrationFormData ou dicionário com as chaves da API
        rules: Regras por perfil (padrão: tabelas padrão)
        check_digits: Se True, CPF/CNPJ com formato correto também têm os
                      dígitos verificadores conferidos

    Returns:
        Dicionário campo -> mensagem (vazio se válido)
    """
    form = _as_form(data)
    rules = rules or DEFAULT_RULES
    errors: Dict[str, str] = {}

    # === Campos básicos (todos os perfis) ===
    checks = {
        "name": _check_name(form.name),
        "email": _check_email(form.email),
        "password": _check_password(form.password),
        "confirmPassword": _check_confirmation(form.password, form.confirm_password),
    }
    errors.update({field_name: msg for field_name, msg in checks.items() if msg})

    profile_is_valid = bool(form.user_type) and is_user_type(form.user_type)
    if not profile_is_valid:
        errors["userType"] = c.INVALID_USER_TYPE

    # === Campos opcionais (só se preenchidos) ===
    if not _is_blank(form.phone) and not is_valid_phone(form.phone):
        errors["phone"] = c.INVALID_PHONE

    if form.experience and not is_experience_level(form.experience):
        errors["experience"] = c.INVALID_EXPERIENCE

    for field_name, (is_valid_shape, message) in DOCUMENT_SHAPE_CHECKS.items():
        value = getattr(form, field_name)
        if not _is_blank(value) and not is_valid_shape(value):
            errors[field_name] = message

    # Ausência de resposta não é erro aqui; quem decide é o envio
    if form.accept_terms is False:
        errors["acceptTerms"] = c.TERMS_NOT_ACCEPTED

    # === Regras por perfil ===
    if profile_is_valid:
        profile = UserType(form.user_type)

        for field_name in rules.required_fields(profile):
            if field_name not in DOCUMENT_SHAPE_CHECKS:
                continue
            value = getattr(form, field_name)
            is_valid_shape, message = DOCUMENT_SHAPE_CHECKS[field_name]
            if _is_blank(value):
                errors[field_name] = c.required_message(c.FIELD_LABELS[field_name])
            elif not is_valid_shape(value):
                errors[field_name] = message

        document_type = rules.required_document_type(profile)
        if (
            document_type == DocumentType.CPF
            and profile != UserType.CORRETOR
            and _is_blank(form.cpf)
        ):
            errors["cpf"] = c.required_message("CPF")
        if document_type == DocumentType.CNPJ and _is_blank(form.cnpj):
            errors["cnpj"] = c.required_message("CNPJ")

    # === Dígitos verificadores (opcional) ===
    if check_digits:
        for field_name, (is_valid_checksum, message) in DOCUMENT_CHECKSUMS.items():
            value = getattr(form, field_name)
            if _is_blank(value) or field_name in errors:
                continue
            if not is_valid_checksum(value):
                errors[field_name] = message

    logger.debug(
        f"Formulário validado: user_type={form.user_type}, "
        f"campos_com_erro={sorted(errors)}"
    )
    return errors


def has_no_errors(errors: Mapping[str, str]) -> bool:
    """
    Verifica se o mapa de erros está vazio (entradas com mensagem vazia
    não contam como erro).
    """
    return not any(errors.values())


def validate_field(
    field_name: str,
    value: Any,
    data: Optional[FormInput] = None,
    rules: Optional[ProfileRules] = None,
    check_digits: bool = False,
) -> Optional[str]:
    """
    Valida um único campo no contexto do formulário (validação enquanto
    o usuário digita).

    Usa as mesmas regras de validate_registration_form, então a mensagem
    é sempre a mesma que a validação completa daria para o campo.

    Returns:
        Mensagem de erro do campo ou None
    """
    attr = ATTRIBUTE_NAMES.get(field_name)
    if attr is None:
        raise UnknownFieldError(field_name)

    form = _as_form(data) if data is not None else RegistrationFormData()
    form = replace(form, **{attr: coerce_field_value(attr, value)})
    return validate_registration_form(form, rules=rules, check_digits=check_digits).get(field_name)
