"""
Formatação e validação de telefones brasileiros (fixo e celular com DDD).

A validação é apenas de formato: não verifica DDD existente nem prefixo
de operadora.
"""
from .checksum import only_digits

MOBILE_LENGTH = 11
LANDLINE_LENGTH = 10


def strip_phone(raw: str) -> str:
    """
    Remove a formatação do telefone, deixando apenas números.

    Exemplo:
        "(11) 99999-9999" → "11999999999"
    """
    return only_digits(raw)


def format_phone(raw: str) -> str:
    """
    Formata um telefone no padrão brasileiro.

    Retorna o valor original se a quantidade de dígitos não permitir
    inferir o formato (sem truncar nem completar).

    Exemplos:
        "11999999999"   → "(11) 99999-9999"
        "1133334444"    → "(11) 3333-4444"
        "123"           → "123"
    """
    digits = strip_phone(raw)

    if len(digits) == MOBILE_LENGTH:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"

    if len(digits) == LANDLINE_LENGTH:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"

    return raw


def is_valid_phone(raw: str) -> bool:
    return len(strip_phone(raw)) in (LANDLINE_LENGTH, MOBILE_LENGTH)


def is_mobile(raw: str) -> bool:
    return len(strip_phone(raw)) == MOBILE_LENGTH


def is_landline(raw: str) -> bool:
    return len(strip_phone(raw)) == LANDLINE_LENGTH
