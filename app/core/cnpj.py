"""
CNPJ (Cadastro Nacional da Pessoa Jurídica): formatação, validação de
formato e validação completa com dígitos verificadores.
"""
import random
from typing import Optional

from .checksum import only_digits, mod11_check_digit, is_repeated_sequence

CNPJ_LENGTH = 14

FIRST_DIGIT_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
SECOND_DIGIT_WEIGHTS = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def strip_cnpj(raw: str) -> str:
    """
    Remove a formatação do CNPJ.

    Exemplo:
        "12.345.678/0001-99" → "12345678000199"
    """
    return only_digits(raw)


def format_cnpj(raw: str) -> str:
    """
    Formata um CNPJ como 00.000.000/0000-00.
    Retorna o valor original se não tiver 14 dígitos.
    """
    digits = strip_cnpj(raw)
    if len(digits) != CNPJ_LENGTH:
        return raw
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def is_valid_cnpj_shape(raw: str) -> bool:
    """
    Valida apenas o formato (14 dígitos), NÃO os dígitos verificadores.
    """
    return len(strip_cnpj(raw)) == CNPJ_LENGTH


def _check_digits(base: str) -> str:
    first = mod11_check_digit(base, FIRST_DIGIT_WEIGHTS)
    second = mod11_check_digit(base + str(first), SECOND_DIGIT_WEIGHTS)
    return f"{first}{second}"


def is_valid_cnpj(raw: str) -> bool:
    """
    Valida o CNPJ completo (formato E dígitos verificadores).

    Exemplos:
        "11.222.333/0001-81" → True
        "11.222.333/0001-82" → False (segundo dígito incorreto)
        "11.111.111/1111-11" → False (sequência repetida)
    """
    digits = strip_cnpj(raw)

    if len(digits) != CNPJ_LENGTH:
        return False

    if is_repeated_sequence(digits):
        return False

    return digits[12:] == _check_digits(digits[:12])


def generate_valid_cnpj(rng: Optional[random.Random] = None) -> str:
    """
    Gera um CNPJ válido e formatado. Uso exclusivo em testes e fixtures.
    """
    rng = rng or random
    base = "".join(str(rng.randint(0, 9)) for _ in range(12))
    while is_repeated_sequence(base + _check_digits(base)):
        base = "".join(str(rng.randint(0, 9)) for _ in range(12))
    return format_cnpj(base + _check_digits(base))
