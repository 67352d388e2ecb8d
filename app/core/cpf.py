"""
CPF (Cadastro de Pessoas Físicas): formatação, validação de formato e
validação completa com dígitos verificadores.
"""
import random
from typing import Optional

from .checksum import only_digits, mod11_check_digit, is_repeated_sequence

CPF_LENGTH = 11

# Pesos do primeiro e do segundo dígito verificador
FIRST_DIGIT_WEIGHTS = tuple(range(10, 1, -1))
SECOND_DIGIT_WEIGHTS = tuple(range(11, 1, -1))


def strip_cpf(raw: str) -> str:
    """
    Remove a formatação do CPF.

    Exemplo:
        "123.456.789-00" → "12345678900"
    """
    return only_digits(raw)


def format_cpf(raw: str) -> str:
    """
    Formata um CPF como 000.000.000-00.
    Retorna o valor original se não tiver 11 dígitos.
    """
    digits = strip_cpf(raw)
    if len(digits) != CPF_LENGTH:
        return raw
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def is_valid_cpf_shape(raw: str) -> bool:
    """
    Valida apenas o formato (11 dígitos), NÃO os dígitos verificadores.
    """
    return len(strip_cpf(raw)) == CPF_LENGTH


def _check_digits(base: str) -> str:
    first = mod11_check_digit(base, FIRST_DIGIT_WEIGHTS)
    second = mod11_check_digit(base + str(first), SECOND_DIGIT_WEIGHTS)
    return f"{first}{second}"


def is_valid_cpf(raw: str) -> bool:
    """
    Valida o CPF completo (formato E dígitos verificadores).

    Exemplos:
        "529.982.247-25" → True
        "111.111.111-11" → False (sequência repetida)
    """
    digits = strip_cpf(raw)

    if len(digits) != CPF_LENGTH:
        return False

    if is_repeated_sequence(digits):
        return False

    return digits[9:] == _check_digits(digits[:9])


def generate_valid_cpf(rng: Optional[random.Random] = None) -> str:
    """
    Gera um CPF válido e formatado. Uso exclusivo em testes e fixtures.
    """
    rng = rng or random
    base = "".join(str(rng.randint(0, 9)) for _ in range(9))
    # Base repetida gera "CPF válido" pelo cálculo, mas rejeitado pela validação
    while is_repeated_sequence(base + _check_digits(base)):
        base = "".join(str(rng.randint(0, 9)) for _ in range(9))
    return format_cpf(base + _check_digits(base))
