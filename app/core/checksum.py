"""
Cálculo de dígito verificador módulo 11 usado por CPF e CNPJ.
"""
import re
from typing import Sequence


def only_digits(raw: str) -> str:
    """
    Remove tudo que não é dígito.
    """
    return re.sub(r"\D", "", raw or "")


def mod11_check_digit(digits: str, weights: Sequence[int]) -> int:
    """
    Calcula um dígito verificador: soma ponderada dos dígitos,
    resto da divisão por 11 e regra "0 se resto < 2, senão 11 - resto".

    Os pesos são aplicados a partir do primeiro dígito; `digits` deve
    ter pelo menos len(weights) posições.
    """
    total = sum(int(digits[i]) * weight for i, weight in enumerate(weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_repeated_sequence(digits: str) -> bool:
    """
    Sequências com todos os dígitos iguais (ex: 111.111.111-11) passam no
    cálculo, mas são reconhecidamente inválidas.
    """
    return len(set(digits)) == 1
