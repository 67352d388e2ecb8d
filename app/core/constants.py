"""
Constantes do cadastro: limites de tamanho, expressões de validação,
mensagens de erro, opções de formulário e as tabelas de regras por perfil.
"""
import re
from typing import Dict, List, Optional, Tuple

from .registration_state import UserType, DocumentType, ExperienceLevel


# ============================================================================
# LIMITES DE TAMANHO
# ============================================================================

NAME_MIN = 3
NAME_MAX = 100
PASSWORD_MIN = 6
PASSWORD_MAX = 50
EMAIL_MAX = 100


# ============================================================================
# EXPRESSÕES DE VALIDAÇÃO
# ============================================================================

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_PATTERN = re.compile(r"^[A-Za-zÀ-ÿ\s]{2,100}$")


# ============================================================================
# MENSAGENS DE ERRO
# ============================================================================

def required_message(label: str) -> str:
    return f"{label} é obrigatório"


def min_length_message(label: str, minimum: int) -> str:
    return f"{label} deve ter pelo menos {minimum} caracteres"


def max_length_message(label: str, maximum: int) -> str:
    return f"{label} deve ter no máximo {maximum} caracteres"


INVALID_EMAIL = "Email inválido"
SHORT_PASSWORD = f"Senha deve ter pelo menos {PASSWORD_MIN} caracteres"
CONFIRM_PASSWORD_REQUIRED = "Confirme sua senha"
PASSWORDS_DO_NOT_MATCH = "As senhas não coincidem"
INVALID_USER_TYPE = "Selecione um tipo de perfil válido"
INVALID_EXPERIENCE = "Selecione uma experiência válida"
INVALID_PHONE = "Telefone inválido (use: (11) 99999-9999)"
INVALID_CPF = "CPF inválido (use: 123.456.789-00)"
INVALID_CNPJ = "CNPJ inválido (use: 12.345.678/0001-90)"
INVALID_CRECI = "CRECI inválido (use: CRECI/SP-123456)"
INVALID_NAME = "Nome inválido (apenas letras e espaços)"
CPF_CHECKSUM_MISMATCH = "CPF inválido (dígitos verificadores incorretos)"
CNPJ_CHECKSUM_MISMATCH = "CNPJ inválido (dígitos verificadores incorretos)"
TERMS_NOT_ACCEPTED = "É necessário aceitar os termos e condições"

# Erros gerais (não associados a um campo)
EMAIL_ALREADY_REGISTERED = "Email já cadastrado"
INVALID_FORM = "Verifique os campos destacados e tente novamente"
INTERNAL_ERROR = "Erro interno do sistema. Tente novamente mais tarde."

FIELD_LABELS: Dict[str, str] = {
    "name": "Nome",
    "email": "Email",
    "password": "Senha",
    "confirmPassword": "Confirmação de senha",
    "userType": "Perfil",
    "phone": "Telefone",
    "creci": "CRECI",
    "cnpj": "CNPJ",
    "cpf": "CPF",
}


# ============================================================================
# OPÇÕES PARA FORMULÁRIOS
# ============================================================================

PROFILE_OPTIONS: List[Tuple[UserType, str, str]] = [
    (UserType.CORRETOR, "Corretor", "Profissional autônomo ou vinculado a imobiliária"),
    (UserType.IMOBILIARIA, "Imobiliária", "Empresa com vários corretores e imóveis"),
    (UserType.INCORPORADORA, "Incorporadora", "Construtora ou desenvolvedora de imóveis"),
    (UserType.CLIENTE, "Cliente", "Busca imóveis para comprar ou alugar"),
    (UserType.PROPRIETARIO, "Proprietário", "Possui imóveis para vender ou alugar"),
    (UserType.ADMINISTRADOR, "Administrador", "Acesso total ao sistema (interno)"),
]

EXPERIENCE_OPTIONS: List[Tuple[ExperienceLevel, str]] = [
    (ExperienceLevel.LESS_THAN_1_YEAR, "Menos de 1 ano"),
    (ExperienceLevel.FROM_1_TO_3_YEARS, "1-3 anos"),
    (ExperienceLevel.FROM_3_TO_5_YEARS, "3-5 anos"),
    (ExperienceLevel.FROM_5_TO_10_YEARS, "5-10 anos"),
    (ExperienceLevel.MORE_THAN_10_YEARS, "Mais de 10 anos"),
]

ACCESS_LEVEL_OPTIONS: List[Tuple[str, str]] = [
    ("super", "Super Administrador"),
    ("moderador", "Moderador"),
    ("visualizador", "Apenas Visualização"),
]


# ============================================================================
# REGRAS POR PERFIL
# ============================================================================

BASE_REQUIRED_FIELDS = ["name", "email", "password", "confirmPassword"]

REQUIRED_FIELDS_BY_PROFILE: Dict[UserType, List[str]] = {
    UserType.CORRETOR: BASE_REQUIRED_FIELDS + ["creci"],
    UserType.IMOBILIARIA: BASE_REQUIRED_FIELDS + ["cnpj"],
    UserType.INCORPORADORA: BASE_REQUIRED_FIELDS + ["cnpj"],
    UserType.CLIENTE: BASE_REQUIRED_FIELDS + ["cpf"],
    UserType.PROPRIETARIO: BASE_REQUIRED_FIELDS + ["cpf"],
    UserType.ADMINISTRADOR: list(BASE_REQUIRED_FIELDS),
}

DOCUMENT_TYPE_BY_PROFILE: Dict[UserType, Optional[DocumentType]] = {
    UserType.CORRETOR: None,  # Corretor usa CRECI
    UserType.IMOBILIARIA: DocumentType.CNPJ,
    UserType.INCORPORADORA: DocumentType.CNPJ,
    UserType.CLIENTE: DocumentType.CPF,
    UserType.PROPRIETARIO: DocumentType.CPF,
    UserType.ADMINISTRADOR: None,
}

PROFILE_DESCRIPTIONS: Dict[UserType, str] = {
    UserType.CORRETOR: "Profissionais que atuam na intermediação de negócios imobiliários. Necessário CRECI ativo.",
    UserType.IMOBILIARIA: "Empresas do setor imobiliário com CNPJ ativo. Podem ter múltiplos corretores vinculados.",
    UserType.INCORPORADORA: "Empresas de construção e desenvolvimento de empreendimentos imobiliários.",
    UserType.CLIENTE: "Pessoas buscando imóveis para comprar ou alugar. Acesso ao catálogo completo.",
    UserType.PROPRIETARIO: "Possuidores de imóveis que desejam anunciar para venda ou locação.",
    UserType.ADMINISTRADOR: "Acesso total ao sistema para gestão de usuários, imóveis e configurações.",
}
