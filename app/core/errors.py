"""
Exceções do cadastro.

Entrada inválida do usuário NÃO gera exceção (vira mapa de erros);
estas classes cobrem violações de contrato e falhas de persistência.
"""
from typing import Optional


class RegistrationError(Exception):
    """Classe base para exceções do cadastro"""


class UnknownProfileError(RegistrationError, ValueError):
    """Perfil fora do conjunto conhecido pelas tabelas de regras"""

    def __init__(self, profile: object):
        super().__init__(f"Perfil desconhecido: {profile!r}")
        self.profile = profile


class UnknownFieldError(RegistrationError, KeyError):
    """Campo inexistente no formulário de cadastro"""

    def __init__(self, field_name: str):
        super().__init__(field_name)
        self.field_name = field_name

    def __str__(self) -> str:
        return f"Campo desconhecido: {self.field_name}"


class DuplicateEmailError(RegistrationError):
    """E-mail já cadastrado no repositório"""

    def __init__(self, email: str, details: Optional[str] = None):
        super().__init__(f"Email já cadastrado: {email}")
        self.email = email
        self.details = details


class FormSessionNotFoundError(RegistrationError, LookupError):
    """Sessão de formulário inexistente ou expirada"""

    def __init__(self, session_id: str):
        super().__init__(f"Sessão de formulário não encontrada: {session_id}")
        self.session_id = session_id


class InvalidFieldValueError(RegistrationError, ValueError):
    """Valor de tipo incompatível com o campo (ex: número no nome)"""

    def __init__(self, field_name: str, value: object):
        super().__init__(
            f"Valor inválido para o campo {field_name}: {type(value).__name__}"
        )
        self.field_name = field_name
        self.value = value
