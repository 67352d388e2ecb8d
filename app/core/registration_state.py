from enum import Enum
from dataclasses import dataclass, field, fields, asdict
from typing import Optional, Dict, Any

from .errors import InvalidFieldValueError


class UserType(str, Enum):
    """
    Perfis de cadastro disponíveis na plataforma.
    """
    CORRETOR = "corretor"
    IMOBILIARIA = "imobiliaria"
    INCORPORADORA = "incorporadora"
    CLIENTE = "cliente"
    PROPRIETARIO = "proprietario"
    ADMINISTRADOR = "administrador"


class DocumentType(str, Enum):
    CPF = "cpf"
    CNPJ = "cnpj"


class ExperienceLevel(str, Enum):
    """
    Faixas de tempo de experiência informadas por corretores.
    """
    LESS_THAN_1_YEAR = "less-1"
    FROM_1_TO_3_YEARS = "1-3"
    FROM_3_TO_5_YEARS = "3-5"
    FROM_5_TO_10_YEARS = "5-10"
    MORE_THAN_10_YEARS = "more-10"


class AccountStatus(str, Enum):
    PENDING = "pendente"
    ACTIVE = "ativa"
    SUSPENDED = "suspensa"
    DEACTIVATED = "desativada"


def is_user_type(value: Any) -> bool:
    return value in {item.value for item in UserType}


def is_experience_level(value: Any) -> bool:
    return value in {item.value for item in ExperienceLevel}


# Nome do atributo Python -> chave usada na API / formulário
WIRE_NAMES: Dict[str, str] = {
    "name": "name",
    "email": "email",
    "password": "password",
    "confirm_password": "confirmPassword",
    "user_type": "userType",
    "phone": "phone",
    "creci": "creci",
    "cnpj": "cnpj",
    "cpf": "cpf",
    "company_name": "companyName",
    "accept_terms": "acceptTerms",
    "experience": "experience",
    "access_level": "accessLevel",
}
ATTRIBUTE_NAMES: Dict[str, str] = {wire: attr for attr, wire in WIRE_NAMES.items()}

OPTIONAL_TEXT_FIELDS = ("phone", "creci", "cnpj", "cpf", "company_name", "access_level")
NULLABLE_FIELDS = ("accept_terms", "experience")


def coerce_field_value(attr: str, value: Any) -> Any:
    """
    Confere o tipo do valor de um atributo do formulário.

    Campos de texto aceitam str (None vira ""), `accept_terms` aceita
    bool ou None e `experience` aceita str ou None. Enums viram o valor.
    Qualquer outro tipo levanta InvalidFieldValueError.
    """
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return None if attr in NULLABLE_FIELDS else ""
    if attr == "accept_terms":
        if isinstance(value, bool):
            return value
    elif isinstance(value, str):
        return value
    raise InvalidFieldValueError(WIRE_NAMES[attr], value)


@dataclass
class RegistrationFormData:
    """
    Dados do formulário de cadastro.

    Os campos opcionais existem para todos os perfis; quais deles são
    obrigatórios é decidido pelas tabelas de regras por perfil.
    `user_type` e `experience` guardam o valor bruto recebido para que um
    perfil inválido vire erro de validação, não exceção.
    """
    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    user_type: str = UserType.CORRETOR.value
    phone: str = ""
    creci: str = ""
    cnpj: str = ""
    cpf: str = ""
    company_name: str = ""
    accept_terms: Optional[bool] = None
    experience: Optional[str] = None
    access_level: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "RegistrationFormData":
        """
        Monta o formulário a partir das chaves da API (camelCase).
        Também aceita os nomes dos atributos (snake_case). Chaves
        desconhecidas são ignoradas; valor de tipo errado levanta
        InvalidFieldValueError.
        """
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in (raw or {}).items():
            attr = ATTRIBUTE_NAMES.get(key, key)
            if attr not in known:
                continue
            values[attr] = coerce_field_value(attr, value)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializa com as chaves da API (camelCase).
        """
        return {WIRE_NAMES[attr]: value for attr, value in asdict(self).items()}

    def to_submission_payload(self) -> Dict[str, Any]:
        """
        Dados entregues ao cadastro de conta: strings opcionais vazias
        são removidas.
        """
        payload = {
            "name": self.name.strip(),
            "email": self.email.strip(),
            "password": self.password,
            "confirmPassword": self.confirm_password,
            "userType": self.user_type,
        }
        for attr in OPTIONAL_TEXT_FIELDS:
            value = getattr(self, attr)
            if value and value.strip():
                payload[WIRE_NAMES[attr]] = value.strip()
        if self.accept_terms is not None:
            payload["acceptTerms"] = self.accept_terms
        if self.experience:
            payload["experience"] = self.experience
        return payload


@dataclass
class FormState:
    """
    Estado de uma sessão de formulário: dados, erros por campo e se
    existe um envio em andamento.
    """
    data: RegistrationFormData = field(default_factory=RegistrationFormData)
    errors: Dict[str, str] = field(default_factory=dict)
    submitted: bool = False
