"""
Tabelas de regras por perfil: campos obrigatórios e tipo de documento.

São a única fonte de verdade sobre "o que precisa estar preenchido" para
cada perfil; o validador do formulário não deve decidir isso por conta própria.
"""
import logging
from typing import Dict, List, Optional, Union

from .constants import REQUIRED_FIELDS_BY_PROFILE, DOCUMENT_TYPE_BY_PROFILE
from .errors import UnknownProfileError
from .registration_state import UserType, DocumentType

logger = logging.getLogger(__name__)

DOCUMENT_FIELD_BY_TYPE = {
    DocumentType.CPF: "cpf",
    DocumentType.CNPJ: "cnpj",
}


def to_user_type(profile: Union[UserType, str]) -> UserType:
    """
    Converte o valor recebido para UserType.
    Levanta UnknownProfileError se o perfil não existir.
    """
    if isinstance(profile, UserType):
        return profile
    try:
        return UserType(profile)
    except ValueError:
        raise UnknownProfileError(profile) from None


class ProfileRules:
    """
    Regras de cadastro por perfil.

    Se corretor e administrador precisam de CPF/CNPJ varia entre
    implantações, então isso é configurável via `document_overrides`. Ao trocar o documento de um perfil, o campo
    correspondente entra na lista de obrigatórios, mantendo as duas
    tabelas coerentes.
    """

    def __init__(
        self,
        document_overrides: Optional[Dict[UserType, Optional[DocumentType]]] = None,
    ) -> None:
        self._document_types: Dict[UserType, Optional[DocumentType]] = dict(DOCUMENT_TYPE_BY_PROFILE)
        self._required_fields: Dict[UserType, List[str]] = {
            profile: list(field_names) for profile, field_names in REQUIRED_FIELDS_BY_PROFILE.items()
        }

        for profile, document_type in (document_overrides or {}).items():
            profile = to_user_type(profile)
            self._document_types[profile] = document_type
            if document_type is not None:
                document_field = DOCUMENT_FIELD_BY_TYPE[document_type]
                if document_field not in self._required_fields[profile]:
                    self._required_fields[profile].append(document_field)
            logger.info(
                f"Regra de documento sobrescrita: profile={profile.value}, "
                f"document_type={document_type.value if document_type else None}"
            )

    @classmethod
    def from_config(cls, config) -> "ProfileRules":
        """
        Cria as regras a partir de AppConfig (BROKER_DOCUMENT_TYPE e
        ADMIN_DOCUMENT_TYPE).
        """
        return cls(
            document_overrides={
                UserType.CORRETOR: config.broker_document_type,
                UserType.ADMINISTRADOR: config.admin_document_type,
            }
        )

    def required_document_type(self, profile: Union[UserType, str]) -> Optional[DocumentType]:
        return self._document_types[to_user_type(profile)]

    def required_fields(self, profile: Union[UserType, str]) -> List[str]:
        """
        Lista ordenada de campos obrigatórios do perfil.
        Sempre começa com name, email, password, confirmPassword.
        """
        return list(self._required_fields[to_user_type(profile)])


DEFAULT_RULES = ProfileRules()


def required_document_type(profile: Union[UserType, str]) -> Optional[DocumentType]:
    return DEFAULT_RULES.required_document_type(profile)


def required_fields(profile: Union[UserType, str]) -> List[str]:
    return DEFAULT_RULES.required_fields(profile)
